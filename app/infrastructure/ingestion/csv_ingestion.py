"""
CSV drop-list ingestion.

Loads externally supplied drop lists (registry exports, broker feeds) into
the seen ledger through the drop-list cache, tagged with source "file".
Column names vary between providers, so the domain and date columns are
matched against a list of known aliases.
"""

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import BinaryIO, Optional

from pydantic import ValidationError

from app.core.exceptions import IngestionError
from app.core.logging import get_logger
from app.domain.drop_list_cache import DropListCache
from app.domain.models import CandidateRecord, SourceTag
from app.utils.domain_names import normalize_domain

logger = get_logger(__name__)

DOMAIN_COLUMNS = (
    "domainname", "domain name", "domain_name", "domain", "name",
)
DATE_COLUMNS = (
    "dropdate", "drop date", "drop_date", "date", "expiry", "expiry_date",
    "expirydate",
)
DATE_FORMATS = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%d-%m-%Y",
)


@dataclass
class IngestionSummary:
    """Counts from one ingested file."""

    rows_read: int = 0
    rows_skipped: int = 0
    admitted: int = 0


def parse_drop_date(raw: Optional[str]) -> date:
    """
    Parse a drop date in any of the common registry formats.

    Day-first formats are tried before month-first. Blank or unparsable
    values fall back to today (UTC).
    """
    text = (raw or "").strip()
    if text:
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            logger.debug("Unparsable drop date %r, using today", text)
    return datetime.now(timezone.utc).date()


def _find_column(headers: list[str], aliases: tuple[str, ...]) -> Optional[str]:
    by_alias = {header.strip().lower(): header for header in headers}
    for alias in aliases:
        if alias in by_alias:
            return by_alias[alias]
    return None


class CsvDropListIngestor:
    """Reads drop-list CSVs and admits their rows into the seen ledger."""

    def __init__(self, cache: DropListCache) -> None:
        self._cache = cache

    async def ingest_file(self, path: str | Path) -> IngestionSummary:
        """
        Ingest a CSV file from disk.

        Raises:
            IngestionError: If the file does not exist or cannot be parsed.
        """
        file_path = Path(path)
        if not file_path.is_file():
            logger.error("CSV file not found: %s", file_path)
            raise IngestionError(f"file not found: {file_path}")

        logger.info("Ingesting CSV file: %s", file_path)
        with file_path.open("rb") as stream:
            return await self.ingest_stream(stream)

    async def ingest_stream(self, stream: BinaryIO) -> IngestionSummary:
        """
        Ingest a CSV from a binary stream (UTF-8, optional BOM).

        Rows with a blank domain name are skipped. Every other row becomes
        a candidate; already-seen domains are dropped by the cache.

        Raises:
            IngestionError: If the stream is not UTF-8 CSV or has no
                recognisable domain column.
        """
        summary = IngestionSummary()
        candidates: list[CandidateRecord] = []
        text_stream = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")

        try:
            reader = csv.DictReader(text_stream)
            headers = reader.fieldnames or []
            domain_column = _find_column(headers, DOMAIN_COLUMNS)
            if domain_column is None:
                raise IngestionError(
                    f"no domain name column in header {headers!r}"
                )
            date_column = _find_column(headers, DATE_COLUMNS)

            for row in reader:
                summary.rows_read += 1
                name = normalize_domain(row.get(domain_column) or "")
                if not name:
                    summary.rows_skipped += 1
                    continue
                raw_date = row.get(date_column) if date_column else None
                try:
                    candidates.append(
                        CandidateRecord(domain_name=name, drop_date=parse_drop_date(raw_date))
                    )
                except ValidationError as exc:
                    logger.warning("Skipping invalid CSV row %r: %s", row, exc)
                    summary.rows_skipped += 1

        except UnicodeDecodeError as exc:
            raise IngestionError("CSV must be UTF-8 encoded") from exc
        except csv.Error as exc:
            raise IngestionError(f"invalid CSV format: {exc}") from exc
        finally:
            try:
                text_stream.detach()
            except ValueError:
                pass

        admitted = await self._cache.admit(candidates, SourceTag.FILE)
        summary.admitted = len(admitted)
        logger.info(
            "Ingested %d rows from CSV (%d skipped, %d new)",
            summary.rows_read,
            summary.rows_skipped,
            summary.admitted,
        )
        return summary
