"""
Unit tests for CSV drop-list ingestion.

Tests cover:
  - Header aliases and BOM handling
  - Drop-date formats and fallback
  - Skipped rows and counts
  - Malformed input raised as IngestionError
"""

import io
from datetime import date, datetime, timezone

import pytest

from app.core.exceptions import IngestionError
from app.domain.drop_list_cache import DropListCache
from app.domain.models import SourceTag
from app.infrastructure.ingestion.csv_ingestion import (
    CsvDropListIngestor,
    parse_drop_date,
)


def _stream(text: str, encoding: str = "utf-8") -> io.BytesIO:
    return io.BytesIO(text.encode(encoding))


@pytest.fixture
def ingestor(record_store):
    return CsvDropListIngestor(DropListCache(record_store))


class TestParseDropDate:
    """Tests for drop-date parsing."""

    def test_iso_date(self):
        assert parse_drop_date("2024-03-09") == date(2024, 3, 9)

    def test_day_first_slashes(self):
        assert parse_drop_date("09/03/2024") == date(2024, 3, 9)

    def test_month_first_when_day_first_impossible(self):
        assert parse_drop_date("03/25/2024") == date(2024, 3, 25)

    def test_iso_timestamp(self):
        assert parse_drop_date("2024-03-09T10:15:00") == date(2024, 3, 9)

    def test_blank_falls_back_to_today(self):
        assert parse_drop_date("  ") == datetime.now(timezone.utc).date()

    def test_garbage_falls_back_to_today(self):
        assert parse_drop_date("soon") == datetime.now(timezone.utc).date()


@pytest.mark.asyncio
class TestIngestStream:
    """Tests for CsvDropListIngestor.ingest_stream()."""

    async def test_admits_rows_tagged_file(self, ingestor, record_store):
        csv_text = "Domain Name,Drop Date\nShop.AU,2024-03-09\nbiz.com.au,10/03/2024\n"

        summary = await ingestor.ingest_stream(_stream(csv_text))

        assert summary.rows_read == 2
        assert summary.rows_skipped == 0
        assert summary.admitted == 2
        assert record_store.seen["shop.au"].source is SourceTag.FILE
        assert record_store.seen["shop.au"].drop_date == date(2024, 3, 9)
        assert record_store.seen["biz.com.au"].drop_date == date(2024, 3, 10)

    async def test_handles_byte_order_mark(self, ingestor, record_store):
        summary = await ingestor.ingest_stream(_stream("domain\nshop.au\n", "utf-8-sig"))

        assert summary.admitted == 1
        assert "shop.au" in record_store.seen

    async def test_blank_domains_skipped(self, ingestor):
        csv_text = "domain_name,drop_date\nshop.au,2024-01-01\n ,2024-01-01\n,\n"

        summary = await ingestor.ingest_stream(_stream(csv_text))

        assert summary.rows_read == 3
        assert summary.rows_skipped == 2
        assert summary.admitted == 1

    async def test_already_seen_rows_not_admitted(self, ingestor, record_store):
        await ingestor.ingest_stream(_stream("domain\nshop.au\n"))

        summary = await ingestor.ingest_stream(_stream("domain\nshop.au\nnew.au\n"))

        assert summary.rows_read == 2
        assert summary.admitted == 1
        assert set(record_store.seen) == {"shop.au", "new.au"}

    async def test_missing_date_column_uses_today(self, ingestor, record_store):
        await ingestor.ingest_stream(_stream("name\nshop.au\n"))

        assert record_store.seen["shop.au"].drop_date == datetime.now(timezone.utc).date()

    async def test_missing_domain_column_raises(self, ingestor):
        with pytest.raises(IngestionError) as exc_info:
            await ingestor.ingest_stream(_stream("foo,bar\n1,2\n"))

        assert "domain name column" in exc_info.value.message

    async def test_non_utf8_raises(self, ingestor):
        with pytest.raises(IngestionError):
            await ingestor.ingest_stream(io.BytesIO(b"domain\n\xff\xfeshop.au\n"))


@pytest.mark.asyncio
class TestIngestFile:
    """Tests for CsvDropListIngestor.ingest_file()."""

    async def test_reads_file_from_disk(self, ingestor, record_store, tmp_path):
        path = tmp_path / "droplist.csv"
        path.write_text("DomainName,DropDate\nshop.au,2024-05-01\n", encoding="utf-8")

        summary = await ingestor.ingest_file(path)

        assert summary.admitted == 1
        assert record_store.seen["shop.au"].drop_date == date(2024, 5, 1)

    async def test_missing_file_raises(self, ingestor, tmp_path):
        with pytest.raises(IngestionError):
            await ingestor.ingest_file(tmp_path / "missing.csv")
