"""
Drop-list cache — the cross-run deduplication gate.

Every candidate that passes through ``admit`` is recorded in the permanent
seen ledger, so the same domain is never scored or purchased twice from
fresh drop-list fetches.
"""

from datetime import datetime, timezone
from typing import Iterable

from app.core.logging import get_logger
from app.domain.models import CandidateRecord, SeenDomain, SourceTag
from app.domain.ports import RecordStore
from app.utils.domain_names import normalize_domain

logger = get_logger(__name__)


class DropListCache:
    """Filters candidates down to those never seen before."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def exists(self, domain_name: str) -> bool:
        """Return True if the domain is already in the seen ledger."""
        return await self._store.seen_domain_exists(normalize_domain(domain_name))

    async def admit(
        self, candidates: Iterable[CandidateRecord], source: SourceTag
    ) -> list[CandidateRecord]:
        """
        Return only the newly-seen candidates and record them in the ledger.

        Names are compared case-insensitively. Duplicates within the same
        input are admitted once. The ledger is queried once for the whole
        input, and the inserts are committed as a single batch at the end.

        Args:
            candidates: Drop-list entries in source order.
            source: Where the entries came from (api or file).

        Returns:
            The new candidates, in input order.

        Raises:
            DatabaseError: If the ledger lookup or the batch insert fails.
        """
        candidates = list(candidates)
        if not candidates:
            return []

        names = list(dict.fromkeys(normalize_domain(c.domain_name) for c in candidates))
        already_seen = await self._store.existing_seen_domains(names)

        admitted: list[CandidateRecord] = []
        staged: list[SeenDomain] = []
        staged_names: set[str] = set()
        seen_at = datetime.now(timezone.utc)
        skipped = 0

        for candidate in candidates:
            name = normalize_domain(candidate.domain_name)
            if name in staged_names or name in already_seen:
                logger.debug("Skipping already-seen domain=%s", name)
                skipped += 1
                continue

            if name != candidate.domain_name:
                candidate = candidate.model_copy(update={"domain_name": name})

            staged_names.add(name)
            staged.append(SeenDomain.from_candidate(candidate, source, seen_at))
            admitted.append(candidate)

        if staged:
            inserted = await self._store.upsert_seen_domains(staged)
            logger.info(
                "Admitted %d new domains from source=%s (%d inserted, %d already seen)",
                len(admitted),
                source.value,
                inserted,
                skipped,
            )
        else:
            logger.info(
                "No new domains from source=%s (%d already seen)",
                source.value,
                skipped,
            )

        return admitted
