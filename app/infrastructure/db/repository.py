"""
Record store — MongoDB persistence for the seen ledger and purchase attempts.

All database interactions for the acquisition workflow go through this
module. Uses the Motor async driver for non-blocking I/O.

Collections:
  - seen_domains       one document per domain, insert-only
  - purchase_attempts  one document per order attempt, pending → terminal
"""

from datetime import date, datetime, time, timezone
from typing import Any, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.errors import BulkWriteError, PyMongoError

from app.core.exceptions import DatabaseError
from app.core.logging import get_logger
from app.domain.models import PurchaseAttempt, PurchaseStatus, SeenDomain
from app.infrastructure.db.mongo import get_database

logger = get_logger(__name__)

DUPLICATE_KEY_CODE = 11000


def _as_datetime(value: date) -> datetime:
    """BSON has no date type; store calendar dates as midnight UTC."""
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _object_id(attempt_id: str) -> ObjectId:
    try:
        return ObjectId(attempt_id)
    except (InvalidId, TypeError) as exc:
        raise DatabaseError("update_attempt", f"invalid attempt id {attempt_id!r}") from exc


class MongoRecordStore:
    """Async repository implementing the ``RecordStore`` port."""

    SEEN_COLLECTION = "seen_domains"
    ATTEMPT_COLLECTION = "purchase_attempts"

    def _seen(self):
        return get_database()[self.SEEN_COLLECTION]

    def _attempts(self):
        return get_database()[self.ATTEMPT_COLLECTION]

    # ── Seen ledger ──────────────────────────────────────────

    async def seen_domain_exists(self, domain_name: str) -> bool:
        try:
            document = await self._seen().find_one(
                {"domain_name": domain_name}, {"_id": 1}
            )
            return document is not None
        except PyMongoError as exc:
            logger.error("Seen-ledger lookup failed for domain=%s: %s", domain_name, exc)
            raise DatabaseError("seen_domain_exists", str(exc)) from exc

    async def existing_seen_domains(self, domain_names: Sequence[str]) -> set[str]:
        """Return the subset of ``domain_names`` already in the ledger, in one query."""
        if not domain_names:
            return set()
        try:
            cursor = self._seen().find(
                {"domain_name": {"$in": list(domain_names)}},
                {"domain_name": 1, "_id": 0},
            )
            documents = await cursor.to_list(length=None)
        except PyMongoError as exc:
            logger.error("Seen-ledger batch lookup failed: %s", exc)
            raise DatabaseError("existing_seen_domains", str(exc)) from exc
        return {doc["domain_name"] for doc in documents}

    async def find_seen_domain(self, domain_name: str) -> Optional[SeenDomain]:
        try:
            document = await self._seen().find_one({"domain_name": domain_name})
        except PyMongoError as exc:
            raise DatabaseError("find_seen_domain", str(exc)) from exc
        return SeenDomain.from_mongo(document) if document else None

    async def upsert_seen_domains(self, seen: Sequence[SeenDomain]) -> int:
        """
        Insert ledger entries, skipping any domain that already exists.

        Existing entries are never overwritten. The unordered bulk insert
        keeps going past duplicate-key conflicts.

        Returns:
            The number of entries actually inserted.
        """
        if not seen:
            return 0

        documents = [
            {
                "domain_name": entry.domain_name,
                "drop_date": _as_datetime(entry.drop_date),
                "tld": entry.tld,
                "source": entry.source.value,
                "first_seen_at": entry.first_seen_at,
            }
            for entry in seen
        ]

        try:
            result = await self._seen().insert_many(documents, ordered=False)
            return len(result.inserted_ids)

        except BulkWriteError as exc:
            errors = exc.details.get("writeErrors", [])
            unexpected = [e for e in errors if e.get("code") != DUPLICATE_KEY_CODE]
            if unexpected:
                logger.error("Seen-ledger insert failed: %s", unexpected[0].get("errmsg"))
                raise DatabaseError(
                    "upsert_seen_domains", str(unexpected[0].get("errmsg"))
                ) from exc
            inserted = exc.details.get("nInserted", 0)
            logger.debug(
                "Seen-ledger insert skipped %d existing domains", len(errors)
            )
            return inserted

        except PyMongoError as exc:
            logger.error("Seen-ledger insert failed: %s", exc)
            raise DatabaseError("upsert_seen_domains", str(exc)) from exc

    async def list_seen_by_drop_date(self, drop_date: date) -> list[SeenDomain]:
        try:
            cursor = self._seen().find({"drop_date": _as_datetime(drop_date)})
            documents = await cursor.to_list(length=None)
        except PyMongoError as exc:
            raise DatabaseError("list_seen_by_drop_date", str(exc)) from exc
        return [SeenDomain.from_mongo(doc) for doc in documents]

    # ── Purchase attempts ────────────────────────────────────

    async def insert_attempt(self, attempt: PurchaseAttempt) -> str:
        """
        Persist a new purchase attempt.

        Returns:
            The string representation of the document's _id.
        """
        now = datetime.now(timezone.utc)
        document: dict[str, Any] = {
            "domain_name": attempt.domain_name,
            "tld": attempt.tld,
            "order_id": attempt.order_id,
            "status": attempt.status.value,
            "error_message": attempt.error_message,
            "attempted_at": attempt.attempted_at,
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = await self._attempts().insert_one(document)
        except PyMongoError as exc:
            logger.error("Attempt insert failed for domain=%s: %s", attempt.domain_name, exc)
            raise DatabaseError("insert_attempt", str(exc)) from exc

        logger.debug(
            "Recorded %s attempt for domain=%s (id=%s)",
            attempt.status.value,
            attempt.domain_name,
            result.inserted_id,
        )
        return str(result.inserted_id)

    async def update_attempt(
        self,
        attempt_id: str,
        status: PurchaseStatus,
        order_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Move a pending attempt to its result status.

        Only pending attempts match, so a terminal attempt is never re-opened.

        Raises:
            DatabaseError: If the write fails or no pending attempt matched.
        """
        try:
            result = await self._attempts().update_one(
                {"_id": _object_id(attempt_id), "status": PurchaseStatus.PENDING.value},
                {
                    "$set": {
                        "status": status.value,
                        "order_id": order_id,
                        "error_message": error_message,
                        "updated_at": datetime.now(timezone.utc),
                    }
                },
            )
        except PyMongoError as exc:
            logger.error("Attempt update failed for id=%s: %s", attempt_id, exc)
            raise DatabaseError("update_attempt", str(exc)) from exc

        if result.matched_count == 0:
            raise DatabaseError(
                "update_attempt", f"no pending attempt with id {attempt_id}"
            )

    async def find_latest_attempt(self, domain_name: str) -> Optional[PurchaseAttempt]:
        try:
            document = await self._attempts().find_one(
                {"domain_name": domain_name},
                sort=[("attempted_at", DESCENDING)],
            )
        except PyMongoError as exc:
            raise DatabaseError("find_latest_attempt", str(exc)) from exc
        return PurchaseAttempt.from_mongo(document) if document else None

    async def list_attempts_by_status(
        self, status: PurchaseStatus, limit: int = 100
    ) -> list[PurchaseAttempt]:
        try:
            cursor = (
                self._attempts()
                .find({"status": status.value})
                .sort("attempted_at", DESCENDING)
                .limit(limit)
            )
            documents = await cursor.to_list(length=limit)
        except PyMongoError as exc:
            raise DatabaseError("list_attempts_by_status", str(exc)) from exc
        return [PurchaseAttempt.from_mongo(doc) for doc in documents]

    async def list_attempts_between(
        self, start: datetime, end: datetime
    ) -> list[PurchaseAttempt]:
        try:
            cursor = (
                self._attempts()
                .find({"attempted_at": {"$gte": start, "$lte": end}})
                .sort("attempted_at", DESCENDING)
            )
            documents = await cursor.to_list(length=None)
        except PyMongoError as exc:
            raise DatabaseError("list_attempts_between", str(exc)) from exc
        return [PurchaseAttempt.from_mongo(doc) for doc in documents]
