"""
MongoDB client lifecycle management.

Provides async connection with retry-backoff, graceful shutdown,
and index management for the seen-ledger and purchase collections.
"""

import asyncio
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# Module-level client reference
_client: AsyncIOMotorClient | None = None
_database: AsyncIOMotorDatabase | None = None


async def connect_to_mongo(
    max_retries: int = 5, base_delay: float = 1.0
) -> None:
    """
    Connect to MongoDB, backing off exponentially between failed pings.

    The client is timezone-aware so stored timestamps come back as UTC
    datetimes. A single connection is shared by the API and the scheduler.

    Raises:
        ConnectionFailure: If every attempt fails.
    """
    global _client, _database

    attempt = 0
    while True:
        attempt += 1
        client = AsyncIOMotorClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            maxPoolSize=10,
            tz_aware=True,
            appname="domain-agent",
        )
        try:
            await client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as exc:
            client.close()
            if attempt >= max_retries:
                logger.error("Giving up on MongoDB after %d attempts", attempt)
                raise ConnectionFailure(
                    f"Could not connect to MongoDB after {attempt} attempts"
                ) from exc

            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                "MongoDB ping failed (attempt %d/%d): %s. Retrying in %.1fs",
                attempt,
                max_retries,
                exc,
                delay,
            )
            await asyncio.sleep(delay)
            continue

        _client = client
        _database = client[settings.mongo_db_name]
        logger.info("Connected to MongoDB database=%s", settings.mongo_db_name)
        return


async def close_mongo() -> None:
    """Close the shared MongoDB client, if any."""
    global _client, _database

    if _client is None:
        return
    _client.close()
    _client = None
    _database = None
    logger.info("MongoDB connection closed")


def get_database() -> AsyncIOMotorDatabase:
    """
    Return the active database handle.

    Raises:
        RuntimeError: If called before connect_to_mongo().
    """
    if _database is None:
        raise RuntimeError("MongoDB is not connected; call connect_to_mongo() at startup.")
    return _database


async def ensure_indexes() -> None:
    """
    Create required database indexes.

    - Unique index on `seen_domains.domain_name`: the ledger holds at most
      one entry per domain and inserts rely on it to skip duplicates.
    - Index on `seen_domains.drop_date` for drop-date reports.
    - Indexes on `purchase_attempts` by domain, status and attempt time
      for audit queries. Attempts are not unique per domain.
    """
    db = get_database()

    await db.seen_domains.create_index(
        "domain_name", unique=True, name="idx_domain_name_unique"
    )
    await db.seen_domains.create_index("drop_date", name="idx_drop_date")

    await db.purchase_attempts.create_index("domain_name", name="idx_domain_name")
    await db.purchase_attempts.create_index("status", name="idx_status")
    await db.purchase_attempts.create_index("attempted_at", name="idx_attempted_at")
    logger.info("Database indexes ensured on 'seen_domains' and 'purchase_attempts'")
