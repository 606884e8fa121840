"""
FastAPI dependency injection.

Provides shared instances for use across API endpoints,
ensuring consistent lifecycle management and testability.
"""

from app.domain.drop_list_cache import DropListCache
from app.infrastructure.db.repository import MongoRecordStore
from app.infrastructure.ingestion.csv_ingestion import CsvDropListIngestor
from app.infrastructure.registrar.client import RegistrarClient


def get_record_store() -> MongoRecordStore:
    return MongoRecordStore()


def get_registrar_client() -> RegistrarClient:
    return RegistrarClient()


def get_csv_ingestor() -> CsvDropListIngestor:
    """Provide a CSV ingestor writing through the seen-ledger cache."""
    return CsvDropListIngestor(DropListCache(MongoRecordStore()))
