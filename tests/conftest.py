"""
Shared test fixtures for the domain agent test suite.

Provides:
  - Async test client for FastAPI integration tests
  - In-memory record store and scripted registrar gateways
  - Sample drop-list candidates
"""

from datetime import date
from typing import AsyncIterator, Optional, Sequence
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.core.config import SelectionConfig
from app.domain.models import (
    CandidateRecord,
    DropListResult,
    OrderRequest,
    OrderResponse,
    PurchaseAttempt,
    PurchaseStatus,
    SeenDomain,
)
from app.main import app


class InMemoryRecordStore:
    """RecordStore fake with the same skip-on-conflict and pending-only rules."""

    def __init__(self) -> None:
        self.seen: dict[str, SeenDomain] = {}
        self.attempts: dict[str, PurchaseAttempt] = {}
        self.events: list[tuple[str, str, str]] = []
        self.lookups = 0

    async def seen_domain_exists(self, domain_name: str) -> bool:
        return domain_name in self.seen

    async def existing_seen_domains(self, domain_names: Sequence[str]) -> set[str]:
        self.lookups += 1
        return {name for name in domain_names if name in self.seen}

    async def upsert_seen_domains(self, seen: Sequence[SeenDomain]) -> int:
        inserted = 0
        for entry in seen:
            if entry.domain_name not in self.seen:
                self.seen[entry.domain_name] = entry
                inserted += 1
        return inserted

    async def insert_attempt(self, attempt: PurchaseAttempt) -> str:
        attempt_id = f"attempt-{len(self.attempts) + 1}"
        self.attempts[attempt_id] = attempt.model_copy(update={"id": attempt_id})
        self.events.append(("insert", attempt.domain_name, attempt.status.value))
        return attempt_id

    async def update_attempt(
        self,
        attempt_id: str,
        status: PurchaseStatus,
        order_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        current = self.attempts[attempt_id]
        assert current.status is PurchaseStatus.PENDING, "terminal attempt re-opened"
        self.attempts[attempt_id] = current.model_copy(
            update={"status": status, "order_id": order_id, "error_message": error_message}
        )
        self.events.append(("update", current.domain_name, status.value))

    def attempts_for(self, domain_name: str) -> list[PurchaseAttempt]:
        return [a for a in self.attempts.values() if a.domain_name == domain_name]


class ScriptedDropList:
    """DropListGateway returning a fixed result (or raising)."""

    def __init__(self, result=None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.calls = 0

    async def fetch_drop_list(self) -> DropListResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class ScriptedOrders:
    """OrderGateway with per-domain responses; unknown domains succeed."""

    def __init__(self, responses: Optional[dict] = None) -> None:
        self.responses = responses or {}
        self.requests: list[OrderRequest] = []

    async def submit_order(self, request: OrderRequest) -> OrderResponse:
        self.requests.append(request)
        response = self.responses.get(request.domain_name)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return OrderResponse(
                success=True,
                order_id=f"ORD-{request.domain_name}",
                domain_name=request.domain_name,
            )
        return response


def make_candidate(name: str, drop_date: date = date(2024, 1, 1)) -> CandidateRecord:
    return CandidateRecord(domain_name=name, drop_date=drop_date)


@pytest_asyncio.fixture
async def async_client() -> AsyncIterator[AsyncClient]:
    """
    Provide an async HTTP test client for integration tests.

    Patches MongoDB connection and scheduler to avoid requiring
    live infrastructure during testing.
    """
    with patch("app.core.lifespan.validate_startup_settings"), \
         patch("app.core.lifespan.connect_to_mongo", new_callable=AsyncMock), \
         patch("app.core.lifespan.close_mongo", new_callable=AsyncMock), \
         patch("app.core.lifespan.ensure_indexes", new_callable=AsyncMock), \
         patch("app.core.lifespan.start_scheduler"), \
         patch("app.core.lifespan.stop_scheduler"), \
         patch("app.core.lifespan.stop_purchase_runs", new_callable=AsyncMock):

        transport = ASGITransport(app=app)
        async with AsyncClient(
            transport=transport, base_url="http://testserver"
        ) as client:
            yield client


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def selection_config() -> SelectionConfig:
    return SelectionConfig(
        allowed_tlds=(".au",),
        max_domains_per_day=10,
        min_domain_length=3,
        max_domain_length=63,
        default_registrant_contact_id="C-100",
        default_nameservers=("ns1.example.net", "ns2.example.net"),
    )


@pytest.fixture
def mock_store():
    """
    Provide a mock MongoRecordStore.

    Pre-configured with async methods for use in API tests.
    """
    store = MagicMock()
    store.find_seen_domain = AsyncMock(return_value=None)
    store.find_latest_attempt = AsyncMock(return_value=None)
    store.list_attempts_by_status = AsyncMock(return_value=[])
    return store
