"""Interfaces the purchase workflow depends on."""

from typing import Optional, Protocol, Sequence

from app.domain.models import (
    DropListResult,
    OrderRequest,
    OrderResponse,
    PurchaseAttempt,
    PurchaseStatus,
    SeenDomain,
)


class DropListGateway(Protocol):
    """Fetches the registry drop list (one network call, no retries)."""

    async def fetch_drop_list(self) -> DropListResult:
        ...


class OrderGateway(Protocol):
    """Submits one registration order."""

    async def submit_order(self, request: OrderRequest) -> OrderResponse:
        ...


class RecordStore(Protocol):
    """Durable storage for the seen ledger and purchase attempts."""

    async def seen_domain_exists(self, domain_name: str) -> bool:
        ...

    async def existing_seen_domains(self, domain_names: Sequence[str]) -> set[str]:
        ...

    async def upsert_seen_domains(self, seen: Sequence[SeenDomain]) -> int:
        ...

    async def insert_attempt(self, attempt: PurchaseAttempt) -> str:
        ...

    async def update_attempt(
        self,
        attempt_id: str,
        status: PurchaseStatus,
        order_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        ...
