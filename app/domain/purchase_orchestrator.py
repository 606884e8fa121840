"""
Purchase orchestrator — drives one acquisition run end to end.

Run steps:
  1. Fetch the drop list (failure or empty list aborts the run)
  2. Admit only never-seen candidates through the drop-list cache
  3. Select the ranked, capped purchase set
  4. Submit orders one at a time, recording each attempt before and
     after the registrar call
  5. Return one outcome per attempted candidate

Per-item faults never escape: they become failed outcomes so the
remaining candidates are still attempted. This layer is framework-agnostic
and depends only on the ports in ``app.domain.ports``.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from app.core.config import SelectionConfig
from app.core.logging import get_logger
from app.domain.drop_list_cache import DropListCache
from app.domain.models import (
    CandidateRecord,
    OrderRequest,
    OrderResponse,
    PurchaseAttempt,
    PurchaseOutcome,
    PurchaseStatus,
    SourceTag,
)
from app.domain.ports import DropListGateway, OrderGateway, RecordStore
from app.domain.selector import select_domains_to_buy

logger = get_logger(__name__)


class PurchaseOrchestrator:
    """Business logic for a single drop-list purchase run."""

    def __init__(
        self,
        drop_list_gateway: DropListGateway,
        order_gateway: OrderGateway,
        store: RecordStore,
        config: SelectionConfig,
        cache: Optional[DropListCache] = None,
    ) -> None:
        self._drop_list = drop_list_gateway
        self._orders = order_gateway
        self._store = store
        self._config = config
        self._cache = cache or DropListCache(store)
        # Why the last execute() produced no outcomes, when it failed
        self.abort_reason: Optional[str] = None

    async def execute(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> list[PurchaseOutcome]:
        """
        Run the full fetch → dedup → select → purchase workflow.

        Args:
            cancel_event: Checked before each candidate is started. Once set,
                no further candidates are attempted; a candidate already in
                flight always finishes and is recorded first.

        Returns:
            The outcomes produced, in ranked order. Empty when the drop list
            could not be fetched or nothing was selected; in the first case
            ``abort_reason`` says why.
        """
        logger.info("Starting domain purchase workflow")
        self.abort_reason = None

        candidates = await self._fetch_candidates()
        if not candidates:
            return []

        try:
            new_candidates = await self._cache.admit(candidates, SourceTag.API)
        except Exception as exc:
            logger.error("Failed to record drop list, aborting run: %s", exc, exc_info=True)
            self.abort_reason = f"Failed to record drop list: {exc}"
            return []

        selected = select_domains_to_buy(new_candidates, self._config)
        logger.info(
            "Selected %d of %d new domains (%d fetched)",
            len(selected),
            len(new_candidates),
            len(candidates),
        )
        if not selected:
            logger.info("No domains selected for purchase")
            return []

        outcomes: list[PurchaseOutcome] = []
        for position, candidate in enumerate(selected, start=1):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    "Purchase workflow cancelled after %d of %d domains",
                    position - 1,
                    len(selected),
                )
                break

            outcomes.append(await self._purchase(candidate))

        succeeded = sum(1 for outcome in outcomes if outcome.success)
        logger.info(
            "Purchase workflow completed. Success: %d, Failed: %d",
            succeeded,
            len(outcomes) - succeeded,
        )
        return outcomes

    def build_order_request(self, candidate: CandidateRecord) -> OrderRequest:
        """Build a registration order from the run's static defaults."""
        config = self._config
        registrant = config.default_registrant_contact_id
        return OrderRequest(
            domain_name=candidate.domain_name,
            period=config.registration_period_years,
            registrant_contact_id=registrant,
            admin_contact_id=config.default_admin_contact_id or registrant,
            tech_contact_id=config.default_tech_contact_id or registrant,
            billing_contact_id=config.default_billing_contact_id or registrant,
            nameservers=list(config.default_nameservers) or None,
        )

    async def _fetch_candidates(self) -> list[CandidateRecord]:
        try:
            result = await self._drop_list.fetch_drop_list()
        except Exception as exc:
            logger.error("Failed to fetch drop list: %s", exc, exc_info=True)
            self.abort_reason = f"Failed to fetch drop list: {exc}"
            return []

        if not result.success:
            logger.error("Failed to fetch drop list: %s", result.error_message)
            self.abort_reason = (
                f"Failed to fetch drop list: {result.error_message or 'unknown error'}"
            )
            return []

        if not result.domains:
            logger.warning("Drop list is empty, nothing to do")
            return []

        logger.info("Retrieved %d domains from drop list", len(result.domains))
        return result.domains

    async def _purchase(self, candidate: CandidateRecord) -> PurchaseOutcome:
        """
        Per-candidate sub-workflow: pending → order → success | failed.

        Never raises; every fault is converted into a failed outcome.
        """
        domain = candidate.domain_name
        attempt = PurchaseAttempt(
            domain_name=domain,
            tld=candidate.tld,
            status=PurchaseStatus.PENDING,
            attempted_at=datetime.now(timezone.utc),
        )

        try:
            attempt_id = await self._store.insert_attempt(attempt)
        except Exception as exc:
            logger.error("Could not record pending attempt for domain=%s: %s", domain, exc)
            return PurchaseOutcome(
                domain_name=domain,
                success=False,
                error_message=f"Could not record purchase attempt: {exc}",
            )

        try:
            response = await self._orders.submit_order(self.build_order_request(candidate))
        except Exception as exc:
            logger.error("Error ordering domain=%s: %s", domain, exc, exc_info=True)
            response = OrderResponse(
                success=False,
                domain_name=domain,
                error_message=str(exc) or type(exc).__name__,
            )

        if response.success:
            status = PurchaseStatus.SUCCESS
            order_id = response.order_id
            error_message = None
            logger.info("Successfully ordered domain=%s (order_id=%s)", domain, order_id)
        else:
            status = PurchaseStatus.FAILED
            order_id = None
            error_message = response.error_message or "Order rejected without a reason"
            logger.warning("Failed to order domain=%s: %s", domain, error_message)

        try:
            await self._store.update_attempt(attempt_id, status, order_id, error_message)
        except Exception as exc:
            logger.error(
                "Could not record %s result for domain=%s (attempt=%s): %s",
                status.value,
                domain,
                attempt_id,
                exc,
            )
            return PurchaseOutcome(
                domain_name=domain,
                success=False,
                order_id=order_id,
                error_message=f"Could not record purchase result: {exc}",
            )

        return PurchaseOutcome(
            domain_name=domain,
            success=response.success,
            order_id=order_id,
            error_message=error_message,
        )
