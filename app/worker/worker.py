"""
Purchase job — one acquisition run, as triggered by the scheduler or API.

Wires the purchase orchestrator to the registrar client and MongoDB store,
guarantees that at most one run is active in this process, and logs a
summary of what was bought.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from app.core.config import SelectionConfig, settings
from app.core.exceptions import RunInProgressError
from app.core.logging import get_logger
from app.domain.models import PurchaseOutcome
from app.domain.purchase_orchestrator import PurchaseOrchestrator
from app.infrastructure.db.repository import MongoRecordStore
from app.infrastructure.registrar.client import RegistrarClient

logger = get_logger(__name__)

_run_lock = asyncio.Lock()

# Cancel signal and completion flag of the run in progress, if any
_active_cancel: Optional[asyncio.Event] = None
_active_done: Optional[asyncio.Event] = None


class RunSummary(BaseModel):
    """Aggregate result of one purchase run."""

    started_at: datetime
    finished_at: datetime
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    aborted: bool = False
    error: Optional[str] = None
    outcomes: list[PurchaseOutcome] = Field(default_factory=list)


def build_orchestrator() -> PurchaseOrchestrator:
    """Create an orchestrator backed by the live registrar and database."""
    registrar = RegistrarClient()
    return PurchaseOrchestrator(
        drop_list_gateway=registrar,
        order_gateway=registrar,
        store=MongoRecordStore(),
        config=SelectionConfig.from_settings(settings),
    )


def is_run_active() -> bool:
    return _run_lock.locked()


async def run_purchase_job(
    cancel_event: Optional[asyncio.Event] = None,
    orchestrator: Optional[PurchaseOrchestrator] = None,
) -> RunSummary:
    """
    Execute one purchase run.

    Args:
        cancel_event: Optional cooperative cancellation signal, checked
            between domains. Runs started without one still get an event,
            which ``stop_purchase_runs`` sets at shutdown.
        orchestrator: Override for the default wiring.

    Returns:
        RunSummary with every per-domain outcome. ``aborted`` is set when
        the run failed before any domain could be attempted.

    Raises:
        RunInProgressError: If another run is still active.
    """
    global _active_cancel, _active_done

    if _run_lock.locked():
        logger.warning("Purchase run requested while another run is active")
        raise RunInProgressError()

    async with _run_lock:
        _active_cancel = cancel_event if cancel_event is not None else asyncio.Event()
        _active_done = asyncio.Event()
        try:
            started_at = datetime.now(timezone.utc)
            logger.info("Domain purchase job started at %s", started_at.isoformat())

            runner = orchestrator or build_orchestrator()
            outcomes = await runner.execute(_active_cancel)

            succeeded = sum(1 for outcome in outcomes if outcome.success)
            summary = RunSummary(
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
                total=len(outcomes),
                succeeded=succeeded,
                failed=len(outcomes) - succeeded,
                aborted=runner.abort_reason is not None,
                error=runner.abort_reason,
                outcomes=outcomes,
            )
        finally:
            _active_done.set()
            _active_cancel = None
            _active_done = None

    if summary.aborted:
        logger.error("Domain purchase job aborted: %s", summary.error)
        return summary

    logger.info(
        "Domain purchase job completed. Total: %d, Success: %d, Failed: %d",
        summary.total,
        summary.succeeded,
        summary.failed,
    )
    for outcome in outcomes:
        if outcome.success:
            logger.info(
                "Purchased domain=%s (order_id=%s)", outcome.domain_name, outcome.order_id
            )
        else:
            logger.warning(
                "Failed to purchase domain=%s: %s",
                outcome.domain_name,
                outcome.error_message,
            )
    return summary


async def stop_purchase_runs() -> None:
    """
    Stop the active run, if any, and wait for it to finish.

    The run is cancelled between domains, so the domain being ordered
    when this is called is still recorded before it returns. Called from
    the application lifespan before the database connection is closed.
    """
    cancel, done = _active_cancel, _active_done
    if done is None:
        return

    logger.info("Waiting for the active purchase run to finish its current domain")
    cancel.set()
    await done.wait()
    logger.info("Active purchase run stopped")
