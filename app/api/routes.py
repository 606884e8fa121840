"""
API routes for the domain agent.

Operational endpoints for triggering a purchase run, importing drop-list
CSVs, and auditing the seen ledger and purchase history. Uses FastAPI
dependency injection for clean separation from business logic.
"""

import io

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.api.dependencies import (
    get_csv_ingestor,
    get_record_store,
    get_registrar_client,
)
from app.api.schemas import (
    AvailabilityResponse,
    ErrorResponse,
    IngestionResponse,
    OutcomeResponse,
    PurchaseAttemptResponse,
    RunResponse,
    SeenDomainResponse,
)
from app.core.exceptions import IngestionError, RunInProgressError
from app.core.logging import get_logger
from app.domain.models import PurchaseAttempt, PurchaseStatus
from app.infrastructure.db.repository import MongoRecordStore
from app.infrastructure.ingestion.csv_ingestion import CsvDropListIngestor
from app.infrastructure.registrar.client import RegistrarClient
from app.utils.domain_names import normalize_domain
from app.worker.worker import run_purchase_job

logger = get_logger(__name__)

router = APIRouter()


def _attempt_response(attempt: PurchaseAttempt) -> PurchaseAttemptResponse:
    return PurchaseAttemptResponse(
        id=attempt.id or "",
        domain_name=attempt.domain_name,
        tld=attempt.tld,
        status=attempt.status.value,
        order_id=attempt.order_id,
        error_message=attempt.error_message,
        attempted_at=attempt.attempted_at,
        updated_at=attempt.updated_at,
    )


@router.post(
    "/runs",
    response_model=RunResponse,
    tags=["Runs"],
    summary="Run the purchase workflow now",
    responses={
        409: {"model": ErrorResponse, "description": "A run is already active"},
    },
)
async def trigger_run() -> RunResponse:
    """
    POST /runs — Fetch the drop list and buy the selected domains now.

    Runs synchronously and returns the per-domain outcomes. Uses the same
    single-run guard as the daily scheduler.
    """
    try:
        summary = await run_purchase_job()
    except RunInProgressError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.message,
        ) from exc

    return RunResponse(
        started_at=summary.started_at,
        finished_at=summary.finished_at,
        total=summary.total,
        succeeded=summary.succeeded,
        failed=summary.failed,
        aborted=summary.aborted,
        error=summary.error,
        outcomes=[OutcomeResponse(**outcome.model_dump()) for outcome in summary.outcomes],
    )


@router.post(
    "/drop-list/import",
    response_model=IngestionResponse,
    tags=["Drop list"],
    summary="Import a drop-list CSV",
    responses={400: {"model": ErrorResponse, "description": "Unreadable CSV"}},
)
async def import_drop_list(
    file: UploadFile = File(..., description="CSV with a domain name column"),
    ingestor: CsvDropListIngestor = Depends(get_csv_ingestor),
) -> IngestionResponse:
    """Admit the domains of an uploaded CSV into the seen ledger."""
    try:
        summary = await ingestor.ingest_stream(io.BytesIO(await file.read()))
    except IngestionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc
    finally:
        await file.close()

    return IngestionResponse(
        rows_read=summary.rows_read,
        rows_skipped=summary.rows_skipped,
        admitted=summary.admitted,
    )


@router.get(
    "/drop-list/{domain_name}",
    response_model=SeenDomainResponse,
    tags=["Drop list"],
    summary="Check seen-ledger membership",
)
async def get_seen_domain(
    domain_name: str,
    store: MongoRecordStore = Depends(get_record_store),
) -> SeenDomainResponse:
    name = normalize_domain(domain_name)
    seen = await store.find_seen_domain(name)
    if seen is None:
        return SeenDomainResponse(domain_name=name, seen=False)
    return SeenDomainResponse(
        domain_name=seen.domain_name,
        seen=True,
        drop_date=seen.drop_date,
        source=seen.source.value,
        first_seen_at=seen.first_seen_at,
    )


@router.get(
    "/purchases",
    response_model=list[PurchaseAttemptResponse],
    tags=["Purchases"],
    summary="List purchase attempts by status",
)
async def list_purchases(
    status_filter: PurchaseStatus = Query(
        PurchaseStatus.SUCCESS, alias="status", description="pending | success | failed"
    ),
    limit: int = Query(100, ge=1, le=1000),
    store: MongoRecordStore = Depends(get_record_store),
) -> list[PurchaseAttemptResponse]:
    attempts = await store.list_attempts_by_status(status_filter, limit=limit)
    return [_attempt_response(attempt) for attempt in attempts]


@router.get(
    "/purchases/{domain_name}",
    response_model=PurchaseAttemptResponse,
    tags=["Purchases"],
    summary="Latest purchase attempt for a domain",
    responses={404: {"model": ErrorResponse, "description": "Never attempted"}},
)
async def get_purchase(
    domain_name: str,
    store: MongoRecordStore = Depends(get_record_store),
) -> PurchaseAttemptResponse:
    name = normalize_domain(domain_name)
    attempt = await store.find_latest_attempt(name)
    if attempt is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No purchase attempt recorded for '{name}'",
        )
    return _attempt_response(attempt)


@router.get(
    "/availability/{domain_name}",
    response_model=AvailabilityResponse,
    tags=["Registrar"],
    summary="Ask the registrar whether a domain is available",
)
async def check_availability(
    domain_name: str,
    registrar: RegistrarClient = Depends(get_registrar_client),
) -> AvailabilityResponse:
    name = normalize_domain(domain_name)
    available = await registrar.check_availability(name)
    return AvailabilityResponse(domain_name=name, available=available)
