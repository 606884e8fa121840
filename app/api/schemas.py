"""
API request/response schemas.

These Pydantic models define the contract between the API layer
and external clients. They are separate from domain models to
allow the API surface to evolve independently.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class OutcomeResponse(BaseModel):
    """Result for one domain in a purchase run."""

    domain_name: str = Field(..., description="Domain that was attempted")
    success: bool = Field(..., description="Whether the order was accepted")
    order_id: Optional[str] = Field(None, description="Registrar order ID")
    error_message: Optional[str] = Field(None, description="Failure reason")


class RunResponse(BaseModel):
    """Summary returned after a manually triggered run."""

    started_at: datetime
    finished_at: datetime
    total: int = Field(..., description="Domains attempted")
    succeeded: int
    failed: int
    aborted: bool = Field(False, description="Run failed before any domain was attempted")
    error: Optional[str] = Field(None, description="Why the run was aborted")
    outcomes: list[OutcomeResponse]


class PurchaseAttemptResponse(BaseModel):
    """A recorded purchase attempt."""

    id: str = Field(..., description="Unique attempt identifier")
    domain_name: str
    tld: Optional[str] = None
    status: str = Field(..., description="pending | success | failed")
    order_id: Optional[str] = None
    error_message: Optional[str] = None
    attempted_at: datetime
    updated_at: Optional[datetime] = None


class SeenDomainResponse(BaseModel):
    """Seen-ledger membership for a domain."""

    domain_name: str
    seen: bool = Field(..., description="Whether the domain is in the ledger")
    drop_date: Optional[date] = None
    source: Optional[str] = Field(None, description="api | file")
    first_seen_at: Optional[datetime] = None


class IngestionResponse(BaseModel):
    """Summary of a CSV drop-list import."""

    rows_read: int
    rows_skipped: int
    admitted: int = Field(..., description="Domains new to the seen ledger")


class AvailabilityResponse(BaseModel):
    """Registrar availability for a domain."""

    domain_name: str
    available: bool


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(..., description="Error description")
