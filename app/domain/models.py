"""
Domain models — pure data structures for the acquisition service.

These models have no framework dependencies beyond pydantic and represent
the core business entities. They are used across all layers.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.utils.domain_names import derive_tld, normalize_domain


class SourceTag(str, Enum):
    """Where a seen-ledger entry was first observed."""

    API = "api"
    FILE = "file"


class PurchaseStatus(str, Enum):
    """Lifecycle of a purchase attempt: pending → success | failed."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class CandidateRecord(BaseModel):
    """
    A drop-list entry being evaluated for purchase.

    Immutable once produced. The domain name is normalised to lowercase
    and must not be blank; the TLD is derived from the name when the
    source does not provide one.
    """

    model_config = ConfigDict(frozen=True)

    domain_name: str = Field(..., description="Normalised domain name")
    drop_date: date = Field(..., description="Date the domain becomes available")
    tld: Optional[str] = Field(None, description="TLD, e.g. '.au' or '.com.au'")

    @field_validator("domain_name")
    @classmethod
    def _normalise_name(cls, value: str) -> str:
        name = normalize_domain(value)
        if not name:
            raise ValueError("domain_name must not be blank")
        return name

    @model_validator(mode="before")
    @classmethod
    def _fill_tld(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("tld") and data.get("domain_name"):
            data = {**data, "tld": derive_tld(normalize_domain(data["domain_name"]))}
        return data


class SeenDomain(BaseModel):
    """
    Permanent seen-ledger entry. One per domain name, never mutated.
    """

    domain_name: str
    drop_date: date
    tld: Optional[str] = None
    source: SourceTag
    first_seen_at: datetime

    @classmethod
    def from_candidate(
        cls, candidate: CandidateRecord, source: SourceTag, seen_at: datetime
    ) -> "SeenDomain":
        return cls(
            domain_name=candidate.domain_name,
            drop_date=candidate.drop_date,
            tld=candidate.tld,
            source=source,
            first_seen_at=seen_at,
        )

    @classmethod
    def from_mongo(cls, doc: dict) -> "SeenDomain":
        if doc is None:
            raise ValueError("Cannot create SeenDomain from None")

        drop_date = doc.get("drop_date")
        if isinstance(drop_date, datetime):
            drop_date = drop_date.date()

        return cls(
            domain_name=doc.get("domain_name", ""),
            drop_date=drop_date,
            tld=doc.get("tld"),
            source=doc.get("source", SourceTag.API.value),
            first_seen_at=doc.get("first_seen_at"),
        )


class PurchaseAttempt(BaseModel):
    """
    One order submission for one domain, as stored in the database.

    Created pending immediately before the registrar call and moved to a
    terminal status exactly once afterwards.
    """

    id: Optional[str] = Field(None, description="MongoDB document ID")
    domain_name: str
    tld: Optional[str] = None
    order_id: Optional[str] = None
    status: PurchaseStatus = PurchaseStatus.PENDING
    error_message: Optional[str] = None
    attempted_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not PurchaseStatus.PENDING

    @classmethod
    def from_mongo(cls, doc: dict) -> "PurchaseAttempt":
        """
        Construct a PurchaseAttempt from a raw MongoDB document.

        Handles _id → id conversion and missing fields gracefully.
        """
        if doc is None:
            raise ValueError("Cannot create PurchaseAttempt from None")

        return cls(
            id=str(doc.get("_id", "")),
            domain_name=doc.get("domain_name", ""),
            tld=doc.get("tld"),
            order_id=doc.get("order_id"),
            status=doc.get("status", PurchaseStatus.PENDING.value),
            error_message=doc.get("error_message"),
            attempted_at=doc.get("attempted_at"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )


class OrderRequest(BaseModel):
    """Registration order for a single domain."""

    domain_name: str
    period: int = 1
    registrant_contact_id: Optional[str] = None
    admin_contact_id: Optional[str] = None
    tech_contact_id: Optional[str] = None
    billing_contact_id: Optional[str] = None
    nameservers: Optional[list[str]] = None

    def to_payload(self) -> dict[str, Any]:
        """Registrar wire format (PascalCase keys)."""
        return {
            "DomainName": self.domain_name,
            "Period": self.period,
            "RegistrantContactId": self.registrant_contact_id,
            "AdminContactId": self.admin_contact_id,
            "TechContactId": self.tech_contact_id,
            "BillingContactId": self.billing_contact_id,
            "Nameservers": self.nameservers,
        }


class OrderResponse(BaseModel):
    """Result of an order submission. ``success=False`` is a business failure."""

    success: bool
    order_id: Optional[str] = None
    domain_name: Optional[str] = None
    status: Optional[str] = None
    error_message: Optional[str] = None


class DropListResult(BaseModel):
    """Result of a drop-list fetch."""

    success: bool
    domains: list[CandidateRecord] = Field(default_factory=list)
    error_message: Optional[str] = None


class PurchaseOutcome(BaseModel):
    """Per-candidate result emitted by a purchase run."""

    domain_name: str
    success: bool
    order_id: Optional[str] = None
    error_message: Optional[str] = None
