"""
Renewal API response models.
Used by the renewals router for output formatting.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.features.renewals.domain.models import SyncResult, SyncStatus


class SyncStatusResponse(BaseModel):
    """Response for the cache state after the last sync."""

    last_sync: datetime | None = Field(None, description="When the last successful sync finished")
    record_count: int = Field(..., description="Number of cached renewals")
    has_synced: bool = Field(..., description="Whether any sync has succeeded")

    @classmethod
    def from_status(cls, status: SyncStatus) -> "SyncStatusResponse":
        return cls(
            last_sync=status.last_sync,
            record_count=status.record_count,
            has_synced=status.has_synced,
        )


class SyncResponse(BaseModel):
    """Response for a sync run."""

    success: bool = Field(..., description="Whether the sync completed")
    renewal_count: int = Field(default=0, description="Renewals built by this sync")
    emails_analyzed: int = Field(default=0, description="Emails fetched from Gmail")
    meetings_found: int = Field(default=0, description="Events fetched from Google Calendar")
    last_sync: datetime | None = Field(None, description="Completion time of this sync")
    duration_ms: int | None = Field(None, description="Sync duration in milliseconds")
    error: str | None = Field(None, description="Error message when the sync failed")
    source_errors: dict[str, str] = Field(
        default_factory=dict, description="Sources that fell back to empty data, with the reason"
    )

    @classmethod
    def from_result(cls, result: SyncResult) -> "SyncResponse":
        return cls(
            success=result.success,
            renewal_count=result.renewal_count,
            emails_analyzed=result.emails_analyzed,
            meetings_found=result.meetings_found,
            last_sync=result.last_sync,
            duration_ms=result.duration_ms,
            error=result.error,
            source_errors=dict(result.source_errors),
        )


class RenewalResponse(BaseModel):
    """A renewal with its priority score computed at read time."""

    id: str = Field(..., description="Renewal ID (R-<deal id>)")
    company_name: str = Field(..., description="Company display name")
    deal_name: str = Field(..., description="CRM deal name")
    client_name: str = Field(..., description="Client display name")
    policy_number: str = Field(..., description="Policy number (POL-<deal id>)")
    product_line: str = Field(..., description="Insurance product line")
    carrier: str = Field(..., description="Carrier group")
    specialist: str = Field(..., description="Placement specialist")
    premium: float = Field(..., description="Total premium")
    coverage_premium: float = Field(..., description="Coverage premium amount")
    commission_amount: float = Field(..., description="Commission amount")
    policy_limit: float = Field(..., description="Policy limit")
    commission_percent: float = Field(..., description="Commission percent")
    expiry_date: str | None = Field(None, description="Policy expiry date (ISO)")
    status: str = Field(..., description="Renewal stage label")
    source_system: str = Field(..., description="System the deal came from")
    crm_record_id: str | None = Field(None, description="CRM deal ID")
    primary_contact: dict[str, Any] = Field(..., description="Primary contact snapshot")
    communications: dict[str, Any] = Field(..., description="Matched communication summary")
    sources: dict[str, Any] = Field(..., description="Source record identifiers")
    recent_touchpoints: int = Field(..., description="Total matched touchpoints")
    primary_contact_name: str = Field(..., description="Primary contact display name")
    last_email_id: str | None = Field(None, description="Most relevant matched email")
    priority_score: float = Field(..., description="Priority score on a 0-100 scale")
    score_breakdown: dict[str, float] = Field(
        ..., description="Weighted contribution and normalized value per factor"
    )


class RenewalsListResponse(BaseModel):
    """Response for the ranked renewal list."""

    renewals: list[RenewalResponse] = Field(..., description="Renewals, highest priority first")
    total: int = Field(..., description="Number of renewals")
    last_sync: datetime | None = Field(None, description="When the data was last synced")
