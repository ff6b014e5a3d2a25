"""Read projections handed to API and UI layers."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class RiskScore(BaseModel):
    """A 1-25 matrix score and its severity band."""

    value: int
    severity: Severity


class OwnerView(BaseModel):
    user_id: str
    name: str
    department: str


class TreatmentProjection(BaseModel):
    id: str
    risk_id: str
    name: str
    description: str
    type: str
    status: str
    due_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    completed_date_advisory: bool = False
    assignee: Optional[str] = None
    cost: Optional[float] = None
    related_control_ids: list[str] = []
    progress: int = 0
    overdue: bool = False
    is_active: bool = True


class RiskProjection(BaseModel):
    id: str
    name: str
    description: str
    category: str
    status: str
    inherent_impact: str
    inherent_likelihood: str
    residual_impact: Optional[str] = None
    residual_likelihood: Optional[str] = None
    inherent_score: RiskScore
    residual_score: Optional[RiskScore] = None
    risk_reduction_percentage: Optional[int] = None
    owner: Optional[OwnerView] = None
    related_control_ids: list[str] = []
    review_period_months: int
    last_review_date: Optional[datetime] = None
    next_review_date: Optional[datetime] = None
    review_due: bool = False
    review_upcoming: bool = False
    tags: list[str] = []
    treatments: list[TreatmentProjection] = []
    is_active: bool = True
    revision: int = 1


class ControlProjection(BaseModel):
    id: str
    framework_id: str
    code: str
    title: str
    description: str
    guidance: Optional[str] = None
    implementation_status: str
    implementation_details: Optional[str] = None
    owner_id: Optional[str] = None
    categories: list[str] = []
    parent_control_id: Optional[str] = None
    evidence_ids: list[str] = []
    is_active: bool = True
    revision: int = 1


class ReviewView(BaseModel):
    reviewer_id: str
    reviewed_at: datetime
    notes: Optional[str] = None


class FileView(BaseModel):
    url: str
    size: int
    mime_type: str
    filename: Optional[str] = None
    sha256: Optional[str] = None


class EvidenceProjection(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    control_ids: list[str]
    evidence_type: str
    source: str
    status: str
    collection_date: datetime
    expiration_date: Optional[datetime] = None
    expired: bool = False
    file: Optional[FileView] = None
    review: Optional[ReviewView] = None
    tags: list[str] = []
    is_active: bool = True
    revision: int = 1


class FrameworkProjection(BaseModel):
    id: str
    name: str
    version: str
    description: str
    organization: Optional[str] = None
    category: Optional[str] = None
    website: Optional[str] = None
    total_controls: int = 0
    implemented_controls: int = 0
    partially_implemented_controls: int = 0
    not_implemented_controls: int = 0
    implementation_rate: float = 0.0
    is_active: bool = True
    revision: int = 1


class CategoryCoverage(BaseModel):
    """Implementation coverage for one control category within a framework."""

    name: str
    total: int
    implemented: int
    partial: int
    gaps: int
    coverage: float


class FrameworkCoverage(BaseModel):
    framework_id: str
    framework_name: str
    timestamp: str
    total_controls: int = 0
    implemented_controls: int = 0
    gapped_controls: int = 0
    implementation_rate: float = 0.0
    by_category: dict[str, CategoryCoverage] = {}
    gaps: list[ControlProjection] = []
