"""Evidence request model - formal ask for documentation covering sample dates."""

from datetime import date, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import JSON, Date, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db import Base
from models.enums import EvidenceRequestStatus


class EvidenceRequestRow(Base):
    """EvidenceRequest ORM model.

    Each evidence request is associated with:
    - A control (the audited requirement)
    - The sampling configuration whose approved sample dates it covers
    """

    __tablename__ = "evidence_requests"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
        index=True,
    )
    control_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("controls.control_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sampling_config_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("sampling_configurations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=EvidenceRequestStatus.SENT.value,
    )  # sent|approved
    # ISO dates of the approved samples covered by this request
    sample_dates: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        {"comment": "Evidence requests for approved sample dates"},
    )


# Pydantic schemas
class EvidenceRequest(BaseModel):
    """Schema for an evidence request."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    control_id: str
    sampling_config_id: UUID
    status: EvidenceRequestStatus = EvidenceRequestStatus.SENT
    sample_dates: list[date] = Field(default_factory=list)
    title: str
    instructions: str | None = None
    priority: str = "medium"
    created_by: str
    created_at: datetime
    due_date: date
    reviewed_at: datetime | None = None

    @property
    def expected_evidence_count(self) -> int:
        """Number of evidence items expected; a request always expects at least one."""
        return len(self.sample_dates) or 1
