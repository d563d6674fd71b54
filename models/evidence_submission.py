"""Evidence submission model - evidence delivered against an evidence request."""

from datetime import date, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Date, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db import Base
from models.enums import SubmissionStatus


class EvidenceSubmissionRow(Base):
    """EvidenceSubmission ORM model."""

    __tablename__ = "evidence_submissions"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
        index=True,
    )
    evidence_request_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("evidence_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sample_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SubmissionStatus.UPLOADED.value,
    )  # uploaded|under_review|approved|rejected
    uploaded_by: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        {"comment": "Evidence submitted by the client for an evidence request"},
    )


# Pydantic schemas
class EvidenceSubmissionCreate(BaseModel):
    """Schema for submitting evidence.

    Note: status and upload timestamp are set server-side.
    """

    sample_date: date | None = None
    file_name: str | None = None
    description: str | None = None
    uploaded_by: str = "client"


class EvidenceSubmission(EvidenceSubmissionCreate):
    """Schema for a stored evidence submission."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    evidence_request_id: UUID
    status: SubmissionStatus = SubmissionStatus.UPLOADED
    uploaded_at: datetime
    review_notes: str | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
