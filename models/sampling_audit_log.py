"""Sampling audit log - append-only trail of workflow actions per control."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db import Base
from models.enums import AuditAction


class SamplingAuditLogRow(Base):
    """SamplingAuditLog ORM model."""

    __tablename__ = "sampling_audit_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4, index=True)
    control_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("controls.control_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sampling_config_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    performed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    performed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Per-control ordinal; breaks ties between entries written with the same timestamp
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        {"comment": "Audit trail of sampling workflow actions"},
    )


class SamplingAuditLogEntry(BaseModel):
    """Schema for an audit trail entry"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    control_id: str
    sampling_config_id: UUID | None = None
    action: AuditAction
    performed_by: str
    performed_at: datetime
    sequence: int = 0
    details: str = ""
