"""Sampling configuration model - periods, methodology and seed for one control."""

from datetime import date, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db import Base
from models.enums import ConfigurationStatus, Methodology, PeriodType


class SamplingConfigurationRow(Base):
    """SamplingConfiguration ORM model.

    Configurations are append-only: a superseded configuration keeps its row
    with ``is_active = False`` so the audit trail survives reconfiguration.
    """

    __tablename__ = "sampling_configurations"

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
    sample_count: Mapped[int] = mapped_column(Integer, nullable=False)
    methodology: Mapped[str] = mapped_column(String(20), nullable=False)
    period_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default=PeriodType.CALENDAR_QUARTERS.value
    )
    audit_start: Mapped[date] = mapped_column(Date, nullable=False)
    audit_end: Mapped[date] = mapped_column(Date, nullable=False)
    # List of serialized Period records
    periods: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    minimum_interval_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seed: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ConfigurationStatus.DRAFT.value,
    )  # draft|generated|approved|sent|completed
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        # At most one active configuration per control
        Index(
            "ux_sampling_configurations_control_active",
            "control_id",
            unique=True,
            postgresql_where=sa.text("is_active"),
            sqlite_where=sa.text("is_active"),
        ),
        {"comment": "Sampling configurations, retained append-only for audit trail"},
    )


# Pydantic schemas
class Period(BaseModel):
    """A named date range and the number of samples drawn from it."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    start_date: date
    end_date: date
    samples_required: int = Field(ge=0)

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class SamplingConfiguration(BaseModel):
    """Schema for a control's sampling configuration."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    control_id: str
    sample_count: int = Field(ge=0)
    methodology: Methodology
    period_type: PeriodType = PeriodType.CALENDAR_QUARTERS
    audit_start: date
    audit_end: date
    periods: list[Period] = Field(default_factory=list)
    minimum_interval_days: int = Field(default=0, ge=0)
    seed: int
    status: ConfigurationStatus = ConfigurationStatus.DRAFT
    is_active: bool = True
    created_by: str
    created_at: datetime
    approved_by: str | None = None
    approved_at: datetime | None = None
    notes: str | None = None
