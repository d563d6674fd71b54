"""
Generated sample model

One row per selected sample date. Samples belong to exactly one sampling
configuration and are replaced as a set whenever samples are regenerated.
"""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db import Base
from models.enums import SampleStatus


class GeneratedSampleRow(Base):
    """GeneratedSample ORM model."""

    __tablename__ = "generated_samples"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, index=True)
    sampling_config_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("sampling_configurations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_id: Mapped[str] = mapped_column(String(50), nullable=False)
    period_name: Mapped[str] = mapped_column(String(100), nullable=False)
    sample_date: Mapped[date] = mapped_column(Date, nullable=False)
    sample_index: Mapped[int] = mapped_column(Integer, nullable=False)
    is_weekend: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_holiday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SampleStatus.PENDING.value
    )

    __table_args__ = (
        UniqueConstraint(
            "sampling_config_id",
            "sample_date",
            name="uq_generated_samples_config_date",
        ),
        {"comment": "Sample dates selected for a sampling configuration"},
    )


# ============================================================
# Pydantic Schemas
# ============================================================


class GeneratedSample(BaseModel):
    """Schema for a generated sample date"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sampling_config_id: UUID
    period_id: str
    period_name: str
    sample_date: date
    sample_index: int = Field(ge=1)
    is_weekend: bool = False
    is_holiday: bool = False
    status: SampleStatus = SampleStatus.PENDING
