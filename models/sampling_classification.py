"""Sampling classification - cached sampling decision for a control."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db import Base
from models.enums import Methodology, RiskLevel


class SamplingClassificationRow(Base):
    """SamplingClassification ORM model - one row per control, overwritten on reclassification."""

    __tablename__ = "sampling_classifications"

    control_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("controls.control_id", ondelete="CASCADE"),
        primary_key=True,
    )
    requires_sampling: Mapped[bool] = mapped_column(Boolean, nullable=False)
    sample_count: Mapped[int] = mapped_column(Integer, nullable=False)
    methodology: Mapped[str] = mapped_column(String(20), nullable=False)
    frequency_key: Mapped[str | None] = mapped_column(String(100), nullable=True)
    annualized_count: Mapped[int] = mapped_column(Integer, nullable=False)
    audit_months: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    risk_level: Mapped[str | None] = mapped_column(String(1), nullable=True)
    recognized_frequency: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    classified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        {"comment": "Derived sampling requirement per control"},
    )


class SamplingClassification(BaseModel):
    """Schema for a sampling decision.

    Invariant: ``sample_count == 0`` exactly when ``requires_sampling`` is False.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    control_id: str | None = None
    requires_sampling: bool
    sample_count: int = Field(ge=0)
    methodology: Methodology
    frequency_key: str | None = None
    annualized_count: int = Field(ge=0)
    audit_months: int = Field(default=12, ge=1)
    risk_level: RiskLevel | None = None
    recognized_frequency: bool = True
    classified_at: datetime | None = None

    @model_validator(mode="after")
    def _check_count_matches_requirement(self) -> "SamplingClassification":
        if (self.sample_count == 0) == self.requires_sampling:
            raise ValueError(
                "sample_count must be 0 exactly when requires_sampling is False"
            )
        return self
