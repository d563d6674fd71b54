"""Control model - audited control as delivered by the ingestion pipeline."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from db import Base


class ControlRow(Base):
    """Control ORM model - the raw descriptor a sampling decision is made from."""

    __tablename__ = "controls"

    control_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    frequency_label: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    risk_rating: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        {"comment": "Controls registered for sampling"},
    )


# Pydantic schemas
class ControlDescriptorBase(BaseModel):
    """Fields supplied by ingestion."""

    name: str | None = None
    frequency_label: str = ""
    risk_rating: str | None = None


class ControlDescriptor(ControlDescriptorBase):
    """Immutable control descriptor used by the classifier."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    control_id: str = Field(min_length=1)
    created_at: datetime | None = None
