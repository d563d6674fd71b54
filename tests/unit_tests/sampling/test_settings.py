"""Unit tests for sampling settings."""

from typing import get_args

import pytest
from pydantic import ValidationError

from config import Settings
from models.enums import PeriodType


def test_default_period_type_rejects_unknown_value():
    """Test: A misspelled period type fails when settings load, not per request."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, DEFAULT_PERIOD_TYPE="calendar_quarter")


def test_default_period_type_choices_match_enum():
    choices = get_args(Settings.model_fields["DEFAULT_PERIOD_TYPE"].annotation)

    assert set(choices) == {p.value for p in PeriodType}
    assert PeriodType(Settings(_env_file=None).DEFAULT_PERIOD_TYPE) == PeriodType.CALENDAR_QUARTERS
