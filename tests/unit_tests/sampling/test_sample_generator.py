"""Unit tests for the sample generator."""

from datetime import date, datetime, timedelta, UTC

import pytest

from models.enums import Methodology, WarningCode
from models.sampling_configuration import Period, SamplingConfiguration
from services.errors import InvalidSamplingInput
from services.frequency_classifier import classify
from services.holidays import HolidayCalendar, US_FEDERAL_RULES
from services.period_partitioner import partition
from services.sample_generator import (
    generate,
    is_weekend,
    risk_date_pool,
    run_generation,
    validate_configuration,
)

NO_HOLIDAYS = HolidayCalendar()


def make_config(
    methodology: Methodology,
    periods: list[Period],
    *,
    seed: int = 42,
    minimum_interval_days: int = 0,
) -> SamplingConfiguration:
    return SamplingConfiguration(
        control_id="CTRL-001",
        sample_count=sum(p.samples_required for p in periods),
        methodology=methodology,
        audit_start=periods[0].start_date,
        audit_end=periods[-1].end_date,
        periods=periods,
        minimum_interval_days=minimum_interval_days,
        seed=seed,
        created_by="auditor",
        created_at=datetime(2025, 1, 1, tzinfo=UTC),
    )


def year_config(frequency: str, risk: str, **kwargs) -> SamplingConfiguration:
    classification = classify(frequency, risk)
    periods = partition(classification, date(2025, 1, 1), date(2025, 12, 31))
    return make_config(classification.methodology, periods, **kwargs)


@pytest.mark.parametrize(
    "frequency,risk",
    [("Daily", "L"), ("Monthly", "M"), ("Quarterly", "H")],
)
def test_same_seed_same_dates(frequency, risk):
    """Test: Generation is reproducible for a configuration and seed."""
    config = year_config(frequency, risk, seed=1234, minimum_interval_days=3)

    first = run_generation(config, holidays=NO_HOLIDAYS)
    second = run_generation(config, holidays=NO_HOLIDAYS)

    assert first.sample_dates == second.sample_dates
    assert [s.id for s in first.samples] == [s.id for s in second.samples]


def test_dates_are_unique_sorted_and_indexed():
    config = year_config("Daily", "H", seed=7, minimum_interval_days=2)

    samples = run_generation(config, holidays=NO_HOLIDAYS).samples
    dates = [s.sample_date for s in samples]

    assert len(dates) == len(set(dates))
    assert dates == sorted(dates)
    assert [s.sample_index for s in samples] == list(range(1, len(samples) + 1))
    assert all(s.sampling_config_id == config.id for s in samples)


def test_samples_stay_inside_their_period():
    config = year_config("Weekly", "L", seed=99)

    periods = {p.id: p for p in config.periods}
    for sample in generate(config):
        period = periods[sample.period_id]
        assert period.start_date <= sample.sample_date <= period.end_date
        assert sample.period_name == period.name


def test_random_skips_weekends():
    config = year_config("Daily", "L", seed=3)

    samples = run_generation(config, holidays=NO_HOLIDAYS).samples

    assert samples
    assert not any(s.is_weekend for s in samples)


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_random_respects_minimum_interval(seed):
    """Test: Same-period samples are at least the minimum interval apart."""
    config = year_config("Daily", "L", seed=seed, minimum_interval_days=7)

    result = run_generation(config, holidays=NO_HOLIDAYS)

    for period in config.periods:
        dates = sorted(s.sample_date for s in result.samples if s.period_id == period.id)
        for earlier, later in zip(dates, dates[1:]):
            assert (later - earlier).days >= 7


def test_shortfall_is_reported_as_warning():
    """Test: An unsatisfiable interval yields fewer samples and a warning."""
    # Mon 6 Jan - Wed 8 Jan 2025; a 7-day interval leaves room for one sample
    period = Period(
        id="2025-W02",
        name="Week 2 2025",
        start_date=date(2025, 1, 6),
        end_date=date(2025, 1, 8),
        samples_required=3,
    )
    config = make_config(Methodology.RANDOM, [period], minimum_interval_days=7)

    result = run_generation(config, holidays=NO_HOLIDAYS)

    assert len(result.samples) == 1
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert warning.code == WarningCode.INSUFFICIENT_SAMPLES_GENERATED
    assert warning.period_id == "2025-W02"
    assert warning.requested == 3
    assert warning.generated == 1


def test_systematic_uses_fixed_interval():
    period = Period(
        id="2025-Q1",
        name="Q1 2025",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 3, 31),
        samples_required=3,
    )
    config = make_config(Methodology.SYSTEMATIC, [period], seed=11)

    dates = run_generation(config, holidays=NO_HOLIDAYS).sample_dates

    assert len(dates) == 3
    assert (dates[1] - dates[0]).days == 30
    assert (dates[2] - dates[1]).days == 30
    assert dates[0] < date(2025, 1, 31)


def test_systematic_caps_at_period_length():
    period = Period(
        id="short",
        name="Short",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 2),
        samples_required=5,
    )
    config = make_config(Methodology.SYSTEMATIC, [period])

    result = run_generation(config, holidays=NO_HOLIDAYS)

    assert result.sample_dates == [date(2025, 3, 1), date(2025, 3, 2)]
    assert result.warnings[0].generated == 2


def test_judgmental_single_samples_come_from_risk_pool():
    """Test: One-sample judgmental periods draw a month-end or boundary date."""
    config = year_config("Quarterly", "H", seed=21)

    samples = run_generation(config, holidays=NO_HOLIDAYS).samples

    assert len(samples) == 5
    for period in config.periods:
        in_period = [s.sample_date for s in samples if s.period_id == period.id]
        assert len(in_period) == period.samples_required
        if period.samples_required == 1:
            assert in_period[0] in risk_date_pool(period)


@pytest.mark.parametrize("seed", range(50))
def test_judgmental_respects_minimum_interval(seed):
    """Test: Same-period judgmental dates are spaced, or a shortfall is reported."""
    period = Period(
        id="2025-Q1",
        name="Q1 2025",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 3, 31),
        samples_required=4,
    )
    config = make_config(Methodology.JUDGMENTAL, [period], seed=seed, minimum_interval_days=7)

    result = run_generation(config, holidays=NO_HOLIDAYS)

    dates = result.sample_dates
    gaps = [(later - earlier).days for earlier, later in zip(dates, dates[1:])]
    if len(dates) < period.samples_required:
        assert [w.code for w in result.warnings] == [WarningCode.INSUFFICIENT_SAMPLES_GENERATED]
    assert all(gap >= 7 for gap in gaps)


def test_risk_date_pool_contents():
    period = Period(
        id="2025-Q1",
        name="Q1 2025",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 3, 31),
        samples_required=1,
    )

    pool = risk_date_pool(period)

    assert date(2025, 1, 31) in pool
    assert date(2025, 2, 28) in pool
    assert date(2025, 1, 7) in pool
    assert date(2025, 1, 8) not in pool
    assert date(2025, 3, 25) in pool
    assert len(pool) == len(set(pool)) == 16


def test_holiday_flags_follow_calendar():
    period = Period(
        id="jul",
        name="Jul 2025",
        start_date=date(2025, 7, 1),
        end_date=date(2025, 7, 31),
        samples_required=4,
    )
    config = make_config(Methodology.SYSTEMATIC, [period])
    every_day = HolidayCalendar(
        extra_dates=[date(2025, 7, 1) + timedelta(days=i) for i in range(31)]
    )

    flagged = run_generation(config, holidays=every_day).samples
    unflagged = run_generation(config, holidays=NO_HOLIDAYS).samples

    assert all(s.is_holiday for s in flagged)
    assert not any(s.is_holiday for s in unflagged)
    assert [s.is_weekend for s in flagged] == [is_weekend(s.sample_date) for s in flagged]


def test_us_federal_calendar():
    calendar = HolidayCalendar(US_FEDERAL_RULES)

    assert calendar.is_holiday(date(2025, 1, 1))
    assert calendar.is_holiday(date(2025, 1, 20))
    assert calendar.is_holiday(date(2025, 5, 26))
    assert calendar.is_holiday(date(2025, 7, 4))
    assert calendar.is_holiday(date(2025, 11, 27))
    assert not calendar.is_holiday(date(2025, 11, 26))


def test_zero_sample_periods_are_skipped():
    periods = [
        Period(id="a", name="A", start_date=date(2025, 1, 1), end_date=date(2025, 1, 31), samples_required=0),
        Period(id="b", name="B", start_date=date(2025, 2, 1), end_date=date(2025, 2, 28), samples_required=2),
    ]
    config = make_config(Methodology.RANDOM, periods)

    samples = generate(config)

    assert len(samples) == 2
    assert {s.period_id for s in samples} == {"b"}


def test_validate_configuration_reports_problems():
    period = Period(
        id="2025-Q1",
        name="Q1 2025",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 3, 31),
        samples_required=2,
    )
    config = make_config(Methodology.RANDOM, [period]).model_copy(update={"sample_count": 5})

    errors = validate_configuration(config)

    assert any("sum to 2" in e for e in errors)
    with pytest.raises(InvalidSamplingInput):
        run_generation(config, holidays=NO_HOLIDAYS)


def test_validate_configuration_rejects_overlapping_periods():
    periods = [
        Period(id="a", name="A", start_date=date(2025, 1, 1), end_date=date(2025, 2, 15), samples_required=1),
        Period(id="b", name="B", start_date=date(2025, 2, 1), end_date=date(2025, 3, 31), samples_required=1),
    ]
    config = make_config(Methodology.RANDOM, periods)

    assert any("overlaps" in e for e in validate_configuration(config))
