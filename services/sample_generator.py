"""Sample generator: turns a sampling configuration into concrete sample dates.

Generation is deterministic for a given configuration and seed. Each call
builds its own ``random.Random`` so concurrent callers never share RNG state.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import date, timedelta
from uuid import UUID, uuid5

from models.enums import Methodology, SampleStatus, WarningCode
from models.generated_sample import GeneratedSample
from models.sampling_configuration import Period, SamplingConfiguration
from services.errors import EngineWarning, InvalidSamplingInput
from services.holidays import HolidayCalendar, default_calendar
from services.period_partitioner import month_ends

logger = logging.getLogger(__name__)

ATTEMPTS_PER_SAMPLE = 10
JUDGMENTAL_POOL_SHARE = 0.6
BOUNDARY_WEEK_DAYS = 7


@dataclass
class GenerationResult:
    """Samples produced for a configuration plus any shortfall warnings."""

    samples: list[GeneratedSample]
    warnings: list[EngineWarning] = field(default_factory=list)

    @property
    def sample_dates(self) -> list[date]:
        return [s.sample_date for s in self.samples]


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def validate_configuration(config: SamplingConfiguration) -> list[str]:
    """
    Check a configuration before generating from it.

    Returns:
        List of human-readable problems; empty when the configuration is usable
    """
    errors: list[str] = []
    if config.audit_start > config.audit_end:
        errors.append("Audit start date must not be after audit end date")
    if config.sample_count < 0:
        errors.append("Sample count must be non-negative")
    if config.minimum_interval_days < 0:
        errors.append("Minimum interval must be non-negative")

    total = 0
    previous: Period | None = None
    for period in config.periods:
        total += period.samples_required
        if period.samples_required < 0:
            errors.append(f"Period {period.id} has a negative sample count")
        if period.start_date > period.end_date:
            errors.append(f"Period {period.id} starts after it ends")
        if period.start_date < config.audit_start or period.end_date > config.audit_end:
            errors.append(f"Period {period.id} lies outside the audit window")
        if previous is not None and period.start_date <= previous.end_date:
            errors.append(f"Period {period.id} overlaps or precedes period {previous.id}")
        previous = period

    if config.periods and total != config.sample_count:
        errors.append(
            f"Period sample counts sum to {total}, expected {config.sample_count}"
        )
    return errors


def _too_close(candidate: date, chosen: list[date], min_interval: int) -> bool:
    if min_interval <= 0:
        return False
    return any(abs((candidate - day).days) < min_interval for day in chosen)


def _shortfall(period: Period, requested: int, generated: int, methodology: Methodology) -> EngineWarning:
    logger.warning(
        "Generated %d of %d %s samples for period %s",
        generated,
        requested,
        methodology.value,
        period.id,
    )
    return EngineWarning(
        code=WarningCode.INSUFFICIENT_SAMPLES_GENERATED,
        message=(
            f"Generated {generated} of {requested} samples for {period.name}; "
            "consider relaxing the minimum interval"
        ),
        period_id=period.id,
        requested=requested,
        generated=generated,
    )


def _random_dates(
    period: Period,
    rng: random.Random,
    min_interval: int,
    taken: set[date],
) -> list[date]:
    chosen: list[date] = []
    attempts = 0
    budget = period.samples_required * ATTEMPTS_PER_SAMPLE
    while len(chosen) < period.samples_required and attempts < budget:
        attempts += 1
        candidate = period.start_date + timedelta(days=rng.randrange(period.days))
        if candidate in taken or is_weekend(candidate):
            continue
        if _too_close(candidate, chosen, min_interval):
            continue
        chosen.append(candidate)
        taken.add(candidate)
    return chosen


def _systematic_dates(period: Period, rng: random.Random) -> list[date]:
    count = min(period.samples_required, period.days)
    interval = period.days // count
    start = rng.randrange(interval)
    return [period.start_date + timedelta(days=start + i * interval) for i in range(count)]


def risk_date_pool(period: Period) -> list[date]:
    """Month-ends plus the first and last week of the period, sorted and unique."""
    pool = set(month_ends(period.start_date, period.end_date))
    edge = min(BOUNDARY_WEEK_DAYS, period.days)
    pool.update(period.start_date + timedelta(days=i) for i in range(edge))
    pool.update(period.end_date - timedelta(days=i) for i in range(edge))
    return sorted(pool)


def _judgmental_dates(
    period: Period,
    rng: random.Random,
    min_interval: int,
    taken: set[date],
) -> list[date]:
    target = period.samples_required
    pool = risk_date_pool(period)

    chosen: list[date] = []
    for _ in range(math.floor(target * JUDGMENTAL_POOL_SHARE + 0.5)):
        candidate = rng.choice(pool)
        if candidate in taken or _too_close(candidate, chosen, min_interval):
            continue
        chosen.append(candidate)
        taken.add(candidate)

    attempts = 0
    budget = target * ATTEMPTS_PER_SAMPLE
    while len(chosen) < target and attempts < budget:
        attempts += 1
        candidate = period.start_date + timedelta(days=rng.randrange(period.days))
        if candidate in taken or _too_close(candidate, chosen, min_interval):
            continue
        chosen.append(candidate)
        taken.add(candidate)
    return chosen


def _sample_id(config_id: UUID, period_id: str, day: date) -> UUID:
    return uuid5(config_id, f"{period_id}:{day.isoformat()}")


def run_generation(
    config: SamplingConfiguration,
    *,
    holidays: HolidayCalendar | None = None,
) -> GenerationResult:
    """
    Generate sample dates for every period of a configuration.

    Args:
        config: Sampling configuration (methodology, periods, seed)
        holidays: Calendar used for the is_holiday flag (default: settings calendar)

    Returns:
        GenerationResult with samples sorted by date and indexed 1..N

    Raises:
        InvalidSamplingInput: If the configuration fails validation
    """
    errors = validate_configuration(config)
    if errors:
        raise InvalidSamplingInput("; ".join(errors))

    holidays = holidays or default_calendar()
    rng = random.Random(config.seed)
    taken: set[date] = set()
    warnings: list[EngineWarning] = []
    picked: list[tuple[date, Period]] = []

    for period in config.periods:
        if period.samples_required == 0:
            continue
        if config.methodology == Methodology.RANDOM:
            dates = _random_dates(period, rng, config.minimum_interval_days, taken)
        elif config.methodology == Methodology.SYSTEMATIC:
            dates = [d for d in _systematic_dates(period, rng) if d not in taken]
            taken.update(dates)
        elif config.methodology == Methodology.JUDGMENTAL:
            dates = _judgmental_dates(period, rng, config.minimum_interval_days, taken)
        else:
            raise InvalidSamplingInput(f"Unsupported methodology: {config.methodology}")

        if len(dates) < period.samples_required:
            warnings.append(
                _shortfall(period, period.samples_required, len(dates), config.methodology)
            )
        picked.extend((day, period) for day in dates)

    picked.sort(key=lambda item: item[0])
    samples = [
        GeneratedSample(
            id=_sample_id(config.id, period.id, day),
            sampling_config_id=config.id,
            period_id=period.id,
            period_name=period.name,
            sample_date=day,
            sample_index=index,
            is_weekend=is_weekend(day),
            is_holiday=holidays.is_holiday(day),
            status=SampleStatus.PENDING,
        )
        for index, (day, period) in enumerate(picked, start=1)
    ]
    logger.info(
        "Generated %d %s samples for configuration %s (seed %d)",
        len(samples),
        config.methodology.value,
        config.id,
        config.seed,
    )
    return GenerationResult(samples=samples, warnings=warnings)


def generate(config: SamplingConfiguration) -> list[GeneratedSample]:
    """Generate samples for a configuration, discarding warnings."""
    return run_generation(config).samples
