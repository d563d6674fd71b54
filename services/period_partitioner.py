"""Period partitioner: splits an audit window into periods and spreads samples across them."""

import calendar
from datetime import date, timedelta

from models.enums import PeriodType
from models.sampling_classification import SamplingClassification
from models.sampling_configuration import Period
from services.errors import InvalidSamplingInput


def distribute(sample_count: int, period_count: int) -> list[int]:
    """
    Split sample_count over period_count periods.

    Every period but the last gets the floor share; the last absorbs the
    remainder, so the parts always sum to sample_count.
    """
    if sample_count < 0:
        raise InvalidSamplingInput(f"sample_count must be non-negative, got {sample_count}")
    if period_count < 1:
        raise InvalidSamplingInput(f"period_count must be at least 1, got {period_count}")
    share = sample_count // period_count
    return [share] * (period_count - 1) + [sample_count - share * (period_count - 1)]


def _add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _month_end(day: date) -> date:
    return date(day.year, day.month, calendar.monthrange(day.year, day.month)[1])


def _check_window(audit_start: date, audit_end: date) -> None:
    if audit_start > audit_end:
        raise InvalidSamplingInput(
            f"audit start {audit_start} is after audit end {audit_end}"
        )


def _clip_ranges(
    first_start: date,
    step_months: int,
    audit_start: date,
    audit_end: date,
) -> list[tuple[date, date, date]]:
    """(range_start, clipped_start, clipped_end) for each step overlapping the window."""
    ranges = []
    start = first_start
    while start <= audit_end:
        end = _add_months(start, step_months) - timedelta(days=1)
        if end >= audit_start:
            ranges.append((start, max(start, audit_start), min(end, audit_end)))
        start = _add_months(start, step_months)
    return ranges


def _build_periods(
    classification: SamplingClassification,
    named_ranges: list[tuple[str, str, date, date]],
) -> list[Period]:
    counts = distribute(classification.sample_count, len(named_ranges))
    return [
        Period(
            id=period_id,
            name=name,
            start_date=start,
            end_date=end,
            samples_required=count,
        )
        for (period_id, name, start, end), count in zip(named_ranges, counts)
    ]


def calendar_quarter_ranges(audit_start: date, audit_end: date) -> list[tuple[str, str, date, date]]:
    """Calendar quarters overlapping the window, clipped to it."""
    _check_window(audit_start, audit_end)
    first = date(audit_start.year, 3 * ((audit_start.month - 1) // 3) + 1, 1)
    named = []
    for quarter_start, start, end in _clip_ranges(first, 3, audit_start, audit_end):
        quarter = (quarter_start.month - 1) // 3 + 1
        named.append(
            (f"{quarter_start.year}-Q{quarter}", f"Q{quarter} {quarter_start.year}", start, end)
        )
    return named


def fiscal_quarter_ranges(
    audit_start: date,
    audit_end: date,
    fiscal_year_start_month: int,
) -> list[tuple[str, str, date, date]]:
    """Fiscal quarters overlapping the window; fiscal years are named by the year they end in."""
    _check_window(audit_start, audit_end)
    if not 1 <= fiscal_year_start_month <= 12:
        raise InvalidSamplingInput(
            f"fiscal_year_start_month must be between 1 and 12, got {fiscal_year_start_month}"
        )
    fy_start_year = audit_start.year if audit_start.month >= fiscal_year_start_month else audit_start.year - 1
    fy_start = date(fy_start_year, fiscal_year_start_month, 1)
    # Step whole quarters forward to the one containing audit_start
    months_in = (audit_start.year - fy_start.year) * 12 + audit_start.month - fy_start.month
    first = _add_months(fy_start, 3 * (months_in // 3))

    named = []
    for quarter_start, start, end in _clip_ranges(first, 3, audit_start, audit_end):
        offset = (quarter_start.year - fy_start.year) * 12 + quarter_start.month - fy_start.month
        fiscal_year = fy_start.year + offset // 12
        if fiscal_year_start_month != 1:
            fiscal_year += 1
        quarter = (offset % 12) // 3 + 1
        named.append((f"FY{fiscal_year}-Q{quarter}", f"FY{fiscal_year} Q{quarter}", start, end))
    return named


def month_ranges(audit_start: date, audit_end: date) -> list[tuple[str, str, date, date]]:
    """Calendar months overlapping the window, clipped to it."""
    _check_window(audit_start, audit_end)
    first = date(audit_start.year, audit_start.month, 1)
    return [
        (
            f"{month_start.year}-{month_start.month:02d}",
            f"{calendar.month_abbr[month_start.month]} {month_start.year}",
            start,
            end,
        )
        for month_start, start, end in _clip_ranges(first, 1, audit_start, audit_end)
    ]


def partition(
    classification: SamplingClassification,
    audit_start: date,
    audit_end: date,
    *,
    period_type: PeriodType = PeriodType.CALENDAR_QUARTERS,
    fiscal_year_start_month: int = 1,
) -> list[Period]:
    """
    Partition the audit window into periods and distribute the sample count.

    Args:
        classification: Sampling decision for the control
        audit_start: First day of the audit window
        audit_end: Last day of the audit window
        period_type: Calendar quarters, fiscal quarters or calendar months
        fiscal_year_start_month: First month of the fiscal year (fiscal quarters only)

    Returns:
        Ordered, non-overlapping periods; empty when sampling is not required
    """
    _check_window(audit_start, audit_end)
    if not classification.requires_sampling:
        return []

    if period_type == PeriodType.CALENDAR_QUARTERS:
        named = calendar_quarter_ranges(audit_start, audit_end)
    elif period_type == PeriodType.FISCAL_QUARTERS:
        named = fiscal_quarter_ranges(audit_start, audit_end, fiscal_year_start_month)
    elif period_type == PeriodType.ROLLING_MONTHS:
        named = month_ranges(audit_start, audit_end)
    else:
        raise InvalidSamplingInput(f"Unsupported period type: {period_type}")

    return _build_periods(classification, named)


def partition_fiscal(
    classification: SamplingClassification,
    audit_start: date,
    audit_end: date,
    fiscal_year_start_month: int,
) -> list[Period]:
    return partition(
        classification,
        audit_start,
        audit_end,
        period_type=PeriodType.FISCAL_QUARTERS,
        fiscal_year_start_month=fiscal_year_start_month,
    )


def partition_monthly(
    classification: SamplingClassification,
    audit_start: date,
    audit_end: date,
) -> list[Period]:
    return partition(
        classification,
        audit_start,
        audit_end,
        period_type=PeriodType.ROLLING_MONTHS,
    )


def month_ends(start: date, end: date) -> list[date]:
    """Every month-end date inside [start, end]."""
    result = []
    day = _month_end(start)
    while day <= end:
        result.append(day)
        day = _month_end(_add_months(day, 1))
    return result
