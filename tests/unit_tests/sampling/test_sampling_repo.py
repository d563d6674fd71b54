"""Unit tests for the sampling repositories.

The SQL repository runs against in-memory SQLite.
"""

from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import NOW, make_records
from models.enums import ConfigurationStatus, SampleStatus, SubmissionStatus
from models.evidence_submission import EvidenceSubmissionCreate
from models.generated_sample import GeneratedSampleRow
from repos.sampling_repo import InMemorySamplingRepository, SqlSamplingRepository
from services import evidence_lifecycle as lifecycle
from services.holidays import HolidayCalendar

NO_HOLIDAYS = HolidayCalendar()


def sent_records():
    """Quarterly/M control over three quarters with an evidence request sent."""
    records = make_records(frequency_label="Quarterly", risk_rating="M")
    config = lifecycle.configure(
        records, records.descriptor, date(2025, 1, 1), date(2025, 9, 30),
        created_by="auditor", now=NOW, seed=3,
    )
    lifecycle.generate_samples(records, config.id, performed_by="auditor", now=NOW, holidays=NO_HOLIDAYS)
    lifecycle.approve_samples(records, config.id, approved_by="manager", now=NOW)
    request = lifecycle.create_evidence_request(records, config.id, created_by="auditor", now=NOW)
    lifecycle.receive_evidence(
        records,
        request.id,
        EvidenceSubmissionCreate(sample_date=request.sample_dates[0], file_name="q1.pdf"),
        now=NOW,
    )
    return records


@pytest.mark.asyncio
async def test_in_memory_unknown_control_is_empty():
    repo = InMemorySamplingRepository()

    records = await repo.load("nothing-here")

    assert records.control_id == "nothing-here"
    assert records.descriptor is None
    assert records.configurations == []


@pytest.mark.asyncio
async def test_in_memory_isolates_stored_copies():
    repo = InMemorySamplingRepository()
    records = sent_records()

    await repo.save(records)
    records.samples.clear()
    loaded = await repo.load("CTRL-001")
    loaded.requests.clear()

    again = await repo.load("CTRL-001")
    assert len(again.samples) == 3
    assert len(again.requests) == 1


@pytest.mark.asyncio
async def test_sql_unknown_control_is_empty(db_session: AsyncSession):
    repo = SqlSamplingRepository(db_session)

    records = await repo.load("nothing-here")

    assert records.descriptor is None
    assert records.samples == []


@pytest.mark.asyncio
async def test_sql_round_trip(db_session: AsyncSession):
    """Test: Every record of the bundle survives save and load."""
    repo = SqlSamplingRepository(db_session)
    records = sent_records()

    await repo.save(records)
    loaded = await repo.load("CTRL-001")

    assert loaded.descriptor.frequency_label == "Quarterly"
    assert loaded.classification.sample_count == 3
    assert len(loaded.configurations) == 1
    config = loaded.configurations[0]
    assert config.status == ConfigurationStatus.SENT
    assert config.periods == records.configurations[0].periods
    assert config.seed == 3
    assert sorted(s.sample_date for s in loaded.samples) == sorted(
        s.sample_date for s in records.samples
    )
    assert all(s.status == SampleStatus.APPROVED for s in loaded.samples)
    assert loaded.requests[0].sample_dates == records.requests[0].sample_dates
    assert loaded.submissions[0].file_name == "q1.pdf"
    assert [e.action for e in loaded.audit_log] == [e.action for e in records.audit_log]


@pytest.mark.asyncio
async def test_sql_audit_log_keeps_write_order_for_equal_timestamps(db_session: AsyncSession):
    """Test: Entries written with the same timestamp reload in write order."""
    repo = SqlSamplingRepository(db_session)
    records = sent_records()
    submission = records.submissions[0]
    lifecycle.review_evidence(
        records, submission.id, status=SubmissionStatus.APPROVED, reviewed_by="manager", now=NOW
    )
    assert len({e.performed_at for e in records.audit_log}) == 1

    await repo.save(records)
    loaded = await repo.load("CTRL-001")

    assert [e.sequence for e in loaded.audit_log] == list(range(1, len(records.audit_log) + 1))
    assert [e.action for e in loaded.audit_log] == [e.action for e in records.audit_log]



@pytest.mark.asyncio
async def test_sql_regeneration_leaves_no_orphans(db_session: AsyncSession):
    repo = SqlSamplingRepository(db_session)
    records = make_records(frequency_label="Daily", risk_rating="L")
    config = lifecycle.configure(
        records, records.descriptor, date(2025, 1, 1), date(2025, 12, 31),
        created_by="auditor", now=NOW, seed=1,
    )
    lifecycle.generate_samples(records, config.id, performed_by="auditor", now=NOW, holidays=NO_HOLIDAYS)
    await repo.save(records)

    records = await repo.load("CTRL-001")
    records.configurations[0].seed = 2
    lifecycle.generate_samples(
        records, records.configurations[0].id, performed_by="auditor", now=NOW, holidays=NO_HOLIDAYS
    )
    await repo.save(records)

    result = await db_session.execute(select(func.count()).select_from(GeneratedSampleRow))
    assert result.scalar_one() == len(records.samples) == 11
    loaded = await repo.load("CTRL-001")
    assert sorted(s.sample_date for s in loaded.samples) == sorted(
        s.sample_date for s in records.samples
    )


@pytest.mark.asyncio
async def test_sql_reconfiguration_keeps_one_active(db_session: AsyncSession):
    repo = SqlSamplingRepository(db_session)
    records = make_records()
    lifecycle.configure(
        records, records.descriptor, date(2025, 1, 1), date(2025, 12, 31),
        created_by="auditor", now=NOW,
    )
    await repo.save(records)

    records = await repo.load("CTRL-001")
    lifecycle.reconfigure(
        records, records.descriptor, date(2025, 1, 1), date(2025, 6, 30),
        created_by="auditor", now=NOW,
    )
    await repo.save(records)

    loaded = await repo.load("CTRL-001")
    assert len(loaded.configurations) == 2
    assert [c.is_active for c in loaded.configurations].count(True) == 1
    assert loaded.active_configuration.audit_end == date(2025, 6, 30)
