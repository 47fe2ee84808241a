from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftlog.core.auth import RequestUserContext
from shiftlog.core.errors import (
    AlreadyFinalizedError,
    DuplicatePeriodError,
    ForbiddenError,
    ImmutableEntryError,
    ImmutableLogError,
    IncompleteProfileError,
    InvalidInputError,
)
from shiftlog.models.entities import (
    EntryType,
    LogStatus,
    PerformanceEntry,
    Personnel,
    StationBase,
    User,
    UserRole,
    WorkShift,
)
from shiftlog.repositories.performance_repository import PerformanceRepository
from shiftlog.services.performance_service import EntryInput, EntryUpdateData, LogUpdateData, PerformanceService


@dataclass
class Scenario:
    service: PerformanceService
    supervisor: User
    context: RequestUserContext
    other_context: RequestUserContext
    admin_context: RequestUserContext
    ali: Personnel
    sara: Personnel
    outsider: Personnel
    shift: WorkShift


@pytest.fixture()
def scenario(db_session, make_user, make_context, make_personnel, make_profile, work_shifts) -> Scenario:
    supervisor = make_user("supervisor")
    other = make_user("other")
    admin = make_user("root", role=UserRole.ADMIN)
    make_profile(supervisor)
    return Scenario(
        service=PerformanceService(db_session),
        supervisor=supervisor,
        context=make_context(supervisor),
        other_context=make_context(other),
        admin_context=make_context(admin),
        ali=make_personnel("Ali", "Rezaei", member_of=supervisor),
        sara=make_personnel("Sara", "Karimi", member_of=supervisor),
        outsider=make_personnel("Reza", "Ahmadi", member_of=other),
        shift=work_shifts["273"],
    )


def _cell(person: Personnel, shift: WorkShift, date: str, **overrides) -> EntryInput:
    return EntryInput(personnel_id=person.id, shift_id=shift.id, date=date, entry_type=EntryType.CELL, **overrides)


def _summary(person: Personnel, *, missions: int, meals: int) -> EntryInput:
    return EntryInput(personnel_id=person.id, entry_type=EntryType.SUMMARY, missions=missions, meals=meals)


def test_create_log_resolves_base_from_profile(scenario: Scenario, db_session: Session) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=1)

    assert log.status is LogStatus.DRAFT
    assert log.submitted_at is None
    assert log.user_id == scenario.supervisor.id
    base = db_session.scalar(select(StationBase).where(StationBase.id == log.base_id))
    assert base is not None and base.number == "101"


def test_one_log_per_period(scenario: Scenario) -> None:
    scenario.service.create_log(context=scenario.context, year=1403, month=1)

    with pytest.raises(DuplicatePeriodError):
        scenario.service.create_log(context=scenario.context, year=1403, month=1)

    other_month = scenario.service.create_log(context=scenario.context, year=1403, month=2)
    assert other_month.month == 2


def test_get_or_create_log_for_period_is_stable(scenario: Scenario) -> None:
    first = scenario.service.get_or_create_log_for_period(context=scenario.context, year=1403, month=5)
    second = scenario.service.get_or_create_log_for_period(context=scenario.context, year=1403, month=5)

    assert first.id == second.id
    assert scenario.service.get_log_for_period(scenario.supervisor.id, 1403, 5).id == first.id
    assert scenario.service.get_log_for_period(scenario.supervisor.id, 1403, 6) is None


def test_log_creation_requires_complete_profile(scenario: Scenario) -> None:
    with pytest.raises(IncompleteProfileError):
        scenario.service.get_or_create_log_for_period(context=scenario.other_context, year=1403, month=1)


def test_create_log_rejects_invalid_month(scenario: Scenario) -> None:
    with pytest.raises(InvalidInputError):
        scenario.service.create_log(context=scenario.context, year=1403, month=13)


def test_batch_upsert_overwrites_existing_keys_and_keeps_ids(scenario: Scenario) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)

    first = scenario.service.batch_upsert_entries(
        context=scenario.context,
        log_id=log.id,
        entries=[
            _cell(scenario.ali, scenario.shift, "1403-07-01"),
            _summary(scenario.ali, missions=2, meals=1),
        ],
    )
    original_cell_id, original_summary_id = first[0].id, first[1].id

    second = scenario.service.batch_upsert_entries(
        context=scenario.context,
        log_id=log.id,
        entries=[
            _summary(scenario.ali, missions=7, meals=3),
            _cell(scenario.sara, scenario.shift, "1403-07-01"),
            _cell(scenario.ali, scenario.shift, "1403-7-1"),
        ],
    )

    assert [entry.personnel_id for entry in second] == [scenario.ali.id, scenario.sara.id, scenario.ali.id]
    assert second[0].id == original_summary_id
    assert (second[0].missions, second[0].meals) == (7, 3)
    assert second[2].id == original_cell_id
    assert second[2].date == "1403-07-01"
    assert len(scenario.service.list_entries_by_log(context=scenario.context, log_id=log.id)) == 3
    assert all(entry.last_modified_by == scenario.supervisor.id for entry in second)


@pytest.mark.parametrize(
    "build",
    [
        lambda s: [_cell(s.ali, s.shift, "1403-07-01", missions=-1)],
        lambda s: [EntryInput(personnel_id=s.ali.id, date="1403-07-01", entry_type=EntryType.CELL)],
        lambda s: [EntryInput(personnel_id=s.ali.id, shift_id=s.shift.id, entry_type=EntryType.BATCH)],
        lambda s: [EntryInput(personnel_id=s.ali.id, date="1403-07-01", entry_type=EntryType.SUMMARY)],
        lambda s: [_cell(s.ali, s.shift, "1403-08-01")],
        lambda s: [_cell(s.ali, s.shift, "1403-07-31")],
        lambda s: [_cell(s.ali, s.shift, "not-a-date")],
        lambda s: [EntryInput(personnel_id=s.ali.id, shift_id=uuid.uuid4(), date="1403-07-02")],
        lambda s: [EntryInput(personnel_id=uuid.uuid4(), shift_id=s.shift.id, date="1403-07-02")],
        lambda s: [_cell(s.ali, s.shift, "1403-07-02"), _cell(s.ali, s.shift, "1403-07-02")],
    ],
    ids=[
        "negative-count",
        "cell-without-shift",
        "batch-without-date",
        "summary-with-date",
        "date-outside-log-month",
        "day-outside-month-length",
        "malformed-date",
        "unknown-shift",
        "unknown-personnel",
        "duplicate-key",
    ],
)
def test_batch_upsert_validates_whole_payload_before_writing(scenario: Scenario, db_session: Session, build) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)
    valid_first = _cell(scenario.sara, scenario.shift, "1403-07-05")

    with pytest.raises(InvalidInputError):
        scenario.service.batch_upsert_entries(
            context=scenario.context,
            log_id=log.id,
            entries=[valid_first, *build(scenario)],
        )

    assert db_session.scalars(select(PerformanceEntry)).all() == []


def test_batch_upsert_rejects_personnel_outside_owner_roster(scenario: Scenario) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)

    with pytest.raises(ForbiddenError):
        scenario.service.batch_upsert_entries(
            context=scenario.context,
            log_id=log.id,
            entries=[_cell(scenario.outsider, scenario.shift, "1403-07-01")],
        )


def test_only_owner_can_mutate_log(scenario: Scenario) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)
    scenario.service.batch_upsert_entries(
        context=scenario.context,
        log_id=log.id,
        entries=[_cell(scenario.ali, scenario.shift, "1403-07-01", missions=1)],
    )

    for context in (scenario.other_context, scenario.admin_context):
        with pytest.raises(ForbiddenError):
            scenario.service.finalize_log(context=context, log_id=log.id)
        with pytest.raises(ForbiddenError):
            scenario.service.batch_upsert_entries(
                context=context,
                log_id=log.id,
                entries=[
                    _cell(scenario.ali, scenario.shift, "1403-07-01", missions=9),
                    _cell(scenario.sara, scenario.shift, "1403-07-02"),
                ],
            )
        with pytest.raises(ForbiddenError):
            scenario.service.update_log(context=context, log_id=log.id, data=LogUpdateData(notes="hijacked"))

    unchanged = scenario.service.get_log(context=scenario.context, log_id=log.id)
    assert unchanged.status is LogStatus.DRAFT
    assert unchanged.submitted_at is None
    assert unchanged.notes is None
    entries = scenario.service.list_entries_by_log(context=scenario.context, log_id=log.id)
    assert [(entry.personnel_id, entry.date, entry.missions, entry.is_finalized) for entry in entries] == [
        (scenario.ali.id, "1403-07-01", 1, False)
    ]

    with pytest.raises(ForbiddenError):
        scenario.service.get_log(context=scenario.other_context, log_id=log.id)
    assert scenario.service.get_log(context=scenario.admin_context, log_id=log.id).id == log.id


def test_finalize_freezes_log_and_entries(scenario: Scenario) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)
    saved = scenario.service.batch_upsert_entries(
        context=scenario.context,
        log_id=log.id,
        entries=[_cell(scenario.ali, scenario.shift, "1403-07-01"), _summary(scenario.ali, missions=1, meals=1)],
    )
    entry_id = saved[0].id

    finalized = scenario.service.finalize_log(context=scenario.context, log_id=log.id)

    assert finalized.status is LogStatus.FINALIZED
    assert finalized.submitted_at is not None
    entries = scenario.service.list_entries_by_log(context=scenario.context, log_id=log.id)
    assert all(entry.is_finalized for entry in entries)
    assert all(entry.finalized_at == finalized.submitted_at for entry in entries)

    with pytest.raises(AlreadyFinalizedError):
        scenario.service.finalize_log(context=scenario.context, log_id=log.id)
    with pytest.raises(ImmutableLogError):
        scenario.service.update_log(context=scenario.context, log_id=log.id, data=LogUpdateData(notes="late"))
    with pytest.raises(ImmutableLogError):
        scenario.service.batch_upsert_entries(
            context=scenario.context,
            log_id=log.id,
            entries=[_cell(scenario.sara, scenario.shift, "1403-07-02")],
        )
    with pytest.raises(ImmutableLogError):
        scenario.service.create_entry(
            context=scenario.context,
            log_id=log.id,
            data=_cell(scenario.sara, scenario.shift, "1403-07-02"),
        )
    with pytest.raises(ImmutableEntryError):
        scenario.service.update_entry(context=scenario.context, entry_id=entry_id, data=EntryUpdateData(missions=4))
    with pytest.raises(ImmutableEntryError):
        scenario.service.delete_entry(context=scenario.context, entry_id=entry_id)


def test_log_status_is_authoritative_over_entry_flag(scenario: Scenario, db_session: Session) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)
    entry = scenario.service.create_entry(
        context=scenario.context,
        log_id=log.id,
        data=_cell(scenario.ali, scenario.shift, "1403-07-03"),
    )
    PerformanceRepository(db_session).mark_log_finalized(log.id, submitted_at=datetime.utcnow())
    db_session.commit()

    with pytest.raises(ImmutableEntryError):
        scenario.service.update_entry(context=scenario.context, entry_id=entry.id, data=EntryUpdateData(meals=2))


def test_finalize_compare_and_swap_only_succeeds_once(scenario: Scenario, db_session: Session) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)
    repo = PerformanceRepository(db_session)
    now = datetime.utcnow()

    assert repo.mark_log_finalized(log.id, submitted_at=now) is True
    assert repo.mark_log_finalized(log.id, submitted_at=now) is False


def test_entry_lifecycle_on_draft_log(scenario: Scenario) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)
    entry = scenario.service.create_entry(
        context=scenario.context,
        log_id=log.id,
        data=_cell(scenario.ali, scenario.shift, "1403-07-03"),
    )

    assert entry.entry_type is EntryType.CELL
    assert (entry.missions, entry.meals) == (0, 0)
    assert entry.is_finalized is False
    assert entry.user_id == scenario.supervisor.id

    updated = scenario.service.update_entry(
        context=scenario.context,
        entry_id=entry.id,
        data=EntryUpdateData(missions=5, meals=2),
    )
    assert (updated.missions, updated.meals) == (5, 2)
    with pytest.raises(InvalidInputError):
        scenario.service.update_entry(context=scenario.context, entry_id=entry.id, data=EntryUpdateData(meals=-1))

    assert scenario.service.delete_entry(context=scenario.context, entry_id=entry.id) is True
    assert scenario.service.delete_entry(context=scenario.context, entry_id=entry.id) is False


def test_notes_are_editable_while_draft(scenario: Scenario) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)

    updated = scenario.service.update_log(context=scenario.context, log_id=log.id, data=LogUpdateData(notes=" ok "))

    assert updated.notes == "ok"


def test_entries_by_user_requires_self_or_admin(scenario: Scenario) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=7)
    scenario.service.batch_upsert_entries(
        context=scenario.context,
        log_id=log.id,
        entries=[_cell(scenario.ali, scenario.shift, "1403-07-01")],
    )

    own = scenario.service.list_entries_by_user(context=scenario.context, user_id=scenario.supervisor.id, year=1403)
    assert len(own) == 1
    admin_view = scenario.service.list_entries_by_user(
        context=scenario.admin_context, user_id=scenario.supervisor.id, month=7
    )
    assert len(admin_view) == 1
    with pytest.raises(ForbiddenError):
        scenario.service.list_entries_by_user(context=scenario.other_context, user_id=scenario.supervisor.id)


def test_read_grid_projects_roster_and_totals(scenario: Scenario) -> None:
    log = scenario.service.create_log(context=scenario.context, year=1403, month=12)
    scenario.service.batch_upsert_entries(
        context=scenario.context,
        log_id=log.id,
        entries=[
            _cell(scenario.ali, scenario.shift, "1403-12-01"),
            _summary(scenario.ali, missions=3, meals=2),
            _summary(scenario.sara, missions=1, meals=4),
        ],
    )

    grid = scenario.service.read_grid(context=scenario.context, log_id=log.id)

    assert len(grid["days"]) == 29
    rows = {row["personnel_name"]: row for row in grid["rows"]}
    assert rows["Ali Rezaei"]["total_missions"] == 3
    assert rows["Ali Rezaei"]["total_hours"] == 24
    assert list(rows["Ali Rezaei"]["entries_by_date"]) == ["1403-12-01"]
    assert rows["Sara Karimi"]["total_meals"] == 4
    assert grid["stats"] == {
        "total_personnel": 2,
        "total_days": 29,
        "total_assigned_shifts": 1,
        "total_missions": 4,
        "total_meals": 6,
    }
