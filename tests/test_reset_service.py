import uuid

import pytest
from sqlalchemy import select

from classpoints.models import PointRecord, PointType
from classpoints.services import point_service, reset_service, roster_service
from classpoints.services.errors import ForbiddenError, LedgerValidationError, NotFoundError
from classpoints.services.reset_service import AllStudents, GroupCohort, SelectedStudents, TagCohort


def _reset_records(session):
    stmt = select(PointRecord).where(PointRecord.type == PointType.RESET)
    return session.execute(stmt).scalars().all()


def test_reset_all_skips_archived(session, owner_id, other_owner_id, make_student):
    first, second = make_student(15), make_student(-4)
    archived = make_student(9, archived=True)
    foreign = make_student(30, owner=other_owner_id)

    summary = reset_service.reset_points(session, owner_id=owner_id, cohort=AllStudents(), target_value=0)
    session.commit()

    assert summary.mode == "all"
    assert summary.count == 2
    assert [(entry.old_points, entry.new_points) for entry in summary.affected] == [(15, 0), (-4, 0)]
    assert (first.points, second.points) == (0, 0)
    assert archived.points == 9
    assert foreign.points == 30
    for student in (first, second):
        assert point_service.ledger_balance(session, owner_id=owner_id, student_id=student.student_id) == 0


def test_reset_writes_labelled_reason(session, owner_id, make_student):
    make_student(5)

    reset_service.reset_points(session, owner_id=owner_id, cohort=AllStudents(), target_value=10, reason="New term")
    session.commit()

    (record,) = _reset_records(session)
    assert record.reason == "New term (all students)"
    assert record.points == 5


def test_reset_default_reason(session, owner_id, make_student):
    student = make_student(5)

    reset_service.reset_points(
        session, owner_id=owner_id, cohort=SelectedStudents(student_ids=(student.student_id,)), target_value=0
    )
    session.commit()

    (record,) = _reset_records(session)
    assert record.reason == "Points reset (selected students)"


def test_reset_group_only_touches_members(session, owner_id, make_student):
    member, outsider = make_student(20), make_student(20)
    group = roster_service.create_group(session, owner_id=owner_id, name="Table 1")
    roster_service.add_group_members(session, owner_id=owner_id, group_id=group.group_id, student_ids=[member.student_id])
    session.commit()

    summary = reset_service.reset_points(
        session, owner_id=owner_id, cohort=GroupCohort(group_id=group.group_id), target_value=5
    )
    session.commit()

    assert summary.count == 1
    assert member.points == 5
    assert outsider.points == 20


def test_reset_tag_only_touches_tagged(session, owner_id, make_student):
    tagged, untagged = make_student(8), make_student(8)
    tag = roster_service.create_tag(session, owner_id=owner_id, name="Choir")
    roster_service.add_tag_students(session, owner_id=owner_id, tag_id=tag.tag_id, student_ids=[tagged.student_id])
    session.commit()

    reset_service.reset_points(session, owner_id=owner_id, cohort=TagCohort(tag_id=tag.tag_id), target_value=1)
    session.commit()

    assert tagged.points == 1
    assert untagged.points == 8


def test_reset_group_of_other_owner_is_forbidden(session, owner_id, other_owner_id, make_student):
    student = make_student(10, owner=other_owner_id)
    group = roster_service.create_group(session, owner_id=other_owner_id, name="Theirs")
    roster_service.add_group_members(
        session, owner_id=other_owner_id, group_id=group.group_id, student_ids=[student.student_id]
    )
    session.commit()

    with pytest.raises(ForbiddenError):
        reset_service.reset_points(session, owner_id=owner_id, cohort=GroupCohort(group_id=group.group_id), target_value=0)
    session.rollback()
    assert student.points == 10


def test_reset_unknown_group_or_tag_is_not_found(session, owner_id, make_student):
    make_student(10)

    with pytest.raises(NotFoundError):
        reset_service.reset_points(session, owner_id=owner_id, cohort=GroupCohort(group_id=uuid.uuid4()), target_value=0)
    with pytest.raises(NotFoundError):
        reset_service.reset_points(session, owner_id=owner_id, cohort=TagCohort(tag_id=uuid.uuid4()), target_value=0)


def test_reset_tag_of_other_owner_is_forbidden(session, owner_id, other_owner_id):
    tag = roster_service.create_tag(session, owner_id=other_owner_id, name="Theirs")
    session.commit()

    with pytest.raises(ForbiddenError):
        reset_service.reset_points(session, owner_id=owner_id, cohort=TagCohort(tag_id=tag.tag_id), target_value=0)


def test_reset_selected_with_foreign_id_changes_nothing(session, owner_id, other_owner_id, make_student):
    first, second = make_student(12), make_student(12)
    foreign = make_student(12, owner=other_owner_id)

    with pytest.raises(LedgerValidationError):
        reset_service.reset_points(
            session,
            owner_id=owner_id,
            cohort=SelectedStudents(student_ids=(first.student_id, second.student_id, foreign.student_id)),
            target_value=0,
        )
    session.rollback()

    assert (first.points, second.points, foreign.points) == (12, 12, 12)
    assert _reset_records(session) == []


def test_reset_selected_drops_archived_ids(session, owner_id, make_student):
    active = make_student(3)
    archived = make_student(3, archived=True)

    summary = reset_service.reset_points(
        session,
        owner_id=owner_id,
        cohort=SelectedStudents(student_ids=(active.student_id, archived.student_id)),
        target_value=50,
    )
    session.commit()

    assert [entry.student_id for entry in summary.affected] == [active.student_id]
    assert archived.points == 3


def test_reset_empty_cohort_is_rejected(session, owner_id):
    with pytest.raises(LedgerValidationError):
        reset_service.reset_points(session, owner_id=owner_id, cohort=AllStudents(), target_value=0)
    with pytest.raises(LedgerValidationError):
        reset_service.reset_points(session, owner_id=owner_id, cohort=SelectedStudents(student_ids=()), target_value=0)


@pytest.mark.parametrize("target", [1001, -1001])
def test_reset_target_out_of_range(session, owner_id, make_student, target):
    make_student(1)

    with pytest.raises(LedgerValidationError):
        reset_service.reset_points(session, owner_id=owner_id, cohort=AllStudents(), target_value=target)
