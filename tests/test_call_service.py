import random
from collections import Counter
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from classpoints.models import CallHistory, CallMode
from classpoints.services import call_service
from classpoints.services.errors import NoStudentsAvailableError

NOW = datetime(2024, 9, 2, 9, 0, 0)


def _called(session, owner_id, student, at):
    session.add(CallHistory(owner_id=owner_id, student_id=student.student_id, mode=CallMode.RANDOM, called_at=at))
    session.commit()


def test_pick_random_records_call(session, owner_id, make_student):
    student = make_student()

    result = call_service.pick_random(session, owner_id=owner_id, rng=random.Random(1), now=NOW)
    session.commit()

    assert result.student.student_id == student.student_id
    assert result.avoid_reset_used is False
    assert result.message is None
    call = session.execute(select(CallHistory)).scalar_one()
    assert call.student_id == student.student_id
    assert call.called_at == NOW


def test_pick_random_skips_recently_called(session, owner_id, make_student):
    recent, fresh = make_student(), make_student()
    _called(session, owner_id, recent, NOW - timedelta(hours=2))

    for seed in range(10):
        result = call_service.pick_random(session, owner_id=owner_id, rng=random.Random(seed), now=NOW)
        assert result.student.student_id == fresh.student_id
        assert result.total_excluded == 1
        session.rollback()


def test_calls_outside_window_do_not_exclude(session, owner_id, make_student):
    student = make_student()
    _called(session, owner_id, student, NOW - timedelta(hours=30))

    result = call_service.pick_random(session, owner_id=owner_id, avoid_hours=24, now=NOW)

    assert result.student.student_id == student.student_id
    assert result.avoid_reset_used is False


def test_pick_random_falls_back_when_everyone_was_called(session, owner_id, make_student):
    students = [make_student() for _ in range(3)]
    for student in students:
        _called(session, owner_id, student, NOW - timedelta(hours=1))

    result = call_service.pick_random(session, owner_id=owner_id, avoid_hours=24, rng=random.Random(7), now=NOW)
    session.commit()

    assert result.avoid_reset_used is True
    assert result.student.student_id in {student.student_id for student in students}
    assert result.total_available == 3
    assert "24 hours" in result.message
    assert session.execute(select(func.count(CallHistory.call_id))).scalar_one() == 4


def test_fallback_still_honours_manual_exclusions(session, owner_id, make_student):
    first, second = make_student(), make_student()
    _called(session, owner_id, first, NOW - timedelta(hours=1))
    _called(session, owner_id, second, NOW - timedelta(hours=1))

    result = call_service.pick_random(
        session, owner_id=owner_id, exclude_ids=[first.student_id], rng=random.Random(3), now=NOW
    )

    assert result.avoid_reset_used is True
    assert result.student.student_id == second.student_id


def test_pick_random_without_window_and_nobody_left(session, owner_id, make_student):
    student = make_student()

    with pytest.raises(NoStudentsAvailableError):
        call_service.pick_random(session, owner_id=owner_id, avoid_hours=0, exclude_ids=[student.student_id], now=NOW)


def test_pick_random_ignores_archived_and_foreign(session, owner_id, other_owner_id, make_student):
    make_student(archived=True)
    make_student(owner=other_owner_id)

    with pytest.raises(NoStudentsAvailableError):
        call_service.pick_random(session, owner_id=owner_id, now=NOW)


def test_pick_random_is_roughly_uniform(session, owner_id, make_student):
    students = [make_student() for _ in range(3)]
    rng = random.Random(2024)

    counts = Counter(
        call_service.pick_random(session, owner_id=owner_id, avoid_hours=0, rng=rng, now=NOW).student.student_id
        for _ in range(600)
    )

    assert set(counts) == {student.student_id for student in students}
    assert all(150 <= count <= 250 for count in counts.values())


def test_list_call_history_newest_first(session, owner_id, make_student):
    student = make_student()
    _called(session, owner_id, student, NOW - timedelta(hours=3))
    _called(session, owner_id, student, NOW - timedelta(hours=1))

    calls, total = call_service.list_call_history(session, owner_id=owner_id)

    assert total == 2
    assert [call.called_at for call in calls] == [NOW - timedelta(hours=1), NOW - timedelta(hours=3)]
