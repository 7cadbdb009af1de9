import itertools
import uuid

import pytest

from classpoints.core.database import Database
from classpoints.models import PointRecord, PointType, StoreItem, Student


@pytest.fixture(name="database")
def database_fixture():
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture(name="session")
def session_fixture(database: Database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def other_owner_id():
    return uuid.uuid4()


@pytest.fixture
def make_student(session, owner_id):
    """Create a committed student whose opening balance is backed by a record."""

    counter = itertools.count(1)

    def _make(points: int = 0, *, owner=None, archived: bool = False, name: str | None = None) -> Student:
        number = next(counter)
        owner = owner or owner_id
        student = Student(
            owner_id=owner,
            student_no=f"S{number:03d}",
            display_name=name or f"Student {number}",
            points=points,
            is_archived=archived,
        )
        session.add(student)
        session.flush()
        if points:
            session.add(
                PointRecord(
                    owner_id=owner,
                    student_id=student.student_id,
                    type=PointType.ADD if points > 0 else PointType.SUBTRACT,
                    points=points,
                    reason="Opening balance",
                )
            )
        session.commit()
        return student

    return _make


@pytest.fixture
def make_item(session, owner_id):
    def _make(cost: int = 10, *, stock: int | None = None, active: bool = True, owner=None, name: str = "Sticker") -> StoreItem:
        item = StoreItem(owner_id=owner or owner_id, name=name, cost=cost, stock=stock, is_active=active)
        session.add(item)
        session.commit()
        return item

    return _make
