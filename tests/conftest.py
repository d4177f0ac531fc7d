import os
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mod_assign.core.context import RequestContext
from mod_assign.core.deps import get_clock, get_db
from mod_assign.core.security import hash_password
from mod_assign.db.base import Base
from mod_assign.main import app
from mod_assign.models.assignment import Assignment
from mod_assign.models.course import Course
from mod_assign.models.enrollment import Enrollment
from mod_assign.models.user import User
from mod_assign.services.plugins import default_registry

TEST_DB_FILE = "test_mod_assign.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeClock:
    """Settable "now" shared by the app and service-level tests."""

    def __init__(self, now: int = 1_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed():
    """Seed a clean minimal dataset for each test."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()

        # Users
        student1 = User(email="student1@example.com", first_name="Student", last_name="One", hashed_password=PASSWORD_HASH)
        student2 = User(email="student2@example.com", first_name="Student", last_name="Two", hashed_password=PASSWORD_HASH)
        teacher = User(email="teacher1@example.com", first_name="Teacher", last_name="One", hashed_password=PASSWORD_HASH)
        outsider = User(email="outsider@example.com", first_name="Out", last_name="Sider", hashed_password=PASSWORD_HASH)
        admin = User(email="admin@example.com", first_name="Site", last_name="Admin", role="admin", hashed_password=PASSWORD_HASH)
        db.add_all([student1, student2, teacher, outsider, admin])
        db.commit()

        # Course
        course = Course(fullname="Introduction to Testing", shortname="TEST101", time_modified=1)
        db.add(course)
        db.commit()

        # Enrollments
        db.add_all(
            [
                Enrollment(course_id=course.id, user_id=student1.id, role="student"),
                Enrollment(course_id=course.id, user_id=student2.id, role="student"),
                Enrollment(course_id=course.id, user_id=teacher.id, role="editingteacher"),
            ]
        )
        db.commit()

        # Assignment (always open, drafts on)
        assignment = Assignment(
            course_id=course.id,
            name="Essay",
            grade=100,
            submission_drafts=True,
            online_text_submission=True,
            send_notifications=True,
            time_modified=1,
        )
        db.add(assignment)
        db.commit()

        yield SimpleNamespace(
            student1_id=student1.id,
            student2_id=student2.id,
            teacher_id=teacher.id,
            outsider_id=outsider.id,
            admin_id=admin.id,
            course_id=course.id,
            assignment_id=assignment.id,
        )
    finally:
        db.close()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def registry():
    return default_registry()


@pytest.fixture()
def make_ctx(db, clock):
    """Build a RequestContext for a seeded user id."""

    def _make(user_id: int) -> RequestContext:
        user = db.query(User).filter(User.id == user_id).first()
        return RequestContext(db=db, actor=user, clock=clock)

    return _make


@pytest.fixture()
def assignment(db, seed):
    return db.query(Assignment).filter(Assignment.id == seed.assignment_id).first()


@pytest.fixture()
def client(clock):
    """Test client that uses the test DB session and clock via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
