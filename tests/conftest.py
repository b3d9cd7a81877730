from datetime import timedelta
from pathlib import Path
import sys
import os

import pytest
from flask import g
from werkzeug.security import generate_password_hash

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Safety default for any module-level app creation during test imports.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from campus_vote import create_app
from campus_vote.extensions import db
from campus_vote.models import Candidate, Election, Student, User
from campus_vote.models.user import ROLE_ADMIN, ROLE_STUDENT
from campus_vote.services.clock import utcnow
from campus_vote.services.security import generate_session_token

PASSWORD = "correct-horse-battery"


@pytest.fixture()
def app(tmp_path: Path):
    db_file = tmp_path / "test.sqlite3"
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_file}",
            "SQLALCHEMY_ENGINE_OPTIONS": {},
            "SECRET_KEY": "test-secret",
            "RATELIMIT_ENABLED": False,
            "RATELIMIT_STORAGE_URI": "memory://",
            "LOG_LEVEL": "WARNING",
        }
    )

    with app.app_context():
        driver = db.engine.url.drivername
        if driver != "sqlite":
            raise RuntimeError(
                f"Test database must be SQLite, got '{driver}'. Refusing to run destructive test setup."
            )
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    # The fixture app context is reused by every request, so Flask-Login's
    # per-context user cache has to be dropped between requests.
    @app.before_request
    def reset_cached_login():
        g.pop("_login_user", None)

    return app.test_client()


@pytest.fixture()
def db_session(app):
    with app.app_context():
        yield db.session


@pytest.fixture()
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(email=None, role=ROLE_STUDENT, active=True):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@ucao.example",
            password_hash=generate_password_hash(PASSWORD, method="pbkdf2:sha256"),
            role=role,
            active=active,
        )
        db_session.add(user)
        db_session.flush()
        return user

    return _make_user


@pytest.fixture()
def make_student(db_session, make_user):
    def _make_student(
        program="Informatique de Gestion",
        year=2,
        representative=False,
        delegate=False,
        user=None,
        active=True,
        school=None,
    ):
        user = user or make_user(active=active)
        student = Student(
            user_id=user.id,
            last_name=f"Nom{user.id}",
            first_name=f"Prenom{user.id}",
            program=program,
            year=year,
            school=school,
            is_room_representative=representative,
            is_school_delegate=delegate,
        )
        db_session.add(student)
        db_session.commit()
        return student

    return _make_student


@pytest.fixture()
def make_election(db_session):
    def _make_election(
        election_type="ROOM",
        program="Informatique de Gestion",
        year=2,
        school=None,
        phase="voting",
        is_active=True,
        title="Election de test",
    ):
        now = utcnow()
        if phase == "voting":
            candidacy_start = now - timedelta(days=3)
            vote_start = now - timedelta(days=1)
            vote_end = now + timedelta(days=1)
        elif phase == "candidacy":
            candidacy_start = now - timedelta(hours=1)
            vote_start = now + timedelta(days=2)
            vote_end = now + timedelta(days=3)
        elif phase == "ended":
            candidacy_start = now - timedelta(days=5)
            vote_start = now - timedelta(days=3)
            vote_end = now - timedelta(minutes=1)
        else:
            raise ValueError(phase)

        if election_type != "ROOM":
            program = None
            year = None
        election = Election(
            type=election_type,
            title=title,
            program=program,
            year=year,
            school=school,
            candidacy_start=candidacy_start,
            candidacy_end=candidacy_start + timedelta(days=1),
            vote_start=vote_start,
            vote_end=vote_end,
            is_active=is_active,
        )
        db_session.add(election)
        db_session.commit()
        return election

    return _make_election


@pytest.fixture()
def make_candidate(db_session, make_student):
    def _make_candidate(election, student=None, status="APPROVED"):
        student = student or make_student(program=election.program or "Droit", year=election.year or 2)
        candidate = Candidate(
            user_id=student.user_id,
            election_id=election.id,
            last_name=student.last_name,
            first_name=student.first_name,
            status=status,
        )
        db_session.add(candidate)
        db_session.commit()
        return candidate

    return _make_candidate


@pytest.fixture()
def admin_user(make_user, db_session):
    user = make_user(email="admin@ucao.example", role=ROLE_ADMIN)
    db_session.commit()
    return user


@pytest.fixture()
def auth_headers(app):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {generate_session_token(user)}"}

    return _auth_headers


@pytest.fixture()
def user_password():
    return PASSWORD
