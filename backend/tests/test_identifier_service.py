"""
Identifier allocation: max + 1 with compare-and-swap reservation.
"""

import pytest

from app import create_app
from app.extensions import db
from app.models import Category, IdSequence
from app.services import category_service, identifier_service
from app.services.identifier_service import AllocationState, next_id
from app.validation import ConflictError


class TestNextId:

    def test_empty_table_starts_at_one(self, db_session):
        assert next_id(Category) == 1

    def test_follows_existing_max(self, category):
        db.session.add(Category(id=41, name="Otra"))
        db.session.commit()
        assert next_id(Category) == 42

    def test_consecutive_allocations_in_one_transaction(self, db_session):
        first = next_id(Category)
        second = next_id(Category)
        assert (first, second) == (1, 2)
        assert db.session.get(IdSequence, "categories").last_value == 2

    def test_rollback_releases_reservation(self, db_session):
        next_id(Category)
        db.session.rollback()
        assert next_id(Category) == 1

    def test_stale_first_reservation_conflicts(self, db_session, monkeypatch):
        next_id(Category)
        monkeypatch.setattr(
            identifier_service,
            "read_allocation_state",
            lambda model: AllocationState(max_pk=0, last_reserved=None),
        )
        with pytest.raises(ConflictError):
            next_id(Category)

    def test_stale_sequence_value_conflicts(self, db_session, monkeypatch):
        next_id(Category)
        next_id(Category)
        monkeypatch.setattr(
            identifier_service,
            "read_allocation_state",
            lambda model: AllocationState(max_pk=0, last_reserved=1),
        )
        with pytest.raises(ConflictError):
            next_id(Category)


class TestConcurrentSessions:
    """Two sessions on one file-backed database racing for the same id."""

    @pytest.fixture
    def file_app(self, tmp_path):
        file_app = create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'race.db'}",
            'SECRET_KEY': 'test-secret-key',
            'MAIL_SUPPRESS_SEND': True,
        })
        with file_app.app_context():
            db.create_all()
            yield file_app
            db.session.remove()
            db.engine.dispose()

    def test_session_that_reserves_second_conflicts(self, file_app, monkeypatch):
        real_read = identifier_service.read_allocation_state
        raced = []

        def read_then_other_session_commits(model):
            state = real_read(model)
            if not raced:
                raced.append(model)
                # A second app context owns a separate session and connection
                with file_app.app_context():
                    category_service.create_category({"name": "Snacks"})
            return state

        monkeypatch.setattr(identifier_service, "read_allocation_state", read_then_other_session_commits)

        with pytest.raises(ConflictError):
            category_service.create_category({"name": "Bebidas"})

        assert [(c.id, c.name) for c in db.session.query(Category).all()] == [(1, "Snacks")]
        assert db.session.get(IdSequence, "categories").last_value == 1

    def test_sequential_sessions_do_not_conflict(self, file_app):
        with file_app.app_context():
            category_service.create_category({"name": "Snacks"})

        created = category_service.create_category({"name": "Bebidas"})

        assert created["category_id"] == 2
