"""
Pytest configuration and fixtures for campusvote tests.

This module provides:
- An in-memory MongoDB (mongomock) behind the real Database context
- Wired services with a mocked credential mailer
- FastAPI test client and auth header helpers
- Voter and poll factories
"""
import itertools
from unittest.mock import MagicMock

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from campusvote.database import Database
from campusvote.main import create_app
from campusvote.security import Identity, create_access_token
from campusvote.services import build_services


@pytest.fixture
def db():
    """Fresh in-memory database with the production indexes."""
    return Database(client=mongomock.MongoClient(), db_name="campusvote_test")


@pytest.fixture
def mailer():
    """Credential mailer that always reports success."""
    m = MagicMock()
    m.send_credentials.return_value = True
    return m


@pytest.fixture
def services(db, mailer):
    return build_services(db, mailer)


@pytest.fixture
def make_voter(services):
    """Factory creating voters with unique reg numbers and emails."""
    counter = itertools.count(1)

    def _make_voter(year="2", section="B", department="IT", **overrides):
        n = next(counter)
        record = {
            "reg_no": f"REG{n:04d}",
            "name": f"Student {n}",
            "email": f"student{n}@college.edu",
            "year": year,
            "section": section,
            "department": department,
        }
        record.update(overrides)
        return services.voters.create_voter(record)

    return _make_voter


@pytest.fixture
def make_poll(services):
    """Factory creating polls, opened unless ``active=False``."""

    def _make_poll(target_year="2", target_section="ALL", target_department="IT",
                   candidates=("Alice", "Bob"), active=True, title="Class Representative"):
        poll = services.polls.create_poll({
            "title": title,
            "description": "Test poll",
            "target_year": target_year,
            "target_section": target_section,
            "target_department": target_department,
            "candidates": list(candidates),
        }, created_by="admin")
        if active:
            poll = services.polls.toggle_poll(poll["_id"], True)
        return poll

    return _make_poll


@pytest.fixture
def client(services):
    """FastAPI test client bound to the in-memory services."""
    return TestClient(create_app(services))


def auth_headers(user_id, role: str) -> dict:
    token = create_access_token(Identity(id=str(user_id), role=role))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return auth_headers(ObjectId(), "admin")


@pytest.fixture
def voter_headers():
    """Build bearer headers for a stored voter document."""

    def _voter_headers(voter):
        return auth_headers(voter["_id"], "voter")

    return _voter_headers
