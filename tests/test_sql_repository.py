"""
Contract tests for SignupCodeRepository against a temporary SQLite database.
"""
from __future__ import annotations

from datetime import timedelta

import pytest

from signupcodes.core import config as core_config
from signupcodes.db import session as db_session
from signupcodes.domain.codes import utcnow
from signupcodes.repositories.sql_repository import (
    DuplicateCodeError,
    SignupCodeRepository,
    StoreUnavailableError,
)


def test_create_and_get(repo, make_code):
    expires = utcnow() + timedelta(days=3)
    created = make_code("ABC123", max_usages=5, expires_at=expires)

    assert created.code == "ABC123"
    assert created.current_usages == 0
    assert created.is_active is True
    assert created.created_at is not None
    assert created.updated_at is not None

    fetched = repo.get("ABC123")
    assert fetched is not None
    assert fetched.max_usages == 5
    assert fetched.created_by == "admin-1"
    assert fetched.expires_at == expires
    assert repo.get("ZZZ999") is None


def test_create_duplicate_code_raises(make_code):
    make_code("DUP001")
    with pytest.raises(DuplicateCodeError):
        make_code("DUP001")


def test_find_eligible_filters_out_every_ineligible_state(repo, make_code):
    make_code("OK0001")
    make_code("OFF001", is_active=False)
    make_code("OLD001", expires_at=utcnow() - timedelta(seconds=1))
    make_code("FUL001", max_usages=1, current_usages=1)
    make_code("FUT001", expires_at=utcnow() + timedelta(hours=1))

    assert repo.find_eligible("OK0001") is not None
    assert repo.find_eligible("FUT001") is not None
    assert repo.find_eligible("OFF001") is None
    assert repo.find_eligible("OLD001") is None
    assert repo.find_eligible("FUL001") is None
    assert repo.find_eligible("NOPE00") is None


def test_conditional_increment_checks_capacity_at_write_time(repo, make_code):
    make_code("INC001", max_usages=3)

    first = repo.conditional_increment("INC001", 1)
    assert first is not None
    assert first.current_usages == 1

    # Caller's view of the ceiling is enforced even if the row allows more.
    assert repo.conditional_increment("INC001", 1) is None
    assert repo.get("INC001").current_usages == 1

    # Stored ceiling is enforced even if the caller's view is stale.
    repo.update_admin("INC001", {"max_usages": 1})
    assert repo.conditional_increment("INC001", 3) is None
    assert repo.get("INC001").current_usages == 1


def test_conditional_increment_rejects_inactive_and_expired(repo, make_code):
    make_code("OFF002", is_active=False)
    make_code("OLD002", expires_at=utcnow() - timedelta(seconds=1))

    assert repo.conditional_increment("OFF002", 2) is None
    assert repo.conditional_increment("OLD002", 2) is None
    assert repo.get("OFF002").current_usages == 0
    assert repo.get("OLD002").current_usages == 0


def test_deactivate_is_idempotent(repo, make_code):
    make_code("DEA001")
    assert repo.deactivate("DEA001") is True
    assert repo.deactivate("DEA001") is True
    assert repo.get("DEA001").is_active is False
    assert repo.deactivate("NOPE00") is False


def test_deactivate_only_if_exhausted_leaves_open_codes_alone(repo, make_code):
    make_code("DEA002", max_usages=2, current_usages=1)
    assert repo.deactivate("DEA002", only_if_exhausted=True) is False
    assert repo.get("DEA002").is_active is True

    repo.conditional_increment("DEA002", 2)
    assert repo.deactivate("DEA002", only_if_exhausted=True) is True
    assert repo.get("DEA002").is_active is False


def test_update_admin_changes_only_given_fields(repo, make_code):
    expires = utcnow() + timedelta(days=1)
    make_code("ADM001", max_usages=2, expires_at=expires)

    updated = repo.update_admin("ADM001", {"max_usages": 10})
    assert updated.max_usages == 10
    assert updated.expires_at == expires
    assert updated.is_active is True

    cleared = repo.update_admin("ADM001", {"expires_at": None, "is_active": False, "current_usages": 99})
    assert cleared.expires_at is None
    assert cleared.is_active is False
    assert cleared.current_usages == 0

    assert repo.update_admin("NOPE00", {"max_usages": 3}) is None


def test_list_codes_filters(repo, make_code):
    make_code("LST001", created_by="alice")
    make_code("LST002", created_by="alice", is_active=False)
    make_code("LST003", created_by="bob")

    assert {r.code for r in repo.list_codes()} == {"LST001", "LST002", "LST003"}
    assert {r.code for r in repo.list_codes(created_by="alice")} == {"LST001", "LST002"}
    assert [r.code for r in repo.list_codes(created_by="alice", active_only=True)] == ["LST001"]
    assert len(repo.list_codes(limit=2)) == 2


def test_unreachable_database_is_reported_as_unavailable(tmp_path, monkeypatch):
    missing = tmp_path / "missing-dir" / "db.sqlite"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{missing}")
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]
    try:
        repo = SignupCodeRepository()
        with pytest.raises(StoreUnavailableError):
            repo.find_eligible("ABC123")
        with pytest.raises(StoreUnavailableError):
            repo.conditional_increment("ABC123", 1)
    finally:
        db_session.get_engine.cache_clear()
        db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]
        core_config.get_settings.cache_clear()


def test_create_tables_reports_new_tables_once(tmp_path, monkeypatch):
    from signupcodes.db.create_tables import create_all

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'schema.db'}")
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]
    try:
        assert create_all() == ["signup_codes"]
        assert create_all() == []
    finally:
        db_session.get_engine().dispose()
        db_session.get_engine.cache_clear()
        db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]
        core_config.get_settings.cache_clear()
