from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Garante que o pacote signupcodes seja importável durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from signupcodes.core import config as core_config  # noqa: E402
from signupcodes.db import models  # noqa: E402
from signupcodes.db import session as db_session  # noqa: E402
from signupcodes.domain.codes import CodeRecord  # noqa: E402
from signupcodes.repositories.sql_repository import SignupCodeRepository  # noqa: E402


def _reset_caches() -> None:
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Configura um SQLite temporário e garante teardown completo para não deixar o arquivo bloqueado no Windows."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("DATABASE_TIMEOUT_SECONDS", "30")
    _reset_caches()

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    try:
        models.Base.metadata.drop_all(bind=engine)
    except Exception:
        pass
    try:
        engine.dispose()
    except Exception:
        pass
    _reset_caches()
    if db_file.exists():
        try:
            db_file.unlink()
        except Exception:
            pass


@pytest.fixture()
def repo(temp_db) -> SignupCodeRepository:
    return SignupCodeRepository()


@pytest.fixture()
def make_code(repo):
    """Insert a signup code row directly through the store."""

    def _make(
        code: str = "ABC123",
        *,
        max_usages: int = 2,
        current_usages: int = 0,
        is_active: bool = True,
        created_by: str = "admin-1",
        expires_at=None,
    ) -> CodeRecord:
        return repo.create(
            CodeRecord(
                code=code,
                max_usages=max_usages,
                current_usages=current_usages,
                is_active=is_active,
                created_by=created_by,
                expires_at=expires_at,
                created_at=None,
                updated_at=None,
            )
        )

    return _make
