from __future__ import annotations

import pytest
from sqlalchemy import inspect

import jobline.database.db as db_module
from jobline.services.job_service import JobService


@pytest.fixture
def memory_engine():
    original = db_module.get_active_database_url()
    db_module.reset_engine("sqlite:///:memory:")
    try:
        yield db_module.get_engine()
    finally:
        db_module.reset_engine(original)


def test_reset_engine_rebinds_url(memory_engine):
    assert db_module.get_active_database_url() == "sqlite:///:memory:"
    assert db_module.verify_database_connection() is True


def test_create_tables_builds_schema(memory_engine):
    db_module.create_tables()

    tables = set(inspect(memory_engine).get_table_names())
    assert {"jobs", "financial_transactions", "emergency_callouts", "job_stage_audit"} <= tables


def test_get_db_session_closes_session(memory_engine):
    with db_module.get_db_session() as session:
        assert session.bind is memory_engine


def test_service_without_session_uses_active_sessionmaker(memory_engine):
    db_module.create_tables()
    with JobService(gating_enforced=True) as service:
        assert service.db.bind is memory_engine
        assert service.get_job(1) is None


def test_get_db_yields_one_session(memory_engine):
    sessions = db_module.get_db()
    session = next(sessions)
    assert session.bind is memory_engine
    sessions.close()
