from __future__ import annotations

import importlib.util
import io
from pathlib import Path

from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext

VERSIONS = Path(__file__).resolve().parents[1] / "alembic" / "versions"


def _load(name: str):
    spec = importlib.util.spec_from_file_location(name, VERSIONS / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _offline_sql(dialect_name: str) -> str:
    buf = io.StringIO()
    ctx = MigrationContext.configure(dialect_name=dialect_name, opts={"as_sql": True, "output_buffer": buf})
    with Operations.context(ctx):
        _load("0001_initial_finbook_schema").upgrade()
    return buf.getvalue()


def test_initial_migration_renders_for_postgresql():
    sql = _offline_sql("postgresql")
    assert "is_active BOOLEAN DEFAULT true NOT NULL" in sql
    assert "CREATE TABLE payment_reminders" in sql


def test_initial_migration_renders_for_sqlite():
    sql = _offline_sql("sqlite")
    assert "CREATE TABLE users" in sql
    assert "CONSTRAINT uq_reminder_period UNIQUE (user_id, type, period_key)" in sql
