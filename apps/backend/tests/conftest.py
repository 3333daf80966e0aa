from __future__ import annotations

import os
import tempfile
from datetime import date, datetime
from decimal import Decimal
from typing import Generator, Any

import pytest
import resend
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from finbook.core.config import settings
from finbook.core.database import Base, get_db
from finbook.main import app
from finbook import models
from finbook.services.entry_cache import entry_cache


@pytest.fixture(scope="session")
def test_db_url() -> Generator[str, Any, Any]:
    # 사용자 환경을 건드리지 않도록 임시 파일 SQLite 사용
    fd, path = tempfile.mkstemp(prefix="finbook_test_", suffix=".sqlite3")
    os.close(fd)
    url = f"sqlite:///{path}"
    yield url
    try:
        os.remove(path)
    except OSError:
        pass


@pytest.fixture(scope="session")
def engine(test_db_url: str):
    eng = create_engine(test_db_url, connect_args={"check_same_thread": False})
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Any, Any, Any]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    # 간단 시드: demo user(1), Free plan
    user = models.User(email="demo@example.com", is_active=True)
    session.add(user)
    session.flush()
    session.add(models.UserProfile(user_id=user.id, name="Demo"))
    session.commit()

    try:
        yield session
    finally:
        session.close()
        # 테이블 데이터 정리 (SQLAlchemy 2.x 스타일)
        with engine.begin() as conn:
            if engine.dialect.name == "sqlite":
                conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
            for tbl in reversed(Base.metadata.sorted_tables):
                conn.execute(tbl.delete())
            if engine.dialect.name == "sqlite":
                conn.exec_driver_sql("PRAGMA foreign_keys=ON")


@pytest.fixture(autouse=True)
def override_dependency(db_session):
    # FastAPI DI override
    def _get_db_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db_override
    yield
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_entry_cache():
    # SQLite reuses user ids across tests
    entry_cache.clear()
    yield
    entry_cache.clear()


@pytest.fixture()
def client(db_session):
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def demo_user(db_session) -> models.User:
    return db_session.query(models.User).filter_by(email="demo@example.com").one()


def make_user(session, email: str, plan: models.Plan = models.Plan.FREE, **profile_kwargs) -> models.User:
    user = models.User(email=email, is_active=True)
    session.add(user)
    session.flush()
    session.add(models.UserProfile(user_id=user.id, name=email.split("@")[0], plan=plan, **profile_kwargs))
    session.commit()
    session.refresh(user)
    return user


def make_entry(
    session,
    user: models.User,
    kind: models.EntryKind = models.EntryKind.RECEIVED,
    *,
    name: str = "Invoice",
    amount: str = "100.00",
    on: date | None = None,
    due: date | None = None,
    client_email: str | None = None,
    created_at: datetime | None = None,
    **extra,
) -> models.Entry:
    row = models.Entry(
        user_id=user.id,
        name=name,
        amount=Decimal(amount),
        date=on or models.today_local(),
        due_date=due,
        payment_mode=models.PaymentMode.BANK_TRANSFER,
        client_email=client_email,
        **extra,
    )
    row.kind = kind
    if created_at is not None:
        row.created_at = created_at
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


@pytest.fixture()
def pro_user(db_session) -> models.User:
    return make_user(db_session, "pro@example.com", plan=models.Plan.PRO)


@pytest.fixture()
def act_as():
    from finbook.core.deps import get_current_user

    def _override(user: models.User):
        app.dependency_overrides[get_current_user] = lambda: user

    return _override


@pytest.fixture()
def sent_emails(monkeypatch) -> list[dict]:
    """Replace the Resend client with a recorder."""
    outbox: list[dict] = []

    def _fake_send(params):
        outbox.append(params)
        return {"id": f"email_{len(outbox)}"}

    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(resend.Emails, "send", _fake_send)
    return outbox


@pytest.fixture()
def failing_email(monkeypatch):
    def _boom(params):
        raise RuntimeError("provider down")

    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(resend.Emails, "send", _boom)
