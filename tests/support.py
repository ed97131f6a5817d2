"""Shared fixtures for the API tests: in-memory database, fake mailer, tokens."""

import unittest
from typing import Optional

from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import gmb_dashboard.models.document_models  # noqa: F401
from gmb_dashboard.core.security import create_access_token
from gmb_dashboard.database import get_session
from gmb_dashboard.main import app
from gmb_dashboard.models.context_models import Principal
from gmb_dashboard.models.document_models import MonthlyInsight
from gmb_dashboard.services.mailer import MailDeliveryError, get_mailer


def memory_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


class RecordingMailer:
    """Collects messages instead of talking to SMTP."""

    def __init__(self, refuse_for: tuple = ()):
        self.sent = []
        self.refuse_for = refuse_for

    def send(self, to: str, subject: str, html: str) -> None:
        if to in self.refuse_for:
            raise MailDeliveryError(f"550 mailbox unavailable: {to}")
        self.sent.append({"to": to, "subject": subject, "html": html})


def insight(business_name: str, month: str, branch: str = "Whitefield", cluster: str = "South", **kw) -> MonthlyInsight:
    return MonthlyInsight(business_name=business_name, month=month, branch=branch, cluster=cluster, **kw)


def bearer(role: str = "Admin", cluster: Optional[str] = None, branch: Optional[str] = None, **kw) -> dict:
    principal = Principal(role=role, cluster=cluster, branch=branch, **kw)
    return {"Authorization": f"Bearer {create_access_token(principal.claims())}"}


class DatabaseTestCase(unittest.TestCase):
    """Fresh in-memory database per test."""

    def setUp(self) -> None:
        self.engine = memory_engine()
        self.session = Session(self.engine)

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()

    def add(self, *rows):
        self.session.add_all(rows)
        self.session.commit()
        for row in rows:
            self.session.refresh(row)
        return rows


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient wired to it."""

    def setUp(self) -> None:
        super().setUp()
        self.mailer = RecordingMailer()
        app.dependency_overrides[get_session] = lambda: self.session
        app.dependency_overrides[get_mailer] = lambda: self.mailer
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        super().tearDown()

    def assert_error(self, response, status_code: int, message: Optional[str] = None) -> None:
        self.assertEqual(status_code, response.status_code, msg=response.text)
        body = response.json()
        self.assertFalse(body["success"])
        if message is not None:
            self.assertEqual(message, body["error"])
