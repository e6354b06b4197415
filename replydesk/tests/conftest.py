import os
import tempfile

# Point the app at a throwaway database before anything imports it
_tmpdir = tempfile.mkdtemp(prefix="replydesk-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ.pop("REPLYDESK_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from replydesk.app.main import app
from replydesk.app.db.database import Base, engine, SessionLocal
from replydesk.app.core.errors import UpstreamError
from replydesk.app.schemas.email import EmailDetail, EmailSummary
from replydesk.app.security.auth import UserContext, get_current_user
from replydesk.app.services.ai_client import get_ai_client
from replydesk.app.services.mailbox import get_mailbox
from replydesk.app.services.mailer import get_transport


class FakeAI:
    def __init__(self, replies=None, error=None):
        self.replies = list(replies or ["Thanks for reaching out!"])
        self.error = error
        self.calls = []

    def complete(self, messages):
        self.calls.append([dict(m) for m in messages])
        if self.error:
            raise UpstreamError(self.error, service='ai')
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


class FakeMailbox:
    def __init__(self, emails=None, error=None):
        self.emails = {e.id: e for e in (emails or [])}
        self.error = error

    def list_inbox(self, account=None):
        if self.error:
            raise RuntimeError(self.error)
        return [EmailSummary(id=e.id, subject=e.subject, sender=e.sender, date=e.date, message_id=e.message_id)
                for e in self.emails.values()]

    def get_email(self, email_id, account=None):
        if self.error:
            raise RuntimeError(self.error)
        return self.emails.get(email_id)


class FakeTransport:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def deliver(self, account, recipient, subject, body, in_reply_to=None):
        if self.error:
            raise RuntimeError(self.error)
        self.sent.append({"account": account, "recipient": recipient, "subject": subject, "body": body, "in_reply_to": in_reply_to})


def make_email(email_id="101", subject="Question about my order", sender="alice@example.com", body="Where is my parcel?"):
    return EmailDetail(
        id=email_id,
        subject=subject,
        sender=sender,
        to="support@example.com",
        date="Mon, 06 Oct 2025 09:30:00 +0000",
        message_id=f"<{email_id}@mail.example.com>",
        body=body,
        html=None,
    )


@pytest.fixture(autouse=True)
def _reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user():
    return UserContext(user_id=1)


@pytest.fixture
def other_user():
    return UserContext(user_id=2)


@pytest.fixture
def email():
    return make_email()


@pytest.fixture
def fake_ai():
    return FakeAI()


@pytest.fixture
def mailbox(email):
    return FakeMailbox([email])


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(fake_ai, mailbox, transport, user):
    app.dependency_overrides[get_ai_client] = lambda: fake_ai
    app.dependency_overrides[get_mailbox] = lambda: mailbox
    app.dependency_overrides[get_transport] = lambda: transport
    app.dependency_overrides[get_current_user] = lambda: user
    yield TestClient(app)
    app.dependency_overrides.clear()
