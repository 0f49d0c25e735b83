"""
Shared pytest fixtures for inbox triage tests.
"""

from email.message import EmailMessage

import pytest

from domain.errors import DeliveryError, MailboxConnectionError
from domain.models import DepartmentDirectory, PipelineRequest, RawMessage


def build_raw(
    uid: int,
    subject: str | None = "Order issue",
    text: str | None = "Hello, my order never arrived.",
    html: str | None = None,
    attachments: list[tuple[str, bytes, str]] | None = None,
) -> RawMessage:
    """Build an RFC822 payload the way a mail client would send it."""
    msg = EmailMessage()
    msg["From"] = "customer@example.com"
    msg["To"] = "triage@co.com"
    if subject is not None:
        msg["Subject"] = subject
    if text is not None:
        msg.set_content(text)
        if html is not None:
            msg.add_alternative(html, subtype="html")
    elif html is not None:
        msg.set_content(html, subtype="html")
    for filename, content, ctype in attachments or []:
        maintype, subtype = ctype.split("/")
        msg.add_attachment(content, maintype=maintype, subtype=subtype, filename=filename)
    return RawMessage(uid=uid, payload=msg.as_bytes())


class FakeInbox:
    """In-memory mailbox session recording lifecycle calls."""

    def __init__(self, messages=(), open_error=None, fetch_error=None):
        self.messages = list(messages)
        self.open_error = open_error
        self.fetch_error = fetch_error
        self.opened_with = None
        self.closed = 0
        self.handled: list[int] = []
        self.fetch_limit = "unset"

    def __call__(self, credentials):
        self.opened_with = credentials
        return self

    def __enter__(self):
        if self.open_error:
            raise self.open_error
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed += 1

    def fetch_unread(self, limit=None):
        self.fetch_limit = limit
        if self.fetch_error:
            raise self.fetch_error
        return list(self.messages)

    def mark_handled(self, message):
        self.handled.append(message.uid)


class StubCategorizer:
    """Deterministic categorization service: answer by subject."""

    def __init__(self, answers: dict[str, str] | None = None, default: str = "other", errors=None):
        self.answers = answers or {}
        self.default = default
        self.errors = errors or {}
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for subject, exc in self.errors.items():
            if f"Subject: {subject}\n" in prompt:
                raise exc
        for subject, label in self.answers.items():
            if f"Subject: {subject}\n" in prompt:
                return label
        return self.default


class RecordingForwarder:
    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.sent: list[dict] = []

    def forward(self, **kwargs):
        if kwargs["subject"] in self.fail_for:
            raise DeliveryError("Delivery failed: SMTPDataError")
        self.sent.append(kwargs)


@pytest.fixture
def directory() -> DepartmentDirectory:
    return DepartmentDirectory.from_mapping({"sales": "sales@co.com", "support": "support@co.com"})


@pytest.fixture
def payload() -> dict:
    return {
        "email": "triage@co.com",
        "password": "app-password",
        "fallbackEmail": "other@co.com",
        "departmentList": {"sales": "sales@co.com", "support": "support@co.com"},
    }


@pytest.fixture
def triage_request(payload) -> PipelineRequest:
    return PipelineRequest.from_payload(payload)


@pytest.fixture
def auth_failure() -> MailboxConnectionError:
    return MailboxConnectionError("Could not connect to the mailbox")


@pytest.fixture
def make_raw():
    return build_raw


@pytest.fixture
def fake_inbox():
    return FakeInbox


@pytest.fixture
def stub_categorizer():
    return StubCategorizer


@pytest.fixture
def recording_forwarder():
    return RecordingForwarder
