"""
Tests for application email drafting and sending.
"""
import asyncio
import base64
import json

import httpx
import pytest

from jobhunter.core.errors import GatewayError, ValidationError
from jobhunter.db.models.email_application import EmailApplication
from jobhunter.db.models.user import User
from jobhunter.llm.openai_provider import get_llm_provider
from jobhunter.llm.provider import LLMProvider, LLMResponse
from jobhunter.main import app
from jobhunter.services.email_generator import generate_application_email, parse_email
from jobhunter.services.sendgrid_service import SENDGRID_SEND_URL, SendGridClient, get_mailer

RESUME_TEXT = "Jane Doe. Senior Backend Engineer with eight years of Python and payments experience."


class FakeProvider(LLMProvider):
    def __init__(self, content: str):
        self.content = content
        self.calls = []

    def chat(self, messages, model=None, temperature=0.7, max_tokens=None, **kwargs):
        self.calls.append({"messages": messages, "temperature": temperature, "max_tokens": max_tokens})
        return LLMResponse(content=self.content, tokens_in=120, tokens_out=80, model="fake")


class SentMail:
    def __init__(self, status_code: int = 202):
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, headers={"X-Message-Id": "msg-123"}, text="")

    @property
    def payload(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def provider():
    fake = FakeProvider("Subject: Backend Engineer at Acme\n\nDear Hiring Team,\nI would love to join Acme.")
    app.dependency_overrides[get_llm_provider] = lambda: fake
    return fake


@pytest.fixture
def outbox():
    sent = SentMail()
    mailer = SendGridClient(
        "sg-key",
        "noreply@jobhunter.test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(sent)),
    )
    app.dependency_overrides[get_mailer] = lambda: mailer
    return sent


def store_resume(client, text: str = RESUME_TEXT):
    response = client.post("/api/resume/upload", files={"resume": ("cv.txt", text.encode(), "text/plain")})
    assert response.status_code == 200


SEND_PAYLOAD = {
    "to": "jobs@acme.com",
    "subject": "Backend Engineer at Acme",
    "body": "Dear Hiring Team, ...",
    "jobTitle": "Backend Engineer",
    "companyName": "Acme",
    "jobUrl": "https://acme.example/jobs/1",
}


def test_parse_email_with_subject_line():
    email = parse_email("Subject: Hello there\n\nBody line one.\nBody line two.", "Engineer")
    assert email.subject == "Hello there"
    assert email.body == "Body line one.\nBody line two."


def test_parse_email_without_subject_uses_default():
    email = parse_email("Just a body.", "Data Engineer")
    assert email.subject == "Application for Data Engineer"
    assert email.body == "Just a body."


def test_generate_requires_resume_text():
    with pytest.raises(ValidationError):
        generate_application_email(FakeProvider("Subject: x\n\nbody"), "  ", "Engineer", "Acme")


def test_generate_rejects_empty_draft():
    with pytest.raises(ValidationError):
        generate_application_email(FakeProvider("Subject: only a subject"), RESUME_TEXT, "Engineer", "Acme")


def test_generate_email_endpoint(auth_client, provider):
    store_resume(auth_client)
    response = auth_client.post("/api/generate-email", json={
        "jobTitle": "Backend Engineer",
        "companyName": "Acme",
        "jobDescription": "Python, payments",
    })

    assert response.status_code == 200
    assert response.json() == {
        "subject": "Backend Engineer at Acme",
        "body": "Dear Hiring Team,\nI would love to join Acme.",
    }
    prompt = provider.calls[0]["messages"][1]["content"]
    assert "Candidate name: Jane Doe" in prompt
    assert RESUME_TEXT in prompt
    assert provider.calls[0]["temperature"] == 0.6


def test_generate_email_without_resume(auth_client, provider):
    response = auth_client.post("/api/generate-email", json={"jobTitle": "Engineer", "companyName": "Acme"})
    assert response.status_code == 400
    assert response.json() == {"error": "Please upload your resume first"}
    assert provider.calls == []


def test_generate_email_validates_body(auth_client, provider):
    response = auth_client.post("/api/generate-email", json={"companyName": "Acme"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_send_email_records_application(auth_client, db, test_user, outbox):
    response = auth_client.post("/api/send-email", json=SEND_PAYLOAD)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["messageId"] == "msg-123"

    sent = outbox.payload
    assert str(outbox.requests[0].url) == SENDGRID_SEND_URL
    assert outbox.requests[0].headers["Authorization"] == "Bearer sg-key"
    assert sent["personalizations"] == [{"to": [{"email": "jobs@acme.com"}]}]
    assert sent["reply_to"] == {"email": "jane.doe@example.com"}
    assert sent["from"] == {"email": "noreply@jobhunter.test", "name": "Jane Doe"}
    assert "attachments" not in sent

    application = db.query(EmailApplication).filter(EmailApplication.id == body["applicationId"]).one()
    assert application.company_email == "jobs@acme.com"
    assert application.message_id == "msg-123"
    db.expire_all()
    assert db.query(User).filter(User.id == test_user.id).one().total_applications_sent == 1


def test_send_email_attaches_resume(auth_client, outbox):
    store_resume(auth_client)
    response = auth_client.post("/api/send-email", json={**SEND_PAYLOAD, "attachResume": True})

    assert response.status_code == 200
    attachment = outbox.payload["attachments"][0]
    assert attachment["filename"] == "cv.txt"
    assert attachment["type"] == "text/plain"
    assert base64.b64decode(attachment["content"]).decode() == RESUME_TEXT


def test_send_email_gateway_failure_records_nothing(auth_client, db, outbox):
    outbox.status_code = 401
    response = auth_client.post("/api/send-email", json=SEND_PAYLOAD)

    assert response.status_code == 502
    assert "SendGrid" in response.json()["error"]
    assert db.query(EmailApplication).count() == 0


def test_send_email_rejects_bad_address(auth_client, outbox):
    response = auth_client.post("/api/send-email", json={**SEND_PAYLOAD, "to": "not-an-email"})
    assert response.status_code == 400
    assert outbox.requests == []


def test_email_endpoints_require_session(client, provider, outbox):
    assert client.post("/api/send-email", json=SEND_PAYLOAD).status_code == 401
    assert client.post("/api/generate-email", json={"jobTitle": "x", "companyName": "y"}).status_code == 401
    assert outbox.requests == []


def test_mailer_requires_api_key():
    with pytest.raises(ValidationError):
        SendGridClient(None, "noreply@jobhunter.test")


def test_mailer_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused")

    mailer = SendGridClient("k", "noreply@jobhunter.test", http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    with pytest.raises(GatewayError):
        asyncio.run(mailer.send("a@example.com", "s", "b"))
