from conftest import FakeAI, FakeMailbox
from replydesk.app.main import app
from replydesk.app.models.email_reply import EmailReply
from replydesk.app.services import quick_reply_service
from replydesk.app.services.ai_client import get_ai_client
from replydesk.app.services.mailbox import get_mailbox
from replydesk.app.services.reply_lifecycle import get_reply


def test_list_inbox(client):
    r = client.get('/inbox?account=info')
    assert r.status_code == 200
    data = r.json()
    assert data["account"] == "info"
    assert data["emails"][0]["id"] == "101"
    assert data["emails"][0]["from"] == "alice@example.com"


def test_list_inbox_connection_error(client):
    app.dependency_overrides[get_mailbox] = lambda: FakeMailbox(error="connection refused")
    r = client.get('/inbox')
    assert r.status_code == 200
    data = r.json()
    assert data["emails"] == []
    assert data["error"] == "Failed to connect to the email server: connection refused"


def test_show_unknown_email_is_not_a_404(client):
    r = client.get('/inbox/does-not-exist')
    assert r.status_code == 200
    assert r.json()["email"] is None
    assert r.json()["error"] == "Email not found"


def test_show_email_with_existing_draft(client, fake_ai):
    client.post('/inbox/101/generate-reply', json={"instruction": "Say hi"})
    data = client.get('/inbox/101').json()
    assert data["email"]["subject"] == "Question about my order"
    assert data["latest_reply"] == "Thanks for reaching out!"
    assert data["status"] == "draft"
    assert len(data["chat_history"]) == 4


def test_generate_reply_seeds_then_appends(client, db, user, fake_ai):
    r = client.post('/inbox/101/generate-reply', json={"instruction": "Apologise for the delay"})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["message"] == "Reply generated successfully."
    assert [m["role"] for m in data["chat_history"]] == ["system", "user", "user", "assistant"]
    assert data["instruction_source"] == "instruction"

    r = client.post('/inbox/101/generate-reply', json={"refinementOptions": {"tone": "friendly", "length": "concise"}})
    history = r.json()["chat_history"]
    assert len(history) == 6
    assert history[4] == {"role": "user", "content": "Friendly and warm tone, make it concise and brief."}
    assert db.query(EmailReply).count() == 1
    assert len(get_reply(db, user, "101", "default").chat_history) == 6


def test_generate_reply_uses_template_first(client, db, user, fake_ai):
    t = quick_reply_service.create_template(db, user, "Thanks", "Thank you for your email.")
    r = client.post('/inbox/101/generate-reply', json={
        "templateId": t.id,
        "instruction": "ignored",
        "refinementOptions": {"tone": "formal"},
    })
    assert r.json()["instruction_source"] == "template"
    sent = fake_ai.calls[0][-1]["content"]
    assert sent.startswith("Use this template as the basis for your reply")
    assert "Thank you for your email." in sent


def test_generate_reply_fallback_instruction(client, fake_ai):
    client.post('/inbox/101/generate-reply', json={})
    assert fake_ai.calls[0][-1] == {"role": "user", "content": "Generate a reply to this email."}


def test_generate_reply_rejects_bad_options(client):
    r = client.post('/inbox/101/generate-reply', json={"refinementOptions": {"formality": 9}})
    assert r.status_code == 422


def test_generate_reply_unknown_email(client, fake_ai):
    r = client.post('/inbox/nope/generate-reply', json={"instruction": "x"})
    assert r.status_code == 200
    assert r.json()["email"] is None
    assert fake_ai.calls == []


def test_generate_reply_upstream_failure(client, db):
    app.dependency_overrides[get_ai_client] = lambda: FakeAI(error="rate limited")
    r = client.post('/inbox/101/generate-reply', json={"instruction": "x"})
    assert r.status_code == 502
    assert r.json()["detail"] == "rate limited"
    assert db.query(EmailReply).count() == 0


def test_send_reply_success(client, db, user, transport):
    r = client.post('/inbox/101/send-reply?account=info', json={"reply": "  Hi Alice  ", "signature": "Bob"})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["redirect"] == "/inbox?account=info"
    assert transport.sent[0]["body"] == "Hi Alice\n\nBob"
    row = get_reply(db, user, "101", "info")
    assert row.status == "sent"


def test_send_reply_failure(client, db, user, transport):
    transport.error = "SMTP connection failed"
    r = client.post('/inbox/101/send-reply', json={"reply": "Hi"})
    data = r.json()
    assert data["success"] is False
    assert data["message"] == "Failed to send reply. Please try again."
    row = get_reply(db, user, "101", "default")
    assert row.status == "failed"
    assert row.error_message == "SMTP connection failed"


def test_send_reply_requires_body(client):
    assert client.post('/inbox/101/send-reply', json={}).status_code == 422
    assert client.post('/inbox/101/send-reply', json={"reply": ""}).status_code == 422


def test_mailbox_errors_render_not_found_payload(client, db, fake_ai, transport):
    app.dependency_overrides[get_mailbox] = lambda: FakeMailbox(error="UID command error: BAD [b'Invalid uidset']")
    for method, url, body in [
        ('get', '/inbox/not-a-uid', None),
        ('post', '/inbox/not-a-uid/generate-reply', {"instruction": "x"}),
        ('post', '/inbox/not-a-uid/send-reply', {"reply": "Hi"}),
    ]:
        r = client.request(method, url, json=body)
        assert r.status_code == 200, url
        data = r.json()
        assert data["email"] is None
        assert data["success"] is False
        assert data["error"].startswith("Failed to retrieve email: UID command error")
    assert fake_ai.calls == []
    assert transport.sent == []
    assert db.query(EmailReply).count() == 0


def test_send_reply_unknown_email(client, transport):
    r = client.post('/inbox/nope/send-reply?account=info', json={"reply": "Hi"})
    assert r.status_code == 200
    assert r.json() == {
        "email": None, "error": "Email not found", "message": "Email not found", "account": "info", "success": False,
    }
    assert transport.sent == []
