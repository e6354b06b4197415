import pytest

from replydesk.app.core.errors import DuplicateTemplate
from replydesk.app.models.quick_reply_template import QuickReplyTemplate
from replydesk.app.services import quick_reply_service as service


def test_create_template_owned_by_caller(db, user):
    t = service.create_template(db, user, "Test Template", "This is a test template text.")
    assert t.name == "Test Template"
    assert t.template_text == "This is a test template text."
    assert t.user_id == user.user_id
    assert t.is_active is True
    assert t.sort_order == 0


def test_templates_are_shared_and_ordered(db, user, other_user):
    service.create_template(db, user, "Zeta", "z", 1)
    service.create_template(db, other_user, "Alpha", "a", 2)
    service.create_template(db, user, "Beta", "b", 1)
    names = [t.name for t in service.get_user_templates(db)]
    assert names == ["Beta", "Zeta", "Alpha"]


def test_inactive_templates_are_hidden(db, user):
    t = service.create_template(db, user, "Old", "old text")
    assert service.update_template(db, user, t.id, {"is_active": False}) is True
    assert service.get_template(db, t.id) is None
    assert service.get_user_templates(db) == []


def test_update_template(db, user):
    t = service.create_template(db, user, "Original", "Original text")
    assert service.update_template(db, user, t.id, {"name": "Updated", "template_text": "Updated text"}) is True
    updated = service.get_template(db, t.id)
    assert updated.name == "Updated"
    assert updated.template_text == "Updated text"


def test_non_owner_cannot_update_or_delete(db, user, other_user):
    t = service.create_template(db, user, "Mine", "mine")
    assert service.update_template(db, other_user, t.id, {"name": "Hijacked"}) is False
    assert service.delete_template(db, other_user, t.id) is False
    db.expire_all()
    assert service.get_template(db, t.id).name == "Mine"


def test_delete_template(db, user):
    tid = service.create_template(db, user, "To Delete", "Delete me").id
    assert service.delete_template(db, user, tid) is True
    assert service.get_template(db, tid) is None
    assert service.delete_template(db, user, tid) is False


def test_template_names_unique_per_owner(db, user, other_user):
    service.create_template(db, user, "Dup", "first")
    with pytest.raises(DuplicateTemplate):
        service.create_template(db, user, "Dup", "second")
    service.create_template(db, other_user, "Dup", "theirs")
    assert db.query(QuickReplyTemplate).filter(QuickReplyTemplate.name == "Dup").count() == 2


def test_rename_onto_existing_name_is_rejected(db, user):
    service.create_template(db, user, "First", "a")
    tid = service.create_template(db, user, "Second", "b").id
    with pytest.raises(DuplicateTemplate):
        service.update_template(db, user, tid, {"name": "First"})
    assert service.get_template(db, tid).name == "Second"


def test_default_templates_are_idempotent(db, user):
    service.create_default_templates(db, user)
    service.create_default_templates(db, user)
    templates = service.get_user_templates(db)
    assert len(templates) == 3
    assert templates[0].name == "Account Activation (German)"
    assert "www.myitjob.ch" in templates[0].template_text
    assert db.query(QuickReplyTemplate).filter(QuickReplyTemplate.user_id == user.user_id).count() == 3


def test_template_api_crud(client):
    r = client.post('/settings/quick-reply-templates', json={"name": "Hello", "template_text": "Hi there", "sort_order": 2})
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Template created successfully."
    tid = body["template"]["id"]

    r = client.put(f'/settings/quick-reply-templates/{tid}', json={"name": "Hello 2", "template_text": "Hi again"})
    assert r.status_code == 200
    listing = client.get('/settings/quick-reply-templates').json()["templates"]
    assert [t["name"] for t in listing] == ["Hello 2"]

    r = client.delete(f'/settings/quick-reply-templates/{tid}')
    assert r.status_code == 200
    assert client.get('/settings/quick-reply-templates').json()["templates"] == []


def test_template_api_rejects_non_owner(client, db, other_user):
    t = service.create_template(db, other_user, "Theirs", "text")
    r = client.put(f'/settings/quick-reply-templates/{t.id}', json={"name": "x", "template_text": "y"})
    assert r.status_code == 404
    assert r.json() == {"message": "Template not found."}
    r = client.delete(f'/settings/quick-reply-templates/{t.id}')
    assert r.status_code == 404


def test_template_api_validation(client):
    r = client.post('/settings/quick-reply-templates', json={"name": "", "template_text": "x"})
    assert r.status_code == 422
    r = client.post('/settings/quick-reply-templates', json={"name": "ok", "template_text": "x", "sort_order": -1})
    assert r.status_code == 422


def test_template_api_duplicate_name(client):
    payload = {"name": "Hello", "template_text": "Hi there"}
    assert client.post('/settings/quick-reply-templates', json=payload).status_code == 200
    r = client.post('/settings/quick-reply-templates', json=payload)
    assert r.status_code == 422
    assert r.json() == {"message": "A template named 'Hello' already exists."}
    assert len(client.get('/settings/quick-reply-templates').json()["templates"]) == 1


def test_create_defaults_endpoint(client):
    r = client.post('/settings/quick-reply-templates/create-defaults')
    assert r.status_code == 200
    assert len(client.get('/settings/quick-reply-templates').json()["templates"]) == 3


def test_seed_script(db, capsys):
    from replydesk.app.scripts.seed_templates import main
    main(["--user-id", "3"])
    main(["--user-id", "3"])
    assert db.query(QuickReplyTemplate).filter(QuickReplyTemplate.user_id == 3).count() == 3
    assert "Seeded 3 templates for user 3" in capsys.readouterr().out
