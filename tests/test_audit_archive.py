"""Audit trail and the archive of deleted passports."""

import json
from datetime import datetime, timezone

from conftest import API, auth, create_post

from passport_posts_api.app.core.config import settings
from passport_posts_api.app.services.archive_service import ArchiveService


def test_audit_logs_record_actions(client, admin, user):
    token, me = user
    post = create_post(client, token)
    client.delete(f"{API}/passport-posts/{post['_id']}", headers=auth(token))

    forbidden = client.get(f"{API}/audit/logs", headers=auth(token))
    assert forbidden.status_code == 403

    body = client.get(f"{API}/audit/logs", params={"object_type": "passport_post"}, headers=auth(admin[0])).json()
    assert body["count"] == 2
    assert [item["action"] for item in body["data"]] == ["delete", "create"]
    assert all(item["userId"] == me["_id"] for item in body["data"])
    assert body["data"][0]["objectId"] == post["_id"]

    today = datetime.now(timezone.utc).date().isoformat()
    users = client.get(
        f"{API}/audit/logs",
        params={"object_type": "user", "start_date": today, "end_date": today},
        headers=auth(admin[0]),
    ).json()
    assert users["count"] == 2


def test_audit_logs_reject_malformed_dates(client, admin):
    for params in ({"end_date": "2024-13-45"}, {"start_date": "yesterday"}):
        response = client.get(f"{API}/audit/logs", params=params, headers=auth(admin[0]))
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["errors"]

    day = client.get(f"{API}/audit/logs", params={"end_date": "2000-01-01"}, headers=auth(admin[0])).json()
    assert day["count"] == 0


def test_archive_appends_records(database):
    ArchiveService.record_deleted({"_id": "a", "passportNumber": "P1234567"}, 7)
    ArchiveService.record_deleted({"_id": "b", "passportNumber": "P7654321"}, 7)

    path = ArchiveService.archive_path()
    assert path.startswith(str(database / "deleted"))
    assert path.endswith(f"deleted_passports_{datetime.now(timezone.utc).date().isoformat()}.json")

    decoder = json.JSONDecoder()
    text = open(path, encoding="utf-8").read()
    records, position = [], 0
    while text[position:].strip():
        while text[position].isspace():
            position += 1
        record, position = decoder.raw_decode(text, position)
        records.append(record)
    assert [record["passportData"]["_id"] for record in records] == ["a", "b"]
    assert records[0]["deletedBy"] == 7


def test_archive_failure_does_not_raise(database, monkeypatch):
    blocker = database / "blocker"
    blocker.write_text("not a directory")
    monkeypatch.setattr(settings, "deleted_log_dir", str(blocker / "nested"))

    ArchiveService.record_deleted({"_id": "a"}, None)
