"""
端到端 API 场景（TestClient，走完整的 lifespan + 中间件 + 路由）。
"""

import time
from datetime import datetime, timedelta

import pytest

from share_api.db import store
from share_api.db.models import utc_now

BLOCK = "20240101010101-abcdefg"


def _body(**kw):
    body = {
        "docId": "D1",
        "docTitle": "T",
        "content": "C",
        "requirePassword": False,
        "expireDays": 7,
        "isPublic": True,
    }
    body.update(kw)
    return body


def _parse_z(value: str) -> datetime:
    assert value.endswith("Z")
    return datetime.fromisoformat(value[:-1])


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------

def test_bootstrap_then_me(client, data_dir):
    token = (data_dir / "bootstrap_token.txt").read_text(encoding="utf-8").strip()

    resp = client.post(
        "/api/bootstrap",
        headers={"X-Bootstrap-Token": token},
        json={"username": "alice", "email": "a@x"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == 0
    assert body["data"]["userId"].startswith("user_")
    api_token = body["data"]["apiToken"]
    assert len(api_token) == 64

    again = client.post(
        "/api/bootstrap",
        headers={"X-Bootstrap-Token": token},
        json={"username": "bob", "email": "b@x"},
    )
    assert again.status_code == 400
    assert again.json()["code"] == 1

    me = client.get("/api/user/me", headers={"Authorization": f"Bearer {api_token}"})
    assert me.status_code == 200
    profile = me.json()["data"]
    assert profile["username"] == "alice"
    assert profile["email"] == "a@x"
    assert "apiToken" not in profile


def test_bootstrap_rejects_missing_and_wrong_token(client):
    resp = client.post("/api/bootstrap", json={"username": "alice", "email": "a@x"})
    assert resp.status_code == 401
    resp = client.post(
        "/api/bootstrap",
        headers={"X-Bootstrap-Token": "0" * 64},
        json={"username": "alice", "email": "a@x"},
    )
    assert resp.status_code == 401
    assert store.count_users() == 0


def test_bootstrap_rejects_bad_body(client, data_dir):
    token = (data_dir / "bootstrap_token.txt").read_text(encoding="utf-8").strip()
    headers = {"X-Bootstrap-Token": token}

    resp = client.post("/api/bootstrap", headers=headers, json={"username": "  ", "email": "a@x"})
    assert resp.status_code == 400
    resp = client.post("/api/bootstrap", headers=headers, content=b"{not json")
    assert resp.status_code == 400
    # 令牌没有被消耗
    assert store.get_unused_bootstrap_token(token) is not None


def test_bootstrap_with_expired_token(client, data_dir, monkeypatch):
    token = (data_dir / "bootstrap_token.txt").read_text(encoding="utf-8").strip()
    from share_api.db import models

    future = utc_now() + timedelta(minutes=16)
    monkeypatch.setattr(models, "utc_now", lambda: future)
    resp = client.post(
        "/api/bootstrap",
        headers={"X-Bootstrap-Token": token},
        json={"username": "alice", "email": "a@x"},
    )
    assert resp.status_code == 401
    assert "expired" in resp.json()["msg"]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

def test_auth_health(client, alice, auth_headers):
    resp = client.get("/api/auth/health", headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "ok"
    assert data["userId"] == alice.id
    assert isinstance(data["ts"], int)


def test_protected_routes_require_bearer(client, alice):
    assert client.get("/api/user/me").status_code == 401
    assert client.get("/api/share/list").status_code == 401
    assert client.post("/api/share/create", json=_body()).status_code == 401
    assert client.delete("/api/share/batch").status_code == 401
    resp = client.get("/api/auth/health", headers={"Authorization": "Basic abc"})
    assert resp.status_code == 401
    assert resp.json() == {"code": 1, "msg": "Invalid authorization header format"}


# ---------------------------------------------------------------------------
# Share create / reuse
# ---------------------------------------------------------------------------

def test_create_and_reuse(client, auth_headers):
    first = client.post("/api/share/create", headers=auth_headers, json=_body())
    assert first.status_code == 200
    d1 = first.json()["data"]
    assert d1["reused"] is False
    assert d1["shareUrl"] == f"http://testserver/s/{d1['shareId']}"

    second = client.post("/api/share/create", headers=auth_headers, json=_body())
    d2 = second.json()["data"]
    assert d2["reused"] is True
    assert d2["shareId"] == d1["shareId"]
    expected = utc_now() + timedelta(days=7)
    assert abs((_parse_z(d2["expireAt"]) - expected).total_seconds()) < 1


def test_create_validation_errors(client, auth_headers):
    resp = client.post("/api/share/create", headers=auth_headers, json=_body(expireDays=0))
    assert resp.status_code == 400
    assert resp.json()["code"] == 1

    resp = client.post("/api/share/create", headers=auth_headers, json=_body(expireDays=366))
    assert resp.status_code == 400

    body = _body()
    del body["docId"]
    resp = client.post("/api/share/create", headers=auth_headers, json=body)
    assert resp.status_code == 400
    assert "docId" in resp.json()["msg"]

    resp = client.post(
        "/api/share/create",
        headers=auth_headers,
        json=_body(requirePassword=True, password="abc"),
    )
    assert resp.status_code == 400


def test_create_respects_base_url_header(client, auth_headers):
    resp = client.post(
        "/api/share/create",
        headers={**auth_headers, "X-Base-URL": "https://share.example.com/"},
        json=_body(),
    )
    data = resp.json()["data"]
    assert data["shareUrl"] == f"https://share.example.com/s/{data['shareId']}"


# ---------------------------------------------------------------------------
# Public read
# ---------------------------------------------------------------------------

def test_password_gate(client, auth_headers):
    created = client.post(
        "/api/share/create",
        headers=auth_headers,
        json=_body(requirePassword=True, password="pw12", expireDays=1),
    ).json()["data"]
    sid = created["shareId"]

    assert client.get(f"/api/s/{sid}").status_code == 401
    assert client.get(f"/api/s/{sid}", params={"password": "wrong"}).status_code == 401
    resp = client.get(f"/api/s/{sid}", params={"password": "pw12"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["viewCount"] == 1
    assert data["requirePassword"] is True
    assert "passwordHash" not in data and "password_hash" not in data


def test_expired_share_is_gone(client, auth_headers, set_expire_at):
    sid = client.post(
        "/api/share/create", headers=auth_headers, json=_body(expireDays=1)
    ).json()["data"]["shareId"]
    set_expire_at(sid, utc_now() - timedelta(milliseconds=1))
    resp = client.get(f"/api/s/{sid}")
    assert resp.status_code == 410
    assert resp.json()["code"] == 1


def test_unknown_share_is_not_found(client):
    resp = client.get("/api/s/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"code": 1, "msg": "Share not found"}


def test_block_reference_rewrite(client, auth_headers):
    refs = [{"blockId": BLOCK, "content": "hello world body", "displayText": ""}]
    sa = client.post(
        "/api/share/create",
        headers=auth_headers,
        json=_body(content=f"intro (({BLOCK})) end", references=refs),
    ).json()["data"]["shareId"]

    content = client.get(f"/api/s/{sa}").json()["data"]["content"]
    assert content == "intro hello world body end"

    sb = client.post(
        "/api/share/create",
        headers=auth_headers,
        json=_body(docId=BLOCK, content="block body", parentShareId=sa),
    ).json()["data"]["shareId"]

    content = client.get(f"/api/s/{sa}").json()["data"]["content"]
    assert content == f"intro [hello world body](http://testserver/s/{sb}) end"

    content = client.get(
        f"/api/s/{sa}", headers={"X-Base-URL": "https://share.example.com"}
    ).json()["data"]["content"]
    assert content == f"intro [hello world body](https://share.example.com/s/{sb}) end"


# ---------------------------------------------------------------------------
# List / delete
# ---------------------------------------------------------------------------

def test_list_shares(client, auth_headers):
    for i in range(3):
        client.post("/api/share/create", headers=auth_headers, json=_body(docId=f"D{i}"))
        time.sleep(0.01)

    resp = client.get("/api/share/list", headers=auth_headers, params={"page": "1", "size": "2"})
    data = resp.json()["data"]
    assert data["total"] == 3
    assert data["page"] == 1 and data["size"] == 2
    assert [item["docId"] for item in data["items"]] == ["D2", "D1"]

    resp = client.get("/api/share/list", headers=auth_headers, params={"page": "x", "size": "0"})
    data = resp.json()["data"]
    assert data["page"] == 1 and data["size"] == 10
    assert len(data["items"]) == 3

    resp = client.get("/api/share/list", headers=auth_headers, params={"page": "99999999999999999999"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["page"] == 1 and len(data["items"]) == 3


def test_batch_delete_all(client, auth_headers):
    for i in range(3):
        client.post("/api/share/create", headers=auth_headers, json=_body(docId=f"D{i}"))

    resp = client.delete("/api/share/batch", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"deletedAllCount": 3}

    listed = client.get("/api/share/list", headers=auth_headers).json()["data"]
    assert listed["total"] == 0


def test_batch_delete_by_ids(client, auth_headers):
    a = client.post("/api/share/create", headers=auth_headers, json=_body(docId="D1")).json()["data"]
    b = client.post("/api/share/create", headers=auth_headers, json=_body(docId="D2")).json()["data"]

    resp = client.request(
        "DELETE",
        "/api/share/batch",
        headers=auth_headers,
        json={"shareIds": [a["shareId"], "missing"]},
    )
    assert resp.json()["data"] == {"deleted": [a["shareId"]], "notFound": ["missing"]}
    assert client.get(f"/api/s/{b['shareId']}").status_code == 200

    resp = client.request("DELETE", "/api/share/batch", headers=auth_headers, content=b"{broken")
    assert resp.status_code == 400


@pytest.mark.parametrize("raw", [b"[]", b"false", b"0", b"\"\""])
def test_batch_delete_rejects_non_object_body(client, auth_headers, raw):
    for i in range(3):
        client.post("/api/share/create", headers=auth_headers, json=_body(docId=f"D{i}"))

    resp = client.request("DELETE", "/api/share/batch", headers=auth_headers, content=raw)
    assert resp.status_code == 400
    assert resp.json()["code"] == 1
    assert client.get("/api/share/list", headers=auth_headers).json()["data"]["total"] == 3


def test_batch_delete_null_body_deletes_all(client, auth_headers):
    for i in range(2):
        client.post("/api/share/create", headers=auth_headers, json=_body(docId=f"D{i}"))

    resp = client.request("DELETE", "/api/share/batch", headers=auth_headers, content=b"null")
    assert resp.json()["data"] == {"deletedAllCount": 2}


def test_delete_single_share(client, auth_headers):
    sid = client.post("/api/share/create", headers=auth_headers, json=_body()).json()["data"]["shareId"]
    resp = client.delete(f"/api/share/{sid}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"code": 0, "msg": "success"}
    assert client.get(f"/api/s/{sid}").status_code == 404
    assert client.delete(f"/api/share/{sid}", headers=auth_headers).status_code == 404


def test_cannot_delete_someone_elses_share(client, auth_headers):
    bob = store.create_user("bob", "bob@example.com")
    sid = client.post("/api/share/create", headers=auth_headers, json=_body()).json()["data"]["shareId"]
    resp = client.delete(f"/api/share/{sid}", headers={"Authorization": f"Bearer {bob.api_token}"})
    assert resp.status_code == 404
    assert client.get(f"/api/s/{sid}").status_code == 200
