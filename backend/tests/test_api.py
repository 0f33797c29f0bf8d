# tests/test_api.py

import pytest
from fastapi.testclient import TestClient

from vaultledger.clients.ledger_client import LedgerClient, LedgerClientError
from vaultledger.main import create_app
from conftest import ADMIN, START


def as_(principal):
    return {"X-Principal": principal}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_missing_principal_header(client):
    response = client.post("/messages/send", json={"receiver": "bob", "body": "hi"})
    assert response.status_code == 401


def test_send_and_read(client):
    response = client.post("/messages/send", json={"receiver": "bob", "body": "hi"}, headers=as_("alice"))
    assert response.status_code == 200

    sent = client.get("/messages/sent", headers=as_("alice")).json()
    received = client.get("/messages/received", headers=as_("bob")).json()

    assert sent == received == [{
        "index": 0,
        "deleted": False,
        "sender": "alice",
        "receiver": "bob",
        "body": "hi",
        "sent_at": START,
    }]


def test_edit_window_over_http(client, clock):
    client.post("/messages/send", json={"receiver": "bob", "body": "v1"}, headers=as_("alice"))

    ok = client.patch("/messages/sent/0", json={"body": "v2"}, headers=as_("alice"))
    assert ok.status_code == 200

    clock.advance(24 * 60 * 60)
    late = client.patch("/messages/sent/0", json={"body": "v3"}, headers=as_("alice"))
    assert late.status_code == 409
    assert late.json()["error"] == "edit_window_expired"


def test_delete_out_of_range_is_404(client):
    response = client.delete("/messages/received/3", headers=as_("bob"))
    assert response.status_code == 404
    assert response.json()["error"] == "message_not_found"


def test_group_routes(client):
    created = client.post("/groups", json={"members": ["bob", "carol", "dave"], "name": "team"}, headers=as_("alice"))
    assert created.json()["group_id"] == 0
    assert client.get("/groups/count").json() == {"count": 1}
    assert client.get("/groups/0").json() == {"id": 0, "name": "team", "members": ["bob", "carol", "dave"]}

    sent = client.post("/groups/0/messages", json={"body": "hey team"}, headers=as_("alice"))
    assert sent.status_code == 200
    assert len(client.get("/messages/sent", headers=as_("alice")).json()) == 3

    missing = client.post("/groups/1/messages", json={"body": "?"}, headers=as_("alice"))
    assert missing.status_code == 404
    assert missing.json()["error"] == "group_not_found"


def test_expirable_routes(client, clock):
    client.post("/messages/expirable", json={"receiver": "bob", "body": "soon gone", "ttl_seconds": 10}, headers=as_("alice"))

    visible = client.get("/messages/received/expirable", headers=as_("bob")).json()
    assert [m["body"] for m in visible] == ["soon gone"]

    clock.advance(10)
    assert client.get("/messages/received/expirable", headers=as_("bob")).json() == []


def test_negative_ttl_is_rejected(client):
    response = client.post("/messages/expirable", json={"receiver": "bob", "body": "x", "ttl_seconds": -1}, headers=as_("alice"))
    assert response.status_code == 422


def test_system_messages(client):
    assert client.get("/system/admin").json() == {"admin": ADMIN}

    denied = client.post("/system/messages", json={"text": "hi"}, headers=as_("mallory"))
    assert denied.status_code == 403
    assert denied.json()["error"] == "not_admin"

    client.post("/system/messages", json={"text": "welcome"}, headers=as_(ADMIN))
    assert client.get("/system/messages").json() == ["welcome"]


def test_wallet_routes(client):
    deposit = client.post("/wallet/deposit", json={"amount": 25}, headers=as_("alice"))
    assert deposit.json()["balance"] == 25

    zero = client.post("/wallet/deposit", json={"amount": 0}, headers=as_("alice"))
    assert zero.status_code == 400
    assert zero.json()["error"] == "zero_amount"

    negative = client.post("/wallet/deposit", json={"amount": -5}, headers=as_("alice"))
    assert negative.status_code == 422

    short = client.post("/wallet/transfer", json={"to": "bob", "amount": 26}, headers=as_("alice"))
    assert short.status_code == 409
    assert short.json()["error"] == "insufficient_balance"

    null = client.post("/wallet/transfer", json={"to": "", "amount": 1}, headers=as_("alice"))
    assert null.json()["error"] == "invalid_recipient"

    ok = client.post("/wallet/transfer", json={"to": "bob", "amount": 25}, headers=as_("alice"))
    assert ok.json() == {"status": "sent", "balance": 0}
    assert client.get("/wallet/balance/bob").json() == {"principal": "bob", "balance": 25}


def test_rate_limit(settings, ledger):
    from dataclasses import replace

    app = create_app(replace(settings, rate_limit="2/minute"), ledger=ledger)
    with TestClient(app) as limited:
        codes = [limited.get("/wallet/balance/alice", headers=as_("alice")).status_code for _ in range(3)]
    assert codes == [200, 200, 429]


# ---------- CLIENT ----------

@pytest.fixture
def alice(client):
    return LedgerClient("alice", base_url="http://testserver", session=client)


@pytest.fixture
def bob(client):
    return LedgerClient("bob", base_url="http://testserver", session=client)


def test_client_round_trip(alice, bob):
    alice.send_message("bob", "hello")
    bob.forward("alice", 0, "carol")
    alice.send_to_many(["bob", "carol"], "both")

    assert [m["body"] for m in bob.received()] == ["hello", "both"]
    assert [m["receiver"] for m in alice.sent()] == ["bob", "bob", "carol"]

    bob.delete_received(0)
    assert bob.received()[0]["deleted"] is True

    group_id = alice.create_group(["bob"], "duo")
    alice.send_to_group(group_id, "group hello")
    assert alice.groups_count() == 1
    assert alice.group(group_id)["members"] == ["bob"]

    alice.deposit(10)
    alice.send_funds("bob", 4)
    assert alice.balance() == 6
    assert alice.balance("bob") == 4


def test_client_raises_on_error(alice):
    with pytest.raises(LedgerClientError) as excinfo:
        alice.edit(0, "nothing to edit")
    assert excinfo.value.status_code == 404
    assert excinfo.value.error == "message_not_found"

    with pytest.raises(LedgerClientError) as excinfo:
        alice.post_system_message("not allowed")
    assert excinfo.value.status_code == 403


def test_out_of_range_inputs_get_defined_responses(client):
    client.post("/messages/send", json={"receiver": "bob", "body": "hi"}, headers=as_("alice"))

    huge = 2**63
    assert client.delete(f"/messages/sent/{huge}", headers=as_("alice")).status_code == 404
    assert client.patch(f"/messages/sent/{huge}", json={"body": "x"}, headers=as_("alice")).status_code == 404
    forward = client.post(
        "/messages/forward",
        json={"original_sender": "alice", "index": huge, "new_receiver": "carol"},
        headers=as_("bob"),
    )
    assert forward.status_code == 404

    forever = client.post("/messages/expirable", json={"receiver": "bob", "body": "x", "ttl_seconds": huge}, headers=as_("alice"))
    assert forever.status_code == 200

    client.post("/wallet/deposit", json={"amount": huge - 1}, headers=as_("alice"))
    overflow = client.post("/wallet/deposit", json={"amount": 1}, headers=as_("alice"))
    assert overflow.status_code == 400
    assert overflow.json()["error"] == "amount_overflow"


def test_app_opens_and_closes_its_own_ledger(settings):
    app = create_app(settings)
    with TestClient(app) as own:
        assert own.get("/groups/count").json() == {"count": 0}
        ledger = app.state.ledger
    assert ledger is not None
    with pytest.raises(RuntimeError):
        ledger.get_groups_count()


def test_injected_ledger_stays_open(settings, ledger):
    with TestClient(create_app(settings, ledger=ledger)) as injected:
        assert injected.get("/groups/count").json() == {"count": 0}
    assert ledger.get_groups_count() == 0
