# tests/test_atomicity.py

import pytest

from vaultledger.core.errors import MessageNotFound
from vaultledger.core.ledger import LedgerEvent


class StoreUnavailable(Exception):
    pass


def _fail_on_call(monkeypatch, target, name, fail_at):
    original = getattr(target, name)
    calls = {"n": 0}

    def wrapper(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == fail_at:
            raise StoreUnavailable(f"{name} call {fail_at}")
        return original(*args, **kwargs)

    monkeypatch.setattr(target, name, wrapper)


def test_broadcast_failure_rolls_back_every_delivery(ledger, monkeypatch):
    ledger.send_message("alice", "bob", "before")
    _fail_on_call(monkeypatch, ledger.messages, "_deliver", fail_at=3)

    with pytest.raises(StoreUnavailable):
        ledger.send_message_to_multiple_receivers("alice", ["bob", "carol", "dave"], "all or nothing")

    assert [m.body for m in ledger.get_sent_messages("alice")] == ["before"]
    assert [m.body for m in ledger.get_received_messages("bob")] == ["before"]
    assert ledger.get_received_messages("carol") == []


def test_group_send_failure_rolls_back(ledger, monkeypatch):
    group_id = ledger.create_group("alice", ["bob", "carol"], "pair")
    _fail_on_call(monkeypatch, ledger.messages, "_deliver", fail_at=2)

    with pytest.raises(StoreUnavailable):
        ledger.send_message_to_group("alice", group_id, "hi both")

    assert ledger.get_sent_messages("alice") == []
    assert ledger.get_received_messages("bob") == []


def test_ledger_is_usable_after_rollback(ledger, monkeypatch):
    _fail_on_call(monkeypatch, ledger.messages, "_deliver", fail_at=1)
    with pytest.raises(StoreUnavailable):
        ledger.send_message("alice", "bob", "lost")

    ledger.send_message("alice", "bob", "kept")
    assert [m.index for m in ledger.get_received_messages("bob")] == [0]


def test_events_follow_commits_only(ledger):
    events = []
    ledger.subscribe(events.append)

    ledger.send_message("alice", "bob", "hi")
    with pytest.raises(MessageNotFound):
        ledger.delete_sent_message("alice", 7)
    ledger.deposit("alice", 5)

    assert [e.name for e in events] == ["MessageSent", "Deposit"]
    assert isinstance(events[0], LedgerEvent)
    assert events[0].principal == "alice"
    assert events[0].payload["receiver"] == "bob"
    assert events[1].payload == {"amount": 5, "balance": 5}


def test_failing_listener_does_not_undo_commit(ledger):
    def listener(event):
        raise RuntimeError("listener broke")

    ledger.subscribe(listener)
    ledger.send_message("alice", "bob", "still delivered")
    assert len(ledger.get_received_messages("bob")) == 1


def test_closed_ledger_refuses_calls(make_ledger):
    ledger = make_ledger()
    ledger.close()
    with pytest.raises(RuntimeError):
        ledger.send_message("alice", "bob", "late")
