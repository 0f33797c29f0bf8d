# vaultledger/core/ledger.py

import re
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from vaultledger.core.balance_store import BalanceStore
from vaultledger.core.config import EDIT_WINDOW_SECONDS, Settings
from vaultledger.core.errors import (
    InvalidRecipient,
    LedgerError,
    NotAdmin,
    NoValidMessages,
    TransferFailed,
    ZeroAmount,
)
from vaultledger.core.locks import AccountGuard
from vaultledger.core.message_store import MessageStore
from vaultledger.infra.database import build_engine, build_session_factory, init_db, session_scope
from vaultledger.models.ledger_models import RECEIVED, SENT
from vaultledger.schemas.ledger import ExpirableMessageView, GroupView, MessageView
from vaultledger.utils.logger import get_logger

logger = get_logger(__name__)

_ZERO_ADDRESS = re.compile(r"^0x0*$", re.IGNORECASE)

Clock = Callable[[], int]
Payout = Callable[[str, str, int], None]


def is_null_principal(principal: Optional[str]) -> bool:
    if principal is None:
        return True
    principal = principal.strip()
    return principal == "" or bool(_ZERO_ADDRESS.match(principal))


def system_clock() -> int:
    return int(time.time())


@dataclass(frozen=True)
class LedgerEvent:
    name: str
    principal: str
    payload: Dict[str, Any] = field(default_factory=dict)


class LedgerService:
    """
    The only entry point into the ledger.

    Each call validates its arguments, runs its mutations in one transaction
    and publishes a LedgerEvent once that transaction has committed.
    The caller principal is always an explicit argument.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        admin: str,
        clock: Clock = system_clock,
        edit_window: int = EDIT_WINDOW_SECONDS,
        strict_expirable_reads: bool = False,
        payout: Optional[Payout] = None,
        engine: Optional[Engine] = None,
    ):
        self._session_factory = session_factory
        self._admin = admin
        self._clock = clock
        self._edit_window = edit_window
        self._strict_expirable_reads = strict_expirable_reads
        self._payout = payout
        self._engine = engine

        self.messages = MessageStore()
        self.balances = BalanceStore()

        self._write_lock = threading.Lock()
        self._accounts = AccountGuard()
        self._listeners: List[Callable[[LedgerEvent], None]] = []
        self._closed = False

    # =========================
    # LIFECYCLE
    # =========================

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = system_clock, payout: Optional[Payout] = None) -> "LedgerService":
        engine = build_engine(settings.database_url, echo=settings.echo_sql)
        init_db(engine)
        return cls(
            build_session_factory(engine),
            admin=settings.admin,
            clock=clock,
            edit_window=settings.edit_window_seconds,
            strict_expirable_reads=settings.strict_expirable_reads,
            payout=payout,
            engine=engine,
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._engine is not None:
            self._engine.dispose()
        logger.info("Ledger closed")

    def subscribe(self, listener: Callable[[LedgerEvent], None]) -> None:
        self._listeners.append(listener)

    # =========================
    # INTERNALS
    # =========================

    @contextmanager
    def _transaction(self, operation: str, principal: str, lock=None):
        if self._closed:
            raise RuntimeError("Ledger is closed")
        try:
            if lock is None:
                with session_scope(self._session_factory) as session:
                    yield session
            else:
                with lock:
                    with session_scope(self._session_factory) as session:
                        yield session
        except LedgerError as e:
            logger.warning("%s rejected for %s: %s", operation, principal, e.detail)
            raise

    def _emit(self, name: str, principal: str, /, **payload) -> None:
        event = LedgerEvent(name=name, principal=principal, payload=payload)
        logger.info("%s by %s %s", name, principal, payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed for %s", name)

    def _now(self) -> int:
        return int(self._clock())

    # =========================
    # MESSAGES
    # =========================

    def send_message(self, sender: str, receiver: str, body: str) -> None:
        with self._transaction("send_message", sender, self._write_lock) as session:
            now = self._now()
            self.messages.send_direct(session, sender, receiver, body, now)
        self._emit("MessageSent", sender, receiver=receiver, sent_at=now)

    def send_message_to_multiple_receivers(self, sender: str, receivers: Sequence[str], body: str) -> None:
        receivers = list(receivers)
        with self._transaction("send_message_to_multiple_receivers", sender, self._write_lock) as session:
            now = self._now()
            self.messages.send_broadcast(session, sender, receivers, body, now)
        if receivers:
            self._emit("MessageBroadcast", sender, receivers=receivers, sent_at=now)

    def send_expirable_message(self, sender: str, receiver: str, body: str, ttl_seconds: int) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must not be negative")
        with self._transaction("send_expirable_message", sender, self._write_lock) as session:
            now = self._now()
            expires_at = self.messages.send_expirable(session, sender, receiver, body, ttl_seconds, now)
        self._emit("ExpirableMessageSent", sender, receiver=receiver, expires_at=expires_at)

    def forward_message(self, forwarder: str, original_sender: str, index: int, new_receiver: str) -> None:
        with self._transaction("forward_message", forwarder, self._write_lock) as session:
            now = self._now()
            self.messages.forward(session, forwarder, original_sender, index, new_receiver, now)
        self._emit("MessageForwarded", forwarder, original_sender=original_sender, index=index, receiver=new_receiver)

    def delete_sent_message(self, principal: str, index: int) -> None:
        with self._transaction("delete_sent_message", principal, self._write_lock) as session:
            self.messages.delete(session, principal, SENT, index)
        self._emit("MessageDeleted", principal, box=SENT, index=index)

    def delete_received_message(self, principal: str, index: int) -> None:
        with self._transaction("delete_received_message", principal, self._write_lock) as session:
            self.messages.delete(session, principal, RECEIVED, index)
        self._emit("MessageDeleted", principal, box=RECEIVED, index=index)

    def edit_message(self, principal: str, index: int, new_body: str) -> None:
        with self._transaction("edit_message", principal, self._write_lock) as session:
            now = self._now()
            self.messages.edit_sent(session, principal, index, new_body, now, self._edit_window)
        self._emit("MessageEdited", principal, index=index)

    def get_sent_messages(self, principal: str) -> List[MessageView]:
        with self._transaction("get_sent_messages", principal) as session:
            return self.messages.list_log(session, principal, SENT)

    def get_received_messages(self, principal: str) -> List[MessageView]:
        with self._transaction("get_received_messages", principal) as session:
            return self.messages.list_log(session, principal, RECEIVED)

    def _expirable(self, principal: str, box: str) -> List[ExpirableMessageView]:
        now = self._now()
        with self._transaction(f"get_{box}_expirable_messages", principal) as session:
            valid = self.messages.list_valid_expirable(session, principal, box, now)
            if not valid and self._strict_expirable_reads:
                raise NoValidMessages()
            return valid

    def get_sent_expirable_messages(self, principal: str) -> List[ExpirableMessageView]:
        return self._expirable(principal, SENT)

    def get_received_expirable_messages(self, principal: str) -> List[ExpirableMessageView]:
        return self._expirable(principal, RECEIVED)

    # =========================
    # GROUPS
    # =========================

    def create_group(self, creator: str, members: Sequence[str], name: str) -> int:
        members = list(members)
        with self._transaction("create_group", creator, self._write_lock) as session:
            group_id = self.messages.create_group(session, members, name)
        self._emit("GroupCreated", creator, group_id=group_id, name=name, members=len(members))
        return group_id

    def send_message_to_group(self, sender: str, group_id: int, body: str) -> None:
        with self._transaction("send_message_to_group", sender, self._write_lock) as session:
            now = self._now()
            delivered = self.messages.send_to_group(session, group_id, sender, body, now)
        self._emit("GroupMessageSent", sender, group_id=group_id, delivered=delivered)

    def get_group(self, group_id: int) -> GroupView:
        with self._transaction("get_group", "-") as session:
            return self.messages.get_group(session, group_id)

    def get_groups_count(self) -> int:
        with self._transaction("get_groups_count", "-") as session:
            return self.messages.groups_count(session)

    # =========================
    # SYSTEM
    # =========================

    def get_admin(self) -> str:
        return self._admin

    def _require_admin(self, caller: str) -> None:
        if is_null_principal(self._admin) or caller != self._admin:
            raise NotAdmin()

    def send_system_message(self, caller: str, text: str) -> None:
        with self._transaction("send_system_message", caller, self._write_lock) as session:
            now = self._now()
            self._require_admin(caller)
            position = self.messages.post_system_message(session, text, now)
        self._emit("SystemMessageSent", caller, position=position)

    def get_system_messages(self) -> List[str]:
        with self._transaction("get_system_messages", "-") as session:
            return self.messages.list_system_messages(session)

    def purge_expired_messages(self, caller: str) -> int:
        with self._transaction("purge_expired_messages", caller, self._write_lock) as session:
            now = self._now()
            self._require_admin(caller)
            purged = self.messages.purge_expired(session, now)
        self._emit("ExpiredMessagesPurged", caller, purged=purged)
        return purged

    # =========================
    # WALLET
    # =========================

    def deposit(self, principal: str, amount: int) -> int:
        if amount < 0:
            raise ValueError("amount must not be negative")
        with self._accounts.hold(principal):
            with self._transaction("deposit", principal) as session:
                balance = self.balances.deposit(session, principal, amount)
        self._emit("Deposit", principal, amount=amount, balance=balance)
        return balance

    def send_funds(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must not be negative")
        try:
            if amount == 0:
                raise ZeroAmount()
            if is_null_principal(to):
                raise InvalidRecipient()
        except LedgerError as e:
            logger.warning("send_funds rejected for %s: %s", sender, e.detail)
            raise

        # The guard stays held across the payout so a callback cannot re-enter
        with self._accounts.hold(sender, to):
            with self._transaction("send_funds", sender) as session:
                self.balances.debit(session, sender, amount)
                if self._payout is not None:
                    try:
                        self._payout(sender, to, amount)
                    except Exception as e:
                        raise TransferFailed(f"Transfer to {to} failed: {e}") from e
                self.balances.credit(session, to, amount)
        self._emit("FundsSent", sender, to=to, amount=amount)

    def get_balance(self, principal: str) -> int:
        with self._transaction("get_balance", principal) as session:
            return self.balances.get_balance(session, principal)

    def total_supply(self) -> int:
        with self._transaction("total_supply", "-") as session:
            return self.balances.total_supply(session)
