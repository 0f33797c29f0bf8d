# vaultledger/core/message_store.py

from typing import Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from vaultledger.core.errors import (
    EditWindowExpired,
    GroupNotFound,
    MessageNotFound,
    NotSender,
)
from vaultledger.models.ledger_models import (
    MAX_BIGINT,
    MAX_POSITION,
    RECEIVED,
    SENT,
    ExpirableEntry,
    Group,
    GroupMember,
    MessageEntry,
    SystemMessage,
)
from vaultledger.schemas.ledger import ExpirableMessageView, GroupView, MessageView


class MessageStore:
    """
    Per-principal message logs, groups and the system log.
    Every method works inside the caller's session and never commits.
    """

    # ---------- LOG HELPERS ----------

    def _next_position(self, session: Session, model, owner: str, box: str) -> int:
        # max + 1 rather than count: purged expirable rows leave gaps
        last = (
            session.query(func.max(model.position))
            .filter(model.owner == owner, model.box == box)
            .scalar()
        )
        return 0 if last is None else last + 1

    def _append(self, session: Session, owner: str, box: str, sender: str, receiver: str, body: str, now: int):
        entry = MessageEntry(
            owner=owner,
            box=box,
            position=self._next_position(session, MessageEntry, owner, box),
            deleted=False,
            sender=sender,
            receiver=receiver,
            body=body,
            sent_at=now,
        )
        session.add(entry)
        session.flush()
        return entry

    def _deliver(self, session: Session, sender: str, receiver: str, body: str, now: int):
        # Two independent rows: editing or deleting one never touches the other
        self._append(session, sender, SENT, sender, receiver, body, now)
        self._append(session, receiver, RECEIVED, sender, receiver, body, now)

    def _slot(self, session: Session, owner: str, box: str, index: int, lock: bool = False) -> MessageEntry:
        if index < 0 or index > MAX_POSITION:
            raise MessageNotFound()
        query = session.query(MessageEntry).filter(
            MessageEntry.owner == owner,
            MessageEntry.box == box,
            MessageEntry.position == index,
        )
        if lock:
            query = query.with_for_update()
        entry = query.one_or_none()
        if entry is None:
            raise MessageNotFound()
        return entry

    # ---------- SENDING ----------

    def send_direct(self, session: Session, sender: str, receiver: str, body: str, now: int) -> None:
        self._deliver(session, sender, receiver, body, now)

    def send_broadcast(self, session: Session, sender: str, receivers: Iterable[str], body: str, now: int) -> int:
        delivered = 0
        for receiver in receivers:
            self._deliver(session, sender, receiver, body, now)
            delivered += 1
        return delivered

    def send_expirable(self, session: Session, sender: str, receiver: str, body: str, ttl: int, now: int) -> int:
        # A TTL past the column range means "never expires"
        expires_at = min(now + ttl, MAX_BIGINT)
        for owner, box in ((sender, SENT), (receiver, RECEIVED)):
            session.add(ExpirableEntry(
                owner=owner,
                box=box,
                position=self._next_position(session, ExpirableEntry, owner, box),
                sender=sender,
                receiver=receiver,
                body=body,
                sent_at=now,
                expires_at=expires_at,
            ))
            session.flush()
        return expires_at

    def forward(self, session: Session, forwarder: str, original_sender: str, index: int, new_receiver: str, now: int) -> None:
        original = self._slot(session, original_sender, SENT, index)
        if original.deleted:
            raise MessageNotFound("Message has been deleted")
        self._deliver(session, forwarder, new_receiver, original.body, now)

    # ---------- GROUPS ----------

    def groups_count(self, session: Session) -> int:
        return session.query(func.count(Group.id)).scalar() or 0

    def create_group(self, session: Session, members: Iterable[str], name: str) -> int:
        group_id = self.groups_count(session)
        session.add(Group(id=group_id, name=name))
        session.flush()
        for position, member in enumerate(members):
            session.add(GroupMember(group_id=group_id, position=position, member=member))
        session.flush()
        return group_id

    def _members(self, session: Session, group_id: int) -> List[str]:
        rows = (
            session.query(GroupMember.member)
            .filter(GroupMember.group_id == group_id)
            .order_by(GroupMember.position)
            .all()
        )
        return [row.member for row in rows]

    def _require_group(self, session: Session, group_id: int) -> Group:
        # Strict bound: valid ids are 0 .. groups_count - 1
        if group_id < 0 or group_id >= self.groups_count(session):
            raise GroupNotFound()
        return session.get(Group, group_id)

    def send_to_group(self, session: Session, group_id: int, sender: str, body: str, now: int) -> int:
        self._require_group(session, group_id)
        members = self._members(session, group_id)
        for member in members:
            self._deliver(session, sender, member, body, now)
        return len(members)

    def get_group(self, session: Session, group_id: int) -> GroupView:
        group = self._require_group(session, group_id)
        return GroupView(id=group.id, name=group.name, members=self._members(session, group_id))

    # ---------- DELETE / EDIT ----------

    def delete(self, session: Session, owner: str, box: str, index: int) -> None:
        entry = self._slot(session, owner, box, index, lock=True)
        entry.deleted = True
        entry.sender = None
        entry.receiver = None
        entry.body = None
        entry.sent_at = None
        session.flush()

    def edit_sent(self, session: Session, principal: str, index: int, new_body: str, now: int, window: int) -> None:
        entry = self._slot(session, principal, SENT, index, lock=True)
        if entry.deleted or entry.sender != principal:
            raise NotSender()
        if now >= entry.sent_at + window:
            raise EditWindowExpired()
        entry.body = new_body
        session.flush()

    # ---------- SYSTEM LOG ----------

    def post_system_message(self, session: Session, text: str, now: int) -> int:
        position = session.query(func.count(SystemMessage.id)).scalar() or 0
        session.add(SystemMessage(position=position, body=text, posted_at=now))
        session.flush()
        return position

    def list_system_messages(self, session: Session) -> List[str]:
        rows = session.query(SystemMessage.body).order_by(SystemMessage.position).all()
        return [row.body for row in rows]

    # ---------- READS ----------

    def list_log(self, session: Session, owner: str, box: str) -> List[MessageView]:
        entries = (
            session.query(MessageEntry)
            .filter(MessageEntry.owner == owner, MessageEntry.box == box)
            .order_by(MessageEntry.position)
            .all()
        )
        return [
            MessageView(index=e.position, deleted=True) if e.deleted else
            MessageView(index=e.position, sender=e.sender, receiver=e.receiver, body=e.body, sent_at=e.sent_at)
            for e in entries
        ]

    def list_valid_expirable(self, session: Session, owner: str, box: str, now: int) -> List[ExpirableMessageView]:
        entries = (
            session.query(ExpirableEntry)
            .filter(
                ExpirableEntry.owner == owner,
                ExpirableEntry.box == box,
                ExpirableEntry.expires_at > now,
            )
            .order_by(ExpirableEntry.position)
            .all()
        )
        return [
            ExpirableMessageView(
                index=e.position,
                sender=e.sender,
                receiver=e.receiver,
                body=e.body,
                sent_at=e.sent_at,
                expires_at=e.expires_at,
            )
            for e in entries
        ]

    def purge_expired(self, session: Session, now: int) -> int:
        """Physically drop expired rows; positions of the survivors are kept"""
        return (
            session.query(ExpirableEntry)
            .filter(ExpirableEntry.expires_at <= now)
            .delete(synchronize_session=False)
        )
