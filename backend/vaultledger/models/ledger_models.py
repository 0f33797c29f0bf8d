# vaultledger/models/ledger_models.py

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from vaultledger.models.base import Base

SENT = "sent"
RECEIVED = "received"

# Column limits: Integer positions, BigInteger amounts and timestamps
MAX_POSITION = 2**31 - 1
MAX_BIGINT = 2**63 - 1


class MessageEntry(Base):
    """One slot of a principal's sent or received log"""

    __tablename__ = "message_log"
    __table_args__ = (
        UniqueConstraint("owner", "box", "position", name="uq_message_log_slot"),
    )

    id = Column(Integer, primary_key=True)
    owner = Column(String(128), nullable=False, index=True)
    box = Column(String(8), nullable=False)  # "sent" | "received"
    position = Column(Integer, nullable=False)

    # Tombstones keep their slot but lose their content
    deleted = Column(Boolean, nullable=False, default=False)
    sender = Column(String(128), nullable=True)
    receiver = Column(String(128), nullable=True)
    body = Column(Text, nullable=True)
    sent_at = Column(BigInteger, nullable=True)


class ExpirableEntry(Base):
    __tablename__ = "expirable_log"
    __table_args__ = (
        UniqueConstraint("owner", "box", "position", name="uq_expirable_log_slot"),
    )

    id = Column(Integer, primary_key=True)
    owner = Column(String(128), nullable=False, index=True)
    box = Column(String(8), nullable=False)
    position = Column(Integer, nullable=False)

    sender = Column(String(128), nullable=False)
    receiver = Column(String(128), nullable=False)
    body = Column(Text, nullable=False)
    sent_at = Column(BigInteger, nullable=False)
    expires_at = Column(BigInteger, nullable=False, index=True)


class Group(Base):
    __tablename__ = "groups"

    # Assigned by the store, dense from 0
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(Text, nullable=False)


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "position", name="uq_group_member_slot"),
    )

    id = Column(Integer, primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    member = Column(String(128), nullable=False)


class SystemMessage(Base):
    __tablename__ = "system_messages"

    id = Column(Integer, primary_key=True)
    position = Column(Integer, nullable=False, unique=True)
    body = Column(Text, nullable=False)
    posted_at = Column(BigInteger, nullable=False)


class Balance(Base):
    __tablename__ = "balances"

    principal = Column(String(128), primary_key=True)
    amount = Column(BigInteger, nullable=False, default=0)
