# vaultledger/schemas/ledger.py

from typing import List, Optional

from pydantic import BaseModel, Field

from vaultledger.models.ledger_models import MAX_BIGINT

MAX_AMOUNT = MAX_BIGINT


# =========================
# READ MODELS
# =========================

class MessageView(BaseModel):
    index: int
    deleted: bool = False
    sender: Optional[str] = None
    receiver: Optional[str] = None
    body: Optional[str] = None
    sent_at: Optional[int] = None


class ExpirableMessageView(BaseModel):
    index: int
    sender: str
    receiver: str
    body: str
    sent_at: int
    expires_at: int


class GroupView(BaseModel):
    id: int
    name: str
    members: List[str]


# =========================
# REQUEST SCHEMAS
# =========================

class SendMessageSchema(BaseModel):
    receiver: str
    body: str


class BroadcastSchema(BaseModel):
    receivers: List[str]
    body: str


class ExpirableMessageSchema(BaseModel):
    receiver: str
    body: str
    ttl_seconds: int = Field(ge=0)


class ForwardSchema(BaseModel):
    original_sender: str
    index: int = Field(ge=0)
    new_receiver: str


class EditMessageSchema(BaseModel):
    body: str


class CreateGroupSchema(BaseModel):
    members: List[str]
    name: str


class GroupMessageSchema(BaseModel):
    body: str


class SystemMessageSchema(BaseModel):
    text: str


class DepositSchema(BaseModel):
    amount: int = Field(ge=0, le=MAX_AMOUNT)


class TransferSchema(BaseModel):
    to: str
    amount: int = Field(ge=0, le=MAX_AMOUNT)
