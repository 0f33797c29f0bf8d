# vaultledger/api/messages.py

from typing import List

from fastapi import APIRouter, Depends

from vaultledger.api.deps import get_ledger, get_principal
from vaultledger.core.ledger import LedgerService
from vaultledger.schemas.ledger import (
    BroadcastSchema,
    EditMessageSchema,
    ExpirableMessageSchema,
    ExpirableMessageView,
    ForwardSchema,
    MessageView,
    SendMessageSchema,
)

router = APIRouter(prefix="/messages")


@router.post("/send")
def send_message(
    payload: SendMessageSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    ledger.send_message(principal, payload.receiver, payload.body)
    return {"status": "sent"}


@router.post("/broadcast")
def send_message_to_multiple_receivers(
    payload: BroadcastSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    ledger.send_message_to_multiple_receivers(principal, payload.receivers, payload.body)
    return {"status": "sent", "delivered": len(payload.receivers)}


@router.post("/expirable")
def send_expirable_message(
    payload: ExpirableMessageSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    ledger.send_expirable_message(principal, payload.receiver, payload.body, payload.ttl_seconds)
    return {"status": "sent"}


@router.post("/forward")
def forward_message(
    payload: ForwardSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    ledger.forward_message(principal, payload.original_sender, payload.index, payload.new_receiver)
    return {"status": "forwarded"}


@router.get("/sent", response_model=List[MessageView])
def get_sent_messages(principal: str = Depends(get_principal), ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_sent_messages(principal)


@router.get("/received", response_model=List[MessageView])
def get_received_messages(principal: str = Depends(get_principal), ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_received_messages(principal)


@router.get("/sent/expirable", response_model=List[ExpirableMessageView])
def get_sent_expirable_messages(principal: str = Depends(get_principal), ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_sent_expirable_messages(principal)


@router.get("/received/expirable", response_model=List[ExpirableMessageView])
def get_received_expirable_messages(principal: str = Depends(get_principal), ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_received_expirable_messages(principal)


@router.patch("/sent/{index}")
def edit_message(
    index: int,
    payload: EditMessageSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    ledger.edit_message(principal, index, payload.body)
    return {"status": "edited", "index": index}


@router.delete("/sent/{index}")
def delete_sent_message(index: int, principal: str = Depends(get_principal), ledger: LedgerService = Depends(get_ledger)):
    ledger.delete_sent_message(principal, index)
    return {"status": "deleted", "index": index}


@router.delete("/received/{index}")
def delete_received_message(index: int, principal: str = Depends(get_principal), ledger: LedgerService = Depends(get_ledger)):
    ledger.delete_received_message(principal, index)
    return {"status": "deleted", "index": index}
