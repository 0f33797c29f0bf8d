# vaultledger/api/groups.py

from fastapi import APIRouter, Depends

from vaultledger.api.deps import get_ledger, get_principal
from vaultledger.core.ledger import LedgerService
from vaultledger.schemas.ledger import CreateGroupSchema, GroupMessageSchema, GroupView

router = APIRouter(prefix="/groups")


@router.post("")
def create_group(
    payload: CreateGroupSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    """Create a group; ids are handed out in order starting at 0"""
    group_id = ledger.create_group(principal, payload.members, payload.name)
    return {"status": "created", "group_id": group_id}


# Declared before /{group_id} so "count" is not parsed as an id
@router.get("/count")
def get_groups_count(ledger: LedgerService = Depends(get_ledger)):
    return {"count": ledger.get_groups_count()}


@router.get("/{group_id}", response_model=GroupView)
def get_group(group_id: int, ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_group(group_id)


@router.post("/{group_id}/messages")
def send_message_to_group(
    group_id: int,
    payload: GroupMessageSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    ledger.send_message_to_group(principal, group_id, payload.body)
    return {"status": "sent", "group_id": group_id}
