# vaultledger/api/system.py

from typing import List

from fastapi import APIRouter, Depends

from vaultledger.api.deps import get_ledger, get_principal
from vaultledger.core.ledger import LedgerService
from vaultledger.schemas.ledger import SystemMessageSchema

router = APIRouter(prefix="/system")


@router.post("/messages")
def send_system_message(
    payload: SystemMessageSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    ledger.send_system_message(principal, payload.text)
    return {"status": "posted"}


@router.get("/messages", response_model=List[str])
def get_system_messages(ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_system_messages()


@router.get("/admin")
def get_admin(ledger: LedgerService = Depends(get_ledger)):
    return {"admin": ledger.get_admin()}


@router.post("/purge-expired")
def purge_expired_messages(principal: str = Depends(get_principal), ledger: LedgerService = Depends(get_ledger)):
    """Reclaim storage held by expired messages (admin only)"""
    purged = ledger.purge_expired_messages(principal)
    return {"status": "purged", "purged": purged}
