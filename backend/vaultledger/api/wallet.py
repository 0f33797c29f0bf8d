# vaultledger/api/wallet.py

from fastapi import APIRouter, Depends

from vaultledger.api.deps import get_ledger, get_principal
from vaultledger.core.ledger import LedgerService
from vaultledger.schemas.ledger import DepositSchema, TransferSchema

router = APIRouter(prefix="/wallet")


@router.post("/deposit")
def deposit(
    payload: DepositSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    balance = ledger.deposit(principal, payload.amount)
    return {"status": "deposited", "balance": balance}


@router.post("/transfer")
def send_funds(
    payload: TransferSchema,
    principal: str = Depends(get_principal),
    ledger: LedgerService = Depends(get_ledger),
):
    ledger.send_funds(principal, payload.to, payload.amount)
    return {"status": "sent", "balance": ledger.get_balance(principal)}


@router.get("/balance/{principal}")
def get_balance(principal: str, ledger: LedgerService = Depends(get_ledger)):
    return {"principal": principal, "balance": ledger.get_balance(principal)}
