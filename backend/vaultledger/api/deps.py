# vaultledger/api/deps.py

from typing import Optional

from fastapi import Header, HTTPException, Request

from vaultledger.core.ledger import LedgerService


def get_ledger(request: Request) -> LedgerService:
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        raise HTTPException(status_code=503, detail="Ledger not initialized")
    return ledger


def get_principal(x_principal: Optional[str] = Header(None)) -> str:
    """Caller identity asserted by the gateway in front of this service"""
    if not x_principal or not x_principal.strip():
        raise HTTPException(status_code=401, detail="Missing X-Principal header")
    return x_principal.strip()
