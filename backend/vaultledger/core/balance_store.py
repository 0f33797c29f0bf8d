# vaultledger/core/balance_store.py

from sqlalchemy import func
from sqlalchemy.orm import Session

from vaultledger.core.errors import AmountOverflow, InsufficientBalance, ZeroAmount
from vaultledger.models.ledger_models import MAX_BIGINT, Balance


class BalanceStore:
    """Integer balance per principal; unknown principals hold zero"""

    def _row(self, session: Session, principal: str, lock: bool = False) -> Balance:
        query = session.query(Balance).filter(Balance.principal == principal)
        if lock:
            query = query.with_for_update()
        row = query.one_or_none()
        if row is None:
            row = Balance(principal=principal, amount=0)
            session.add(row)
            session.flush()
        return row

    def get_balance(self, session: Session, principal: str) -> int:
        amount = (
            session.query(Balance.amount)
            .filter(Balance.principal == principal)
            .scalar()
        )
        return amount or 0

    def deposit(self, session: Session, principal: str, amount: int) -> int:
        if amount == 0:
            raise ZeroAmount()
        return self.credit(session, principal, amount)

    def credit(self, session: Session, principal: str, amount: int) -> int:
        row = self._row(session, principal, lock=True)
        if row.amount + amount > MAX_BIGINT:
            raise AmountOverflow(f"Balance of {principal} would exceed {MAX_BIGINT}")
        row.amount += amount
        session.flush()
        return row.amount

    def debit(self, session: Session, principal: str, amount: int) -> int:
        row = self._row(session, principal, lock=True)
        if row.amount < amount:
            raise InsufficientBalance(have=row.amount, want=amount)
        row.amount -= amount
        session.flush()
        return row.amount

    def total_supply(self, session: Session) -> int:
        return int(session.query(func.coalesce(func.sum(Balance.amount), 0)).scalar())
