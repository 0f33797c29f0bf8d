# vaultledger/core/errors.py


class LedgerError(Exception):
    """Base class for every rejected ledger call"""

    status_code = 400
    code = "ledger_error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.__class__.__doc__ or self.code
        super().__init__(self.detail)


# ---------- TAXONOMY ----------

class NotFound(LedgerError):
    status_code = 404
    code = "not_found"


class Unauthorized(LedgerError):
    status_code = 403
    code = "unauthorized"


class InvalidArgument(LedgerError):
    status_code = 400
    code = "invalid_argument"


class WindowExpired(LedgerError):
    status_code = 409
    code = "window_expired"


class InsufficientFunds(LedgerError):
    status_code = 409
    code = "insufficient_funds"


class Conflict(LedgerError):
    status_code = 409
    code = "conflict"


# ---------- CONCRETE ERRORS ----------

class GroupNotFound(NotFound):
    """Group does not exist"""
    code = "group_not_found"


class MessageNotFound(NotFound):
    """Message does not exist"""
    code = "message_not_found"


class NoValidMessages(NotFound):
    """No valid messages"""
    code = "no_valid_messages"


class NotAdmin(Unauthorized):
    """Only the admin can do this"""
    code = "not_admin"


class NotSender(Unauthorized):
    """Only the sender can edit this message"""
    code = "not_sender"


class ZeroAmount(InvalidArgument):
    """Amount must be greater than zero"""
    code = "zero_amount"


class InvalidRecipient(InvalidArgument):
    """Recipient cannot be the null principal"""
    code = "invalid_recipient"


class AmountOverflow(InvalidArgument):
    """Resulting balance is out of range"""
    code = "amount_overflow"


class EditWindowExpired(WindowExpired):
    """Edit window has expired"""
    code = "edit_window_expired"


class InsufficientBalance(InsufficientFunds):
    code = "insufficient_balance"

    def __init__(self, have: int, want: int):
        self.have = have
        self.want = want
        super().__init__(f"Insufficient balance: have {have}, want {want}")


class ReentrantCall(Conflict):
    code = "reentrant_call"

    def __init__(self, principal: str):
        self.principal = principal
        super().__init__(f"Balance operation already in progress for {principal}")


class TransferFailed(LedgerError):
    """Value transfer to the recipient failed"""
    status_code = 502
    code = "transfer_failed"
