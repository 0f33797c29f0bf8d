# vaultledger/core/locks.py

import threading
from contextlib import contextmanager
from typing import Dict

from vaultledger.core.errors import ReentrantCall


class AccountGuard:
    """
    Exclusive per-principal sections for balance mutations.

    Other threads wait for a held principal. The owning thread re-entering
    (e.g. from a payout callback) gets ReentrantCall instead of a deadlock.
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._owners: Dict[str, int] = {}

    @contextmanager
    def hold(self, *principals: str):
        me = threading.get_ident()
        # Sorted acquisition so two transfers in opposite directions cannot deadlock
        wanted = sorted(set(principals))

        with self._cond:
            for principal in wanted:
                if self._owners.get(principal) == me:
                    raise ReentrantCall(principal)
            while any(p in self._owners for p in wanted):
                self._cond.wait()
            for principal in wanted:
                self._owners[principal] = me

        try:
            yield
        finally:
            with self._cond:
                for principal in wanted:
                    self._owners.pop(principal, None)
                self._cond.notify_all()
