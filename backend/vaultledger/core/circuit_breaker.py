# vaultledger/core/circuit_breaker.py

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

PRINCIPAL_HEADER = "X-Principal"


def principal_or_address(request: Request) -> str:
    """Rate-limit key: the asserted principal, or the client address without one"""
    principal = request.headers.get(PRINCIPAL_HEADER)
    if principal:
        return f"principal:{principal}"
    return get_remote_address(request)


def build_limiter(rate_limit: str) -> Limiter:
    return Limiter(key_func=principal_or_address, default_limits=[rate_limit])
