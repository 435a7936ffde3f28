"""
Signing accounts for fulfillment and request transactions.

Thin helpers over `eth_account`: load an account from a 0x-prefixed 32-byte
private key (validated up front so a bad key fails as a ConfigurationError
before any network call), or generate a fresh one.
"""

from __future__ import annotations

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .errors import ConfigurationError
from .hexutil import is_private_key

__all__ = ["load_account", "generate_account", "account_address"]


def load_account(private_key: str) -> LocalAccount:
    """Return a LocalAccount for `private_key` or raise ConfigurationError."""
    if not is_private_key(private_key):
        # never echo the key back
        raise ConfigurationError(
            "private key must be 0x followed by 64 hex characters", field="account.private_key"
        )
    try:
        return Account.from_key(private_key.strip())
    except Exception as e:
        raise ConfigurationError(
            f"private key rejected ({type(e).__name__})", field="account.private_key"
        ) from e


def generate_account() -> LocalAccount:
    """Create a new random account (caller is responsible for persisting the key)."""
    return Account.create()


def account_address(account: LocalAccount) -> str:
    return account.address
