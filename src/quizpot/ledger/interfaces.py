"""Ledger adapter interface.

The escrow engine moves money only through this contract, so the backing
token ledger stays swappable.
"""

from abc import ABC, abstractmethod


class TokenLedger(ABC):
    """Fungible-token ledger seen from the escrow account."""

    @property
    @abstractmethod
    def escrow_account(self) -> str:
        """Account holding collected entry fees."""
        ...

    @abstractmethod
    def allowance_of(self, owner: str, spender: str) -> int:
        """Amount `spender` may still pull from `owner`."""
        ...

    @abstractmethod
    def balance_of(self, account: str) -> int:
        """Current balance of `account`."""
        ...

    @abstractmethod
    def pull(self, source: str, destination: str, amount: int) -> None:
        """Move `amount` from `source` to `destination` against the escrow's allowance.

        Raises:
            LedgerTransferError: If the allowance or the source balance is insufficient.
        """
        ...

    @abstractmethod
    def push(self, recipient: str, amount: int) -> None:
        """Send `amount` from the escrow account to `recipient`.

        Raises:
            LedgerTransferError: If the escrow balance is insufficient.
        """
        ...
