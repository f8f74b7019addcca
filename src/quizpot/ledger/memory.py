"""In-process token ledger used for local development and tests."""

import threading
from typing import Callable

from quizpot.core.errors import LedgerTransferError
from quizpot.core.logging import get_logger
from quizpot.core.validators import require_address, validate_amount
from quizpot.ledger.interfaces import TokenLedger

logger = get_logger(__name__)

# (source, destination, amount)
TransferHook = Callable[[str, str, int], None]


class InMemoryTokenLedger(TokenLedger):
    """Balance and allowance book kept in dictionaries.

    Transfer hooks run after balances move and before the transfer is
    final, the way token callbacks do on a real ledger. A hook that raises
    rolls the transfer back and surfaces as LedgerTransferError.
    """

    def __init__(self, escrow_account: str) -> None:
        self._escrow_account = require_address(escrow_account, "escrow_account")
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._frozen: set[str] = set()
        self._hooks: list[TransferHook] = []
        self._lock = threading.RLock()

    @property
    def escrow_account(self) -> str:
        return self._escrow_account

    # ---- account setup ----

    def mint(self, account: str, amount: int) -> None:
        validate_amount(amount)
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Allowance cannot be negative")
        with self._lock:
            self._allowances[(owner, spender)] = amount

    def freeze(self, account: str) -> None:
        """Reject every transfer that credits `account`."""
        with self._lock:
            self._frozen.add(account)

    def unfreeze(self, account: str) -> None:
        with self._lock:
            self._frozen.discard(account)

    def add_transfer_hook(self, hook: TransferHook) -> None:
        self._hooks.append(hook)

    def clear_transfer_hooks(self) -> None:
        self._hooks.clear()

    # ---- TokenLedger ----

    def allowance_of(self, owner: str, spender: str) -> int:
        with self._lock:
            return self._allowances.get((owner, spender), 0)

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def pull(self, source: str, destination: str, amount: int) -> None:
        validate_amount(amount)
        with self._lock:
            allowance = self.allowance_of(source, self._escrow_account)
            if allowance < amount:
                raise LedgerTransferError(
                    "Allowance exceeded",
                    details={"source": source, "allowance": allowance, "amount": amount},
                )
            self._allowances[(source, self._escrow_account)] = allowance - amount
            try:
                self._move(source, destination, amount)
            except LedgerTransferError:
                self._allowances[(source, self._escrow_account)] = allowance
                raise

    def push(self, recipient: str, amount: int) -> None:
        validate_amount(amount)
        with self._lock:
            self._move(self._escrow_account, recipient, amount)

    def _move(self, source: str, destination: str, amount: int) -> None:
        if destination in self._frozen:
            raise LedgerTransferError(
                "Recipient account is frozen", details={"destination": destination}
            )

        balance = self._balances.get(source, 0)
        if balance < amount:
            raise LedgerTransferError(
                "Insufficient balance",
                details={"source": source, "balance": balance, "amount": amount},
            )

        snapshot = dict(self._balances)
        self._balances[source] = balance - amount
        self._balances[destination] = self._balances.get(destination, 0) + amount

        for hook in list(self._hooks):
            try:
                hook(source, destination, amount)
            except Exception as exc:
                self._balances = snapshot
                logger.warning(
                    "ledger.hook_rejected",
                    source=source,
                    destination=destination,
                    amount=amount,
                    error=type(exc).__name__,
                )
                raise LedgerTransferError(
                    "Transfer rejected by receiver callback",
                    details={"destination": destination, "reason": type(exc).__name__},
                ) from exc
