"""Liquidity sink holding LP value in escrow for the pending-deposit registry"""
import copy
from typing import Dict, Protocol, Tuple

from ..errors import ValidationError


class LiquiditySink(Protocol):
    def escrow(self, depositor: str, lp_token: str, amount: int) -> None: ...

    def release(self, recipient: str, lp_token: str, amount: int) -> None: ...

    def deploy(self, lp_token: str, amount: int) -> None: ...


class InMemoryLiquiditySink:
    """Wallet balances, escrow and deployed liquidity kept in dicts"""

    def __init__(self):
        self.wallets: Dict[Tuple[str, str], int] = {}
        self.escrowed: Dict[str, int] = {}
        self.deployed: Dict[str, int] = {}

    def mint(self, holder: str, lp_token: str, amount: int) -> None:
        key = (holder, lp_token)
        self.wallets[key] = self.wallets.get(key, 0) + amount

    def balance_of(self, holder: str, lp_token: str) -> int:
        return self.wallets.get((holder, lp_token), 0)

    def escrow(self, depositor: str, lp_token: str, amount: int) -> None:
        key = (depositor, lp_token)
        held = self.wallets.get(key, 0)
        if amount > held:
            raise ValidationError(f"{depositor} holds {held} {lp_token}, cannot escrow {amount}")
        self.wallets[key] = held - amount
        self.escrowed[lp_token] = self.escrowed.get(lp_token, 0) + amount

    def release(self, recipient: str, lp_token: str, amount: int) -> None:
        self._take_from_escrow(lp_token, amount)
        self.mint(recipient, lp_token, amount)

    def deploy(self, lp_token: str, amount: int) -> None:
        self._take_from_escrow(lp_token, amount)
        self.deployed[lp_token] = self.deployed.get(lp_token, 0) + amount

    def _take_from_escrow(self, lp_token: str, amount: int) -> None:
        held = self.escrowed.get(lp_token, 0)
        if amount > held:
            raise ValidationError(f"Escrow holds {held} {lp_token}, cannot move {amount}")
        self.escrowed[lp_token] = held - amount

    def snapshot(self):
        return copy.deepcopy((self.wallets, self.escrowed, self.deployed))

    def restore(self, snap) -> None:
        self.wallets, self.escrowed, self.deployed = snap
