"""Admission-controlled queue turning escrowed LP value into ledger shares

A depositor escrows LP tokens with deposit_lp. The deposit then ends in
exactly one terminal state:
  APPROVED         operator, before expiry, shares minted at the given price
  REJECTED         operator, any time while pending, LP returned
  CANCELLED        depositor, any time while pending, LP returned
  EXPIRED_CLAIMED  anyone, once expired, LP returned to the depositor
"""
import copy
import dataclasses
from typing import Dict, List, Optional

from ..errors import (
    AuthorizationError,
    DepositExpiredError,
    DepositNotExpiredError,
    DepositNotPendingError,
    SinkNotConfiguredError,
    ValidationError,
)
from ..libs.fixed_point import mul_div
from ..state.pending_deposit import DepositStatus, PendingLPDeposit
from ..utils.indexed_set import IndexedSet
from ..utils.logging import get_logger
from ..utils.transaction import ReentrancyLock, atomic

log = get_logger(__name__)


class PendingDepositRegistry:
    def __init__(self, ledger, sink=None, whitelist_enabled: bool = False):
        self.ledger = ledger
        self.sink = sink
        self.whitelist_enabled = whitelist_enabled
        self.lp_tokens = IndexedSet()
        self.depositors = IndexedSet()
        self.deposits: Dict[int, PendingLPDeposit] = {}
        self.user_deposits: Dict[str, List[int]] = {}
        self.next_deposit_id = 0

    @property
    def _lock(self) -> ReentrancyLock:
        # Shared with the ledger so no transition can run inside a ledger operation
        return self.ledger._lock

    # -- snapshot / restore for atomic operations --

    def snapshot(self):
        return copy.deepcopy((self.deposits, self.user_deposits, self.next_deposit_id))

    def restore(self, snap) -> None:
        self.deposits, self.user_deposits, self.next_deposit_id = snap

    def _participants(self):
        sink = self.sink if hasattr(self.sink, "snapshot") else None
        return self, self.ledger, sink

    # -- administration --

    def _require_operator(self, caller: str) -> None:
        if caller != self.ledger.operator:
            raise AuthorizationError(f"{caller} is not the operator of {self.ledger.address}")

    def set_sink(self, caller: str, sink) -> None:
        self._require_operator(caller)
        self.sink = sink

    def add_lp_token(self, caller: str, lp_token: str) -> bool:
        self._require_operator(caller)
        if not lp_token:
            raise ValidationError("LP token identifier must be non-empty")
        return self.lp_tokens.add(lp_token)

    def remove_lp_token(self, caller: str, lp_token: str) -> bool:
        self._require_operator(caller)
        return self.lp_tokens.remove(lp_token)

    def add_depositor(self, caller: str, depositor: str) -> bool:
        self._require_operator(caller)
        if not depositor:
            raise ValidationError("Depositor address must be non-empty")
        return self.depositors.add(depositor)

    def remove_depositor(self, caller: str, depositor: str) -> bool:
        self._require_operator(caller)
        return self.depositors.remove(depositor)

    def set_whitelist_enabled(self, caller: str, enabled: bool) -> None:
        self._require_operator(caller)
        self.whitelist_enabled = enabled

    # -- lifecycle --

    def deposit_lp(self, caller: str, lp_token: str, amount: int) -> int:
        if not lp_token:
            raise ValidationError("LP token identifier must be non-empty")
        if amount <= 0:
            raise ValidationError("LP amount must be positive")
        if self.sink is None:
            raise SinkNotConfiguredError(f"{self.ledger.address} has no liquidity sink")
        if lp_token not in self.lp_tokens:
            raise ValidationError(f"LP token {lp_token} is not allowed")
        if self.whitelist_enabled and caller not in self.depositors:
            raise AuthorizationError(f"{caller} is not a whitelisted depositor")

        with atomic(self._lock, "deposit_lp", *self._participants()):
            now = self.ledger.clock.now()
            deposit_id = self.next_deposit_id
            self.sink.escrow(caller, lp_token, amount)
            self.deposits[deposit_id] = PendingLPDeposit(
                id=deposit_id,
                depositor=caller,
                lp_token=lp_token,
                amount=amount,
                created_at=now,
            )
            self.user_deposits.setdefault(caller, []).append(deposit_id)
            self.next_deposit_id += 1

        log.info(f"{self.ledger.address}: deposit #{deposit_id} pending ({amount} {lp_token} from {caller})")
        return deposit_id

    def approve_lp_deposit(self, caller: str, deposit_id: int, price: int) -> int:
        """Admit a pending deposit at `price` (value per LP unit); returns shares minted"""
        self._require_operator(caller)
        with atomic(self._lock, "approve_lp_deposit", *self._participants()):
            deposit = self._pending(deposit_id)
            now = self.ledger.clock.now()
            if deposit.is_expired(now):
                raise DepositExpiredError(f"Deposit #{deposit_id} expired at {deposit.expires_at}")
            if price <= 0:
                raise ValidationError("Approval price must be positive")

            value = mul_div(deposit.amount, price)
            self.sink.deploy(deposit.lp_token, deposit.amount)
            shares = self.ledger._issue_shares(deposit.depositor, value, lp_units=deposit.amount)

            deposit.status = DepositStatus.APPROVED
            deposit.price = price
            deposit.value_credited = value
            deposit.shares_minted = shares
            deposit.resolved_at = now

        log.info(f"{self.ledger.address}: deposit #{deposit_id} approved value={value} shares={shares}")
        return shares

    def reject_lp_deposit(self, caller: str, deposit_id: int, reason: str = "") -> None:
        self._require_operator(caller)
        with atomic(self._lock, "reject_lp_deposit", *self._participants()):
            deposit = self._pending(deposit_id)
            self._return_to_depositor(deposit, DepositStatus.REJECTED)
            deposit.reason = reason
        log.info(f"{self.ledger.address}: deposit #{deposit_id} rejected: {reason}")

    def cancel_pending_deposit(self, caller: str, deposit_id: int) -> None:
        with atomic(self._lock, "cancel_pending_deposit", *self._participants()):
            deposit = self._pending(deposit_id)
            if caller != deposit.depositor:
                raise AuthorizationError(f"Only {deposit.depositor} can cancel deposit #{deposit_id}")
            self._return_to_depositor(deposit, DepositStatus.CANCELLED)
        log.info(f"{self.ledger.address}: deposit #{deposit_id} cancelled")

    def claim_expired_deposit(self, caller: str, deposit_id: int) -> None:
        """Return an expired deposit to its depositor; anyone may call"""
        with atomic(self._lock, "claim_expired_deposit", *self._participants()):
            deposit = self._pending(deposit_id)
            if not deposit.is_expired(self.ledger.clock.now()):
                raise DepositNotExpiredError(
                    f"Deposit #{deposit_id} does not expire until {deposit.expires_at}"
                )
            self._return_to_depositor(deposit, DepositStatus.EXPIRED_CLAIMED)
        log.info(f"{self.ledger.address}: expired deposit #{deposit_id} returned by {caller}")

    def _pending(self, deposit_id: int) -> PendingLPDeposit:
        deposit = self.deposits.get(deposit_id)
        if deposit is None:
            raise ValidationError(f"Unknown deposit #{deposit_id}")
        if not deposit.is_pending:
            raise DepositNotPendingError(f"Deposit #{deposit_id} is already {deposit.status.value}")
        return deposit

    def _return_to_depositor(self, deposit: PendingLPDeposit, status: DepositStatus) -> None:
        self.sink.release(deposit.depositor, deposit.lp_token, deposit.amount)
        deposit.status = status
        deposit.resolved_at = self.ledger.clock.now()

    # -- views --

    def get_pending_deposit(self, deposit_id: int) -> Optional[PendingLPDeposit]:
        deposit = self.deposits.get(deposit_id)
        return dataclasses.replace(deposit) if deposit is not None else None

    def get_user_deposit_ids(self, depositor: str) -> List[int]:
        return list(self.user_deposits.get(depositor, []))

    def get_next_deposit_id(self) -> int:
        return self.next_deposit_id

    def pending_deposit_ids(self) -> List[int]:
        return [d.id for d in self.deposits.values() if d.is_pending]
