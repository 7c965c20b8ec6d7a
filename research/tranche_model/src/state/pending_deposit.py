"""Pending LP deposit awaiting operator admission"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from ..constants import DEPOSIT_EXPIRY


class DepositStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    EXPIRED_CLAIMED = "EXPIRED_CLAIMED"


@dataclass
class PendingLPDeposit:
    """LP value escrowed by a depositor until approve/reject/cancel/claim"""
    id: int
    depositor: str
    lp_token: str
    amount: int
    created_at: int
    expires_at: int = 0
    status: DepositStatus = DepositStatus.PENDING
    reason: str = ""
    price: int = 0
    value_credited: int = 0
    shares_minted: int = 0
    resolved_at: Optional[int] = None

    def __post_init__(self):
        if not self.expires_at:
            self.expires_at = self.created_at + DEPOSIT_EXPIRY

    @property
    def is_pending(self) -> bool:
        return self.status is DepositStatus.PENDING

    def is_expired(self, now: int) -> bool:
        return now >= self.expires_at
