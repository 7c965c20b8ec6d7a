"""Pydantic schema for configuration validation."""

import hashlib
import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from ..constants import DEFAULT_MIN_REBASE_INTERVAL, DEPOSIT_CAP_MULTIPLIER


class LedgerSettings(BaseModel):
    """Principals and limits of the three ledgers."""
    operator: str = Field(default="operator", min_length=1, description="Keeper/admin principal")
    senior_address: str = Field(default="senior", min_length=1)
    junior_address: str = Field(default="junior", min_length=1)
    reserve_address: str = Field(default="reserve", min_length=1)
    min_rebase_interval: int = Field(
        default=DEFAULT_MIN_REBASE_INTERVAL, gt=0, description="Seconds between Senior rebases"
    )
    whitelist_enabled: bool = Field(default=False, description="Restrict LP deposits to whitelisted callers")
    allowed_lp_tokens: List[str] = Field(default_factory=lambda: ["LP"], description="LP tokens accepted for deposit")

    @model_validator(mode='after')
    def validate_distinct_addresses(self):
        """Ledgers must be distinguishable as callers."""
        addresses = {self.senior_address, self.junior_address, self.reserve_address}
        if len(addresses) != 3:
            raise ValueError("Senior, Junior and Reserve addresses must be distinct")
        if self.operator in addresses:
            raise ValueError("Operator cannot share an address with a ledger")
        return self


class SeedSettings(BaseModel):
    """Initial tranche funding, admitted as approved LP deposits."""
    holder: str = Field(default="treasury", min_length=1, description="Principal that funds the tranches")
    lp_token: str = Field(default="LP", min_length=1)
    lp_price: float = Field(default=1.0, gt=0, description="Initial value per LP unit")
    senior_value: float = Field(ge=0, description="Initial Senior value")
    junior_value: float = Field(ge=0, description="Initial Junior value")
    reserve_value: float = Field(ge=0, description="Initial Reserve value")

    @model_validator(mode='after')
    def validate_deposit_cap(self):
        """Senior seed must respect the reserve-based deposit cap."""
        if self.senior_value > self.reserve_value * DEPOSIT_CAP_MULTIPLIER:
            raise ValueError(
                f"senior_value {self.senior_value} exceeds reserve_value x {DEPOSIT_CAP_MULTIPLIER}"
            )
        return self


class ScenarioSettings(BaseModel):
    """One simulated LP price path."""
    name: str = Field(min_length=1)
    months: int = Field(gt=0, le=240, description="Number of monthly rebases")
    initial_lp_price: float = Field(default=1.0, gt=0)
    monthly_drift: float = Field(default=0.0, ge=-0.5, le=1.0, description="Mean monthly LP price return")
    volatility: float = Field(default=0.0, ge=0, le=1.0, description="Monthly LP price volatility")
    shock_month: Optional[int] = Field(default=None, ge=0, description="Month of a one-off price shock")
    shock_size: float = Field(default=0.0, ge=-0.9, le=1.0, description="Relative size of the shock")
    random_seed: Optional[int] = Field(default=None, description="Random seed for reproducibility")


class Config(BaseModel):
    """Complete configuration for the tranche model."""
    ledgers: LedgerSettings = Field(default_factory=LedgerSettings)
    seed: SeedSettings
    scenarios: List[ScenarioSettings] = Field(default_factory=list)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump()
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    def scenario(self, name: str) -> ScenarioSettings:
        for scenario in self.scenarios:
            if scenario.name == name:
                return scenario
        raise KeyError(f"Unknown scenario: {name}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()
