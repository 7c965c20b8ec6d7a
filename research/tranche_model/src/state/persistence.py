"""Versioned at-rest snapshots of a wired protocol"""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from ..errors import SchemaVersionError, ValidationError
from ..utils.indexed_set import IndexedSet
from .pending_deposit import DepositStatus, PendingLPDeposit
from .tranche_state import TrancheState

SCHEMA_VERSION = 1


class TrancheRecord(BaseModel):
    name: str
    value: int = Field(ge=0)
    last_month_value: int = Field(default=0, ge=0)
    month_snapshots: int = Field(default=0, ge=0)
    total_shares: int = Field(default=0, ge=0)
    shares: Dict[str, int] = Field(default_factory=dict)
    rebase_index: int = Field(gt=0)
    epoch: int = Field(default=0, ge=0)
    last_rebase_time: int = Field(default=0, ge=0)
    lp_balance: int = Field(default=0, ge=0)
    total_spillover_received: int = Field(default=0, ge=0)
    total_backstop_provided: int = Field(default=0, ge=0)
    fees_collected: int = Field(default=0, ge=0)
    cooldowns: Dict[str, int] = Field(default_factory=dict)


class DepositRecord(BaseModel):
    id: int = Field(ge=0)
    depositor: str
    lp_token: str
    amount: int = Field(gt=0)
    created_at: int
    expires_at: int
    status: DepositStatus
    reason: str = ""
    price: int = 0
    value_credited: int = 0
    shares_minted: int = 0
    resolved_at: Optional[int] = None


class RegistryRecord(BaseModel):
    whitelist_enabled: bool = False
    lp_tokens: List[str] = Field(default_factory=list)
    depositors: List[str] = Field(default_factory=list)
    next_deposit_id: int = Field(default=0, ge=0)
    deposits: List[DepositRecord] = Field(default_factory=list)
    user_deposits: Dict[str, List[int]] = Field(default_factory=dict)


class LedgerRecord(BaseModel):
    address: str
    operator: str
    operator_history: List[str]
    min_rebase_interval: Optional[int] = None
    state: TrancheRecord
    registry: RegistryRecord


class SinkRecord(BaseModel):
    # holder -> lp token -> amount
    wallets: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    escrowed: Dict[str, int] = Field(default_factory=dict)
    deployed: Dict[str, int] = Field(default_factory=dict)


class ProtocolSnapshot(BaseModel):
    schema_version: int = SCHEMA_VERSION
    timestamp: int
    config_hash: str
    senior: LedgerRecord
    junior: LedgerRecord
    reserve: LedgerRecord
    sink: Optional[SinkRecord] = None


def _export_ledger(ledger) -> LedgerRecord:
    registry = ledger.deposits
    return LedgerRecord(
        address=ledger.address,
        operator=ledger.operator,
        operator_history=list(ledger.operator_history),
        min_rebase_interval=getattr(ledger, "min_rebase_interval", None),
        state=TrancheRecord(**vars(ledger.state)),
        registry=RegistryRecord(
            whitelist_enabled=registry.whitelist_enabled,
            lp_tokens=registry.lp_tokens.to_list(),
            depositors=registry.depositors.to_list(),
            next_deposit_id=registry.next_deposit_id,
            deposits=[DepositRecord(**vars(d)) for d in registry.deposits.values()],
            user_deposits={k: list(v) for k, v in registry.user_deposits.items()},
        ),
    )


def _export_sink(sink) -> Optional[SinkRecord]:
    if not hasattr(sink, "wallets"):
        return None
    wallets: Dict[str, Dict[str, int]] = {}
    for (holder, lp_token), amount in sink.wallets.items():
        wallets.setdefault(holder, {})[lp_token] = amount
    return SinkRecord(wallets=wallets, escrowed=dict(sink.escrowed), deployed=dict(sink.deployed))


def export_snapshot(protocol) -> ProtocolSnapshot:
    """Capture every ledger, registry and the sink of a protocol"""
    return ProtocolSnapshot(
        timestamp=protocol.clock.now(),
        config_hash=protocol.config.compute_hash(),
        senior=_export_ledger(protocol.senior),
        junior=_export_ledger(protocol.junior),
        reserve=_export_ledger(protocol.reserve),
        sink=_export_sink(protocol.sink),
    )


def _restore_ledger(ledger, record: LedgerRecord) -> None:
    ledger.operator = record.operator
    ledger.operator_history = list(record.operator_history)
    if record.min_rebase_interval is not None:
        ledger.min_rebase_interval = record.min_rebase_interval
    ledger.state = TrancheState(**record.state.model_dump())

    registry = ledger.deposits
    registry.whitelist_enabled = record.registry.whitelist_enabled
    registry.lp_tokens = IndexedSet(record.registry.lp_tokens)
    registry.depositors = IndexedSet(record.registry.depositors)
    registry.next_deposit_id = record.registry.next_deposit_id
    registry.deposits = {
        d.id: PendingLPDeposit(**d.model_dump()) for d in record.registry.deposits
    }
    registry.user_deposits = {k: list(v) for k, v in record.registry.user_deposits.items()}


def restore_snapshot(protocol, data: Union[ProtocolSnapshot, Dict[str, Any]]) -> None:
    """Load a snapshot into an already wired protocol with the same addresses"""
    if isinstance(data, ProtocolSnapshot):
        data = data.model_dump()
    version = data.get("schema_version")
    if version != SCHEMA_VERSION:
        raise SchemaVersionError(
            f"Unsupported snapshot schema version {version} (expected {SCHEMA_VERSION})"
        )
    snapshot = ProtocolSnapshot(**data)

    pairs = (
        (protocol.senior, snapshot.senior),
        (protocol.junior, snapshot.junior),
        (protocol.reserve, snapshot.reserve),
    )
    # Check every ledger before touching any of them
    for ledger, record in pairs:
        if record.address != ledger.address:
            raise ValidationError(f"Snapshot is for {record.address}, not {ledger.address}")
    for ledger, record in pairs:
        _restore_ledger(ledger, record)

    if snapshot.sink is not None and hasattr(protocol.sink, "wallets"):
        protocol.sink.wallets = {
            (holder, lp_token): amount
            for holder, tokens in snapshot.sink.wallets.items()
            for lp_token, amount in tokens.items()
        }
        protocol.sink.escrowed = dict(snapshot.sink.escrowed)
        protocol.sink.deployed = dict(snapshot.sink.deployed)


def save_snapshot(path: Union[str, Path], protocol) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_snapshot(protocol).model_dump_json(indent=2))
    return path


def load_snapshot(path: Union[str, Path], protocol) -> None:
    with open(path, 'r') as f:
        data = json.load(f)
    restore_snapshot(protocol, data)
