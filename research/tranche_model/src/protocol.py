"""Wiring of the three ledgers into one protocol instance"""
from dataclasses import dataclass
from typing import Dict, Optional

from .config.loader import load_config
from .config.schema import Config
from .deposits.sink import InMemoryLiquiditySink
from .ledgers.senior import SeniorLedger
from .ledgers.subordinate import JuniorLedger, ReserveLedger
from .libs.fixed_point import lp_units_for, to_fixed
from .utils.clock import SystemClock
from .utils.logging import get_logger, set_log_level

log = get_logger(__name__)


@dataclass
class Protocol:
    senior: SeniorLedger
    junior: JuniorLedger
    reserve: ReserveLedger
    clock: object
    sink: object
    config: Config

    @property
    def operator(self) -> str:
        return self.senior.operator

    def ledgers(self) -> Dict[str, object]:
        return {"senior": self.senior, "junior": self.junior, "reserve": self.reserve}

    def total_value(self) -> int:
        return self.senior.value + self.junior.value + self.reserve.value


def build_protocol(
    config: Optional[Config] = None,
    clock=None,
    sink=None,
    seed: bool = True,
) -> Protocol:
    """Create Senior, Junior and Reserve ledgers, wire them and optionally fund them.

    Args:
        config: Validated configuration (defaults.yaml when omitted)
        clock: Clock shared by all ledgers (SystemClock when omitted)
        sink: Liquidity sink shared by all deposit registries
        seed: Admit the configured seed deposits

    Returns:
        Protocol holding the wired ledgers
    """
    config = config or load_config()
    clock = clock or SystemClock()
    sink = sink or InMemoryLiquiditySink()
    set_log_level(config.log_level)

    settings = config.ledgers
    operator = settings.operator
    senior = SeniorLedger(
        settings.senior_address, operator, clock, min_rebase_interval=settings.min_rebase_interval
    )
    junior = JuniorLedger(settings.junior_address, operator, clock)
    reserve = ReserveLedger(settings.reserve_address, operator, clock)

    senior.configure_peers(operator, junior, reserve)
    junior.set_senior(operator, senior)
    reserve.set_senior(operator, senior)

    for ledger in (senior, junior, reserve):
        ledger.deposits.set_sink(operator, sink)
        ledger.deposits.set_whitelist_enabled(operator, settings.whitelist_enabled)
        for lp_token in settings.allowed_lp_tokens:
            ledger.deposits.add_lp_token(operator, lp_token)

    protocol = Protocol(senior=senior, junior=junior, reserve=reserve, clock=clock, sink=sink, config=config)
    if seed:
        seed_protocol(protocol)
    log.info(f"Protocol built (config {config.compute_hash()})")
    return protocol


def seed_protocol(protocol: Protocol) -> None:
    """Fund each tranche through the pending-deposit flow at the seed LP price.

    Reserve goes first so the Senior deposit cap is already in place.
    """
    seed = protocol.config.seed
    operator = protocol.operator
    lp_price = to_fixed(seed.lp_price)
    funding = (
        (protocol.reserve, seed.reserve_value),
        (protocol.junior, seed.junior_value),
        (protocol.senior, seed.senior_value),
    )
    for ledger, value in funding:
        if value <= 0:
            continue
        units = lp_units_for(to_fixed(value), lp_price)
        registry = ledger.deposits
        if registry.whitelist_enabled:
            registry.add_depositor(operator, seed.holder)
        protocol.sink.mint(seed.holder, seed.lp_token, units)
        deposit_id = registry.deposit_lp(seed.holder, seed.lp_token, units)
        registry.approve_lp_deposit(operator, deposit_id, lp_price)
        log.debug(f"Seeded {ledger.address} with {units} {seed.lp_token}")
