"""Senior rebase: APY selection, index growth and the waterfall transfers"""
from dataclasses import dataclass
from typing import Optional

from ..errors import PeerNotConfiguredError, StateError, TooSoonError, ValidationError
from ..libs.apy_selector import select_dynamic_apy
from ..libs.fee_engine import calculate_management_fee, calculate_new_rebase_index
from ..libs.fixed_point import calculate_backing_ratio, lp_units_for, mul_div
from ..libs.waterfall import (
    BackstopResult,
    ProfitSpillover,
    Zone,
    calculate_backstop,
    calculate_profit_spillover,
    determine_zone,
)
from ..utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class RebaseReport:
    """What one rebase did, for the operator and the simulation"""
    epoch: int
    timestamp: int
    apy_tier: int
    selected_rate: int
    backstop_needed: bool
    index_before: int
    index_after: int
    supply_before: int
    supply_after: int
    value_before: int
    value_after: int
    management_fee: int
    zone: Zone
    spillover: Optional[ProfitSpillover] = None
    backstop: Optional[BackstopResult] = None
    provided_by_reserve: int = 0
    provided_by_junior: int = 0

    @property
    def backing_ratio(self) -> int:
        return calculate_backing_ratio(self.value_after, self.supply_after)

    @property
    def fully_restored(self) -> bool:
        if self.backstop is None:
            return True
        return self.provided_by_reserve + self.provided_by_junior == self.backstop.deficit_amount


def execute_rebase(senior, lp_price: int = 0) -> RebaseReport:
    """Run one rebase cycle on an already-locked Senior ledger.

    1. Mark value from LP holdings when a price is supplied.
    2. Stream one month of management fee out of value.
    3. Pick the highest APY tier that keeps Senior >= 100% backed.
    4. Grow the rebase index (shares never change).
    5. Spill the excess above 110% to Junior/Reserve, or pull the deficit
       to 100.9% from Reserve then Junior.
    """
    state = senior.state
    now = senior.clock.now()

    if lp_price < 0:
        raise ValidationError("LP price cannot be negative")
    if state.last_rebase_time and now - state.last_rebase_time < senior.min_rebase_interval:
        wait = senior.min_rebase_interval - (now - state.last_rebase_time)
        raise TooSoonError(f"Rebase allowed again in {wait} seconds")

    supply_before = senior.total_supply()
    if supply_before == 0:
        raise StateError("Cannot rebase a Senior ledger with no supply")

    if lp_price > 0 and state.lp_balance > 0:
        state.value = mul_div(state.lp_balance, lp_price)
    value_before = state.value

    # Month-end baseline for every tranche, taken before any value moves
    state.last_month_value = state.value
    state.month_snapshots += 1
    for peer in (senior.junior, senior.reserve):
        if peer is not None:
            peer.record_month_end(senior.address)

    # Step 2: management fee leaves the vault
    management_fee = calculate_management_fee(state.value)
    state.lp_balance -= lp_units_for(management_fee, lp_price, state.lp_balance)
    state.value -= management_fee
    state.fees_collected += management_fee

    # Steps 3-4: dynamic APY and index growth
    selection = select_dynamic_apy(supply_before, state.value)
    index_before = state.rebase_index
    state.rebase_index = calculate_new_rebase_index(index_before, selection.selected_rate)
    state.epoch += 1
    state.last_rebase_time = now
    supply_after = senior.total_supply()

    # Step 5: waterfall
    zone = determine_zone(calculate_backing_ratio(state.value, supply_after))
    spillover = None
    backstop = None
    from_reserve = from_junior = 0

    if zone is Zone.SPILLOVER:
        spillover = _distribute_spillover(senior, supply_after, lp_price)
    elif zone is Zone.BACKSTOP:
        backstop, from_reserve, from_junior = _pull_backstop(senior, supply_after, lp_price)

    report = RebaseReport(
        epoch=state.epoch,
        timestamp=now,
        apy_tier=selection.apy_tier,
        selected_rate=selection.selected_rate,
        backstop_needed=selection.backstop_needed,
        index_before=index_before,
        index_after=state.rebase_index,
        supply_before=supply_before,
        supply_after=supply_after,
        value_before=value_before,
        value_after=state.value,
        management_fee=management_fee,
        zone=zone,
        spillover=spillover,
        backstop=backstop,
        provided_by_reserve=from_reserve,
        provided_by_junior=from_junior,
    )
    log.info(
        f"{senior.address}: rebase epoch={report.epoch} tier={report.apy_tier} "
        f"zone={zone.name} supply={supply_after} value={state.value}"
    )
    return report


def _require_peers(senior) -> None:
    if senior.junior is None or senior.reserve is None:
        raise PeerNotConfiguredError("Junior and Reserve ledgers must be configured")


def _distribute_spillover(senior, supply: int, lp_price: int) -> ProfitSpillover:
    _require_peers(senior)
    state = senior.state
    spillover = calculate_profit_spillover(state.value, supply)

    junior_units = lp_units_for(spillover.to_junior, lp_price, state.lp_balance)
    state.lp_balance -= junior_units
    reserve_units = lp_units_for(spillover.to_reserve, lp_price, state.lp_balance)
    state.lp_balance -= reserve_units

    senior.junior.receive_spillover(senior.address, spillover.to_junior, junior_units)
    senior.reserve.receive_spillover(senior.address, spillover.to_reserve, reserve_units)
    state.value = spillover.senior_final_value

    log.info(
        f"{senior.address}: spillover excess={spillover.excess_amount} "
        f"junior={spillover.to_junior} reserve={spillover.to_reserve}"
    )
    return spillover


def _pull_backstop(senior, supply: int, lp_price: int):
    _require_peers(senior)
    state = senior.state
    backstop = calculate_backstop(
        state.value, supply, senior.reserve.value, senior.junior.value
    )

    # Reserve absorbs the loss before Junior
    units_before = senior.reserve.lp_balance + senior.junior.lp_balance
    from_reserve = senior.reserve.provide_backstop(senior.address, backstop.from_reserve, lp_price)
    from_junior = senior.junior.provide_backstop(senior.address, backstop.from_junior, lp_price)
    provided = from_reserve + from_junior
    # Only LP units the peers actually released move to Senior
    state.lp_balance += units_before - senior.reserve.lp_balance - senior.junior.lp_balance
    state.value += provided

    if provided < backstop.deficit_amount:
        log.warning(
            f"{senior.address}: backstop short by {backstop.deficit_amount - provided} "
            f"(reserve={from_reserve}, junior={from_junior})"
        )
    else:
        log.info(f"{senior.address}: backstop reserve={from_reserve} junior={from_junior}")
    return backstop, from_reserve, from_junior
