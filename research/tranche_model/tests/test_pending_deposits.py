"""Tests for the pending LP deposit lifecycle"""
import pytest

from tranche_model.src.constants import DEPOSIT_EXPIRY
from tranche_model.src.errors import (
    AuthorizationError,
    DepositCapExceededError,
    DepositExpiredError,
    DepositNotExpiredError,
    DepositNotPendingError,
    SinkNotConfiguredError,
    StateError,
    ValidationError,
)
from tranche_model.src.ledgers.subordinate import JuniorLedger
from tranche_model.src.libs.fixed_point import to_fixed
from tranche_model.src.state.pending_deposit import DepositStatus

from conftest import OPERATOR

LP = "LP"


@pytest.fixture
def junior(empty_protocol):
    empty_protocol.sink.mint("alice", LP, to_fixed(1_000))
    return empty_protocol.junior


def test_deposit_escrows_lp(empty_protocol, junior):
    registry = junior.deposits
    deposit_id = registry.deposit_lp("alice", LP, to_fixed(400))

    assert deposit_id == 0
    assert registry.get_next_deposit_id() == 1
    assert registry.get_user_deposit_ids("alice") == [0]
    assert registry.pending_deposit_ids() == [0]
    assert empty_protocol.sink.balance_of("alice", LP) == to_fixed(600)
    assert empty_protocol.sink.escrowed[LP] == to_fixed(400)

    deposit = registry.get_pending_deposit(deposit_id)
    assert deposit.status is DepositStatus.PENDING
    assert deposit.expires_at == deposit.created_at + DEPOSIT_EXPIRY
    assert registry.get_pending_deposit(99) is None


def test_approve_mints_shares_at_price(empty_protocol, junior):
    registry = junior.deposits
    deposit_id = registry.deposit_lp("alice", LP, to_fixed(1_000))

    shares = registry.approve_lp_deposit(OPERATOR, deposit_id, to_fixed("1.5"))

    assert shares == to_fixed(1_500)
    assert junior.value == to_fixed(1_500)
    assert junior.state.lp_balance == to_fixed(1_000)
    assert junior.balance_of("alice") == to_fixed(1_500)
    assert empty_protocol.sink.deployed[LP] == to_fixed(1_000)
    assert empty_protocol.sink.escrowed[LP] == 0

    deposit = registry.get_pending_deposit(deposit_id)
    assert deposit.status is DepositStatus.APPROVED
    assert deposit.value_credited == to_fixed(1_500)
    assert deposit.shares_minted == shares
    assert registry.pending_deposit_ids() == []


def test_each_deposit_has_one_terminal_state(junior, clock):
    registry = junior.deposits
    approved = registry.deposit_lp("alice", LP, to_fixed(100))
    rejected = registry.deposit_lp("alice", LP, to_fixed(100))
    cancelled = registry.deposit_lp("alice", LP, to_fixed(100))
    expired = registry.deposit_lp("alice", LP, to_fixed(100))

    registry.approve_lp_deposit(OPERATOR, approved, to_fixed(1))
    registry.reject_lp_deposit(OPERATOR, rejected, "price feed stale")
    registry.cancel_pending_deposit("alice", cancelled)
    clock.advance(DEPOSIT_EXPIRY)
    registry.claim_expired_deposit("bob", expired)

    second_transitions = [
        lambda d: registry.approve_lp_deposit(OPERATOR, d, to_fixed(1)),
        lambda d: registry.reject_lp_deposit(OPERATOR, d),
        lambda d: registry.cancel_pending_deposit("alice", d),
        lambda d: registry.claim_expired_deposit("bob", d),
    ]
    for deposit_id in (approved, rejected, cancelled, expired):
        for transition in second_transitions:
            with pytest.raises(StateError):
                transition(deposit_id)

    statuses = [registry.get_pending_deposit(d).status for d in (approved, rejected, cancelled, expired)]
    assert statuses == [
        DepositStatus.APPROVED,
        DepositStatus.REJECTED,
        DepositStatus.CANCELLED,
        DepositStatus.EXPIRED_CLAIMED,
    ]
    assert registry.get_pending_deposit(rejected).reason == "price feed stale"


def test_rejected_and_cancelled_deposits_return_lp(empty_protocol, junior):
    registry = junior.deposits
    first = registry.deposit_lp("alice", LP, to_fixed(300))
    second = registry.deposit_lp("alice", LP, to_fixed(200))

    registry.reject_lp_deposit(OPERATOR, first, "not accepted")
    registry.cancel_pending_deposit("alice", second)

    assert empty_protocol.sink.balance_of("alice", LP) == to_fixed(1_000)
    assert empty_protocol.sink.escrowed[LP] == 0
    assert junior.value == 0


def test_expiry_window(junior, clock):
    registry = junior.deposits
    deposit_id = registry.deposit_lp("alice", LP, to_fixed(100))

    clock.advance(DEPOSIT_EXPIRY - 1)
    with pytest.raises(DepositNotExpiredError):
        registry.claim_expired_deposit("bob", deposit_id)

    clock.advance(1)
    with pytest.raises(DepositExpiredError):
        registry.approve_lp_deposit(OPERATOR, deposit_id, to_fixed(1))
    assert registry.get_pending_deposit(deposit_id).is_pending

    registry.claim_expired_deposit("bob", deposit_id)
    assert registry.get_pending_deposit(deposit_id).status is DepositStatus.EXPIRED_CLAIMED


def test_authorization(junior):
    registry = junior.deposits
    deposit_id = registry.deposit_lp("alice", LP, to_fixed(100))

    with pytest.raises(AuthorizationError):
        registry.approve_lp_deposit("alice", deposit_id, to_fixed(1))
    with pytest.raises(AuthorizationError):
        registry.reject_lp_deposit("alice", deposit_id)
    with pytest.raises(AuthorizationError):
        registry.cancel_pending_deposit("bob", deposit_id)
    with pytest.raises(AuthorizationError):
        registry.add_lp_token("alice", "LP2")
    assert registry.get_pending_deposit(deposit_id).is_pending


def test_deposit_validation(junior):
    registry = junior.deposits
    with pytest.raises(ValidationError):
        registry.deposit_lp("alice", "", to_fixed(1))
    with pytest.raises(ValidationError):
        registry.deposit_lp("alice", LP, 0)
    with pytest.raises(ValidationError):
        registry.deposit_lp("alice", "UNLISTED", to_fixed(1))
    # More than the wallet holds
    with pytest.raises(ValidationError):
        registry.deposit_lp("alice", LP, to_fixed(5_000))
    assert registry.get_next_deposit_id() == 0

    deposit_id = registry.deposit_lp("alice", LP, to_fixed(1))
    with pytest.raises(ValidationError):
        registry.approve_lp_deposit(OPERATOR, deposit_id, 0)
    with pytest.raises(ValidationError):
        registry.approve_lp_deposit(OPERATOR, 42, to_fixed(1))


def test_sink_is_required():
    ledger = JuniorLedger("junior", OPERATOR)
    with pytest.raises(SinkNotConfiguredError):
        ledger.deposits.deposit_lp("alice", LP, to_fixed(1))


def test_depositor_whitelist(junior):
    registry = junior.deposits
    registry.set_whitelist_enabled(OPERATOR, True)
    with pytest.raises(AuthorizationError):
        registry.deposit_lp("alice", LP, to_fixed(1))

    assert registry.add_depositor(OPERATOR, "alice")
    assert registry.deposit_lp("alice", LP, to_fixed(1)) == 0

    assert registry.remove_depositor(OPERATOR, "alice")
    with pytest.raises(AuthorizationError):
        registry.deposit_lp("alice", LP, to_fixed(1))


def test_lp_token_allow_list(junior):
    registry = junior.deposits
    assert registry.remove_lp_token(OPERATOR, LP)
    with pytest.raises(ValidationError):
        registry.deposit_lp("alice", LP, to_fixed(1))
    assert registry.add_lp_token(OPERATOR, LP)
    assert not registry.add_lp_token(OPERATOR, LP)
    registry.deposit_lp("alice", LP, to_fixed(1))


def test_views_return_copies(junior):
    registry = junior.deposits
    deposit_id = registry.deposit_lp("alice", LP, to_fixed(1))
    view = registry.get_pending_deposit(deposit_id)
    view.status = DepositStatus.APPROVED
    registry.get_user_deposit_ids("alice").append(7)

    assert registry.get_pending_deposit(deposit_id).is_pending
    assert registry.get_user_deposit_ids("alice") == [deposit_id]


def test_failed_approval_keeps_escrow(empty_protocol):
    # No Reserve value yet, so any Senior admission breaks the deposit cap
    empty_protocol.sink.mint("alice", LP, to_fixed(100))
    registry = empty_protocol.senior.deposits
    deposit_id = registry.deposit_lp("alice", LP, to_fixed(100))

    with pytest.raises(DepositCapExceededError):
        registry.approve_lp_deposit(OPERATOR, deposit_id, to_fixed(1))

    assert registry.get_pending_deposit(deposit_id).is_pending
    assert empty_protocol.sink.escrowed[LP] == to_fixed(100)
    assert empty_protocol.sink.deployed.get(LP, 0) == 0
    assert empty_protocol.senior.total_supply() == 0


def test_deposit_not_pending_is_a_state_error():
    assert issubclass(DepositNotPendingError, StateError)
