"""Tests for PassLedgerService — expiry state machine, refunds, owner-only operations."""
import pytest

from passledger.models.ledger_event import LedgerEvent
from passledger.services.ledger.errors import (
    InsufficientPayment,
    LedgerAlreadyDeployed,
    LedgerNotDeployed,
    OnlyOwner,
    RefundFailed,
    WithdrawalFailed,
)
from passledger.services.ledger.service import SECONDS_PER_DAY, PassLedgerService

# совпадает с фикстурой ledger в conftest
OWNER = "owner"
PRICE = 100
DURATION = 30 * SECONDS_PER_DAY


def _snapshot(ledger, user):
    return ledger.get_expiry(user), ledger.get_balance(), ledger.db.query(LedgerEvent).count()


class TestDeploy:
    def test_config_set_at_deploy(self, ledger):
        snap = ledger.get_config()
        assert snap.owner_id == OWNER
        assert snap.pass_price == PRICE
        assert snap.pass_duration == 2_592_000
        assert snap.balance == 0

    def test_deploy_twice_rejected(self, ledger):
        with pytest.raises(LedgerAlreadyDeployed):
            ledger.deploy("someone-else", 1, 1)
        assert ledger.get_config().owner_id == OWNER

    def test_not_deployed(self, db, gateway, clock):
        svc = PassLedgerService(db, gateway, clock=clock)
        assert svc.is_deployed() is False
        with pytest.raises(LedgerNotDeployed):
            svc.buy_pass("alice", 100)
        with pytest.raises(LedgerNotDeployed):
            svc.get_balance()
        # access checks never fail
        assert svc.has_access("alice") is False
        assert svc.get_time_remaining("alice") == 0


class TestBuyPass:
    def test_exact_payment_no_refund(self, ledger, gateway, clock):
        receipt = ledger.buy_pass("alice", PRICE)

        assert receipt.expires_at == clock.now + DURATION
        assert receipt.refund == 0
        assert receipt.extended is False
        assert gateway.sent == []
        assert ledger.get_balance() == PRICE

    def test_overpayment_refunds_excess(self, ledger, gateway, clock):
        before = ledger.get_expiry("alice")
        receipt = ledger.buy_pass("alice", PRICE + 37)

        assert receipt.expires_at - max(before, clock.now) == DURATION
        assert receipt.refund == 37
        assert gateway.total_to("alice") == 37
        assert ledger.get_balance() == PRICE

    def test_insufficient_payment_no_state_change(self, ledger, gateway):
        ledger.buy_pass("alice", PRICE)
        before = _snapshot(ledger, "alice")

        with pytest.raises(InsufficientPayment):
            ledger.buy_pass("alice", PRICE - 1)

        assert _snapshot(ledger, "alice") == before
        assert gateway.sent == []

    def test_insufficient_payment_for_new_user(self, ledger):
        with pytest.raises(InsufficientPayment):
            ledger.buy_pass("bob", 0)
        assert ledger.get_expiry("bob") == 0
        assert ledger.has_access("bob") is False

    def test_active_pass_stacks(self, ledger, clock):
        first = ledger.buy_pass("alice", PRICE)
        clock.now += 10 * SECONDS_PER_DAY
        second = ledger.buy_pass("alice", PRICE)

        assert second.expires_at == first.expires_at + DURATION
        assert second.extended is True

    def test_expired_pass_resets_base(self, ledger, clock):
        first = ledger.buy_pass("alice", PRICE)
        clock.now = first.expires_at + 5000
        second = ledger.buy_pass("alice", PRICE)

        assert second.expires_at == clock.now + DURATION
        assert second.extended is False

    def test_purchase_at_exact_expiry_is_fresh(self, ledger, clock):
        first = ledger.buy_pass("alice", PRICE)
        clock.now = first.expires_at
        second = ledger.buy_pass("alice", PRICE)
        assert second.expires_at == first.expires_at + DURATION
        assert second.extended is False

    def test_event_carries_full_payment(self, ledger):
        receipt = ledger.buy_pass("alice", 150)
        event = ledger.list_events(limit=1)[0]

        assert event.event_type == "PassPurchased"
        assert event.payload == {"buyer": "alice", "new_expiry": receipt.expires_at, "amount_paid": 150}

    def test_free_pass_when_price_zero(self, ledger, gateway, clock):
        ledger.update_price(OWNER, 0)
        receipt = ledger.buy_pass("alice", 0)
        assert receipt.expires_at == clock.now + DURATION
        assert ledger.has_access("alice") is True
        assert gateway.sent == []

    def test_activity_appended(self, ledger):
        ledger.buy_pass("alice", 120)
        records = ledger.activity.list_for_user("alice")
        assert [(r.action, r.amount) for r in records] == [("buy_pass", 120)]

    def test_negative_payment_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.buy_pass("alice", -1)


class TestRefundFailure:
    def test_refund_failure_rolls_back_purchase(self, ledger, gateway):
        ledger.buy_pass("alice", PRICE)
        before = _snapshot(ledger, "alice")
        gateway.reject("alice")

        with pytest.raises(RefundFailed):
            ledger.buy_pass("alice", PRICE + 1)

        assert _snapshot(ledger, "alice") == before
        assert gateway.sent == []
        assert ledger.activity.count() == 1

    def test_exact_payment_unaffected_by_rejecting_recipient(self, ledger, gateway):
        gateway.reject("alice")
        receipt = ledger.buy_pass("alice", PRICE)
        assert receipt.refund == 0
        assert ledger.has_access("alice") is True

    def test_reentrant_purchase_during_refund_fails_whole_call(self, ledger, gateway):
        gateway.on_send = lambda recipient, amount: ledger.buy_pass(recipient, PRICE)
        before = _snapshot(ledger, "alice")

        with pytest.raises(RefundFailed):
            ledger.buy_pass("alice", PRICE + 10)

        assert _snapshot(ledger, "alice") == before
        # guard released after the failed call
        gateway.on_send = None
        assert ledger.buy_pass("alice", PRICE).refund == 0

    def test_state_committed_before_refund_handoff(self, ledger, gateway, clock):
        seen = {}

        def observe(recipient, amount):
            seen["expiry"] = ledger.get_expiry(recipient)
            seen["balance"] = ledger.get_balance()

        gateway.on_send = observe
        receipt = ledger.buy_pass("alice", PRICE + 5)

        assert seen == {"expiry": receipt.expires_at, "balance": PRICE}


class TestAccess:
    def test_no_pass(self, ledger):
        assert ledger.has_access("nobody") is False
        assert ledger.get_time_remaining("nobody") == 0
        assert ledger.my_access("nobody") is False

    def test_active_then_expired(self, ledger, clock):
        receipt = ledger.buy_pass("alice", PRICE)
        assert ledger.has_access("alice") is True
        assert ledger.get_time_remaining("alice") == DURATION

        clock.now = receipt.expires_at - 1
        assert ledger.get_time_remaining("alice") == 1
        assert ledger.my_access("alice") is True

        clock.now = receipt.expires_at
        assert ledger.has_access("alice") is False
        assert ledger.get_time_remaining("alice") == 0
        # данные не удаляются
        assert ledger.get_expiry("alice") == receipt.expires_at

    @pytest.mark.parametrize("offset", [-DURATION, -1, 0, 1, DURATION, 10 * DURATION])
    def test_access_matches_time_remaining(self, ledger, clock, offset):
        receipt = ledger.buy_pass("alice", PRICE)
        clock.now = receipt.expires_at + offset
        for user in ("alice", "nobody"):
            assert ledger.has_access(user) == (ledger.get_time_remaining(user) > 0)


class TestOwnerOnly:
    @pytest.mark.parametrize(
        "call",
        [
            lambda svc: svc.update_price("mallory", 1),
            lambda svc: svc.update_duration("mallory", 1),
            lambda svc: svc.withdraw("mallory"),
        ],
    )
    def test_non_owner_rejected_without_state_change(self, ledger, gateway, call):
        ledger.buy_pass("alice", PRICE)
        config_before = ledger.get_config()
        events_before = ledger.db.query(LedgerEvent).count()

        with pytest.raises(OnlyOwner):
            call(ledger)

        assert ledger.get_config() == config_before
        assert ledger.db.query(LedgerEvent).count() == events_before
        assert gateway.sent == []

    def test_update_price_applies_to_next_purchase(self, ledger):
        assert ledger.update_price(OWNER, 250) == 250
        assert ledger.get_config().pass_price == 250
        with pytest.raises(InsufficientPayment):
            ledger.buy_pass("alice", 249)
        assert ledger.buy_pass("alice", 300).refund == 50

    def test_update_price_event(self, ledger):
        ledger.update_price(OWNER, 0)
        event = ledger.list_events(limit=1)[0]
        assert event.event_type == "PriceUpdated"
        assert event.payload == {"new_price": 0}

    def test_update_duration_converts_days(self, ledger, clock):
        assert ledger.update_duration(OWNER, 7) == 7 * SECONDS_PER_DAY
        event = ledger.list_events(limit=1)[0]
        assert event.event_type == "DurationUpdated"
        assert event.payload == {"new_duration_seconds": 604_800}
        assert ledger.buy_pass("alice", PRICE).expires_at == clock.now + 604_800

    def test_update_duration_keeps_existing_expiry(self, ledger):
        receipt = ledger.buy_pass("alice", PRICE)
        ledger.update_duration(OWNER, 1)
        assert ledger.get_expiry("alice") == receipt.expires_at

    def test_zero_duration_grants_no_access(self, ledger):
        ledger.update_duration(OWNER, 0)
        ledger.buy_pass("alice", PRICE)
        assert ledger.has_access("alice") is False


    @pytest.mark.parametrize(
        "call",
        [
            lambda svc: svc.update_price("mallory", -1),
            lambda svc: svc.update_duration("mallory", -1),
        ],
    )
    def test_non_owner_with_negative_value_gets_only_owner(self, ledger, call):
        config_before = ledger.get_config()
        with pytest.raises(OnlyOwner):
            call(ledger)
        assert ledger.get_config() == config_before

    def test_owner_negative_value_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.update_price(OWNER, -1)
        with pytest.raises(ValueError):
            ledger.update_duration(OWNER, -1)
        assert ledger.get_config().pass_price == PRICE
        assert ledger.list_events() == []


class TestWithdraw:
    def test_withdraw_moves_full_balance(self, ledger, gateway):
        ledger.buy_pass("alice", PRICE)
        ledger.buy_pass("bob", PRICE + 40)
        assert ledger.get_balance() == 2 * PRICE

        assert ledger.withdraw(OWNER) == 2 * PRICE
        assert ledger.get_balance() == 0
        assert gateway.total_to(OWNER) == 2 * PRICE
        event = ledger.list_events(limit=1)[0]
        assert event.event_type == "FundsWithdrawn"
        assert event.payload == {"owner": OWNER, "amount": 2 * PRICE}

    def test_second_withdraw_moves_zero(self, ledger, gateway):
        ledger.buy_pass("alice", PRICE)
        ledger.withdraw(OWNER)
        sent_before = len(gateway.sent)

        assert ledger.withdraw(OWNER) == 0
        assert len(gateway.sent) == sent_before
        assert ledger.list_events(limit=1)[0].payload == {"owner": OWNER, "amount": 0}

    def test_failed_withdraw_keeps_balance(self, ledger, gateway):
        ledger.buy_pass("alice", PRICE)
        gateway.reject(OWNER)

        with pytest.raises(WithdrawalFailed):
            ledger.withdraw(OWNER)
        assert ledger.get_balance() == PRICE
        assert ledger.list_events(event_type="FundsWithdrawn") == []

        gateway.accept(OWNER)
        assert ledger.withdraw(OWNER) == PRICE
        assert ledger.get_balance() == 0

    def test_reentrant_withdraw_rejected(self, ledger, gateway):
        ledger.buy_pass("alice", PRICE)
        gateway.on_send = lambda recipient, amount: ledger.withdraw(OWNER)

        with pytest.raises(WithdrawalFailed):
            ledger.withdraw(OWNER)
        assert ledger.get_balance() == PRICE

    def test_balance_invariant(self, ledger, clock):
        payments = [100, 150, 100, 999]
        for i, amount in enumerate(payments):
            ledger.buy_pass(f"user{i}", amount)
        withdrawn = ledger.withdraw(OWNER)
        ledger.buy_pass("user0", 100)

        assert ledger.get_balance() == PRICE * (len(payments) + 1) - withdrawn


class TestWorkedExample:
    def test_stacked_extension_example(self, ledger, gateway, clock):
        clock.now = 1000
        first = ledger.buy_pass("alice", 150)
        assert first.expires_at == 2_593_000
        assert first.refund == 50
        assert gateway.total_to("alice") == 50

        clock.now = 2_000_000
        second = ledger.buy_pass("alice", 100)
        assert second.expires_at == 5_185_000
        assert second.refund == 0
