"""
PassLedgerService — леджер пропусков с ограниченным сроком действия.

Ответственности:
- Покупка/продление пропуска (stacking, если пропуск ещё активен)
- Возврат переплаты; провал возврата откатывает всю покупку
- Проверки доступа по времени (ленивые, без фоновых задач)
- Owner-only: цена, длительность, вывод средств

Каждая изменяющая операция — одна транзакция: состояние фиксируется (flush)
до передачи управления TransferGateway, commit только после успешного перевода.
"""
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from sqlalchemy import update
from sqlalchemy.orm import Session

from passledger.core.config import settings
from passledger.models.ledger_config import SINGLETON_ID, LedgerConfig
from passledger.models.ledger_event import LedgerEvent
from passledger.models.pass_expiry import PassExpiry
from passledger.services.activity.service import ActivityLogService
from passledger.services.ledger.errors import (
    InsufficientPayment,
    LedgerAlreadyDeployed,
    LedgerNotDeployed,
    OnlyOwner,
    ReentrantCall,
    RefundFailed,
    WithdrawalFailed,
)
from passledger.services.transfers.base import TransferFailed, TransferGateway
from passledger.utils.metrics import (
    admin_updates_total,
    ledger_balance,
    passes_purchased_total,
    purchases_rejected_total,
    refunds_sent_total,
    unauthorized_calls_total,
    withdrawals_total,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400

EVENT_PASS_PURCHASED = "PassPurchased"
EVENT_PRICE_UPDATED = "PriceUpdated"
EVENT_DURATION_UPDATED = "DurationUpdated"
EVENT_FUNDS_WITHDRAWN = "FundsWithdrawn"

# Пишущие операции в процессе идут по одной: SQLite игнорирует FOR UPDATE
_write_lock = threading.RLock()


def _system_clock() -> int:
    return int(time.time())


@dataclass(frozen=True)
class PurchaseReceipt:
    buyer: str
    expires_at: int
    amount_paid: int
    refund: int
    previous_expiry: int
    extended: bool = False  # продление активного пропуска


@dataclass(frozen=True)
class LedgerSnapshot:
    owner_id: str
    pass_price: int
    pass_duration: int
    balance: int


class PassLedgerService:
    def __init__(
        self,
        db: Session,
        transfers: TransferGateway,
        activity: ActivityLogService | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.db = db
        self.transfers = transfers
        self.activity = activity
        self.clock = clock or _system_clock
        self._in_call = False

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------

    def deploy(self, owner_id: str, pass_price: int, pass_duration_days: int) -> LedgerSnapshot:
        """Создать конфигурацию леджера. Owner фиксируется навсегда."""
        if not owner_id:
            raise ValueError("owner_id is required")
        if pass_price < 0 or pass_duration_days < 0:
            raise ValueError("pass_price and pass_duration_days must be non-negative")
        if self.db.get(LedgerConfig, SINGLETON_ID) is not None:
            raise LedgerAlreadyDeployed()

        config = LedgerConfig(
            id=SINGLETON_ID,
            owner_id=owner_id,
            pass_price=pass_price,
            pass_duration=pass_duration_days * SECONDS_PER_DAY,
            balance=0,
        )
        self.db.add(config)
        self.db.commit()
        ledger_balance.set(0)
        logger.info(
            "ledger_deployed",
            extra={
                "owner_id": owner_id,
                "new_price": pass_price,
                "new_duration_seconds": config.pass_duration,
            },
        )
        return self._snapshot(config)

    def is_deployed(self) -> bool:
        return self.db.get(LedgerConfig, SINGLETON_ID) is not None

    # ------------------------------------------------------------------
    # Purchase
    # ------------------------------------------------------------------

    def buy_pass(self, caller: str, payment: int) -> PurchaseReceipt:
        """
        Купить или продлить пропуск.

        payment < price -> InsufficientPayment, ничего не меняется.
        Активный пропуск продлевается от текущего expiry, истёкший — от now.
        Переплата возвращается caller'у; если возврат не прошёл — RefundFailed
        и покупка откатывается целиком (expiry, balance, событие).
        """
        if not caller:
            raise ValueError("caller is required")
        if payment < 0:
            raise ValueError("payment must be non-negative")

        with self._exclusive("buy_pass"):
            try:
                receipt = self._buy_pass(caller, payment)
            except Exception as e:
                self.db.rollback()
                reason = getattr(e, "code", type(e).__name__)
                purchases_rejected_total.labels(reason=reason).inc()
                logger.warning(
                    "pass_purchase_rejected",
                    extra={"caller": caller, "amount_paid": payment, "error": reason},
                )
                raise
            self.db.commit()

        kind = "extend" if receipt.extended else "fresh"
        passes_purchased_total.labels(kind=kind).inc()
        if receipt.refund:
            refunds_sent_total.inc()
        self._refresh_balance_gauge()
        logger.info(
            "pass_purchased",
            extra={
                "user_id": caller,
                "kind": kind,
                "amount_paid": payment,
                "refund": receipt.refund,
                "previous_expiry": receipt.previous_expiry,
                "expires_at": receipt.expires_at,
            },
        )
        self._append_activity(caller, "buy_pass", payment)
        return receipt

    def _buy_pass(self, caller: str, payment: int) -> PurchaseReceipt:
        config = self._config(for_update=True)
        price = config.pass_price
        if payment < price:
            raise InsufficientPayment(
                f"Payment {payment} is below pass price {price}",
                payment=payment,
                price=price,
            )

        now = self.clock()
        record = self.db.get(PassExpiry, caller)
        previous = record.expires_at if record is not None else 0
        # Активный пропуск: продлеваем от expiry; истёкший срок не засчитывается
        stacked = previous > now
        base = previous if stacked else now
        new_expiry = base + config.pass_duration

        if record is None:
            record = PassExpiry(user_id=caller, expires_at=new_expiry)
            self.db.add(record)
        else:
            record.expires_at = new_expiry

        self._emit(
            EVENT_PASS_PURCHASED,
            caller,
            now,
            {"buyer": caller, "new_expiry": new_expiry, "amount_paid": payment},
        )

        refund = payment - price
        self.db.flush()
        # В балансе остаётся ровно цена; переплата уходит обратно caller'у
        self._shift_balance(config, price)

        if refund > 0:
            try:
                self.transfers.send(caller, refund)
            except (TransferFailed, ReentrantCall) as e:
                raise RefundFailed(
                    f"Refund of {refund} to {caller} failed: {e}",
                    recipient=caller,
                    amount=refund,
                ) from e

        return PurchaseReceipt(
            buyer=caller,
            expires_at=new_expiry,
            amount_paid=payment,
            refund=refund,
            previous_expiry=previous,
            extended=stacked,
        )

    # ------------------------------------------------------------------
    # Access checks (read-only)
    # ------------------------------------------------------------------

    def get_expiry(self, user_id: str) -> int:
        """Stored expiry; 0 when the user never bought a pass."""
        record = self.db.get(PassExpiry, user_id)
        return record.expires_at if record is not None else 0

    def has_access(self, user_id: str) -> bool:
        return self.get_expiry(user_id) > self.clock()

    def get_time_remaining(self, user_id: str) -> int:
        return max(0, self.get_expiry(user_id) - self.clock())

    def my_access(self, caller: str) -> bool:
        return self.has_access(caller)

    # ------------------------------------------------------------------
    # Owner-only administration
    # ------------------------------------------------------------------

    def update_price(self, caller: str, new_price: int) -> int:
        with self._exclusive("update_price"):
            try:
                config = self._config(for_update=True)
                self._require_owner(config, caller, "update_price")
                if new_price < 0:
                    raise ValueError("new_price must be non-negative")
                config.pass_price = new_price
                self._emit(EVENT_PRICE_UPDATED, caller, self.clock(), {"new_price": new_price})
                self.db.flush()
            except Exception:
                self.db.rollback()
                raise
            self.db.commit()

        admin_updates_total.labels(field="price").inc()
        logger.info("pass_price_updated", extra={"caller": caller, "new_price": new_price})
        return new_price

    def update_duration(self, caller: str, new_duration_days: int) -> int:
        """Длительность задаётся в днях, хранится в секундах. Уже выданные expiry не меняются."""
        seconds = new_duration_days * SECONDS_PER_DAY
        with self._exclusive("update_duration"):
            try:
                config = self._config(for_update=True)
                self._require_owner(config, caller, "update_duration")
                if new_duration_days < 0:
                    raise ValueError("new_duration_days must be non-negative")
                config.pass_duration = seconds
                self._emit(
                    EVENT_DURATION_UPDATED,
                    caller,
                    self.clock(),
                    {"new_duration_seconds": seconds},
                )
                self.db.flush()
            except Exception:
                self.db.rollback()
                raise
            self.db.commit()

        admin_updates_total.labels(field="duration").inc()
        logger.info(
            "pass_duration_updated",
            extra={"caller": caller, "new_duration_seconds": seconds},
        )
        return seconds

    def withdraw(self, caller: str) -> int:
        """
        Перевести весь баланс owner'у. Возвращает выведенную сумму.

        Баланс читается и уменьшается на выводимую сумму под блокировкой до перевода.
        Если перевод не прошёл — WithdrawalFailed, баланс остаётся как был.
        Пустой баланс: успех, 0, gateway не вызывается.
        """
        with self._exclusive("withdraw"):
            try:
                config = self._config(for_update=True)
                self._require_owner(config, caller, "withdraw")
                owner = config.owner_id
                amount = config.balance
                self._shift_balance(config, -amount)
                self._emit(
                    EVENT_FUNDS_WITHDRAWN,
                    owner,
                    self.clock(),
                    {"owner": owner, "amount": amount},
                )
                self.db.flush()

                if amount > 0:
                    try:
                        self.transfers.send(owner, amount)
                    except (TransferFailed, ReentrantCall) as e:
                        raise WithdrawalFailed(
                            f"Withdrawal of {amount} to {owner} failed: {e}",
                            recipient=owner,
                            amount=amount,
                        ) from e
            except WithdrawalFailed:
                self.db.rollback()
                withdrawals_total.labels(status="failed").inc()
                logger.warning("withdrawal_failed", extra={"caller": caller, "error": "WithdrawalFailed"})
                raise
            except Exception:
                self.db.rollback()
                raise
            self.db.commit()

        withdrawals_total.labels(status="ok").inc()
        self._refresh_balance_gauge()
        logger.info("funds_withdrawn", extra={"owner_id": owner, "amount": amount})
        self._append_activity(owner, "withdraw", amount)
        return amount

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_balance(self) -> int:
        return self._config().balance

    def get_config(self) -> LedgerSnapshot:
        return self._snapshot(self._config())

    def list_events(self, limit: int = 50, event_type: str | None = None) -> list[LedgerEvent]:
        """Последние события леджера, новые первыми."""
        query = self.db.query(LedgerEvent)
        if event_type:
            query = query.filter(LedgerEvent.event_type == event_type)
        return query.order_by(LedgerEvent.seq.desc()).limit(limit).all()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _exclusive(self, operation: str) -> Iterator[None]:
        if self._in_call:
            raise ReentrantCall(f"{operation} called while another ledger operation is in progress")
        self._in_call = True
        try:
            with _write_lock:
                yield
        finally:
            self._in_call = False

    def _config(self, for_update: bool = False) -> LedgerConfig:
        query = self.db.query(LedgerConfig).filter(LedgerConfig.id == SINGLETON_ID)
        if for_update:
            query = query.with_for_update().populate_existing()
        config = query.one_or_none()
        if config is None:
            raise LedgerNotDeployed()
        return config

    def _shift_balance(self, config: LedgerConfig, delta: int) -> None:
        """Atomically add delta to the stored balance (SQL expression, not read-modify-write)."""
        self.db.execute(
            update(LedgerConfig)
            .where(LedgerConfig.id == SINGLETON_ID)
            .values(balance=LedgerConfig.balance + delta)
        )
        self.db.flush()
        self.db.refresh(config)

    def _require_owner(self, config: LedgerConfig, caller: str, operation: str) -> None:
        if caller != config.owner_id:
            unauthorized_calls_total.labels(operation=operation).inc()
            logger.warning("owner_check_failed", extra={"caller": caller, "method": operation})
            raise OnlyOwner(f"{operation} is restricted to the owner", caller=caller)

    def _emit(self, event_type: str, actor_id: str | None, block_ts: int, payload: dict[str, Any]) -> LedgerEvent:
        event = LedgerEvent(
            event_type=event_type,
            actor_id=actor_id,
            block_ts=block_ts,
            payload=payload,
        )
        self.db.add(event)
        return event

    def _append_activity(self, user_id: str, action: str, amount: int) -> None:
        """Запись в журнал активности — вне основной транзакции, на результат не влияет."""
        if self.activity is None:
            return
        try:
            self.activity.append(user_id, action, amount, self.clock())
        except Exception:
            self.db.rollback()
            logger.exception("activity_append_error", extra={"user_id": user_id, "action": action})

    def _refresh_balance_gauge(self) -> None:
        config = self.db.get(LedgerConfig, SINGLETON_ID)
        if config is not None:
            ledger_balance.set(config.balance)

    @staticmethod
    def _snapshot(config: LedgerConfig) -> LedgerSnapshot:
        return LedgerSnapshot(
            owner_id=config.owner_id,
            pass_price=config.pass_price,
            pass_duration=config.pass_duration,
            balance=config.balance,
        )


def bootstrap_ledger(db: Session, transfers: TransferGateway) -> PassLedgerService:
    """Развернуть леджер из settings, если конфигурации ещё нет."""
    svc = PassLedgerService(db, transfers, activity=ActivityLogService(db))
    if not svc.is_deployed():
        svc.deploy(settings.ledger_owner_id, settings.pass_price, settings.pass_duration_days)
    return svc
