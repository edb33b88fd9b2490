"""
Order service — from plan selection to a provisioned service.

State machine:

    waiting_payment --submit_evidence/pay_with_wallet--> payment_submitted
    payment_submitted --approve--> completed
    waiting_payment | payment_submitted --reject--> rejected
    waiting_payment | payment_submitted --sweep--> expired
    waiting_payment --cancel--> cancelled

Every transition is a guarded UPDATE that only matches while the
order is still in an allowed state. Whoever changes the row wins;
everyone else sees the new state. That makes duplicated webhooks
and double-clicked admin buttons harmless: a replayed approve
returns the service the first approve created.

Multi-step transitions run inside a savepoint. The caller owns
the surrounding transaction and decides when to commit.
"""

import logging
import time
from contextlib import contextmanager
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from vpn_sales.config import get_settings
from vpn_sales.exceptions import (
    EngineError,
    InvalidState,
    NotFound,
    ProvisioningFailed,
    ValidationError,
)
from vpn_sales.models.enums import (
    EntryKind,
    OrderKind,
    OrderStatus,
    PaymentMethod,
)
from vpn_sales.models.order import Order, PENDING_ORDER_STATUSES
from vpn_sales.models.service import Service
from vpn_sales.provisioning import (
    Provisioner,
    SubscriptionLinkProvisioner,
    provision_with_retry,
)
from vpn_sales.schemas.order import OrderCreate, OrderStatusUpdate
from vpn_sales.services.account_service import AccountService
from vpn_sales.services.ledger_service import LedgerService
from vpn_sales.services.service_lifecycle import ServiceLifecycle

logger = logging.getLogger(__name__)


def order_reference(order_id: int) -> str:
    return f"order:{order_id}"


class OrderService:

    def __init__(
        self,
        db: Session,
        provisioner: Provisioner | None = None,
        settings=None,
        sleep=time.sleep,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.provisioner = provisioner or SubscriptionLinkProvisioner(
            self.settings.SUBSCRIPTION_BASE_URL
        )
        self.sleep = sleep
        self.ledger_service = LedgerService(db)
        self.service_lifecycle = ServiceLifecycle(db, self.settings)

    # --- Creation ---

    def create_order(self, request: OrderCreate, now: datetime | None = None) -> Order:
        """
        Open an order for a plan.

        The plan terms are copied into the order so later catalog
        edits cannot change what the customer pays or receives.
        """
        now = now or datetime.utcnow()
        AccountService(self.db).get_or_create(request.account_id, now)

        if request.kind == OrderKind.RENEWAL:
            renewed = self.service_lifecycle.get_service(request.renews_service_id)
            if renewed.account_id != request.account_id:
                raise ValidationError(
                    f"Service {renewed.id} does not belong to "
                    f"account {request.account_id}"
                )

        order = Order(
            account_id=request.account_id,
            plan_data=request.plan.to_snapshot(),
            server_ref=request.server_ref,
            status=OrderStatus.WAITING_PAYMENT,
            kind=request.kind,
            renews_service_id=request.renews_service_id,
            created_at=now,
            expires_at=now + timedelta(minutes=self.settings.PAYMENT_WINDOW_MINUTES),
        )
        self.db.add(order)
        self.db.flush()
        logger.info(
            "order %s created for account %s (plan %s, %s)",
            order.id, order.account_id, request.plan.plan_id, request.kind.value,
        )
        return order

    # --- Transitions ---

    def _transition(
        self,
        order_id: int,
        allowed: set[OrderStatus] | frozenset[OrderStatus],
        changes: OrderStatusUpdate,
        *conditions,
    ) -> tuple[Order, bool]:
        """
        Compare-and-set the order status.

        Returns the refreshed order and whether this call was the
        one that changed it.
        """
        order = self.get_order(order_id)
        result = self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status.in_(list(allowed)), *conditions)
            .values(**changes.column_values())
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(order)
        return order, result.rowcount == 1

    @contextmanager
    def _savepoint(self, order_id: int):
        """
        Run a multi-step transition inside a savepoint.

        On failure the savepoint is rolled back and the cached order
        is expired, so later reads in the same session see the row
        as it is in the database, not the status the failed
        transition loaded.
        """
        try:
            with self.db.begin_nested():
                yield
        except EngineError:
            order = self.db.get(Order, order_id)
            if order is not None:
                self.db.expire(order)
            raise

    def submit_evidence(
        self, order_id: int, evidence: str, now: datetime | None = None
    ) -> Order:
        """
        Attach the customer's payment receipt.

        Only valid while waiting for payment and inside the payment
        window. The order then gets the review window to be
        approved before the sweep expires it.
        """
        now = now or datetime.utcnow()
        order, claimed = self._transition(
            order_id,
            {OrderStatus.WAITING_PAYMENT},
            OrderStatusUpdate(
                status=OrderStatus.PAYMENT_SUBMITTED,
                payment_method=PaymentMethod.CARD_TRANSFER,
                evidence=evidence,
                expires_at=now + timedelta(hours=self.settings.REVIEW_WINDOW_HOURS),
            ),
            Order.expires_at > now,
        )
        if not claimed:
            raise InvalidState("Order", order_id, order.status, "submit evidence for")
        logger.info("order %s payment evidence submitted", order_id)
        return order

    def pay_with_wallet(self, order_id: int, now: datetime | None = None) -> Order:
        """
        Pay for an order from the wallet balance.

        The debit and the status change happen together: if the
        balance is too low, the order stays in waiting_payment.
        """
        now = now or datetime.utcnow()
        with self._savepoint(order_id):
            order, claimed = self._transition(
                order_id,
                {OrderStatus.WAITING_PAYMENT},
                OrderStatusUpdate(
                    status=OrderStatus.PAYMENT_SUBMITTED,
                    payment_method=PaymentMethod.WALLET,
                    evidence="wallet",
                    expires_at=now + timedelta(hours=self.settings.REVIEW_WINDOW_HOURS),
                ),
                Order.expires_at > now,
            )
            if not claimed:
                raise InvalidState("Order", order_id, order.status, "pay for")

            plan = order.plan
            if plan.price > 0:
                self.ledger_service.debit_for_purchase(
                    order.account_id,
                    plan.price,
                    f"Purchase: {plan.name}",
                    reference=order_reference(order.id),
                )
        logger.info("order %s paid from wallet", order_id)
        return order

    def approve(self, order_id: int, now: datetime | None = None) -> Service:
        """
        Confirm payment and provision the service.

        Status flip, username, provisioning and service creation
        are one unit: if the provisioner keeps failing, the whole
        savepoint is rolled back and the order stays in
        payment_submitted. Approving an already completed order
        returns its existing service without provisioning again.
        """
        now = now or datetime.utcnow()
        try:
            with self._savepoint(order_id):
                order, claimed = self._transition(
                    order_id,
                    {OrderStatus.PAYMENT_SUBMITTED},
                    OrderStatusUpdate(
                        status=OrderStatus.COMPLETED,
                        completed_at=now,
                    ),
                )
                if claimed:
                    service = self._fulfil(order, now)
                    self._link_service(order_id, service)
                    logger.info(
                        "order %s completed with service %s", order_id, service.id
                    )
                    return service
        except ProvisioningFailed:
            logger.error(
                "order %s stays in payment_submitted: provisioning failed",
                order_id,
            )
            raise

        if order.status == OrderStatus.COMPLETED and order.service_id is not None:
            logger.info("order %s already completed, replay ignored", order_id)
            return self.service_lifecycle.get_service(order.service_id)
        raise InvalidState("Order", order_id, order.status, "approve")

    def _link_service(self, order_id: int, service: Service) -> None:
        """Record the service on the order. Only the first link sticks."""
        _, linked = self._transition(
            order_id,
            {OrderStatus.COMPLETED},
            OrderStatusUpdate(status=OrderStatus.COMPLETED, service_id=service.id),
            Order.service_id.is_(None),
        )
        if not linked:
            raise InvalidState("Order", order_id, OrderStatus.COMPLETED, "link a service to")

    def _service_expiry(self, order: Order, now: datetime) -> datetime:
        """Renewals extend from the later of now and the old expiry."""
        start = now
        if order.kind == OrderKind.RENEWAL and order.renews_service_id:
            renewed = self.db.get(Service, order.renews_service_id)
            if renewed is not None and renewed.expires_at > now:
                start = renewed.expires_at
        return start + timedelta(days=order.plan.duration_days)

    def _fulfil(self, order: Order, now: datetime) -> Service:
        expires_at = self._service_expiry(order, now)
        username = self.service_lifecycle.generate_username()
        access_config = provision_with_retry(
            self.provisioner,
            order_id=order.id,
            username=username,
            plan=order.plan,
            server_ref=order.server_ref,
            expires_at=expires_at,
            max_attempts=self.settings.PROVISION_MAX_ATTEMPTS,
            retry_delay=self.settings.PROVISION_RETRY_DELAY,
            sleep=self.sleep,
        )
        return self.service_lifecycle.create(order, username, expires_at, access_config)

    def reject(
        self, order_id: int, reason: str = "Payment not confirmed"
    ) -> Order:
        """
        Reject an order. Wallet payments are refunded.

        Rejecting an already rejected order returns it unchanged.
        Any other terminal order raises InvalidState.
        """
        with self._savepoint(order_id):
            order, claimed = self._transition(
                order_id,
                PENDING_ORDER_STATUSES,
                OrderStatusUpdate(
                    status=OrderStatus.REJECTED,
                    rejection_reason=reason,
                ),
            )
            if claimed:
                self._refund_wallet_payment(order, "Refund: order rejected")
                logger.info("order %s rejected: %s", order_id, reason)
                return order

        if order.status == OrderStatus.REJECTED:
            logger.info("order %s already rejected, replay ignored", order_id)
            return order
        raise InvalidState("Order", order_id, order.status, "reject")

    def cancel(self, order_id: int) -> Order:
        """Customer abandons an order before paying."""
        order, claimed = self._transition(
            order_id,
            {OrderStatus.WAITING_PAYMENT},
            OrderStatusUpdate(status=OrderStatus.CANCELLED),
        )
        if claimed:
            logger.info("order %s cancelled", order_id)
            return order
        if order.status == OrderStatus.CANCELLED:
            return order
        raise InvalidState("Order", order_id, order.status, "cancel")

    def expire_stale(self, now: datetime | None = None) -> list[Order]:
        """
        Expire pending orders whose window has passed.

        Re-entrant: an order is returned only by the run that
        expired it. Wallet payments on expired orders are refunded.
        """
        now = now or datetime.utcnow()
        candidates = self.db.execute(
            select(Order.id).where(
                Order.status.in_(list(PENDING_ORDER_STATUSES)),
                Order.expires_at < now,
            )
        ).scalars().all()

        expired = []
        for order_id in candidates:
            with self._savepoint(order_id):
                order, claimed = self._transition(
                    order_id,
                    PENDING_ORDER_STATUSES,
                    OrderStatusUpdate(status=OrderStatus.EXPIRED),
                    Order.expires_at < now,
                )
                if claimed:
                    self._refund_wallet_payment(order, "Refund: order expired")
                    expired.append(order)

        if expired:
            logger.info("expired %s stale order(s)", len(expired))
        return expired

    def _refund_wallet_payment(self, order: Order, description: str) -> None:
        plan = order.plan
        if order.payment_method != PaymentMethod.WALLET or plan.price <= 0:
            return
        self.ledger_service.credit(
            order.account_id,
            plan.price,
            description,
            kind=EntryKind.REFUND_CREDIT,
            reference=order_reference(order.id),
        )

    # --- Queries ---

    def get_order(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise NotFound("Order", order_id)
        return order

    def list_pending_orders(self) -> list[Order]:
        """Orders waiting for an admin decision, newest first."""
        return list(self.db.execute(
            select(Order)
            .where(Order.status == OrderStatus.PAYMENT_SUBMITTED)
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).scalars().all())

    def list_user_orders(self, account_id: int, limit: int = 50) -> list[Order]:
        return list(self.db.execute(
            select(Order)
            .where(Order.account_id == account_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        ).scalars().all())
