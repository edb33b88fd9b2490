"""
Order API endpoints.

Admin actions (approve, reject) and webhook-driven actions may
arrive more than once; the service makes replays harmless and
these handlers only translate results into HTTP.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vpn_sales.api.deps import get_provisioner
from vpn_sales.api.errors import http_error
from vpn_sales.config import Settings, get_settings
from vpn_sales.exceptions import EngineError
from vpn_sales.models.base import get_db
from vpn_sales.provisioning import Provisioner
from vpn_sales.services.order_service import OrderService
from vpn_sales.schemas.order import (
    OrderCreate,
    OrderResponse,
    PaymentEvidence,
    Rejection,
    ServiceResponse,
)

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    request: OrderCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Open an order in waiting_payment."""
    service = OrderService(db, settings=settings)
    try:
        order = service.create_order(request)
        db.commit()
        return order
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.get("/pending", response_model=list[OrderResponse])
def list_pending_orders(db: Session = Depends(get_db)):
    """Orders with payment evidence waiting for review."""
    return OrderService(db).list_pending_orders()


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, db: Session = Depends(get_db)):
    try:
        return OrderService(db).get_order(order_id)
    except EngineError as e:
        raise http_error(e)


@router.post("/{order_id}/evidence", response_model=OrderResponse)
def submit_evidence(
    order_id: int,
    request: PaymentEvidence,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    service = OrderService(db, settings=settings)
    try:
        order = service.submit_evidence(order_id, request.evidence)
        db.commit()
        return order
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{order_id}/pay-with-wallet", response_model=ServiceResponse)
def pay_with_wallet(
    order_id: int,
    db: Session = Depends(get_db),
    provisioner: Provisioner = Depends(get_provisioner),
    settings: Settings = Depends(get_settings),
):
    """
    Pay from the wallet and provision immediately.

    The debit is committed before provisioning, so a provisioner
    outage leaves a paid order in payment_submitted for an admin
    to approve or reject (which refunds).
    """
    service = OrderService(db, provisioner=provisioner, settings=settings)
    try:
        service.pay_with_wallet(order_id)
        db.commit()
    except EngineError as e:
        db.rollback()
        raise http_error(e)

    try:
        created = service.approve(order_id)
        db.commit()
        return created
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{order_id}/approve", response_model=ServiceResponse)
def approve_order(
    order_id: int,
    db: Session = Depends(get_db),
    provisioner: Provisioner = Depends(get_provisioner),
    settings: Settings = Depends(get_settings),
):
    """Confirm payment; returns the provisioned service."""
    service = OrderService(db, provisioner=provisioner, settings=settings)
    try:
        created = service.approve(order_id)
        db.commit()
        return created
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{order_id}/reject", response_model=OrderResponse)
def reject_order(
    order_id: int,
    request: Rejection,
    db: Session = Depends(get_db),
):
    service = OrderService(db)
    try:
        order = service.reject(order_id, request.reason)
        db.commit()
        return order
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(order_id: int, db: Session = Depends(get_db)):
    service = OrderService(db)
    try:
        order = service.cancel(order_id)
        db.commit()
        return order
    except EngineError as e:
        db.rollback()
        raise http_error(e)
