"""
Wallet charge API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vpn_sales.api.errors import http_error
from vpn_sales.config import Settings, get_settings
from vpn_sales.exceptions import EngineError
from vpn_sales.models.base import get_db
from vpn_sales.services.wallet_charge_service import WalletChargeService
from vpn_sales.schemas.charge import ChargeCreate, ChargeResponse
from vpn_sales.schemas.order import PaymentEvidence, Rejection

router = APIRouter(prefix="/charges", tags=["Wallet charges"])


@router.post("", response_model=ChargeResponse, status_code=201)
def create_charge(
    request: ChargeCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    service = WalletChargeService(db, settings)
    try:
        charge = service.create_charge(request)
        db.commit()
        return charge
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.get("/pending", response_model=list[ChargeResponse])
def list_pending_charges(db: Session = Depends(get_db)):
    return WalletChargeService(db).list_pending_charges()


@router.get("/{charge_id}", response_model=ChargeResponse)
def get_charge(charge_id: int, db: Session = Depends(get_db)):
    try:
        return WalletChargeService(db).get_charge(charge_id)
    except EngineError as e:
        raise http_error(e)


@router.post("/{charge_id}/evidence", response_model=ChargeResponse)
def submit_charge_evidence(
    charge_id: int,
    request: PaymentEvidence,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    service = WalletChargeService(db, settings)
    try:
        charge = service.submit_evidence(charge_id, request.evidence)
        db.commit()
        return charge
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{charge_id}/approve", response_model=ChargeResponse)
def approve_charge(charge_id: int, db: Session = Depends(get_db)):
    """Confirm the transfer and credit the wallet (once)."""
    service = WalletChargeService(db)
    try:
        charge = service.approve(charge_id)
        db.commit()
        return charge
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{charge_id}/reject", response_model=ChargeResponse)
def reject_charge(
    charge_id: int,
    request: Rejection,
    db: Session = Depends(get_db),
):
    service = WalletChargeService(db)
    try:
        charge = service.reject(charge_id, request.reason)
        db.commit()
        return charge
    except EngineError as e:
        db.rollback()
        raise http_error(e)
