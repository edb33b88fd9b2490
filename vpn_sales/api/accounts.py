"""
Account, wallet and service endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vpn_sales.api.errors import http_error
from vpn_sales.exceptions import EngineError
from vpn_sales.models.base import get_db
from vpn_sales.services.account_service import AccountService
from vpn_sales.services.ledger_service import LedgerService
from vpn_sales.services.service_lifecycle import ServiceLifecycle
from vpn_sales.schemas.account import (
    AccountResponse,
    BalanceResponse,
    LedgerEntryResponse,
    WalletCredit,
    WalletDebit,
)
from vpn_sales.schemas.order import ServiceResponse

router = APIRouter(tags=["Accounts"])


@router.put("/accounts/{chat_id}", response_model=AccountResponse)
def touch_account(chat_id: int, db: Session = Depends(get_db)):
    """Register the customer (first interaction) and record activity."""
    account = AccountService(db).get_or_create(chat_id)
    db.commit()
    return account


@router.get("/accounts/{chat_id}/services", response_model=list[ServiceResponse])
def list_user_services(
    chat_id: int,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return ServiceLifecycle(db).list_user_services(chat_id, limit, offset)


@router.get("/services/{service_id}", response_model=ServiceResponse)
def get_service(service_id: int, db: Session = Depends(get_db)):
    try:
        return ServiceLifecycle(db).get_service(service_id)
    except EngineError as e:
        raise http_error(e)


@router.get("/wallet/{chat_id}/balance", response_model=BalanceResponse)
def get_balance(chat_id: int, db: Session = Depends(get_db)):
    try:
        balance = AccountService(db).get_balance(chat_id)
    except EngineError as e:
        raise http_error(e)
    return BalanceResponse(account_id=chat_id, balance=balance)


@router.get("/wallet/{chat_id}/entries", response_model=list[LedgerEntryResponse])
def get_entries(chat_id: int, limit: int = 10, db: Session = Depends(get_db)):
    """Recent wallet movements, newest first."""
    return LedgerService(db).get_entries(chat_id, limit)


@router.post(
    "/wallet/{chat_id}/credit",
    response_model=LedgerEntryResponse,
    status_code=201,
)
def credit_wallet(
    chat_id: int,
    request: WalletCredit,
    db: Session = Depends(get_db),
):
    service = LedgerService(db)
    try:
        entry = service.credit_wallet(chat_id, request.amount, request.description)
        db.commit()
        return entry
    except EngineError as e:
        db.rollback()
        raise http_error(e)


@router.post(
    "/wallet/{chat_id}/debit",
    response_model=LedgerEntryResponse,
    status_code=201,
)
def debit_for_purchase(
    chat_id: int,
    request: WalletDebit,
    db: Session = Depends(get_db),
):
    service = LedgerService(db)
    try:
        entry = service.debit_for_purchase(
            chat_id, request.amount, request.description, request.reference
        )
        db.commit()
        return entry
    except EngineError as e:
        db.rollback()
        raise http_error(e)
