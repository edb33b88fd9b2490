"""
Sweep trigger endpoint, for external cron jobs.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vpn_sales.api.deps import get_notifier
from vpn_sales.config import Settings, get_settings
from vpn_sales.models.base import get_db
from vpn_sales.notifier import Notifier
from vpn_sales.services.sweep_coordinator import SweepCoordinator
from vpn_sales.schemas.sweep import SweepReport

router = APIRouter(tags=["Sweep"])


@router.post("/sweep", response_model=SweepReport)
def run_sweep(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    """Run one sweep now. Step failures are reported, not raised."""
    return SweepCoordinator(db, notifier=notifier, settings=settings).run()
