# -*- coding: utf-8 -*-
"""
APScheduler interval job for the settlement sweep.
Default: off; when enabled, every SETTLEMENT_SWEEP_MINUTES settle completed
matches that still have pending bets and pay unpaid winners.
"""
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .. import config
from ..database import get_session
from .settlement import run_settlement_sweep, sweep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scheduler"])

# Module-level scheduler instance
_scheduler: AsyncIOScheduler | None = None
_enabled: bool = False
_interval_config = {
    "minutes": config.SETTLEMENT_SWEEP_MINUTES,
}

JOB_ID = "settlement_sweep"


async def _sweep_job():
    """Interval job: settle leftovers and pay unpaid winners."""
    logger.info("[Scheduler] Sweep triggered at %s", datetime.now(timezone.utc).isoformat())
    try:
        await run_settlement_sweep()
    except Exception:
        # retried on the next tick
        logger.exception("[Scheduler] Sweep failed")


def start_scheduler() -> AsyncIOScheduler | None:
    """Initialize and start the scheduler (called on app startup)."""
    global _scheduler, _enabled

    _scheduler = AsyncIOScheduler()
    _scheduler.start()

    _enabled = False
    if config.SETTLEMENT_SWEEP_ENABLED:
        _add_sweep_job()

    return _scheduler


def stop_scheduler():
    global _scheduler, _enabled
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
    _scheduler = None
    _enabled = False


def _add_sweep_job():
    """Add the sweep job to the scheduler."""
    global _enabled
    if _scheduler is None:
        return

    trigger = IntervalTrigger(minutes=_interval_config["minutes"])
    _scheduler.add_job(_sweep_job, trigger, id=JOB_ID, replace_existing=True)
    _enabled = True


def _remove_sweep_job():
    """Remove the sweep job from the scheduler."""
    global _enabled
    if _scheduler and _scheduler.get_job(JOB_ID):
        _scheduler.remove_job(JOB_ID)
    _enabled = False


# ─── API Endpoints ──────────────────────────────────────────────────────────

class SweepConfig(BaseModel):
    minutes: int | None = Field(None, gt=0, le=24 * 60)


@router.get("/scheduler/status")
async def scheduler_status():
    """Get scheduler status and configuration."""
    next_run = None
    if _scheduler and _enabled:
        job = _scheduler.get_job(JOB_ID)
        if job and job.next_run_time:
            next_run = job.next_run_time.isoformat()

    return {
        "enabled": _enabled,
        "config": _interval_config,
        "next_run": next_run,
        "scheduler_running": _scheduler.running if _scheduler else False,
    }


@router.post("/scheduler/toggle")
async def toggle_scheduler():
    """Enable or disable the settlement sweep."""
    if _enabled:
        _remove_sweep_job()
        return {"enabled": False, "message": "Settlement sweep disabled"}
    if _scheduler is None:
        return {"enabled": False, "message": "Scheduler is not running"}
    _add_sweep_job()
    return {"enabled": True, "message": "Settlement sweep enabled"}


@router.put("/scheduler/config")
async def update_scheduler_config(data: SweepConfig):
    """Update the sweep interval."""
    if data.minutes is not None:
        _interval_config["minutes"] = data.minutes

    # Re-add job with new interval if enabled
    if _enabled:
        _add_sweep_job()

    return {"config": _interval_config, "enabled": _enabled}


@router.post("/settlement/sweep")
async def trigger_sweep(session: AsyncSession = Depends(get_session)):
    """Run the settlement sweep once, now."""
    return await sweep(session)
