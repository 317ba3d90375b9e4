import logging
import os
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from quoteflow import __version__
from quoteflow.errors import FetchFailure, QuoteStoreError
from quoteflow.logs import setup_logging
from quoteflow.models import QuoteState
from quoteflow.scheduler import SweepInProgress, SweepTrigger
from quoteflow.stores import QuoteStore
from .deps import get_store, get_trigger

setup_logging()
logger = logging.getLogger(__name__)

ENABLE_SCHEDULER = os.getenv("QUOTEFLOW_ENABLE_SCHEDULER", "false").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    trigger = get_trigger()
    if ENABLE_SCHEDULER:
        trigger.start()
        logger.info(f"Scheduler started, next sweep at {trigger.next_run_time()}")
    else:
        logger.info("Scheduler disabled (QUOTEFLOW_ENABLE_SCHEDULER != true)")

    yield

    trigger.shutdown(wait=False)


app = FastAPI(
    title="Quoteflow API",
    version=__version__,
    description="Operations endpoints for the quote expiration sweeps.",
    lifespan=lifespan,
)


# ---------- health-check ----------
@app.get("/")
def root():
    return {"status": "ok", "msg": "Quoteflow API is alive"}


# ---------- GET /quotes/status ----------
@app.get("/quotes/status")
def status_snapshot(store: QuoteStore = Depends(get_store)):
    """Number of quotes per state; states outside the TMForum set count as ``other``."""
    try:
        quotes = store.list_all_quotes()
    except QuoteStoreError as e:
        raise HTTPException(status_code=502, detail=f"Quote store unavailable: {e}")

    counts: dict[str, int] = {s.value: 0 for s in QuoteState}
    counts["other"] = 0
    for q in quotes:
        state = QuoteState.parse(q.state)
        key = state.value if state else "other"
        counts[key] += 1
    return counts


# ---------- POST /sweeps ----------
@app.post("/sweeps")
def run_sweep(
    today: Optional[date] = Query(None, description="Evaluate deadlines as of this date"),
    tender: bool = Query(True, description="Also run the tender progression sweep"),
    trigger: SweepTrigger = Depends(get_trigger),
):
    """
    Run the sweeps now.

    Shares the scheduler's lock: 409 if a sweep is already running, 502 if
    the quote snapshot could not be fetched.
    """
    try:
        reports = trigger.fire(raise_if_busy=True, today=today, include_tender=tender)
    except SweepInProgress:
        raise HTTPException(status_code=409, detail="A sweep is already running")
    except FetchFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [r.to_dict() for r in reports]


# ---------- GET /sweeps/last ----------
@app.get("/sweeps/last")
def last_sweep(trigger: SweepTrigger = Depends(get_trigger)):
    if trigger.last_error is not None:
        return {"status": "failed", "error": str(trigger.last_error)}
    if trigger.last_result is None:
        raise HTTPException(status_code=404, detail="No sweep has run yet")
    return {"status": "ok", "reports": [r.to_dict() for r in trigger.last_result]}
