from fastapi import APIRouter, Depends, HTTPException, Header
from typing import Optional
import logging
import os

from teachgen.services.generation_service import service
from teachgen.services.observability import observability

logger = logging.getLogger("internal")


def require_admin(x_admin_token: Optional[str] = Header(None)) -> None:
    """Only enforced when ADMIN_TOKEN is set."""
    expected = os.getenv("ADMIN_TOKEN")
    if expected and x_admin_token != expected:
        raise HTTPException(status_code=401, detail="unauthorized")


router = APIRouter(prefix="/internal", tags=["internal"], dependencies=[Depends(require_admin)])


@router.get("/metrics", summary="Internal metrics",
            description="Sampler, balancer and search counters, latency summaries, and recent sampling traces. "
                        "`prefix` narrows counters and timers, e.g. `sampler_`; `state` narrows traces, e.g. `exhausted`.")
def get_metrics(prefix: Optional[str] = None, state: Optional[str] = None):
    snap = observability.snapshot()
    if state:
        snap["recent_traces"] = observability.traces(state)
    if prefix:
        snap["counters"] = {k: v for k, v in snap["counters"].items() if k.startswith(prefix)}
        snap["timers"] = {k: v for k, v in snap["timers"].items() if k.startswith(prefix)}
    return snap


@router.post("/metrics/reset", summary="Reset internal metrics")
def reset_metrics():
    observability.reset()
    return {"status": "ok"}


@router.post("/history/reset", summary="Forget generated outputs",
             description="Drops every stored output and route fingerprint, so the next request on each "
                         "endpoint is generated without an anti-repetition list.")
def reset_history():
    service.history.clear()
    logger.info("Generation history cleared")
    return {"status": "ok"}
