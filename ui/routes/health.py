"""Health and liveness routes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from core.health import Status
from utils.timestamp import format_timestamp

router = APIRouter(prefix="/api/v1", tags=["health"])

# These will be set by app.py
_engine = None
_health_checker = None


def init(engine, health_checker):
    """Initialize with engine and health checker references."""
    global _engine, _health_checker
    _engine = engine
    _health_checker = health_checker


@router.get("/health")
async def health():
    """Aggregated component checks; 503 when a critical check fails."""
    report = await _health_checker.check()
    status_code = 503 if report.status == Status.FAIL else 200
    return JSONResponse(content=report.to_dict(), status_code=status_code)


@router.get("/heartbeat")
async def heartbeat():
    """Cheap liveness check: last tick, simulated clock and engine state."""
    snapshot = await _engine.get_snapshot()
    body = {
        "status": "ok" if _engine.last_error is None else "failed",
        "timestamp": format_timestamp(),
        "tick": snapshot.tick,
        "sim_time_s": snapshot.time,
        "particles": len(snapshot.particles),
        "engine_state": _engine.state,
    }
    if _engine.last_error is not None:
        body["error"] = _engine.last_error.to_dict()
    return body
