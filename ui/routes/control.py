"""Simulation control routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from core.errors import SimulationError
from ui.auth import verify_basic_auth

router = APIRouter(prefix="/api/v1/control", tags=["control"])

# These will be set by app.py
_engine = None
_bus = None


def init(engine, bus):
    """Initialize with engine and bus references."""
    global _engine, _bus
    _engine = engine
    _bus = bus


@router.post("/pause")
async def pause(username=Depends(verify_basic_auth)):
    """Pause simulation (requires basic auth)."""
    try:
        await _engine.pause()
    except SimulationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.to_dict())
    await _bus.notify("paused", tick=_engine.tick)
    return {"ok": True, "tick": _engine.tick}


@router.post("/resume")
async def resume(username=Depends(verify_basic_auth)):
    """Resume simulation (requires basic auth)."""
    try:
        await _engine.resume()
    except SimulationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.to_dict())
    await _bus.notify("resumed", tick=_engine.tick)
    return {"ok": True, "tick": _engine.tick}


@router.post("/reset")
async def reset(username=Depends(verify_basic_auth)):
    """Lay out a fresh particle set and restart the clock (requires basic auth)."""
    await _engine.restart()
    await _bus.notify("reset", particles=len(_engine.particles))
    return {"ok": True, "tick": _engine.tick, "engine_state": _engine.state}
