"""API routes for simulation stats and subscribers."""

from fastapi import APIRouter, Depends

from utils.timestamp import format_timestamp
from ui.auth import verify_basic_auth

router = APIRouter(prefix="/api/v1", tags=["api"])

# These will be set by app.py
_engine = None
_bus = None
_file_logger = None


def init(engine, bus, file_logger):
    """Initialize with engine, bus, and logger references."""
    global _engine, _bus, _file_logger
    _engine = engine
    _bus = bus
    _file_logger = file_logger


@router.get("/stats")
async def stats(username=Depends(verify_basic_auth)):
    """Return simulator, bus and recorder statistics (requires basic auth)."""
    sim_stats = await _engine.get_stats()
    return {
        "timestamp": format_timestamp(),
        "simulation": {
            "tick": sim_stats["ticks"],
            "sim_time_s": sim_stats["clock"],
            "entity_count": sim_stats["particles"],
            "kinetic_energy": sim_stats["kinetic_energy"],
            "collisions": sim_stats["collisions"],
            "events_processed": sim_stats["processed"],
            "events_discarded": sim_stats["discarded"],
            "queue_size": sim_stats["queued"],
            "engine_state": _engine.state,
            "paused": _engine.paused,
        },
        "bus": _bus.get_stats(),
        "logger": _file_logger.get_stats(),
    }


@router.get("/snapshot")
async def snapshot(username=Depends(verify_basic_auth)):
    """Latest tick snapshot, for renderers that poll instead of streaming."""
    current = await _engine.get_snapshot()
    return {
        "tick": current.tick,
        "sim_time_s": current.time,
        "particles": [list(item) for item in current.to_render()],
    }


@router.get("/subscribers")
async def subscribers(username=Depends(verify_basic_auth)):
    """Return info about all current subscribers (requires basic auth)."""
    return await _bus.get_subscriber_info()
