"""FastAPI application factory."""

import asyncio
import json
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse

from communication.bus import EventBus, STATE_TOPIC, CONTROL_TOPIC
from config import load_config
from core.health import (
    get_health_checker,
    check_event_loop,
    create_bus_check,
    create_engine_check,
    create_queue_check,
    create_logger_check,
)
from internal.logging import get_logger, LogLevel, StructuredLogger, AsyncFileLogger
from utils.crash import create_async_handler
from simulation.engine import SimulationEngine
from simulation.state import StateSnapshot
from ui.routes import control, api, health

VERSION = "1.0.0"


def create_app(config=None):
    """Create and configure the FastAPI application."""
    config = config or load_config()

    # Configure structured logging
    StructuredLogger.configure(min_level=LogLevel.parse(config.logging.level))
    logger_instance = get_logger()

    # Create core components
    bus = EventBus(queue_size=100)
    engine = SimulationEngine(bus=bus, config=config.simulation)
    file_logger = AsyncFileLogger(file_path=config.logging.file)
    health_checker = get_health_checker()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger_instance.info("Application starting", version=VERSION)
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(create_async_handler(logger_instance))

        await file_logger.start()
        log_sub = await bus.subscribe("recorder", max_queue_size=200)

        async def record_worker():
            while True:
                item = await log_sub.queue.get()
                if isinstance(item, StateSnapshot):
                    file_logger.try_log("tick", {"tick": item.tick, "sim_time_s": item.time,
                                                 "energy": item.energy, "particles": len(item.particles)})
                else:
                    file_logger.try_log("control", item)

        app.state.record_worker = asyncio.create_task(record_worker())

        health_checker.register("event_loop", check_event_loop, critical=True)
        health_checker.register("event_bus", create_bus_check(bus), critical=True)
        health_checker.register("simulation_engine", create_engine_check(engine), critical=True)
        health_checker.register("event_queue", create_queue_check(engine), critical=False)
        health_checker.register("async_logger", create_logger_check(file_logger), critical=False)

        await engine.start()
        logger_instance.info("Application started successfully")

        yield

        # Shutdown
        logger_instance.info("Application shutting down")
        await engine.stop()
        app.state.record_worker.cancel()
        try:
            await app.state.record_worker
        except asyncio.CancelledError:
            pass
        await file_logger.stop()
        logger_instance.info("Application shutdown complete")

    app = FastAPI(
        title="Collision Simulation",
        version=VERSION,
        description="event-driven hard-disk collision simulation",
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.bus = bus

    # Initialize route modules with dependencies
    control.init(engine, bus)
    api.init(engine, bus, file_logger)
    health.init(engine, health_checker)

    # Include routers
    app.include_router(control.router)
    app.include_router(api.router)
    app.include_router(health.router)

    @app.get("/events")
    async def events(request: Request):
        """SSE endpoint - streams one snapshot per simulation tick to renderers."""
        subscriber_name = f"ui-{uuid.uuid4().hex[:8]}"
        sub = await bus.subscribe(subscriber_name, max_queue_size=10, topics=(STATE_TOPIC, CONTROL_TOPIC))

        async def event_generator():
            try:
                snapshot = await engine.get_snapshot()
                yield format_sse("state", snapshot.to_dict())

                while True:
                    if await request.is_disconnected():
                        break

                    try:
                        item = await asyncio.wait_for(sub.queue.get(), timeout=1.0)
                    except asyncio.TimeoutError:
                        yield ": keep-alive\n\n"
                        continue

                    if isinstance(item, StateSnapshot):
                        yield format_sse("state", item.to_dict())
                    else:
                        yield format_sse("control", item)
            finally:
                await bus.unsubscribe(subscriber_name)

        return StreamingResponse(event_generator(), media_type="text/event-stream")

    return app


def format_sse(event, data):
    """Format data as Server-Sent Event."""
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"
