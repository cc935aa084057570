import asyncio
import random
import time
from config import load_config
from core.errors import SimulationError
from internal.logging import get_logger
from simulation.collider import CollisionSimulator
from simulation.world import World

class EngineState:
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"
    FAILED = "failed"

class SimulationEngine:
    """Drives a CollisionSimulator from the event loop.

    Every ``tick_interval`` wall-clock seconds the engine re-arms the next
    tick and lets the simulator run up to it, then publishes the resulting
    snapshot on the bus.
    """

    def __init__(self, bus, config=None, rng=None):
        self.bus = bus
        self.config = config or load_config().simulation
        self._lock = asyncio.Lock()
        self._log = get_logger()
        self._rng = rng
        self.world = World(self.config.world_width, self.config.world_height)
        self._state = EngineState.STOPPED
        self.simulator = None
        self.last_snapshot = None
        self.last_error = None
        self._task = None
        self._stop = asyncio.Event()
        self._last_publish_tick = -1
        self.reset()

    @property
    def paused(self):
        return self._state == EngineState.PAUSED

    @property
    def state(self):
        return self._state

    @property
    def tick(self):
        return self.simulator.ticks

    @property
    def sim_time(self):
        return self.simulator.clock

    @property
    def particles(self):
        return self.simulator.particles

    def reset(self):
        """Rebuild the particle layout; reseeds from config.seed when set."""
        rng = self._rng or random.Random(self.config.seed)
        self.simulator = CollisionSimulator(
            self.world,
            hz=self.config.hz,
            count=self.config.particle_count,
            rng=rng,
            max_attempts=self.config.max_placement_attempts,
            compact_threshold=self.config.compact_threshold,
        )
        self._last_publish_tick = -1
        self.last_snapshot = self.simulator.snapshot()
        self.last_error = None
        if self._state == EngineState.FAILED:
            self._state = EngineState.STOPPED
        self._log.info("engine reset", particles=len(self.simulator.particles),
                       width=self.world.width, height=self.world.height, hz=self.config.hz)

    def pump(self):
        """Advance one tick: re-arm if nothing is pending, then simulate up to it."""
        if self.simulator.pending_ticks < 1:
            self.simulator.schedule_tick()
        self.last_snapshot = self.simulator.simulate()
        return self.last_snapshot

    async def restart(self):
        """Reset, and bring the loop back up if it died on a simulation error."""
        async with self._lock:
            failed = self._state == EngineState.FAILED
            self.reset()
        if failed:
            await self.start()

    async def start(self):
        if self._task and not self._task.done():
            return
        self._stop.clear()
        self._state = EngineState.RUNNING
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        self._stop.set()
        if self._task:
            await self._task
            self._task = None
        if self._state != EngineState.FAILED:
            self._state = EngineState.STOPPED
        # Notify subscribers of shutdown
        await self.bus.notify("engine_stopped", tick=self.tick)

    def _ensure_not_failed(self, action):
        if self._state == EngineState.FAILED:
            raise SimulationError(f"cannot {action} a failed engine; reset it first",
                                  clock=self.sim_time, cause=self.last_error)

    async def pause(self):
        async with self._lock:
            self._ensure_not_failed("pause")
            self._state = EngineState.PAUSED
            self._log.info("engine paused", tick=self.tick)

    async def resume(self):
        async with self._lock:
            self._ensure_not_failed("resume")
            self._state = EngineState.RUNNING
            self._log.info("engine resumed", tick=self.tick)

    async def get_snapshot(self):
        async with self._lock:
            return self.last_snapshot

    async def get_stats(self):
        async with self._lock:
            return self.simulator.stats()

    async def _loop(self):
        tick_interval = self.config.tick_interval
        next_tick_time = time.perf_counter()
        self._log.info("engine start", tick_interval=tick_interval, hz=self.config.hz)

        while not self._stop.is_set():
            wait_time = next_tick_time - time.perf_counter()
            if wait_time > 0:
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=wait_time)
                    break
                except asyncio.TimeoutError:
                    pass
            next_tick_time += tick_interval

            try:
                async with self._lock:
                    if self._state == EngineState.RUNNING:
                        self.pump()
                    snapshot = self.last_snapshot
            except SimulationError as exc:
                self.last_error = exc
                self._state = EngineState.FAILED
                self._log.error("simulation failed", error=exc, tick=self.tick, clock=self.sim_time)
                break

            # Only publish if state changed (avoid flooding when paused)
            if snapshot.tick != self._last_publish_tick:
                await self.bus.publish(snapshot)
                self._last_publish_tick = snapshot.tick

        self._log.info("engine stop", tick=self.tick, clock=self.sim_time)
