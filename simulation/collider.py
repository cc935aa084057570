"""Event-driven hard-disk collision simulation.

Time advances from one predicted event to the next instead of in fixed
steps. Predictions go into a priority queue and are checked for staleness
only when popped; after each bounce only the particles involved are
re-predicted.
"""

import math
import random

from core.errors import ConfigurationError, QueueExhaustedError, SimulationError
from internal.logging import get_logger
from simulation.events import Event, EventKind, EventQueue
from simulation.layout import generate_particles
from simulation.state import StateSnapshot

INFINITY = math.inf


class SimulatorState:
    IDLE = "idle"
    RUNNING = "running"
    SUSPENDED = "suspended_at_tick"


class CollisionSimulator:
    """Owns the particles, the clock and the event queue.

    The host drives it one tick at a time: call ``schedule_tick()`` then
    ``simulate()``, which processes every collision up to the next tick and
    returns the snapshot for that instant. The constructor arms the first
    tick, so the very first ``simulate()`` needs no re-arm.
    """

    def __init__(self, world, particles=None, hz=0.5, count=0, rng=None, max_attempts=1000,
                 compact_threshold=50000):
        if not hz > 0:
            raise ConfigurationError(f"tick rate must be positive, got {hz}", field="hz", value=hz)
        if count < 0:
            raise ConfigurationError(f"particle count must be non-negative, got {count}", field="count", value=count)
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1", field="max_attempts", value=max_attempts)
        self._log = get_logger()
        self.world = world
        self.hz = hz
        self.compact_threshold = compact_threshold
        self._next_compact = compact_threshold
        if particles is None:
            particles = generate_particles(world, count, rng or random.Random(), max_attempts=max_attempts)
        else:
            particles = list(particles)
            self._adopt(particles)
        self.particles = particles
        self.clock = 0.0
        self.queue = EventQueue()
        self.state = SimulatorState.IDLE
        self.pending_ticks = 0
        self.ticks = 0
        self.processed = 0
        self.discarded = 0
        self.compactions = 0
        self.collisions = {EventKind.PAIR: 0, EventKind.VERTICAL_WALL: 0, EventKind.HORIZONTAL_WALL: 0}
        self._seed()

    def _adopt(self, particles):
        for particle in particles:
            if particle.width is None:
                particle.width = self.world.width
            if particle.height is None:
                particle.height = self.world.height
            if (particle.width, particle.height) != (self.world.width, self.world.height):
                raise ConfigurationError(f"particle {particle.id} was built for a different world",
                                         field="particles", value=particle.id)
            if not self.world.contains(particle):
                raise ConfigurationError(f"particle {particle.id} lies outside the world",
                                         field="particles", value=particle.id)

    def _seed(self):
        for index in range(len(self.particles)):
            self.predict(index, INFINITY)
        self.schedule_tick()
        self._log.debug("simulator seeded", particles=len(self.particles), queued=len(self.queue), hz=self.hz)

    @property
    def tick_period(self):
        return 1.0 / self.hz

    def predict(self, index, limit=INFINITY):
        """Queue every future collision of particle ``index`` up to time ``limit``."""
        if index is None:
            return
        particles = self.particles
        particle = particles[index]
        for other in range(len(particles)):
            if other == index:
                continue
            dt = particle.time_to_hit(particles[other])
            if dt < INFINITY and self.clock + dt <= limit:
                self.queue.push(Event.between(self.clock + dt, particles, index, other))

        dt_x = particle.time_to_hit_vertical_wall()
        dt_y = particle.time_to_hit_horizontal_wall()
        if dt_x < INFINITY and self.clock + dt_x <= limit:
            self.queue.push(Event.between(self.clock + dt_x, particles, a=index))
        if dt_y < INFINITY and self.clock + dt_y <= limit:
            self.queue.push(Event.between(self.clock + dt_y, particles, b=index))

    def schedule_tick(self):
        """Arm the next tick one period after the current clock."""
        event = Event.tick(self.clock + self.tick_period)
        self.queue.push(event)
        self.pending_ticks += 1
        return event

    def step(self):
        """Process the earliest queued event.

        Returns the event when it was applied, or None when it was stale and
        discarded.
        """
        event = self.queue.pop()
        if not event.is_valid(self.particles):
            self.discarded += 1
            return None

        dt = event.time - self.clock
        for particle in self.particles:
            particle.move(dt)
        self.clock = event.time
        self.processed += 1

        a, b = event.a, event.b
        if a is not None and b is not None:
            self.particles[a].bounce_off(self.particles[b])
        elif a is not None:
            self.particles[a].bounce_off_vertical_wall()
        elif b is not None:
            self.particles[b].bounce_off_horizontal_wall()
        else:
            self.pending_ticks -= 1
            self.ticks += 1
            return event

        self.collisions[event.kind] += 1
        self.predict(a, INFINITY)
        self.predict(b, INFINITY)
        return event

    def simulate(self):
        """Run until the next tick event and return the snapshot at that instant."""
        if self.pending_ticks < 1:
            self._log.error("simulate called without a pending tick", clock=self.clock)
            raise SimulationError("no tick scheduled: call schedule_tick() before simulate()", clock=self.clock)
        self.state = SimulatorState.RUNNING
        try:
            while True:
                event = self.step()
                if event is not None and event.is_tick:
                    break
                if self.compact_threshold and len(self.queue) > self._next_compact:
                    self.compact()
        except QueueExhaustedError as exc:
            self._log.error("event queue exhausted before tick", error=exc, clock=self.clock)
            raise QueueExhaustedError("event queue exhausted before reaching a tick",
                                      clock=self.clock, cause=exc) from exc
        self.state = SimulatorState.SUSPENDED
        return self.snapshot()

    run_until_next_tick = simulate

    def snapshots(self):
        """Endless snapshots, one per tick, re-arming as needed."""
        while True:
            if self.pending_ticks < 1:
                self.schedule_tick()
            yield self.simulate()

    def compact(self):
        """Drop stale events from the queue.

        The next automatic compaction waits until the queue is twice the size
        of what survived this one.
        """
        dropped = self.queue.compact(lambda event: event.is_valid(self.particles))
        self._next_compact = max(self.compact_threshold, 2 * len(self.queue))
        self.compactions += 1
        self._log.debug("event queue compacted", dropped=dropped, remaining=len(self.queue), clock=self.clock)
        return dropped

    def kinetic_energy(self):
        return sum(particle.kinetic_energy() for particle in self.particles)

    def snapshot(self):
        return StateSnapshot(self.ticks, self.clock, [particle.to_state() for particle in self.particles],
                             energy=self.kinetic_energy())

    def stats(self):
        return {
            "state": self.state,
            "clock": self.clock,
            "ticks": self.ticks,
            "particles": len(self.particles),
            "queued": len(self.queue),
            "processed": self.processed,
            "discarded": self.discarded,
            "compactions": self.compactions,
            "collisions": dict(self.collisions),
            "kinetic_energy": self.kinetic_energy(),
        }
