"""Tests for the event-driven CollisionSimulator."""

import itertools
import math
import random

import pytest
from core.errors import ConfigurationError, QueueExhaustedError, SimulationError
from simulation.collider import CollisionSimulator, SimulatorState
from simulation.entities import Particle
from simulation.events import EventKind
from simulation.state import StateSnapshot
from simulation.world import World


def run_head_on(world):
    particles = [
        Particle("p00", rx=50, ry=50, vx=10, vy=0, radius=10, width=world.width, height=world.height),
        Particle("p01", rx=150, ry=50, vx=-10, vy=0, radius=10, width=world.width, height=world.height),
    ]
    sim = CollisionSimulator(world, particles=particles, hz=0.125)
    first = sim.simulate()
    sim.schedule_tick()
    second = sim.simulate()
    return first, second


class TestConstruction:
    """Preconditions and seeding."""

    @pytest.mark.parametrize("hz", [0, -1.0])
    def test_rejects_non_positive_tick_rate(self, world, hz):
        """Tick rate must be positive."""
        with pytest.raises(ConfigurationError):
            CollisionSimulator(world, hz=hz)

    def test_rejects_negative_count(self, world):
        """Particle count must be non-negative."""
        with pytest.raises(ConfigurationError):
            CollisionSimulator(world, count=-1)

    def test_rejects_particle_outside_world(self, world):
        """Explicit particles must fit inside the box."""
        outside = Particle("p00", rx=5, ry=50, vx=1, vy=0, radius=10)
        with pytest.raises(ConfigurationError):
            CollisionSimulator(world, particles=[outside])

    def test_rejects_particle_from_other_world(self, world):
        """Particles built for other bounds are refused."""
        other = Particle("p00", rx=50, ry=50, vx=1, vy=0, radius=10, width=500, height=500)
        with pytest.raises(ConfigurationError):
            CollisionSimulator(world, particles=[other])

    def test_adopts_world_bounds(self, world):
        """Particles without bounds take the world's."""
        p = Particle("p00", rx=50, ry=50, vx=1, vy=0, radius=10)
        CollisionSimulator(world, particles=[p])
        assert (p.width, p.height) == (200, 100)

    def test_seeding_arms_first_tick(self, head_on_sim):
        """Construction predicts all particles and arms one tick at 1/hz."""
        assert head_on_sim.state == SimulatorState.IDLE
        assert head_on_sim.pending_ticks == 1
        assert head_on_sim.clock == 0.0
        # two pair predictions, two vertical walls, one tick
        assert len(head_on_sim.queue) == 5
        assert head_on_sim.queue.peek().time == pytest.approx(4.0)

    def test_no_infinite_events_queued(self, world):
        """Never-happening collisions are not queued."""
        still = Particle("p00", rx=50, ry=50, vx=0, vy=0, radius=10)
        sim = CollisionSimulator(world, particles=[still])
        assert len(sim.queue) == 1
        assert sim.queue.peek().is_tick

    def test_empty_world(self, world):
        """Zero particles still produce ticks."""
        sim = CollisionSimulator(world, count=0, hz=2.0)
        snapshot = sim.simulate()
        assert snapshot.particles == ()
        assert snapshot.time == 0.5
        assert snapshot.tick == 1


class TestPredict:
    """Incremental prediction."""

    def test_predict_none_is_noop(self, head_on_sim):
        """Absent participants predict nothing."""
        before = len(head_on_sim.queue)
        head_on_sim.predict(None)
        assert len(head_on_sim.queue) == before

    def test_predict_respects_limit(self, head_on_sim):
        """Only events no later than the limit are queued."""
        before = len(head_on_sim.queue)
        head_on_sim.predict(0, limit=5.0)
        # pair at t=4 fits, wall at t=14 does not
        assert len(head_on_sim.queue) == before + 1


class TestSimulate:
    """The dispatch loop."""

    def test_returns_snapshot_at_tick(self, head_on_sim):
        """simulate() stops at the tick and hands back a snapshot."""
        snapshot = head_on_sim.simulate()
        assert isinstance(snapshot, StateSnapshot)
        assert snapshot.time == 8.0
        assert snapshot.tick == 1
        assert head_on_sim.state == SimulatorState.SUSPENDED
        assert head_on_sim.pending_ticks == 0

    def test_head_on_sequence(self, head_on_sim):
        """Pair collision at t=4 swaps velocities; positions at the tick follow."""
        snapshot = head_on_sim.simulate()
        a, b = head_on_sim.particles
        assert (a.vx, b.vx) == (-10, 10)
        assert (a.count, b.count) == (1, 1)
        assert [(s.x, s.y) for s in snapshot.particles] == [(50.0, 50.0), (150.0, 50.0)]
        assert head_on_sim.collisions[EventKind.PAIR] == 1

    def test_stale_duplicate_applied_once(self, head_on_sim):
        """The same collision predicted from both sides bounces only once."""
        head_on_sim.simulate()
        assert head_on_sim.collisions[EventKind.PAIR] == 1
        assert head_on_sim.discarded == 1

    def test_second_tick_wall_bounces(self, head_on_sim):
        """After re-arming, both disks bounce off the side walls at t=12."""
        head_on_sim.simulate()
        head_on_sim.schedule_tick()
        snapshot = head_on_sim.simulate()
        a, b = head_on_sim.particles
        assert snapshot.time == 16.0
        assert (a.vx, b.vx) == (10, -10)
        assert (a.count, b.count) == (2, 2)
        assert head_on_sim.collisions[EventKind.VERTICAL_WALL] == 2
        assert snapshot.to_render() == [(50.0, 50.0, 10, "#0000FF"), (150.0, 50.0, 10, "#FF0000")]

    def test_deterministic_replay(self, world):
        """Identical inputs give bit-identical results."""
        first = run_head_on(world)
        second = run_head_on(world)
        for left, right in zip(first, second):
            assert left.time == right.time
            assert [s.to_dict() for s in left.particles] == [s.to_dict() for s in right.particles]

    def test_simulate_without_rearm_fails(self, head_on_sim):
        """Calling simulate() again without a tick is a contract violation."""
        head_on_sim.simulate()
        with pytest.raises(SimulationError):
            head_on_sim.simulate()

    def test_queue_exhaustion_is_fatal(self, head_on_sim):
        """Running out of events before the tick raises."""
        head_on_sim.queue.clear()
        with pytest.raises(QueueExhaustedError):
            head_on_sim.simulate()

    def test_step_discards_stale(self, head_on_sim):
        """step() returns None for a stale event and leaves the clock alone."""
        assert head_on_sim.step().kind == EventKind.PAIR
        clock = head_on_sim.clock
        assert head_on_sim.step() is None
        assert head_on_sim.clock == clock

    def test_snapshots_generator(self, seeded_sim):
        """snapshots() re-arms itself and yields one snapshot per tick."""
        snaps = list(itertools.islice(seeded_sim.snapshots(), 3))
        assert [s.tick for s in snaps] == [1, 2, 3]
        assert [s.time for s in snaps] == pytest.approx([2.0, 4.0, 6.0])

    def test_run_until_next_tick_alias(self, head_on_sim):
        """run_until_next_tick is the same operation as simulate."""
        assert head_on_sim.run_until_next_tick().time == 8.0

    def test_compact(self, head_on_sim):
        """Compaction drops the wall predictions invalidated by the bounce."""
        head_on_sim.simulate()
        assert head_on_sim.compact() == 2
        assert len(head_on_sim.queue) == 2

    def test_compacts_when_queue_grows(self, world, head_on):
        """The loop compacts once the queue passes the threshold."""
        sim = CollisionSimulator(world, particles=head_on, hz=0.125, compact_threshold=3)
        sim.simulate()
        assert sim.compactions >= 1

    def test_compaction_waits_for_queue_to_double(self, world, head_on):
        """After a compaction, a small valid queue is not rescanned on every step."""
        sim = CollisionSimulator(world, particles=head_on, hz=0.125, compact_threshold=1)
        sim.simulate()
        assert sim.compactions == 1
        assert len(sim.queue) == 3

        sim.schedule_tick()
        sim.simulate()
        assert sim.compactions == 1
        assert sim.ticks == 2

    def test_compactions_stay_rare_in_a_busy_box(self):
        """Many particles over many steps compact far less often than they step."""
        sim = CollisionSimulator(World(800, 600), count=40, hz=0.5, rng=random.Random(7), compact_threshold=50)
        for _ in itertools.islice(sim.snapshots(), 5):
            pass

        steps = sim.processed + sim.discarded
        assert sim.compactions >= 1
        assert sim.compactions * 2 <= steps
        assert sim._next_compact >= sim.compact_threshold


class TestLongRun:
    """Invariants over many ticks of a random system."""

    def test_invariants_hold(self, seeded_sim):
        """Energy is conserved, disks stay in the box, clock and counts never go back."""
        energy = seeded_sim.kinetic_energy()
        clock = seeded_sim.clock
        counts = [p.count for p in seeded_sim.particles]

        for snapshot in itertools.islice(seeded_sim.snapshots(), 50):
            assert snapshot.time >= clock
            clock = snapshot.time
            new_counts = [p.count for p in seeded_sim.particles]
            assert all(n >= o for n, o in zip(new_counts, counts))
            counts = new_counts
            for p in seeded_sim.particles:
                assert -1e-6 <= p.rx - p.radius and p.rx + p.radius <= 800 + 1e-6
                assert -1e-6 <= p.ry - p.radius and p.ry + p.radius <= 600 + 1e-6

        assert seeded_sim.kinetic_energy() == pytest.approx(energy, rel=1e-9)
        assert sum(seeded_sim.collisions.values()) > 0
        assert sum(counts) == 2 * seeded_sim.collisions[EventKind.PAIR] + \
            seeded_sim.collisions[EventKind.VERTICAL_WALL] + seeded_sim.collisions[EventKind.HORIZONTAL_WALL]

    def test_same_seed_same_run(self):
        """A seeded rng reproduces the whole run."""
        def run():
            sim = CollisionSimulator(World(800, 600), count=10, rng=random.Random(7))
            return [s.to_render() for s in itertools.islice(sim.snapshots(), 10)]
        assert run() == run()

    def test_energy_is_finite(self, seeded_sim):
        """Snapshot energy is the sum of particle energies."""
        snapshot = seeded_sim.simulate()
        assert math.isfinite(snapshot.energy)
        assert snapshot.energy == pytest.approx(seeded_sim.kinetic_energy())

    def test_stats(self, seeded_sim):
        """stats() summarizes the run."""
        seeded_sim.simulate()
        stats = seeded_sim.stats()
        assert stats["ticks"] == 1
        assert stats["particles"] == 10
        assert stats["clock"] == 2.0
        assert stats["processed"] >= 1
