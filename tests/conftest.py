"""Pytest fixtures for all tests."""

import random

import pytest
from httpx import AsyncClient, ASGITransport

from ui.app import create_app
from communication.bus import EventBus
from simulation.collider import CollisionSimulator
from simulation.engine import SimulationEngine
from simulation.world import World
from simulation.entities import Particle
from config import SimulationConfig


@pytest.fixture
def world():
    """Create a test world."""
    return World(width=200, height=100)


@pytest.fixture
def particle(world):
    """Create a test particle."""
    return Particle("p01", rx=50, ry=30, vx=10, vy=-5, radius=10, width=world.width, height=world.height)


@pytest.fixture
def head_on(world):
    """Two equal disks closing on each other along y=50, touching at t=4."""
    return [
        Particle("p00", rx=50, ry=50, vx=10, vy=0, radius=10, color="#0000FF", width=world.width, height=world.height),
        Particle("p01", rx=150, ry=50, vx=-10, vy=0, radius=10, color="#FF0000", width=world.width, height=world.height),
    ]


@pytest.fixture
def head_on_sim(world, head_on):
    """Simulator over the head-on pair with the first tick at t=8."""
    return CollisionSimulator(world, particles=head_on, hz=0.125)


@pytest.fixture
def seeded_sim():
    """Ten random particles in a large box, reproducible from the seed."""
    return CollisionSimulator(World(800, 600), count=10, hz=0.5, rng=random.Random(1406))


@pytest.fixture
def sim_config():
    """Create test simulation config."""
    return SimulationConfig(
        tick_interval=0.05,
        hz=0.5,
        world_width=800,
        world_height=600,
        particle_count=5,
        seed=42,
    )


@pytest.fixture
async def bus():
    """Create test event bus."""
    return EventBus(queue_size=10)


@pytest.fixture
async def engine(bus, sim_config):
    """Create test simulation engine."""
    eng = SimulationEngine(bus=bus, config=sim_config)
    yield eng
    if eng._task:
        await eng.stop()


@pytest.fixture
async def app():
    """Create test FastAPI app."""
    return create_app()


@pytest.fixture
async def client(app):
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
