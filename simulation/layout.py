"""Random, overlap-free initial placement of particles."""

from core.errors import PlacementError
from simulation.entities import Particle

BLUE = "#0000FF"
RED = "#FF0000"
GREEN = "#00FF00"
PALETTE = (BLUE, RED, GREEN)


def random_particle(id, world, rng, min_radius=10.0, max_radius=30.0, max_speed=10.0, palette=PALETTE):
    """Sample one particle; mass is radius squared."""
    radius = rng.uniform(min_radius, max_radius)
    return Particle(
        id,
        rx=rng.uniform(radius, world.width - radius),
        ry=rng.uniform(radius, world.height - radius),
        vx=rng.uniform(-max_speed, max_speed),
        vy=rng.uniform(-max_speed, max_speed),
        radius=radius,
        mass=radius * radius,
        color=rng.choice(palette),
        width=world.width,
        height=world.height,
    )


def generate_particles(world, count, rng, max_attempts=1000, **kwargs):
    """Place ``count`` particles, resampling any that overlap an earlier one.

    Gives up with PlacementError after ``max_attempts`` rejected samples for
    a single particle. All randomness comes from ``rng``.
    """
    particles = []
    for i in range(count):
        for _ in range(max_attempts):
            candidate = random_particle(f"p{i:02d}", world, rng, **kwargs)
            if world.contains(candidate) and not any(candidate.overlap(other) for other in particles):
                particles.append(candidate)
                break
        else:
            raise PlacementError(
                f"cannot place {count} non-overlapping particles in {world.width}x{world.height} "
                f"(gave up on #{i} after {max_attempts} attempts)",
                placed=len(particles), requested=count,
            )
    return particles
