import math

from core.errors import ConfigurationError
from simulation.state import ParticleState

INFINITY = math.inf


class Particle:
    """A hard disk moving freely between collisions inside a fixed box.

    Velocity only changes at collision instants, so between events the
    position is a linear function of time. ``count`` is bumped once per
    bounce and serves as the staleness token for predicted events.
    """

    __slots__ = ("id", "rx", "ry", "vx", "vy", "radius", "mass", "color", "count", "width", "height")

    def __init__(self, id, rx, ry, vx, vy, radius, mass=None, color=None, width=None, height=None):
        if not radius > 0:
            raise ConfigurationError(f"radius must be positive, got {radius}", field="radius", value=radius)
        if mass is None:
            mass = radius * radius
        if not mass > 0:
            raise ConfigurationError(f"mass must be positive, got {mass}", field="mass", value=mass)
        self.id = id
        self.rx = rx
        self.ry = ry
        self.vx = vx
        self.vy = vy
        self.radius = radius
        self.mass = mass
        self.color = color
        self.count = 0
        # Bounds are only read by the wall predictions.
        self.width = width
        self.height = height

    def __repr__(self):
        return (f"Particle({self.id!r}, r=({self.rx:.3f}, {self.ry:.3f}), "
                f"v=({self.vx:.3f}, {self.vy:.3f}), radius={self.radius:.3f}, count={self.count})")

    @property
    def speed(self):
        return math.hypot(self.vx, self.vy)

    def move(self, dt):
        """Advance position along the current velocity."""
        self.rx += self.vx * dt
        self.ry += self.vy * dt

    def time_to_hit(self, other):
        """Time until the surfaces of this disk and ``other`` touch, or inf."""
        if other is self:
            return INFINITY
        dx = other.rx - self.rx
        dy = other.ry - self.ry
        dvx = other.vx - self.vx
        dvy = other.vy - self.vy
        dvdr = dx * dvx + dy * dvy
        if dvdr > 0:
            return INFINITY
        dvdv = dvx * dvx + dvy * dvy
        if dvdv == 0:
            return INFINITY
        drdr = dx * dx + dy * dy
        sigma = self.radius + other.radius
        d = dvdr * dvdr - dvdv * (drdr - sigma * sigma)
        if d < 0:
            return INFINITY
        # Negative only when the disks already overlap while approaching.
        return max(0.0, -(dvdr + math.sqrt(d)) / dvdv)

    def time_to_hit_vertical_wall(self):
        if self.vx > 0:
            return max(0.0, (self.width - self.rx - self.radius) / self.vx)
        if self.vx < 0:
            return max(0.0, (self.radius - self.rx) / self.vx)
        return INFINITY

    def time_to_hit_horizontal_wall(self):
        if self.vy > 0:
            return max(0.0, (self.height - self.ry - self.radius) / self.vy)
        if self.vy < 0:
            return max(0.0, (self.radius - self.ry) / self.vy)
        return INFINITY

    def overlap(self, other):
        """Strict overlap: touching disks do not overlap."""
        dx = other.rx - self.rx
        dy = other.ry - self.ry
        sigma = self.radius + other.radius
        return dx * dx + dy * dy < sigma * sigma

    def bounce_off(self, other):
        """Elastic collision response along the line of centres."""
        dx = other.rx - self.rx
        dy = other.ry - self.ry
        dvx = other.vx - self.vx
        dvy = other.vy - self.vy
        dvdr = dx * dvx + dy * dvy
        dist = self.radius + other.radius

        # impulse magnitude, then split along x and y
        impulse = 2 * self.mass * other.mass * dvdr / ((self.mass + other.mass) * dist)
        jx = impulse * dx / dist
        jy = impulse * dy / dist

        self.vx += jx / self.mass
        self.vy += jy / self.mass
        other.vx -= jx / other.mass
        other.vy -= jy / other.mass

        self.count += 1
        other.count += 1

    def bounce_off_vertical_wall(self):
        self.vx = -self.vx
        self.count += 1

    def bounce_off_horizontal_wall(self):
        self.vy = -self.vy
        self.count += 1

    def kinetic_energy(self):
        return 0.5 * self.mass * (self.vx * self.vx + self.vy * self.vy)

    def to_state(self):
        """Create immutable state snapshot for safe publishing."""
        return ParticleState(self.id, self.rx, self.ry, self.vx, self.vy, self.radius, self.color, self.count)
