from utils.ksuid import generate_ksuid
from utils.timestamp import format_timestamp


class ParticleState:
    """Frozen copy of one particle at a tick, safe to hand to renderers."""

    __slots__ = ("id", "x", "y", "vx", "vy", "radius", "color", "count")

    def __init__(self, id, x, y, vx, vy, radius, color, count=0):
        object.__setattr__(self, "id", id)
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)
        object.__setattr__(self, "vx", vx)
        object.__setattr__(self, "vy", vy)
        object.__setattr__(self, "radius", radius)
        object.__setattr__(self, "color", color)
        object.__setattr__(self, "count", count)

    def __setattr__(self, name, value):
        raise AttributeError(f"ParticleState is immutable, cannot set {name!r}")

    def to_render(self):
        return (self.x, self.y, self.radius, self.color)

    def to_dict(self):
        return {"id": self.id, "x": self.x, "y": self.y, "vx": self.vx, "vy": self.vy,
                "radius": self.radius, "color": self.color, "count": self.count}


class StateSnapshot:
    __slots__ = ("id", "timestamp", "tick", "time", "particles", "energy")

    def __init__(self, tick, time, particles, energy=None, id=None, timestamp=None):
        object.__setattr__(self, "id", id or generate_ksuid())
        object.__setattr__(self, "timestamp", timestamp or format_timestamp())
        object.__setattr__(self, "tick", tick)
        object.__setattr__(self, "time", time)
        object.__setattr__(self, "particles", tuple(particles))
        object.__setattr__(self, "energy", energy)

    def __setattr__(self, name, value):
        raise AttributeError(f"StateSnapshot is immutable, cannot set {name!r}")

    @property
    def sim_time_s(self):  # compat
        return self.time

    def to_render(self):
        """Ordered (x, y, radius, color) per particle."""
        return [particle.to_render() for particle in self.particles]

    def to_dict(self):
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "tick": self.tick,
            "sim_time_s": self.time,
            "energy": self.energy,
            "particles": [particle.to_dict() for particle in self.particles]
        }
