"""World defines the simulation boundaries."""

from core.errors import ConfigurationError


class World:
    """Rectangular box with walls at x=0, x=width, y=0 and y=height."""

    __slots__ = ("width", "height")

    def __init__(self, width, height):
        if not width > 0:
            raise ConfigurationError(f"world width must be positive, got {width}", field="width", value=width)
        if not height > 0:
            raise ConfigurationError(f"world height must be positive, got {height}", field="height", value=height)
        self.width = width
        self.height = height

    def contains(self, particle):
        """True when the whole disk lies inside the box."""
        return (particle.radius <= particle.rx <= self.width - particle.radius
                and particle.radius <= particle.ry <= self.height - particle.radius)
