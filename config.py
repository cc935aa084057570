import json
from pathlib import Path

_DEFAULT_CONFIG = Path(__file__).parent / "config.json"


class SimulationConfig:
    """Host-side settings for the collision simulation.

    ``tick_interval`` is wall-clock seconds between pumps; ``hz`` is ticks per
    simulated second. The two are independent.
    """

    __slots__ = ("tick_interval", "hz", "world_width", "world_height", "particle_count", "seed",
                 "max_placement_attempts", "compact_threshold")

    def __init__(self, tick_interval=0.5, hz=0.5, world_width=800, world_height=600, particle_count=20,
                 seed=None, max_placement_attempts=1000, compact_threshold=50000):
        self.tick_interval = tick_interval
        self.hz = hz
        self.world_width = world_width
        self.world_height = world_height
        self.particle_count = particle_count
        self.seed = seed
        self.max_placement_attempts = max_placement_attempts
        self.compact_threshold = compact_threshold


class ServerConfig:
    __slots__ = ("host", "port")

    def __init__(self, host="127.0.0.1", port=8080):
        self.host = host
        self.port = port


class LoggingConfig:
    __slots__ = ("level", "file", "crash_file")

    def __init__(self, level="INFO", file="logs/simulator.log", crash_file="logs/crash.log"):
        self.level = level
        self.file = file
        self.crash_file = crash_file


class Config:
    __slots__ = ("simulation", "server", "logging")

    def __init__(self, simulation=None, server=None, logging=None):
        self.simulation = simulation or SimulationConfig()
        self.server = server or ServerConfig()
        self.logging = logging or LoggingConfig()

    @classmethod
    def from_dict(cls, d):
        return cls(
            SimulationConfig(**d.get("simulation", {})),
            ServerConfig(**d.get("server", {})),
            LoggingConfig(**d.get("logging", {})),
        )


def load_config(path=None):
    config_path = Path(path) if path else _DEFAULT_CONFIG

    if not config_path.exists():
        return Config()

    with open(config_path) as file:
        return Config.from_dict(json.load(file))
