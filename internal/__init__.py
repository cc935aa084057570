from utils.ksuid import generate_ksuid
from utils.timestamp import now_micros, format_timestamp
from core.errors import BusError, HealthCheckError, SimulationError, ConfigurationError
from internal.logging import get_logger, LogLevel, StructuredLogger

__all__ = [
    "generate_ksuid",
    "now_micros",
    "format_timestamp",
    "BusError",
    "HealthCheckError",
    "SimulationError",
    "ConfigurationError",
    "get_logger",
    "LogLevel",
    "StructuredLogger",
]
