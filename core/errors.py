"""Custom errors with tracking IDs."""

from utils.timestamp import format_timestamp
from utils.ksuid import generate_ksuid


class BaseSimError(Exception):
    """Base error with unique ID and timestamp for tracking."""

    def __init__(self, message, context=None, cause=None):
        super().__init__(message)
        self.error_id = generate_ksuid()
        self.timestamp = format_timestamp()
        self.context = context or {}
        self.cause = cause

    def __str__(self):
        return f"[{self.error_id}] {super().__str__()}"

    def to_dict(self):
        return {
            "id": self.error_id,
            "timestamp": self.timestamp,
            "type": type(self).__name__,
            "msg": self.args[0] if self.args else "",
            "context": self.context,
        }


class ConfigurationError(BaseSimError):
    """Invalid world bounds, particle count, tick rate or particle set."""

    def __init__(self, message, field=None, value=None, **kwargs):
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
            context["value"] = value
        super().__init__(message, context=context, **kwargs)


class PlacementError(ConfigurationError):
    """Initial layout could not be sampled without overlaps."""

    def __init__(self, message, placed=None, requested=None, **kwargs):
        context = kwargs.pop("context", {})
        if requested is not None:
            context["placed"] = placed
            context["requested"] = requested
        super().__init__(message, context=context, **kwargs)


class SimulationError(BaseSimError):
    """Dispatch contract violated (e.g. simulate() called with no tick armed)."""

    def __init__(self, message, clock=None, **kwargs):
        context = kwargs.pop("context", {})
        if clock is not None:
            context["clock"] = clock
        super().__init__(message, context=context, **kwargs)


class QueueExhaustedError(SimulationError):
    """Event queue ran dry before a tick event was reached."""


class BusError(BaseSimError):
    """Event bus errors (subscribe/publish failures)."""

    def __init__(self, message, subscriber_name=None, **kwargs):
        context = kwargs.pop("context", {})
        if subscriber_name:
            context["subscriber_name"] = subscriber_name
        super().__init__(message, context=context, **kwargs)


class HealthCheckError(BaseSimError):
    """Health check failures."""

    def __init__(self, message, component=None, **kwargs):
        context = kwargs.pop("context", {})
        if component:
            context["component"] = component
        super().__init__(message, context=context, **kwargs)
