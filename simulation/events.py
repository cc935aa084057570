"""Predicted events and the min-priority queue that orders them."""

import heapq
import itertools

from core.errors import QueueExhaustedError

NO_PARTICLE = -1


class EventKind:
    TICK = "tick"
    VERTICAL_WALL = "vertical_wall"
    HORIZONTAL_WALL = "horizontal_wall"
    PAIR = "pair"


class Event:
    """A predicted occurrence at absolute simulation time ``time``.

    ``a`` and ``b`` are particle indices or None:

    - a and b both None:    tick (snapshot) event
    - a set, b None:        collision of a with a vertical wall
    - a None, b set:        collision of b with a horizontal wall
    - a and b both set:     collision between a and b

    ``count_a``/``count_b`` hold the participants' collision counts when the
    event was predicted. Any later bounce of a participant makes it stale.
    """

    __slots__ = ("time", "a", "b", "count_a", "count_b")

    def __init__(self, time, a=None, b=None, count_a=NO_PARTICLE, count_b=NO_PARTICLE):
        object.__setattr__(self, "time", time)
        object.__setattr__(self, "a", a)
        object.__setattr__(self, "b", b)
        object.__setattr__(self, "count_a", count_a if a is not None else NO_PARTICLE)
        object.__setattr__(self, "count_b", count_b if b is not None else NO_PARTICLE)

    def __setattr__(self, name, value):
        raise AttributeError("Event is immutable")

    def __repr__(self):
        return f"Event({self.kind}, t={self.time!r}, a={self.a}, b={self.b})"

    @classmethod
    def tick(cls, time):
        return cls(time)

    @classmethod
    def between(cls, time, particles, a=None, b=None):
        """Build an event, snapshotting the current counts of ``a`` and ``b``."""
        return cls(
            time, a, b,
            particles[a].count if a is not None else NO_PARTICLE,
            particles[b].count if b is not None else NO_PARTICLE,
        )

    @property
    def kind(self):
        if self.a is not None and self.b is not None:
            return EventKind.PAIR
        if self.a is not None:
            return EventKind.VERTICAL_WALL
        if self.b is not None:
            return EventKind.HORIZONTAL_WALL
        return EventKind.TICK

    @property
    def is_tick(self):
        return self.a is None and self.b is None

    def is_valid(self, particles):
        """Has no participant bounced since this event was predicted?"""
        if self.a is not None and particles[self.a].count != self.count_a:
            return False
        if self.b is not None and particles[self.b].count != self.count_b:
            return False
        return True


class EventQueue:
    """Binary heap of events ordered by time, ties broken by insertion order.

    Stale entries are not removed when they go stale; the consumer checks
    validity on pop. ``compact`` drops them in bulk when the heap grows.
    """

    def __init__(self):
        self._heap = []
        self._sequence = itertools.count()
        self.pushed = 0
        self.popped = 0

    def __len__(self):
        return len(self._heap)

    def __bool__(self):
        return bool(self._heap)

    def push(self, event):
        heapq.heappush(self._heap, (event.time, next(self._sequence), event))
        self.pushed += 1

    def pop(self):
        if not self._heap:
            raise QueueExhaustedError("event queue is empty")
        self.popped += 1
        return heapq.heappop(self._heap)[2]

    def peek(self):
        return self._heap[0][2] if self._heap else None

    def compact(self, keep):
        """Drop every entry for which ``keep(event)`` is false. Returns the count dropped."""
        before = len(self._heap)
        self._heap = [entry for entry in self._heap if keep(entry[2])]
        heapq.heapify(self._heap)
        return before - len(self._heap)

    def clear(self):
        self._heap.clear()
