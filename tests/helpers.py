"""Deterministic clock and random sources shared by the test suite"""
from datetime import datetime, timedelta
from typing import Iterable


class FakeClock:
    """Clock that only moves when told to"""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class ScriptedRandom:
    """Random source that replays a fixed list of values"""

    def __init__(self, values: Iterable[float]):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        if self.calls >= len(self.values):
            raise AssertionError(f"ScriptedRandom exhausted after {self.calls} draws")
        value = self.values[self.calls]
        self.calls += 1
        return value


class ConstantRandom:
    """Random source that always returns the same value"""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value
