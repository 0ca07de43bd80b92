"""Random draws derived from a single uniform [0, 1) source

Every draw in the engine goes through one injected source so tests can
script or seed it. random.Random satisfies the protocol.
"""
from typing import Protocol, Sequence, TypeVar

T = TypeVar('T')


class RandomSource(Protocol):
    def random(self) -> float:
        ...


def uniform_int(source: RandomSource, low: int, high: int) -> int:
    """Uniform integer in [low, high], both inclusive"""
    span = high - low + 1
    # Clamp guards against sources that return exactly 1.0
    return low + min(int(source.random() * span), span - 1)


def choose(source: RandomSource, options: Sequence[T]) -> T:
    """Uniform choice from a non-empty sequence"""
    return options[uniform_int(source, 0, len(options) - 1)]
