"""Park-Miller minimal standard pseudo-random generator."""

from __future__ import annotations

from collections.abc import Iterator

_MODULUS = 0x7FFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


def do_rand(ctx: int) -> int:
    """Advance the state ctx and return the new state, in [0, 0x7ffffffd]."""
    x = (ctx & _MASK64) % 0x7FFFFFFE + 1
    hi, lo = divmod(x, 127773)
    x = 16807 * lo - 2836 * hi
    if x < 0:
        x += _MODULUS
    return x - 1


class ParkMiller:
    """Stateful generator; the state is also the last value produced."""

    def __init__(self, seed: int = 1) -> None:
        self.state = seed & _MASK64

    def next(self) -> int:
        self.state = do_rand(self.state)
        return self.state

    def __iter__(self) -> Iterator[int]:
        while True:
            yield self.next()