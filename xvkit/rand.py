"""The Park-Miller minimal standard pseudo-random generator."""

from __future__ import annotations

_M = 0x7FFFFFFF
_Q = 127773
_R = 2836
_A = 16807


def do_rand(ctx: int) -> int:
    """Advance state ``ctx``; the new state is also the value, in [0, 0x7ffffffd]."""
    x = (ctx % 0x7FFFFFFE) + 1
    hi, lo = divmod(x, _Q)
    x = _A * lo - _R * hi
    if x < 0:
        x += _M
    return x - 1


class ParkMiller:
    """A generator holding its own state."""

    def __init__(self, seed: int = 1) -> None:
        if seed < 0:
            raise ValueError("seed must not be negative")
        self.state = seed

    def next(self) -> int:
        """Return the next value."""
        self.state = do_rand(self.state)
        return self.state