"""A small printf supporting ``%d %l %x %p %s %c %%``."""

from __future__ import annotations

from typing import Any, Iterator, TextIO

_DIGITS = "0123456789ABCDEF"
_U32 = (1 << 32) - 1
_U64 = (1 << 64) - 1


def _to_int32(value: int) -> int:
    value &= _U32
    return value - (1 << 32) if value & (1 << 31) else value


def _format_int(value: int, base: int, signed: bool) -> str:
    negative = signed and value < 0
    x = -value if negative else value
    digits = []
    while True:
        digits.append(_DIGITS[x % base])
        x //= base
        if x == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _next_arg(args: Iterator[Any]) -> Any:
    try:
        return next(args)
    except StopIteration:
        raise TypeError("not enough arguments for format string") from None


def render(fmt: str, *args: Any) -> str:
    """Format ``args`` according to ``fmt`` and return the text.

    Unknown conversions are copied through with their ``%``; a lone
    ``%`` at the very end is dropped.
    """
    values = iter(args)
    out: list[str] = []
    pending = False
    for c in fmt:
        if not pending:
            if c == "%":
                pending = True
            else:
                out.append(c)
            continue
        pending = False
        if c == "d":
            out.append(_format_int(_to_int32(int(_next_arg(values))), 10, True))
        elif c == "l":
            out.append(_format_int(int(_next_arg(values)) & _U64, 10, False))
        elif c == "x":
            out.append(_format_int(int(_next_arg(values)) & _U32, 16, False))
        elif c == "p":
            out.append("0x" + format(int(_next_arg(values)) & _U64, "016X"))
        elif c == "s":
            s = _next_arg(values)
            out.append("(null)" if s is None else str(s))
        elif c == "c":
            ch = _next_arg(values)
            out.append(ch if isinstance(ch, str) else chr(int(ch) & 0xFF))
        elif c == "%":
            out.append("%")
        else:
            out.append("%" + c)
    return "".join(out)


def fprintf(stream: TextIO, fmt: str, *args: Any) -> None:
    """Write the formatted text to ``stream``."""
    stream.write(render(fmt, *args))