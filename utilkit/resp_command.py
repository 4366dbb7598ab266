"""Build RESP command requests from printf-like templates or argument lists."""

from __future__ import annotations

import math
import operator
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

_SPEC_LIMIT = 14
_FLAG_CHARS = b"#0-+ "
_INT_CONVS = "diouxX"
_FLOAT_CONVS = "eEfFgGaA"
_LENGTH_BITS = {"hh": 8, "h": 16, "": 32, "l": 64, "ll": 64}


class CommandFormatError(ValueError):
    """Raised when a command template cannot be formatted."""


@dataclass(frozen=True)
class _Spec:
    flags: str
    width: int | None
    precision: int | None
    length: str
    conv: str


def _as_bytes(value: str | bytes | bytearray | memoryview) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"expected str or bytes, got {type(value).__name__}")


def _parse_spec(data: bytes, start: int) -> tuple[_Spec, int]:
    """Parse the printf directive at ``start``; return it and its last index."""
    n = len(data)
    p = start + 1
    flag_start = p
    while p < n and data[p] in _FLAG_CHARS:
        p += 1
    flags = data[flag_start:p].decode("ascii")

    width_start = p
    while p < n and 0x30 <= data[p] <= 0x39:
        p += 1
    width = int(data[width_start:p]) if p > width_start else None

    precision: int | None = None
    if p < n and data[p] == ord("."):
        p += 1
        prec_start = p
        while p < n and 0x30 <= data[p] <= 0x39:
            p += 1
        precision = int(data[prec_start:p]) if p > prec_start else 0

    def conv_at(idx: int) -> str | None:
        return chr(data[idx]) if idx < n else None

    conv = conv_at(p)
    if conv is not None and conv in _INT_CONVS + _FLOAT_CONVS:
        return _Spec(flags, width, precision, "", conv), p

    for length in ("hh", "h", "ll", "l"):
        if data.startswith(length.encode("ascii"), p):
            q = p + len(length)
            conv = conv_at(q)
            if conv is not None and conv in _INT_CONVS:
                return _Spec(flags, width, precision, length, conv), q
            break
    raise CommandFormatError(
        f"invalid format directive at offset {start}: {data[start:p + 1]!r}"
    )


def _pad(sign_prefix: str, digits: str, spec: _Spec, zero_ok: bool) -> str:
    body = sign_prefix + digits
    width = spec.width or 0
    if len(body) >= width:
        return body
    if "-" in spec.flags:
        return body.ljust(width)
    if zero_ok and "0" in spec.flags:
        return sign_prefix + digits.rjust(width - len(sign_prefix), "0")
    return body.rjust(width)


def _sign(negative: bool, flags: str) -> str:
    if negative:
        return "-"
    if "+" in flags:
        return "+"
    if " " in flags:
        return " "
    return ""


def _format_int(spec: _Spec, arg: object) -> str:
    value = operator.index(arg)  # type: ignore[arg-type]
    bits = _LENGTH_BITS[spec.length]
    value &= (1 << bits) - 1
    signed = spec.conv in "di"
    if signed and value >= 1 << (bits - 1):
        value -= 1 << bits

    negative = value < 0
    magnitude = -value if negative else value
    if spec.precision == 0 and magnitude == 0:
        digits = ""
    elif spec.conv == "o":
        digits = format(magnitude, "o")
    elif spec.conv == "x":
        digits = format(magnitude, "x")
    elif spec.conv == "X":
        digits = format(magnitude, "X")
    else:
        digits = str(magnitude)
    if spec.precision is not None:
        digits = digits.rjust(spec.precision, "0")

    prefix = ""
    if "#" in spec.flags:
        if spec.conv == "o" and not digits.startswith("0"):
            digits = "0" + digits
        elif spec.conv in "xX" and magnitude != 0:
            prefix = "0" + spec.conv
    sign = _sign(negative, spec.flags) if signed else ""
    return _pad(sign + prefix, digits, spec, spec.precision is None)


def _round_hex_fraction(lead: int, frac: str, precision: int) -> tuple[int, str]:
    frac = frac.ljust(13, "0")
    if precision >= 13:
        return lead, frac.ljust(precision, "0")
    shift = 4 * (13 - precision)
    quotient, remainder = divmod(int(frac, 16), 1 << shift)
    half = 1 << (shift - 1)
    if remainder > half or (remainder == half and quotient & 1):
        quotient += 1
    if quotient >= 1 << (4 * precision):
        lead += 1
        quotient = 0
    text = format(quotient, "x").rjust(precision, "0") if precision else ""
    return lead, text


def _format_hex_float(spec: _Spec, value: float) -> str:
    negative = math.copysign(1.0, value) < 0
    sign = _sign(negative, spec.flags)
    upper = spec.conv == "A"
    if not math.isfinite(value):
        text = "nan" if math.isnan(value) else "inf"
        return _pad(sign, text.upper() if upper else text, spec, False)

    mantissa, exponent = float.hex(abs(value))[2:].split("p")
    lead_text, frac = mantissa.split(".")
    lead = int(lead_text, 16)
    if spec.precision is None:
        frac = frac.rstrip("0")
    else:
        lead, frac = _round_hex_fraction(lead, frac, spec.precision)
    digits = format(lead, "x")
    if frac or "#" in spec.flags:
        digits += "." + frac
    digits += f"p{int(exponent):+d}"
    prefix = "0x"
    if upper:
        digits = digits.upper()
        prefix = "0X"
    return _pad(sign + prefix, digits, spec, True)


def _format_float(spec: _Spec, arg: object) -> str:
    if isinstance(arg, bool) or not isinstance(arg, (int, float)):
        raise TypeError(f"%{spec.conv} expects a number, got {type(arg).__name__}")
    value = float(arg)
    if spec.conv in "aA":
        return _format_hex_float(spec, value)
    directive = "%" + spec.flags
    if spec.width is not None:
        directive += str(spec.width)
    if spec.precision is not None:
        directive += f".{spec.precision}"
    return (directive + spec.conv) % value


def _render(spec: _Spec, arg: object) -> bytes:
    if spec.conv in _INT_CONVS:
        text = _format_int(spec, arg)
    else:
        text = _format_float(spec, arg)
    return text.encode("ascii")


def _pack(argv: Iterable[bytes]) -> bytes:
    items = list(argv)
    parts = [b"*%d\r\n" % len(items)]
    for item in items:
        parts += [b"$%d\r\n" % len(item), item, b"\r\n"]
    return b"".join(parts)


def format_command(fmt: str | bytes, *args: object) -> bytes:
    """Format a command from a template into its wire form.

    Words are split on spaces. ``%s`` takes a text or bytes argument,
    ``%b`` a bytes-like argument that may hold any byte, ``%%`` gives a
    literal percent sign, and the integer and floating-point directives
    of printf (with flags, width, precision and hh/h/l/ll lengths) take a
    number.
    """
    data = _as_bytes(fmt)
    pending: Iterator[object] = iter(args)

    def next_arg() -> object:
        try:
            return next(pending)
        except StopIteration:
            raise CommandFormatError("not enough arguments for format") from None

    argv: list[bytes] = []
    current = bytearray()
    touched = False
    n = len(data)
    i = 0
    while i < n:
        c = data[i]
        if c != ord("%") or i + 1 >= n:
            if c == ord(" "):
                if touched:
                    argv.append(bytes(current))
                    current = bytearray()
                    touched = False
            else:
                current.append(c)
                touched = True
            i += 1
            continue

        directive = data[i + 1]
        if directive == ord("s"):
            current += _as_bytes(next_arg())  # type: ignore[arg-type]
            i += 2
        elif directive == ord("b"):
            current += _as_bytes(next_arg())  # type: ignore[arg-type]
            i += 2
        elif directive == ord("%"):
            current += b"%"
            i += 2
        else:
            spec, end = _parse_spec(data, i)
            arg = next_arg()
            if end + 1 - i < _SPEC_LIMIT:
                current += _render(spec, arg)
                i = end + 1
            else:
                # Directives this long are skipped; their text after the
                # first character is taken literally.
                i += 2
        touched = True

    if touched:
        argv.append(bytes(current))
    return _pack(argv)


def format_command_argv(argv: Iterable[str | bytes]) -> bytes:
    """Format a command whose arguments are given one by one."""
    return _pack(_as_bytes(arg) for arg in argv)