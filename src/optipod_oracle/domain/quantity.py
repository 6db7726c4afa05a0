"""Dimension-typed resource quantities.

CPU amounts are held in millicores and memory amounts in bytes, both as exact
``Fraction`` values, so that parse/format round-trips are lossless and comparisons never
suffer from float rounding. CPU and memory are separate types: ordering a CPU quantity
against a memory quantity raises ``TypeError``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from fractions import Fraction
from typing import ClassVar, Final, Literal, TypeVar

from optipod_oracle.domain.errors import ParseError


class ResourceDimension(StrEnum):
    CPU = "cpu"
    MEMORY = "memory"


_LITERAL_RE: Final = re.compile(r"(?P<int>[0-9]*)(?:\.(?P<frac>[0-9]*))?(?P<suffix>[A-Za-z]*)")
# Applied to the literal and to its canonical form, so canonical text always reparses.
MAX_QUANTITY_DIGITS: Final[int] = 128

_CPU_SUFFIXES: Final[dict[str, int]] = {"": 1000, "m": 1}

_BINARY_SUFFIXES: Final[tuple[tuple[str, int], ...]] = (
    ("Ti", 1024**4),
    ("Gi", 1024**3),
    ("Mi", 1024**2),
    ("Ki", 1024),
)
_DECIMAL_SUFFIXES: Final[tuple[tuple[str, int], ...]] = (
    ("T", 1000**4),
    ("G", 1000**3),
    ("M", 1000**2),
    ("K", 1000),
)
_MEMORY_SUFFIXES: Final[dict[str, int]] = {
    "": 1,
    **dict(_BINARY_SUFFIXES),
    **dict(_DECIMAL_SUFFIXES),
}


def _has_terminating_decimal(value: Fraction) -> bool:
    denominator = value.denominator
    for prime in (2, 5):
        while denominator % prime == 0:
            denominator //= prime
    return denominator == 1


def _format_decimal(value: Fraction) -> str:
    if value.denominator == 1:
        return str(value.numerator)
    digits = 0
    while (10**digits) % value.denominator:
        digits += 1
    scaled = value.numerator * (10**digits) // value.denominator
    whole, frac = divmod(scaled, 10**digits)
    return f"{whole}.{str(frac).rjust(digits, '0').rstrip('0')}"


@dataclass(frozen=True, slots=True, repr=False)
class _Quantity:
    value: Fraction

    dimension: ClassVar[ResourceDimension]
    unit: ClassVar[str]

    def __post_init__(self) -> None:
        raw = self.value
        if isinstance(raw, bool) or not isinstance(raw, (int, Fraction)):
            raise TypeError(
                f"{type(self).__name__}.value must be int or Fraction, got {type(raw).__name__}"
            )
        value = Fraction(raw)
        if value < 0:
            raise ValueError(f"{type(self).__name__}.value must be non-negative")
        if not _has_terminating_decimal(value):
            raise ValueError(f"{type(self).__name__}.value must be a terminating decimal")
        object.__setattr__(self, "value", value)

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    def _coerce_other(self, other: object) -> Fraction | None:
        if other.__class__ is self.__class__:
            return other.value  # type: ignore[attr-defined]
        return None

    def __lt__(self, other: object) -> bool:
        theirs = self._coerce_other(other)
        if theirs is None:
            return NotImplemented
        return self.value < theirs

    def __le__(self, other: object) -> bool:
        theirs = self._coerce_other(other)
        if theirs is None:
            return NotImplemented
        return self.value <= theirs

    def __gt__(self, other: object) -> bool:
        theirs = self._coerce_other(other)
        if theirs is None:
            return NotImplemented
        return self.value > theirs

    def __ge__(self, other: object) -> bool:
        theirs = self._coerce_other(other)
        if theirs is None:
            return NotImplemented
        return self.value >= theirs

    def __str__(self) -> str:
        return format_quantity(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({format_quantity(self)!r})"


class CpuQuantity(_Quantity):
    """CPU amount in millicores."""

    __slots__ = ()
    dimension = ResourceDimension.CPU
    unit = "millicores"

    @property
    def millicores(self) -> Fraction:
        return self.value


class MemoryQuantity(_Quantity):
    """Memory amount in bytes."""

    __slots__ = ()
    dimension = ResourceDimension.MEMORY
    unit = "bytes"

    @property
    def bytes(self) -> Fraction:
        return self.value


Quantity = CpuQuantity | MemoryQuantity
Q = TypeVar("Q", CpuQuantity, MemoryQuantity)


def _parse(text: object, suffixes: dict[str, int], dimension: ResourceDimension) -> Fraction:
    if not isinstance(text, str):
        raise ParseError(text, f"expected string, got {type(text).__name__}")
    stripped = text.strip()
    if not stripped:
        raise ParseError(text, "empty quantity")
    if stripped[0] in "+-":
        raise ParseError(text, "signed quantities are not allowed")
    match = _LITERAL_RE.fullmatch(stripped)
    if match is None:
        raise ParseError(text, "not a decimal literal")
    int_part = match.group("int")
    frac_part = match.group("frac") or ""
    suffix = match.group("suffix")
    if not int_part and not frac_part:
        raise ParseError(text, "missing numeric part")
    if suffix not in suffixes:
        raise ParseError(text, f"unrecognized {dimension.value} suffix {suffix!r}")
    if len(int_part) + len(frac_part) > MAX_QUANTITY_DIGITS:
        raise ParseError(text, f"literal longer than {MAX_QUANTITY_DIGITS} digits")
    magnitude = Fraction(int(int_part or "0"))
    if frac_part:
        magnitude += Fraction(int(frac_part), 10 ** len(frac_part))
    return magnitude * suffixes[suffix]


def _within_digit_limit(quantity: Q, text: str) -> Q:
    canonical = format_quantity(quantity)
    if sum(char.isdigit() for char in canonical) > MAX_QUANTITY_DIGITS:
        raise ParseError(text, f"value needs more than {MAX_QUANTITY_DIGITS} digits")
    return quantity


def parse_cpu(text: str) -> CpuQuantity:
    """Parse a CPU literal such as ``"500m"`` or ``"2"`` (cores)."""

    quantity = CpuQuantity(_parse(text, _CPU_SUFFIXES, ResourceDimension.CPU))
    return _within_digit_limit(quantity, text)


def parse_memory(text: str) -> MemoryQuantity:
    """Parse a memory literal such as ``"128Mi"``, ``"1G"`` or ``"4096"`` (bytes)."""

    quantity = MemoryQuantity(_parse(text, _MEMORY_SUFFIXES, ResourceDimension.MEMORY))
    return _within_digit_limit(quantity, text)


def parse_quantity(text: str, dimension: ResourceDimension | str) -> Quantity:
    resolved = ResourceDimension(dimension)
    if resolved is ResourceDimension.CPU:
        return parse_cpu(text)
    return parse_memory(text)


def format_quantity(quantity: Quantity) -> str:
    """Canonical text for ``quantity``; ``parse`` of the result yields an equal value."""

    value = quantity.value
    if isinstance(quantity, CpuQuantity):
        return f"{_format_decimal(value)}m"
    if value == 0:
        return "0"
    if value.denominator == 1:
        whole = value.numerator
        for suffixes in (_BINARY_SUFFIXES, _DECIMAL_SUFFIXES):
            for suffix, factor in suffixes:
                if whole % factor == 0:
                    return f"{whole // factor}{suffix}"
    return _format_decimal(value)


def compare(a: Quantity, b: Quantity) -> Literal[-1, 0, 1]:
    if a.__class__ is not b.__class__:
        raise TypeError(
            f"cannot compare {a.dimension.value} quantity with {b.dimension.value} quantity"
        )
    if a.value < b.value:
        return -1
    if a.value > b.value:
        return 1
    return 0


def cpu(value: str | CpuQuantity) -> CpuQuantity:
    if isinstance(value, CpuQuantity):
        return value
    if isinstance(value, MemoryQuantity):
        raise TypeError("expected a CPU quantity, got a memory quantity")
    return parse_cpu(value)


def memory(value: str | MemoryQuantity) -> MemoryQuantity:
    if isinstance(value, MemoryQuantity):
        return value
    if isinstance(value, CpuQuantity):
        raise TypeError("expected a memory quantity, got a CPU quantity")
    return parse_memory(value)


__all__ = [
    "MAX_QUANTITY_DIGITS",
    "CpuQuantity",
    "MemoryQuantity",
    "Q",
    "Quantity",
    "ResourceDimension",
    "compare",
    "cpu",
    "format_quantity",
    "memory",
    "parse_cpu",
    "parse_memory",
    "parse_quantity",
]
