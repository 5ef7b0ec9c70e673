"""Fixed-width field and record layouts."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from statutory_payroll.errors import EncodingFieldOverflow


class FieldKind(str, Enum):
    TEXT = "text"
    NUMERIC = "numeric"
    FILLER = "filler"


def normalize_text(value: Any) -> str:
    """Upper-case ASCII with accents stripped (``Peña`` -> ``PENA``)."""
    decomposed = unicodedata.normalize("NFKD", str(value))
    ascii_only = decomposed.encode("ascii", "ignore").decode("ascii")
    printable = "".join(ch if ch.isprintable() else " " for ch in ascii_only)
    return " ".join(printable.upper().split())


ASCII_DIGITS = frozenset("0123456789")


def normalize_numeric(value: Any) -> str:
    """ASCII digits only.

    Compatibility forms such as full-width digits fold to ASCII (``１２`` -> ``12``);
    any other character, digits of other scripts included, is dropped.
    """
    folded = unicodedata.normalize("NFKD", str(value))
    return "".join(ch for ch in folded if ch in ASCII_DIGITS)


@dataclass(frozen=True)
class FieldSpec:
    """One position-addressed field.

    Text is space-padded right and truncated keeping the leading characters;
    numeric is zero-padded left and truncated keeping the trailing digits.
    """

    name: str
    width: int
    kind: FieldKind = FieldKind.TEXT

    def render(self, value: Any) -> tuple[str, bool]:
        """Return ``(rendered, overflowed)``."""
        if self.kind == FieldKind.FILLER:
            return " " * self.width, False

        if self.kind == FieldKind.NUMERIC:
            digits = normalize_numeric("" if value is None else value)
            if len(digits) > self.width:
                return digits[-self.width:], True
            return digits.rjust(self.width, "0"), False

        text = normalize_text("" if value is None else value)
        if len(text) > self.width:
            return text[: self.width], True
        return text.ljust(self.width), False


class RecordLayout:
    """Ordered fields of one record type; the widths must add up to the record length."""

    def __init__(self, record_type: str, fields: list[FieldSpec], record_length: int):
        total = sum(f.width for f in fields)
        if total != record_length:
            raise ValueError(
                f"Layout {record_type} is {total} characters wide, expected {record_length}"
            )
        self.record_type = record_type
        self.fields = fields
        self.record_length = record_length

    def field(self, name: str) -> FieldSpec:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    @property
    def positions(self) -> dict[str, tuple[int, int]]:
        """1-based ``(start, end)`` position of each named field."""
        result = {}
        start = 1
        for f in self.fields:
            result[f.name] = (start, start + f.width - 1)
            start += f.width
        return result

    def render(self, values: Mapping[str, Any]) -> tuple[str, list[EncodingFieldOverflow]]:
        parts: list[str] = []
        overflows: list[EncodingFieldOverflow] = []
        for f in self.fields:
            value = self.record_type if f.name == "record_type" else values.get(f.name)
            rendered, overflowed = f.render(value)
            if overflowed:
                overflows.append(EncodingFieldOverflow(self.record_type, f.name, f.width, str(value)))
            parts.append(rendered)
        return "".join(parts), overflows
