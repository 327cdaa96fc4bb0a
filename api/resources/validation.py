"""
Field validation for entity input.

Pure functions: no I/O, no mutation of the input. Type checks (is the value a
string at all?) happen in the handler before anything reaches this module.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from .descriptors import EMAIL, TRIM_CHARS, EntityDescriptor, FieldSpec

# local@domain.tld: no whitespace, exactly one "@", a "." somewhere after it.
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_DIGITS_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class FieldViolation:
    field: str
    reason: str


def is_valid_email(email: str) -> bool:
    return _EMAIL_RE.fullmatch(email) is not None


def parse_positive_int(raw: str | None) -> int | None:
    """
    Parse a plain base-10 integer >= 1, or return None.

    Signs, decimals, whitespace and trailing garbage are all rejected.
    """
    if raw is None or not _DIGITS_RE.fullmatch(raw):
        return None
    value = int(raw)
    return value if value >= 1 else None


def validate_field(spec: FieldSpec, value: str) -> FieldViolation | None:
    trimmed = value.strip(TRIM_CHARS)
    if not trimmed:
        return FieldViolation(spec.name, f"{spec.label} cannot be empty")
    if len(trimmed) > spec.max_length:
        return FieldViolation(spec.name, f"{spec.label} cannot exceed {spec.max_length} characters")
    if spec.kind == EMAIL and not is_valid_email(trimmed):
        return FieldViolation(spec.name, "Invalid email format")
    return None


def validate_fields(descriptor: EntityDescriptor, fields: Mapping[str, str]) -> FieldViolation | None:
    """
    Validate the descriptor's fields that are present in `fields`.

    Absent fields are skipped so the same check serves partial updates.
    Returns the first violation in descriptor field order, or None.
    """
    for spec in descriptor.fields:
        if spec.name not in fields:
            continue
        violation = validate_field(spec, fields[spec.name])
        if violation is not None:
            return violation
    return None


def normalize_fields(descriptor: EntityDescriptor, fields: Mapping[str, str]) -> dict[str, str]:
    """
    Return the storable form of the present fields (trimmed, emails lower-cased).
    """
    return {
        spec.name: spec.normalize(fields[spec.name])
        for spec in descriptor.fields
        if spec.name in fields
    }
