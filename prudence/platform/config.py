"""Helpers for reading loosely typed configuration values."""

from __future__ import annotations

import logging
from typing import Any

log = logging.getLogger("prudence.platform")

# NCSA request-log filename; "stdout" and "stderr" are special values.
ncsa_filename: str = ""


def as_config_list(value: Any) -> list:
    """Treat a list as is and a single mapping as a one-item list."""
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


def as_string_list(value: Any) -> list[str]:
    """Treat a list as its strings and a single string as a one-item list."""
    if isinstance(value, list):
        return to_string_list(value)
    if isinstance(value, str):
        return [value]
    return []


def to_string_list(values: list) -> list[str]:
    """Keep only the string items of a list."""
    return [value for value in values if isinstance(value, str)]