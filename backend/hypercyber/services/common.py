"""Helpers shared by the store services."""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from ..errors import BadRequest


def patch_fields(payload: BaseModel, rename: dict[str, str] | None = None) -> dict[str, Any]:
    """Fields to apply for a partial update.

    A field missing from the request body and a field sent as ``null`` are
    treated alike: the stored value is kept.
    """

    rename = rename or {}
    return {
        rename.get(key, key): value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None
    }


def apply_patch(row: Any, fields: dict[str, Any]) -> None:
    for key, value in fields.items():
        setattr(row, key, value)


def check_allowed(field: str, value: str, allowed: Iterable[str]) -> None:
    allowed = tuple(allowed)
    if value not in allowed:
        raise BadRequest(f"Invalid {field} '{value}'; expected one of: {', '.join(allowed)}")
