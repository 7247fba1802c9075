"""ID helpers."""

from __future__ import annotations

import uuid

_POINT_NAMESPACE = uuid.UUID("6f1c9a52-3f55-4e8e-9a59-2c1f7f0f5b7e")


def new_point_id() -> str:
    """Generate a random UUID4 string usable as a vector point id."""
    return str(uuid.uuid4())


def stable_point_id(*parts: object) -> str:
    """Deterministic UUID5 derived from the given parts."""
    key = "\x1f".join(str(part) for part in parts)
    return str(uuid.uuid5(_POINT_NAMESPACE, key))
