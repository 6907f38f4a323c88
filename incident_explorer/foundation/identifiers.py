"""Identifier generation for records and published documents."""

from __future__ import annotations

from uuid import uuid4


def new_document_id() -> str:
    """Random hex id for a published rendering document."""
    return uuid4().hex


def synthetic_feature_id(index: int) -> str:
    """Fallback id for a raw feature that carries none, from its input position."""
    return f"feature-{index}"
