"""Flat vs. hierarchical shape of a proxy's data."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any


class Shape(str, Enum):
    """Whether records form an unstructured set or a parent-linked tree.

    UNKNOWN is the only state that may change; FLAT and HIERARCHICAL are
    final for the lifetime of a proxy.
    """

    UNKNOWN = "unknown"
    FLAT = "flat"
    HIERARCHICAL = "hierarchical"

    @classmethod
    def from_flag(cls, is_hierarchical: bool | None) -> Shape:
        if is_hierarchical is None:
            return cls.UNKNOWN
        return cls.HIERARCHICAL if is_hierarchical else cls.FLAT


def is_tree_payload(payload: Mapping[str, Any]) -> bool:
    """A stored payload belongs to a tree when it carries node metadata."""
    return "leaf" in payload or "parentId" in payload


def detect_shape(payloads: Iterable[Mapping[str, Any]]) -> Shape:
    """Shape implied by stored payloads; UNKNOWN when there are none."""
    seen = False
    for payload in payloads:
        if is_tree_payload(payload):
            return Shape.HIERARCHICAL
        seen = True
    return Shape.FLAT if seen else Shape.UNKNOWN


__all__ = ["Shape", "detect_shape", "is_tree_payload"]
