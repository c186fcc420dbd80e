"""
Rebuild a tree from flat, parent-linked payloads.

Architecture:
    ::

        [{id:1}, {id:2, parentId:1}, {id:3, parentId:1}, {id:4, parentId:2}]

            1. index by identity, collect roots (no parentId)
            2. sort by parentId (roots first)
            3. walk past the roots; when parentId changes, look the parent
               up once and give it a fresh ``children`` list
            4. childless non-leaf payloads get ``loaded = True``
            5. wrap each root with the record factory

        → [Record(1, children=[Record(2, children=[Record(4)]), Record(3)])]

Sibling order is whatever the sort leaves; no order among siblings is
promised.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from recordproxy.core.logging import get_logger
from recordproxy.data.model import Record

logger = get_logger(__name__)

Payload = dict[str, Any]


def _parent_sort_key(payload: Payload) -> tuple[int, Any, str]:
    parent_id = payload.get("parentId") or 0
    if not parent_id:
        return (0, 0, "")
    # Numbers before strings; mixed id types must not be compared directly.
    if isinstance(parent_id, str):
        return (2, 0, parent_id)
    return (1, parent_id, "")


def attach_children(payloads: list[Payload], key_path: str) -> list[Payload]:
    """Nest ``payloads`` under their parents in place and return the roots."""
    by_id: dict[Any, Payload] = {}
    roots: list[Payload] = []

    for payload in payloads:
        by_id[payload.get(key_path)] = payload
        if not payload.get("parentId"):
            roots.append(payload)

    ordered = sorted(payloads, key=_parent_sort_key)

    parent: Payload | None = None
    children: list[Payload] = []

    for payload in ordered[len(roots):]:
        parent_id = payload["parentId"]

        if parent is None or parent.get(key_path) != parent_id:
            parent = by_id.get(parent_id)
            if parent is None:
                logger.warning(
                    "tree_orphan_skipped",
                    record_id=payload.get(key_path),
                    parent_id=parent_id,
                )
                continue
            parent["children"] = children = []

        children.append(payload)

    for payload in payloads:
        if "children" not in payload and not payload.get("leaf"):
            # Known to be empty, so the caller won't try to lazy-load it.
            payload["loaded"] = True

    return roots


def build_tree(
    payloads: list[Payload],
    key_path: str,
    factory: Callable[[Payload], Record],
) -> list[Record]:
    """Root-level records with nested children built from flat ``payloads``."""
    return [factory(root) for root in attach_children(payloads, key_path)]


__all__ = ["attach_children", "build_tree"]
