"""
Record representation used by the proxy's callers.

A :class:`Model` declares fields (with a per-field ``persist`` flag) and the
identity field. A :class:`Record` wraps one raw payload. Tree models add
node fields and parent/child links so records can form a hierarchy.

Examples:
    >>> Search = Model("Search", ["id", "query"])
    >>> search = Search.create({"query": "Ext JS"})
    >>> search.phantom
    True
    >>> search.get("query")
    'Ext JS'

    >>> Folder = Model("Folder", ["id", "name"], tree=True)
    >>> root = Folder.create_root()
    >>> docs = root.append_child(Folder.create({"name": "docs"}))
    >>> docs.depth
    1
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

ROOT_ID = "root"


@dataclass(frozen=True)
class Field:
    """A model field.

    Attributes:
        name: Field name in the raw payload.
        persist: Whether the proxy writes this field to storage.
        default: Value applied when the payload lacks the field.
    """

    name: str
    persist: bool = True
    default: Any = None


# Fields every tree node carries in addition to the declared ones.
NODE_FIELDS: tuple[Field, ...] = (
    Field("parentId"),
    Field("leaf", default=False),
    Field("depth", persist=False, default=0),
    Field("loaded", persist=False, default=False),
)


class Model:
    """Field layout and identity of a record type."""

    def __init__(
        self,
        name: str,
        fields: Iterable[Field | str] = (),
        *,
        id_property: str = "id",
        tree: bool = False,
    ):
        declared = [f if isinstance(f, Field) else Field(f) for f in fields]
        names = {f.name for f in declared}
        if id_property not in names:
            declared.insert(0, Field(id_property))
        if tree:
            declared.extend(f for f in NODE_FIELDS if f.name not in names)

        self.name = name
        self.id_property = id_property
        self.is_tree = tree
        self.fields: tuple[Field, ...] = tuple(declared)

    def get_fields(self) -> tuple[Field, ...]:
        return self.fields

    def persistent_fields(self) -> list[Field]:
        return [f for f in self.fields if f.persist]

    def create(self, data: dict[str, Any] | None = None) -> Record:
        """Wrap ``data`` in a Record. The record takes ownership of the dict."""
        return Record(self, data)

    def create_root(self) -> Record:
        """Create the implicit root node of a tree (depth 0)."""
        if not self.is_tree:
            raise TypeError(f"Model {self.name!r} is not a tree model")
        return Record(self, {self.id_property: ROOT_ID, "loaded": True})

    def __repr__(self) -> str:
        return f"Model({self.name!r}, tree={self.is_tree})"


class Record:
    """One record of a :class:`Model`.

    The record uses the dict it is given as its own data object and applies
    field defaults into it, so callers must not share that dict with
    anything else (the proxy copies cached payloads before wrapping them).
    A nested ``children`` list in the payload becomes ``child_nodes``.
    """

    def __init__(self, model: Model, data: dict[str, Any] | None = None):
        self.model = model
        self.data: dict[str, Any] = data if data is not None else {}
        children = self.data.pop("children", None)

        for f in model.fields:
            self.data.setdefault(f.name, f.default)

        self.phantom = self.data.get(model.id_property) is None
        self.modified: dict[str, Any] = {}
        self.parent_node: Record | None = None
        self.child_nodes: list[Record] | None = [] if model.is_tree else None

        for child in children or ():
            self.append_child(child if isinstance(child, Record) else model.create(child))

    # ------------------------------------------------------------------ #
    # Field access
    # ------------------------------------------------------------------ #

    def get(self, name: str) -> Any:
        return self.data.get(name)

    def get_id(self) -> Any:
        return self.data.get(self.model.id_property)

    def set(self, name: str, value: Any, *, commit: bool = False) -> None:
        """Set a field value.

        With ``commit=True`` the change is recorded as clean: it does not
        make the record dirty and clears any pending change to that field.
        Setting the identity of a tree node rewrites ``parentId`` on its
        children (those changes are left dirty).
        """
        old = self.data.get(name)
        if commit:
            self.modified.pop(name, None)
        elif old != value and name not in self.modified:
            self.modified[name] = old
        self.data[name] = value

        if name == self.model.id_property and self.child_nodes:
            # Children link to the new identity.
            for child in self.child_nodes:
                child.set("parentId", value)

    def get_data(self) -> dict[str, Any]:
        """Shallow copy of the field values."""
        return dict(self.data)

    @property
    def dirty(self) -> bool:
        return bool(self.modified)

    def commit(self) -> None:
        """Accept all pending changes."""
        self.modified.clear()
        self.phantom = False

    # ------------------------------------------------------------------ #
    # Tree node interface
    # ------------------------------------------------------------------ #

    @property
    def is_node(self) -> bool:
        return self.model.is_tree

    @property
    def depth(self) -> int:
        return self.data.get("depth") or 0

    def append_child(self, node: Record) -> Record:
        """Attach ``node`` as the last child of this node."""
        if self.child_nodes is None:
            raise TypeError(f"Model {self.model.name!r} is not a tree model")
        if node.parent_node is not None:
            node.parent_node.child_nodes.remove(node)

        node.parent_node = self
        node.data["parentId"] = self.get_id()
        self.child_nodes.append(node)
        node._set_depth(self.depth + 1)
        return node

    def _set_depth(self, depth: int) -> None:
        self.data["depth"] = depth
        for child in self.child_nodes or ():
            child._set_depth(depth + 1)

    def __repr__(self) -> str:
        return f"<{self.model.name} {self.model.id_property}={self.get_id()!r}>"


__all__ = ["Field", "Model", "NODE_FIELDS", "ROOT_ID", "Record"]
