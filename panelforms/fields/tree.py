"""
panelforms Field Tree — Index over a component's nested field definitions.

Fields do not point at their parents. The tree numbers every node in
depth-first (pre-order) position and keeps a position → parent-position map,
so ancestor walks never create reference cycles between field objects.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Sequence

from panelforms.engine.errors import PanelFormsFieldError
from panelforms.fields.components import FieldDef, FileFieldDef, InputFieldDef, TabDef

logger = logging.getLogger("panelforms.fields.tree")


class FieldTree:
    """
    Depth-first index of a field hierarchy.

    Usage:
        tree = FieldTree(component.fields())
        for field in tree.inputs(): ...
        tree.focus_target(tree.get("avatar"))  → "profile.media"
    """

    def __init__(self, fields: Sequence[FieldDef]):
        self._roots: List[FieldDef] = list(fields)
        self._nodes: List[FieldDef] = []
        self._parents: Dict[int, Optional[int]] = {}
        self._positions: Dict[int, int] = {}  # id(field) → position
        self._by_name: Dict[str, int] = {}

        for field in self._roots:
            self._index(field, None)

    def _index(self, field: FieldDef, parent: Optional[int]) -> None:
        if id(field) in self._positions:
            raise PanelFormsFieldError(
                f"Field {field!r} appears more than once in the tree",
            )

        position = len(self._nodes)
        self._nodes.append(field)
        self._parents[position] = parent
        self._positions[id(field)] = position

        if isinstance(field, InputFieldDef):
            if not field.name:
                raise PanelFormsFieldError("Input field declared without a name")
            if field.name in self._by_name:
                raise PanelFormsFieldError(
                    f"Duplicate field name '{field.name}'",
                    field=field.name,
                )
            self._by_name[field.name] = position

        for child in field.child_fields():
            self._index(child, position)

    # -------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------

    @property
    def roots(self) -> List[FieldDef]:
        return list(self._roots)

    def flatten(self) -> List[FieldDef]:
        """All nodes, containers before their descendants."""
        return list(self._nodes)

    def inputs(self) -> List[InputFieldDef]:
        return [f for f in self._nodes if isinstance(f, InputFieldDef)]

    def file_fields(self) -> List[FileFieldDef]:
        return [f for f in self._nodes if isinstance(f, FileFieldDef)]

    def get(self, name: str) -> Optional[InputFieldDef]:
        position = self._by_name.get(name)
        return self._nodes[position] if position is not None else None  # type: ignore[return-value]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[FieldDef]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    # -------------------------------------------------------------------
    # Parent index
    # -------------------------------------------------------------------

    def _position_of(self, field: FieldDef) -> int:
        position = self._positions.get(id(field))
        if position is None:
            raise PanelFormsFieldError(f"Field {field!r} is not part of this tree")
        return position

    def parent_of(self, field: FieldDef) -> Optional[FieldDef]:
        parent = self._parents[self._position_of(field)]
        return self._nodes[parent] if parent is not None else None

    def ancestors(self, field: FieldDef) -> Iterator[FieldDef]:
        """Enclosing containers, nearest first."""
        parent = self._parents[self._position_of(field)]
        while parent is not None:
            yield self._nodes[parent]
            parent = self._parents[parent]

    def enclosing_tab(self, field: FieldDef) -> Optional[TabDef]:
        for ancestor in self.ancestors(field):
            if isinstance(ancestor, TabDef):
                return ancestor
        return None

    def focus_target(self, field: FieldDef) -> Optional[str]:
        """
        ``<tab container id>.<tab id>`` for the nearest Tab above ``field``,
        or None when the field is not inside any tab.
        """
        tab = self.enclosing_tab(field)
        if tab is None:
            return None
        container = self.parent_of(tab)
        if container is None:
            # Tab used without a Tabs container
            return tab.id
        return f"{getattr(container, 'id', '')}.{tab.id}"
