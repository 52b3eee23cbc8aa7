"""Persisted show/hide preferences of table columns.

The preferences of a table are a map from column key to a boolean, stored
under the identifier of the table. The first time a table is seen all its
columns are shown and that default map is stored right away. Columns added
to a table later are merged in as visible without touching the choices the
user already made.

Storage goes through a small backend interface so that any key-value store
can hold the maps. Storage failures never reach the caller: the maps kept in
memory remain the reference for the rest of the session.
"""

import logging
from typing import Dict, List, Mapping, Optional, Protocol

from attrs import define, field
from pyrsistent import thaw

from tabview.column import Column
from tabview.constants import ID_COLUMN_KEY
from tabview.registry import ColumnRegistry
from tabview.settings import LocalSettings

logger = logging.getLogger(__name__)

VisibilityMap = Dict[str, bool]


class VisibilityBackend(Protocol):
    """The storage of column visibility maps."""

    def read(self, table_id: str) -> Optional[Mapping[str, bool]]:
        """Get the stored map of a table; None if nothing was stored."""

    def write(self, table_id: str, mapping: Mapping[str, bool]) -> None:
        """Replace the stored map of a table."""


@define
class MemoryVisibilityBackend:
    """Keeps the maps in a dictionary; nothing survives the process."""

    data: Dict[str, VisibilityMap] = field(factory=dict)

    def read(self, table_id: str) -> Optional[VisibilityMap]:
        stored = self.data.get(table_id)
        return None if stored is None else dict(stored)

    def write(self, table_id: str, mapping: Mapping[str, bool]) -> None:
        self.data[table_id] = dict(mapping)


@define
class SettingsVisibilityBackend:
    """Keeps the maps in the settings file of the application.

    Attributes:
        settings: The settings where the maps are stored.
        prefix: The settings path under which each table has its map.
    """

    settings: LocalSettings
    prefix: str = field(default="tabview.columns")

    def setting_key(self, table_id: str) -> str:
        # Dots separate path components in settings keys.
        return f"{self.prefix}.{table_id.replace('.', '_')}"

    def read(self, table_id: str) -> Optional[VisibilityMap]:
        stored = self.settings.get_setting(self.setting_key(table_id))
        if stored is None:
            return None
        stored = thaw(stored)
        if not isinstance(stored, dict):
            logger.warning(
                "Ignoring malformed column visibility of %s: %r",
                table_id,
                stored,
            )
            return None
        return stored

    def write(self, table_id: str, mapping: Mapping[str, bool]) -> None:
        self.settings.set_setting(self.setting_key(table_id), dict(mapping))


def default_visibility(
    registry: Optional[ColumnRegistry], id_column: bool = False
) -> VisibilityMap:
    """The map of a table that was never customized."""
    result: VisibilityMap = {}
    if id_column:
        result[ID_COLUMN_KEY] = True
    if registry is not None:
        for column in registry:
            result[column.key] = column.visible
    return result


@define(eq=False)
class VisibilityStore:
    """Column visibility for any number of tables.

    Attributes:
        backend: Where the maps are persisted.
    """

    backend: VisibilityBackend = field(factory=MemoryVisibilityBackend)
    _maps: Dict[str, VisibilityMap] = field(factory=dict, init=False)

    def get(
        self,
        table_id: str,
        registry: Optional[ColumnRegistry] = None,
        id_column: bool = False,
    ) -> VisibilityMap:
        """Get the visibility map of a table.

        Args:
            table_id: The identifier of the table.
            registry: The columns of the table. Those missing from the
                stored map are added with their default visibility.
            id_column: Whether the synthetic identity column is part of the
                table.

        Returns:
            A copy of the map.
        """
        current = self._maps.get(table_id)
        changed = False
        if current is None:
            current = self._read(table_id)
            if current is None:
                logger.debug("No stored column visibility for %s", table_id)
                current = {}
                changed = True

        for key, visible in default_visibility(registry, id_column).items():
            if key not in current:
                current[key] = visible
                changed = True

        self._maps[table_id] = current
        if changed:
            self._write(table_id, current)
        return dict(current)

    def is_visible(self, table_id: str, key: str) -> bool:
        """Tell if a column is shown; unknown columns are."""
        return self._ensure(table_id).get(key, True)

    def set(self, table_id: str, key: str, visible: bool) -> None:
        """Show or hide a column and persist the change."""
        current = self._ensure(table_id)
        visible = bool(visible)
        if current.get(key) is visible:
            return
        current[key] = visible
        self._write(table_id, current)

    def toggle(self, table_id: str, key: str) -> bool:
        """Flip the visibility of a column.

        Returns:
            The new visibility of the column.
        """
        visible = not self.is_visible(table_id, key)
        self.set(table_id, key, visible)
        return visible

    def reset(
        self,
        table_id: str,
        registry: Optional[ColumnRegistry] = None,
        id_column: bool = False,
    ) -> VisibilityMap:
        """Forget the choices of the user and show the default columns."""
        current = default_visibility(registry, id_column)
        self._maps[table_id] = current
        self._write(table_id, current)
        return dict(current)

    def visible_columns(
        self, table_id: str, registry: ColumnRegistry
    ) -> List[Column]:
        """The columns of the registry that are shown, in registry order."""
        current = self.get(table_id, registry)
        return [c for c in registry if current.get(c.key, True)]

    def _ensure(self, table_id: str) -> VisibilityMap:
        current = self._maps.get(table_id)
        if current is None:
            self.get(table_id)
            current = self._maps[table_id]
        return current

    def _read(self, table_id: str) -> Optional[VisibilityMap]:
        try:
            stored = self.backend.read(table_id)
        except Exception:
            logger.error(
                "Failed to read column visibility of %s; using defaults",
                table_id,
                exc_info=True,
            )
            return None
        if stored is None:
            return None
        return {str(k): bool(v) for k, v in stored.items()}

    def _write(self, table_id: str, current: VisibilityMap) -> None:
        try:
            self.backend.write(table_id, dict(current))
        except Exception:
            logger.error(
                "Failed to save column visibility of %s",
                table_id,
                exc_info=True,
            )
