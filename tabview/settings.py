import logging
import os
import shutil
import threading
from typing import Any, List, Optional

import yaml
from appdirs import user_config_dir
from attrs import define, field
from pydantic import BaseModel, field_validator, model_validator
from pyrsistent import freeze, pmap, thaw
from pyrsistent.typing import PMap

from tabview.constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_TABLE_ID,
    ID_COLUMN_TITLE,
    PAGE_SIZE_OPTIONS,
)
from tabview.errors import PersistenceError

APP_NAME = "tabview"
logger = logging.getLogger(__name__)


@define
class LocalSettings:
    """Settings stored in a YAML file in the user's configuration directory.

    Keys are dot-separated paths into nested mappings. The in-memory copy
    is an immutable map, replaced on every change.

    Attributes:
        path: The settings file. Defaults to `settings.yaml` in the user
            configuration directory of the application.
        read_only: If set, changes stay in memory and are never written.
        settings: The current settings.
    """

    path: Optional[str] = field(default=None)
    read_only: bool = field(default=False)
    settings: PMap[str, Any] = field(factory=pmap)
    _save_lock: threading.Lock = field(factory=threading.Lock, init=False)

    def __attrs_post_init__(self):
        if self.path is None:
            self.path = default_settings_file()
        self.load_settings()

    def __getitem__(self, key: str) -> Any:
        return self.get_setting(key)

    def __setitem__(self, key: str, value: Any):
        self.set_setting(key, value)

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting.

        Args:
            key: The key of the setting to get as a dot-separated path.
            default: The value returned when the setting does not exist.
        """
        parts = key.split(".")
        current: Any = self.settings
        for part in parts[:-1]:
            if not hasattr(current, "get"):
                return default
            current = current.get(part)
            if current is None:
                return default
        if not hasattr(current, "get"):
            return default
        return current.get(parts[-1], default)

    def set_setting(self, key: str, value: Any) -> bool:
        """Set a setting and save the file.

        Args:
            key: The key of the setting to set as a dot-separated path.
            value: The new value.

        Returns:
            False if the value did not change.

        Raises:
            PersistenceError: The file could not be written. The in-memory
                value is changed anyway.
        """
        value = freeze(value)
        parts = key.split(".")

        parents = []
        current = self.settings
        for part in parts[:-1]:
            parents.append((part, current))
            current = current.get(part, pmap())
            if not hasattr(current, "set"):
                current = pmap()

        if current.get(parts[-1], None) == value:
            return False

        new_current = current.set(parts[-1], value)
        for part, parent in reversed(parents):
            new_current = parent.set(part, new_current)
        self.settings = new_current

        self.save_settings()
        return True

    def save_settings(self) -> None:
        """Write the settings file.

        The content goes to a temporary file that then replaces the old one.

        Raises:
            PersistenceError: The file could not be written.
        """
        if self.read_only:
            return
        with self._save_lock:
            tmp_settings = f"{self.path}.tmp"
            try:
                directory = os.path.dirname(self.path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                with open(tmp_settings, "w", encoding="utf-8") as f:
                    yaml.safe_dump(thaw(self.settings), f)
                os.replace(tmp_settings, self.path)
            except (OSError, yaml.YAMLError) as e:
                raise PersistenceError(
                    f"Could not save settings to {self.path}: {e}"
                ) from e

    def load_settings(self) -> None:
        """Load the settings file, if there is one.

        A copy of the file is kept next to it before loading. An unreadable
        file leaves the settings empty.
        """
        if not os.path.exists(self.path):
            logger.debug("settings file %s does not exist", self.path)
            return
        try:
            shutil.copy2(self.path, f"{self.path}.bak")
        except OSError:
            logger.warning("Could not back up %s", self.path, exc_info=True)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                tmp = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            logger.error(
                "Could not read settings from %s", self.path, exc_info=True
            )
            return
        if tmp is None:
            logger.warning("settings file %s is empty", self.path)
            return
        if not isinstance(tmp, dict):
            logger.error("settings file %s is not a mapping", self.path)
            return
        self.settings = freeze(tmp)
        logger.debug("settings loaded from %s", self.path)


def default_settings_file() -> str:
    """Get the path to the settings file in the user configuration dir."""
    return os.path.join(user_config_dir(APP_NAME), "settings.yaml")


class TableConfig(BaseModel):
    """The options of a table.

    Attributes:
        table_id: Identifies the table in persisted settings.
        page_size: The number of rows in a page.
        page_size_options: The page sizes the user can choose from.
        pagination: If False all rows are shown in a single page.
        searchable: Whether the free-text search is enabled.
        sortable: Whether sorting is enabled.
        selectable: Whether rows can be selected.
        show_id_column: Whether the synthetic identity column is offered.
        id_column_title: The header of the identity column.
    """

    table_id: str = DEFAULT_TABLE_ID
    page_size: int = DEFAULT_PAGE_SIZE
    page_size_options: List[int] = list(PAGE_SIZE_OPTIONS)
    pagination: bool = True
    searchable: bool = True
    sortable: bool = True
    selectable: bool = False
    show_id_column: bool = True
    id_column_title: str = ID_COLUMN_TITLE

    @field_validator("table_id")
    @classmethod
    def _check_table_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("table_id cannot be blank")
        return value

    @field_validator("page_size")
    @classmethod
    def _check_page_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("page_size must be positive")
        return value

    @field_validator("page_size_options")
    @classmethod
    def _check_options(cls, value: List[int]) -> List[int]:
        if any(v <= 0 for v in value):
            raise ValueError("page sizes must be positive")
        return sorted(set(value))

    @model_validator(mode="after")
    def _include_page_size(self) -> "TableConfig":
        if self.page_size not in self.page_size_options:
            self.page_size_options = sorted(
                self.page_size_options + [self.page_size]
            )
        return self

    @classmethod
    def from_settings(
        cls, settings: LocalSettings, table_id: str, **kwargs: Any
    ) -> "TableConfig":
        """Build the options of a table from `tabview.tables.<table_id>`.

        Explicit keyword arguments win over stored values.
        """
        stored = thaw(settings.get_setting(f"tabview.tables.{table_id}", {}))
        values = dict(stored) if isinstance(stored, dict) else {}
        values.update(kwargs)
        values["table_id"] = table_id
        return cls(**values)
