"""
Tool Config Store - Durable enable/disable state per tool

Responsibility:
- Persist one ``{toolName, enabled}`` record per known tool
- Reconcile against the live tool names (add missing as disabled, drop stale)
- Answer "is this tool enabled?" (unknown names are disabled)

File format (hand-editable)::

    [
      {"toolName": "http_post", "enabled": true},
      {"toolName": "get_weather", "enabled": false}
    ]

Writes go to a temp file in the same directory and are moved into place
with ``os.replace``, so a crash mid-write leaves the previous file intact.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from toolgate.exceptions import ConfigLoadException, ConfigSaveException

logger = logging.getLogger(__name__)


class ToolConfig(BaseModel):
    """Persisted flag for one tool."""

    toolName: str = Field(..., min_length=1)
    enabled: bool = False


_CONFIG_LIST = TypeAdapter(list[ToolConfig])


class ToolConfigStore:
    """File-backed tool configuration. Every mutation is written through."""

    def __init__(self, path: str | Path = "tool-config.json"):
        self._path = Path(path).resolve()
        self._configs: dict[str, bool] = {}

    @property
    def path(self) -> Path:
        return self._path

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self, known_names: Iterable[str]) -> None:
        """Load the persisted config, or create defaults (all disabled) if there is none."""
        names = list(known_names)
        try:
            self._load()
        except ConfigLoadException as exc:
            logger.warning(f"{exc.message}; creating default tool configuration with all tools disabled")
            self._commit({name: False for name in dict.fromkeys(names)})
            return

        self.reconcile(names)

    def reconcile(self, known_names: Iterable[str]) -> bool:
        """
        Track exactly ``known_names``.

        Returns:
            True if the set of tracked names changed (and was persisted)
        """
        names = list(dict.fromkeys(known_names))
        wanted = set(names)

        added = [name for name in names if name not in self._configs]
        removed = [name for name in self._configs if name not in wanted]

        if not added and not removed:
            return False

        configs = {name: enabled for name, enabled in self._configs.items() if name in wanted}
        configs.update((name, False) for name in added)

        self._commit(configs)
        logger.info(f"Updated tool configuration: added={added} removed={removed}")
        return True

    # -------------------------------------------------------------------------
    # Queries / mutations
    # -------------------------------------------------------------------------

    def is_enabled(self, tool_name: str) -> bool:
        return self._configs.get(tool_name, False)

    def set_enabled(self, tool_name: str, enabled: bool) -> None:
        """Set a flag and persist it. Callers check that the tool exists."""
        self._commit({**self._configs, tool_name: enabled})

    def get_all_configs(self) -> list[ToolConfig]:
        return [ToolConfig(toolName=name, enabled=enabled) for name, enabled in self._configs.items()]

    def get_enabled_tools(self) -> list[str]:
        return [name for name, enabled in self._configs.items() if enabled]

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._configs

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        try:
            raw = self._path.read_text(encoding="utf-8")
            configs = _CONFIG_LIST.validate_json(raw)
        except FileNotFoundError as exc:
            raise ConfigLoadException(str(self._path), "file does not exist") from exc
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            raise ConfigLoadException(str(self._path), str(exc)) from exc

        self._configs = {config.toolName: config.enabled for config in configs}
        logger.info(f"Loaded tool configuration: {len(configs)} tools configured")

    def _commit(self, configs: dict[str, bool]) -> None:
        """Persist ``configs``, then make them current. A failed write changes nothing."""
        self._save(configs)
        self._configs = configs

    def _save(self, configs: dict[str, bool]) -> None:
        data = [ToolConfig(toolName=name, enabled=enabled).model_dump() for name, enabled in configs.items()]
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ConfigSaveException(str(self._path), str(exc)) from exc

        logger.debug(f"Saved tool configuration to {self._path}")


__all__ = ["ToolConfig", "ToolConfigStore"]
