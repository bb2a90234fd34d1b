# tether/preferences/__init__.py
from __future__ import annotations

import importlib
from typing import Any

import yaml
from pydantic import ValidationError

from tether import env
from tether.logger import get_logger

logger = get_logger(__name__)


class Preferences:
    def __init__(self):
        self.prefs: dict = {}
        self.initialized: bool = False
        self._ensure_loaded()  # lazy-load on initial import

    def get_preferences_path(self):
        prefs_path = env.get_preferences_path()
        return prefs_path, prefs_path.exists()

    def reload(self):
        """Force a fresh read from disk"""
        self.prefs = self._load_preferences()
        self.initialized = True

    def _ensure_loaded(self):
        if not self.initialized:
            self.reload()

    def _load_preferences(self) -> dict:
        prefs_path, exists = self.get_preferences_path()
        if not exists:
            return {}
        try:
            data = yaml.safe_load(prefs_path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable preferences at %s: %s", prefs_path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring preferences at %s: top level is not a mapping", prefs_path)
            return {}
        return data

    def save(self):
        """Write current preferences to <TETHER_HOME>/preferences.yml"""
        prefs_path, _ = self.get_preferences_path()
        prefs_path.parent.mkdir(parents=True, exist_ok=True)
        prefs_path.write_text(yaml.safe_dump(self.prefs, default_flow_style=False))

    def get(self, *keys: str, default: Any = None) -> Any:
        self._ensure_loaded()
        result = self.prefs
        for key in keys:
            if not isinstance(result, dict) or key not in result:
                return default
            result = result[key]
        return result

    def set(self, *keys: str, value: Any, save: bool = False):
        """
        Set a value in the nested preferences structure.
        Example: prefs.set("secrets", "catch_all_min_entropy", value=4.2, save=True)
        """
        self._ensure_loaded()
        if not keys:
            raise ValueError("prefs.set() requires at least one key")

        target = self.prefs
        for key in keys[:-1]:
            if key not in target or not isinstance(target[key], dict):
                target[key] = {}
            target = target[key]
        target[keys[-1]] = value

        if save:
            self.save()

    def get_section(
        self,
        *keys: str,
        default: Any | None = None,
        cast: str = "dict",
    ):
        """
        Fetch an entire nested section.

        Parameters
        ----------
        *keys
            Hierarchical keys, e.g. ``"secrets"`` or ``"tools", "files"``.
        default
            Fallback if the section is missing (defaults to empty dict).
        cast
            * ``"dict"``  → raw ``dict`` (default)
            * ``"obj"``   → try to instantiate ``<Capitalized>Settings`` from
              ``tether.<top-key>.models`` using Pydantic; falls back to dict if
              the model isn't found or validation fails.

        Examples
        --------
        >>> prefs.get_section("secrets")                # plain dict
        >>> prefs.get_section("secrets", cast="obj")    # SecretsSettings object
        """
        data = self.get(*keys, default=default or {})
        if cast == "dict":
            return data or {}

        if cast == "obj":
            top = keys[0] if keys else ""
            try:
                mdl = importlib.import_module(f"tether.{top}.models")
                cls = getattr(mdl, f"{top.capitalize()}Settings")
            except (ImportError, AttributeError):
                return data or {}
            try:
                return cls.model_validate(data or {})
            except ValidationError as e:
                # caller still gets a dict
                logger.warning("Invalid '%s' preferences, using raw values: %s", top, e)
                return data or {}

        raise ValueError(f"Unsupported cast: {cast!r}")


prefs = Preferences()
