#!/usr/bin/env python3
"""Persistent rule settings.

The settings document owns the ordered rule list. It is loaded once, merged
over the defaults, and saved after every mutation. Readers take snapshots, so
an evaluation in progress never sees a half-applied edit.

Example:
    >>> store = SettingsStore("~/.config/spellcheck-control/settings.yaml")
    >>> store.load()
    >>> store.add_rule(FolderRule(name="Code", path="Code", enable_spellcheck=False))
    >>> store.update_rule(0, recursive=False)
"""

import copy
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from spellcheck_control.core.constants import DEFAULT_SETTINGS, ErrorCode, SettingsKey
from spellcheck_control.core.logging import Logger, get_logger
from spellcheck_control.rules.models import FolderRule, Rule, evolve, rule_from_dict, rule_to_dict

SettingsWatcher = Callable[[List[Rule]], None]


class SettingsError(Exception):
    """Settings could not be read, written or edited."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class SettingsStore:
    """Thread-safe owner of the rule list.

    Every mutation replaces rule objects rather than editing them, writes the
    settings file (when one is configured) and notifies watchers with a
    snapshot of the new list.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, logger: Optional[Logger] = None):
        """Initialize settings store.

        Args:
            path: Settings file (YAML or JSON); None keeps settings in memory
            logger: Logger (global logger by default)
        """
        self.path = Path(path).expanduser() if path else None
        self.logger = logger or get_logger()
        self._rules: List[Rule] = []
        self._lock = threading.RLock()
        self._watchers: List[SettingsWatcher] = []

    def load(self) -> None:
        """Load settings from the settings file, merged over the defaults.

        A missing file yields the defaults. Rule records of unknown kind are
        logged and skipped; missing rule fields take their defaults.

        Raises:
            SettingsError: If the file cannot be read or is not a mapping
        """
        data: Dict[str, Any] = copy.deepcopy(DEFAULT_SETTINGS)

        if self.path is not None and self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise SettingsError(f"Failed to parse settings file {self.path}: {e}")
            except OSError as e:
                raise SettingsError(
                    f"Failed to read settings file {self.path}: {e}", ErrorCode.NOT_FOUND
                )

            if loaded is not None and not isinstance(loaded, dict):
                raise SettingsError(f"Settings file must contain a mapping: {self.path}")
            data.update(loaded or {})

        records = data.get(SettingsKey.RULES) or []
        if not isinstance(records, list):
            raise SettingsError(f"'{SettingsKey.RULES}' must be a list in {self.path}")

        rules = []
        for i, record in enumerate(records):
            try:
                if not isinstance(record, dict):
                    raise ValueError(f"expected a mapping, got {type(record).__name__}")
                rules.append(rule_from_dict(record))
            except (ValueError, TypeError, AttributeError) as e:
                self.logger.warning("Skipping invalid rule", index=i, error=str(e))

        with self._lock:
            self._rules = rules

        self.logger.debug("Settings loaded", path=self.path, rules=len(rules))

    def save(self) -> None:
        """Write the settings file.

        Raises:
            SettingsError: If the file cannot be written
        """
        if self.path is None:
            return

        data = self.to_dict()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
        except OSError as e:
            raise SettingsError(
                f"Failed to write settings file {self.path}: {e}", ErrorCode.PERMISSION_DENIED
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the settings document."""
        return {SettingsKey.RULES: [rule_to_dict(rule) for rule in self.snapshot()]}

    def snapshot(self) -> List[Rule]:
        """Get a copy of the current rule list."""
        with self._lock:
            return list(self._rules)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

    def get_rule(self, index: int) -> Rule:
        with self._lock:
            self._check_index(index)
            return self._rules[index]

    def add_rule(self, rule: Optional[Rule] = None) -> int:
        """Append a rule (a new enabled folder rule by default).

        Returns:
            Index of the new rule
        """
        rule = rule if rule is not None else FolderRule()
        with self._lock:
            self._rules.append(rule)
            index = len(self._rules) - 1
        self._commit()
        return index

    def update_rule(self, index: int, **changes: Any) -> Rule:
        """Apply field changes to the rule at ``index``.

        Passing ``type`` converts the rule to another kind.

        Returns:
            The updated rule

        Raises:
            SettingsError: If the index is out of range or a field is unknown
        """
        with self._lock:
            self._check_index(index)
            try:
                rule = evolve(self._rules[index], **changes)
            except ValueError as e:
                raise SettingsError(str(e))
            self._rules[index] = rule
        self._commit()
        return rule

    def remove_rule(self, index: int) -> Rule:
        """Remove the rule at ``index``; later rules shift down by one.

        Returns:
            The removed rule
        """
        with self._lock:
            self._check_index(index)
            rule = self._rules.pop(index)
        self._commit()
        return rule

    def set_enabled(self, index: int, enabled: bool) -> Rule:
        return self.update_rule(index, enabled=enabled)

    def add_watcher(self, callback: SettingsWatcher) -> None:
        """Add a callback run with the rule snapshot after each change."""
        with self._lock:
            self._watchers.append(callback)

    def remove_watcher(self, callback: SettingsWatcher) -> None:
        with self._lock:
            if callback in self._watchers:
                self._watchers.remove(callback)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._rules):
            raise SettingsError(f"No rule at index {index}", ErrorCode.NOT_FOUND)

    def _commit(self) -> None:
        self.save()
        rules = self.snapshot()
        with self._lock:
            watchers = list(self._watchers)
        for watcher in watchers:
            watcher(rules)
