#!/usr/bin/env python3
"""Rule data model.

A rule is one user-authored policy entry: a kind-specific predicate plus the
spellcheck value to apply when it is the first enabled match. Each kind is its
own frozen dataclass carrying only its own parameters:

- FolderRule: document location (``path``, ``recursive``)
- TagRule: tag membership (``tag``, ``include_subtags``)
- PropertyRule: frontmatter value (``property_name``, ``property_value``)
- QueryRule: membership in an external query result (``query``)
- MultiRule: composite of sub-conditions (persisted, not evaluated)

Rules are persisted as flat mappings with a ``type`` discriminant:

    >>> rule_to_dict(TagRule(name="Code", tag="code", include_subtags=True))
    {'type': 'tag', 'name': 'Code', 'enabled': True, 'negated': False,
     'enable_spellcheck': False, 'tag': 'code', 'include_subtags': True}
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Tuple, Type, Union


class RuleKind(Enum):
    """Discriminant of a persisted rule."""

    FOLDER = "folder"
    TAG = "tag"
    PROPERTY = "property"
    MULTI = "multi"
    DATAVIEW = "dataview"  # external query rule


class MultiLogic(Enum):
    """How a composite rule combines its sub-conditions."""

    ANY = "any"
    ALL = "all"


# camelCase keys written by the original Obsidian plugin
LEGACY_KEYS = {
    "enableSpellcheck": "enable_spellcheck",
    "includeSubtags": "include_subtags",
    "propertyName": "property_name",
    "propertyValue": "property_value",
    "dataviewQuery": "query",
    "multiConditionLogic": "logic",
}


@dataclass(frozen=True)
class BaseRule:
    """Fields shared by every rule kind."""

    kind: ClassVar[RuleKind]

    name: str = "New Rule"
    enabled: bool = True
    negated: bool = False
    enable_spellcheck: bool = False


@dataclass(frozen=True)
class FolderRule(BaseRule):
    """Matches documents by folder location.

    An empty path or ``"/"`` means the vault root.
    """

    kind: ClassVar[RuleKind] = RuleKind.FOLDER

    path: str = ""
    recursive: bool = True


@dataclass(frozen=True)
class TagRule(BaseRule):
    """Matches documents carrying a tag, optionally including its subtags."""

    kind: ClassVar[RuleKind] = RuleKind.TAG

    tag: str = ""
    include_subtags: bool = False


@dataclass(frozen=True)
class PropertyRule(BaseRule):
    """Matches documents by frontmatter property.

    A blank ``property_value`` matches on presence of the property alone.
    """

    kind: ClassVar[RuleKind] = RuleKind.PROPERTY

    property_name: str = ""
    property_value: str = ""


@dataclass(frozen=True)
class QueryRule(BaseRule):
    """Matches documents returned by an external query engine."""

    kind: ClassVar[RuleKind] = RuleKind.DATAVIEW

    query: str = ""


@dataclass(frozen=True)
class SubCondition:
    """One condition of a composite rule."""

    kind: RuleKind = RuleKind.FOLDER
    negated: bool = False
    path: str = ""
    recursive: bool = True
    tag: str = ""
    include_subtags: bool = False
    property_name: str = ""
    property_value: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": self.kind.value, "negated": self.negated}
        if self.kind == RuleKind.FOLDER:
            data.update(path=self.path, recursive=self.recursive)
        elif self.kind == RuleKind.TAG:
            data.update(tag=self.tag, include_subtags=self.include_subtags)
        elif self.kind == RuleKind.PROPERTY:
            data.update(property_name=self.property_name, property_value=self.property_value)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SubCondition":
        data = _normalize_keys(data)
        kind = RuleKind(data.get("type", RuleKind.FOLDER.value))
        if kind not in (RuleKind.FOLDER, RuleKind.TAG, RuleKind.PROPERTY):
            raise ValueError(f"Unsupported sub-condition type: {kind.value}")
        kwargs = _coerce_fields(cls, data)
        kwargs["kind"] = kind
        return cls(**kwargs)


@dataclass(frozen=True)
class MultiRule(BaseRule):
    """Composite rule over sub-conditions.

    Kept so that settings containing composite rules round-trip; the engine
    treats it as non-matching.
    """

    kind: ClassVar[RuleKind] = RuleKind.MULTI

    logic: MultiLogic = MultiLogic.ANY
    conditions: Tuple[SubCondition, ...] = field(default_factory=tuple)


Rule = Union[FolderRule, TagRule, PropertyRule, QueryRule, MultiRule]

RULE_TYPES: Dict[RuleKind, Type[BaseRule]] = {
    RuleKind.FOLDER: FolderRule,
    RuleKind.TAG: TagRule,
    RuleKind.PROPERTY: PropertyRule,
    RuleKind.DATAVIEW: QueryRule,
    RuleKind.MULTI: MultiRule,
}


def _normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Map legacy camelCase keys onto their snake_case names."""
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        normalized[LEGACY_KEYS.get(key, key)] = value
    return normalized


def _parse_bool(name: str, value: Any) -> bool:
    """Read a boolean flag, accepting YAML-style strings for hand-edited files."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "yes", "on", "1"):
            return True
        if text in ("false", "no", "off", "0"):
            return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def _coerce_fields(cls: type, data: Mapping[str, Any]) -> Dict[str, Any]:
    """Pick the dataclass fields of ``cls`` out of ``data``.

    Missing or null values are left out so the dataclass default applies.
    Strings and booleans are coerced to the declared type.

    Raises:
        ValueError: If a boolean field holds something other than a flag
    """
    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        if f.name in ("kind", "logic", "conditions"):
            continue
        value = data.get(f.name)
        if value is None:
            continue
        if isinstance(f.default, bool):
            value = _parse_bool(f.name, value)
        elif isinstance(f.default, str):
            value = str(value)
        kwargs[f.name] = value
    return kwargs


def rule_from_dict(data: Mapping[str, Any]) -> Rule:
    """Build a rule from its persisted mapping.

    Args:
        data: Flat rule record (snake_case or legacy camelCase keys)

    Returns:
        Rule instance of the record's kind

    Raises:
        ValueError: If the record's ``type`` is not a known rule kind
    """
    data = _normalize_keys(data)
    kind = RuleKind(data.get("type") or RuleKind.FOLDER.value)
    rule_cls = RULE_TYPES[kind]
    kwargs = _coerce_fields(rule_cls, data)

    if rule_cls is MultiRule:
        kwargs["logic"] = MultiLogic(data.get("logic") or MultiLogic.ANY.value)
        kwargs["conditions"] = tuple(
            SubCondition.from_dict(c) for c in data.get("conditions") or ()
        )

    return rule_cls(**kwargs)


def rule_to_dict(rule: Rule) -> Dict[str, Any]:
    """Serialize a rule to its flat persisted mapping."""
    data: Dict[str, Any] = {"type": rule.kind.value}
    for f in fields(rule):
        value = getattr(rule, f.name)
        if isinstance(value, MultiLogic):
            value = value.value
        elif f.name == "conditions":
            value = [c.to_dict() for c in value]
        data[f.name] = value
    return data


def evolve(rule: Rule, **changes: Any) -> Rule:
    """Return a copy of ``rule`` with ``changes`` applied.

    Passing ``type`` (a RuleKind or its value) converts the rule to another
    kind; common fields carry over and parameters the new kind lacks are
    dropped.

    Raises:
        ValueError: If a change names a field the resulting kind doesn't have
    """
    if "type" in changes:
        kind = RuleKind(changes.pop("type"))
        if kind != rule.kind:
            data = rule_to_dict(rule)
            data["type"] = kind.value
            rule = rule_from_dict(data)

    known = {f.name for f in fields(rule)}
    unknown = set(changes) - known
    if unknown:
        raise ValueError(
            f"Unknown field(s) for {rule.kind.value} rule: {', '.join(sorted(unknown))}"
        )
    return replace(rule, **changes)
