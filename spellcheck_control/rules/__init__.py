"""Spellcheck Control Rules System.

This module provides the per-document rule evaluation:
- Rule models: folder, tag, property, query and composite rules
- Predicates: one matcher per rule kind
- RuleEngine: first-match-wins spellcheck decisions
- QueryEngine: boundary to an optional external query engine
"""

from .engine import RuleEngine, decide
from .models import (
    FolderRule,
    MultiLogic,
    MultiRule,
    PropertyRule,
    QueryRule,
    Rule,
    RuleKind,
    SubCondition,
    TagRule,
    evolve,
    rule_from_dict,
    rule_to_dict,
)
from .predicates import matches_folder, matches_property, matches_query, matches_tag
from .query import QueryEngine, QueryResult

__all__ = [
    # Models
    "RuleKind",
    "MultiLogic",
    "Rule",
    "FolderRule",
    "TagRule",
    "PropertyRule",
    "QueryRule",
    "MultiRule",
    "SubCondition",
    "rule_from_dict",
    "rule_to_dict",
    "evolve",
    # Predicates
    "matches_folder",
    "matches_tag",
    "matches_property",
    "matches_query",
    # Query boundary
    "QueryEngine",
    "QueryResult",
    # Engine
    "RuleEngine",
    "decide",
]
