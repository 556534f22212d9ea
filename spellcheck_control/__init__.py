"""Spellcheck Control - rule-based spellcheck switching for note vaults.

Decides, per document, whether spellcheck should be enabled by evaluating an
ordered list of user rules (folder, tag, property and query rules) against the
document's metadata. The first enabled rule that matches wins; when none
match, spellcheck stays enabled.
"""

from spellcheck_control.core.constants import DEFAULT_OUTCOME, SPELLCHECK_CONTROL_VERSION
from spellcheck_control.integration.document import Document, InMemoryMetadata
from spellcheck_control.rules.engine import RuleEngine, decide
from spellcheck_control.rules.models import (
    FolderRule,
    MultiRule,
    PropertyRule,
    QueryRule,
    RuleKind,
    TagRule,
)

__version__ = SPELLCHECK_CONTROL_VERSION

__all__ = [
    "DEFAULT_OUTCOME",
    "Document",
    "InMemoryMetadata",
    "RuleEngine",
    "decide",
    "RuleKind",
    "FolderRule",
    "TagRule",
    "PropertyRule",
    "QueryRule",
    "MultiRule",
]
