"""Spellcheck Control Integration Layer.

Boundary with the host application:
- Document / MetadataProvider: what the engine reads from the host
- SpellcheckController: host triggers in, spellcheck decisions out
"""

from spellcheck_control.integration.document import (
    Document,
    InMemoryMetadata,
    MetadataProvider,
    normalize_tag,
)
from spellcheck_control.integration.controller import SpellcheckController, Workspace

__all__ = [
    "Document",
    "MetadataProvider",
    "InMemoryMetadata",
    "normalize_tag",
    "SpellcheckController",
    "Workspace",
]
