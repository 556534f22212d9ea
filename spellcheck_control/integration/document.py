"""
Spellcheck Control Integration: Documents and Metadata.

The host application owns documents and their parsed metadata. This module
defines the small surface the rule engine needs from it:

- Document: a vault-relative path plus its parent folder
- MetadataProvider: resolved tags and frontmatter for a document
- InMemoryMetadata: a dictionary-backed provider for tests and the CLI
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

from spellcheck_control.core.constants import PATH_SEPARATOR, ROOT_PATH, TAG_PREFIX


@dataclass(frozen=True)
class Document:
    """
    A document in the vault.

    Attributes:
        path: Vault-relative path (e.g., "Notes/Sub/todo.md")
        parent_path: Path of the containing folder; "/" (or None) for the root
    """

    path: str
    parent_path: Optional[str] = ROOT_PATH

    @classmethod
    def from_path(cls, path: str) -> "Document":
        """
        Create a document, deriving its parent folder from the path.

        Args:
            path: Vault-relative document path

        Returns:
            Document whose parent is the folder part of ``path``, or root
        """
        path = path.lstrip(PATH_SEPARATOR)
        parent, sep, _ = path.rpartition(PATH_SEPARATOR)
        return cls(path=path, parent_path=parent if sep else ROOT_PATH)

    @property
    def in_root(self) -> bool:
        """True if the document sits directly in the vault root."""
        return self.parent_path in (None, "", ROOT_PATH)


@runtime_checkable
class MetadataProvider(Protocol):
    """Resolved metadata lookups supplied by the host."""

    def get_tags(self, document: Document) -> Optional[Iterable[str]]:
        """All tags of the document (inline and frontmatter), each "#"-prefixed."""
        ...

    def get_frontmatter(self, document: Document) -> Optional[Mapping[str, Any]]:
        """Parsed frontmatter, or None if the document has none."""
        ...


def normalize_tag(tag: str) -> str:
    """Return ``tag`` with exactly one leading "#" ("" for a blank tag)."""
    bare = tag.strip().lstrip(TAG_PREFIX)
    return TAG_PREFIX + bare if bare else ""


class InMemoryMetadata:
    """
    Dictionary-backed metadata provider.

    Tags are stored normalized with a leading "#". Documents are keyed by path.
    """

    def __init__(self):
        self._tags: Dict[str, List[str]] = {}
        self._frontmatter: Dict[str, Dict[str, Any]] = {}

    def set_tags(self, document: Document, tags: Iterable[str]) -> None:
        self._tags[document.path] = [t for t in (normalize_tag(t) for t in tags) if t]

    def set_frontmatter(self, document: Document, frontmatter: Mapping[str, Any]) -> None:
        self._frontmatter[document.path] = dict(frontmatter)

    def get_tags(self, document: Document) -> Optional[List[str]]:
        return self._tags.get(document.path)

    def get_frontmatter(self, document: Document) -> Optional[Dict[str, Any]]:
        return self._frontmatter.get(document.path)

    def forget(self, document: Document) -> None:
        """Drop all metadata held for ``document``."""
        self._tags.pop(document.path, None)
        self._frontmatter.pop(document.path, None)
