#!/usr/bin/env python3
"""Predicate evaluators, one per rule kind.

Each evaluator answers "does this document satisfy the rule's criteria?"
before negation is applied. Missing metadata or blank rule parameters yield
a non-match rather than an error.

Only :func:`matches_query` is a coroutine; it is the one predicate that
talks to an external engine.
"""

from typing import Any, Optional

from spellcheck_control.core.constants import PATH_SEPARATOR, ROOT_PATH, SUBTAG_SEPARATOR
from spellcheck_control.core.logging import Logger, get_logger
from spellcheck_control.integration.document import Document, MetadataProvider, normalize_tag
from spellcheck_control.rules.models import FolderRule, PropertyRule, QueryRule, TagRule
from spellcheck_control.rules.query import QueryEngine, run_query


def matches_folder(document: Document, rule: FolderRule, strict_boundary: bool = False) -> bool:
    """Match on document location.

    Recursive rules use a plain string prefix test on the document path, so
    "Notes" also matches "NotesArchive/a.md". ``strict_boundary`` restricts
    the match to the folder itself and its descendants.

    Args:
        document: Document to test
        rule: Folder rule
        strict_boundary: Require a path separator after the rule path

    Returns:
        True if the document is in the rule's folder
    """
    rule_path = rule.path or ""
    if rule_path in ("", ROOT_PATH):
        if rule.recursive:
            return True
        return document.in_root

    folder = rule_path if rule_path.endswith(PATH_SEPARATOR) else rule_path + PATH_SEPARATOR

    if rule.recursive:
        prefix = folder if strict_boundary else rule_path
        return document.path.startswith(prefix)

    if document.in_root:
        return False
    return document.parent_path + PATH_SEPARATOR == folder


def matches_tag(document: Document, rule: TagRule, metadata: MetadataProvider) -> bool:
    """Match on the document's resolved tags.

    Args:
        document: Document to test
        rule: Tag rule; its tag may be given with or without "#"
        metadata: Tag lookup

    Returns:
        True if the document carries the tag (or a subtag, if enabled)
    """
    rule_tag = normalize_tag(rule.tag or "")
    if not rule_tag:
        return False

    tags = metadata.get_tags(document)
    if not tags:
        return False

    subtag_prefix = rule_tag + SUBTAG_SEPARATOR
    for tag in tags:
        tag = normalize_tag(tag)
        if tag == rule_tag:
            return True
        if rule.include_subtags and tag.startswith(subtag_prefix):
            return True
    return False


def stringify(value: Any) -> str:
    """String form of a frontmatter value, spelled as it appears in YAML.

    Booleans become ``true``/``false``, null becomes ``null`` and integral
    floats drop their trailing ``.0``.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def matches_property(document: Document, rule: PropertyRule, metadata: MetadataProvider) -> bool:
    """Match on a frontmatter property.

    A blank ``property_value`` matches whenever the property is present.
    Otherwise the value is compared on its string form; list values match if
    any element does.

    Args:
        document: Document to test
        rule: Property rule
        metadata: Frontmatter lookup

    Returns:
        True if the property is present (and has the wanted value)
    """
    frontmatter = metadata.get_frontmatter(document)
    if not frontmatter:
        return False

    name = rule.property_name
    if not name or name not in frontmatter:
        return False

    target = rule.property_value
    if not target or not target.strip():
        return True

    value = frontmatter[name]
    if isinstance(value, (list, tuple)):
        return any(stringify(v) == target for v in value)
    return stringify(value) == target


async def matches_query(
    document: Document,
    rule: QueryRule,
    query_engine: Optional[QueryEngine],
    logger: Optional[Logger] = None,
) -> bool:
    """Match on membership in an external query's result.

    Never raises: a missing engine, an unsuccessful query or an engine error
    all count as a non-match. Engine errors are logged.

    Args:
        document: Document to test
        rule: Query rule
        query_engine: Engine to run the query on, or None if unavailable
        logger: Logger for engine failures

    Returns:
        True if the query result includes the document
    """
    if not rule.query or query_engine is None:
        return False

    logger = logger or get_logger()
    try:
        result = await run_query(query_engine, rule.query)
    except Exception as e:
        logger.warning("Query failed", query=rule.query, error=f"{type(e).__name__}: {e}")
        return False

    if not result.successful:
        logger.debug("Query unsuccessful", query=rule.query, error=result.error)
        return False

    return result.contains(document.path)
