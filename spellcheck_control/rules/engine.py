#!/usr/bin/env python3
"""Rule engine for per-document spellcheck decisions.

This module decides whether spellcheck is enabled for a document:
- Ordered rules, first enabled match wins
- Folder, tag, property and query predicates
- Per-rule negation applied after the predicate
- Fail-open: no match, or only failing rules, yields ``True``

Example:
    >>> engine = RuleEngine(metadata)
    >>> rules = [FolderRule(path="Code", enable_spellcheck=False)]
    >>> await engine.decide(Document.from_path("Code/main.md"), rules)
    False
"""

from typing import Iterable, List, Optional

from spellcheck_control.core.constants import DEFAULT_OUTCOME
from spellcheck_control.core.logging import Logger, get_logger
from spellcheck_control.integration.document import Document, MetadataProvider
from spellcheck_control.rules.models import (
    FolderRule,
    MultiRule,
    PropertyRule,
    QueryRule,
    Rule,
    TagRule,
)
from spellcheck_control.rules.predicates import (
    matches_folder,
    matches_property,
    matches_query,
    matches_tag,
)
from spellcheck_control.rules.query import QueryEngine


class RuleEngine:
    """Evaluates rule lists against documents.

    Collaborators are injected: metadata lookups, an optional query engine
    and a logger. The engine holds no rules itself; callers pass the list to
    evaluate, and the engine iterates over a snapshot of it.
    """

    def __init__(
        self,
        metadata: MetadataProvider,
        query_engine: Optional[QueryEngine] = None,
        logger: Optional[Logger] = None,
        strict_folder_boundary: bool = False,
    ):
        """Initialize rule engine.

        Args:
            metadata: Tag and frontmatter lookups
            query_engine: Engine for query rules, or None if unavailable
            logger: Logger (global logger by default)
            strict_folder_boundary: Require a separator after recursive
                folder rule paths
        """
        self.metadata = metadata
        self.query_engine = query_engine
        self.logger = logger or get_logger()
        self.strict_folder_boundary = strict_folder_boundary

    async def decide(self, document: Document, rules: Iterable[Rule]) -> bool:
        """Decide whether spellcheck is enabled for ``document``.

        Disabled rules are skipped. A rule whose evaluation raises is logged
        and treated as non-matching. Evaluation stops at the first match.

        Args:
            document: Document to decide for
            rules: Ordered rule list

        Returns:
            The first matching rule's ``enable_spellcheck``, else ``True``
        """
        for rule in list(rules):
            if not rule.enabled:
                continue

            try:
                matched = await self.evaluate_rule(document, rule)
            except Exception as e:
                self.logger.exception(
                    "Error evaluating rule", e, rule=rule.name, document=document.path
                )
                continue

            if matched:
                self.logger.debug(
                    "Rule matched",
                    rule=rule.name,
                    document=document.path,
                    enabled=rule.enable_spellcheck,
                )
                return rule.enable_spellcheck

        return DEFAULT_OUTCOME

    async def evaluate_rule(self, document: Document, rule: Rule) -> bool:
        """Evaluate one rule, including negation.

        Exceptions raised by the predicate propagate. The raw predicate of a
        composite rule is always False, so only a negated one matches.

        Args:
            document: Document to test
            rule: Rule to evaluate

        Returns:
            True if the rule matches the document
        """
        if isinstance(rule, MultiRule):
            # TODO: evaluate composite rules once any/all short-circuiting and
            # per-condition negation are settled.
            self.logger.debug("Composite rule not evaluated", rule=rule.name)
            matched = False
        else:
            matched = await self._match(document, rule)
        return matched != rule.negated

    async def _match(self, document: Document, rule: Rule) -> bool:
        if isinstance(rule, FolderRule):
            return matches_folder(document, rule, self.strict_folder_boundary)
        elif isinstance(rule, TagRule):
            return matches_tag(document, rule, self.metadata)
        elif isinstance(rule, PropertyRule):
            return matches_property(document, rule, self.metadata)
        elif isinstance(rule, QueryRule):
            return await matches_query(document, rule, self.query_engine, self.logger)

        raise TypeError(f"Unknown rule type: {type(rule).__name__}")

    async def get_matching_rules(self, document: Document, rules: Iterable[Rule]) -> List[Rule]:
        """Get every enabled rule that matches, in order.

        Unlike :meth:`decide` this does not stop at the first match. Rules
        whose evaluation raises are logged and left out.

        Args:
            document: Document to test
            rules: Ordered rule list

        Returns:
            List of matching rules
        """
        matches = []
        for rule in list(rules):
            if not rule.enabled:
                continue
            try:
                if await self.evaluate_rule(document, rule):
                    matches.append(rule)
            except Exception as e:
                self.logger.exception(
                    "Error evaluating rule", e, rule=rule.name, document=document.path
                )
        return matches


async def decide(
    document: Document,
    rules: Iterable[Rule],
    metadata: MetadataProvider,
    query_engine: Optional[QueryEngine] = None,
) -> bool:
    """Decide spellcheck for one document without keeping an engine around.

    Args:
        document: Document to decide for
        rules: Ordered rule list
        metadata: Tag and frontmatter lookups
        query_engine: Engine for query rules, or None

    Returns:
        Whether spellcheck should be enabled
    """
    return await RuleEngine(metadata, query_engine).decide(document, rules)
