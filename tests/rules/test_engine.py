#!/usr/bin/env python3
"""Comprehensive tests for RuleEngine."""

from unittest.mock import patch

import pytest

from spellcheck_control.core.constants import DEFAULT_OUTCOME
from spellcheck_control.integration.document import Document
from spellcheck_control.rules import engine as engine_module
from spellcheck_control.rules.engine import RuleEngine, decide
from spellcheck_control.rules.models import (
    FolderRule,
    MultiRule,
    PropertyRule,
    QueryRule,
    SubCondition,
    TagRule,
)


class TestDecide:
    """Tests for the first-match-wins decision."""

    @pytest.mark.asyncio
    async def test_empty_rules_default_enabled(self, engine, doc):
        """Test no rules yields the enabled default."""
        assert DEFAULT_OUTCOME is True
        assert await engine.decide(doc, []) is True

    @pytest.mark.asyncio
    async def test_no_match_default_enabled(self, engine, doc):
        """Test no matching rule yields True even if every rule would disable."""
        rules = [
            FolderRule(path="Elsewhere", enable_spellcheck=False),
            TagRule(tag="missing", enable_spellcheck=False),
        ]

        assert await engine.decide(doc, rules) is True

    @pytest.mark.asyncio
    async def test_first_match_wins(self, engine, metadata, doc):
        """Test the first matching rule's outcome is returned."""
        metadata.set_tags(doc, ["#prose"])
        rules = [
            FolderRule(name="other", path="Other", enable_spellcheck=True),
            FolderRule(name="notes", path="Notes", enable_spellcheck=False),
            TagRule(name="prose", tag="prose", enable_spellcheck=True),
        ]

        assert await engine.decide(doc, rules) is False

    @pytest.mark.asyncio
    async def test_short_circuits_after_match(self, engine, doc):
        """Test no rule after the first match is evaluated."""
        rules = [
            FolderRule(name="miss", path="Other"),
            FolderRule(name="hit", path="Notes", enable_spellcheck=False),
            FolderRule(name="after", path="/"),
            TagRule(name="after-tag", tag="x"),
        ]

        with patch.object(
            engine_module, "matches_folder", wraps=engine_module.matches_folder
        ) as folder, patch.object(engine_module, "matches_tag") as tag:
            assert await engine.decide(doc, rules) is False

        assert folder.call_count == 2
        tag.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_rules_skipped(self, engine, doc):
        """Test disabled rules are neither evaluated nor selected."""
        rules = [
            FolderRule(name="disabled", path="/", enabled=False, enable_spellcheck=False),
        ]

        with patch.object(engine_module, "matches_folder") as folder:
            assert await engine.decide(doc, rules) is True

        folder.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_rule_does_not_shadow_later_rule(self, engine, doc):
        """Test a disabled match is passed over for the next enabled one."""
        rules = [
            FolderRule(name="disabled", path="Notes", enabled=False, enable_spellcheck=True),
            FolderRule(name="enabled", path="Notes", enable_spellcheck=False),
        ]

        assert await engine.decide(doc, rules) is False

    @pytest.mark.asyncio
    async def test_negated_rule(self, engine, doc):
        """Test negation inverts the predicate."""
        rules = [FolderRule(path="Other", negated=True, enable_spellcheck=False)]

        assert await engine.decide(doc, rules) is False

    @pytest.mark.asyncio
    async def test_negated_property_matches_missing_property(self, engine, metadata):
        """Test a negated property rule matches documents lacking the property."""
        rule = PropertyRule(
            property_name="status", property_value="done", negated=True, enable_spellcheck=False
        )
        lacking = Document.from_path("a.md")
        other_value = Document.from_path("b.md")
        done = Document.from_path("c.md")
        metadata.set_frontmatter(other_value, {"status": "todo"})
        metadata.set_frontmatter(done, {"status": "done"})

        assert await engine.decide(lacking, [rule]) is False
        assert await engine.decide(other_value, [rule]) is False
        assert await engine.decide(done, [rule]) is True

    @pytest.mark.asyncio
    async def test_predicate_error_is_contained(self, engine, doc, log_handler):
        """Test a raising predicate is logged and treated as non-match."""
        rules = [
            TagRule(name="broken", tag="x", enable_spellcheck=True),
            FolderRule(name="fallback", path="Notes", enable_spellcheck=False),
        ]

        with patch.object(engine_module, "matches_tag", side_effect=KeyError("boom")):
            assert await engine.decide(doc, rules) is False

        errors = log_handler.messages(level=40)
        assert len(errors) == 1
        assert "Error evaluating rule" in errors[0]
        assert "rule=broken" in errors[0]

    @pytest.mark.asyncio
    async def test_negated_rule_error_is_non_match(self, engine, doc):
        """Test a raising negated rule does not match."""
        rules = [TagRule(tag="x", negated=True, enable_spellcheck=False)]

        with patch.object(engine_module, "matches_tag", side_effect=RuntimeError("boom")):
            assert await engine.decide(doc, rules) is True

    @pytest.mark.asyncio
    async def test_metadata_error_is_contained(self, doc, logger):
        """Test failing metadata lookups don't escape decide."""

        class BrokenMetadata:
            def get_tags(self, document):
                raise OSError("cache unavailable")

            def get_frontmatter(self, document):
                raise OSError("cache unavailable")

        engine = RuleEngine(BrokenMetadata(), logger=logger)
        rules = [TagRule(tag="x"), PropertyRule(property_name="status")]

        assert await engine.decide(doc, rules) is True

    @pytest.mark.asyncio
    async def test_query_rule(self, metadata, logger, doc, make_query_engine):
        """Test query rules are awaited in order with synchronous rules."""
        query_engine = make_query_engine({"LIST": [doc.path]})
        engine = RuleEngine(metadata, query_engine=query_engine, logger=logger)
        rules = [
            TagRule(tag="absent", enable_spellcheck=True),
            QueryRule(query="LIST", enable_spellcheck=False),
            FolderRule(path="/", enable_spellcheck=True),
        ]

        assert await engine.decide(doc, rules) is False
        assert query_engine.calls == ["LIST"]

    @pytest.mark.asyncio
    async def test_query_rule_without_engine(self, engine, doc):
        """Test query rules don't match when no engine is installed."""
        rules = [
            QueryRule(query="LIST", enable_spellcheck=False),
            FolderRule(path="/", enable_spellcheck=True),
        ]

        assert await engine.decide(doc, rules) is True

    @pytest.mark.asyncio
    async def test_multi_rule_never_matches(self, engine, doc):
        """Test a plain composite rule is treated as non-matching."""
        conditions = (SubCondition(path="Notes"),)
        rules = [MultiRule(conditions=conditions, enable_spellcheck=False)]

        assert await engine.decide(doc, rules) is True

    @pytest.mark.asyncio
    async def test_negated_multi_rule_matches(self, engine, doc):
        """Test negation still applies on top of the composite non-match."""
        rules = [
            MultiRule(negated=True, enable_spellcheck=False),
            FolderRule(path="/", enable_spellcheck=True),
        ]

        assert await engine.decide(doc, rules) is False
        assert await engine.evaluate_rule(doc, rules[0]) is True

    @pytest.mark.asyncio
    async def test_rule_list_snapshot(self, engine, doc):
        """Test mutating the list during evaluation doesn't affect the decision."""
        rules = [FolderRule(path="Other")]

        class MutatingEngine:
            async def query(self, query):
                rules.insert(0, FolderRule(path="/", enable_spellcheck=False))
                return {"successful": True, "items": []}

        engine.query_engine = MutatingEngine()
        rules.append(QueryRule(query="LIST"))

        assert await engine.decide(doc, rules) is True
        assert len(rules) == 3

    @pytest.mark.asyncio
    async def test_strict_folder_boundary(self, metadata, logger):
        """Test the engine passes its folder boundary mode to the predicate."""
        document = Document.from_path("NotesArchive/doc.md")
        rules = [FolderRule(path="Notes", enable_spellcheck=False)]

        assert await RuleEngine(metadata, logger=logger).decide(document, rules) is False
        strict = RuleEngine(metadata, logger=logger, strict_folder_boundary=True)
        assert await strict.decide(document, rules) is True

    @pytest.mark.asyncio
    async def test_module_level_decide(self, metadata, doc):
        """Test the convenience function builds an engine per call."""
        metadata.set_tags(doc, ["#code"])
        rules = [TagRule(tag="code", enable_spellcheck=False)]

        assert await decide(doc, rules, metadata) is False


class TestEvaluateRule:
    """Tests for single-rule evaluation."""

    @pytest.mark.asyncio
    async def test_negation(self, engine, doc):
        """Test negation is applied after the predicate."""
        assert await engine.evaluate_rule(doc, FolderRule(path="Notes")) is True
        assert await engine.evaluate_rule(doc, FolderRule(path="Notes", negated=True)) is False

    @pytest.mark.asyncio
    async def test_errors_propagate(self, engine, doc):
        """Test evaluate_rule does not swallow predicate errors."""
        with patch.object(engine_module, "matches_folder", side_effect=ValueError("bad")):
            with pytest.raises(ValueError):
                await engine.evaluate_rule(doc, FolderRule(path="Notes"))

    @pytest.mark.asyncio
    async def test_unknown_rule_type(self, engine, doc):
        """Test objects that aren't rules are rejected."""

        class NotARule:
            name = "bogus"
            enabled = True
            negated = False

        with pytest.raises(TypeError):
            await engine.evaluate_rule(doc, NotARule())


class TestGetMatchingRules:
    """Tests for listing every matching rule."""

    @pytest.mark.asyncio
    async def test_returns_all_matches_in_order(self, engine, metadata, doc):
        """Test all enabled matches are returned, without short-circuit."""
        metadata.set_tags(doc, ["#prose"])
        rules = [
            FolderRule(name="root", path="/"),
            FolderRule(name="other", path="Other"),
            FolderRule(name="disabled", path="Notes", enabled=False),
            TagRule(name="prose", tag="prose"),
        ]

        matches = await engine.get_matching_rules(doc, rules)

        assert [r.name for r in matches] == ["root", "prose"]

    @pytest.mark.asyncio
    async def test_errors_skip_rule(self, engine, doc, log_handler):
        """Test raising rules are logged and left out."""
        rules = [TagRule(name="broken", tag="x"), FolderRule(name="root", path="/")]

        with patch.object(engine_module, "matches_tag", side_effect=RuntimeError("boom")):
            matches = await engine.get_matching_rules(doc, rules)

        assert [r.name for r in matches] == ["root"]
        assert len(log_handler.messages(level=40)) == 1
