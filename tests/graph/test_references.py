# tests/graph/test_references.py
"""Tests for step reference scanning, rewriting and resolution."""

from __future__ import annotations

from plangraph.config.enums import StepStatus
from plangraph.graph.references import (
    display_dependencies,
    extract_data_dependencies,
    resolve_references,
    rewrite_references,
    rewrite_step_mentions,
    sort_step_ids,
    step_sort_key,
)
from tests.conftest import make_plan, make_step


# ── extract_data_dependencies ───────────────────────────────────────────────


class TestExtractDataDependencies:
    def test_none_input(self):
        assert extract_data_dependencies(None) == []

    def test_empty_input(self):
        assert extract_data_dependencies({}) == []

    def test_single_reference(self):
        assert extract_data_dependencies({"query": "{{step1}}"}) == ["step1"]

    def test_natural_sort(self):
        """step2 sorts before step10, not lexicographically."""
        deps = extract_data_dependencies({"a": "{{step10}}", "b": "{{step2}}"})
        assert deps == ["step2", "step10"]

    def test_duplicates_collapsed(self):
        deps = extract_data_dependencies({"a": "{{step3}} and {{step3}}", "b": "{{step3}}"})
        assert deps == ["step3"]

    def test_nested_structures(self):
        data = {
            "outer": {"inner": ["x", {"deep": "use {{step4}} here"}]},
            "list": ["{{step1}}", 42, None],
        }
        assert extract_data_dependencies(data) == ["step1", "step4"]

    def test_path_references_not_counted(self):
        assert extract_data_dependencies({"text": "{{step2.content}}"}) == []

    def test_malformed_tokens_do_not_match(self):
        data = {"a": "{{step1", "b": "step2}}", "c": "{step3}", "d": "{{ step4 }}"}
        assert extract_data_dependencies(data) == []

    def test_non_step_tokens_ignored(self):
        assert extract_data_dependencies({"a": "{{user}}", "b": "{{stepX}}"}) == []

    def test_non_string_leaves_ignored(self):
        assert extract_data_dependencies({"n": 1, "f": 2.5, "b": True}) == []


class TestSortStepIds:
    def test_multi_digit(self):
        assert sort_step_ids(["step10", "step9", "step1", "step2"]) == [
            "step1",
            "step2",
            "step9",
            "step10",
        ]

    def test_non_conforming_ids_last(self):
        assert sort_step_ids(["fetch", "step2", "alpha"]) == ["step2", "alpha", "fetch"]

    def test_sort_key_shape(self):
        assert step_sort_key("step7") < step_sort_key("step12")
        assert step_sort_key("step99") < step_sort_key("anything")


# ── display_dependencies ────────────────────────────────────────────────────


class TestDisplayDependencies:
    def test_prefers_data_dependencies(self):
        step = make_step("step3", deps=["step1"], input={"q": "{{step2}}"})
        assert display_dependencies(step) == ["step2"]

    def test_falls_back_to_declared(self):
        step = make_step("step3", deps=["step10", "step2"], input={"q": "plain"})
        assert display_dependencies(step) == ["step2", "step10"]

    def test_no_dependencies(self):
        assert display_dependencies(make_step("step1")) == []

    def test_none_input_falls_back(self):
        step = make_step("step2", deps=["step1"])
        step.input = None
        assert display_dependencies(step) == ["step1"]


# ── rewriting ───────────────────────────────────────────────────────────────


class TestRewriteReferences:
    def test_bare_and_path_tokens(self):
        data = {"a": "{{step1}}", "b": "{{step1.content}}", "c": "{{step2.items.0}}"}
        out = rewrite_references(data, {"step1": "step2", "step2": "step3"})
        assert out == {"a": "{{step2}}", "b": "{{step2.content}}", "c": "{{step3.items.0}}"}

    def test_swap_applied_once(self):
        out = rewrite_references({"x": "{{step1}} {{step2}}"}, {"step1": "step2", "step2": "step1"})
        assert out == {"x": "{{step2}} {{step1}}"}

    def test_unmapped_and_text_untouched(self):
        data = {"x": "see step1 and {{step5.out}} and {{name}}"}
        out = rewrite_references(data, {"step1": "step9"})
        assert out == data

    def test_nested_lists(self):
        data = {"items": [{"ref": "{{step1.a}}"}, ["{{step1}}"]]}
        out = rewrite_references(data, {"step1": "step4"})
        assert out == {"items": [{"ref": "{{step4.a}}"}, ["{{step4}}"]]}

    def test_empty_map_returns_input(self):
        data = {"x": "{{step1}}"}
        assert rewrite_references(data, {}) is data


class TestRewriteStepMentions:
    def test_free_text(self):
        text = "Uses step1 output, then step12"
        out = rewrite_step_mentions(text, {"step1": "step2", "step12": "step13"})
        assert out == "Uses step2 output, then step13"

    def test_longest_match_wins(self):
        """step12 is one id, not step1 followed by '2'."""
        assert rewrite_step_mentions("after step12", {"step1": "step5"}) == "after step12"


# ── resolve_references ──────────────────────────────────────────────────────


class TestResolveReferences:
    def _plan(self):
        done = StepStatus.COMPLETED
        return make_plan(
            make_step("step1", status=done, result={"content": "hello", "items": [1, 2]}),
            make_step("step2", status=done, result="plain text"),
            make_step("step3", status=StepStatus.FAILED),
        )

    def test_whole_token_preserves_type(self):
        out = resolve_references({"x": "{{step1.items}}"}, self._plan())
        assert out == {"x": [1, 2]}

    def test_bare_reference_returns_result(self):
        out = resolve_references({"x": "{{step2}}"}, self._plan())
        assert out == {"x": "plain text"}

    def test_template_interpolation(self):
        out = resolve_references({"x": "Say {{step1.content}} / {{step1.items}}"}, self._plan())
        assert out == {"x": "Say hello / [1, 2]"}

    def test_list_index(self):
        out = resolve_references({"x": "{{step1.items.1}}"}, self._plan())
        assert out == {"x": 2}

    def test_output_alias(self):
        out = resolve_references({"x": "{{step2.output}}", "y": "{{step1.result.content}}"}, self._plan())
        assert out == {"x": "plain text", "y": "hello"}

    def test_unfinished_step_left_literal(self):
        out = resolve_references({"x": "{{step3.content}}"}, self._plan())
        assert out == {"x": "{{step3.content}}"}

    def test_unknown_step_and_missing_path_left_literal(self):
        data = {"a": "{{step9}}", "b": "{{step1.missing}}", "c": "x {{step1.nope}} y"}
        assert resolve_references(data, self._plan()) == data

    def test_does_not_mutate_input(self):
        data = {"x": "{{step2}}"}
        resolve_references(data, self._plan())
        assert data == {"x": "{{step2}}"}
