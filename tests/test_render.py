"""End-to-end tests for rendering data trees."""

import copy
import datetime

import pytest

from conftest import CallCounter
from datatemplate import (
    CycleDetectedError,
    DataTemplate,
    InvalidNodeKindError,
    NodePath,
    RecursionDepthExceededError,
    render,
)
from datatemplate.evaluator import TreeEvaluator

# -----------------------------------------------------------------------
# Substitution
# -----------------------------------------------------------------------


class TestSubstitution:
    def test_same_scope(self) -> None:
        assert render({"a": 1, "b": "=a"}) == {"a": 1, "b": 1}

    def test_lower_scope(self) -> None:
        assert render({"a": {"b": 1}, "c": "=a.b"}) == {"a": {"b": 1}, "c": 1}

    def test_higher_scope(self) -> None:
        assert render({"a": {"b": "=c"}, "c": 1}) == {"a": {"b": 1}, "c": 1}

    def test_higher_nested_scope(self) -> None:
        result = render({"a": {"b": "=c.d"}, "c": {"d": 1}})
        assert result["a"]["b"] == 1

    def test_innermost_scope_wins(self) -> None:
        result = render({"a": {"b": "=c", "c": 2}, "c": 1})
        assert result["a"]["b"] == 2

    def test_absolute_bypasses_scopes(self) -> None:
        result = render({"a": {"b": "=.c", "c": 2}, "c": 5})
        assert result["a"]["b"] == 5

    def test_sequence_is_substituted_as_tree(self) -> None:
        result = render({"foo": [1, 2, 3], "bar": "=foo"})
        assert result["bar"] == [1, 2, 3]

    def test_mapping_is_substituted_as_tree(self) -> None:
        result = render({"foo": {"x": "=y", "y": 1}, "bar": "=foo"})
        assert result["bar"] == {"x": 1, "y": 1}

    def test_whitespace_after_tag(self) -> None:
        result = render({"a": {"b": 1}, "c": "=  a.b  "})
        assert result["c"] == 1

    def test_missing_target_is_none(self) -> None:
        result = render({"a": "=nope", "b": {"c": 2, "d": "=c"}})
        assert result == {"a": None, "b": {"c": 2, "d": 2}}

    def test_through_substituted_intermediate(self) -> None:
        result = render({"a": "=b", "b": {"c": 1}, "d": "=a.c"})
        assert result["d"] == 1

    def test_chain(self) -> None:
        result = render({"a": "=b", "b": "=c", "c": "end"})
        assert result == {"a": "end", "b": "end", "c": "end"}

    def test_sequence_items(self) -> None:
        result = render({"l": ["=x", "{{ x }}", 3], "x": 7})
        assert result["l"] == [7, "7", 3]

    def test_sequence_index_reference(self) -> None:
        result = render({"l": [10, 20], "v": "=l.1"})
        assert result["v"] == 20

    def test_custom_substitution_tag(self) -> None:
        result = render({"a": 1, "b": "=:a", "c": "=a"}, substitution_tag="=:")
        assert result == {"a": 1, "b": 1, "c": "=a"}

    def test_custom_separator(self) -> None:
        result = render({"a": {"b": 1}, "c": "=a/b", "d": "=/c"}, key_separator="/")
        assert result["c"] == 1
        assert result["d"] == 1


# -----------------------------------------------------------------------
# Templates
# -----------------------------------------------------------------------


class TestTemplates:
    def test_sibling_value(self) -> None:
        result = render({"foo": "green", "bar": "It is {{ foo }}!"})
        assert result["bar"] == "It is green!"

    def test_uses_resolved_value(self) -> None:
        result = render({"name": "=real", "real": "John", "greeting": "Hello {{ name }}!"})
        assert result["greeting"] == "Hello John!"

    def test_expression(self) -> None:
        result = render({"x": 3, "y": "{{ x * 2 }}"})
        assert result["y"] == "6"

    def test_attribute_access_on_mapping(self) -> None:
        result = render({"user": {"name": "Ann"}, "msg": "Hi {{ user.name }}"})
        assert result["msg"] == "Hi Ann"

    def test_loop(self) -> None:
        result = render({"items": [1, 2, 3], "s": "{% for i in items %}{{ i }}{% endfor %}"})
        assert result["s"] == "123"

    def test_scope_rules_apply(self) -> None:
        result = render({"a": {"t": "{{ c }}", "c": "inner"}, "c": "outer", "u": "{{ c }}"})
        assert result["a"]["t"] == "inner"
        assert result["u"] == "outer"

    def test_node_function(self) -> None:
        result = render({"a": {"c": 2, "t": "{{ node('.c') }}", "u": "{{ node('c') }}"}, "c": 1})
        assert result["a"]["t"] == "1"
        assert result["a"]["u"] == "2"

    def test_node_function_for_non_identifier_keys(self) -> None:
        result = render({"my-key": {"x": 5}, "t": "{{ node('my-key.x') }}"})
        assert result["t"] == "5"

    def test_node_function_missing(self) -> None:
        result = render({"t": "{{ node('nope') is none }}"})
        assert result["t"] == "True"

    def test_undefined_renders_empty(self) -> None:
        result = render({"t": "x{{ nope }}y"})
        assert result["t"] == "xy"

    def test_plain_strings_untouched(self) -> None:
        result = render({"t": "no markers here = fine"})
        assert result["t"] == "no markers here = fine"

    def test_jinja_globals_still_available(self) -> None:
        result = render({"t": "{{ range(3) | list | length }}"})
        assert result["t"] == "3"

    def test_synopsis(self) -> None:
        result = render(
            {
                "user": {
                    "login": "john",
                    "email": "{{ login }}@example.com",
                    "name": "John",
                },
                "email": {
                    "to": "=user.email",
                    "subject": "Hello {{ user.name }}!",
                },
            }
        )
        assert result["email"] == {"to": "john@example.com", "subject": "Hello John!"}
        assert result["user"]["email"] == "john@example.com"


# -----------------------------------------------------------------------
# Nested keys
# -----------------------------------------------------------------------


class TestNestedKeys:
    def test_merge(self) -> None:
        assert render({"a": {"b": 1}, "a.b=": 2}) == {"a": {"b": 2}}

    def test_adds_new_key(self) -> None:
        result = render({"a": {"b": {"c": 1}}, "a.b.d=": 2})
        assert result == {"a": {"b": {"c": 1, "d": 2}}}

    def test_relative_to_containing_mapping(self) -> None:
        result = render({"outer": {"inner": {"v": 1}, "inner.v=": 5}, "inner": {"v": 0}})
        assert result == {"outer": {"inner": {"v": 5}}, "inner": {"v": 0}}

    def test_absolute(self) -> None:
        result = render({"a": {"b": 1}, "x": {".a.b=": 9}})
        assert result == {"a": {"b": 9}, "x": {}}

    def test_missing_target_dropped(self) -> None:
        assert render({"a": {"b": 1}, "x.y=": 2}) == {"a": {"b": 1}}

    def test_scalar_target_parent_dropped(self) -> None:
        assert render({"a": 1, "a.b=": 2}) == {"a": 1}

    def test_value_evaluated_at_target(self) -> None:
        result = render({"a": {"b": 1, "c": 7}, "a.b=": "=c", "c": 0})
        assert result["a"]["b"] == 7

    def test_later_references_see_merged_value(self) -> None:
        result = render({"a": {"b": 1}, "a.b=": 2, "z": "=a.b"})
        assert result["z"] == 2

    def test_sequence_target(self) -> None:
        result = render({"l": [1, 2], "l.0=": "one"})
        assert result == {"l": ["one", 2]}

    def test_key_without_tag_is_plain(self) -> None:
        assert render({"a.b": 1, "a": {"b": 0}}) == {"a.b": 1, "a": {"b": 0}}

    def test_tag_without_separator_is_plain(self) -> None:
        assert render({"b=": 1}) == {"b=": 1}

    def test_empty_tag_makes_every_dotted_key_nested(self) -> None:
        result = render({"a": {"b": 1}, "a.b": 2}, nested_key_tag="")
        assert result == {"a": {"b": 2}}

    def test_custom_tag_and_separator(self) -> None:
        result = render({"a": {"b": 1}, "a/b!": 2}, nested_key_tag="!", key_separator="/")
        assert result == {"a": {"b": 2}}


# -----------------------------------------------------------------------
# Caching
# -----------------------------------------------------------------------


class TestCaching:
    def test_each_path_evaluated_once(self, counter: CallCounter) -> None:
        result = render(
            {"x": "{{ tick() }}", "y": "=x", "z": "=x", "t": "{{ x }}-{{ x }}"},
            globals={"tick": counter},
        )
        assert counter.calls == 1
        assert result == {"x": "1", "y": "1", "z": "1", "t": "1-1"}

    def test_second_evaluation_does_no_work(self, make_evaluator) -> None:
        evaluator: TreeEvaluator = make_evaluator({"a": {"b": [1, "=c"]}, "c": 2})
        result = evaluator.run()
        evaluations = evaluator.context.store.evaluations

        path = NodePath.root().join("a")
        again = evaluator.evaluate(path, "ignored")

        assert again is result["a"]
        assert evaluator.context.store.evaluations == evaluations

    def test_nested_key_forces_recomputation(self, counter: CallCounter) -> None:
        result = render(
            {"a": {"b": "{{ tick() }}"}, "a.b=": "{{ tick() }}"},
            globals={"tick": counter},
        )
        assert counter.calls == 2
        assert result == {"a": {"b": "2"}}


# -----------------------------------------------------------------------
# Cycles and limits
# -----------------------------------------------------------------------


class TestCycles:
    def test_substitution_cycle(self) -> None:
        with pytest.raises(CycleDetectedError) as exc_info:
            render({"a": "=b", "b": "=a"})
        assert exc_info.value.path == "root.a"
        assert exc_info.value.chain[-2:] == ["root.a", "root.b"]

    def test_self_reference(self) -> None:
        with pytest.raises(CycleDetectedError):
            render({"a": "=a"})

    def test_template_cycle(self) -> None:
        with pytest.raises(CycleDetectedError):
            render({"a": "{{ b }}", "b": "{{ a }}"})

    def test_substituting_an_ancestor(self) -> None:
        with pytest.raises(CycleDetectedError):
            render({"a": {"b": "=a"}})

    def test_sibling_containers_substituting_each_other(self) -> None:
        with pytest.raises(CycleDetectedError):
            render({"a": {"x": "=b"}, "b": {"y": "=a"}})

    def test_template_lookup_through_container_in_progress(self) -> None:
        result = render({"a": {"k": 1, "x": "{{ b.k }}"}, "b": "=a"})

        assert result["a"]["x"] == "1"
        assert result["b"] is result["a"]

    def test_name_in_unused_branch_is_not_a_cycle(self) -> None:
        result = render({"a": "{% if false %}{{ b }}{% endif %}ok", "b": "{{ a }}"})
        assert result == {"a": "ok", "b": "ok"}

    def test_cycle_reached_through_container_is_reported(self) -> None:
        with pytest.raises(CycleDetectedError):
            render({"a": "{{ c.k }}", "c": {"j": 1, "k": "{{ a }}"}})

    def test_abandoned_container_is_evaluated_again(self) -> None:
        tree = {
            "a": "{% if false %}{{ c }}{% endif %}ok",
            "c": {"j": "{{ 1 + 1 }}", "k": "{{ a }}", "l": "=j"},
        }
        assert render(tree) == {"a": "ok", "c": {"j": "2", "k": "ok", "l": "2"}}

    def test_depth_limit(self) -> None:
        tree = {"a": "=b", "b": "=c", "c": "=d", "d": "=e", "e": 1}
        with pytest.raises(RecursionDepthExceededError) as exc_info:
            render(tree, max_depth=3)
        assert exc_info.value.max_depth == 3
        assert exc_info.value.depth == 4

        assert render(tree, max_depth=10) == {"a": 1, "b": 1, "c": 1, "d": 1, "e": 1}

    def test_plain_nesting_does_not_count_towards_depth(self) -> None:
        tree: dict[str, object] = {"leaf": 1}
        for _ in range(150):
            tree = {"k": tree}

        assert render(tree) == tree
        assert render({"x": {"y": {"z": "=w"}}, "w": 1}, max_depth=1)["x"]["y"]["z"] == 1


# -----------------------------------------------------------------------
# Data handling
# -----------------------------------------------------------------------


class TestData:
    def test_plain_data_round_trip(self) -> None:
        tree = {
            "name": "service",
            "port": 8080,
            "ratio": 0.5,
            "enabled": True,
            "nothing": None,
            "started": datetime.date(2024, 1, 2),
            "hosts": ["a", "b", {"c": [1, 2]}],
            "nested": {"deeper": {"deepest": "value"}},
        }
        assert render(tree) == tree

    def test_input_not_mutated(self) -> None:
        tree = {"a": {"b": 1}, "a.b=": 2, "c": "=a", "d": "{{ c.b }}"}
        original = copy.deepcopy(tree)

        render(tree)

        assert tree == original

    def test_renderer_is_reusable(self, renderer: DataTemplate) -> None:
        assert renderer.render({"a": 1, "b": "=a"}) == {"a": 1, "b": 1}
        assert renderer.render({"a": 2, "b": "=a"}) == {"a": 2, "b": 2}

    def test_scalar_root(self) -> None:
        assert render("plain") == "plain"
        assert render(5) == 5
        assert render(None) is None

    def test_scalar_root_references_find_nothing(self) -> None:
        assert render("{{ x }}") == ""
        assert render("=x") is None

    def test_sequence_root(self) -> None:
        assert render([{"a": 1, "b": "=a"}, "x"]) == [{"a": 1, "b": 1}, "x"]

    @pytest.mark.parametrize("bad", [{1, 2}, (1, 2), object()])
    def test_invalid_node_kind(self, bad: object) -> None:
        with pytest.raises(InvalidNodeKindError) as exc_info:
            render({"a": {"b": bad}})
        assert exc_info.value.path == "root.a.b"
