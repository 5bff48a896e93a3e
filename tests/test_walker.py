"""
Tests for the reference walker and the data access check.

Tests verify that the walker:
    - Visits every reference exactly once, in document order
    - Honors the skip signal
    - Reports every illegal `data` reference, not just the first
"""

from regosandbox.expressions import ArrayTerm, Ref, Scalar, Var
from regosandbox.rego_parser import parse_module
from regosandbox.walker import (
    DEFAULT_ALLOWED_FIELDS,
    Visit,
    check_data_access,
    iter_refs,
    walk,
    walk_refs,
)


def module_with_body(body: str):
    module = parse_module("t", f"package t\n\np {{\n{body}\n}}\n")
    module.package.path = []
    return module


class TestWalk:

    def test_refs_in_document_order(self):
        module = parse_module("t", "package t\nviolation[msg] { x := input.a; msg := input.b[x] }")
        module.package.path = []
        refs = iter_refs(module)
        assert refs == [
            Ref((Var("input"), Scalar("a"))),
            Ref((Var("input"), Scalar("b"), Var("x"))),
        ]

    def test_package_path_is_visited(self):
        module = parse_module("t", "package t\nallow { true }")
        assert iter_refs(module) == [Ref((Var("data"), Scalar("t")))]

    def test_nested_refs_visited(self):
        module = module_with_body("x := input.a[input.b]")
        assert len(iter_refs(module)) == 2

    def test_refs_in_comprehensions_heads_and_modifiers(self):
        module = parse_module(
            "t",
            "package t\n"
            "f(input.a) = input.b { xs := [y | y := input.c[_]]; allow with input.d as input.e }",
        )
        module.package.path = []
        names = [ref.terms[1].value for ref in iter_refs(module)]
        assert names == ["a", "b", "c", "d", "e"]

    def test_call_operator_is_a_ref(self):
        module = module_with_body("x := data.lib.helper(1)")
        assert Ref((Var("data"), Scalar("lib"), Scalar("helper"))) in iter_refs(module)

    def test_skip_prevents_descent(self):
        module = module_with_body("x := input.a[input.b]")
        seen = []

        def skip_outer(ref):
            seen.append(ref)
            return Visit.SKIP

        walk_refs(module, skip_outer)
        assert len(seen) == 1

    def test_walk_visits_non_ref_nodes(self):
        module = module_with_body("x := 1")
        kinds = []

        def record(node):
            kinds.append(type(node).__name__)
            return Visit.CONTINUE

        walk(module, record)
        assert kinds[0] == "Module"
        assert "Scalar" in kinds

    def test_deep_nesting(self):
        term = Ref((Var("input"), Scalar("deep")))
        for _ in range(5000):
            term = ArrayTerm((term,))
        assert iter_refs(term) == [Ref((Var("input"), Scalar("deep")))]


class TestCheckDataAccess:

    def test_allowed_reference(self):
        module = module_with_body("x := data.inventory.cluster[ns]")
        assert check_data_access(module) == []

    def test_bare_data(self):
        errors = check_data_access(module_with_body("x := data"))
        assert len(errors) == 1
        assert "must access a field of `data`" in str(errors[0])

    def test_computed_field(self):
        errors = check_data_access(module_with_body("x := data[y]"))
        assert len(errors) == 1
        assert "literal value" in str(errors[0])
        assert errors[0].ref == "data[y]"

    def test_invalid_field(self):
        errors = check_data_access(module_with_body("x := data.badfield"))
        assert len(errors) == 1
        assert "badfield" in str(errors[0])
        assert "Valid fields are: inventory" in str(errors[0])

    def test_non_string_ground_field(self):
        errors = check_data_access(module_with_body("x := data[1]"))
        assert len(errors) == 1
        assert "Invalid `data` field: 1" in str(errors[0])

    def test_every_violation_reported(self):
        module = module_with_body("a := data.secrets\nb := data[c]\nd := data")
        errors = check_data_access(module)
        assert len(errors) == 3
        assert [e.ref for e in errors] == ["data.secrets", "data[c]", "data"]

    def test_rejected_ref_is_not_descended(self):
        errors = check_data_access(module_with_body("x := data[data.other]"))
        assert len(errors) == 1

    def test_allowed_ref_is_descended(self):
        errors = check_data_access(module_with_body("x := data.inventory[data.other]"))
        assert len(errors) == 1
        assert errors[0].ref == "data.other"

    def test_data_inside_input_index(self):
        errors = check_data_access(module_with_body("x := input[data.secrets]"))
        assert len(errors) == 1

    def test_custom_allow_set(self):
        module = module_with_body("a := data.inventory\nb := data.external")
        assert len(check_data_access(module, {"inventory", "external"})) == 0
        errors = check_data_access(module, {"external"})
        assert [e.ref for e in errors] == ["data.inventory"]

    def test_default_allow_set(self):
        assert DEFAULT_ALLOWED_FIELDS == frozenset({"inventory"})
