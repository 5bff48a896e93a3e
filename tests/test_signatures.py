"""
Tests for rule arity inference and required-rule checks.
"""

import logging

import pytest

from regosandbox.errors import (
    ArityMismatchError,
    ErrorList,
    InvalidSignatureError,
    MissingRuleError,
    RegoParseError,
)
from regosandbox.examples import CONTAINER_LIMITS, REQUIRED_LABELS
from regosandbox.rego_parser import parse_module
from regosandbox.signatures import get_rule_arity, require_rules, rule_arities


def first_rule(source: str):
    return parse_module("t", "package t\n" + source).rules[0]


class TestGetRuleArity:

    def test_no_key(self):
        assert get_rule_arity(first_rule("allow { true }")) == 0

    def test_function_has_no_key(self):
        assert get_rule_arity(first_rule("f(x) = y { y := x }")) == 0

    def test_single_variable(self):
        assert get_rule_arity(first_rule("violation[msg] { msg := 1 }")) == 1

    def test_single_object(self):
        assert get_rule_arity(first_rule('violation[{"msg": msg}] { msg := 1 }')) == 1

    def test_array_of_variables(self):
        assert get_rule_arity(first_rule("violation[[a, b, c]] { a := 1; b := 2; c := 3 }")) == 3

    def test_array_of_variables_and_object(self):
        rule = first_rule('violation[[a, {"msg": m}, b]] { a := 1; m := 2; b := 3 }')
        assert get_rule_arity(rule) == 3

    def test_empty_array(self):
        assert get_rule_arity(first_rule("violation[[]] { true }")) == 0

    def test_array_with_string_literal(self):
        with pytest.raises(InvalidSignatureError) as exc_info:
            get_rule_arity(first_rule('violation[[a, "b"]] { a := 1 }'))
        assert "arrays of variables or objects" in str(exc_info.value)

    def test_scalar_key(self):
        with pytest.raises(InvalidSignatureError):
            get_rule_arity(first_rule('violation["msg"] { true }'))

    def test_ref_key(self):
        with pytest.raises(InvalidSignatureError):
            get_rule_arity(first_rule("violation[input.x] { true }"))


class TestRuleArities:

    def test_example(self):
        module = parse_module("t", CONTAINER_LIMITS)
        assert rule_arities(module) == {"max_cpu": 0, "violation": 2}

    def test_last_declaration_wins(self, caplog):
        module = parse_module("t", "package t\nv[a] { a := 1 }\nv[[a, b]] { a := 1; b := 2 }")
        with caplog.at_level(logging.WARNING, logger="regosandbox.signatures"):
            assert rule_arities(module) == {"v": 2}
        assert "declared with arity 1 and 2" in caplog.text


class TestRequireRules:

    def test_present(self):
        require_rules("t", REQUIRED_LABELS, {"violation": 1})

    def test_single_variable_head(self):
        require_rules("t", "package t\nviolation[r] { r := 1 }", {"violation": 1})

    def test_missing(self):
        with pytest.raises(ErrorList) as exc_info:
            require_rules("t", "package t\nallow { true }", {"violation": 1})
        assert len(exc_info.value) == 1
        assert isinstance(exc_info.value[0], MissingRuleError)
        assert str(exc_info.value) == "Missing required rule: violation"

    def test_mismatch(self):
        with pytest.raises(ErrorList) as exc_info:
            require_rules("t", "package t\nviolation[[a, b]] { a := 1; b := 2 }", {"violation": 1})
        error = exc_info.value[0]
        assert isinstance(error, ArityMismatchError)
        assert (error.got, error.want) == (2, 1)
        assert str(error) == "Rule violation has arity 2, want 1"

    def test_all_problems_reported_in_order(self):
        source = "package t\nviolation[[a, b]] { a := 1; b := 2 }"
        with pytest.raises(ErrorList) as exc_info:
            require_rules("t", source, {"audit": 0, "violation": 1, "deny": 1})
        assert [type(e) for e in exc_info.value] == [MissingRuleError, ArityMismatchError, MissingRuleError]
        assert str(exc_info.value).splitlines() == [
            "Missing required rule: audit",
            "Rule violation has arity 2, want 1",
            "Missing required rule: deny",
        ]

    def test_invalid_signature_aborts(self):
        source = 'package t\nhelper["x"] { true }\nallow { true }'
        with pytest.raises(InvalidSignatureError):
            require_rules("t", source, {"violation": 1})

    def test_parse_error(self):
        with pytest.raises(RegoParseError):
            require_rules("t", "package t\nviolation[", {"violation": 1})

    def test_nothing_required(self):
        require_rules("t", "package t\nallow { true }", {})
