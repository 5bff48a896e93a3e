"""
Tests for the Term System

These tests verify:
    - Term objects can be created and compared structurally
    - Term immutability
    - Groundness
"""

import pytest
from regosandbox.expressions import (
    ArrayComprehension,
    ArrayTerm,
    BinaryOperator,
    BinaryTerm,
    Call,
    ObjectTerm,
    Ref,
    Scalar,
    SetTerm,
    Term,
    Var,
    is_ground,
)


class TestScalar:
    """Test scalar terms."""

    def test_values(self):
        assert Scalar("inventory").value == "inventory"
        assert Scalar(3).value == 3
        assert Scalar(None).value is None

    def test_scalar_is_term(self):
        assert isinstance(Scalar(1), Term)

    def test_scalar_immutable(self):
        lit = Scalar(5)
        with pytest.raises(AttributeError):
            lit.value = 10


class TestRef:
    """Test references."""

    def test_identity_is_whole_path(self):
        a = Ref((Var("data"), Scalar("inventory")))
        b = Ref((Var("data"), Scalar("inventory")))
        c = Ref((Var("data"), Scalar("other")))
        assert a == b
        assert a != c
        assert hash(a) == hash(b)

    def test_has_root(self):
        ref = Ref((Var("data"), Scalar("inventory")))
        assert ref.has_root("data")
        assert not ref.has_root("input")
        assert len(ref) == 2
        assert ref.head == Var("data")

    def test_empty_ref_has_no_root(self):
        assert not Ref(()).has_root("data")


class TestIsGround:
    """Only terms without variables are ground."""

    def test_scalar(self):
        assert is_ground(Scalar("x"))

    def test_var(self):
        assert not is_ground(Var("x"))

    def test_ref(self):
        assert not is_ground(Ref((Var("input"),)))

    def test_collections(self):
        assert is_ground(ArrayTerm((Scalar(1), Scalar(2))))
        assert not is_ground(ArrayTerm((Scalar(1), Var("x"))))
        assert is_ground(SetTerm(()))
        assert is_ground(ObjectTerm(((Scalar("a"), ArrayTerm((Scalar(1),))),)))
        assert not is_ground(ObjectTerm(((Scalar("a"), Var("v")),)))

    def test_calls_and_operations(self):
        assert not is_ground(Call(Ref((Var("count"),)), (Scalar(1),)))
        assert not is_ground(BinaryTerm(BinaryOperator.PLUS, Scalar(1), Scalar(2)))
        assert not is_ground(ArrayComprehension(term=Scalar(1), body=()))
