"""
Term System for Rego Modules

Every value that can appear inside a policy (rule heads, rule bodies,
package paths, imports) is represented as an immutable term node.

This ensures:
    - Structural comparison (two parses of the same text are equal)
    - Safe sharing between rules
    - A single place to answer "is this term ground?"

ARCHITECTURAL RULE:
    Terms are structure only.
    Evaluation is not done here; printing lives in backends,
    conformance checks live in the walker.
"""

import re
from abc import ABC
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Tuple, Union


class Term(ABC):
    """
    Base class for all term nodes.

    This class is intentionally empty.
    It exists to provide type-safety for the term hierarchy.
    """
    pass


@dataclass(frozen=True)
class Scalar(Term):
    """
    A literal scalar value.

    Examples:
        - "inventory"
        - 42
        - Decimal("3.5")  (non-integer numbers keep their exact value)
        - true / false
        - null  (value is None)

    Scalars are always ground.
    """

    value: Union[str, int, Decimal, bool, None]


@dataclass(frozen=True)
class Var(Term):
    """
    A variable (or identifier at the start of a reference).

    Examples:
        - msg
        - _  (wildcard)
        - data  (as the head of a Ref)
    """

    name: str


@dataclass(frozen=True)
class Ref(Term):
    """
    A dotted or indexed access path.

    Example:
        data.inventory[ns].pods

    Becomes:
        Ref((
            Var("data"),
            Scalar("inventory"),
            Var("ns"),
            Scalar("pods"),
        ))

    IMPORTANT:
        The identity of a reference is the whole path.
        A bare `data` or `input` is a Ref with a single term.
    """

    terms: Tuple[Term, ...]

    def __len__(self) -> int:
        return len(self.terms)

    @property
    def head(self) -> Term:
        return self.terms[0]

    def has_root(self, name: str) -> bool:
        """True if the first term is the variable `name`."""
        return bool(self.terms) and self.terms[0] == Var(name)


@dataclass(frozen=True)
class ArrayTerm(Term):
    """An array literal: [a, b, c]"""

    items: Tuple[Term, ...]


@dataclass(frozen=True)
class SetTerm(Term):
    """A set literal: {a, b} or set() when empty."""

    items: Tuple[Term, ...]


@dataclass(frozen=True)
class ObjectTerm(Term):
    """
    An object literal.

    Example:
        {"msg": msg, "details": {}}

    Properties:
        items: ordered (key, value) pairs, keys may be any term
    """

    items: Tuple[Tuple[Term, Term], ...]


@dataclass(frozen=True)
class Call(Term):
    """
    A function call.

    Examples:
        - count(missing)
        - object.get(obj, "key", "default")

    Properties:
        operator: Ref naming the function (may be dotted)
        args: argument terms
    """

    operator: Ref
    args: Tuple[Term, ...]


class BinaryOperator(Enum):
    """
    Infix operators usable inside terms and expressions.

    Keep this aligned with what the parser accepts.
    Assignment and unification are only valid at the top of an expression.
    """

    # Assignment / unification
    ASSIGN = ":="
    UNIFY = "="

    # Comparison
    EQUALS = "=="
    NOT_EQUALS = "!="
    LESS_THAN = "<"
    LESS_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_EQUAL = ">="

    # Arithmetic
    PLUS = "+"
    MINUS = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"

    # Set operations
    INTERSECTION = "&"
    UNION = "|"


@dataclass(frozen=True)
class BinaryTerm(Term):
    """
    An infix operation.

    Example:
        count(missing) > 0

    Becomes:
        BinaryTerm(
            operator=BinaryOperator.GREATER_THAN,
            left=Call(Ref((Var("count"),)), (Var("missing"),)),
            right=Scalar(0),
        )
    """

    operator: BinaryOperator
    left: Term
    right: Term


@dataclass(frozen=True)
class ArrayComprehension(Term):
    """[term | body]"""

    term: Term
    body: tuple


@dataclass(frozen=True)
class SetComprehension(Term):
    """{term | body}"""

    term: Term
    body: tuple


@dataclass(frozen=True)
class ObjectComprehension(Term):
    """{key: value | body}"""

    key: Term
    value: Term
    body: tuple


def is_ground(term: Term) -> bool:
    """
    Return True if the term contains no variables.

    Scalars are ground. Composite literals are ground when every element
    is ground. References, calls, operations and comprehensions never are.
    """
    if isinstance(term, Scalar):
        return True
    if isinstance(term, (ArrayTerm, SetTerm)):
        return all(is_ground(item) for item in term.items)
    if isinstance(term, ObjectTerm):
        return all(is_ground(k) and is_ground(v) for k, v in term.items)
    return False


def number_value(text: str) -> Union[int, Decimal]:
    """
    Exact value of a number literal.

    Integers become int; anything with a fraction or exponent becomes a
    Decimal, so `1e999` and `1.00000000000000000001` survive a rewrite.
    """
    if re.fullmatch(r"-?\d+", text):
        return int(text)
    return Decimal(text)


def number_text(value: Union[int, Decimal]) -> str:
    """Source text for a number produced by number_value."""
    return str(value)
