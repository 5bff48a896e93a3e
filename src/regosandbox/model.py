"""
Core Module Model Objects

Defines the structure of one parsed policy module:
    - Package (where the module lives under `data`)
    - Imports
    - Rules (head + body)
    - Body expressions

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about source text layout
        - Are created fresh for every call
        - Represent structure, not behavior

Only the package path is ever mutated, and only by the rewriter.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .expressions import Term, Ref, Var


ROOT_DOCUMENT = "data"
INPUT_DOCUMENT = "input"


@dataclass
class Package:
    """
    The package declaration of a module.

    Properties:
        path:
            Terms of the package reference, root first.
            `package foo.bar` parses to [Var("data"), Scalar("foo"), Scalar("bar")].
            Empty while the conformance checker has it cleared.
    """

    path: List[Term] = field(default_factory=list)

    def as_ref(self) -> Optional[Ref]:
        if not self.path:
            return None
        return Ref(tuple(self.path))


@dataclass(frozen=True)
class Import:
    """
    An import declaration.

    Example:
        import data.lib.helpers as h

    Properties:
        path: Ref being imported
        alias: Optional local name
    """

    path: Ref
    alias: Optional[str] = None


@dataclass(frozen=True)
class WithModifier:
    """`with target as value` attached to a body expression."""

    target: Term
    value: Term


@dataclass(frozen=True)
class SomeDecl:
    """`some x, y` local variable declaration."""

    variables: Tuple[Var, ...]


@dataclass(frozen=True)
class Expr:
    """
    One expression in a rule or comprehension body.

    Properties:
        term:
            The expression itself. Either a single term (a call, a ref)
            or a BinaryTerm for assignments and comparisons, or a SomeDecl.
        negated:
            True when prefixed with `not`
        with_modifiers:
            Zero or more `with` clauses
    """

    term: object
    negated: bool = False
    with_modifiers: Tuple[WithModifier, ...] = ()


@dataclass(frozen=True)
class RuleHead:
    """
    The head of a rule.

    Forms:
        allow                    -> key=None, value=None
        allow = true             -> value=Scalar(True)
        violation[msg]           -> key=Var("msg")
        labels[k] = v            -> key=Var("k"), value=Var("v")
        f(x) = y                 -> args=(Var("x"),), value=Var("y")

    Properties:
        name: Rule name
        key: Partial-rule key term, if any
        value: Value term, if any
        args: Function arguments, None for non-function rules
        assign: True when the value was bound with `:=`
    """

    name: str
    key: Optional[Term] = None
    value: Optional[Term] = None
    args: Optional[Tuple[Term, ...]] = None
    assign: bool = False


@dataclass
class Rule:
    """
    A named rule.

    Properties:
        head: RuleHead
        body: Body expressions (empty for body-less rules)
        default: True for `default name = value`
        else_rule: Chained `else` rule, if any
    """

    head: RuleHead
    body: List[Expr] = field(default_factory=list)
    default: bool = False
    else_rule: Optional["Rule"] = None

    @property
    def name(self) -> str:
        return self.head.name


@dataclass
class Module:
    """
    Root container for one parsed policy unit.

    INVARIANTS (after a successful conformance check):
        - imports is empty
        - package.path starts with Var("data")
    """

    package: Package
    imports: List[Import] = field(default_factory=list)
    rules: List[Rule] = field(default_factory=list)

    def get_rules(self, name: str) -> List[Rule]:
        """
        Retrieve every rule declared with the given name.

        Args:
            name: Rule name

        Returns:
            Rules in declaration order (possibly empty)
        """
        return [rule for rule in self.rules if rule.name == name]
