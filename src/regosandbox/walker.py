"""
Reference walker: visits every node of a Module in document order.

The visitor returns a Visit signal for every node it sees:
    - Visit.CONTINUE: descend into the node's children
    - Visit.SKIP: do not descend into this node, keep walking its siblings

`check_data_access` is built on top of it: it flags every reference into
the root document that does not go through an allowed, literal field.

IMPORTANT: This walker does NOT modify the module.
"""

from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional

from regosandbox.backends.rego_printer import render_term
from regosandbox.errors import DataAccessError
from regosandbox.expressions import (
    Term,
    Scalar,
    Ref,
    ArrayTerm,
    SetTerm,
    ObjectTerm,
    Call,
    BinaryTerm,
    ArrayComprehension,
    SetComprehension,
    ObjectComprehension,
    is_ground,
)
from regosandbox.log import get_logger
from regosandbox.model import (
    Module,
    Package,
    Import,
    Rule,
    RuleHead,
    Expr,
    SomeDecl,
    WithModifier,
    ROOT_DOCUMENT,
)


logger = get_logger(__name__)

# Fields of the root document policies may read.
DEFAULT_ALLOWED_FIELDS = frozenset({"inventory"})


class Visit(Enum):
    CONTINUE = "continue"
    SKIP = "skip"


def iter_children(node) -> Iterator[object]:
    """
    Yield the direct children of a node, in document order.

    Raises:
        TypeError: On an unknown node type
    """
    if isinstance(node, Module):
        yield node.package
        yield from node.imports
        yield from node.rules

    elif isinstance(node, Package):
        ref = node.as_ref()
        if ref is not None:
            yield ref

    elif isinstance(node, Import):
        yield node.path

    elif isinstance(node, Rule):
        yield node.head
        yield from node.body
        if node.else_rule is not None:
            yield node.else_rule

    elif isinstance(node, RuleHead):
        if node.args is not None:
            yield from node.args
        if node.key is not None:
            yield node.key
        if node.value is not None:
            yield node.value

    elif isinstance(node, Expr):
        yield node.term
        yield from node.with_modifiers

    elif isinstance(node, WithModifier):
        yield node.target
        yield node.value

    elif isinstance(node, SomeDecl):
        yield from node.variables

    elif isinstance(node, Ref):
        yield from node.terms

    elif isinstance(node, (ArrayTerm, SetTerm)):
        yield from node.items

    elif isinstance(node, ObjectTerm):
        for key, value in node.items:
            yield key
            yield value

    elif isinstance(node, Call):
        yield node.operator
        yield from node.args

    elif isinstance(node, BinaryTerm):
        yield node.left
        yield node.right

    elif isinstance(node, ArrayComprehension) or isinstance(node, SetComprehension):
        yield node.term
        yield from node.body

    elif isinstance(node, ObjectComprehension):
        yield node.key
        yield node.value
        yield from node.body

    elif isinstance(node, Term):
        # Scalars and Vars are leaves
        return

    else:
        raise TypeError(f"Unsupported node type: {type(node)}")


def walk(node, visitor: Callable[[object], Visit]) -> None:
    """
    Visit `node` and everything below it, depth-first, in document order.

    Iterative; nesting depth is not bounded by the recursion limit.
    """
    stack: List[Iterator[object]] = [iter((node,))]
    while stack:
        current = next(stack[-1], None)
        if current is None:
            stack.pop()
            continue
        if visitor(current) is Visit.SKIP:
            continue
        stack.append(iter_children(current))


def walk_refs(node, fn: Callable[[Ref], Visit]) -> None:
    """Call `fn` for every Ref below `node`; other nodes are always descended."""

    def visitor(current) -> Visit:
        if isinstance(current, Ref):
            return fn(current)
        return Visit.CONTINUE

    walk(node, visitor)


def iter_refs(node) -> List[Ref]:
    """Every Ref below `node`, in document order."""
    refs: List[Ref] = []

    def collect(ref: Ref) -> Visit:
        refs.append(ref)
        return Visit.CONTINUE

    walk_refs(node, collect)
    return refs


def _invalid_field(ref: Ref, value: Term, allowed: Iterable[str]) -> DataAccessError:
    fields = ", ".join(sorted(allowed))
    return DataAccessError(
        f"Invalid `{ROOT_DOCUMENT}` field: {render_term(value)}. Valid fields are: {fields}",
        ref=render_term(ref),
    )


def check_data_access(node, allowed_fields: Optional[Iterable[str]] = None) -> List[DataAccessError]:
    """
    Find every reference to the root document that is not allowed.

    A reference rooted at `data` must:
        - access a field (bare `data` is rejected)
        - use a literal for that field (`data[x]` is rejected)
        - name a field in `allowed_fields`

    A rejected reference is not descended into; every other reference in
    the module is still checked.

    Args:
        node: Module (or any node) to check
        allowed_fields: Allowed field names, DEFAULT_ALLOWED_FIELDS if None

    Returns:
        All violations in document order (empty if the module conforms)
    """
    allowed = frozenset(DEFAULT_ALLOWED_FIELDS if allowed_fields is None else allowed_fields)
    errors: List[DataAccessError] = []

    def check(ref: Ref) -> Visit:
        if not ref.has_root(ROOT_DOCUMENT):
            return Visit.CONTINUE

        text = render_term(ref)
        if len(ref) < 2:
            errors.append(DataAccessError(
                f"All references to `{ROOT_DOCUMENT}` must access a field of `{ROOT_DOCUMENT}`: {text}",
                ref=text,
            ))
            return Visit.SKIP

        field = ref.terms[1]
        if not is_ground(field):
            errors.append(DataAccessError(
                f"Fields of `{ROOT_DOCUMENT}` must be accessed with a literal value "
                f"(e.g. `{ROOT_DOCUMENT}.inventory`, not `{ROOT_DOCUMENT}[var]`): {text}",
                ref=text,
            ))
            return Visit.SKIP

        if not (isinstance(field, Scalar) and isinstance(field.value, str) and field.value in allowed):
            errors.append(_invalid_field(ref, field, allowed))
            return Visit.SKIP

        return Visit.CONTINUE

    walk_refs(node, check)
    logger.debug("Data access check found %d violation(s)", len(errors))
    return errors


__all__ = [
    "Visit",
    "DEFAULT_ALLOWED_FIELDS",
    "iter_children",
    "walk",
    "walk_refs",
    "iter_refs",
    "check_data_access",
]
