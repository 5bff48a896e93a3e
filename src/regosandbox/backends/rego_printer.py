"""
Canonical Rego printer for parsed modules.

Converts a Module object back into policy source text.

Output guarantees:
    - Re-parses to a module equal to the one printed
    - One body expression per line, tab indented
    - Infix operators parenthesized only where precedence requires it

Layout is normalized, so printed source may look different from what the
author wrote while meaning the same thing.
"""

import json
from typing import List

from regosandbox.expressions import (
    Term,
    Scalar,
    Var,
    Ref,
    ArrayTerm,
    SetTerm,
    ObjectTerm,
    Call,
    BinaryOperator,
    BinaryTerm,
    ArrayComprehension,
    SetComprehension,
    ObjectComprehension,
    number_text,
)
from regosandbox.model import Module, Package, Import, Rule, Expr, SomeDecl
from regosandbox.rego_parser import is_identifier


INDENT = "\t"

# Lowest binds loosest. Mirrors the parser's precedence ladder.
_PRECEDENCE = {
    BinaryOperator.ASSIGN: 0,
    BinaryOperator.UNIFY: 0,
    BinaryOperator.UNION: 1,
    BinaryOperator.INTERSECTION: 2,
    BinaryOperator.EQUALS: 3,
    BinaryOperator.NOT_EQUALS: 3,
    BinaryOperator.LESS_THAN: 3,
    BinaryOperator.LESS_EQUAL: 3,
    BinaryOperator.GREATER_THAN: 3,
    BinaryOperator.GREATER_EQUAL: 3,
    BinaryOperator.PLUS: 4,
    BinaryOperator.MINUS: 4,
    BinaryOperator.MULTIPLY: 5,
    BinaryOperator.DIVIDE: 5,
    BinaryOperator.MODULO: 5,
}


def _scalar_to_rego(value) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return number_text(value)


def _ref_to_rego(ref: Ref) -> str:
    parts = [render_term(ref.terms[0])]
    for term in ref.terms[1:]:
        if isinstance(term, Scalar) and isinstance(term.value, str) and is_identifier(term.value):
            parts.append(f".{term.value}")
        else:
            parts.append(f"[{render_term(term)}]")
    return "".join(parts)


def _operand(term: Term, parent: BinaryOperator, right: bool) -> str:
    """Render an operand of `parent`, adding parentheses when needed."""
    text = render_term(term)
    if isinstance(term, BinaryTerm):
        mine = _PRECEDENCE[term.operator]
        theirs = _PRECEDENCE[parent]
        # Operators are left-associative, so a right operand at the same level needs parens
        if mine < theirs or (right and mine == theirs):
            return f"({text})"
    return text


def _element(term: Term) -> str:
    """Render a collection element; a top-level union would read as a comprehension."""
    text = render_term(term)
    if isinstance(term, BinaryTerm) and _PRECEDENCE[term.operator] <= 1:
        return f"({text})"
    return text


def _body_inline(body) -> str:
    return "; ".join(render_expr(expr) for expr in body)


def render_term(term: Term) -> str:
    """
    Render a single term as Rego source.

    Raises:
        TypeError: On an unknown term type
    """
    if isinstance(term, Scalar):
        return _scalar_to_rego(term.value)

    if isinstance(term, Var):
        return term.name

    if isinstance(term, Ref):
        return _ref_to_rego(term)

    if isinstance(term, Call):
        args = ", ".join(render_term(arg) for arg in term.args)
        return f"{_ref_to_rego(term.operator)}({args})"

    if isinstance(term, BinaryTerm):
        left = _operand(term.left, term.operator, right=False)
        right = _operand(term.right, term.operator, right=True)
        return f"{left} {term.operator.value} {right}"

    if isinstance(term, ArrayTerm):
        return "[" + ", ".join(_element(item) for item in term.items) + "]"

    if isinstance(term, SetTerm):
        if not term.items:
            return "set()"
        return "{" + ", ".join(_element(item) for item in term.items) + "}"

    if isinstance(term, ObjectTerm):
        pairs = ", ".join(f"{_element(k)}: {_element(v)}" for k, v in term.items)
        return "{" + pairs + "}"

    if isinstance(term, ArrayComprehension):
        return f"[{_element(term.term)} | {_body_inline(term.body)}]"

    if isinstance(term, SetComprehension):
        return f"{{{_element(term.term)} | {_body_inline(term.body)}}}"

    if isinstance(term, ObjectComprehension):
        return f"{{{_element(term.key)}: {_element(term.value)} | {_body_inline(term.body)}}}"

    raise TypeError(f"Unsupported Term type: {type(term)}")


def render_expr(expr: Expr) -> str:
    if isinstance(expr.term, SomeDecl):
        return "some " + ", ".join(v.name for v in expr.term.variables)
    text = render_term(expr.term)
    if expr.negated:
        text = f"not {text}"
    for modifier in expr.with_modifiers:
        text += f" with {render_term(modifier.target)} as {render_term(modifier.value)}"
    return text


def render_package(package: Package) -> str:
    """
    Render the package declaration (root document omitted).

    Raises:
        ValueError: If the package has no path below the root
    """
    if len(package.path) < 2:
        raise ValueError("package path must contain at least one segment below the root")
    first = package.path[1]
    if not (isinstance(first, Scalar) and isinstance(first.value, str) and is_identifier(first.value)):
        raise ValueError(f"package path must start with an identifier: {render_term(first)}")
    rest = Ref((Var(first.value),) + tuple(package.path[2:]))
    return f"package {_ref_to_rego(rest)}"


def render_import(imp: Import) -> str:
    text = f"import {_ref_to_rego(imp.path)}"
    if imp.alias:
        text += f" as {imp.alias}"
    return text


def _render_head(rule: Rule, name: bool = True) -> str:
    head = rule.head
    text = head.name if name else "else"
    if name and head.args is not None:
        text += "(" + ", ".join(render_term(arg) for arg in head.args) + ")"
    if name and head.key is not None:
        text += f"[{render_term(head.key)}]"
    if head.value is not None:
        text += f" {':=' if head.assign else '='} {render_term(head.value)}"
    return text


def _render_body(body: List[Expr]) -> List[str]:
    return [f"{INDENT}{render_expr(expr)}" for expr in body]


def render_rule(rule: Rule) -> str:
    if rule.default:
        return f"default {_render_head(rule)}"

    head = _render_head(rule)
    if not rule.body:
        if rule.head.key is None and rule.head.value is None:
            return f"{head} {{\n{INDENT}true\n}}"
        return head

    lines = [f"{head} {{"]
    lines.extend(_render_body(rule.body))
    closing = "}"
    current = rule.else_rule
    while current is not None:
        else_head = f"{closing} {_render_head(current, name=False)}".lstrip()
        if current.body:
            lines.append(f"{else_head} {{")
            lines.extend(_render_body(current.body))
            closing = "}"
        else:
            # A body-less else closes the chain line itself
            lines.append(else_head)
            closing = ""
        current = current.else_rule
    if closing:
        lines.append(closing)
    return "\n".join(lines)


def render_module(module: Module) -> str:
    """
    Render a whole module as policy source.

    Args:
        module: Module to print

    Returns:
        Source text ending in a newline
    """
    sections = [render_package(module.package)]

    if module.imports:
        sections.append("\n".join(render_import(imp) for imp in module.imports))

    for rule in module.rules:
        sections.append(render_rule(rule))

    return "\n\n".join(sections) + "\n"


__all__ = ["render_module", "render_rule", "render_term", "render_expr", "render_package"]
