"""
Serialization helpers for parsed modules (Module, Rule, Term).

Provides lossless JSON/YAML round-trip of the Module AST via an
intermediate dict representation, for inspecting what the parser saw.
This module intentionally keeps serialization structure stable and explicit.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

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
    number_value,
)
from regosandbox.model import (
    Module,
    Package,
    Import,
    Rule,
    RuleHead,
    Expr,
    SomeDecl,
    WithModifier,
)


def _scalar_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    return "number"


def term_to_dict(term: Term | None) -> Any:
    if term is None:
        return None
    if isinstance(term, Scalar):
        kind = _scalar_type(term.value)
        # Numbers keep their literal text so precision survives JSON and YAML
        value = number_text(term.value) if kind == "number" else term.value
        return {"type": kind, "value": value}
    if isinstance(term, Var):
        return {"type": "var", "value": term.name}
    if isinstance(term, Ref):
        return {"type": "ref", "value": [term_to_dict(t) for t in term.terms]}
    if isinstance(term, ArrayTerm):
        return {"type": "array", "value": [term_to_dict(t) for t in term.items]}
    if isinstance(term, SetTerm):
        return {"type": "set", "value": [term_to_dict(t) for t in term.items]}
    if isinstance(term, ObjectTerm):
        return {"type": "object", "value": [[term_to_dict(k), term_to_dict(v)] for k, v in term.items]}
    if isinstance(term, Call):
        return {
            "type": "call",
            "operator": term_to_dict(term.operator),
            "args": [term_to_dict(a) for a in term.args],
        }
    if isinstance(term, BinaryTerm):
        return {
            "type": "binary",
            "operator": term.operator.value,
            "left": term_to_dict(term.left),
            "right": term_to_dict(term.right),
        }
    if isinstance(term, ArrayComprehension):
        return {"type": "arraycomprehension", "term": term_to_dict(term.term), "body": body_to_list(term.body)}
    if isinstance(term, SetComprehension):
        return {"type": "setcomprehension", "term": term_to_dict(term.term), "body": body_to_list(term.body)}
    if isinstance(term, ObjectComprehension):
        return {
            "type": "objectcomprehension",
            "key": term_to_dict(term.key),
            "value": term_to_dict(term.value),
            "body": body_to_list(term.body),
        }
    raise TypeError(f"Unsupported Term type: {type(term)}")


def term_from_dict(d: Any) -> Term | None:
    if d is None:
        return None
    t = d.get("type")
    if t == "number":
        return Scalar(number_value(str(d["value"])))
    if t in ("null", "boolean", "string"):
        return Scalar(d["value"])
    if t == "var":
        return Var(d["value"])
    if t == "ref":
        return Ref(tuple(term_from_dict(x) for x in d["value"]))
    if t == "array":
        return ArrayTerm(tuple(term_from_dict(x) for x in d["value"]))
    if t == "set":
        return SetTerm(tuple(term_from_dict(x) for x in d["value"]))
    if t == "object":
        return ObjectTerm(tuple((term_from_dict(k), term_from_dict(v)) for k, v in d["value"]))
    if t == "call":
        return Call(
            operator=term_from_dict(d["operator"]),
            args=tuple(term_from_dict(a) for a in d["args"]),
        )
    if t == "binary":
        return BinaryTerm(
            operator=BinaryOperator(d["operator"]),
            left=term_from_dict(d["left"]),
            right=term_from_dict(d["right"]),
        )
    if t == "arraycomprehension":
        return ArrayComprehension(term=term_from_dict(d["term"]), body=tuple(body_from_list(d["body"])))
    if t == "setcomprehension":
        return SetComprehension(term=term_from_dict(d["term"]), body=tuple(body_from_list(d["body"])))
    if t == "objectcomprehension":
        return ObjectComprehension(
            key=term_from_dict(d["key"]),
            value=term_from_dict(d["value"]),
            body=tuple(body_from_list(d["body"])),
        )
    raise TypeError(f"Unsupported term dict type: {t}")


def expr_to_dict(expr: Expr) -> Dict[str, Any]:
    if isinstance(expr.term, SomeDecl):
        return {"some": [v.name for v in expr.term.variables]}
    d: Dict[str, Any] = {"terms": term_to_dict(expr.term)}
    if expr.negated:
        d["negated"] = True
    if expr.with_modifiers:
        d["with"] = [
            {"target": term_to_dict(w.target), "value": term_to_dict(w.value)}
            for w in expr.with_modifiers
        ]
    return d


def expr_from_dict(d: Dict[str, Any]) -> Expr:
    if "some" in d:
        return Expr(term=SomeDecl(tuple(Var(name) for name in d["some"])))
    modifiers = tuple(
        WithModifier(target=term_from_dict(w["target"]), value=term_from_dict(w["value"]))
        for w in d.get("with", [])
    )
    return Expr(term=term_from_dict(d["terms"]), negated=d.get("negated", False), with_modifiers=modifiers)


def body_to_list(body) -> List[Dict[str, Any]]:
    return [expr_to_dict(e) for e in body]


def body_from_list(items) -> List[Expr]:
    return [expr_from_dict(e) for e in items]


def rule_to_dict(r: Rule) -> Dict[str, Any]:
    head = r.head
    return {
        "head": {
            "name": head.name,
            "key": term_to_dict(head.key),
            "value": term_to_dict(head.value),
            "args": None if head.args is None else [term_to_dict(a) for a in head.args],
            "assign": head.assign,
        },
        "body": body_to_list(r.body),
        "default": r.default,
        "else": rule_to_dict(r.else_rule) if r.else_rule is not None else None,
    }


def rule_from_dict(d: Dict[str, Any]) -> Rule:
    h = d["head"]
    head = RuleHead(
        name=h["name"],
        key=term_from_dict(h.get("key")),
        value=term_from_dict(h.get("value")),
        args=None if h.get("args") is None else tuple(term_from_dict(a) for a in h["args"]),
        assign=h.get("assign", False),
    )
    return Rule(
        head=head,
        body=body_from_list(d.get("body", [])),
        default=d.get("default", False),
        else_rule=rule_from_dict(d["else"]) if d.get("else") else None,
    )


def module_to_dict(m: Module) -> Dict[str, Any]:
    return {
        "package": {"path": [term_to_dict(t) for t in m.package.path]},
        "imports": [
            {"path": term_to_dict(i.path), "alias": i.alias} for i in m.imports
        ],
        "rules": [rule_to_dict(r) for r in m.rules],
    }


def module_from_dict(d: Dict[str, Any]) -> Module:
    package = Package(path=[term_from_dict(t) for t in d["package"]["path"]])
    imports = [Import(path=term_from_dict(i["path"]), alias=i.get("alias")) for i in d.get("imports", [])]
    rules = [rule_from_dict(r) for r in d.get("rules", [])]
    return Module(package=package, imports=imports, rules=rules)


def module_to_json(m: Module) -> str:
    return json.dumps(module_to_dict(m), sort_keys=True)


def module_from_json(s: str) -> Module:
    return module_from_dict(json.loads(s))


def module_to_yaml(m: Module) -> str:
    return yaml.safe_dump(module_to_dict(m))


def module_from_yaml(s: str) -> Module:
    return module_from_dict(yaml.safe_load(s))
