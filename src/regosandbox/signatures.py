"""
Rule signature checks.

A constraint template must declare certain rules (e.g. `violation`) with
a fixed number of result slots. The slot count (arity) is read off the
shape of the rule's head key:

    allow { ... }                        -> 0
    violation[msg] { ... }               -> 1
    violation[{"msg": msg}] { ... }      -> 1
    violation[[msg, details]] { ... }    -> 2
"""

from typing import Dict, List, Mapping

from regosandbox.backends.rego_printer import render_term
from regosandbox.errors import (
    ArityMismatchError,
    ErrorList,
    InvalidSignatureError,
    MissingRuleError,
)
from regosandbox.expressions import ArrayTerm, ObjectTerm, Var
from regosandbox.log import get_logger
from regosandbox.model import Module, Rule
from regosandbox.rego_parser import parse_module


logger = get_logger(__name__)


def get_rule_arity(rule: Rule) -> int:
    """
    Infer the arity of a rule from its head key.

    Only no key, a single variable, a single object, or an array of
    variables and objects are accepted. Objects are allowed because
    authors often build the review object right in the rule head.

    Raises:
        InvalidSignatureError: If the key has any other shape
    """
    key = rule.head.key
    if key is None:
        return 0

    if isinstance(key, (Var, ObjectTerm)):
        return 1

    if isinstance(key, ArrayTerm):
        if not all(isinstance(item, (Var, ObjectTerm)) for item in key.items):
            raise InvalidSignatureError(
                "Invalid rule signature: only single variables or arrays of variables "
                f"or objects allowed: {render_term(key)}"
            )
        return len(key.items)

    raise InvalidSignatureError(
        f"Invalid rule signature, only variables or arrays allowed: {render_term(key)}"
    )


def rule_arities(module: Module) -> Dict[str, int]:
    """
    Map every rule name in the module to its arity.

    When a name is declared more than once the last declaration wins.

    Raises:
        InvalidSignatureError: On the first rule whose arity cannot be inferred
    """
    arities: Dict[str, int] = {}
    for rule in module.rules:
        arity = get_rule_arity(rule)
        previous = arities.get(rule.name)
        if previous is not None and previous != arity:
            logger.warning(
                "Rule %s declared with arity %d and %d; keeping %d",
                rule.name, previous, arity, arity,
            )
        arities[rule.name] = arity
    return arities


def require_rules(label: str, source: str, required: Mapping[str, int]) -> None:
    """
    Make sure the listed rules are declared with the required arity.

    Args:
        label: Name used in parse error messages
        source: Policy source
        required: Rule name -> required arity

    Raises:
        RegoParseError: If the source does not parse
        InvalidSignatureError: If any rule has an unsupported head key
        ErrorList: Every missing rule and arity mismatch, in `required` order
    """
    module = parse_module(label, source)
    arities = rule_arities(module)

    errors: List[Exception] = []
    for name, want in required.items():
        got = arities.get(name)
        if got is None:
            errors.append(MissingRuleError(name))
            continue
        if got != want:
            errors.append(ArityMismatchError(name, got, want))

    if errors:
        logger.info("%s is missing required rules: %d problem(s)", label, len(errors))
        raise ErrorList(errors)


__all__ = ["get_rule_arity", "rule_arities", "require_rules"]
