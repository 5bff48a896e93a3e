"""
Rego Parser (Layer 1: Raw Source → Module Model).

Converts policy source text into a Module object.

Supported syntax:
    - package a.b["c-d"]
    - import data.lib.x as y
    - default allow = false
    - allow { ... }, p = v { ... }, p := v { ... }
    - violation[msg] { ... }, labels[k] = v { ... }
    - f(x) = y { ... } with `else = v { ... }` chains (the else body is optional)
    - body expressions separated by newlines or `;`
    - some, not, with ... as ...
    - := = == != < <= > >= + - * / % & |
    - scalars, raw strings, refs, calls (also indexed: split(x, ":")[0]),
      arrays, objects, sets and array/set/object comprehensions

Syntax Notes:
    - A bare `data` or `input` parses to a single-term Ref
    - Newlines are insignificant inside (), [] and object/set literals
"""

import json
import re
from dataclasses import dataclass
from typing import List, Optional

from regosandbox.errors import RegoParseError
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
    ROOT_DOCUMENT,
    INPUT_DOCUMENT,
)


_TOKEN_RE = re.compile(r"""
    (?P<SPACE>[ \t\r]+)
  | (?P<COMMENT>\#[^\n]*)
  | (?P<NEWLINE>\n)
  | (?P<RAWSTRING>`[^`]*`)
  | (?P<STRING>"(?:[^"\\\n]|\\.)*")
  | (?P<NUMBER>\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
  | (?P<IDENT>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<OP>:=|==|!=|<=|>=|[<>=+\-*/%&|()\[\]{},;:.])
""", re.VERBOSE)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

KEYWORDS = frozenset({
    "package", "import", "as", "default", "not", "with", "some", "else",
    "true", "false", "null",
})

_ROOT_NAMES = (ROOT_DOCUMENT, INPUT_DOCUMENT)

_COMPARISON_OPS = {
    "==": BinaryOperator.EQUALS,
    "!=": BinaryOperator.NOT_EQUALS,
    "<": BinaryOperator.LESS_THAN,
    "<=": BinaryOperator.LESS_EQUAL,
    ">": BinaryOperator.GREATER_THAN,
    ">=": BinaryOperator.GREATER_EQUAL,
}

_ARITH_OPS = {
    "+": BinaryOperator.PLUS,
    "-": BinaryOperator.MINUS,
}

_FACTOR_OPS = {
    "*": BinaryOperator.MULTIPLY,
    "/": BinaryOperator.DIVIDE,
    "%": BinaryOperator.MODULO,
}


def is_identifier(text: str) -> bool:
    """True if `text` can be written as a bare name (not a keyword)."""
    return bool(_IDENTIFIER_RE.match(text)) and text not in KEYWORDS


@dataclass
class Token:
    """One lexical token."""
    kind: str
    value: str
    line: int
    column: int


def tokenize(source: str, name: Optional[str] = None) -> List[Token]:
    """
    Split policy source into tokens.

    Whitespace and comments are dropped; newlines are kept because they
    separate body expressions.

    Raises:
        RegoParseError: On a character that starts no token
    """
    tokens: List[Token] = []
    pos = 0
    line = 1
    line_start = 0

    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise RegoParseError(
                f"unexpected character {source[pos]!r}",
                line=line, column=pos - line_start + 1, name=name,
            )
        kind = match.lastgroup
        value = match.group(kind)
        column = pos - line_start + 1

        if kind not in ("SPACE", "COMMENT"):
            tokens.append(Token(kind, value, line, column))

        # Raw strings may span lines
        newlines = value.count("\n")
        if newlines:
            line += newlines
            line_start = pos + value.rfind("\n") + 1
        pos = match.end()

    tokens.append(Token("EOF", "", line, pos - line_start + 1))
    return tokens


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, tokens: List[Token], name: Optional[str] = None):
        self.tokens = tokens
        self.pos = 0
        self.name = name

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != "EOF":
            self.pos += 1
        return token

    def at(self, value: str) -> bool:
        token = self.peek()
        return token.kind in ("OP", "IDENT") and token.value == value

    def accept(self, value: str) -> bool:
        if self.at(value):
            self.advance()
            return True
        return False

    def expect(self, value: str) -> Token:
        if not self.at(value):
            self.error(f"expected {value!r}")
        return self.advance()

    def skip_newlines(self) -> None:
        while self.peek().kind == "NEWLINE":
            self.advance()

    def skip_separators(self) -> None:
        while self.peek().kind == "NEWLINE" or self.at(";"):
            self.advance()

    def error(self, message: str, token: Optional[Token] = None):
        token = token or self.peek()
        found = "end of input" if token.kind == "EOF" else repr(token.value)
        raise RegoParseError(
            f"{message}, found {found}",
            line=token.line, column=token.column, name=self.name,
        )

    def expect_name(self) -> str:
        token = self.peek()
        if token.kind != "IDENT" or token.value in KEYWORDS:
            self.error("expected identifier")
        return self.advance().value

    # ------------------------------------------------------------------
    # Module structure
    # ------------------------------------------------------------------

    def parse_module(self) -> Module:
        self.skip_separators()
        if not self.at("package"):
            self.error("expected package declaration")
        package = self.parse_package()

        imports: List[Import] = []
        rules: List[Rule] = []
        self.skip_separators()
        while self.peek().kind != "EOF":
            if self.at("import"):
                imports.append(self.parse_import())
            elif self.at("package"):
                self.error("unexpected second package declaration")
            else:
                rules.append(self.parse_rule())
            self.end_of_statement()
            self.skip_separators()

        return Module(package=package, imports=imports, rules=rules)

    def end_of_statement(self) -> None:
        token = self.peek()
        if token.kind in ("NEWLINE", "EOF") or self.at(";"):
            return
        self.error("expected end of statement")

    def parse_package(self) -> Package:
        self.expect("package")
        path: List[Term] = [Var(ROOT_DOCUMENT), Scalar(self.expect_name())]
        while True:
            if self.accept("."):
                path.append(Scalar(self.advance_ident()))
            elif self.at("["):
                self.advance()
                token = self.peek()
                if token.kind not in ("STRING", "RAWSTRING"):
                    self.error("package path segments must be strings")
                path.append(self.parse_primary())
                self.expect("]")
            else:
                break
        return Package(path=path)

    def advance_ident(self) -> str:
        token = self.peek()
        if token.kind != "IDENT":
            self.error("expected identifier")
        return self.advance().value

    def parse_import(self) -> Import:
        self.expect("import")
        token = self.peek()
        path = self.parse_primary()
        if isinstance(path, Var):
            path = Ref((path,))
        if not isinstance(path, Ref):
            self.error("import path must be a reference", token)
        alias = None
        if self.accept("as"):
            alias = self.expect_name()
        return Import(path=path, alias=alias)

    def parse_rule(self) -> Rule:
        if self.accept("default"):
            name = self.expect_name()
            assign = self.at(":=")
            if not (self.accept("=") or self.accept(":=")):
                self.error("expected '=' or ':=' after default rule name")
            value = self.parse_or()
            return Rule(head=RuleHead(name=name, value=value, assign=assign), default=True)

        token = self.peek()
        name = self.expect_name()

        args = None
        if self.accept("("):
            args = tuple(self.parse_term_list(")"))

        key = None
        if args is None and self.accept("["):
            self.skip_newlines()
            key = self.parse_or()
            self.skip_newlines()
            self.expect("]")

        value = None
        assign = False
        if self.at("=") or self.at(":="):
            assign = self.advance().value == ":="
            value = self.parse_or()

        head = RuleHead(name=name, key=key, value=value, args=args, assign=assign)

        if not self.at("{"):
            if key is None and value is None:
                self.error(f"rule {name} must have a body or a value", token)
            return Rule(head=head)

        self.expect("{")
        body = self.parse_body("}")
        rule = Rule(head=head, body=body)
        rule.else_rule = self.parse_else(name, args)
        return rule

    def parse_else(self, name: str, args) -> Optional[Rule]:
        mark = self.pos
        self.skip_newlines()
        if not self.accept("else"):
            self.pos = mark
            return None
        value = None
        assign = False
        if self.at("=") or self.at(":="):
            assign = self.advance().value == ":="
            value = self.parse_or()
        head = RuleHead(name=name, value=value, args=args, assign=assign)
        if self.accept("{"):
            rule = Rule(head=head, body=self.parse_body("}"))
        elif value is None:
            self.error("else must have a body or a value")
        else:
            rule = Rule(head=head)
        rule.else_rule = self.parse_else(name, args)
        return rule

    def parse_body(self, closing: str) -> List[Expr]:
        """Parse body expressions up to and including `closing`."""
        body: List[Expr] = []
        self.skip_separators()
        while not self.at(closing):
            if self.peek().kind == "EOF":
                self.error(f"expected {closing!r} to close body")
            body.append(self.parse_expr())
            token = self.peek()
            if not (token.kind == "NEWLINE" or self.at(";") or self.at(closing)):
                self.error("expected newline or ';' between body expressions")
            self.skip_separators()
        self.expect(closing)
        if not body:
            self.error("body must contain at least one expression")
        return body

    def parse_expr(self) -> Expr:
        if self.accept("some"):
            variables = [Var(self.expect_name())]
            while self.accept(","):
                variables.append(Var(self.expect_name()))
            return Expr(term=SomeDecl(tuple(variables)))

        negated = self.accept("not")
        term = self.parse_or()
        if self.at(":=") or self.at("="):
            op = BinaryOperator.ASSIGN if self.advance().value == ":=" else BinaryOperator.UNIFY
            self.skip_newlines()
            term = BinaryTerm(op, term, self.parse_or())

        modifiers = []
        while self.accept("with"):
            target = self.parse_primary()
            self.expect("as")
            modifiers.append(WithModifier(target=target, value=self.parse_or()))

        return Expr(term=term, negated=negated, with_modifiers=tuple(modifiers))

    # ------------------------------------------------------------------
    # Terms, lowest precedence first
    # ------------------------------------------------------------------

    def parse_binary(self, next_level, operators) -> Term:
        left = next_level()
        while self.peek().kind == "OP" and self.peek().value in operators:
            op = operators[self.advance().value]
            self.skip_newlines()
            left = BinaryTerm(op, left, next_level())
        return left

    def parse_or(self) -> Term:
        return self.parse_binary(self.parse_and, {"|": BinaryOperator.UNION})

    def parse_and(self) -> Term:
        return self.parse_binary(self.parse_relation, {"&": BinaryOperator.INTERSECTION})

    def parse_relation(self) -> Term:
        return self.parse_binary(self.parse_arith, _COMPARISON_OPS)

    def parse_arith(self) -> Term:
        return self.parse_binary(self.parse_factor, _ARITH_OPS)

    def parse_factor(self) -> Term:
        return self.parse_binary(self.parse_primary, _FACTOR_OPS)

    def parse_primary(self) -> Term:
        token = self.peek()

        if token.kind == "STRING":
            self.advance()
            # Raw tabs are legal inside Rego strings; bad escapes are not
            try:
                return Scalar(json.loads(token.value, strict=False))
            except ValueError as exc:
                self.error(f"invalid string literal ({exc})", token)
        if token.kind == "RAWSTRING":
            self.advance()
            return Scalar(token.value[1:-1])
        if token.kind == "NUMBER":
            self.advance()
            return Scalar(number_value(token.value))
        if self.at("-") and self.tokens[self.pos + 1].kind == "NUMBER":
            self.advance()
            return Scalar(-number_value(self.advance().value))

        if self.accept("("):
            self.skip_newlines()
            term = self.parse_or()
            self.skip_newlines()
            self.expect(")")
            return term
        if self.accept("["):
            return self.parse_array()
        if self.accept("{"):
            return self.parse_brace()

        if token.kind == "IDENT":
            if token.value == "true":
                self.advance()
                return Scalar(True)
            if token.value == "false":
                self.advance()
                return Scalar(False)
            if token.value == "null":
                self.advance()
                return Scalar(None)
            if token.value in KEYWORDS:
                self.error("unexpected keyword")
            return self.parse_ref()

        self.error("unexpected token")

    def parse_ref(self) -> Term:
        name = self.advance().value
        terms: List[Term] = [Var(name)]
        dotted = True

        while True:
            if self.at("(") and dotted:
                self.advance()
                args = self.parse_term_list(")")
                operator = Ref(tuple(terms))
                if operator == Ref((Var("set"),)) and not args:
                    return SetTerm(())
                call = Call(operator=operator, args=tuple(args))
                # split(x, ":")[0] is a ref whose head is the call
                steps: List[Term] = [call]
                while self.parse_ref_step(steps):
                    pass
                return call if len(steps) == 1 else Ref(tuple(steps))
            if self.at("["):
                dotted = False
            if not self.parse_ref_step(terms):
                break

        if len(terms) == 1 and name not in _ROOT_NAMES:
            return terms[0]
        return Ref(tuple(terms))

    def parse_ref_step(self, terms: List[Term]) -> bool:
        """Append one `.field` or `[term]` step to `terms` if one follows."""
        if self.at(".") and self.tokens[self.pos + 1].kind == "IDENT":
            self.advance()
            terms.append(Scalar(self.advance().value))
            return True
        if self.at("["):
            self.advance()
            self.skip_newlines()
            terms.append(self.parse_or())
            self.skip_newlines()
            self.expect("]")
            return True
        return False

    def parse_term_list(self, closing: str) -> List[Term]:
        """Comma-separated terms up to and including `closing`."""
        items: List[Term] = []
        self.skip_newlines()
        while not self.at(closing):
            items.append(self.parse_or())
            self.skip_newlines()
            if not self.accept(","):
                break
            self.skip_newlines()
        self.skip_newlines()
        self.expect(closing)
        return items

    def parse_array(self) -> Term:
        self.skip_newlines()
        if self.accept("]"):
            return ArrayTerm(())
        first = self.parse_and()
        self.skip_newlines()
        if self.accept("|"):
            return ArrayComprehension(term=first, body=tuple(self.parse_body("]")))
        items = [first]
        if self.accept(","):
            items.extend(self.parse_term_list("]"))
        else:
            self.expect("]")
        return ArrayTerm(tuple(items))

    def parse_brace(self) -> Term:
        self.skip_newlines()
        if self.accept("}"):
            return ObjectTerm(())
        first = self.parse_and()
        self.skip_newlines()

        if self.accept(":"):
            self.skip_newlines()
            value = self.parse_and()
            self.skip_newlines()
            if self.accept("|"):
                body = self.parse_body("}")
                return ObjectComprehension(key=first, value=value, body=tuple(body))
            items = [(first, value)]
            while self.accept(","):
                self.skip_newlines()
                if self.at("}"):
                    break
                key = self.parse_and()
                self.skip_newlines()
                self.expect(":")
                self.skip_newlines()
                items.append((key, self.parse_and()))
                self.skip_newlines()
            self.expect("}")
            return ObjectTerm(tuple(items))

        if self.accept("|"):
            return SetComprehension(term=first, body=tuple(self.parse_body("}")))

        items = [first]
        if self.accept(","):
            items.extend(self.parse_term_list("}"))
        else:
            self.expect("}")
        return SetTerm(tuple(items))


def parse_module(name: str, source: str) -> Module:
    """
    Parse policy source into a Module object.

    Args:
        name: Label used in error messages (template kind, file name)
        source: Policy source text

    Returns:
        Module object with package, imports and rules

    Raises:
        RegoParseError: If parsing fails
    """
    tokens = tokenize(source, name=name)
    return _Parser(tokens, name=name).parse_module()


def parse_file(filepath: str) -> Module:
    """
    Parse a policy file into a Module object.

    Raises:
        FileNotFoundError: If file doesn't exist
        RegoParseError: If parsing fails
    """
    with open(filepath, "r", encoding="utf-8") as f:
        content = f.read()
    return parse_module(filepath, content)


__all__ = [
    "parse_module",
    "parse_file",
    "tokenize",
    "is_identifier",
    "Token",
    "KEYWORDS",
    "RegoParseError",
]
