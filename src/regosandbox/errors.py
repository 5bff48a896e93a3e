"""
Error taxonomy for policy validation.

Every problem found while checking a module is an exception derived from
RegoError. Checks that must report every violation (data access, required
rules) raise an ErrorList, a non-empty aggregate of individual errors.
"""

from typing import Iterable, Iterator, List, Optional


class RegoError(Exception):
    """Base class for all validation errors."""
    pass


class EmptySourceError(RegoError):
    """Raised when the submitted source is empty or whitespace only."""

    def __init__(self, message: str = "Rego source code is empty"):
        super().__init__(message)


class RegoParseError(RegoError):
    """Raised when policy source cannot be parsed."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None,
                 name: Optional[str] = None):
        self.message = message
        self.line = line
        self.column = column
        self.name = name
        location = ""
        if line is not None:
            location = f"{line}:{column}: " if column is not None else f"{line}: "
        prefix = f"{name}:" if name else ""
        super().__init__(f"{prefix}{location}rego_parse_error: {message}")


class ImportsUsedError(RegoError):
    """Raised when a module declares any import."""

    def __init__(self, message: str = "Use of the `import` keyword is not allowed"):
        super().__init__(message)


class InvalidPackagePathError(RegoError):
    """Raised when the canonical package path cannot be expressed as a package."""
    pass


class InvalidSignatureError(RegoError):
    """Raised when a rule head key has a shape no arity can be inferred from."""
    pass


class MissingRuleError(RegoError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing required rule: {name}")


class ArityMismatchError(RegoError):
    def __init__(self, name: str, got: int, want: int):
        self.name = name
        self.got = got
        self.want = want
        super().__init__(f"Rule {name} has arity {got}, want {want}")


class ConfigError(RegoError):
    """Raised when a configuration document is malformed."""
    pass


class ErrorList(RegoError):
    """
    A non-empty, ordered collection of independently discovered errors.

    Renders as the newline-joined messages of its entries, so it can be
    shown to a policy author as-is.
    """

    def __init__(self, errors: Iterable[Exception]):
        self.errors: List[Exception] = list(errors)
        if not self.errors:
            raise ValueError("ErrorList requires at least one error")
        super().__init__(self.errors[0])

    def __str__(self) -> str:
        return "\n".join(str(e) for e in self.errors)

    def __iter__(self) -> Iterator[Exception]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __getitem__(self, index: int) -> Exception:
        return self.errors[index]


class DataAccessViolation(ErrorList):
    """Raised with every illegal reference to the root document."""
    pass


class DataAccessError(RegoError):
    """One illegal reference to the root document."""

    def __init__(self, message: str, ref: str):
        self.ref = ref
        super().__init__(message)


__all__ = [
    "RegoError",
    "EmptySourceError",
    "RegoParseError",
    "ImportsUsedError",
    "InvalidPackagePathError",
    "InvalidSignatureError",
    "MissingRuleError",
    "ArityMismatchError",
    "ConfigError",
    "ErrorList",
    "DataAccessViolation",
    "DataAccessError",
]
