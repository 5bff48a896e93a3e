"""
Conformance checks for user-submitted policy modules.

Before a module is accepted it must:
    - not import anything
    - only read the root document through an allowed, literal field
    - live at the package path chosen by the caller

ensure_conformance enforces the first two and rewrites the package,
returning normalized source that is safe to load.
"""

from typing import Iterable, Optional

from regosandbox.backends.rego_printer import render_module
from regosandbox.config import PolicyConfig
from regosandbox.errors import (
    DataAccessViolation,
    EmptySourceError,
    ImportsUsedError,
    InvalidPackagePathError,
)
from regosandbox.expressions import Ref, Scalar, Var
from regosandbox.log import get_logger
from regosandbox.model import Module, ROOT_DOCUMENT
from regosandbox.rego_parser import is_identifier, parse_module
from regosandbox.signatures import require_rules
from regosandbox.walker import check_data_access


logger = get_logger(__name__)


def package_ref(path: str) -> Ref:
    """
    Build the package reference for a dotted path.

    Example:
        "bar.baz" -> data.bar.baz

    Raises:
        InvalidPackagePathError: If a segment is empty or the first segment
            is not an identifier
    """
    parts = path.split(".")
    if any(part == "" for part in parts):
        raise InvalidPackagePathError(f"Invalid package path: {path!r}")
    if not is_identifier(parts[0]):
        raise InvalidPackagePathError(
            f"Invalid package path: {path!r}: first segment must be an identifier"
        )
    return Ref((Var(ROOT_DOCUMENT),) + tuple(Scalar(part) for part in parts))


def rewrite_package(module: Module, ref: Ref) -> str:
    """Point the module at the package `ref` and print it."""
    module.package.path = list(ref.terms)
    return render_module(module)


def ensure_conformance(kind: str, path: str, source: str,
                       allowed_fields: Optional[Iterable[str]] = None) -> str:
    """
    Validate a policy module and rewrite its package path.

    The printed result may look different from the input but is
    functionally the same apart from the package declaration.

    Args:
        kind: Label used in parse error messages (e.g. the template kind)
        path: Dotted package path to install the module at
        source: Policy source
        allowed_fields: Fields of the root document the module may read;
            DEFAULT_ALLOWED_FIELDS when None

    Returns:
        Normalized source with the rewritten package

    Raises:
        EmptySourceError: If `source` is blank
        RegoParseError: If `source` does not parse
        ImportsUsedError: If the module imports anything
        InvalidPackagePathError: If `path` cannot be a package
        DataAccessViolation: Every illegal root document reference
    """
    if not source or not source.strip():
        raise EmptySourceError()

    module = parse_module(kind, source)
    if module.imports:
        logger.info("Rejected %s: module uses imports", kind)
        raise ImportsUsedError()

    canonical = package_ref(path)

    # The package path itself is a root reference; it must not be checked.
    module.package.path = []
    errors = check_data_access(module, allowed_fields)
    if errors:
        logger.info("Rejected %s: %d illegal data reference(s)", kind, len(errors))
        raise DataAccessViolation(errors)

    logger.debug("Rewrote %s to package %s", kind, path)
    return rewrite_package(module, canonical)


def validate_policy(kind: str, path: str, source: str, config: Optional[PolicyConfig] = None) -> str:
    """
    Run every admission check for a submitted policy.

    Required rules are checked first, then conformance; the first failing
    check raises.

    Args:
        kind: Label for error messages
        path: Dotted package path to install the module at
        source: Policy source
        config: PolicyConfig; defaults when None

    Returns:
        Normalized source with the rewritten package
    """
    if config is None:
        config = PolicyConfig()
    if not source or not source.strip():
        raise EmptySourceError()
    require_rules(kind, source, config.required_rules)
    return ensure_conformance(kind, path, source, allowed_fields=config.allowed_fields)


__all__ = ["ensure_conformance", "package_ref", "rewrite_package", "validate_policy"]
