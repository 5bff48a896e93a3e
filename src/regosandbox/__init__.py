"""
Rego Policy Sandbox Package

Checks user-submitted Rego policies before they are loaded into an
admission-control pipeline.

GUARANTEES for every accepted module:
-------------------------------------
    - No imports
    - `data` is only read through allowed, literal fields
    - Required rules are declared with the required arity
    - The package is rewritten to the caller's canonical path

Evaluation of policies happens elsewhere. This package only looks at
their structure.
"""

from regosandbox.conformance import ensure_conformance, validate_policy
from regosandbox.signatures import require_rules

__version__ = "0.1.0"

__all__ = ["ensure_conformance", "require_rules", "validate_policy", "__version__"]
