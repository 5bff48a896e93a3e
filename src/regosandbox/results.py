"""
Evaluation result types handed back to callers.

These are plain data holders: the evaluator fills them in, the target
that asked for the review adds the violating resource, and the caller
decides what to do with them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml


@dataclass
class Result:
    """
    One policy violation.

    Properties:
        msg: Human-readable message from the rule
        metadata: Contents of `details` from the rule head
        constraint: The constraint object that was violated
        review: The review object that was evaluated
        resource: The violating resource, filled in by the target
    """

    msg: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    constraint: Optional[Dict[str, Any]] = None
    review: Any = None
    resource: Any = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.msg:
            d["msg"] = self.msg
        if self.metadata:
            d["metadata"] = self.metadata
        if self.constraint is not None:
            d["constraint"] = self.constraint
        if self.review is not None:
            d["review"] = self.review
        d["resource"] = self.resource
        return d

    def dump(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=True, default_flow_style=False)


@dataclass
class Response:
    """
    All results for one target.

    Properties:
        target: Target identifier
        results: Violations, in evaluation order
        trace: Evaluation trace, None when tracing is disabled
        input: Raw input given to the evaluator, None when tracing is disabled
    """

    target: str
    results: List[Result] = field(default_factory=list)
    trace: Optional[str] = None
    input: Optional[str] = None

    def trace_dump(self) -> str:
        lines = [f"Target: {self.target}"]
        if self.input is None:
            lines.append("Input: TRACING DISABLED\n")
        else:
            lines.append(f"Input:\n{self.input}\n")
        if self.trace is None:
            lines.append("Trace: TRACING DISABLED\n")
        else:
            lines.append(f"Trace:\n{self.trace}\n")
        for i, result in enumerate(self.results):
            lines.append(f"Result({i}):\n{result.dump()}\n")
        return "\n".join(lines) + "\n"


class Responses(dict):
    """Responses keyed by target identifier."""

    def results(self) -> List[Result]:
        """Every result of every target, target by target."""
        out: List[Result] = []
        for response in self.values():
            out.extend(response.results)
        return out

    def trace_dump(self) -> str:
        return "".join(f"{response.trace_dump()}\n\n" for response in self.values())


__all__ = ["Result", "Response", "Responses"]
