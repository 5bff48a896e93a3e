"""Backends for Module output generation (canonical Rego source)."""

from .rego_printer import render_module, render_rule, render_term

__all__ = ["render_module", "render_rule", "render_term"]
