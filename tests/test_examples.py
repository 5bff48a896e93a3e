"""
Test the example templates shipped for the demo.
"""

from regosandbox.examples import EXAMPLES
from regosandbox.rego_parser import parse_module
from regosandbox.walker import check_data_access


def test_examples_parse():
    for name, source in EXAMPLES.items():
        module = parse_module(name, source)
        assert module.rules, name


def test_only_escape_example_reaches_outside():
    for name, source in EXAMPLES.items():
        module = parse_module(name, source)
        module.package.path = []
        errors = check_data_access(module)
        assert bool(errors) == (name == "escape"), name
