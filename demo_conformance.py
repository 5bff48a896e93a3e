#!/usr/bin/env python3
"""
Demo: Check the example constraint templates.

Runs every example through the required-rule and conformance checks and
prints either the rewritten source or the errors a policy author would see.
"""

import argparse

from regosandbox.config import PolicyConfig, load_config
from regosandbox.conformance import validate_policy
from regosandbox.errors import RegoError
from regosandbox.examples import EXAMPLES
from regosandbox.log import setup_logging


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", help="YAML policy config (allowed fields, required rules)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    setup_logging(verbose=args.verbose)
    config = load_config(args.config) if args.config else PolicyConfig(required_rules={"violation": 1})

    print("=" * 80)
    print("CONFORMANCE DEMO")
    print("=" * 80)

    for name, source in EXAMPLES.items():
        print(f"\n{name.upper()}:")
        print("-" * 80)
        try:
            print(validate_policy(name, f"templates.{name}", source, config=config))
        except RegoError as e:
            print(f"REJECTED ({type(e).__name__}):")
            print(e)


if __name__ == "__main__":
    main()
