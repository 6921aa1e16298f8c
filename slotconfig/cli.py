"""CLI entry point for the slot configuration engine.

Works on configuration YAML files offline: inspect layouts, validate
persisted documents, apply experiment variants, and export the built-in
defaults.

Usage::

    # Write the built-in cart layout to YAML
    python -m slotconfig.cli defaults --page cart --output layouts/cart.yaml

    # Show the sections and child slots of a layout
    python -m slotconfig.cli inspect --config layouts/cart.yaml -v

    # Check a persisted configuration for structural problems
    python -m slotconfig.cli validate --config layouts/cart.yaml

    # Apply experiment variants and write the merged layout
    python -m slotconfig.cli merge \\
        --config layouts/cart.yaml \\
        --variants experiments/coupon_test.yaml experiments/header_test.yaml \\
        --output output/cart_merged.yaml
"""

import argparse
import sys
from pathlib import Path

from slotconfig.experiments.merge import merge
from slotconfig.processor.transcoder import decode, encode
from slotconfig.qa.validator import validate_configuration
from slotconfig.schema.defaults import PAGE_TYPES, build_default_configuration
from slotconfig.schema.loader import (
    load_configuration_document,
    load_variants,
    save_configuration,
)
from slotconfig.schema.models import SlotConfiguration


# ---------------------------------------------------------------------------
# Configuration loading
# ---------------------------------------------------------------------------

def _read_document(path):
    path = Path(path)
    if not path.exists():
        _error(f"Configuration file not found: {path}")
    return load_configuration_document(path)


def _load_configuration(args):
    """Load a SlotConfiguration from CLI args (--config or --page)."""
    if getattr(args, "config", None):
        state = decode(_read_document(args.config), args.page)
        if state.from_default:
            _warn(f"{args.config} is not a usable configuration; showing the {args.page} default")
        return encode(state)
    return build_default_configuration(args.page)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_inspect(args):
    """Show the structure of a layout."""
    config = _load_configuration(args)

    print(f"Page:     {config.metadata.page_name or args.page}")
    print(f"Sections: {len(config.major_slots)}")
    print(f"Slots:    {len(config.slots)}")
    print(f"Custom:   {len(config.custom_slots)}")

    if args.verbose:
        print()
        for major_id in config.major_slots:
            children = config.children(major_id)
            print(f"  {major_id} ({len(children)} child slot(s))")
            for child_id in children:
                span = config.span_for(major_id, child_id)
                size = f"{span.col}x{span.row}" if span else "default"
                custom = " (custom)" if config.is_custom(child_id) else ""
                print(f"      {child_id} [{size}]{custom}")


def cmd_validate(args):
    """Validate a persisted configuration document."""
    document = _read_document(args.config)
    _info(f"Validating {args.config}")

    result = validate_configuration(document)

    print(result.report())
    sys.exit(0 if result.passed else 1)


def cmd_merge(args):
    """Apply experiment variants to a configuration and write the result."""
    document = _read_document(args.config)
    result = validate_configuration(document)
    if not result.passed:
        print(result.report(), file=sys.stderr)
        _error(f"{args.config} is not a valid configuration")
    base = SlotConfiguration.from_dict(document)

    variants = []
    for path in args.variants:
        path = Path(path)
        if not path.exists():
            _error(f"Variant file not found: {path}")
        loaded = load_variants(path)
        if not loaded:
            _warn(f"No variants in {path}")
        variants.extend(loaded)

    merged = merge(base, variants)
    for variant in variants:
        state = "skipped (control)" if variant.is_control else "applied"
        _info(f"{variant.test_id}:{variant.variant_name} {state}"
              f" ({len(variant.slot_overrides)} override(s))")

    save_configuration(merged, args.output)
    _info(f"Written: {args.output} ({len(merged.slots)} slots)")


def cmd_defaults(args):
    """Write a built-in default layout to YAML."""
    config = build_default_configuration(args.page)
    save_configuration(config, args.output)
    _info(f"Written: {args.output} ({config.metadata.page_name}, {len(config.slots)} slots)")


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _info(msg):
    print(f"  {msg}", file=sys.stderr)


def _warn(msg):
    print(f"  WARNING: {msg}", file=sys.stderr)


def _error(msg):
    print(f"  ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="slotconfig",
        description="Inspect, validate and merge storefront slot layouts.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- inspect ----
    insp = subparsers.add_parser(
        "inspect",
        help="Show sections, child slots and spans of a layout.",
    )
    _add_page_arg(insp)
    insp.add_argument(
        "--config",
        help="Path to a configuration YAML file (default: built-in layout).",
    )
    insp.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Show per-section detail.",
    )
    insp.set_defaults(func=cmd_inspect)

    # ---- validate ----
    val = subparsers.add_parser(
        "validate",
        help="Check a persisted configuration for structural problems.",
    )
    val.add_argument(
        "--config",
        required=True,
        help="Path to the configuration YAML file to validate.",
    )
    val.set_defaults(func=cmd_validate)

    # ---- merge ----
    mrg = subparsers.add_parser(
        "merge",
        help="Apply experiment variant overrides to a configuration.",
    )
    mrg.add_argument(
        "--config",
        required=True,
        help="Path to the base configuration YAML file.",
    )
    mrg.add_argument(
        "--variants",
        nargs="+",
        required=True,
        help="Variant YAML files, applied in the order given.",
    )
    mrg.add_argument(
        "-o", "--output",
        required=True,
        help="Output YAML file path.",
    )
    mrg.set_defaults(func=cmd_merge)

    # ---- defaults ----
    dft = subparsers.add_parser(
        "defaults",
        help="Write a built-in default layout to YAML.",
    )
    _add_page_arg(dft)
    dft.add_argument(
        "-o", "--output",
        required=True,
        help="Output YAML file path.",
    )
    dft.set_defaults(func=cmd_defaults)

    return parser


def _add_page_arg(parser):
    """Add the --page arg to a subparser."""
    parser.add_argument(
        "--page",
        choices=list(PAGE_TYPES),
        default="cart",
        help="Page type (default: cart).",
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
