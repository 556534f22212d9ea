#!/usr/bin/env python3
"""Command-line interface for Spellcheck Control.

This module provides the CLI for managing rules and testing decisions:
- Listing, adding, removing, enabling and disabling rules
- Checking the spellcheck decision for a document
- Explaining which rules match a document
- Configuration file and logging setup

Example:
    >>> from spellcheck_control.cli import main
    >>> main(["--settings", "rules.yaml", "check", "Drafts/post.md", "--tag", "draft"])
"""

import argparse
import asyncio
import sys
from typing import Dict, List, Optional

import yaml

from spellcheck_control.core.config import ConfigError, ConfigManager, ConfigSource
from spellcheck_control.core.constants import SPELLCHECK_CONTROL_VERSION, ConfigKey
from spellcheck_control.core.logging import Logger, set_global_logger
from spellcheck_control.integration.document import Document, InMemoryMetadata
from spellcheck_control.rules.engine import RuleEngine
from spellcheck_control.rules.models import RuleKind, rule_from_dict, rule_to_dict
from spellcheck_control.settings import SettingsError, SettingsStore

DESCRIPTION = "Spellcheck Control - rule-based spellcheck switching for note vaults"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def _add_document_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("document", metavar="PATH", help="Vault-relative document path")
    parser.add_argument(
        "--tag",
        dest="tags",
        metavar="TAG",
        action="append",
        default=[],
        help="Tag carried by the document (repeatable)",
    )
    parser.add_argument(
        "--property",
        dest="properties",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Frontmatter property of the document, value in YAML syntax (repeatable)",
    )


def _add_index_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("index", type=int, help="Rule position, starting at 1")


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
    """
    parser = argparse.ArgumentParser(
        prog="spellcheck-control",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Disable spellcheck for everything under Code/
  spellcheck-control add --kind folder --path Code --name Code

  # Re-enable it for documents tagged #prose
  spellcheck-control add --kind tag --tag prose --enable-spellcheck

  # See what a document would get
  spellcheck-control check Code/notes.md --tag prose --property status=draft
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {SPELLCHECK_CONTROL_VERSION}",
    )
    parser.add_argument(
        "-c", "--config", metavar="FILE", help="Configuration file path (YAML format)"
    )
    parser.add_argument(
        "-s", "--settings", metavar="FILE", help="Rule settings file (YAML or JSON)"
    )
    parser.add_argument(
        "--strict-folder-boundary",
        action="store_true",
        default=None,
        help="Recursive folder rules match only the folder and its subfolders",
    )

    log_group = parser.add_argument_group("logging options")
    log_group.add_argument("--debug", action="store_true", help="Enable debug logging")
    log_group.add_argument("--log-file", metavar="FILE", help="Also log to this file")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    commands.add_parser("list", help="List rules in evaluation order")

    add = commands.add_parser("add", help="Append a rule")
    add.add_argument(
        "--kind",
        choices=[k.value for k in RuleKind if k != RuleKind.MULTI],
        default=RuleKind.FOLDER.value,
        help="Rule kind (default: folder)",
    )
    add.add_argument("--name", default="New Rule", help="Display name")
    add.add_argument("--negated", action="store_true", help="Match when the condition fails")
    add.add_argument(
        "--enable-spellcheck",
        action="store_true",
        help="Enable spellcheck on match (default: disable)",
    )
    add.add_argument("--disabled", action="store_true", help="Add the rule disabled")
    add.add_argument("--path", help="Folder path ('/' for the vault root)")
    add.add_argument(
        "--no-recursive",
        dest="recursive",
        action="store_false",
        help="Match only documents directly in the folder",
    )
    add.add_argument("--tag", help="Tag, with or without '#'")
    add.add_argument("--include-subtags", action="store_true", help="Also match subtags")
    add.add_argument("--property-name", help="Frontmatter property name")
    add.add_argument("--property-value", help="Wanted value (blank: property exists)")
    add.add_argument("--query", help="External query string")

    for name, help_text in (
        ("remove", "Remove a rule"),
        ("enable", "Enable a rule"),
        ("disable", "Disable a rule"),
    ):
        _add_index_argument(commands.add_parser(name, help=help_text))

    _add_document_arguments(commands.add_parser("check", help="Show the decision for a document"))
    _add_document_arguments(
        commands.add_parser("explain", help="List every enabled rule matching a document")
    )

    return parser.parse_args(args)


def load_config(args: argparse.Namespace) -> ConfigManager:
    """
    Build the configuration from the config file and command-line flags.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration manager

    Raises:
        CLIError: If the config file cannot be loaded
    """
    try:
        config = ConfigManager(args.config)
    except ConfigError as e:
        raise CLIError(e.message)

    runtime: Dict = {}
    if args.settings:
        runtime["settings_file"] = args.settings
    if args.debug:
        runtime["logging"] = {"level": "DEBUG"}
    if args.log_file:
        runtime.setdefault("logging", {})["file"] = args.log_file
    if args.strict_folder_boundary:
        runtime["evaluation"] = {"strict_folder_boundary": True}

    if runtime:
        config.load_dict({ConfigKey.ROOT: runtime}, ConfigSource.RUNTIME)
    return config


def setup_logging(config: ConfigManager) -> Logger:
    """
    Setup logging from configuration.

    Args:
        config: Configuration manager

    Returns:
        Configured logger instance, also installed as the global logger

    Raises:
        CLIError: If the configured log level is not a known level name
    """
    level = config.get(ConfigKey.LOG_LEVEL, "INFO")
    try:
        logger = Logger(level=str(level))
    except KeyError:
        raise CLIError(f"Invalid log level: {level}")

    log_file = config.get(ConfigKey.LOG_FILE)
    if log_file:
        logger.add_handler(logger.create_file_handler(log_file))

    set_global_logger(logger)
    return logger


def parse_property(item: str) -> tuple:
    """
    Split a ``KEY=VALUE`` argument, parsing VALUE as YAML.

    Raises:
        CLIError: If the argument has no "=" or an empty key
    """
    key, sep, raw = item.partition("=")
    if not sep or not key.strip():
        raise CLIError(f"Invalid property (expected KEY=VALUE): {item}")
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        value = raw
    return key.strip(), value


def build_metadata(args: argparse.Namespace) -> tuple:
    """Create the document and its metadata from command-line arguments."""
    document = Document.from_path(args.document)
    metadata = InMemoryMetadata()
    metadata.set_tags(document, args.tags)
    if args.properties:
        metadata.set_frontmatter(document, dict(parse_property(p) for p in args.properties))
    return document, metadata


def describe_rule(rule) -> str:
    """One-line summary of a rule."""
    data = rule_to_dict(rule)
    params = " ".join(
        f"{key}={value!r}"
        for key, value in data.items()
        if key not in ("type", "name", "enabled", "negated", "enable_spellcheck")
    )
    state = "on " if rule.enabled else "off"
    outcome = "enable" if rule.enable_spellcheck else "disable"
    condition = "not " if rule.negated else ""
    return f"[{state}] {rule.name} ({condition}{rule.kind.value} {params}) -> {outcome}"


def run_command(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    """
    Execute the selected subcommand.

    Returns:
        Exit code
    """
    store = SettingsStore(config.get(ConfigKey.SETTINGS_FILE), logger=logger)
    store.load()

    if args.command == "list":
        rules = store.snapshot()
        if not rules:
            print("No rules defined")
        for i, rule in enumerate(rules, start=1):
            print(f"{i}. {describe_rule(rule)}")
        return 0

    if args.command == "add":
        record = {
            "type": args.kind,
            "name": args.name,
            "enabled": not args.disabled,
            "negated": args.negated,
            "enable_spellcheck": args.enable_spellcheck,
            "path": args.path,
            "recursive": args.recursive,
            "tag": args.tag,
            "include_subtags": args.include_subtags,
            "property_name": args.property_name,
            "property_value": args.property_value,
            "query": args.query,
        }
        index = store.add_rule(rule_from_dict(record))
        print(f"Added rule {index + 1}: {describe_rule(store.get_rule(index))}")
        return 0

    if args.command in ("remove", "enable", "disable"):
        index = args.index - 1
        if args.command == "remove":
            rule = store.remove_rule(index)
            print(f"Removed rule {args.index}: {rule.name}")
        else:
            rule = store.set_enabled(index, args.command == "enable")
            print(f"{args.index}. {describe_rule(rule)}")
        return 0

    document, metadata = build_metadata(args)
    engine = RuleEngine(
        metadata,
        logger=logger,
        strict_folder_boundary=bool(config.get(ConfigKey.STRICT_FOLDER_BOUNDARY, False)),
    )

    if args.command == "check":
        enabled = asyncio.run(engine.decide(document, store.snapshot()))
        print("enabled" if enabled else "disabled")
        return 0

    rules = store.snapshot()
    positions = {id(rule): i for i, rule in enumerate(rules, start=1)}
    matches = asyncio.run(engine.get_matching_rules(document, rules))
    if not matches:
        print("No enabled rule matches; spellcheck stays enabled")
    for rule in matches:
        print(f"{positions[id(rule)]}. {describe_rule(rule)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for errors)
    """
    try:
        args = parse_arguments(argv)
        config = load_config(args)
        logger = setup_logging(config)
        return run_command(args, config, logger)

    except (CLIError, SettingsError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
