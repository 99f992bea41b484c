#!/usr/bin/env python3
"""Command-line interface for symshare.

This module provides the CLI for listing and administering shared folders:
- Argument parsing and validation
- Configuration loading (YAML file, environment, arguments)
- One-shot listing of every folder's grant status
- Starting the admin server (see symshare.main)

Example:
    >>> from symshare.cli import parse_arguments
    >>> args = parse_arguments(["--primary-dir", "/srv/dirs", "--list"])
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from symshare.core.config import ConfigError, ConfigManager, ConfigSource
from symshare.core.constants import SYMSHARE_VERSION, ConfigKey
from symshare.core.logging import Logger, set_global_logger
from symshare.core.validators import ValidationError, validate_port
from symshare.grants.entries import as_record, describe
from symshare.grants.probe import LocalProbe
from symshare.grants.reconciler import DirectoryReconciler, ReconcileError

DESCRIPTION = "symshare - shared folders granted by symlinks"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If arguments are syntactically fine but invalid
    """
    parser = argparse.ArgumentParser(
        prog="symshare",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print every folder and its grant status
  symshare --list

  # Same, as JSON, for custom directory roots
  symshare --primary-dir /srv/dirs --read-dir /srv/links/read \\
           --write-dir /srv/links/write --list --json

  # Serve the admin listing on port 9000
  symshare --config symshare.yaml --port 9000
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {SYMSHARE_VERSION}",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    # Directory roots
    dir_group = parser.add_argument_group("directory options")

    dir_group.add_argument(
        "--primary-dir",
        metavar="DIR",
        type=str,
        help="Primary catalogue of shared folders",
    )

    dir_group.add_argument(
        "--read-dir",
        metavar="DIR",
        type=str,
        help="Directory of read-grant symlinks",
    )

    dir_group.add_argument(
        "--write-dir",
        metavar="DIR",
        type=str,
        help="Directory of write-grant symlinks",
    )

    dir_group.add_argument(
        "--no-create",
        action="store_true",
        help="Do not create missing directory roots on start-up",
    )

    # Actions
    action_group = parser.add_argument_group("listing options")

    action_group.add_argument(
        "-l",
        "--list",
        action="store_true",
        help="Print every folder's grant status and exit",
    )

    action_group.add_argument(
        "--json",
        action="store_true",
        help="With --list, print JSON records instead of text",
    )

    # Admin server
    admin_group = parser.add_argument_group("admin server options")

    admin_group.add_argument(
        "--host",
        metavar="HOST",
        type=str,
        help="Admin server bind address (default: 127.0.0.1)",
    )

    admin_group.add_argument(
        "-p",
        "--port",
        metavar="PORT",
        type=int,
        help="Admin server port (default: 8080)",
    )

    # Logging
    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also log to this file (rotated)",
    )

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Raises:
        CLIError: If validation fails
    """
    if args.json and not args.list:
        raise CLIError("--json requires --list")

    if args.config:
        config_path = Path(args.config)

        if not config_path.exists():
            raise CLIError(f"Configuration file does not exist: {args.config}")

        if not config_path.is_file():
            raise CLIError(f"Configuration path is not a file: {args.config}")

    if args.port is not None:
        try:
            validate_port(args.port)
        except ValidationError as e:
            raise CLIError(str(e))


def build_config_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build the CLI-level configuration layer from arguments.

    Only options actually given appear in the result, so that lower
    precedence sources still apply for the rest.

    Returns:
        Configuration dictionary with a ``symshare`` section
    """
    section: Dict[str, Any] = {}

    paths = {}
    for key, value in (
        ("primary", args.primary_dir),
        ("read", args.read_dir),
        ("write", args.write_dir),
    ):
        if value:
            paths[key] = os.path.abspath(value)
    if paths:
        section["paths"] = paths

    admin = {}
    if args.host:
        admin["host"] = args.host
    if args.port is not None:
        admin["port"] = args.port
    if admin:
        section["admin"] = admin

    logging_cfg = {}
    if args.debug:
        logging_cfg["level"] = "DEBUG"
    if args.log_file:
        logging_cfg["file"] = args.log_file
    if logging_cfg:
        section["logging"] = logging_cfg

    return {"symshare": section}


def load_config(args: argparse.Namespace) -> ConfigManager:
    """
    Build the configuration manager for this invocation.

    Layers: defaults, the --config file, SYMSHARE_* environment, arguments.

    Raises:
        ConfigError: If the file cannot be loaded or the result is invalid
    """
    config = ConfigManager(config_file=args.config)
    config.load_dict(build_config_from_args(args), ConfigSource.ARGUMENTS)
    config.validate()
    return config


def setup_logging(args: argparse.Namespace, config: ConfigManager) -> Logger:
    """
    Setup logging based on arguments and configuration.

    Returns:
        Configured logger, also installed as the global logger
    """
    log_level = "DEBUG" if args.debug else config.get(ConfigKey.LOGGING_LEVEL, "INFO")
    log_file = config.get(ConfigKey.LOGGING_FILE)

    logger = Logger("symshare", level=log_level)
    if log_file:
        logger.attach_file(log_file)

    set_global_logger(logger)
    return logger


def create_reconciler(config: ConfigManager, logger: Logger) -> DirectoryReconciler:
    """Reconciler over the configured roots, using the local filesystem.

    The roots were validated when ``config`` was loaded.
    """
    roots = config.directory_roots()
    return DirectoryReconciler(
        LocalProbe(),
        roots["primary"],
        roots["read"],
        roots["write"],
        logger=logger,
    )


def print_listing(reconciler: DirectoryReconciler, as_json: bool = False, out=None) -> int:
    """
    Run one pass and print every folder with its status.

    Returns:
        Exit code (0 for success)
    """
    out = out or sys.stdout
    entries = reconciler.reconcile()

    if as_json:
        records = [as_record(entries[name]) for name in sorted(entries)]
        print(json.dumps(records, indent=2), file=out)
        return 0

    if not entries:
        print("No folders.", file=out)
        return 0

    width = max(len(name) for name in entries)
    for name in sorted(entries):
        print(f"{name:<{width}}  {describe(entries[name])}", file=out)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Handles argument parsing and configuration, then either prints the
    listing or passes control to symshare.main to run the admin server.
    """
    try:
        args = parse_arguments(argv)
        config = load_config(args)
        logger = setup_logging(args, config)

        if args.list:
            reconciler = create_reconciler(config, logger)
            return print_listing(reconciler, as_json=args.json)

        from symshare.main import run_symshare

        return run_symshare(args, config, logger)

    except (CLIError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except ReconcileError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
