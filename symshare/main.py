#!/usr/bin/env python3
"""Main entry point for the symshare admin service.

This module handles:
- Component initialization (reconciler, admin server)
- Creation of missing directory roots
- Signal handling for graceful shutdown
- Cleanup on exit

Example:
    >>> from symshare.main import run_symshare
    >>> run_symshare(args, config, logger)
"""

import argparse
import signal
import sys
import threading
from typing import Optional

from symshare.admin.control import AdminServer, AdminServerError
from symshare.admin.folders import FolderError, ensure_directories
from symshare.cli import create_reconciler
from symshare.core.config import ConfigManager
from symshare.core.constants import ConfigKey, Limits
from symshare.core.logging import Logger
from symshare.grants.reconciler import DirectoryReconciler


class SymshareMain:
    """
    Main class for the symshare service.

    Handles component lifecycle, the admin server and shutdown.
    """

    def __init__(self, args: argparse.Namespace, config: ConfigManager, logger: Logger):
        """
        Initialize the service controller.

        Args:
            args: Parsed command-line arguments
            config: Configuration manager
            logger: Logger instance
        """
        self.args = args
        self.config = config
        self.logger = logger
        self.shutdown_event = threading.Event()

        self.reconciler: Optional[DirectoryReconciler] = None
        self.admin_server: Optional[AdminServer] = None

    def initialize_components(self) -> None:
        """
        Create the directory roots (unless disabled), the reconciler and
        the admin server.

        Raises:
            FolderError: If a directory root cannot be created
        """
        self.logger.info("Initializing components...")

        roots = self.config.directory_roots()
        if not getattr(self.args, "no_create", False):
            ensure_directories([roots["primary"], roots["read"], roots["write"]])
            self.logger.debug("Directory roots ready", **roots)

        self.reconciler = create_reconciler(self.config, self.logger)

        self.admin_server = AdminServer(
            self.reconciler,
            host=self.config.get(ConfigKey.ADMIN_HOST, Limits.DEFAULT_ADMIN_HOST),
            port=self.config.get(ConfigKey.ADMIN_PORT, Limits.DEFAULT_ADMIN_PORT),
            logger=self.logger,
        )

        self.logger.info("All components initialized successfully")

    def setup_signal_handlers(self) -> None:
        """Stop serving on SIGTERM and SIGINT."""

        def signal_handler(signum, frame):
            sig_name = signal.Signals(signum).name
            self.logger.info(f"Received signal {sig_name}, shutting down...")
            self.shutdown_event.set()

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

        self.logger.debug("Signal handlers registered")

    def serve(self) -> int:
        """
        Run the admin server until a shutdown signal arrives.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            self.admin_server.start()
        except AdminServerError as e:
            self.logger.error(str(e))
            return 1

        self.logger.info(f"Listening on {self.admin_server.get_url()}")
        while not self.shutdown_event.is_set() and self.admin_server.is_running():
            self.shutdown_event.wait(1.0)

        return 0

    def cleanup(self) -> None:
        """Stop the admin server if it was started."""
        self.logger.info("Cleaning up...")

        if self.admin_server:
            self.admin_server.stop()

        self.logger.info("Cleanup complete")

    def run(self) -> int:
        """
        Run the service.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            self.initialize_components()
            self.setup_signal_handlers()
            return self.serve()

        except FolderError as e:
            self.logger.error(f"Startup failed: {e.message}")
            return 1

        except KeyboardInterrupt:
            self.logger.info("Interrupted by user")
            return 130

        finally:
            self.cleanup()


def run_symshare(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    """
    Main entry point for running the symshare service.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    return SymshareMain(args, config, logger).run()


def main():
    """Entry point when run as a standalone script (delegates to the CLI)."""
    from symshare.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
