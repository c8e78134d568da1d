#!/usr/bin/env python3
"""
PVGUARD CLI - Push Gate Entry Point
-----------------------------------
Wires configuration, the GitHub collaborators and the reconciler together,
and is the one place where errors become a failure signal and an exit code.

Author: PVGuard Team
"""

import sys
import logging
import argparse
from typing import List, Mapping, Optional

import requests
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pvguard.cli.formatter import GuardFormatter
from pvguard.core.config import GuardConfig
from pvguard.core.engine import DeletionReconciler
from pvguard.core.errors import GuardError, UnconfirmedDeletionError
from pvguard.github.client import GitHubClient
from pvguard.github.event import load_push_event
from pvguard.parsing.confirmation import ConfirmationParser

__version__ = "1.0.0"

console = Console()
logger = logging.getLogger("pvguard.cli")


class PVGuardCLI:
    """
    CLI wrapper that translates commands into reconciler runs.
    Collaborators can be injected so the whole gate runs without network.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None,
                 session: Optional[requests.Session] = None,
                 output: Optional[Console] = None):
        self.environ = environ
        self.session = session
        self.console = output or console
        self.parser = argparse.ArgumentParser(
            prog="pvguard",
            description="PVGuard - Blocks pushes that delete unconfirmed PersistentVolumes",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="Confirm a deletion with a commit message line such as:\n"
                   "  DELETE_PERSISTENT_VOLUME:prod/pv-data, staging/pv-cache"
        )
        self._setup_args()

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("-V", "--version", action="version", version=f"pvguard v{__version__}")
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        # 'check' subcommand - the push gate
        check_parser = subparsers.add_parser("check", help="🛡️ Reconcile removed PersistentVolumes of a push")
        check_parser.add_argument("--event-name", help="Triggering event name (default: $GITHUB_EVENT_NAME)")
        check_parser.add_argument("--event-path", help="Path to the event JSON payload (default: $GITHUB_EVENT_PATH)")
        check_parser.add_argument("--repository", help="owner/repo (default: $GITHUB_REPOSITORY)")
        check_parser.add_argument("--token", help="GitHub token (default: $GITHUB_TOKEN)")
        check_parser.add_argument("--api-url", help="GitHub API base URL (default: $GITHUB_API_URL)")
        check_parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
        check_parser.add_argument("--annotations", dest="annotations", action="store_true", default=None,
                                  help="Emit GitHub workflow commands (default when $GITHUB_ACTIONS=true)")
        check_parser.add_argument("--no-annotations", dest="annotations", action="store_false",
                                  help="Emit styled console output")

        # 'parse-message' subcommand - preview confirmations in a draft message
        parse_parser = subparsers.add_parser("parse-message", help="🔍 Show the confirmations in a commit message")
        parse_parser.add_argument("message", nargs="?", default="-",
                                  help="Commit message text, or '-' to read stdin")

    def print_header(self, subtitle: str):
        """Renders the splash header."""
        self.console.print(Panel.fit(
            f"[bold cyan]PVGuard v{__version__}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _configure_logging(self, verbose: bool):
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    def _run_check(self, args: argparse.Namespace) -> int:
        """Runs the gate. Every error ends here as one failure signal."""
        formatter = GuardFormatter(console=self.console)
        try:
            config = GuardConfig.from_env(
                self.environ,
                event_name=args.event_name,
                event_path=args.event_path,
                repository=args.repository,
                token=args.token,
                api_url=args.api_url,
                timeout=args.timeout,
                annotations=args.annotations,
            )
            formatter.annotations = config.annotations
            if not config.annotations:
                self.print_header("PersistentVolume Deletion Gate")

            push = load_push_event(config.event_name, config.event_path)
            client = GitHubClient.from_config(config, session=self.session)
            reconciler = DeletionReconciler(client, client, listener=formatter)
            outcome = reconciler.run(push)

        except UnconfirmedDeletionError as e:
            formatter.summary(e.outcome)
            formatter.fail(str(e))
            return 1
        except GuardError as e:
            logger.debug("Run aborted", exc_info=True)
            formatter.fail(str(e))
            return 1
        except Exception as e:
            logger.error("Run aborted by an unexpected error", exc_info=True)
            formatter.fail(f"Unexpected error: {e}" if str(e) else f"Unexpected error: {type(e).__name__}")
            return 1

        formatter.summary(outcome)
        logger.info(f"Checked {outcome.commits_processed} commit(s); all deletions confirmed")
        return 0

    def _run_parse_message(self, args: argparse.Namespace) -> int:
        message = sys.stdin.read() if args.message == "-" else args.message
        records = ConfirmationParser().parse(message)
        if not records:
            self.console.print("[bold yellow]⚠️  No DELETE_PERSISTENT_VOLUME confirmations found.[/bold yellow]")
            return 0

        table = Table(title="Confirmed Deletions", header_style="bold magenta")
        table.add_column("Namespace", style="cyan")
        table.add_column("Name")
        for record in records:
            name = escape(record.name) if record.name is not None else "[red]<missing>[/red]"
            table.add_row(escape(record.namespace) or "[red]<missing>[/red]", name)
        self.console.print(table)
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point. Returns the process exit code."""
        argv = sys.argv[1:] if argv is None else argv
        if not argv:
            self.print_header("PersistentVolume Deletion Gate")
            self.parser.print_help()
            return 0

        args = self.parser.parse_args(argv)
        self._configure_logging(args.verbose)
        if args.command == "check":
            return self._run_check(args)
        if args.command == "parse-message":
            return self._run_parse_message(args)
        self.parser.print_help()
        return 2


def main(argv: Optional[List[str]] = None):
    """Application entry point with interrupt handling."""
    try:
        sys.exit(PVGuardCLI().run(argv))
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
