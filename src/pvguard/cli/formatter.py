# src/pvguard/cli/formatter.py
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pvguard.core.models import ConfirmationRecord, ReconciliationOutcome, ResourceIdentity


class GuardFormatter:
    """
    GuardFormatter: the visual end of the gate.
    Renders what the reconciler found; it never decides pass or fail.

    With `annotations` on, signals are GitHub workflow commands so they show
    up as annotations on the run. Otherwise they are styled console lines.
    """

    def __init__(self, console: Optional[Console] = None, annotations: bool = False):
        self.console = console or Console()
        self.annotations = annotations
        self.failed = False

    def _escape_command(self, message: str) -> str:
        # Workflow command data must not contain raw newlines or '%'
        return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")

    def _raw(self, line: str):
        self.console.print(line, markup=False, emoji=False, highlight=False, soft_wrap=True)

    def _info(self, message: str, style: str):
        if self.annotations:
            self._raw(message)
        else:
            self.console.print(f"[{style}]{escape(message)}[/{style}]", highlight=False)

    def confirmation(self, record: ConfirmationRecord):
        self._info(f"The following persistent volume is confirmed for deletion: {record}", "dim")

    def confirmed(self, identity: ResourceIdentity):
        self._info(f"Persistent volume {identity} is confirmed for deletion", "green")

    def unconfirmed(self, identity: ResourceIdentity):
        message = f"Persistent volume {identity} is NOT confirmed for deletion!"
        if self.annotations:
            self._raw(f"::warning::{self._escape_command(message)}")
        else:
            self.console.print(f"[bold yellow]⚠️  {escape(message)}[/bold yellow]", highlight=False)

    def fail(self, message: str):
        """Emits the run's failure signal. Only the first call renders."""
        if self.failed:
            return
        self.failed = True
        if self.annotations:
            self._raw(f"::error::{self._escape_command(message)}")
        else:
            self.console.print(Panel(
                f"[bold red]❌ {escape(message)}[/bold red]",
                title="[bold white]Push rejected[/bold white]",
                border_style="red",
                expand=False,
            ))

    def summary(self, outcome: ReconciliationOutcome):
        """
        Builds the table shown at the end of a run: one row per
        PersistentVolume whose manifest was removed.
        """
        if not outcome.confirmed and not outcome.unconfirmed:
            self._info("No persistent volume deletions found in this push.", "dim")
            return

        table = Table(title="Persistent Volume Deletions", show_header=True, header_style="bold magenta")
        table.add_column("Namespace", style="cyan")
        table.add_column("Name")
        table.add_column("Confirmed", justify="center")

        for identity in outcome.confirmed:
            table.add_row(escape(str(identity.namespace)), escape(str(identity.name)), "✅")
        for identity in outcome.unconfirmed:
            table.add_row(escape(str(identity.namespace)), escape(str(identity.name)), "❌")

        self.console.print(table)
