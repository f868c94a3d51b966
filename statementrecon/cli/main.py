"""Main CLI entry point for statementrecon."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from statementrecon.parsers.statement_parser import StatementParser
from statementrecon.parsers_core.autodiscover import ensure_profiles_loaded
from statementrecon.parsers_core.errors import (
    NoTransactionsFoundError,
    StatementParseError,
)
from statementrecon.parsers_core.models import ParseResult
from statementrecon.parsers_core.registry import ProfileRegistry
from statementrecon.utils.logging_config import configure_logging

custom_theme = Theme(
    {
        "fieldname": "cyan",
        "value": "magenta",
        "comment": "green",
        "normal": "white",
    }
)
console = Console(theme=custom_theme)

app = typer.Typer(
    help="""statementrecon CLI - Parse and reconcile extracted bank-statement text.

This tool helps you:
1. Detect which bank produced a statement
2. Extract metadata and transactions
3. Check that running balances reconcile

Use --help with any command for detailed information.
"""
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
):
    # stdout carries --json output
    configure_logging(logging.DEBUG if verbose else logging.WARNING, stream=sys.stderr)


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _show_result(result: ParseResult):
    meta = result.metadata
    lines = [
        f"[fieldname]Bank:[/fieldname] [value]{meta.bank_name}[/value] "
        f"[comment]({meta.profile_code} v{meta.profile_version})[/comment]",
        f"[fieldname]Account:[/fieldname] [value]{meta.account_number}[/value]",
        f"[fieldname]Client:[/fieldname] [value]{meta.client_name}[/value]",
        f"[fieldname]Statement:[/fieldname] [value]{meta.statement_id}[/value]",
        f"[fieldname]Opening:[/fieldname] [value]{meta.opening_balance}[/value]  "
        f"[fieldname]Closing:[/fieldname] [value]{meta.closing_balance}[/value]",
    ]
    console.print(Panel("\n".join(lines), title=str(meta.source_file)))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Balance", justify="right")
    table.add_column("Method", style="dim")
    for txn in result.transactions:
        colour = "green" if txn.amount > 0 else "red"
        table.add_row(
            txn.date.strftime("%d/%m/%Y"),
            escape(txn.description),
            f"[{colour}]{txn.amount}[/{colour}]",
            "" if txn.balance is None else str(txn.balance),
            txn.reconciliation or "",
        )
    console.print(table)

    status = "[green]valid[/green]" if result.report.valid else "[red]broken[/red]"
    console.print(
        f"{meta.transaction_count} transactions, credits {meta.total_credits}, "
        f"debits {meta.total_debits}, ledger {status}"
    )
    for warning in result.warnings:
        console.print(f"[yellow]{escape(warning)}[/yellow]")


@app.command(name="parse")
def parse_command(
    files: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Extracted text files"),
    as_json: bool = typer.Option(False, "--json", help="Print ParseResult JSON"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Force a profile code"),
):
    """Parse statement text files and show transactions and warnings."""
    parser = StatementParser()
    failed = False
    for path in files:
        try:
            result = parser.parse(_read(path), path.name, profile_code=profile)
        except NoTransactionsFoundError as e:
            failed = True
            console.print(f"[red]{escape(path.name)}: {escape(str(e))}[/red]")
            for warning in e.warnings:
                console.print(f"[yellow]{escape(warning)}[/yellow]")
            continue
        except StatementParseError as e:
            failed = True
            console.print(f"[red]{escape(path.name)}: {escape(str(e))}[/red]")
            continue

        if as_json:
            typer.echo(result.model_dump_json(indent=2))
        else:
            _show_result(result)
    if failed:
        raise typer.Exit(code=1)


@app.command(name="detect")
def detect_command(
    files: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Extracted text files"),
):
    """Show which bank profile each file is classified as."""
    ensure_profiles_loaded()
    for path in files:
        code = ProfileRegistry.detect_profile_for_text(_read(path))
        console.print(f"[fieldname]{path.name}[/fieldname]: [value]{code}[/value]")


@app.command(name="profiles")
def profiles_command():
    """List the registered bank profiles."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Code")
    table.add_column("Bank")
    table.add_column("Version", justify="right")
    table.add_column("Signatures")
    for profile in ensure_profiles_loaded():
        table.add_row(
            profile.code,
            profile.bank_name,
            str(profile.version),
            ", ".join(s.pattern for s in profile.signatures) or "-",
        )
    console.print(table)


if __name__ == "__main__":
    app()
