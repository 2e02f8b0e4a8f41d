"""Rich console utilities for release-metadata.

This module provides a shared Rich Console instance and helper functions
for CLI output, optimized for GitHub Actions and CI environments.
"""

import os
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from ._lifecycle.report import Report

# Detect GitHub Actions
IS_GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
    }
)

# Shared console instance
# Force colors ON in GitHub Actions (it supports ANSI colors but Rich may incorrectly disable them)
console = Console(
    theme=custom_theme,
    force_terminal=IS_GITHUB_ACTIONS or None,
    color_system="auto",
)


def gha_warning(message: str, title: Optional[str] = None) -> None:
    """
    Emit a warning that appears in GitHub Actions job summary.

    Args:
        message: Warning message
        title: Optional title for the warning
    """
    if IS_GITHUB_ACTIONS:
        if title:
            print(f"::warning title={title}::{message}")
        else:
            print(f"::warning::{message}")
    else:
        if title:
            console.print(f"[warning]Warning ({title}):[/warning] {message}")
        else:
            console.print(f"[warning]Warning:[/warning] {message}")


def gha_error(message: str, title: Optional[str] = None) -> None:
    """
    Emit an error that appears in GitHub Actions job summary.

    Args:
        message: Error message
        title: Optional title for the error
    """
    if IS_GITHUB_ACTIONS:
        if title:
            print(f"::error title={title}::{message}")
        else:
            print(f"::error::{message}")
    else:
        if title:
            console.print(f"[error]Error ({title}):[/error] {message}")
        else:
            console.print(f"[error]Error:[/error] {message}")


def gha_notice(message: str, title: Optional[str] = None) -> None:
    """Emit a notice annotation in GitHub Actions."""
    if IS_GITHUB_ACTIONS:
        if title:
            print(f"::notice title={title}::{message}")
        else:
            print(f"::notice::{message}")
    else:
        if title:
            console.print(f"[info]Notice ({title}):[/info] {message}")
        else:
            console.print(f"[info]Notice:[/info] {message}")


def print_summary_table(
    title: str,
    data: List[Tuple[str, Any]],
    show_if_empty: bool = False,
) -> None:
    """
    Print a summary table.

    Args:
        title: Table title
        data: List of (label, value) tuples
        show_if_empty: Whether to show the table if all values are 0/empty
    """
    if not show_if_empty:
        data = [(label, value) for label, value in data if value]

    if not data:
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for label, value in data:
        table.add_row(label, str(value))

    console.print(table)


def print_diagnostics(lines: List[str], title: Optional[str] = None) -> None:
    """Print one warning line per diagnostic."""
    for line in lines:
        gha_warning(line, title=title)


def print_report_table(report: "Report") -> None:
    """
    Print a reconciliation report as a Rich table, one row per distribution.

    Args:
        report: Report produced by the report assembler
    """
    table = Table(title=f"OS support for {report.version}", show_header=True, header_style="bold")
    table.add_column("Family", style="cyan")
    table.add_column("Distribution")
    table.add_column("Active")
    table.add_column("Unsupported (active)", style="warning")
    table.add_column("EOL Soon", style="warning")
    table.add_column("Supported (EOL)", style="error")
    table.add_column("Missing", style="error")

    for family in report.families:
        for distro in family.distributions:
            table.add_row(
                family.name,
                distro.name,
                ", ".join(distro.active_releases),
                ", ".join(distro.unsupported_active_releases),
                ", ".join(distro.releases_eol_soon),
                ", ".join(distro.releases_supported_not_active),
                ", ".join(distro.releases_missing),
            )

    console.print(table)
