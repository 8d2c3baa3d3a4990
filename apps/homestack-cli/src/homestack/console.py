"""Coloured status lines shared by commands and services."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

console = Console()


def info(message: str) -> None:
    console.print(f"[green]\\[INFO][/green] {escape(message)}")


def warn(message: str) -> None:
    console.print(f"[yellow]\\[WARNING][/yellow] {escape(message)}")


def error(message: str) -> None:
    console.print(f"[red]\\[ERROR][/red] {escape(message)}")


def header(message: str) -> None:
    console.print(f"[bold blue]\\[HEADER][/bold blue] {escape(message)}")
