#!/usr/bin/env python3
"""
WireGuard to WireSock Converter

Converts a WireGuard configuration into a WireSock partial-tunnel
configuration, routing only the addresses and domain names you list.

Usage:
    python main.py [--input wg0.conf] [--output ws0.conf] [--profile routes.yaml]
"""

import argparse
import logging
import sys
from typing import Callable

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from converter import ConversionResult, Severity, WireSockConverter, load_profile

DEFAULT_INPUT = "wg0.conf"
DEFAULT_OUTPUT = "ws0.conf"

console = Console()
err_console = Console(stderr=True)


def collect_routes(ask: Callable[[str], str]) -> list[str]:
    """Read route entries one per prompt until an empty line."""
    entries = []
    while True:
        entry = ask("Route (IPv4, CIDR or domain, empty to finish)").strip()
        if not entry:
            return entries
        entries.append(entry)


def prompt_route(message: str) -> str:
    return Prompt.ask(message, default="", show_default=False, console=console)


def report(result: ConversionResult) -> None:
    """Print collected diagnostics, warnings highlighted."""
    for diagnostic in result.diagnostics:
        if diagnostic.severity is Severity.WARNING:
            console.print(
                f"[bold yellow]Warning:[/bold yellow] {escape(diagnostic.message)}: "
                f"[yellow]{escape(diagnostic.value)}[/yellow]",
                soft_wrap=True,
            )
        else:
            console.print(f"[dim]{escape(diagnostic.message)}: {escape(diagnostic.value)}[/dim]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert a WireGuard config into a WireSock split-tunnel config",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
    python main.py
    python main.py --input wg0.conf --output ws0.conf
    python main.py --profile routes.yaml
        """
    )
    parser.add_argument(
        "--input", "-i",
        type=str,
        help=f"WireGuard configuration to read (default: {DEFAULT_INPUT})"
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        help=f"WireSock configuration to write (default: {DEFAULT_OUTPUT})"
    )
    parser.add_argument(
        "--profile", "-p",
        type=str,
        help="YAML profile with input, output and routes"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if the [Interface] or [Peer] section is missing"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def main(argv=None, ask: Callable[[str], str] = prompt_route):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        profile = load_profile(args.profile) if args.profile else None

        input_path = args.input or (profile and profile.input)
        if not input_path:
            input_path = Prompt.ask("Input file", default=DEFAULT_INPUT, console=console)
        output_path = args.output or (profile and profile.output)
        if not output_path:
            output_path = Prompt.ask("Output file", default=DEFAULT_OUTPUT, console=console)

        if profile and profile.routes is not None:
            entries = profile.routes
        else:
            entries = collect_routes(ask)

        strict = args.strict or bool(profile and profile.strict)
        converter = WireSockConverter(input_path, strict=strict)
        result = converter.convert(entries)
        report(result)
        path = converter.write(result, output_path)
    except Exception as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        sys.exit(1)

    console.print(f"[green]Generated:[/green] {escape(str(path))}", soft_wrap=True)
    if result.routes:
        console.print(f"Routed through tunnel: {escape(', '.join(result.routes))}", soft_wrap=True)
    else:
        console.print("No routes added; only DNS leak protection is active.")


if __name__ == "__main__":
    main()
