"""
WireGuard to WireSock Converter

Turns a WireGuard client configuration into a WireSock partial-tunnel
configuration with DNS leak protection hooks.
"""

import logging
import re
import socket
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import yaml

from hooks import PowerShellRenderer, build_hooks
from routes import RouteClassifier

logger = logging.getLogger(__name__)

INTERFACE_PATTERN = re.compile(r"\[Interface\](.*?)(?=\[Peer\]|\Z)", re.DOTALL)
PEER_PATTERN = re.compile(r"\[Peer\](.*)", re.DOTALL)
DNS_PATTERN = re.compile(r"^[ \t]*DNS[ \t]*=(.*)$", re.MULTILINE)
FULL_TUNNEL_LINE = "AllowedIPs = 0.0.0.0/0, ::/0"


class ConversionError(Exception):
    """Raised when a conversion cannot continue."""


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    value: str = ""


class Diagnostics:
    """Ordered collection of problems found during one conversion."""

    def __init__(self):
        self.entries: list[Diagnostic] = []

    def add(self, severity: Severity, message: str, value: str = "") -> None:
        self.entries.append(Diagnostic(severity, message, value))

    def info(self, message: str, value: str = "") -> None:
        self.add(Severity.INFO, message, value)

    def warn(self, message: str, value: str = "") -> None:
        logger.debug(f"{message}: {value!r}")
        self.add(Severity.WARNING, message, value)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.entries if d.severity is Severity.WARNING]

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)


@dataclass
class ParsedConfig:
    """
    Sections of a WireGuard configuration.

    A section is None when its header is missing and "" when the header is
    present but the section has no lines.
    """
    interface: Optional[str]
    peer: Optional[str]
    dns: str = ""


@dataclass
class Profile:
    """Conversion settings loaded from a YAML file."""
    input: Optional[str] = None
    output: Optional[str] = None
    routes: Optional[list[str]] = None
    strict: bool = False


@dataclass
class ConversionResult:
    text: str
    routes: list[str]
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def strip_full_tunnel(peer: str) -> str:
    """Remove the first full-tunnel AllowedIPs line from a peer block."""
    lines = peer.splitlines(keepends=True)
    for index, line in enumerate(lines):
        if line.rstrip("\r\n") == FULL_TUNNEL_LINE:
            del lines[index]
            break
    return "".join(lines).strip()


def parse_config(text: str, diagnostics: Diagnostics, strict: bool = False) -> ParsedConfig:
    """Split raw configuration text into its Interface and Peer sections."""
    interface_match = INTERFACE_PATTERN.search(text)
    peer_match = PEER_PATTERN.search(text)

    for name, match in (("Interface", interface_match), ("Peer", peer_match)):
        if match is None:
            if strict:
                raise ConversionError(f"Missing [{name}] section")
            diagnostics.warn("Missing section", f"[{name}]")

    interface = interface_match.group(1).strip() if interface_match else None
    peer = strip_full_tunnel(peer_match.group(1)) if peer_match else None

    dns = ""
    if interface:
        dns_match = DNS_PATTERN.search(interface)
        if dns_match:
            dns = dns_match.group(1).strip()
    if not dns:
        diagnostics.warn("No DNS server found in [Interface]; hooks will use an empty value", "DNS")

    return ParsedConfig(interface=interface, peer=peer, dns=dns)


def render_wiresock_conf(config: ParsedConfig, post_up: str, post_down: str, routes: list[str]) -> str:
    """Assemble the WireSock configuration file content."""
    lines = ["[Interface]"]
    if config.interface:
        lines.append(config.interface)
    lines.extend([
        f"PostUp = {post_up}",
        f"PostDown = {post_down}",
        "",
        "[Peer]",
    ])
    if config.peer:
        lines.append(config.peer)
    lines.append(f"AllowedIPs = {', '.join(routes)}")

    return "\n".join(lines) + "\n"


def load_profile(path: str) -> Profile:
    """Load conversion settings from a YAML profile."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConversionError(f"Profile {path} must be a mapping")

    routes = data.get("routes")
    if routes is not None:
        if not isinstance(routes, list):
            raise ConversionError(f"'routes' in {path} must be a list")
        routes = [str(r).strip() for r in routes if r is not None and str(r).strip()]

    return Profile(
        input=data.get("input"),
        output=data.get("output"),
        routes=routes,
        strict=bool(data.get("strict", False)),
    )


class WireSockConverter:
    """Main conversion pipeline."""

    def __init__(
        self,
        input_path: str,
        strict: bool = False,
        resolver: Callable[[str], str] = socket.gethostbyname,
        renderer: Optional[PowerShellRenderer] = None,
    ):
        self.input_path = Path(input_path)
        self.strict = strict
        self.resolver = resolver
        self.renderer = renderer or PowerShellRenderer()

    def load_config(self) -> str:
        """Read the WireGuard configuration file."""
        return self.input_path.read_text()

    def convert(self, entries: list[str]) -> ConversionResult:
        """Convert the input configuration using the given route entries."""
        diagnostics = Diagnostics()

        config = parse_config(self.load_config(), diagnostics, strict=self.strict)

        routes = RouteClassifier(diagnostics, resolver=self.resolver).process(entries)
        logger.debug(f"Accepted {len(routes)} of {len(entries)} route entries")

        post_up, post_down = build_hooks(config.dns, routes)
        text = render_wiresock_conf(
            config,
            self.renderer.render(post_up),
            self.renderer.render(post_down),
            routes,
        )
        return ConversionResult(text=text, routes=routes, diagnostics=diagnostics)

    def write(self, result: ConversionResult, output_path: str) -> Path:
        """Write the converted configuration, replacing any existing file."""
        path = Path(output_path)
        path.write_text(result.text)
        return path
