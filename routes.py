"""
Route classification

Turns free-text route entries into IPv4 CIDR strings usable in AllowedIPs
and in the generated route commands.
"""

import logging
import re
import socket
from enum import Enum
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)

IPV4_PATTERN = re.compile(r"^(\d{1,3}\.){3}\d{1,3}(/\d{1,2})?$")
FQDN_PATTERN = re.compile(r"^[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


class RouteKind(Enum):
    """What a single route entry turned out to be."""
    IPV4 = "ipv4"
    FQDN = "fqdn"
    IPV6 = "ipv6"
    INVALID = "invalid"


def classify(entry: str) -> RouteKind:
    """Classify a route entry. Order matters: IPv4, FQDN, colon, invalid."""
    if IPV4_PATTERN.fullmatch(entry):
        return RouteKind.IPV4
    if FQDN_PATTERN.fullmatch(entry):
        return RouteKind.FQDN
    if ":" in entry:
        return RouteKind.IPV6
    return RouteKind.INVALID


class RouteClassifier:
    """Classifies route entries and resolves domain names to /32 routes."""

    def __init__(self, diagnostics, resolver: Callable[[str], str] = socket.gethostbyname):
        self.diagnostics = diagnostics
        self.resolver = resolver

    def resolve(self, fqdn: str) -> Optional[str]:
        """Return the first IPv4 address for fqdn, or None if lookup fails."""
        try:
            address = self.resolver(fqdn)
        except (OSError, UnicodeError) as e:
            logger.debug(f"Lookup of '{fqdn}' failed: {e}")
            return None
        logger.debug(f"Resolved '{fqdn}' to '{address}'")
        return address

    def process_entry(self, entry: str) -> Optional[str]:
        """Return the processed route for entry, or None if it was rejected."""
        kind = classify(entry)

        if kind is RouteKind.IPV4:
            return entry

        if kind is RouteKind.FQDN:
            address = self.resolve(entry)
            if address is None:
                self.diagnostics.warn("Could not resolve domain name", entry)
                return None
            self.diagnostics.info("Resolved domain name", f"{entry} -> {address}")
            return f"{address}/32"

        if kind is RouteKind.IPV6:
            self.diagnostics.warn("IPv6 routes are not supported", entry)
        else:
            self.diagnostics.warn("Not an IPv4 address, range or domain name", entry)
        return None

    def process(self, entries: Iterable[str]) -> list[str]:
        """Process all entries in order, keeping only the accepted routes."""
        routes = []
        for entry in entries:
            route = self.process_entry(entry)
            if route is not None:
                routes.append(route)
        return routes
