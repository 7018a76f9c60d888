"""
PostUp / PostDown hook generation

Hooks are described as ordered lists of actions and rendered to a single
PowerShell command line by a renderer. The descriptor fixes what the hook
does; the renderer decides how it is spelled.
"""

from dataclasses import dataclass

BACKUP_FILE = "wiresock_dns_backup.json"
HOST_MASK = "255.255.255.255"
ROUTE_METRIC = 5


@dataclass(frozen=True)
class BackupDns:
    """Save the IPv4 DNS servers of every active adapter, keyed by name."""
    backup_file: str


@dataclass(frozen=True)
class SetDns:
    server: str


@dataclass(frozen=True)
class DisableIpv6:
    pass


@dataclass(frozen=True)
class AddRoute:
    destination: str
    gateway: str
    metric: int = ROUTE_METRIC


@dataclass(frozen=True)
class RestoreDns:
    """Put back the DNS servers saved by BackupDns, if the backup exists."""
    backup_file: str


@dataclass(frozen=True)
class EnableIpv6:
    backup_file: str


@dataclass(frozen=True)
class DiscardBackup:
    backup_file: str


@dataclass(frozen=True)
class DeleteRoute:
    destination: str
    gateway: str


@dataclass(frozen=True)
class HookScript:
    """An ordered sequence of hook actions."""
    actions: tuple

    def routes(self) -> list[str]:
        """Destinations this hook adds or deletes, in order."""
        return [
            a.destination for a in self.actions
            if isinstance(a, (AddRoute, DeleteRoute))
        ]


def build_hooks(dns: str, routes: list[str], backup_file: str = BACKUP_FILE) -> tuple[HookScript, HookScript]:
    """Build the (PostUp, PostDown) pair for a DNS server and route list."""
    post_up = HookScript(actions=(
        BackupDns(backup_file),
        SetDns(dns),
        DisableIpv6(),
        *(AddRoute(route, dns) for route in routes),
    ))
    post_down = HookScript(actions=(
        RestoreDns(backup_file),
        EnableIpv6(backup_file),
        DiscardBackup(backup_file),
        *(DeleteRoute(route, dns) for route in routes),
    ))
    return post_up, post_down


def quote(value: str) -> str:
    """Single-quote a PowerShell literal."""
    return "'" + value.replace("'", "''") + "'"


class PowerShellRenderer:
    """Renders hook scripts as one-line PowerShell invocations."""

    ACTIVE_ADAPTERS = "Get-NetAdapter | Where-Object Status -eq 'Up'"

    def __init__(self, executable: str = "powershell"):
        self.executable = executable

    def _backup_path(self, backup_file: str) -> str:
        return f"(Join-Path $env:TEMP {quote(backup_file)})"

    def _for_each_backup(self, backup_file: str, body: str) -> str:
        path = self._backup_path(backup_file)
        return (
            f"if (Test-Path {path}) {{ "
            f"(Get-Content {path} -Raw | ConvertFrom-Json).PSObject.Properties"
            f" | ForEach-Object {{ {body} }} }}"
        )

    def render_action(self, action) -> str:
        if isinstance(action, BackupDns):
            return (
                f"$backup = @{{}}; {self.ACTIVE_ADAPTERS} | ForEach-Object {{ "
                "$backup[$_.Name] = @((Get-DnsClientServerAddress -InterfaceAlias $_.Name"
                " -AddressFamily IPv4).ServerAddresses) }; "
                f"$backup | ConvertTo-Json | Set-Content -Path {self._backup_path(action.backup_file)}"
            )
        if isinstance(action, SetDns):
            return (
                f"{self.ACTIVE_ADAPTERS} | ForEach-Object {{ "
                f"Set-DnsClientServerAddress -InterfaceAlias $_.Name -ServerAddresses {quote(action.server)} }}"
            )
        if isinstance(action, DisableIpv6):
            return f"{self.ACTIVE_ADAPTERS} | Disable-NetAdapterBinding -ComponentID ms_tcpip6"
        if isinstance(action, AddRoute):
            return (
                f"route add {action.destination} mask {HOST_MASK} "
                f"{action.gateway} metric {action.metric}"
            )
        if isinstance(action, RestoreDns):
            return self._for_each_backup(
                action.backup_file,
                "if ($_.Value) { Set-DnsClientServerAddress -InterfaceAlias $_.Name -ServerAddresses $_.Value }"
                " else { Set-DnsClientServerAddress -InterfaceAlias $_.Name -ResetServerAddresses }",
            )
        if isinstance(action, EnableIpv6):
            return self._for_each_backup(
                action.backup_file,
                "Enable-NetAdapterBinding -Name $_.Name -ComponentID ms_tcpip6",
            )
        if isinstance(action, DiscardBackup):
            path = self._backup_path(action.backup_file)
            return f"if (Test-Path {path}) {{ Remove-Item -Path {path} }}"
        if isinstance(action, DeleteRoute):
            return f"route delete {action.destination} mask {HOST_MASK} {action.gateway}"
        raise TypeError(f"Unknown hook action: {action!r}")

    def render(self, hook: HookScript) -> str:
        script = "; ".join(self.render_action(a) for a in hook.actions)
        return f'{self.executable} -NoProfile -ExecutionPolicy Bypass -Command "{script}"'
