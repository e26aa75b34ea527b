#!/usr/bin/env python3
"""
Ceph Provider - CLI Tool

This CLI tool runs lookups and imports against a Ceph Manager API and
parses or renders cephx keyrings offline.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Union

from colorama import Fore, Style, init as colorama_init
from tabulate import tabulate

from ceph_provider.ceph.errors import CephProviderError
from ceph_provider.ceph.keyring import KeyringUser, parse_keyring, render_keyring_user
from ceph_provider.core.config import ProviderSettings, get_settings, reload_settings
from ceph_provider.core.logging import setup_logging
from ceph_provider.models.base import SENSITIVE_PLACEHOLDER
from ceph_provider.models.capabilities import CephCaps
from ceph_provider.models.pool import PoolConfigItem
from ceph_provider.provider import LOOKUPS, RESOURCE_TYPES, Provider
from ceph_provider.reconcile import Diagnostics
from ceph_provider.resources.base import ResourceResult


class Colors:
    """Color codes for terminal output."""

    def __init__(self):
        if sys.stdout.isatty():
            colorama_init(autoreset=True)
            self.GREEN = Fore.GREEN
            self.RED = Fore.RED
            self.YELLOW = Fore.YELLOW
            self.BLUE = Fore.BLUE
            self.CYAN = Fore.CYAN
            self.BOLD = Style.BRIGHT
            self.RESET = Style.RESET_ALL
        else:
            # No colors if not in terminal
            self.GREEN = ""
            self.RED = ""
            self.YELLOW = ""
            self.BLUE = ""
            self.CYAN = ""
            self.BOLD = ""
            self.RESET = ""


colors = Colors()


def print_error(message: str):
    """Print error message."""
    print(f"{colors.RED}Error: {message}{colors.RESET}", file=sys.stderr)


def print_success(message: str):
    """Print success message."""
    print(f"{colors.GREEN}{message}{colors.RESET}")


def print_warning(message: str):
    """Print warning message."""
    print(f"{colors.YELLOW}{message}{colors.RESET}")


def print_info(message: str):
    """Print info message."""
    print(f"{colors.BLUE}{message}{colors.RESET}")


def format_value(value: Any) -> str:
    """Format a state value for a table cell."""
    if value is None:
        return "-"
    if isinstance(value, bool):
        return f"{colors.GREEN}Yes{colors.RESET}" if value else f"{colors.RED}No{colors.RESET}"
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, sort_keys=True)
    return str(value)


def print_diagnostics(diagnostics: Diagnostics):
    """Print warnings collected by an operation."""
    for diagnostic in diagnostics.warnings:
        print_warning(f"Warning: {diagnostic.summary}: {diagnostic.detail}")


def print_result(result: ResourceResult):
    """Print an operation result as a field/value table."""
    print_diagnostics(result.diagnostics)

    if result.removed:
        print_info("Object not found.")
        return

    table_data = [[name, format_value(value)] for name, value in result.state.masked_dump().items()]
    print()
    print(tabulate(table_data, headers=["Field", "Value"], tablefmt="grid"))
    print()


def keyring_rows(users: List[KeyringUser], show_keys: bool) -> List[List[str]]:
    """Build table rows for parsed keyring identities."""
    rows = []
    for user in users:
        caps = "\n".join(f"{cap_type} = {value}" for cap_type, value in user.caps.to_dict().items())
        rows.append([user.entity, user.key if show_keys else SENSITIVE_PLACEHOLDER, caps or "-"])
    return rows


def parse_caps_args(values: Union[List[str], None]) -> Dict[str, str]:
    """Parse ``subsystem=capability`` arguments into a mapping."""
    caps: Dict[str, str] = {}
    for item in values or []:
        cap_type, sep, cap_value = item.partition("=")
        if not sep:
            raise ValueError(f"Invalid capability {item!r}, expected SUBSYSTEM=CAPS")
        caps[cap_type.strip()] = cap_value.strip()
    return caps


# Command handlers

async def _run_lookup(args, settings: ProviderSettings) -> ResourceResult:
    provider = Provider(settings)
    await provider.configure()

    kwargs: Dict[str, Any] = {}
    if args.kind in ("config", "config_value") and args.section:
        kwargs["section"] = args.section
    if args.kind == "rgw_s3_key" and args.access_key:
        kwargs["access_key"] = args.access_key

    positional = [args.id] if args.id else []
    return await provider.lookup(args.kind, *positional, **kwargs)


async def _run_import(args, settings: ProviderSettings) -> ResourceResult:
    provider = Provider(settings)
    await provider.configure()
    return await provider.resource(args.resource_type).import_state(args.id)


LISTINGS = {
    "pools": "pools",
    "crush-rules": "crush_rules",
    "erasure-code-profiles": "erasure_code_profiles",
}


async def _run_list(args, settings: ProviderSettings) -> List[str]:
    provider = Provider(settings)
    await provider.configure()
    return await getattr(provider.storage, LISTINGS[args.kind])()


async def _run_pool_config(args, settings: ProviderSettings) -> List[PoolConfigItem]:
    provider = Provider(settings)
    await provider.configure()
    return await provider.storage.pool_configuration(args.pool)


def cmd_lookup(args, settings: ProviderSettings):
    """Handle lookup command."""
    try:
        result = asyncio.run(_run_lookup(args, settings))
        print_result(result)
    except CephProviderError as e:
        print_error(e.message)
        sys.exit(1)


def cmd_import(args, settings: ProviderSettings):
    """Handle import command."""
    try:
        result = asyncio.run(_run_import(args, settings))
        print_success(f"Imported {args.resource_type} '{args.id}'")
        print_result(result)
    except CephProviderError as e:
        print_error(e.message)
        sys.exit(1)


def cmd_list(args, settings: ProviderSettings):
    """Handle list command."""
    try:
        names = asyncio.run(_run_list(args, settings))
    except CephProviderError as e:
        print_error(e.message)
        sys.exit(1)

    if not names:
        print_info(f"No {args.kind} found.")
        return

    print()
    print(tabulate([[name] for name in names], headers=["Name"], tablefmt="grid"))
    print()
    print(f"Total: {len(names)} object(s)")
    print()


def cmd_pool_config(args, settings: ProviderSettings):
    """Handle pool-config command."""
    try:
        items = asyncio.run(_run_pool_config(args, settings))
    except CephProviderError as e:
        print_error(e.message)
        sys.exit(1)

    if not items:
        print_info(f"No configuration overrides for pool {args.pool}.")
        return

    table_data = [[item.name, format_value(item.value), format_value(item.source)] for item in items]
    print()
    print(tabulate(table_data, headers=["Option", "Value", "Source"], tablefmt="grid"))
    print()


def cmd_keyring_parse(args, settings: ProviderSettings):
    """Handle keyring parse command."""
    try:
        content = Path(args.file).read_text() if args.file != "-" else sys.stdin.read()
        users = parse_keyring(content)
    except OSError as e:
        print_error(f"Unable to read keyring file: {e}")
        sys.exit(1)
    except CephProviderError as e:
        print_error(e.message)
        sys.exit(1)

    if not users:
        print_info("No identities found.")
        return

    print()
    print(tabulate(keyring_rows(users, args.show_keys), headers=["Entity", "Key", "Caps"], tablefmt="grid"))
    print()
    print(f"Total: {len(users)} identity/identities")
    print()


def cmd_keyring_render(args, settings: ProviderSettings):
    """Handle keyring render command."""
    try:
        caps = CephCaps.from_dict(parse_caps_args(args.caps))
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)
    except CephProviderError as e:
        print_error(e.message)
        sys.exit(1)

    sys.stdout.write(render_keyring_user(KeyringUser(entity=args.entity, key=args.key, caps=caps)))


def cmd_show_config(args, settings: ProviderSettings):
    """Handle show-config command."""
    data = settings.to_dict()
    table_data = [[name, format_value(value)] for name, value in data.items()]
    print()
    print(tabulate(table_data, headers=["Setting", "Value"], tablefmt="grid"))
    print()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Ceph Provider - CLI Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--config',
        help='Path to provider YAML configuration file',
        default=None,
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # lookup command
    lookup_parser = subparsers.add_parser(
        'lookup',
        help='Look up a Ceph object',
    )
    lookup_parser.add_argument(
        'kind',
        choices=sorted(LOOKUPS),
        help='Kind of object to look up',
    )
    lookup_parser.add_argument(
        'id',
        nargs='?',
        default=None,
        help='Object identifier (entity, name, uid, ...)',
    )
    lookup_parser.add_argument(
        '--section',
        help='Configuration section (config and config_value only)',
    )
    lookup_parser.add_argument(
        '--access-key',
        help='S3 access key to select (rgw_s3_key only)',
    )

    # import command
    import_parser = subparsers.add_parser(
        'import',
        help='Import an existing object into managed state',
    )
    import_parser.add_argument(
        'resource_type',
        choices=sorted(RESOURCE_TYPES),
        help='Resource type',
    )
    import_parser.add_argument(
        'id',
        help='Import identifier',
    )

    # list command
    list_parser = subparsers.add_parser(
        'list',
        help='List pools, CRUSH rules or erasure code profiles',
    )
    list_parser.add_argument(
        'kind',
        choices=sorted(LISTINGS),
        help='Kind of object to list',
    )

    # pool-config command
    pool_config_parser = subparsers.add_parser(
        'pool-config',
        help='Show per-pool configuration overrides',
    )
    pool_config_parser.add_argument(
        'pool',
        help='Pool name',
    )

    # keyring command
    keyring_parser = subparsers.add_parser(
        'keyring',
        help='Parse or render cephx keyrings',
    )
    keyring_subparsers = keyring_parser.add_subparsers(dest='keyring_command', help='Keyring commands')

    parse_parser = keyring_subparsers.add_parser(
        'parse',
        help='Parse a keyring file',
    )
    parse_parser.add_argument(
        'file',
        help='Keyring file path, or - for stdin',
    )
    parse_parser.add_argument(
        '--show-keys',
        action='store_true',
        help='Show secret keys',
    )

    render_parser = keyring_subparsers.add_parser(
        'render',
        help='Render a keyring section',
    )
    render_parser.add_argument(
        '--entity',
        required=True,
        help='Entity name (e.g., client.admin)',
    )
    render_parser.add_argument(
        '--key',
        required=True,
        help='cephx secret key',
    )
    render_parser.add_argument(
        '--caps',
        nargs='*',
        metavar='SUBSYSTEM=CAPS',
        help='Capabilities (e.g., mon="allow r")',
    )

    # show-config command
    subparsers.add_parser(
        'show-config',
        help='Show the effective provider settings',
    )

    return parser


def load_settings(config_path: Union[str, None]) -> ProviderSettings:
    """Load settings from an explicit YAML file or the default location."""
    if config_path:
        return reload_settings(config_path)
    return get_settings()


def main(argv: Union[List[str], None] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == 'keyring' and not args.keyring_command:
        parser.parse_args(['keyring', '--help'])

    settings = load_settings(args.config)
    setup_logging(settings)

    # Route to command handler
    if args.command == 'lookup':
        cmd_lookup(args, settings)
    elif args.command == 'import':
        cmd_import(args, settings)
    elif args.command == 'list':
        cmd_list(args, settings)
    elif args.command == 'pool-config':
        cmd_pool_config(args, settings)
    elif args.command == 'keyring' and args.keyring_command == 'parse':
        cmd_keyring_parse(args, settings)
    elif args.command == 'keyring' and args.keyring_command == 'render':
        cmd_keyring_render(args, settings)
    elif args.command == 'show-config':
        cmd_show_config(args, settings)
    else:
        print_error(f"Unknown command: {args.command}")
        sys.exit(1)


if __name__ == '__main__':
    main()
