#!/usr/bin/env python3
"""
Command-line interface for the access point controller.

Shows AP state, configuration and clients, and switches the AP on and off.
Logging goes through loguru, tables through rich.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, List, Optional

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .ap_controller import ApControl
from .capabilities import ApPlatform
from .config import load_settings
from .fake_platform import FakePlatform
from .models import ApConfiguration, ApState
from .platform_nmcli import NmcliPlatform


class CLIError(Exception):
    """Base exception for CLI-related errors."""

    pass


class LoggerManager:
    """Logger setup for the CLI."""

    @staticmethod
    def setup_logger(
        verbose: bool = False,
        quiet: bool = False,
        log_file: Optional[Path] = None,
        json_logs: bool = False,
    ) -> None:
        """Configure loguru with a console sink and an optional file sink."""
        # Remove default logger
        logger.remove()

        if quiet:
            return  # No logging output

        level = "DEBUG" if verbose else "INFO"

        if json_logs:
            console_format = (
                "{time:YYYY-MM-DD HH:mm:ss} | "
                "{level: <8} | "
                "{name}:{function}:{line} | "
                "{message}"
            )
        else:
            console_format = (
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            )

        logger.add(
            sys.stderr,
            level=level,
            format=console_format,
            colorize=not json_logs,
            serialize=json_logs,
            backtrace=verbose,
            diagnose=verbose,
        )

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                log_file,
                level="DEBUG",
                format=(
                    "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                    "{level: <8} | "
                    "{name}:{function}:{line} | "
                    "{message}"
                ),
                rotation="10 MB",
                retention="1 week",
                serialize=True,
            )


class RichOutput:
    """Rich console output for the CLI."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def print_status(self, status: Dict[str, Any]) -> None:
        """Display AP status in a formatted table."""
        if not status.get("supported"):
            self.console.print(
                Panel(
                    "[yellow]Soft-AP control is not supported on this platform.\n"
                    "Values below should be unknown or empty.[/yellow]",
                    title="Warning",
                )
            )

        table = Table(title="Access Point Status", show_header=True)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")

        for key, value in status.items():
            if key == "clients":
                continue  # Handle clients separately

            display_key = key.replace("_", " ").title()
            if isinstance(value, dict):
                display_value = json.dumps(value, indent=2)
            elif isinstance(value, bool):
                display_value = "yes" if value else "no"
            elif value is None:
                display_value = "-"
            else:
                display_value = str(value)

            table.add_row(display_key, display_value)

        self.console.print(table)

        if status.get("clients") is not None:
            self.print_clients(status["clients"])

    def print_clients(self, clients: Optional[List[Dict[str, Any]]], title: str = "Clients") -> None:
        """Display clients in a formatted table."""
        if clients is None:
            self.console.print("\n[red]Access point is not enabled[/red]")
            return
        if not clients:
            self.console.print("\n[yellow]No clients connected[/yellow]")
            return

        table = Table(title=f"{title} ({len(clients)})", show_header=True)
        table.add_column("IP Address", style="green")
        table.add_column("MAC Address", style="cyan")

        for client_data in clients:
            table.add_row(
                client_data.get("ip_address", "N/A"),
                client_data.get("hardware_address", "N/A"),
            )

        self.console.print(table)

    @asynccontextmanager
    async def progress_context(
        self, description: str
    ) -> AsyncGenerator[Progress, None]:
        """Context manager for progress indication."""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
        ) as progress:
            task = progress.add_task(description, total=None)
            yield progress
            progress.update(task, completed=True)


class EnhancedArgumentParser:
    """Argument parser with validation and help formatting."""

    def __init__(self) -> None:
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            prog="ap-control",
            description="Control the Wi-Fi access point and inspect its clients",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  ap-control status --json
  ap-control enable --ssid MyAP --password secretpass
  ap-control clients --reachable --timeout-ms 500
  ap-control monitor --interval 2
            """,
        )

        # Global options
        parser.add_argument(
            "-v", "--verbose", action="store_true", help="Enable verbose debug output"
        )
        parser.add_argument(
            "-q",
            "--quiet",
            action="store_true",
            help="Suppress all output except errors",
        )
        parser.add_argument(
            "--log-file", type=Path, help="Write logs to specified file"
        )
        parser.add_argument(
            "--json-logs", action="store_true", help="Output logs in JSON format"
        )
        parser.add_argument(
            "--no-color", action="store_true", help="Disable colored output"
        )
        parser.add_argument(
            "--config", type=Path, help="Settings file (JSON)"
        )
        parser.add_argument(
            "--fake",
            action="store_true",
            help="Use an in-memory access point instead of NetworkManager",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_status_parser(subparsers)
        self._add_enable_parser(subparsers)
        self._add_disable_parser(subparsers)
        self._add_clients_parser(subparsers)
        self._add_address_parser(subparsers)
        self._add_monitor_parser(subparsers)

        return parser

    def _add_status_parser(self, subparsers: Any) -> None:
        """Add the 'status' subcommand parser."""
        parser = subparsers.add_parser(
            "status",
            help="Show access point status",
            description="Display AP state, configuration, address and clients",
        )
        parser.add_argument(
            "--json", action="store_true", help="Output status in JSON format"
        )
        parser.add_argument(
            "--watch", action="store_true", help="Continuously refresh the status"
        )
        parser.add_argument(
            "--interval",
            type=float,
            default=1.0,
            help="Update interval for watch mode (seconds)",
        )

    def _add_switch_options(self, parser: argparse.ArgumentParser) -> None:
        """Add options shared by 'enable' and 'disable'."""
        parser.add_argument(
            "--keep-station",
            action="store_true",
            help="Do not toggle the station (client) Wi-Fi radio",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            default=30.0,
            help="Seconds to wait for the state change",
        )

    def _add_enable_parser(self, subparsers: Any) -> None:
        """Add the 'enable' subcommand parser."""
        parser = subparsers.add_parser(
            "enable",
            help="Enable the access point",
            description="Enable the AP with its current or a new configuration",
        )
        parser.add_argument("--ssid", help="SSID (network name) for the access point")
        parser.add_argument("--password", help="Pre-shared key for the access point")
        self._add_switch_options(parser)

    def _add_disable_parser(self, subparsers: Any) -> None:
        """Add the 'disable' subcommand parser."""
        parser = subparsers.add_parser(
            "disable",
            help="Disable the access point",
            description="Disable any running access point",
        )
        self._add_switch_options(parser)

    def _add_clients_parser(self, subparsers: Any) -> None:
        """Add the 'clients' subcommand parser."""
        parser = subparsers.add_parser(
            "clients",
            help="List connected clients",
            description="List clients from the neighbor table, optionally probing them",
        )
        parser.add_argument(
            "--reachable", action="store_true", help="Only show clients that answer a ping"
        )
        parser.add_argument(
            "--timeout-ms", type=int, help="Probe timeout in milliseconds"
        )
        parser.add_argument("--json", action="store_true", help="Output in JSON format")

    def _add_address_parser(self, subparsers: Any) -> None:
        """Add the 'address' subcommand parser."""
        parser = subparsers.add_parser(
            "address",
            help="Show this device's address on the AP network",
        )
        parser.add_argument("--json", action="store_true", help="Output in JSON format")

    def _add_monitor_parser(self, subparsers: Any) -> None:
        """Add the 'monitor' subcommand parser."""
        parser = subparsers.add_parser(
            "monitor",
            help="Report access point state changes",
        )
        parser.add_argument(
            "--interval", type=float, help="Polling interval in seconds"
        )

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        """Parse command line arguments with validation."""
        parsed_args = self.parser.parse_args(args)

        if parsed_args.quiet and parsed_args.verbose:
            self.parser.error("--quiet and --verbose are mutually exclusive")
        if getattr(parsed_args, "password", None) and not getattr(parsed_args, "ssid", None):
            self.parser.error("--password requires --ssid")

        return parsed_args


class ApControlCLI:
    """Command-line interface for the access point controller."""

    def __init__(self, platform: Optional[ApPlatform] = None) -> None:
        self.control: Optional[ApControl] = None
        self.platform = platform
        self.parser = EnhancedArgumentParser()
        self.output = RichOutput()

    def _create_control(self, args: argparse.Namespace) -> ApControl:
        settings = load_settings(args.config)
        platform = self.platform
        if platform is None:
            if args.fake:
                platform = FakePlatform(
                    state=ApState.ENABLED,
                    configuration=ApConfiguration("FakeAP", "fake-passphrase"),
                )
            else:
                platform = NmcliPlatform(settings)
        return ApControl(platform, settings)

    async def run(self, args: Optional[List[str]] = None) -> int:
        """Main CLI entry point with error handling."""
        try:
            parsed_args = self.parser.parse_args(args)

            LoggerManager.setup_logger(
                verbose=parsed_args.verbose,
                quiet=parsed_args.quiet,
                log_file=parsed_args.log_file,
                json_logs=parsed_args.json_logs,
            )

            if parsed_args.no_color:
                self.output.console = Console(color_system=None)

            command_map = {
                "status": self.handle_status,
                "enable": self.handle_enable,
                "disable": self.handle_disable,
                "clients": self.handle_clients,
                "address": self.handle_address,
                "monitor": self.handle_monitor,
            }

            if parsed_args.command not in command_map:
                self.parser.parser.print_help()
                return 1

            self.control = self._create_control(parsed_args)

            logger.debug(f"Executing command: {parsed_args.command}")
            await command_map[parsed_args.command](parsed_args)

            return 0

        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except CLIError as e:
            logger.error(f"CLI error: {e}")
            return 1
        except Exception as e:
            logger.exception(f"Unexpected error: {e}")
            return 1

    def _set_station(self, enabled: bool) -> None:
        """Switch the station radio, as required around AP changes."""
        assert self.control is not None
        try:
            if not self.control.platform.set_wifi_enabled(enabled):
                logger.warning(f"Station radio did not switch {'on' if enabled else 'off'}")
        except Exception as e:
            logger.warning(f"Could not switch station radio: {e}")

    async def handle_status(self, args: argparse.Namespace) -> None:
        """Handle the 'status' command."""
        assert self.control is not None

        if args.watch:
            try:
                while True:
                    status = self.control.get_status()

                    if args.json:
                        print(json.dumps(status, indent=2))
                    else:
                        self.output.console.clear()
                        self.output.print_status(status)

                    await asyncio.sleep(args.interval)
            except KeyboardInterrupt:
                pass
        else:
            status = self.control.get_status()

            if args.json:
                print(json.dumps(status, indent=2))
            else:
                self.output.print_status(status)

    async def handle_enable(self, args: argparse.Namespace) -> None:
        """Handle the 'enable' command."""
        assert self.control is not None

        if not self.control.is_supported():
            logger.warning("Soft-AP control is not supported on this platform")

        if not args.keep_station:
            self._set_station(False)

        async with self.output.progress_context("Enabling access point..."):
            if args.ssid:
                config = ApConfiguration(ssid=args.ssid, pre_shared_key=args.password)
                success = self.control.set_enabled(config, True)
            else:
                success = self.control.enable()

            reached = success and await asyncio.to_thread(
                self.control.wait_for_state, ApState.ENABLED, args.timeout
            )

        if not success:
            raise CLIError("Failed to enable access point")
        if not reached:
            raise CLIError(
                f"Access point did not come up (state {self.control.get_state().name})"
            )

        self.output.console.print("[green]Access point enabled[/green]")
        self.output.print_status(self.control.get_status())

    async def handle_disable(self, args: argparse.Namespace) -> None:
        """Handle the 'disable' command."""
        assert self.control is not None

        async with self.output.progress_context("Disabling access point..."):
            success = self.control.disable()
            reached = success and await asyncio.to_thread(
                self.control.wait_for_state, ApState.DISABLED, args.timeout
            )

        if not args.keep_station:
            self._set_station(True)

        if not success:
            raise CLIError("Failed to disable access point")
        if not reached:
            raise CLIError(
                f"Access point did not stop (state {self.control.get_state().name})"
            )

        self.output.console.print("[green]Access point disabled[/green]")

    async def handle_clients(self, args: argparse.Namespace) -> None:
        """Handle the 'clients' command."""
        assert self.control is not None

        if args.reachable and args.json:
            # Keep stdout to the JSON document alone
            clients = await asyncio.to_thread(self.control.probe_all, args.timeout_ms)
            title = "Reachable Clients"
        elif args.reachable:
            async with self.output.progress_context("Probing clients..."):
                clients = await asyncio.to_thread(self.control.probe_all, args.timeout_ms)
            title = "Reachable Clients"
        else:
            clients = self.control.get_clients()
            title = "Clients"

        client_data = [client.to_dict() for client in clients] if clients is not None else None
        if args.json:
            print(json.dumps(client_data, indent=2))
        else:
            self.output.print_clients(client_data, title=title)

    async def handle_address(self, args: argparse.Namespace) -> None:
        """Handle the 'address' command."""
        assert self.control is not None

        address = self.control.get_local_address()
        if args.json:
            print(json.dumps({"ip_address": str(address) if address else None}))
        elif address is None:
            self.output.console.print("[yellow]No address on the access point network[/yellow]")
        else:
            self.output.console.print(f"{address} ({self.control.wifi_device})")

    async def handle_monitor(self, args: argparse.Namespace) -> None:
        """Handle the 'monitor' command."""
        assert self.control is not None

        def report(previous: Optional[ApState], current: ApState) -> None:
            before = previous.name if previous is not None else "-"
            self.output.console.print(f"{before} -> [bold]{current.name}[/bold]")

        try:
            await self.control.monitor_state(args.interval, report)
        except asyncio.CancelledError:
            pass


def main() -> None:
    """Main entry point for the CLI application."""
    cli = ApControlCLI()

    try:
        exit_code = asyncio.run(cli.run())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Operation cancelled")
        sys.exit(130)
    except Exception as e:
        logger.critical(f"Critical error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
