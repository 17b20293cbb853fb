"""Command line entry point and orchestrator"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from .assets.loader import BundledAssetProvider
from .config.manager import ConfigurationManager
from .config.path_validator import validate_root
from .core.executable_restore import restore_original
from .core.game_resolver import GameResolver, UnknownGameError
from .core.markers import create_marker_store
from .core.matcher import TargetSpec
from .core.override_engine import OverrideEngine
from .core.results import OperationResult
from .logging_config import setup_logging
from . import __app_name__, __version__

EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_USAGE = 2


class ShimSwapApp:
    """Application orchestrator.

    Loads configuration once and wires the resolver, marker store, content
    provider and engine together for each command.
    """

    def __init__(self, config_path: Optional[Path] = None, out=None):
        self.config_manager = ConfigurationManager(config_path)
        self.config = self.config_manager.load_or_default()
        self.resolver = GameResolver(self.config)
        self.targets = TargetSpec(self.config.settings.targets)
        self.engine = OverrideEngine(
            create_marker_store(self.config.settings),
            max_depth=self.config.settings.max_depth,
        )
        self.out = out or sys.stdout

    def apply(self, root: Path) -> int:
        root = self._checked_root(root)
        provider = BundledAssetProvider.from_settings(self.config.settings)
        if not provider.asset_dir.is_dir():
            raise ValueError(f"Shim directory {provider.asset_dir} does not exist (set AssetDir in the configuration)")
        return self._report(self.engine.apply(root, self.targets, provider))

    def revert(self, root: Path) -> int:
        root = self._checked_root(root)
        return self._report(self.engine.revert(root, self.targets))

    def status(self, root: Path, reconcile: bool = False) -> int:
        root = self._checked_root(root)
        if reconcile:
            status = self.engine.reconcile(root, self.targets)
        else:
            status = self.engine.status(root, self.targets)

        self._print(f"Root: {status.root}")
        self._print(f"Override active: {'yes' if status.active else 'no'}")
        markers = ", ".join(sorted(k.value for k in status.markers)) or "none"
        self._print(f"Markers: {markers}")
        for path in status.targets:
            self._print(f"  target  {path}")
        for path in status.backups:
            self._print(f"  backup  {path}")
        if not status.consistent:
            self._print("Markers disagree with backups on disk (run with --reconcile to fix)")
        return EXIT_OK

    def restore_exe(self, drive_root: Path, executable: Optional[str]) -> int:
        drive_root = self._checked_root(drive_root)
        result = restore_original(drive_root, executable, max_depth=self.config.settings.max_depth)
        return self._report(result)

    def list_games(self) -> int:
        if not self.config.games:
            self._print("No games configured")
        for game in self.config.games:
            checks = self.resolver.verify(game)
            self._print(
                f"{game.app_id}\t{game.display_name}\t"
                f"install={game.install_root or '-'}{'' if checks['install_root'] else ' (missing)'}\t"
                f"drive={game.drive_root or '-'}{'' if checks['drive_root'] else ' (missing)'}"
            )
        return EXIT_OK

    def _checked_root(self, root: Path) -> Path:
        is_valid, message = validate_root(root)
        if not is_valid:
            raise ValueError(message)
        return root

    def _report(self, result: OperationResult) -> int:
        self._print(result.summary())
        for path in result.changed:
            self._print(f"  changed   {path}")
        for path in result.repaired:
            self._print(f"  repaired  {path}")
        for message in result.inconsistencies:
            self._print(f"  warning   {message}")
        for failure in result.failures:
            self._print(f"  error     {failure}")
        return EXIT_OK if result.ok else EXIT_PARTIAL_FAILURE

    def _print(self, line: str) -> None:
        print(line, file=self.out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shimswap",
        description="Swap vendor anti-tamper libraries for compatibility shims and restore them.",
    )
    parser.add_argument("--version", action="version", version=f"{__app_name__} {__version__}")
    parser.add_argument("--debug", action="store_true", help="also log to the console")
    parser.add_argument("--config", type=Path, help="configuration file to use")

    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("apply", "replace target libraries with shims"),
        ("revert", "restore original libraries from backups"),
        ("status", "show override state of an install root"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        group = cmd.add_mutually_exclusive_group(required=True)
        group.add_argument("root", nargs="?", type=Path, help="game install root")
        group.add_argument("--app", help="configured application id")
        if name == "status":
            cmd.add_argument("--reconcile", action="store_true",
                             help="rewrite markers to match backups on disk")

    restore = sub.add_parser("restore-exe", help="restore a saved original executable")
    group = restore.add_mutually_exclusive_group(required=True)
    group.add_argument("drive_root", nargs="?", type=Path, help="emulated drive root")
    group.add_argument("--app", help="configured application id")
    restore.add_argument("--exe", help="executable name (default: any *.original.exe)")

    sub.add_parser("games", help="list configured games")
    return parser


def run(args: argparse.Namespace, out=None) -> int:
    """Dispatch a parsed command line."""
    app = ShimSwapApp(args.config, out=out)

    if args.command == "games":
        return app.list_games()

    if args.command == "restore-exe":
        if args.app:
            drive_root = app.resolver.drive_root(args.app)
            executable = args.exe or app.resolver.executable(args.app)
        else:
            drive_root, executable = args.drive_root, args.exe
        return app.restore_exe(drive_root, executable)

    root = app.resolver.install_root(args.app) if args.app else args.root
    if args.command == "apply":
        return app.apply(root)
    if args.command == "revert":
        return app.revert(root)
    return app.status(root, reconcile=args.reconcile)


def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)

    # Initialize logging first
    logger = setup_logging(debug=args.debug)
    logger.info(f"Starting {__app_name__} v{__version__}: {args.command}")

    try:
        return run(args)
    except (UnknownGameError, ValueError) as e:
        logger.error(f"{args.command} aborted: {e}")
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except OSError as e:
        logger.exception(f"{args.command} failed")
        print(f"error: {e}", file=sys.stderr)
        return EXIT_PARTIAL_FAILURE
    finally:
        logger.info(f"{__app_name__} finished")


if __name__ == "__main__":
    sys.exit(main())
