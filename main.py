from src.version import __version__
from src.utils.logger import setup_logging
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Optional, Sequence
import logging
import sys

from PySide6.QtCore import QCoreApplication

# Needs to set the organization and application name before initializing app_paths
QCoreApplication.setOrganizationName("DCSModManager")
QCoreApplication.setApplicationName("DCSModManager")

from src.utils.paths import app_paths  # noqa: E402
from src.DCSModManager import DCSModManager, DCSMMConfig  # noqa: E402
from src.DCSModManager.errors import ModManagerError  # noqa: E402


logger = logging.getLogger(__name__)


def _resolve_mod(manager: DCSModManager, mod: str) -> Path:
    """Accepts either a path to a mod directory or a mod name."""
    path = Path(mod)
    if path.is_dir():
        return path
    return manager.find_mod(mod)


def _cmd_enable(manager: DCSModManager, args: Namespace) -> int:
    manager.enable(_resolve_mod(manager, args.mod), args.profile)
    print(f"Enabled {args.mod} for profile {args.profile}.")
    return 0


def _cmd_disable(manager: DCSModManager, args: Namespace) -> int:
    warnings = manager.disable(_resolve_mod(manager, args.mod), args.profile)
    for warning in warnings:
        print(f"warning: {warning}")
    print(f"Disabled {args.mod} for profile {args.profile}.")
    return 0


def _cmd_status(manager: DCSModManager, args: Namespace) -> int:
    state = manager.status(_resolve_mod(manager, args.mod), args.profile)
    print(f"{args.mod} ({args.profile}): {state.display_name}")
    return 0


def _cmd_conflicts(manager: DCSModManager, args: Namespace) -> int:
    conflicts = manager.find_conflicts(_resolve_mod(manager, args.mod), args.profile)
    for conflict in conflicts:
        print(conflict)
    if not conflicts:
        print("No conflicts found.")
    return 0 if not conflicts else 1


def _cmd_delete(manager: DCSModManager, args: Namespace) -> int:
    for warning in manager.delete_mod(_resolve_mod(manager, args.mod)):
        print(f"warning: {warning}")
    print(f"Deleted {args.mod}.")
    return 0


def _cmd_list(manager: DCSModManager, args: Namespace) -> int:
    for mod in manager.get_mods(args.profile):
        origin = " [sideloaded]" if mod.sideloaded else ""
        print(f"{mod.name} v{mod.version}: {mod.state.display_name}{origin}")
    return 0


def _cmd_profile(manager: DCSModManager, args: Namespace) -> int:
    config = manager.config
    if args.action == "add":
        if args.install_path is None:
            print("error: profile add requires an installation path", file=sys.stderr)
            return 2
        profile = config.set_profile(args.name, args.install_path)
        print(f"Profile {profile.name} -> {profile.install_path}")
    elif args.action == "remove":
        config.remove_profile(args.name)
        print(f"Removed profile {args.name}")
    else:
        for profile in config.profiles:
            print(f"{profile.name}: {profile.install_path}")
    return 0


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        description=f"DCSModManager v{__version__}",
        epilog="Example: python main.py enable MyMod --profile Default"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to the config file (default: user data directory)."
    )

    logging_group = parser.add_argument_group("Logging")

    logging_group.add_argument(
        "-l", "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Set the logging verbosity level (default: %(default)s)."
    )
    logging_group.add_argument(
        "-f",
        "--log-filter",
        type=str,
        metavar="NAME",
        help="Filter logs by a specific module name."
    )
    logging_group.add_argument(
        "-n",
        "--no-logs",
        action="store_true",
        default=False
    )

    commands = parser.add_subparsers(dest="command", required=True)

    for name, handler, help_text in (
        ("enable", _cmd_enable, "Merge a mod into a profile's installation."),
        ("disable", _cmd_disable, "Remove a mod from a profile's installation."),
        ("status", _cmd_status, "Show whether a mod is enabled."),
        ("conflicts", _cmd_conflicts, "List paths that would block enabling a mod."),
        ("delete", _cmd_delete, "Disable a mod everywhere and delete it."),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("mod", help="Mod name or path to the mod directory.")
        command.add_argument("-p", "--profile", default="Default")
        command.set_defaults(handler=handler)

    list_command = commands.add_parser("list", help="List mods and their state.")
    list_command.add_argument("-p", "--profile", default="Default")
    list_command.set_defaults(handler=_cmd_list)

    profile_command = commands.add_parser("profile", help="Manage profiles.")
    profile_command.add_argument("action", choices=["add", "remove", "list"])
    profile_command.add_argument("name", nargs="?")
    profile_command.add_argument("install_path", nargs="?", type=Path)
    profile_command.set_defaults(handler=_cmd_profile)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.no_logs:
        app_paths.create_required_directories()
        setup_logging(app_paths.log_file, args.log_level, args.log_filter)

    logger.info("=" * 50)
    logger.info("Starting DCSModManager v%s", __version__)
    logger.info("=" * 50)

    config = DCSMMConfig(args.config or app_paths.config_file)
    if config.mods_directory is None:
        config.mods_directory = app_paths.default_mods_path

    manager = DCSModManager(config)

    if args.command == "profile" and args.action in ("add", "remove") and not args.name:
        print("error: profile name is required", file=sys.stderr)
        return 2

    try:
        return args.handler(manager, args)
    except ModManagerError as error:
        logger.error("Command %s failed: %s", args.command, error)
        print(f"error: {error}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
