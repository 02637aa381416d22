from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import yaml

from . import __version__
from .commands import GameCommands
from .errors import ErrorKind, LifeVaultError
from .logging_config import configure_logging


EXIT_CODES: Dict[ErrorKind, int] = {
    ErrorKind.IO: 2,
    ErrorKind.NOT_FOUND: 3,
    ErrorKind.MALFORMED_INPUT: 4,
    ErrorKind.REMOTE: 5,
    ErrorKind.BACKUP_PRECONDITION: 6,
}


def _read_arg_or_stdin(value: str) -> str:
    return sys.stdin.read() if value == "-" else value


def _cmd_save(cmds: GameCommands, args: argparse.Namespace) -> int:
    cmds.save_game(_read_arg_or_stdin(args.data), args.player_id)
    return 0


def _cmd_load(cmds: GameCommands, args: argparse.Namespace) -> int:
    data = cmds.load_game(args.player_id)
    if data:
        print(data)
    return 0


def _cmd_validate(cmds: GameCommands, args: argparse.Namespace) -> int:
    ok = cmds.validate_game_state(args.player_id, _read_arg_or_stdin(args.game_state))
    print("true" if ok else "false")
    return 0 if ok else 1


def _cmd_ban(cmds: GameCommands, args: argparse.Namespace) -> int:
    cmds.ban_player(args.player_id, args.reason)
    return 0


def _cmd_is_banned(cmds: GameCommands, args: argparse.Namespace) -> int:
    print("true" if cmds.is_player_banned(args.player_id) else "false")
    return 0


def _cmd_ban_reason(cmds: GameCommands, args: argparse.Namespace) -> int:
    print(cmds.get_ban_reason(args.player_id))
    return 0


def _cmd_local_ip(cmds: GameCommands, args: argparse.Namespace) -> int:
    print(cmds.get_local_ip())
    return 0


def _cmd_version(cmds: GameCommands, args: argparse.Namespace) -> int:
    print(cmds.get_current_version())
    return 0


def _cmd_check(cmds: GameCommands, args: argparse.Namespace) -> int:
    descriptor = cmds.check_for_updates(args.current_version)
    print(json.dumps(descriptor.to_dict(), indent=2))
    return 0


def _cmd_download(cmds: GameCommands, args: argparse.Namespace) -> int:
    print(cmds.download_update(args.version))
    return 0


def _cmd_install(cmds: GameCommands, args: argparse.Namespace) -> int:
    ok = cmds.install_update(args.path)
    print("true" if ok else "false")
    return 0 if ok else 1


def _cmd_restore(cmds: GameCommands, args: argparse.Namespace) -> int:
    for path in cmds.restore_backup():
        print(path)
    return 0


Handler = Callable[[GameCommands, argparse.Namespace], int]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lifevault",
        description="What Is Life - save, ban, anti-cheat and update commands",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--data-dir", type=Path, default=None, help="Override the application data directory.")
    parser.add_argument(
        "--settings",
        dest="settings_path",
        type=Path,
        default=None,
        help="Path to a user settings YAML file to load/override defaults.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")
    sub = parser.add_subparsers(dest="command", required=True)

    def add(name: str, handler: Handler, help_text: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.set_defaults(handler=handler)
        return p

    p = add("save-game", _cmd_save, "Store a player's serialized game state ('-' reads stdin).")
    p.add_argument("player_id")
    p.add_argument("data")
    p = add("load-game", _cmd_load, "Print a player's saved game state (nothing if none).")
    p.add_argument("player_id")
    p = add("validate-game-state", _cmd_validate, "Run the anti-cheat gate on a JSON game state.")
    p.add_argument("player_id")
    p.add_argument("game_state")
    p = add("ban-player", _cmd_ban, "Ban a player.")
    p.add_argument("player_id")
    p.add_argument("reason")
    p = add("is-player-banned", _cmd_is_banned, "Print whether a player is banned.")
    p.add_argument("player_id")
    p = add("get-ban-reason", _cmd_ban_reason, "Print a player's ban reason.")
    p.add_argument("player_id")
    add("get-local-ip", _cmd_local_ip, "Print this machine's LAN address.")
    add("get-current-version", _cmd_version, "Print the installed version.")
    p = add("check-for-updates", _cmd_check, "Query the latest release.")
    p.add_argument("current_version", nargs="?", default=None)
    p = add("download-update", _cmd_download, "Stage the payload for a version.")
    p.add_argument("version")
    p = add("install-update", _cmd_install, "Back up user data, then install a staged payload.")
    p.add_argument("path", type=Path)
    add("restore-backup", _cmd_restore, "Copy the last backup back over saves and config.")
    return parser


def _setup_logging(verbosity: int, level_name: Optional[str]) -> None:
    if verbosity == 1:
        configure_logging(logging.INFO)
    elif verbosity >= 2:
        configure_logging(logging.DEBUG)
    else:
        configure_logging(logging.WARNING, level_name=level_name)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.WARNING)
    try:
        cmds = GameCommands.from_settings_file(settings_path=args.settings_path, data_dir=args.data_dir)
        _setup_logging(args.verbose, cmds.settings.logging.level)
        return args.handler(cmds, args)
    except LifeVaultError as exc:
        print(f"error [{exc.kind.value}] {exc}", file=sys.stderr)
        return EXIT_CODES.get(exc.kind, 1)
    except (ValueError, TypeError, yaml.YAMLError) as exc:
        # Invalid settings (e.g. malformed repo name, YAML syntax or section shape)
        print(f"error [config] {exc}", file=sys.stderr)
        return 1
