"""CLI entry point for nudgebox.

nudgebox is a notification inbox for a team workspace backend. It polls the
backend for due calendar, meeting and document reminders, listens on its
event stream, and shows the results in a terminal inbox with desktop
notifications.
"""

import argparse
import contextlib
import json
import sys
from datetime import datetime
from pathlib import Path

from .config import Config, ensure_config_exists, get_config_path, load_config
from .errors import ParseError, PersistenceError
from .history import NotificationHistoryStore
from .log import set_verbose
from .models import REMINDER_KINDS
from .reminders import compute_due, normalize
from .reminders.due import parse_iso
from .store import SqliteStore, history_key


def _resolve_user(args: argparse.Namespace, config: Config) -> str:
    user_id = getattr(args, "user", None) or config.server.user_id
    if not user_id:
        print(
            "Error: no user id. Pass --user or set server.user_id in the config.",
            file=sys.stderr,
        )
        sys.exit(1)
    return user_id


def cmd_run(args: argparse.Namespace) -> None:
    """Launch the inbox TUI with polling and the push channel."""
    from .engine import build_dispatcher
    from .tui import NudgeboxApp, set_terminal_title

    config = load_config()
    set_verbose(config.verbose_logging)
    user_id = _resolve_user(args, config)

    dispatcher = build_dispatcher(config, user_id)
    set_terminal_title("nudgebox")
    NudgeboxApp(dispatcher, config).run()


def cmd_history_list(args: argparse.Namespace) -> None:
    """List persisted notifications, newest first."""
    config = load_config()
    user_id = _resolve_user(args, config)
    store = SqliteStore()
    items = NotificationHistoryStore(store).load(user_id)

    if args.json:
        print(json.dumps([item.to_dict() for item in items], indent=2))
        return

    if not items:
        print("No notifications.")
        return

    with contextlib.suppress(PersistenceError):
        updated = store.updated_at(history_key(user_id))
        if updated:
            print(f"Last updated {datetime.fromtimestamp(updated).strftime('%Y-%m-%d %H:%M:%S')}")

    for item in items:
        marker = " " if item.read else "*"
        print(f"{marker} {item.timestamp[:19]} | {item.category} | {item.title}")
        if args.verbose and item.message:
            print(f"    {item.message}")


def cmd_history_read_all(args: argparse.Namespace) -> None:
    """Mark every persisted notification as read."""
    config = load_config()
    user_id = _resolve_user(args, config)
    NotificationHistoryStore(SqliteStore()).mark_all_read(user_id)
    print(f"Marked all notifications for {user_id} as read")


def cmd_history_clear(args: argparse.Namespace) -> None:
    """Drop persisted history (seen keys are kept)."""
    config = load_config()
    user_id = _resolve_user(args, config)
    NotificationHistoryStore(SqliteStore()).clear(user_id)
    print(f"Cleared history for {user_id}")


def cmd_due(args: argparse.Namespace) -> None:
    """Show which records in a JSON file would be due. Nothing is stored."""
    config = load_config()
    try:
        data = json.loads(Path(args.file).read_text())
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: could not read {args.file}: {e}", file=sys.stderr)
        sys.exit(1)

    if not isinstance(data, dict):
        print('Error: expected an object like {"calendar": [...]}', file=sys.stderr)
        sys.exit(1)

    if args.now:
        try:
            now = parse_iso(args.now)
        except ParseError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        now = datetime.now().astimezone()

    candidates = []
    for kind in REMINDER_KINDS:
        candidates.extend(normalize(kind, data.get(kind) or []))

    items = compute_due(
        candidates,
        now,
        default_window_minutes=config.polling.default_lead_minutes,
        trailing_window_minutes=config.polling.trailing_window_minutes,
    )

    if args.json:
        print(json.dumps([item.to_dict() for item in items], indent=2))
        return

    if not items:
        print("Nothing due.")
        return

    for item in items:
        print(f"[{item.id}] {item.title}: {item.message}")


def cmd_config_init(args: argparse.Namespace) -> None:
    """Initialize config file with defaults."""
    config_path = ensure_config_exists()
    print(f"Config file at: {config_path}")


def cmd_config_path(args: argparse.Namespace) -> None:
    """Print config file path."""
    print(get_config_path())


def cmd_config_show(args: argparse.Namespace) -> None:
    """Show current config."""
    config_path = get_config_path()
    if config_path.exists():
        print(config_path.read_text())
    else:
        print(f"No config file at {config_path}")
        print("Run 'nudgebox config init' to create one.")


def setup_history_parser(subparsers: argparse._SubParsersAction) -> None:
    """Set up the history subcommand."""
    history_parser = subparsers.add_parser("history", help="Inspect and manage stored history")
    history_parser.add_argument("--user", "-u", help="User id (default: server.user_id)")
    history_subparsers = history_parser.add_subparsers(dest="history_command")

    # history list
    list_parser = history_subparsers.add_parser("list", help="List notifications")
    list_parser.add_argument("--json", action="store_true", help="Print as JSON")
    list_parser.add_argument("--verbose", "-v", action="store_true", help="Show messages")
    list_parser.set_defaults(func=cmd_history_list)

    # history read-all
    read_parser = history_subparsers.add_parser("read-all", help="Mark everything read")
    read_parser.set_defaults(func=cmd_history_read_all)

    # history clear
    clear_parser = history_subparsers.add_parser("clear", help="Delete all notifications")
    clear_parser.set_defaults(func=cmd_history_clear)

    history_parser.set_defaults(func=lambda a: history_parser.print_help())


def setup_config_parser(subparsers: argparse._SubParsersAction) -> None:
    """Set up the config subcommand."""
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    init_parser = config_subparsers.add_parser("init", help="Create config file with defaults")
    init_parser.set_defaults(func=cmd_config_init)

    path_parser = config_subparsers.add_parser("path", help="Print config file path")
    path_parser.set_defaults(func=cmd_config_path)

    show_parser = config_subparsers.add_parser("show", help="Show current config")
    show_parser.set_defaults(func=cmd_config_show)

    config_parser.set_defaults(func=lambda a: config_parser.print_help())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nudgebox",
        description="Reminder and activity notification inbox",
    )
    subparsers = parser.add_subparsers(dest="command")

    # run
    run_parser = subparsers.add_parser("run", help="Launch the inbox TUI")
    run_parser.add_argument("--user", "-u", help="User id (default: server.user_id)")
    run_parser.set_defaults(func=cmd_run)

    setup_history_parser(subparsers)

    # due
    due_parser = subparsers.add_parser(
        "due", help="Compute due reminders from a JSON file of records (dry run)"
    )
    due_parser.add_argument("file", help='JSON object: {"calendar": [...], "meeting": [...]}')
    due_parser.add_argument("--now", help="ISO timestamp to evaluate at (default: now)")
    due_parser.add_argument("--json", action="store_true", help="Print as JSON")
    due_parser.set_defaults(func=cmd_due)

    setup_config_parser(subparsers)

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    args.func(args)


if __name__ == "__main__":
    main()
