#!/usr/bin/env python3
"""
Main application - runs an operation console or a display board against the relay
"""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from config import CLIENT_CONFIG, DISPLAY_CONFIG, LOGGING_CONFIG
from core.logging_config import setup_logging, get_logger, log_error_with_context
from core.config_validator import validate_startup_config, ConfigValidationError
from core.connection_manager import ConnectionStatus
from core.exceptions import InitDataError
from events import event_bus, EventBus, EventTypes, SystemEvent
from scoreboard.init_data import load_init_data
from sync.client import ScoreboardClient
from sync.credential_store import FileCredentialStore, InMemoryCredentialStore
from sync.protocol import ClientType, Role
from sync.role_coordinator import describe_role

# console command -> (operation, help)
COMMANDS = {
    "b+": ("ball_up", "ball +1"),
    "b-": ("ball_down", "ball -1"),
    "s+": ("strike_up", "strike +1"),
    "s-": ("strike_down", "strike -1"),
    "o+": ("out_up", "out +1"),
    "o-": ("out_down", "out -1"),
    "t+": ("score_top_up", "top team score +1"),
    "t-": ("score_top_down", "top team score -1"),
    "u+": ("score_bottom_up", "bottom team score +1"),
    "u-": ("score_bottom_down", "bottom team score -1"),
    "1b": ("toggle_base", "toggle runner on first"),
    "2b": ("toggle_base", "toggle runner on second"),
    "3b": ("toggle_base", "toggle runner on third"),
    "count": ("reset_count", "clear balls, strikes and outs"),
    "clear": ("reset_bases_and_counts", "clear bases and counts"),
    "change": ("change_offense", "switch offense"),
    "next": ("advance_half_inning", "next half inning"),
    "prev": ("retreat_half_inning", "previous half inning"),
    "inning+": ("advance_inning", "next inning"),
    "inning-": ("retreat_inning", "previous inning"),
    "end": ("end_game", "end the game"),
}

BASE_COMMANDS = {"1b": "first_base", "2b": "second_base", "3b": "third_base"}


class OperationConsole:
    """Line-based operator panel"""

    def __init__(self, client: ScoreboardClient, bus: EventBus = event_bus):
        self.client = client
        self.bus = bus
        self.running = False
        self.colors = DISPLAY_CONFIG["colors"]

    def attach(self):
        """Follow failover and connection loss while the console is open"""
        self.bus.on(EventTypes.ROLE_CHANGED, self._on_role_changed)
        self.bus.on(EventTypes.CONNECTION_LOST, self._on_connection_lost)

    def detach(self):
        self.bus.off(EventTypes.ROLE_CHANGED, self._on_role_changed)
        self.bus.off(EventTypes.CONNECTION_LOST, self._on_connection_lost)

    def _on_role_changed(self, event: SystemEvent):
        new_role = Role(event.data["new_role"])
        color = self.colors["master"] if new_role is Role.MASTER else self.colors["slave"]
        reason = event.data.get("reason") or "relay decision"
        print(f"\n{color}Role changed to {describe_role(new_role)}: {reason}{self.colors['reset']}")

    def _on_connection_lost(self, event: SystemEvent):
        print(
            f"\n{self.colors['error']}Relay unreachable after {event.data.get('attempts')} attempts. "
            f"Type 'restart' to try again.{self.colors['reset']}"
        )

    def print_status(self):
        status = self.client.get_status()
        role = self.client.roles.role
        color = self.colors["slave"] if self.client.roles.operations_disabled else self.colors["master"]
        state = status["state"]
        print(
            f"{color}[{describe_role(role)}]{self.colors['reset']} "
            f"{state['game_title']} | {state['team_top']} {state['score_top']} - "
            f"{state['score_bottom']} {state['team_bottom']} | {status['status_text']} | "
            f"B{state['ball_cnt']} S{state['strike_cnt']} O{state['out_cnt']}"
        )

    def print_event_stats(self):
        stats = self.bus.get_stats()
        print(
            f"  events: {stats['total_events']} processed, {stats['queue_size']} queued, "
            f"{stats['listener_errors']} listener errors"
        )

    def print_recent_events(self, count: int = 10):
        for event in self.bus.get_recent_events(count):
            print(f"  {event['datetime']} {event['type']} {event['data']}")

    def print_help(self):
        for command, (_, description) in COMMANDS.items():
            print(f"  {command:<10} {description}")
        print("  new        start a new game")
        print("  tournament start a new tournament from init data")
        print("  title      pick the game title")
        print("  team top|bottom  pick a team name")
        print("  reload     re-apply init data labels")
        print("  release    hand mastership back to the relay")
        print("  restart    reconnect after giving up")
        print("  status     show the board")
        print("  events     show recent client events")
        print("  quit       exit")

    def handle(self, line: str) -> bool:
        """Run one console command; returns False to exit"""
        words = line.strip().lower().split()
        if not words:
            return True
        command = words[0]
        if command in ("quit", "exit", "q"):
            return False
        if command == "help":
            self.print_help()
        elif command == "status":
            self.print_status()
            self.print_event_stats()
        elif command == "events":
            self.print_recent_events()
        elif command == "new":
            self._new_game()
        elif command == "tournament":
            self._new_tournament()
        elif command == "title":
            self._pick_title()
        elif command == "team":
            self._pick_team(words[1] if len(words) > 1 else "")
        elif command == "reload":
            self.client.reload_config(force=True)
        elif command == "release":
            if not self.client.release_master():
                print("Release not sent (not master or not connected)")
        elif command == "restart":
            if not self.client.restart():
                print("Connection is still active")
        elif command in COMMANDS:
            operation, _ = COMMANDS[command]
            args = (BASE_COMMANDS[command],) if command in BASE_COMMANDS else ()
            self._perform(operation, *args)
        else:
            print(f"Unknown command: {command} (type 'help')")
        return True

    def _perform(self, operation: str, *args):
        if self.client.perform(operation, *args):
            self.print_status()
        else:
            print("Operation refused: another console is in control")

    def _confirm(self, question: str) -> bool:
        answer = input(f"{question} [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    def _choose(self, label: str, options: List[str]) -> Optional[str]:
        """Numbered pick from a list; None on an empty answer or bad choice"""
        if not options:
            print(f"No {label} choices in init data")
            return None
        for number, option in enumerate(options, 1):
            print(f"  {number}) {option}")
        answer = input(f"{label.capitalize()} number: ").strip()
        if not answer:
            return None
        if not answer.isdigit() or not 1 <= int(answer) <= len(options):
            print(f"No such {label}: {answer}")
            return None
        return options[int(answer) - 1]

    def _new_game(self):
        if self.client.controls.needs_new_game_confirmation():
            if not self._confirm("A game is in progress. Start a new game?"):
                return
        self._perform("new_game")

    def _new_tournament(self):
        init_data = self.client.init_data
        if not init_data:
            print("No init data loaded")
            return
        if not self._confirm(f"Start tournament '{init_data.game_title}'? Scores and innings are reset."):
            return
        self._perform("load_from_init_data", init_data)

    def _pick_title(self):
        options = self.client.init_data.game_array if self.client.init_data else []
        title = self._choose("title", options)
        if title is not None:
            self._perform("set_title", title)

    def _pick_team(self, side: str):
        if side not in ("top", "bottom"):
            print("Usage: team top|bottom")
            return
        options = self.client.init_data.team_items if self.client.init_data else []
        team = self._choose("team", options)
        if team is None:
            return
        if side == "top":
            self._perform("set_teams", team)
        else:
            self._perform("set_teams", None, team)

    def run(self):
        self.running = True
        self.attach()
        self.print_help()
        try:
            while self.running:
                try:
                    line = input("> ")
                except EOFError:
                    break
                if not self.handle(line):
                    break
        finally:
            self.detach()
            self.running = False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Scoreboard relay client")
    parser.add_argument("--mode", choices=["operation", "board"], default=CLIENT_CONFIG["client_type"],
                        help="Client type to run")
    parser.add_argument("--page-url", default=CLIENT_CONFIG["page_url"],
                        help="URL the client page is served from; the relay URL is derived from it")
    parser.add_argument("--embedded", action="store_true", default=CLIENT_CONFIG["embedded"],
                        help="Running inside the desktop shell (relay on the fixed loopback address)")
    parser.add_argument("--init-data", default=CLIENT_CONFIG["init_data_path"],
                        help="Path to init_data.json")
    parser.add_argument("--credential-dir", default=CLIENT_CONFIG["credential_dir"],
                        help="Directory for the master token (memory only if empty)")
    parser.add_argument("--instance-id", default=CLIENT_CONFIG["instance_id"],
                        help="Key for this client's token file; give each console sharing a credential dir its own")
    return parser.parse_args(argv)


def build_client(args) -> ScoreboardClient:
    logger = get_logger(__name__)
    colors = DISPLAY_CONFIG["colors"]

    init_data = None
    try:
        init_data = load_init_data(args.init_data)
    except InitDataError as e:
        logger.warning(f"Starting without init data: {e}")

    if args.credential_dir:
        store = FileCredentialStore(args.credential_dir, instance_id=args.instance_id or args.mode)
    else:
        store = InMemoryCredentialStore()

    # The operation console reports connection loss through the event bus
    def on_board_status_change(old_status, new_status):
        if new_status is ConnectionStatus.DISCONNECTED:
            print(f"{colors['error']}Relay unreachable. Restart the board to try again.{colors['reset']}")

    def on_render(line):
        print(f"{colors['info']}{line}{colors['reset']}")

    return ScoreboardClient(
        ClientType(args.mode),
        args.page_url,
        embedded=args.embedded,
        store=store,
        init_data=init_data,
        on_render=on_render,
        on_status_change=on_board_status_change if args.mode == "board" else None
    )


client = None


def signal_handler(sig, frame):
    """Handle Ctrl+C gracefully"""
    try:
        print("\n\nShutting down gracefully...")
        if client:
            client.shutdown()
    except Exception as e:
        print(f"Error during shutdown: {e}")
    finally:
        sys.exit(0)


def main(argv=None):
    global client

    args = parse_args(argv)
    CLIENT_CONFIG.update({
        "client_type": args.mode,
        "page_url": args.page_url,
        "embedded": args.embedded,
        "init_data_path": args.init_data,
        "credential_dir": args.credential_dir,
        "instance_id": args.instance_id,
    })

    # Validate configuration first (before logging setup)
    try:
        validate_startup_config()
    except ConfigValidationError as e:
        print(f"Configuration validation failed: {e}")
        print("Please fix the configuration errors and try again.")
        sys.exit(1)

    setup_logging(LOGGING_CONFIG, client_type=args.mode)
    logger = get_logger(__name__)
    logger.info(f"Starting scoreboard {args.mode} client")

    signal.signal(signal.SIGINT, signal_handler)

    client = build_client(args)

    try:
        client.start()
        if client.client_type is ClientType.OPERATION:
            OperationConsole(client).run()
        else:
            threading.Event().wait()
    except Exception as e:
        log_error_with_context(logger, e, "scoreboard client", mode=args.mode)
    finally:
        client.shutdown()


if __name__ == "__main__":
    main()
