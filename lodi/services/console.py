"""
LodiConsole - line-oriented command console for the logistics engine

Commands:
    /list-deposits                              List all deposits
    /list-packages                              List all packages and their state
    /create-travel <sourceDepotId> <destDepotId>  Create a travel order
    /advance-package <packageId> <newState>     Advance a package's state
    /update-article <articleId> <newStatus>     Update an article's status
    /help                                       Show this help message
    /exit                                       Exit the console

Listings come from the local mirror; commands go straight to the engine.
"""

import sys

from lodi.buisness.core.errors import LogisticsDomainError
from lodi.buisness.logistics.logistics_engine import LogisticsEngine
from lodi.logger import get_logger

logger = get_logger("lodi.console")

HELP_TEXT = """Available commands:
  /list-deposits - List all available deposits
  /list-packages - List all packages and their state
  /create-travel <sourceDepotId> <destDepotId> - Create a travel order
  /advance-package <packageId> <newState> - Advance a package's state
  /update-article <articleId> <newStatus> - Update an article's status
  /help - Show this help message
  /exit - Exit the application"""


class LodiConsole:
    """
    Read commands from a stream and run them against the store.

    Args:
        store: RecordStore
        mirror: LocalMirror used for listings
        stdin/stdout: Streams, default to the process streams
    """

    def __init__(self, store, mirror, stdin=None, stdout=None):
        self.store = store
        self.mirror = mirror
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def write(self, text=""):
        print(text, file=self.stdout)

    def run(self):
        """Loop until /exit or end of input"""
        self.write("Lodi Package Tracking System")
        self.write(HELP_TEXT)

        while True:
            self.stdout.write("> ")
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                break
            line = line.strip()
            if line.lower() == "/exit":
                break
            if line:
                self.handle(line)

    def handle(self, line):
        """
        Run a single command line.

        Returns:
            bool: True if the command was recognized and succeeded
        """
        command, _, args = line.partition(" ")
        command = command.lower()
        handlers = {
            "/help": self._help,
            "/list-deposits": self._list_deposits,
            "/list-packages": self._list_packages,
            "/create-travel": self._create_travel,
            "/advance-package": self._advance_package,
            "/update-article": self._update_article,
        }
        handler = handlers.get(command)
        if handler is None:
            self.write("Unknown command. Type /help for available commands.")
            return False

        try:
            return handler(args.strip())
        except LogisticsDomainError as exc:
            logger.warning(f"Command '{line}' rejected: {exc}")
            self.write(f"Error processing command: {exc}")
            return False

    # ========== Commands ==========

    def _help(self, args):
        self.write(HELP_TEXT)
        return True

    def _list_deposits(self, args):
        self.write("Available Deposits:")
        for deposit in self.mirror.deposits():
            self.write(f"ID: {deposit.id} - {deposit.name}")
        return True

    def _list_packages(self, args):
        self.write("Packages:")
        for package in self.mirror.packages():
            self.write(
                f"{package.id} [{package.state}] {package.source_deposit} -> "
                f"{package.destination_deposit} ({len(package.contents)} articles)"
            )
        return True

    def _create_travel(self, args):
        parts = args.split()
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            self.write("Invalid arguments. Usage: /create-travel <sourceDepotId> <destDepotId>")
            return False
        source_id, dest_id = int(parts[0]), int(parts[1])
        package = LogisticsEngine.create_travel_order(self.store, source_id, dest_id)
        self.write(f"Created travel order {package.id} from depot {source_id} to depot {dest_id}")
        return True

    def _advance_package(self, args):
        parts = args.split(maxsplit=1)
        if len(parts) != 2:
            self.write("Invalid arguments. Usage: /advance-package <packageId> <newState>")
            return False
        package_id, new_state = parts[0], parts[1].strip()
        LogisticsEngine.advance_package_state(self.store, package_id, new_state)
        self.write(f"Advanced package {package_id} to state '{new_state}'")
        return True

    def _update_article(self, args):
        parts = args.split(maxsplit=1)
        if len(parts) != 2:
            self.write("Invalid arguments. Usage: /update-article <articleId> <newStatus>")
            return False
        article_id, new_status = parts[0], parts[1].strip()
        LogisticsEngine.update_article_status(self.store, article_id, new_status)
        self.write(f"Updated article {article_id} status to '{new_status}'")
        return True
