"""Command-line entry point: log in to a UDJ server and query it."""

import argparse
import getpass
import logging
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from udjclient.api.client import ServerConnection
from udjclient.core.config import ConfigManager
from udjclient.models.outcome import (
    Authenticated,
    Failure,
    PlayerCreated,
    PlayerNameChanged,
    SortingAlgorithmList,
)

logger = logging.getLogger(__name__)


def build_parser(config: ConfigManager) -> argparse.ArgumentParser:
    """Create the argument parser with defaults taken from config."""
    parser = argparse.ArgumentParser(
        prog="udjclient",
        description="Log in to a UDJ server and report the session",
    )
    parser.add_argument(
        "username", nargs="?", default=config.get_username() or None, help="account username",
    )
    parser.add_argument(
        "--base-url", default=config.get_base_url(), help="service root URL",
    )
    parser.add_argument(
        "--timeout", type=int, default=config.get_timeout_ms(), help="request timeout in ms",
    )
    parser.add_argument(
        "--algorithms", action="store_true", help="also list the server's sorting algorithms",
    )
    parser.add_argument(
        "--create-player", metavar="NAME", help="create a player and remember it",
    )
    parser.add_argument(
        "--forget-player", action="store_true", help="forget the remembered player",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging",
    )
    return parser


def remember_player(connection: ServerConnection, config: ConfigManager) -> None:
    """Restore the stored player into the connection and keep config in step.

    Args:
        connection: Connection to attach the remembered player to.
        config: Config holding the player id and name.
    """
    player_id = config.get_player_id()
    if player_id:
        logger.info("Using remembered player %s (%s)", player_id, config.get_player_name())
        connection.set_player_id(player_id)

    def on_created(result: PlayerCreated) -> None:
        config.set_player_id(result.player_id)

    def on_renamed(result: PlayerNameChanged) -> None:
        config.set_player_name(result.name)

    connection.player_created.connect(on_created)
    connection.player_name_changed.connect(on_renamed)


class LoginRunner:
    """Drives one login and the optional follow-up calls to completion."""

    def __init__(
        self,
        connection: ServerConnection,
        list_algorithms: bool,
        player_name: str | None = None,
    ) -> None:
        """Wire the runner to a connection's signals."""
        self._connection = connection
        self._list_algorithms = list_algorithms
        self._player_name = player_name
        self.exit_code = 1
        connection.authenticated.connect(self._on_authenticated)
        connection.auth_failed.connect(self._on_failure)
        connection.player_created.connect(self._on_player_created)
        connection.player_creation_failed.connect(self._on_failure)
        connection.sorting_algorithms_received.connect(self._on_algorithms)
        connection.get_sorting_algorithms_failed.connect(self._on_failure)

    def _on_authenticated(self, result: Authenticated) -> None:
        print(f"Logged in as user {result.user_id}")
        if self._player_name:
            self._connection.create_player(self._player_name)
            return
        self._after_player()

    def _on_player_created(self, result: PlayerCreated) -> None:
        print(f"Created player {result.player_id}")
        self._after_player()

    def _after_player(self) -> None:
        if self._list_algorithms:
            self._connection.get_sorting_algorithms()
            return
        self._finish(0)

    def _on_algorithms(self, result: SortingAlgorithmList) -> None:
        for algorithm in result.algorithms:
            print(f"  [{algorithm.id}] {algorithm.name}: {algorithm.description}")
        self._finish(0)

    def _on_failure(self, failure: Failure) -> None:
        print(f"Error: {failure}", file=sys.stderr)
        self._finish(1)

    def _finish(self, code: int) -> None:
        self.exit_code = code
        QCoreApplication.quit()


def main(argv: list[str] | None = None) -> int:
    """Run the command-line login.

    Returns:
        Exit code (0 for success).
    """
    QCoreApplication.setOrganizationName("UDJ")
    QCoreApplication.setApplicationName("UDJ")
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    config = ConfigManager()
    args = build_parser(config).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.forget_player:
        config.forget_player()

    if not args.username:
        print("Error: no username given and none remembered", file=sys.stderr)
        return 2

    password = getpass.getpass(f"Password for {args.username}: ")

    connection = ServerConnection(args.base_url, args.timeout)
    remember_player(connection, config)
    runner = LoginRunner(connection, args.algorithms, args.create_player)
    logger.info("Connecting to %s", connection.base_url)
    QTimer.singleShot(0, lambda: connection.authenticate(args.username, password))
    app.exec()

    if runner.exit_code == 0:
        config.set_username(args.username)
        if args.create_player:
            config.set_player_name(args.create_player)
        config.sync()
    return runner.exit_code


if __name__ == "__main__":
    sys.exit(main())
