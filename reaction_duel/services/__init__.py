"""Match-lifecycle services: lobby membership, the round state machine and timers.

Imported by socket handlers and HTTP routes, keeping transport concerns
separated from core game mechanics.
"""
import random

from reaction_duel.registry import ConnectionRegistry
from reaction_duel.store import MatchStore
from .engine import MatchEngine
from .lobby import LobbyManager
from .notifier import SocketIONotifier
from .scheduler import BackgroundScheduler, ManualScheduler


class GameService:
    """One wired set of match components. Each Flask app owns its own."""

    def __init__(self, notifier, scheduler, config=None, logger=None, rng=None):
        config = config or {}
        self.rng = rng or random.Random()
        self.notifier = notifier
        self.scheduler = scheduler
        self.registry = ConnectionRegistry()
        self.store = MatchStore(code_length=int(config.get('MATCH_CODE_LENGTH', 6)), rng=self.rng)
        self.engine = MatchEngine(
            self.store,
            notifier,
            scheduler,
            countdown_from=int(config.get('COUNTDOWN_FROM', 3)),
            countdown_interval=float(config.get('COUNTDOWN_INTERVAL_SEC', 1.0)),
            red_delay_min=float(config.get('RED_DELAY_MIN_SEC', 2.0)),
            red_delay_max=float(config.get('RED_DELAY_MAX_SEC', 7.0)),
            rng=self.rng,
            logger=logger,
        )
        self.lobby = LobbyManager(
            self.store,
            self.registry,
            notifier,
            self.engine,
            name_max_length=int(config.get('DISPLAY_NAME_MAX_LENGTH', 32)),
            logger=logger,
        )


def build_service(app, socketio) -> GameService:
    """Build the service for a Flask app.

    In TESTING mode timers run on a ManualScheduler that tests advance by hand.
    """
    if app.config.get('TESTING'):
        scheduler = ManualScheduler()
    else:
        scheduler = BackgroundScheduler(socketio)
    notifier = SocketIONotifier(socketio, namespace=app.config.get('SOCKETIO_NAMESPACE', '/'))
    return GameService(notifier, scheduler, config=app.config, logger=app.logger)
