import logging
from typing import Optional

from reaction_duel.errors import MatchFull
from reaction_duel.models import IN_ROUND_STATES, WAITING, Match, Player


class LobbyManager:
    """Membership, readiness and host election for matches."""

    def __init__(self, store, registry, notifier, engine, name_max_length: int = 32, logger=None):
        self.store = store
        self.registry = registry
        self.notifier = notifier
        self.engine = engine
        self.name_max_length = name_max_length
        self.logger = logger or logging.getLogger(__name__)

    def _clean_name(self, display_name, seat: int) -> str:
        name = display_name.strip() if isinstance(display_name, str) else ''
        if not name:
            name = f'Player {seat}'
        return name[:self.name_max_length]

    def _seat(self, connection_id: str, match: Match) -> None:
        """Bind the connection to match, first leaving any other match it sits in."""
        current = self.registry.match_of(connection_id)
        if current and current != match.id:
            self.logger.info(f"[seat] player={connection_id} leaving match={current} for {match.id}")
            self.leave(connection_id)
        self.registry.bind(connection_id, match.id)

    def create(self, connection_id: str, display_name) -> Match:
        with self.store.lock:
            match = self.store.create(connection_id, self._clean_name(display_name, 1))
            self._seat(connection_id, match)
            self.logger.info(f"[match-create] match={match.id} host={connection_id}")
            self.notifier.lobby_created(connection_id, match)
            self.notifier.lobby_state(match)
            return match

    def join(self, connection_id: str, match_id, display_name) -> Match:
        with self.store.lock:
            match = self.store.require(match_id)
            if match.is_member(connection_id):
                self._seat(connection_id, match)
                self.logger.info(f"[join] match={match.id} player={connection_id} already a member")
                self.notifier.lobby_state(match)
                return match
            if match.is_full:
                raise MatchFull()
            match.add_player(Player(connection_id, self._clean_name(display_name, len(match.players) + 1)))
            self._seat(connection_id, match)
            self.logger.info(f"[join] match={match.id} player={connection_id} players={len(match.players)}")
            self.notifier.lobby_state(match)
            return match

    def toggle_ready(self, connection_id: str, match_id) -> bool:
        with self.store.lock:
            match = self.store.require(match_id)
            player = match.find_player(connection_id)
            # Host readiness is fixed; strangers and running rounds are ignored
            if player is None or player.is_host or match.state != WAITING:
                return False
            player.is_ready = not player.is_ready
            self.logger.info(f"[ready] match={match.id} player={connection_id} ready={player.is_ready}")
            self.notifier.lobby_state(match)
            self.engine.autostart(match)
            return True

    def leave(self, connection_id: str) -> Optional[Match]:
        """Remove the connection from its match. Returns the match if it survives."""
        with self.store.lock:
            match_id = self.registry.unbind(connection_id)
            if not match_id:
                return None
            match = self.store.get(match_id)
            if match is None or match.remove_player(connection_id) is None:
                return None
            self.logger.info(f"[leave] match={match.id} player={connection_id} remaining={len(match.players)}")

            if match.is_empty:
                self.store.delete(match.id)
                self.logger.info(f"[match-delete] match={match.id}")
                return None

            promoted = match.ensure_host()
            if promoted:
                self.logger.info(f"[host] match={match.id} promoted={promoted.id}")
            if match.state in IN_ROUND_STATES:
                self.engine.abandon(match)
            self.notifier.lobby_state(match)
            self.notifier.player_left(match, connection_id)
            return match
