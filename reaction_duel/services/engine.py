"""Match state machine: countdown, randomized red -> green delay, click arbitration.

All transitions run under ``store.lock``. Timer callbacks capture the match id,
the round generation and the state they expect; when they fire they re-read
the match and abort unless all three still line up, so a timer outliving its
match (destroyed, rematched, decided by an early click) does nothing.
"""
import logging
import random
from typing import Optional

from reaction_duel.errors import Forbidden, InvalidState
from reaction_duel.models import COUNTDOWN, FINISHED, GREEN, IN_ROUND_STATES, RED, WAITING, Match


class MatchEngine:
    def __init__(
        self,
        store,
        notifier,
        scheduler,
        countdown_from: int = 3,
        countdown_interval: float = 1.0,
        red_delay_min: float = 2.0,
        red_delay_max: float = 7.0,
        rng: Optional[random.Random] = None,
        clock=None,
        logger=None,
    ):
        if red_delay_min > red_delay_max:
            raise ValueError('red_delay_min must not exceed red_delay_max')
        self.store = store
        self.notifier = notifier
        self.scheduler = scheduler
        self.countdown_from = countdown_from
        self.countdown_interval = countdown_interval
        self.red_delay_min = red_delay_min
        self.red_delay_max = red_delay_max
        self.rng = rng or random.Random()
        self.clock = clock or scheduler.time
        self.logger = logger or logging.getLogger(__name__)

    # ---- start ----

    def start(self, connection_id: str, match_id) -> Match:
        """Host-initiated start. Same preconditions as the readiness auto-start."""
        with self.store.lock:
            match = self.store.require(match_id)
            player = match.find_player(connection_id)
            if player is None:
                raise Forbidden('You are not in this lobby')
            if not player.is_host:
                raise Forbidden('Only the host can start the game')
            if match.state != WAITING:
                raise InvalidState(f'Match is already {match.state}')
            if not match.ready_to_start:
                raise Forbidden('Both players must be ready to start')
            self._begin(match)
            return match

    def autostart(self, match: Match) -> bool:
        """Start the match if readiness is complete. Called after every ready toggle."""
        with self.store.lock:
            if match.state != WAITING or not match.ready_to_start:
                return False
            self.logger.info(f"[autostart] match={match.id} all players ready")
            self._begin(match)
            return True

    def _begin(self, match: Match) -> None:
        match.cancel_timer()
        match.state = COUNTDOWN
        match.winner_id = None
        match.round_start_time = None
        round_token = match.next_round()
        self.logger.info(f"[start] match={match.id} round={round_token} players={len(match.players)}")
        self.notifier.game_start(match)
        self.notifier.game_state(match)
        self._schedule(match, self.countdown_interval, self._countdown_tick, match.id, round_token, self.countdown_from)

    # ---- timers ----

    def _schedule(self, match: Match, delay: float, callback, *args) -> None:
        match.timer = self.scheduler.call_later(delay, callback, *args)
        self.logger.info(f"[timer-set] match={match.id} round={match.round} state={match.state} callback={callback.__name__} delay={delay:.3f}s")

    def _live(self, match_id: str, round_token: int, expected_state: str) -> Optional[Match]:
        match = self.store.get(match_id)
        if match is None:
            self.logger.info(f"[timer-abort] match={match_id} no longer exists")
            return None
        if match.round != round_token or match.state != expected_state:
            self.logger.info(
                f"[timer-abort] match={match_id} expected round={round_token} state={expected_state} "
                f"actual round={match.round} state={match.state}"
            )
            return None
        match.timer = None
        return match

    def _countdown_tick(self, match_id: str, round_token: int, value: int) -> None:
        with self.store.lock:
            match = self._live(match_id, round_token, COUNTDOWN)
            if match is None:
                return
            if value > 0:
                self.notifier.countdown(match, value)
                self._schedule(match, self.countdown_interval, self._countdown_tick, match_id, round_token, value - 1)
            else:
                self._turn_red(match)

    def _turn_red(self, match: Match) -> None:
        match.state = RED
        self.notifier.game_state(match)
        delay = self.rng.uniform(self.red_delay_min, self.red_delay_max)
        self._schedule(match, delay, self._turn_green, match.id, match.round)

    def _turn_green(self, match_id: str, round_token: int) -> None:
        with self.store.lock:
            match = self._live(match_id, round_token, RED)
            if match is None:
                return
            match.state = GREEN
            match.round_start_time = int(self.clock() * 1000)
            self.logger.info(f"[green] match={match_id} round={round_token} at={match.round_start_time}")
            self.notifier.game_state(match)

    # ---- arbitration ----

    def click(self, connection_id: str, match_id) -> bool:
        """Resolve a click in server-receipt order. Returns True if it decided the match."""
        with self.store.lock:
            match = self.store.require(match_id)
            if not match.is_member(connection_id):
                self.logger.info(f"[click-ignored] match={match.id} player={connection_id} not a member")
                return False
            if match.state == RED:
                opponent = match.opponent_of(connection_id)
                winner_id = opponent.id if opponent else None
                self.logger.info(f"[click] match={match.id} player={connection_id} false start, winner={winner_id}")
                self._finish(match, winner_id)
                return True
            if match.state == GREEN:
                reaction_ms = None
                if match.round_start_time is not None:
                    reaction_ms = max(0, int(self.clock() * 1000) - match.round_start_time)
                self.logger.info(f"[click] match={match.id} player={connection_id} wins reaction_ms={reaction_ms}")
                self._finish(match, connection_id, reaction_ms)
                return True
            self.logger.info(f"[click-ignored] match={match.id} player={connection_id} state={match.state}")
            return False

    def _finish(self, match: Match, winner_id: Optional[str], reaction_ms: Optional[int] = None) -> None:
        if winner_id is not None and winner_id not in match.former_player_ids:
            raise ValueError(f"winner {winner_id} never played in match {match.id}")
        match.cancel_timer()
        match.state = FINISHED
        match.winner_id = winner_id
        match.next_round()
        self.logger.info(f"[finish] match={match.id} winner={winner_id}")
        self.notifier.game_result(match, reaction_ms)
        self.notifier.game_state(match)

    def abandon(self, match: Match) -> bool:
        """End a running round after a departure; whoever is still seated wins."""
        with self.store.lock:
            if match.state not in IN_ROUND_STATES:
                return False
            winner = match.players[0] if match.players else None
            self.logger.info(f"[abandon] match={match.id} state={match.state} winner={winner.id if winner else None}")
            self._finish(match, winner.id if winner else None)
            return True

    # ---- rematch ----

    def rematch(self, connection_id: str, match_id) -> Match:
        with self.store.lock:
            match = self.store.require(match_id)
            if not match.is_member(connection_id):
                raise Forbidden('You are not in this lobby')
            if match.state != FINISHED:
                raise InvalidState(f'Match is {match.state}, not finished')
            match.cancel_timer()
            match.state = WAITING
            match.winner_id = None
            match.round_start_time = None
            for p in match.players:
                if not p.is_host:
                    p.is_ready = False
            match.next_round()
            self.logger.info(f"[rematch] match={match.id} requested_by={connection_id}")
            self.notifier.game_state(match)
            self.notifier.lobby_state(match)
            return match
