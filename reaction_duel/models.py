import random
import string
from typing import Callable, List, Optional, Set

# Hard cap, not a tunable
MAX_PLAYERS = 2

WAITING = 'waiting'
COUNTDOWN = 'countdown'
RED = 'red'
GREEN = 'green'
FINISHED = 'finished'

# States in which a round is running and a departure decides the match
IN_ROUND_STATES = (COUNTDOWN, RED, GREEN)


class Player:
    def __init__(self, id: str, display_name: str, is_ready: bool = False, is_host: bool = False):
        self.id = id
        self.display_name = display_name
        self.is_ready = is_ready
        self.is_host = is_host

    def promote(self) -> None:
        """Make this player the host. Hosts are always ready."""
        self.is_host = True
        self.is_ready = True

    def to_dict(self):
        return {
            'id': self.id,
            'displayName': self.display_name,
            'isReady': self.is_ready,
            'isHost': self.is_host,
        }

    def __repr__(self):
        return f"<Player {self.id} {self.display_name!r} host={self.is_host} ready={self.is_ready}>"


def generate_match_code(is_taken: Callable[[str], bool], length: int = 6, rng: Optional[random.Random] = None) -> str:
    """Generate a short match code that no live match is using."""
    rng = rng or random
    while True:
        code = ''.join(rng.choices(string.ascii_uppercase + string.digits, k=length))
        if not is_taken(code):
            return code


def normalize_code(value) -> str:
    if not isinstance(value, str):
        return ''
    return value.strip().upper()


class Match:
    def __init__(self, id: str):
        self.id = id
        self.players: List[Player] = []
        self.state = WAITING
        self.winner_id: Optional[str] = None
        self.round_start_time: Optional[int] = None
        self.former_player_ids: Set[str] = set()
        # Generation counter; timers scheduled under an older round are stale
        self.round = 0
        self.timer = None

    def find_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def is_member(self, player_id: str) -> bool:
        return self.find_player(player_id) is not None

    def opponent_of(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id != player_id:
                return p
        return None

    @property
    def host(self) -> Optional[Player]:
        for p in self.players:
            if p.is_host:
                return p
        return None

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def ready_to_start(self) -> bool:
        return len(self.players) == MAX_PLAYERS and all(p.is_ready or p.is_host for p in self.players)

    def add_player(self, player: Player) -> None:
        if self.is_full:
            raise ValueError(f"match {self.id} already has {MAX_PLAYERS} players")
        self.players.append(player)
        self.former_player_ids.add(player.id)

    def remove_player(self, player_id: str) -> Optional[Player]:
        player = self.find_player(player_id)
        if player:
            self.players.remove(player)
        return player

    def ensure_host(self) -> Optional[Player]:
        """Promote the earliest remaining player if nobody holds the host seat."""
        if self.players and self.host is None:
            self.players[0].promote()
            return self.players[0]
        return None

    def next_round(self) -> int:
        self.round += 1
        return self.round

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def to_dict(self):
        return {
            'matchId': self.id,
            'players': [p.to_dict() for p in self.players],
            'state': self.state,
            'winnerId': self.winner_id,
            'roundStartTime': self.round_start_time,
        }

    def __repr__(self):
        return f"<Match {self.id} state={self.state} players={len(self.players)}>"
