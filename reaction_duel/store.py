import random
import threading
from typing import Dict, List, Optional

from reaction_duel.errors import NotFound
from reaction_duel.models import Match, Player, generate_match_code, normalize_code


class MatchStore:
    """In-memory table of live matches.

    ``lock`` is the serialization boundary for the whole engine: every
    mutation of the table or of a match held in it, whether it comes from a
    client event or a timer, runs while holding it. It is re-entrant because
    lobby operations call into the state machine.
    """

    def __init__(self, code_length: int = 6, rng: Optional[random.Random] = None):
        self.code_length = code_length
        self.rng = rng or random.Random()
        self.lock = threading.RLock()
        self._matches: Dict[str, Match] = {}

    def create(self, host_id: str, display_name: str) -> Match:
        with self.lock:
            code = generate_match_code(self.__contains__, length=self.code_length, rng=self.rng)
            match = Match(code)
            match.add_player(Player(host_id, display_name, is_ready=True, is_host=True))
            self._matches[code] = match
            return match

    def get(self, match_id) -> Optional[Match]:
        return self._matches.get(normalize_code(match_id))

    def require(self, match_id) -> Match:
        code = normalize_code(match_id)
        if not code:
            raise NotFound('matchId is required')
        match = self._matches.get(code)
        if match is None:
            raise NotFound()
        return match

    def delete(self, match_id) -> Optional[Match]:
        with self.lock:
            match = self._matches.pop(normalize_code(match_id), None)
            if match is not None:
                match.cancel_timer()
                match.next_round()
            return match

    def ids(self) -> List[str]:
        return list(self._matches)

    def matches(self) -> List[Match]:
        return list(self._matches.values())

    def __contains__(self, match_id):
        return normalize_code(match_id) in self._matches

    def __len__(self):
        return len(self._matches)
