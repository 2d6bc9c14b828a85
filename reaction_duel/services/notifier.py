from reaction_duel.models import Match


class Notifier:
    """Fan-out of match events to connections.

    Subclasses implement ``send``; everything else is expressed in terms of it
    so the engine never talks to the transport directly.
    """

    def send(self, connection_id: str, event: str, payload=None) -> None:
        raise NotImplementedError

    def to_match(self, match: Match, event: str, payload=None) -> None:
        for player in list(match.players):
            self.send(player.id, event, payload)

    def lobby_created(self, connection_id: str, match: Match) -> None:
        self.send(connection_id, 'lobbyCreated', match.id)

    def lobby_state(self, match: Match) -> None:
        snapshot = match.to_dict()
        self.to_match(match, 'lobbyState', snapshot)

    def game_start(self, match: Match) -> None:
        self.to_match(match, 'gameStart', match.id)

    def game_state(self, match: Match) -> None:
        self.to_match(match, 'gameState', match.state)

    def countdown(self, match: Match, value: int) -> None:
        self.to_match(match, 'countdown', value)

    def game_result(self, match: Match, reaction_ms=None) -> None:
        for player in list(match.players):
            self.send(player.id, 'gameResult', {
                'winnerId': match.winner_id,
                'result': 'win' if player.id == match.winner_id else 'lose',
                'reactionMs': reaction_ms,
            })

    def player_left(self, match: Match, player_id: str) -> None:
        self.to_match(match, 'playerLeft', {'playerId': player_id})

    def error(self, connection_id: str, message: str) -> None:
        self.send(connection_id, 'error', message)


class SocketIONotifier(Notifier):
    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, connection_id, event, payload=None):
        # Use socketio.emit since this may be called from a background task
        if payload is None:
            self.socketio.emit(event, to=connection_id, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=connection_id, namespace=self.namespace)
