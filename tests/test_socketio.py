def _named(packets, name):
    return [pkt['args'][0] if pkt['args'] else None for pkt in packets if pkt['name'] == name]


def _create(sio, name):
    sio.emit('createLobby', name)
    return _named(sio.get_received(), 'lobbyCreated')[0]


def test_reaction_round_end_to_end(sio_factory, service):
    alice = sio_factory()
    bob = sio_factory()

    code = _create(alice, 'Alice')
    assert len(code) == 6

    bob.emit('joinLobby', {'matchId': code, 'displayName': 'Bob'})
    snapshot = _named(bob.get_received(), 'lobbyState')[-1]
    assert [p['displayName'] for p in snapshot['players']] == ['Alice', 'Bob']
    assert snapshot['players'][1]['isReady'] is False
    alice_id = snapshot['players'][0]['id']
    alice.get_received()  # flush

    # Bob readying up completes readiness and starts the match
    bob.emit('toggleReady', code)
    received = alice.get_received()
    assert _named(received, 'gameStart') == [code]
    assert _named(received, 'gameState') == ['countdown']

    service.scheduler.advance(3.0)
    assert _named(alice.get_received(), 'countdown') == [3, 2, 1]

    service.scheduler.advance(1.0)
    assert _named(alice.get_received(), 'gameState') == ['red']

    service.scheduler.advance(2.0)
    assert _named(alice.get_received(), 'gameState') == ['green']
    bob.get_received()  # flush

    alice.emit('playerClick', code)
    bob.emit('playerClick', code)

    a_packets = alice.get_received()
    b_packets = bob.get_received()
    a_result = _named(a_packets, 'gameResult')
    b_result = _named(b_packets, 'gameResult')
    assert len(a_result) == 1 and len(b_result) == 1
    assert a_result[0]['winnerId'] == alice_id
    assert a_result[0]['result'] == 'win'
    assert b_result[0]['winnerId'] == alice_id
    assert b_result[0]['result'] == 'lose'
    assert _named(a_packets, 'gameState') == ['finished']
    assert _named(b_packets, 'error') == []


def test_false_start_over_socket(sio_factory, service):
    alice = sio_factory()
    bob = sio_factory()
    code = _create(alice, 'Alice')
    bob.emit('joinLobby', {'matchId': code, 'displayName': 'Bob'})
    alice_id = _named(bob.get_received(), 'lobbyState')[-1]['players'][0]['id']
    bob.emit('toggleReady', {'matchId': code})
    service.scheduler.advance(4.0)
    bob.get_received()

    bob.emit('playerClick', code)
    result = _named(bob.get_received(), 'gameResult')
    assert result[0] == {'winnerId': alice_id, 'result': 'lose', 'reactionMs': None}


def test_join_errors_are_reported(sio_factory):
    alice = sio_factory()
    bob = sio_factory()
    cara = sio_factory()
    code = _create(alice, 'Alice')

    cara.emit('joinLobby', {'matchId': 'NOPE00', 'displayName': 'Cara'})
    assert _named(cara.get_received(), 'error') == ['Lobby not found']

    bob.emit('joinLobby', {'matchId': code, 'displayName': 'Bob'})
    cara.emit('joinLobby', {'matchId': code, 'displayName': 'Cara'})
    assert _named(cara.get_received(), 'error') == ['Lobby is full']


def test_start_game_is_host_only(sio_factory, service):
    alice = sio_factory()
    bob = sio_factory()
    code = _create(alice, 'Alice')
    bob.emit('joinLobby', {'lobbyId': code, 'playerName': 'Bob'})
    bob.get_received()

    bob.emit('startGame', code)
    assert _named(bob.get_received(), 'error') == ['Only the host can start the game']

    alice.emit('startGame', code)
    assert _named(alice.get_received(), 'error') == ['Both players must be ready to start']
    assert service.store.get(code).state == 'waiting'


def test_rematch_over_socket(sio_factory, service):
    alice = sio_factory()
    bob = sio_factory()
    code = _create(alice, 'Alice')
    bob.emit('joinLobby', {'matchId': code, 'displayName': 'Bob'})
    bob.emit('toggleReady', code)
    service.scheduler.advance(6.0)
    bob.emit('playerClick', code)
    alice.get_received()

    alice.emit('requestRematch', code)
    packets = alice.get_received()
    assert _named(packets, 'gameState') == ['waiting']
    snapshot = _named(packets, 'lobbyState')[-1]
    assert snapshot['state'] == 'waiting'
    assert snapshot['winnerId'] is None
    assert snapshot['players'][1]['isReady'] is False

    # A second rematch request is a benign race: silently ignored
    alice.emit('requestRematch', code)
    assert _named(alice.get_received(), 'error') == []


def test_host_disconnect_promotes_guest(sio_factory, service):
    alice = sio_factory()
    bob = sio_factory()
    code = _create(alice, 'Alice')
    bob.emit('joinLobby', {'matchId': code, 'displayName': 'Bob'})
    bob.get_received()

    alice.disconnect()
    packets = bob.get_received()
    assert len(_named(packets, 'playerLeft')) == 1
    snapshot = _named(packets, 'lobbyState')[-1]
    assert len(snapshot['players']) == 1
    assert snapshot['players'][0]['displayName'] == 'Bob'
    assert snapshot['players'][0]['isHost'] is True
    assert snapshot['players'][0]['isReady'] is True

    bob.disconnect()
    assert code not in service.store


def test_leave_lobby_event(sio_factory, service):
    alice = sio_factory()
    code = _create(alice, 'Alice')
    alice.emit('leaveLobby')
    assert code not in service.store
    assert len(service.registry) == 0


def test_unexpected_failure_is_contained(sio_factory, service, monkeypatch):
    alice = sio_factory()
    code = _create(alice, 'Alice')

    def _boom(*args):
        raise RuntimeError('boom')

    monkeypatch.setattr(service.engine, 'click', _boom)
    alice.emit('playerClick', code)
    assert _named(alice.get_received(), 'error') == ['Failed to process click']
    assert code in service.store
