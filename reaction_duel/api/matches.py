from flask import Blueprint, current_app, jsonify

matches = Blueprint('matches', __name__)


@matches.route('/<string:match_id>', methods=['GET'])
def get_match_state(match_id):
    """Read-only snapshot of a live match."""
    store = current_app.extensions['reaction_duel'].store
    with store.lock:
        match = store.get(match_id)
        if not match:
            return jsonify({'error': 'Match not found'}), 404
        return jsonify(match.to_dict())
