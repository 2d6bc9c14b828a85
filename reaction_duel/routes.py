from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Reaction Duel server!'})

@main.route('/health')
def health():
    store = current_app.extensions['reaction_duel'].store
    return jsonify({'status': 'ok', 'matches': len(store)})
