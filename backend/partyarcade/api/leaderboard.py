from flask import Blueprint, jsonify, request, current_app
from partyarcade import socketio
from partyarcade.services.leaderboard import LeaderboardService, StorageError, ValidationError


leaderboard = Blueprint('leaderboard', __name__)

LEADERBOARD_ROOM = 'leaderboard'


def _service() -> LeaderboardService:
    return LeaderboardService()


@leaderboard.errorhandler(ValidationError)
def handle_validation_error(exc):
    return jsonify({'error': str(exc)}), 400


@leaderboard.errorhandler(StorageError)
def handle_storage_error(exc):
    return jsonify({'success': False, 'error': str(exc)}), 503


@leaderboard.route('/score', methods=['POST'])
def submit_score():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Pseudo and score are required')
    pseudo = data.get('pseudo')
    score = data.get('score')

    result = _service().submit_score(pseudo, score)

    if result.get('new') or result.get('updated'):
        # Open leaderboard screens refresh on this push
        socketio.emit(
            'leaderboard_update',
            {'pseudo': pseudo.strip(), 'score': int(score)},
            to=LEADERBOARD_ROOM,
            namespace='/ws',
        )
    return jsonify(result)


@leaderboard.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    # Unparsable limits fall back to the default listing size
    limit = request.args.get('limit', type=int)
    entries = _service().get_top(limit)
    current_app.logger.info(f"[leaderboard] limit={limit} returned={len(entries)}")
    return jsonify(entries)


@leaderboard.route('/player/<string:pseudo>', methods=['GET'])
def get_player(pseudo):
    player = _service().get_player_rank(pseudo)
    if not player:
        return jsonify({'error': 'Player not found'}), 404
    return jsonify(player)
