from flask import Blueprint, jsonify, current_app
from partyarcade.games import SERIES
from partyarcade.services.session import UnknownGameError


games = Blueprint('games', __name__)


def _registry():
    return current_app.extensions['arcade_registry']


@games.route('', methods=['GET'])
def list_games():
    registry = _registry()
    catalog = []
    for game_id in registry.ids():
        tutorial = registry.get(game_id).get_tutorial()
        catalog.append({'id': game_id, **tutorial.to_dict()})
    return jsonify(catalog)


@games.route('/series', methods=['GET'])
def get_series():
    return jsonify({'sequence': list(SERIES)})


@games.route('/<string:game_id>/tutorial', methods=['GET'])
def get_tutorial(game_id):
    try:
        game_cls = _registry().get(game_id)
    except UnknownGameError:
        return jsonify({'error': 'Game not found'}), 404
    return jsonify({'id': game_id, **game_cls.get_tutorial().to_dict()})
