from flask import Blueprint, jsonify, request
from whodidit.errors import GameError, ValidationError
from whodidit.services.games import engine
from whodidit.services.games.projection import build_snapshot
from whodidit.store import get_store


games = Blueprint('games', __name__)


@games.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify({'error': exc.message}), exc.status_code


def _state_payload(code, viewer_id=None):
    snapshot = build_snapshot(get_store(), code)
    payload = snapshot.to_dict()
    payload['view'] = snapshot.view(viewer_id)
    return payload


def _body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@games.route('/create', methods=['POST'])
def create_game():
    data = _body()
    game, host = engine.create_game(get_store(), data.get('name'), data.get('total_rounds'))
    return jsonify({
        'message': 'New game created!',
        'game_code': game['code'],
        'player': host,
    }), 201


@games.route('/join', methods=['POST'])
def join_game():
    data = _body()
    game_code = data.get('game_code')
    if not game_code:
        raise ValidationError('Game code is required')
    player = engine.join_game(get_store(), game_code, data.get('name'), player_id=data.get('player_id'))
    return jsonify(player), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    return jsonify(_state_payload(game_code, request.args.get('player_id')))


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    player_id = _body().get('player_id')
    engine.start_game(get_store(), game_code, player_id)
    return jsonify(_state_payload(game_code, player_id))


@games.route('/<string:game_code>/answers', methods=['POST'])
def submit_answer(game_code):
    data = _body()
    answer = engine.submit_answer(get_store(), game_code, data.get('player_id'), data.get('text'))
    return jsonify({'message': 'Answer submitted', 'answer_id': answer['id']}), 201


@games.route('/<string:game_code>/voting', methods=['POST'])
def move_to_voting(game_code):
    player_id = _body().get('player_id')
    engine.move_to_voting(get_store(), game_code, player_id)
    return jsonify(_state_payload(game_code, player_id))


@games.route('/<string:game_code>/votes', methods=['POST'])
def submit_vote(game_code):
    data = _body()
    vote = engine.submit_vote(
        get_store(),
        game_code,
        data.get('player_id'),
        data.get('answer_id'),
        data.get('guessed_player_id'),
    )
    return jsonify({'message': 'Vote submitted', 'vote_id': vote['id']}), 201


@games.route('/<string:game_code>/results', methods=['POST'])
def compute_results(game_code):
    player_id = _body().get('player_id')
    engine.compute_results(get_store(), game_code, player_id)
    return jsonify(_state_payload(game_code, player_id))


@games.route('/<string:game_code>/advance', methods=['POST'])
def advance_round(game_code):
    data = _body()
    from_round = data.get('from_round')
    try:
        from_round = int(from_round) if from_round is not None else None
    except (TypeError, ValueError):
        raise ValidationError('from_round must be a number') from None
    engine.advance_round(get_store(), game_code, data.get('player_id'), from_round=from_round)
    return jsonify(_state_payload(game_code, data.get('player_id')))
