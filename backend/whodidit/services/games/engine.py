"""Game state machine.

Every intent follows the same shape: read the latest game row, validate
against it, then write through the store. Phase changes are compare-and-set
writes guarded on ``(phase, current_round)``, so two clients racing the same
host action produce one transition; the loser gets the current game back.
Observers (including the caller) converge through change notification.
"""
import uuid
from typing import List, Optional, Tuple

from flask import current_app

from config import Config

from whodidit.errors import (
    AlreadyStartedError,
    CreationError,
    DuplicateKeyError,
    GameFullError,
    InsufficientPlayersError,
    InvalidPhaseError,
    NotFoundError,
    NotHostError,
    StoreIOError,
    ValidationError,
)
from whodidit.models import Phase, TRANSITIONS
from .codes import generate_game_code, normalize_game_code
from .questions import get_random_questions
from .scoring import score_current_round


def setting(name: str) -> int:
    """Read an integer game setting, falling back to the ``Config`` default."""
    default = getattr(Config, name)
    try:
        return int(current_app.config.get(name, default))
    except (RuntimeError, TypeError, ValueError):
        return default


# ---- lookups and guards ----

def load_game(store, code: str) -> dict:
    game = store.first('games', code=normalize_game_code(code))
    if not game:
        raise NotFoundError('Game not found')
    return game


def _require_player(store, game: dict, player_id) -> dict:
    player = store.first('players', id=player_id, game_id=game['id']) if player_id else None
    if not player:
        raise ValidationError('You are not a player in this game')
    return player


def _require_host(store, game: dict, player_id) -> dict:
    player = _require_player(store, game, player_id)
    if not player['is_host']:
        raise NotHostError('Only the host can do that')
    return player


def _clean_text(value, max_length: int, label: str) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f'{label} must be text')
    text = (value or '').strip()
    if not text:
        raise ValidationError(f'{label} is required')
    if len(text) > max_length:
        raise ValidationError(f'{label} must be at most {max_length} characters')
    return text


def _transition(store, game: dict, target: Phase, **fields) -> dict:
    """Compare-and-set the game from its current phase/round to ``target``."""
    source = Phase(game['phase'])
    if target not in TRANSITIONS[source]:
        raise InvalidPhaseError(f'Cannot move from {source.value} to {target.value}')
    won = store.update(
        'games',
        game['id'],
        dict(fields, phase=target.value),
        expected={'phase': source.value, 'current_round': game['current_round']},
    )
    if won:
        current_app.logger.info(
            f"[phase] game={game['code']} {source.value} -> {target.value} round={fields.get('current_round', game['current_round'])}"
        )
    else:
        current_app.logger.info(f"[phase-skip] game={game['code']} {source.value} -> {target.value} lost race")
    return load_game(store, game['code'])


# ---- intents ----

def create_game(store, host_name, total_rounds: Optional[int] = None) -> Tuple[dict, dict]:
    """Create a lobby with its host. Returns ``(game, host_player)``.

    A code collision or store failure raises CreationError; calling again
    draws a fresh code.
    """
    name = _clean_text(host_name, setting('MAX_NAME_LENGTH'), 'Name')
    if total_rounds is None:
        total_rounds = setting('TOTAL_ROUNDS')
    try:
        total_rounds = int(total_rounds)
    except (TypeError, ValueError):
        raise ValidationError('total_rounds must be a number') from None
    questions = get_random_questions(total_rounds)
    code = generate_game_code(setting('GAME_CODE_LENGTH'))
    host_id = str(uuid.uuid4())
    try:
        with store.atomic():
            game = store.insert('games', {
                'code': code,
                'phase': Phase.LOBBY.value,
                'current_round': 0,
                'total_rounds': total_rounds,
                'current_question': questions[0],
                'questions': questions,
                'host_id': host_id,
            })
            host = store.insert('players', {
                'id': host_id,
                'game_id': game['id'],
                'name': name,
                'score': 0,
                'is_host': True,
            })
    except DuplicateKeyError as exc:
        current_app.logger.warning(f"[create-error] code={code} collision")
        raise CreationError('That game code is taken, please try again') from exc
    except StoreIOError as exc:
        current_app.logger.warning(f"[create-error] code={code} store failure: {exc}")
        raise CreationError('Could not create the game, please try again') from exc
    current_app.logger.info(f"[create] game={code} host={host_id} rounds={total_rounds}")
    return game, host


def join_game(store, code, player_name, player_id: Optional[str] = None) -> dict:
    """Add a player to a game still in the lobby.

    A ``player_id`` already belonging to this game re-associates the
    returning client with its row, in any phase.
    """
    game = load_game(store, code)
    if player_id:
        existing = store.first('players', id=player_id, game_id=game['id'])
        if existing:
            current_app.logger.info(f"[rejoin] game={game['code']} player={player_id}")
            return existing
    if game['phase'] != Phase.LOBBY.value:
        raise AlreadyStartedError('This game has already started')
    name = _clean_text(player_name, setting('MAX_NAME_LENGTH'), 'Name')
    max_players = setting('MAX_PLAYERS')
    with store.atomic():
        # Same-value guarded write: holds the game row in lobby against a racing start
        if not store.update('games', game['id'], {'phase': Phase.LOBBY.value}, expected={'phase': Phase.LOBBY.value}):
            raise AlreadyStartedError('This game has already started')
        players = store.query('players', game_id=game['id'])
        if max_players > 0 and len(players) >= max_players:
            raise GameFullError(f'This game is full ({max_players} players)')
        player = store.insert('players', {
            'id': str(uuid.uuid4()),
            'game_id': game['id'],
            'name': name,
            'score': 0,
            'is_host': False,
        })
    current_app.logger.info(f"[join] game={game['code']} player={player['id']} players={len(players) + 1}")
    return player


def start_game(store, code, player_id) -> dict:
    game = load_game(store, code)
    _require_host(store, game, player_id)
    if game['phase'] == Phase.ANSWERING.value and game['current_round'] == 1:
        return game
    if game['phase'] != Phase.LOBBY.value:
        raise AlreadyStartedError('Game has already started or is finished')
    players = store.query('players', game_id=game['id'])
    min_players = setting('MIN_PLAYERS')
    if len(players) < min_players:
        raise InsufficientPlayersError(f'At least {min_players} players are required to start')
    current_app.logger.info(f"[start] game={game['code']} players={len(players)}")
    return _transition(store, game, Phase.ANSWERING, current_round=1, current_question=game['questions'][0])


def submit_answer(store, code, player_id, text) -> dict:
    """Record a player's answer for the current round.

    At most one answer per player per round: a second submission is
    rejected, never overwritten.
    """
    game = load_game(store, code)
    player = _require_player(store, game, player_id)
    if game['phase'] != Phase.ANSWERING.value:
        raise InvalidPhaseError('Answers are not being accepted right now')
    text = _clean_text(text, setting('MAX_ANSWER_LENGTH'), 'Answer')
    round_no = game['current_round']
    if store.first('answers', game_id=game['id'], player_id=player['id'], round=round_no):
        raise ValidationError('You have already answered this round')
    try:
        answer = store.insert('answers', {
            'game_id': game['id'],
            'player_id': player['id'],
            'player_name': player['name'],
            'round': round_no,
            'text': text,
        })
    except DuplicateKeyError:
        raise ValidationError('You have already answered this round') from None
    current_app.logger.info(f"[answer] game={game['code']} round={round_no} player={player['id']}")
    return answer


def move_to_voting(store, code, player_id) -> dict:
    """Close answering. The host decides readiness; all-answered is not required."""
    game = load_game(store, code)
    _require_host(store, game, player_id)
    if game['phase'] == Phase.VOTING.value:
        return game
    if game['phase'] != Phase.ANSWERING.value:
        raise InvalidPhaseError('Voting can only start after answering')
    answers = store.query('answers', game_id=game['id'], round=game['current_round'])
    players = store.query('players', game_id=game['id'])
    current_app.logger.info(f"[voting] game={game['code']} round={game['current_round']} answers={len(answers)}/{len(players)}")
    return _transition(store, game, Phase.VOTING)


def submit_vote(store, code, voter_id, answer_id, guessed_player_id) -> dict:
    """Record a voter's guess of who wrote one answer of the current round."""
    game = load_game(store, code)
    voter = _require_player(store, game, voter_id)
    if game['phase'] != Phase.VOTING.value:
        raise InvalidPhaseError('Votes are not being accepted right now')
    if not guessed_player_id or guessed_player_id == voter['id']:
        raise ValidationError('You cannot guess yourself')
    try:
        answer_id = int(answer_id)
    except (TypeError, ValueError):
        raise ValidationError('Invalid answer') from None
    round_no = game['current_round']
    answer = store.first('answers', id=answer_id, game_id=game['id'], round=round_no)
    if not answer:
        raise ValidationError('That answer is not part of this round')
    if answer['player_id'] == voter['id']:
        raise ValidationError('You cannot vote on your own answer')
    if not store.first('players', id=guessed_player_id, game_id=game['id']):
        raise ValidationError('Guessed player is not in this game')
    if store.first('votes', game_id=game['id'], voter_id=voter['id'], round=round_no):
        raise ValidationError('You have already voted this round')
    try:
        vote = store.insert('votes', {
            'game_id': game['id'],
            'round': round_no,
            'voter_id': voter['id'],
            'answer_id': answer_id,
            'guessed_player_id': guessed_player_id,
        })
    except DuplicateKeyError:
        raise ValidationError('You have already voted this round') from None
    current_app.logger.info(f"[vote] game={game['code']} round={round_no} voter={voter['id']}")
    return vote


def compute_results(store, code, player_id) -> dict:
    """Score the round once and reveal the results.

    Repeat calls for a round that is already scored change nothing.
    """
    game = load_game(store, code)
    _require_host(store, game, player_id)
    if game['phase'] == Phase.RESULTS.value and game['scored_round'] == game['current_round']:
        return game
    if game['phase'] != Phase.VOTING.value:
        raise InvalidPhaseError('Results can only be shown after voting')
    score_current_round(store, game, setting('CORRECT_GUESS_POINTS'))
    return load_game(store, game['code'])


def advance_round(store, code, player_id, from_round: Optional[int] = None) -> dict:
    """Start the next round, or end the game after the last one.

    ``from_round`` is the round the caller saw; if the game has already
    moved past it the call is a no-op.
    """
    game = load_game(store, code)
    _require_host(store, game, player_id)
    if game['phase'] == Phase.LEADERBOARD.value:
        return game
    if from_round is not None and game['current_round'] > int(from_round):
        return game
    if game['phase'] != Phase.RESULTS.value:
        raise InvalidPhaseError('The round can only advance from results')
    round_no = game['current_round']
    if round_no >= game['total_rounds']:
        current_app.logger.info(f"[finish] game={game['code']} finished at round={round_no}")
        return _transition(store, game, Phase.LEADERBOARD)
    questions = game['questions']
    next_question = questions[round_no] if round_no < len(questions) else None
    return _transition(store, game, Phase.ANSWERING, current_round=round_no + 1, current_question=next_question)


def leaderboard(players: List[dict]) -> List[dict]:
    """Players by score, highest first; ties keep join order."""
    return sorted(players, key=lambda p: -p['score'])
