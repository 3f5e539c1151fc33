from typing import Dict, Iterable, Optional

from flask import current_app

from whodidit.models import Phase


def tally_correct_guesses(answers: Iterable[dict], votes: Iterable[dict], points: int) -> Dict[str, int]:
    """Map voter id -> points earned this round.

    A vote earns ``points`` when its guessed player wrote the answer it
    points at. Votes for unknown answers earn nothing.
    """
    authors = {a['id']: a['player_id'] for a in answers}
    awards: Dict[str, int] = {}
    for vote in votes:
        author_id = authors.get(vote['answer_id'])
        if author_id is not None and vote['guessed_player_id'] == author_id:
            awards[vote['voter_id']] = awards.get(vote['voter_id'], 0) + points
    return awards


def score_current_round(store, game: dict, points: int) -> Optional[Dict[str, int]]:
    """Credit this round's correct guesses and move the game to results.

    The phase flip and the ``scored_round`` marker are a single
    compare-and-set on the game row, committed together with the score
    increments. Only the caller that wins it credits anything; a losing or
    repeated call returns None and leaves scores untouched.
    """
    round_no = game['current_round']
    with store.atomic():
        won = store.update(
            'games',
            game['id'],
            {'phase': Phase.RESULTS.value, 'scored_round': round_no},
            expected={'phase': Phase.VOTING.value, 'current_round': round_no, 'scored_round': game['scored_round']},
        )
        if not won:
            current_app.logger.info(f"[score-skip] game={game['code']} round={round_no} already scored")
            return None
        answers = store.query('answers', game_id=game['id'], round=round_no)
        votes = store.query('votes', game_id=game['id'], round=round_no)
        awards = tally_correct_guesses(answers, votes, points)
        for player_id, earned in awards.items():
            store.increment('players', player_id, 'score', earned)
    current_app.logger.info(f"[score] game={game['code']} round={round_no} votes={len(votes)} awarded={awards}")
    return awards
