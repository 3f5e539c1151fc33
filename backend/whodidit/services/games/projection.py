"""Read-side projection of a game.

A snapshot is the whole current-round state of one game, rebuilt from the
store on every change notification. Nothing is merged: the newest full
read replaces the previous snapshot.
"""
from dataclasses import asdict, dataclass
from typing import Optional, Tuple

from whodidit.models import Phase
from .engine import leaderboard, load_game, setting

REVEALED_PHASES = (Phase.RESULTS, Phase.LEADERBOARD)


@dataclass(frozen=True)
class SnapshotPlayer:
    id: str
    name: str
    score: int
    is_host: bool


@dataclass(frozen=True)
class SnapshotAnswer:
    id: int
    player_id: str
    player_name: str
    text: str


@dataclass(frozen=True)
class SnapshotVote:
    voter_id: str
    answer_id: int
    guessed_player_id: str


@dataclass(frozen=True)
class GameSnapshot:
    id: int
    code: str
    phase: Phase
    current_round: int
    total_rounds: int
    current_question: Optional[str]
    questions: Tuple[str, ...]
    players: Tuple[SnapshotPlayer, ...]
    answers: Tuple[SnapshotAnswer, ...]
    votes: Tuple[SnapshotVote, ...]

    def player(self, player_id) -> Optional[SnapshotPlayer]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def answered_player_ids(self):
        return [a.player_id for a in self.answers]

    def voted_player_ids(self):
        return [v.voter_id for v in self.votes]

    def view(self, viewer_id=None) -> dict:
        return PHASE_VIEWS[self.phase](self, viewer_id)

    def to_dict(self) -> dict:
        """Wire form. Answer authors and guesses stay hidden until results."""
        revealed = self.phase in REVEALED_PHASES
        if revealed:
            answers = [asdict(a) for a in self.answers]
            votes = [asdict(v) for v in self.votes]
        else:
            answers = [{'id': a.id, 'text': a.text} for a in self.answers]
            votes = [{'voter_id': v.voter_id} for v in self.votes]
        return {
            'id': self.id,
            'game_code': self.code,
            'phase': self.phase.value,
            'current_round': self.current_round,
            'total_rounds': self.total_rounds,
            'current_question': self.current_question,
            'players': [asdict(p) for p in self.players],
            'answers': answers,
            'votes': votes,
            'answered_player_ids': self.answered_player_ids(),
            'voted_player_ids': self.voted_player_ids(),
        }


def build_snapshot(store, code) -> GameSnapshot:
    """Re-read a game's row, its players, and the current round's answers and votes."""
    game = load_game(store, code)
    round_no = game['current_round']
    players = store.query('players', game_id=game['id'])
    answers = store.query('answers', game_id=game['id'], round=round_no)
    votes = store.query('votes', game_id=game['id'], round=round_no)
    return GameSnapshot(
        id=game['id'],
        code=game['code'],
        phase=Phase(game['phase']),
        current_round=round_no,
        total_rounds=game['total_rounds'],
        current_question=game['current_question'],
        questions=tuple(game['questions']),
        players=tuple(SnapshotPlayer(p['id'], p['name'], p['score'], p['is_host']) for p in players),
        answers=tuple(SnapshotAnswer(a['id'], a['player_id'], a['player_name'], a['text']) for a in answers),
        votes=tuple(SnapshotVote(v['voter_id'], v['answer_id'], v['guessed_player_id']) for v in votes),
    )


# ---- one view per phase ----

def _lobby_view(snapshot: GameSnapshot, viewer_id) -> dict:
    return {
        'players': [asdict(p) for p in snapshot.players],
        'max_players': setting('MAX_PLAYERS'),
        'can_start': len(snapshot.players) >= setting('MIN_PLAYERS'),
    }


def _answering_view(snapshot: GameSnapshot, viewer_id) -> dict:
    answered = snapshot.answered_player_ids()
    return {
        'question': snapshot.current_question,
        'round': snapshot.current_round,
        'total_rounds': snapshot.total_rounds,
        'answered_player_ids': answered,
        'has_answered': viewer_id in answered,
        'can_move_to_voting': len(snapshot.answers) >= len(snapshot.players),
    }


def _voting_view(snapshot: GameSnapshot, viewer_id) -> dict:
    voted = snapshot.voted_player_ids()
    return {
        'question': snapshot.current_question,
        'round': snapshot.current_round,
        'total_rounds': snapshot.total_rounds,
        # The viewer's own answer and the viewer themself are never choices
        'answers': [{'id': a.id, 'text': a.text} for a in snapshot.answers if a.player_id != viewer_id],
        'candidates': [{'id': p.id, 'name': p.name} for p in snapshot.players if p.id != viewer_id],
        'voted_player_ids': voted,
        'has_voted': viewer_id in voted,
        'can_show_results': len(snapshot.votes) >= len(snapshot.players) - 1,
    }


def _results_view(snapshot: GameSnapshot, viewer_id) -> dict:
    names = {p.id: p.name for p in snapshot.players}
    answers = []
    for a in snapshot.answers:
        answers.append({
            'id': a.id,
            'text': a.text,
            'author_id': a.player_id,
            'author_name': names.get(a.player_id, a.player_name),
            'correct_voter_ids': [
                v.voter_id for v in snapshot.votes
                if v.answer_id == a.id and v.guessed_player_id == a.player_id
            ],
        })
    return {
        'question': snapshot.current_question,
        'round': snapshot.current_round,
        'answers': answers,
        'is_last_round': snapshot.current_round >= snapshot.total_rounds,
    }


def _leaderboard_view(snapshot: GameSnapshot, viewer_id) -> dict:
    ranked = leaderboard([asdict(p) for p in snapshot.players])
    return {
        'ranking': [dict(p, rank=i + 1) for i, p in enumerate(ranked)],
    }


PHASE_VIEWS = {
    Phase.LOBBY: _lobby_view,
    Phase.ANSWERING: _answering_view,
    Phase.VOTING: _voting_view,
    Phase.RESULTS: _results_view,
    Phase.LEADERBOARD: _leaderboard_view,
}

_missing = set(Phase) - set(PHASE_VIEWS)
if _missing:
    raise RuntimeError(f"No view for phases: {sorted(p.value for p in _missing)}")
