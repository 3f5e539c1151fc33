from whodidit import db
from datetime import datetime, timezone
from enum import Enum
import json


class Phase(str, Enum):
    LOBBY = 'lobby'
    ANSWERING = 'answering'
    VOTING = 'voting'
    RESULTS = 'results'
    LEADERBOARD = 'leaderboard'


# Allowed phase writes. results -> answering is the next-round loop-back.
TRANSITIONS = {
    Phase.LOBBY: (Phase.ANSWERING,),
    Phase.ANSWERING: (Phase.VOTING,),
    Phase.VOTING: (Phase.RESULTS,),
    Phase.RESULTS: (Phase.ANSWERING, Phase.LEADERBOARD),
    Phase.LEADERBOARD: (),
}


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(8), unique=True, nullable=False, index=True)
    phase = db.Column(db.String(16), nullable=False, default=Phase.LOBBY.value)
    current_round = db.Column(db.Integer, nullable=False, default=0)
    total_rounds = db.Column(db.Integer, nullable=False)
    current_question = db.Column(db.Text, nullable=True)
    questions = db.Column(db.Text, nullable=False, default='[]')  # JSON-encoded list of prompts
    host_id = db.Column(db.String(36), nullable=True)
    # Last round whose votes were credited; guards computeResults
    scored_round = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_record(cls, record):
        record = dict(record)
        if not isinstance(record.get('questions', ''), str):
            record['questions'] = json.dumps(list(record['questions']))
        return cls(**record)

    def to_dict(self):
        try:
            questions = json.loads(self.questions) if self.questions else []
        except ValueError:
            questions = []
        return {
            'id': self.id,
            'code': self.code,
            'phase': self.phase,
            'current_round': self.current_round,
            'total_rounds': self.total_rounds,
            'current_question': self.current_question,
            'questions': questions,
            'host_id': self.host_id,
            'scored_round': self.scored_round,
        }


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.String(36), primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    is_host = db.Column(db.Boolean, nullable=False, default=False)
    joined_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    sort_columns = ('joined_at', 'id')

    @classmethod
    def from_record(cls, record):
        return cls(**record)

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'name': self.name,
            'score': self.score,
            'is_host': self.is_host,
        }


class Answer(db.Model):
    __tablename__ = 'answer'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'player_id', 'round', name='uq_answer_player_round'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    player_id = db.Column(db.String(36), db.ForeignKey('player.id'), nullable=False)
    player_name = db.Column(db.String(64), nullable=False)
    round = db.Column(db.Integer, nullable=False)
    text = db.Column(db.Text, nullable=False)

    @classmethod
    def from_record(cls, record):
        return cls(**record)

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'player_id': self.player_id,
            'player_name': self.player_name,
            'round': self.round,
            'text': self.text,
        }


class Vote(db.Model):
    __tablename__ = 'vote'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'voter_id', 'round', name='uq_vote_voter_round'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    round = db.Column(db.Integer, nullable=False)
    voter_id = db.Column(db.String(36), db.ForeignKey('player.id'), nullable=False)
    answer_id = db.Column(db.Integer, db.ForeignKey('answer.id'), nullable=False)
    guessed_player_id = db.Column(db.String(36), db.ForeignKey('player.id'), nullable=False)

    @classmethod
    def from_record(cls, record):
        return cls(**record)

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'round': self.round,
            'voter_id': self.voter_id,
            'answer_id': self.answer_id,
            'guessed_player_id': self.guessed_player_id,
        }
