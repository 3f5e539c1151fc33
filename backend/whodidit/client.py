"""One connected client of a game.

``GameClient`` keeps a read-only mirror of the game (a snapshot rebuilt on
every change notification) plus the local progress flags that the store
never sees. ``IdentityStore`` remembers which player this device is.
"""
import json
import os
from dataclasses import dataclass
from typing import Callable, Optional

from flask import current_app

from whodidit.errors import GameError, ValidationError
from whodidit.services.games import engine
from whodidit.services.games.projection import GameSnapshot, build_snapshot


class IdentityStore:
    """Per-device player id, kept in a small JSON file."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[str]:
        try:
            with open(self.path, 'r', encoding='utf-8') as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            return None
        player_id = data.get('player_id') if isinstance(data, dict) else None
        return player_id or None

    def save(self, player_id: str) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as fh:
            json.dump({'player_id': player_id}, fh)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


@dataclass
class LocalFlags:
    has_answered: bool = False
    has_voted: bool = False
    selected_answer_id: Optional[int] = None
    selected_player_id: Optional[str] = None
    draft_answer: str = ''


class GameClient:
    def __init__(self, store, identity: Optional[IdentityStore] = None):
        self.store = store
        self.identity = identity
        self.player_id: Optional[str] = identity.load() if identity else None
        self.snapshot: Optional[GameSnapshot] = None
        self.flags = LocalFlags()
        self._code: Optional[str] = None
        self._progress_key = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ---- derived ----

    @property
    def current_player(self):
        if not self.snapshot or not self.player_id:
            return None
        return self.snapshot.player(self.player_id)

    @property
    def is_host(self) -> bool:
        player = self.current_player
        return bool(player and player.is_host)

    def view(self) -> Optional[dict]:
        return self.snapshot.view(self.player_id) if self.snapshot else None

    # ---- entry ----

    def create_game(self, host_name, total_rounds=None) -> str:
        game, host = engine.create_game(self.store, host_name, total_rounds)
        self._remember(host['id'])
        return game['code']

    def join_game(self, code, player_name) -> str:
        player = engine.join_game(self.store, code, player_name, player_id=self.player_id)
        self._remember(player['id'])
        return engine.load_game(self.store, code)['code']

    def _remember(self, player_id: str) -> None:
        self.player_id = player_id
        if self.identity:
            self.identity.save(player_id)

    # ---- subscription ----

    def subscribe(self, code) -> Callable[[], None]:
        """Load the game and follow its changes. Returns the unsubscribe callable."""
        self.unsubscribe()
        snapshot = build_snapshot(self.store, code)
        self._code = snapshot.code
        self._apply(snapshot)
        self._unsubscribe = self.store.subscribe(snapshot.id, self.refresh)
        return self.unsubscribe

    def unsubscribe(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def refresh(self) -> None:
        """Full re-read. On failure the previous snapshot is kept."""
        if not self._code:
            return
        try:
            snapshot = build_snapshot(self.store, self._code)
        except GameError as exc:
            current_app.logger.warning(f"[refresh-error] game={self._code} player={self.player_id} error={exc}")
            return
        self._apply(snapshot)

    def _apply(self, snapshot: GameSnapshot) -> None:
        key = (snapshot.current_round, snapshot.phase)
        if key != self._progress_key:
            self.flags = LocalFlags()
            self._progress_key = key
        self.snapshot = snapshot

    # ---- intents ----

    def set_draft(self, text: str) -> None:
        self.flags.draft_answer = text

    def select_answer(self, answer_id) -> None:
        self.flags.selected_answer_id = answer_id

    def select_player(self, player_id) -> None:
        if player_id == self.player_id:
            raise ValidationError('You cannot guess yourself')
        self.flags.selected_player_id = player_id

    def start_game(self):
        return engine.start_game(self.store, self._require_code(), self.player_id)

    def submit_answer(self, text: Optional[str] = None):
        if text is not None:
            self.flags.draft_answer = text
        answer = engine.submit_answer(self.store, self._require_code(), self.player_id, self.flags.draft_answer)
        self.flags.has_answered = True
        self.flags.draft_answer = ''
        return answer

    def move_to_voting(self):
        return engine.move_to_voting(self.store, self._require_code(), self.player_id)

    def submit_vote(self, answer_id=None, guessed_player_id=None):
        if answer_id is not None:
            self.flags.selected_answer_id = answer_id
        if guessed_player_id is not None:
            self.select_player(guessed_player_id)
        if self.flags.selected_answer_id is None or self.flags.selected_player_id is None:
            raise ValidationError('Pick an answer and a player first')
        vote = engine.submit_vote(
            self.store,
            self._require_code(),
            self.player_id,
            self.flags.selected_answer_id,
            self.flags.selected_player_id,
        )
        self.flags.has_voted = True
        return vote

    def compute_results(self):
        return engine.compute_results(self.store, self._require_code(), self.player_id)

    def advance_round(self):
        from_round = self.snapshot.current_round if self.snapshot else None
        return engine.advance_round(self.store, self._require_code(), self.player_id, from_round=from_round)

    def _require_code(self) -> str:
        if not self._code:
            raise ValidationError('Not subscribed to a game')
        return self._code
