"""Shared game store.

The single source of truth for every game: rows live in the database,
writes are committed immediately (or grouped with :meth:`GameStore.atomic`),
and every commit is followed by a change notification for each game it
touched. Notifications go to in-process subscribers and, over Socket.IO,
to the ``game:<CODE>`` room on ``/ws``.
"""
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Callable, Dict, List

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from whodidit import db, socketio
from whodidit.errors import DuplicateKeyError, NotFoundError, StoreIOError
from whodidit.models import Answer, Game, Player, Vote

TABLES = {
    'games': Game,
    'players': Player,
    'answers': Answer,
    'votes': Vote,
}


def get_store() -> 'GameStore':
    return current_app.extensions['game_store']


class GameStore:
    def __init__(self):
        self._subscribers: Dict[int, List[Callable[[], None]]] = defaultdict(list)
        self._lock = threading.Lock()
        self._local = threading.local()

    # ---- writes ----

    def insert(self, table: str, record: dict) -> dict:
        model = _model(table)
        row = model.from_record(record)
        try:
            db.session.add(row)
            db.session.flush()
        except IntegrityError as exc:
            self._fail()
            raise DuplicateKeyError(f'Duplicate {table} row') from exc
        except SQLAlchemyError as exc:
            self._fail()
            raise StoreIOError(f'Could not write to {table}') from exc
        result = row.to_dict()
        self._written(_scope(table, result))
        return result

    def update(self, table: str, row_id, fields: dict, expected: dict = None) -> bool:
        """Write ``fields`` to one row.

        With ``expected`` the write only happens if the row still holds those
        values, checked and written in one statement. Returns False when the
        guard did not match; raises NotFoundError when the row is gone.
        """
        model = _model(table)
        try:
            matched = model.query.filter_by(id=row_id, **(expected or {})).update(fields)
            if not matched:
                row = db.session.get(model, row_id)
        except SQLAlchemyError as exc:
            self._fail()
            raise StoreIOError(f'Could not update {table}') from exc
        if not matched:
            if row is None:
                raise NotFoundError(f'No {table} row {row_id}')
            return False
        self._written(self._scope_of(model, row_id))
        return True

    def increment(self, table: str, row_id, field: str, amount: int) -> None:
        model = _model(table)
        column = getattr(model, field)
        try:
            matched = model.query.filter_by(id=row_id).update({column: column + amount})
        except SQLAlchemyError as exc:
            self._fail()
            raise StoreIOError(f'Could not update {table}') from exc
        if not matched:
            raise NotFoundError(f'No {table} row {row_id}')
        self._written(self._scope_of(model, row_id))

    @contextmanager
    def atomic(self):
        """Group writes into a single commit; notify once it lands."""
        state = self._state()
        state.depth += 1
        try:
            yield self
        except BaseException:
            state.depth -= 1
            if state.depth == 0:
                self._fail()
            raise
        state.depth -= 1
        if state.depth == 0:
            self._commit()

    # ---- reads ----

    def query(self, table: str, **filters) -> List[dict]:
        model = _model(table)
        order = [getattr(model, name) for name in getattr(model, 'sort_columns', ('id',))]
        try:
            rows = model.query.filter_by(**filters).order_by(*order).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreIOError(f'Could not read {table}') from exc
        return [row.to_dict() for row in rows]

    def first(self, table: str, **filters):
        rows = self.query(table, **filters)
        return rows[0] if rows else None

    # ---- change notification ----

    def subscribe(self, game_id: int, on_change: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            self._subscribers[game_id].append(on_change)

        def unsubscribe():
            with self._lock:
                handlers = self._subscribers.get(game_id, [])
                if on_change in handlers:
                    handlers.remove(on_change)
                if not handlers:
                    self._subscribers.pop(game_id, None)

        return unsubscribe

    def notify(self, game_id: int) -> None:
        with self._lock:
            handlers = list(self._subscribers.get(game_id, []))
        for handler in handlers:
            try:
                handler()
            except Exception as exc:
                current_app.logger.warning(f"[notify-error] game_id={game_id} handler={handler!r} error={exc}")
        game = db.session.get(Game, game_id)
        if game is None:
            return
        try:
            socketio.emit('state_update', {'game_code': game.code}, to=f"game:{game.code}", namespace='/ws')
        except Exception as exc:
            current_app.logger.warning(f"[emit-error] game={game.code} error={exc}")

    # ---- internals ----

    def _state(self):
        if not hasattr(self._local, 'depth'):
            self._local.depth = 0
            self._local.touched = set()
        return self._local

    def _written(self, game_id) -> None:
        state = self._state()
        if game_id is not None:
            state.touched.add(game_id)
        if state.depth == 0:
            self._commit()

    def _commit(self) -> None:
        state = self._state()
        touched, state.touched = state.touched, set()
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise DuplicateKeyError('Conflicting write') from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreIOError('Could not commit write') from exc
        for game_id in sorted(touched):
            self.notify(game_id)

    def _fail(self) -> None:
        state = self._state()
        state.touched = set()
        db.session.rollback()

    def _scope_of(self, model, row_id):
        if model is Game:
            return row_id
        row = db.session.get(model, row_id)
        return row.game_id if row is not None else None


def _model(table: str):
    try:
        return TABLES[table]
    except KeyError:
        raise ValueError(f'Unknown table {table!r}') from None


def _scope(table: str, record: dict):
    return record['id'] if table == 'games' else record.get('game_id')
