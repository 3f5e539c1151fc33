"""Game domain services: state machine, scoring, prompts and projection.

This package contains the game rules that HTTP routes, socket handlers
and the Python client all call, keeping transport concerns separated
from core game mechanics.
"""
from .engine import (
    advance_round,
    compute_results,
    create_game,
    join_game,
    leaderboard,
    load_game,
    move_to_voting,
    start_game,
    submit_answer,
    submit_vote,
)
from .projection import GameSnapshot, build_snapshot
