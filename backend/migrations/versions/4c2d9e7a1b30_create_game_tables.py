"""create game, player, answer and vote tables

Revision ID: 4c2d9e7a1b30
Revises: 
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c2d9e7a1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=8), nullable=False),
        sa.Column('phase', sa.String(length=16), nullable=False),
        sa.Column('current_round', sa.Integer(), nullable=False),
        sa.Column('total_rounds', sa.Integer(), nullable=False),
        sa.Column('current_question', sa.Text(), nullable=True),
        sa.Column('questions', sa.Text(), nullable=False),
        sa.Column('host_id', sa.String(length=36), nullable=True),
        sa.Column('scored_round', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_game_code'), 'game', ['code'], unique=True)

    op.create_table(
        'player',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('is_host', sa.Boolean(), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_player_game_id'), 'player', ['game_id'], unique=False)

    op.create_table(
        'answer',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.String(length=36), nullable=False),
        sa.Column('player_name', sa.String(length=64), nullable=False),
        sa.Column('round', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['player_id'], ['player.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'player_id', 'round', name='uq_answer_player_round'),
    )
    op.create_index(op.f('ix_answer_game_id'), 'answer', ['game_id'], unique=False)

    op.create_table(
        'vote',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('round', sa.Integer(), nullable=False),
        sa.Column('voter_id', sa.String(length=36), nullable=False),
        sa.Column('answer_id', sa.Integer(), nullable=False),
        sa.Column('guessed_player_id', sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['voter_id'], ['player.id']),
        sa.ForeignKeyConstraint(['answer_id'], ['answer.id']),
        sa.ForeignKeyConstraint(['guessed_player_id'], ['player.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'voter_id', 'round', name='uq_vote_voter_round'),
    )
    op.create_index(op.f('ix_vote_game_id'), 'vote', ['game_id'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_vote_game_id'), table_name='vote')
    op.drop_table('vote')
    op.drop_index(op.f('ix_answer_game_id'), table_name='answer')
    op.drop_table('answer')
    op.drop_index(op.f('ix_player_game_id'), table_name='player')
    op.drop_table('player')
    op.drop_index(op.f('ix_game_code'), table_name='game')
    op.drop_table('game')
