"""create game_session and leaderboard_entry

Revision ID: 3a7c91d0e5b2
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c91d0e5b2'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'game_session',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('issued_at', sa.BigInteger(), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('client_ip', sa.String(length=64), nullable=True),
        sa.Column('consumed_at', sa.BigInteger(), nullable=True),
        sa.Column('final_score', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('game_session') as batch_op:
        batch_op.create_index(batch_op.f('ix_game_session_issued_at'), ['issued_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_game_session_used'), ['used'], unique=False)

    op.create_table(
        'leaderboard_entry',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('avatar_id', sa.Integer(), nullable=False),
        sa.Column('initials', sa.String(length=3), nullable=False),
        sa.Column('distance', sa.Integer(), nullable=False),
        sa.Column('date', sa.String(length=40), nullable=False),
        sa.Column('session_id', sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['game_session.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('session_id'),
    )
    with op.batch_alter_table('leaderboard_entry') as batch_op:
        batch_op.create_index(batch_op.f('ix_leaderboard_entry_distance'), ['distance'], unique=False)


def downgrade():
    with op.batch_alter_table('leaderboard_entry') as batch_op:
        batch_op.drop_index(batch_op.f('ix_leaderboard_entry_distance'))
    op.drop_table('leaderboard_entry')
    with op.batch_alter_table('game_session') as batch_op:
        batch_op.drop_index(batch_op.f('ix_game_session_used'))
        batch_op.drop_index(batch_op.f('ix_game_session_issued_at'))
    op.drop_table('game_session')
