"""create leaderboard table

Revision ID: 5b7c1e9d2a40
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b7c1e9d2a40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # Databases bootstrapped with `flask init-db` already have the table
    if 'leaderboard' in set(insp.get_table_names()):
        return

    op.create_table(
        'leaderboard',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pseudo', sa.String(length=50), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pseudo'),
    )
    op.create_index('idx_score', 'leaderboard', [sa.text('score DESC')])


def downgrade():
    op.drop_index('idx_score', table_name='leaderboard')
    op.drop_table('leaderboard')
