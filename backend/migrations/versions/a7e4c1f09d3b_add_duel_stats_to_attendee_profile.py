"""add duel_stats to attendee_profile

Revision ID: a7e4c1f09d3b
Revises: 5c2d9e7a1b40
Create Date: 2025-09-10 18:30:00

Existing rows keep NULL; the application reads NULL as zeroed stats and
writes the block on the first finished duel.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a7e4c1f09d3b'
down_revision = '5c2d9e7a1b40'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    cols = {c['name'] for c in insp.get_columns('attendee_profile')}
    with op.batch_alter_table('attendee_profile') as batch_op:
        if 'duel_stats' not in cols:
            batch_op.add_column(sa.Column('duel_stats', sa.Text(), nullable=True))


def downgrade():
    with op.batch_alter_table('attendee_profile') as batch_op:
        batch_op.drop_column('duel_stats')
