"""create duel and attendee_profile tables

Revision ID: 5c2d9e7a1b40
Revises:
Create Date: 2025-09-02 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    # Profiles predate duels; duel_stats arrives in a later revision
    if 'attendee_profile' not in existing_tables:
        op.create_table(
            'attendee_profile',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.String(length=128), nullable=False),
            sa.Column('display_name', sa.String(length=128), nullable=False),
            sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('points_accumulated', sa.Integer(), nullable=False, server_default='0'),
        )
        op.create_index('ix_attendee_profile_user_id', 'attendee_profile', ['user_id'], unique=True)

    if 'duel' not in existing_tables:
        op.create_table(
            'duel',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('host_id', sa.String(length=128), nullable=False),
            sa.Column('guest_id', sa.String(length=128), nullable=False),
            sa.Column('host_score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('guest_score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('host_has_disconnected', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('guest_has_disconnected', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('has_finished', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('is_scoring_duel', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('pending_host', sa.Text(), nullable=False, server_default='[]'),
            sa.Column('pending_guest', sa.Text(), nullable=False, server_default='[]'),
            sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index('ix_duel_host_id', 'duel', ['host_id'])
        op.create_index('ix_duel_guest_id', 'duel', ['guest_id'])


def downgrade():
    op.drop_index('ix_duel_guest_id', table_name='duel')
    op.drop_index('ix_duel_host_id', table_name='duel')
    op.drop_table('duel')
    op.drop_index('ix_attendee_profile_user_id', table_name='attendee_profile')
    op.drop_table('attendee_profile')
