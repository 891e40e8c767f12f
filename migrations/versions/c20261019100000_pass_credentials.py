"""add pass credential and check-in audit fields

Revision ID: c20261019100000
Revises:
Create Date: 2026-10-19 10:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = 'c20261019100000'
down_revision = None
branch_labels = None
depends_on = None


def _unique_columns(inspector, table):
    """Columns already unique on their own, by index or constraint"""
    unique = set()
    for index in inspector.get_indexes(table):
        if index.get('unique') and len(index['column_names']) == 1:
            unique.add(index['column_names'][0])
    for constraint in inspector.get_unique_constraints(table):
        if len(constraint['column_names']) == 1:
            unique.add(constraint['column_names'][0])
    return unique


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    profile_cols = {c['name'] for c in inspector.get_columns('profile')}
    unique_cols = _unique_columns(inspector, 'profile')
    if 'participant_id' not in profile_cols:
        op.add_column('profile', sa.Column('participant_id', sa.String(length=32)))
    if 'participant_id' not in unique_cols:
        op.create_index('ix_profile_participant_id', 'profile', ['participant_id'], unique=True)
    if 'qr_code' not in profile_cols:
        op.add_column('profile', sa.Column('qr_code', sa.Text()))
    if 'qr_code' not in unique_cols:
        op.create_index('ix_profile_qr_code', 'profile', ['qr_code'], unique=True)
    if 'qr_code_data' not in profile_cols:
        op.add_column('profile', sa.Column('qr_code_data', sa.Text()))
    if 'qr_code_generated_at' not in profile_cols:
        op.add_column('profile', sa.Column('qr_code_generated_at', sa.DateTime()))

    registration_cols = {c['name'] for c in inspector.get_columns('event_registration')}
    if 'checked_in' not in registration_cols:
        op.add_column('event_registration', sa.Column('checked_in', sa.Boolean(), nullable=False,
                                                      server_default=sa.false()))
    if 'check_in_time' not in registration_cols:
        op.add_column('event_registration', sa.Column('check_in_time', sa.DateTime()))

    if 'check_in_log' not in inspector.get_table_names():
        op.create_table(
            'check_in_log',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('event_id', sa.Integer(), sa.ForeignKey('event.id'), nullable=False),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
            sa.Column('volunteer_id', sa.Integer(), sa.ForeignKey('user.id')),
            sa.Column('qr_code', sa.Text(), nullable=False),
            sa.Column('zone', sa.String(length=100)),
            sa.Column('notes', sa.Text()),
            sa.Column('check_in_time', sa.DateTime(), nullable=False),
        )


def downgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if 'check_in_log' in inspector.get_table_names():
        op.drop_table('check_in_log')

    registration_cols = {c['name'] for c in inspector.get_columns('event_registration')}
    if 'check_in_time' in registration_cols:
        op.drop_column('event_registration', 'check_in_time')
    if 'checked_in' in registration_cols:
        op.drop_column('event_registration', 'checked_in')

    profile_cols = {c['name'] for c in inspector.get_columns('profile')}
    profile_indexes = {ix['name'] for ix in inspector.get_indexes('profile')}
    if 'qr_code_generated_at' in profile_cols:
        op.drop_column('profile', 'qr_code_generated_at')
    if 'qr_code_data' in profile_cols:
        op.drop_column('profile', 'qr_code_data')
    if 'qr_code' in profile_cols:
        if 'ix_profile_qr_code' in profile_indexes:
            op.drop_index('ix_profile_qr_code', table_name='profile')
        op.drop_column('profile', 'qr_code')
    if 'participant_id' in profile_cols:
        if 'ix_profile_participant_id' in profile_indexes:
            op.drop_index('ix_profile_participant_id', table_name='profile')
        op.drop_column('profile', 'participant_id')
