"""
Schema migration tests for the pass columns
"""
import importlib.util
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

REVISION_PATH = (Path(__file__).resolve().parent.parent
                 / 'migrations' / 'versions' / 'c20261019100000_pass_credentials.py')


def _load_revision():
    spec = importlib.util.spec_from_file_location('pass_credentials_revision', REVISION_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def engine():
    """Pre-pass schema: accounts, profiles and registrations only"""
    engine = sa.create_engine('sqlite://')
    metadata = sa.MetaData()
    sa.Table('user', metadata, sa.Column('id', sa.Integer, primary_key=True),
             sa.Column('email', sa.String(120), nullable=False))
    sa.Table('event', metadata, sa.Column('id', sa.Integer, primary_key=True),
             sa.Column('title', sa.String(200), nullable=False))
    sa.Table('profile', metadata, sa.Column('id', sa.Integer, primary_key=True),
             sa.Column('user_id', sa.Integer, sa.ForeignKey('user.id'), nullable=False, unique=True),
             sa.Column('first_name', sa.String(100)))
    sa.Table('event_registration', metadata, sa.Column('id', sa.Integer, primary_key=True),
             sa.Column('event_id', sa.Integer, sa.ForeignKey('event.id'), nullable=False),
             sa.Column('user_id', sa.Integer, sa.ForeignKey('user.id'), nullable=False))
    metadata.create_all(engine)
    yield engine
    engine.dispose()


def _run(connection, step):
    with Operations.context(MigrationContext.configure(connection)):
        step()


class TestPassCredentialsRevision:

    def test_upgrade_adds_columns_and_table(self, engine):
        revision = _load_revision()
        with engine.begin() as connection:
            _run(connection, revision.upgrade)

        inspector = sa.inspect(engine)
        profile_cols = {c['name'] for c in inspector.get_columns('profile')}
        assert {'participant_id', 'qr_code', 'qr_code_data', 'qr_code_generated_at'} <= profile_cols
        registration_cols = {c['name'] for c in inspector.get_columns('event_registration')}
        assert {'checked_in', 'check_in_time'} <= registration_cols
        assert 'check_in_log' in inspector.get_table_names()

    def test_token_copy_is_unique(self, engine):
        """Two profiles can never share a stored token"""
        revision = _load_revision()
        with engine.begin() as connection:
            _run(connection, revision.upgrade)

        unique_indexes = {tuple(ix['column_names']) for ix in sa.inspect(engine).get_indexes('profile')
                          if ix['unique']}
        assert ('qr_code',) in unique_indexes
        assert ('participant_id',) in unique_indexes

        with engine.begin() as connection:
            connection.execute(sa.text("INSERT INTO user (id, email) VALUES (1, 'a@test.com'), (2, 'b@test.com')"))
            connection.execute(sa.text("INSERT INTO profile (user_id, qr_code) VALUES (1, 'VIB-1')"))

        with pytest.raises(sa.exc.IntegrityError):
            with engine.begin() as connection:
                connection.execute(sa.text("INSERT INTO profile (user_id, qr_code) VALUES (2, 'VIB-1')"))

    def test_upgrade_is_rerunnable(self, engine):
        revision = _load_revision()
        with engine.begin() as connection:
            _run(connection, revision.upgrade)
        with engine.begin() as connection:
            _run(connection, revision.upgrade)

        names = [ix['name'] for ix in sa.inspect(engine).get_indexes('profile')]
        assert names.count('ix_profile_qr_code') == 1

