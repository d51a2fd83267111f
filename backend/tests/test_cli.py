# Overview: Pytest coverage for the Flask CLI command groups.

from datetime import timedelta

import pytest

from ibexpos.models import Currency, Customer, SessionToken, Store, User
from ibexpos.services import session_service
from ibexpos.time_utils import utcnow


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def test_system_init_is_idempotent(runner, db_session):
    first = runner.invoke(args=['system', 'init'])
    second = runner.invoke(args=['system', 'init'])

    assert first.exit_code == 0, first.output
    assert 'Created platform admin: admin@ibex.com' in first.output
    assert 'Using existing platform admin' in second.output
    assert db_session.query(Currency).count() == 3
    assert db_session.query(User).filter_by(role='platform_admin').count() == 1


def test_seed_test_users(runner, db_session):
    result = runner.invoke(args=['system', 'seed-test-users'])
    again = runner.invoke(args=['system', 'seed-test-users'])

    assert result.exit_code == 0, result.output
    assert again.exit_code == 0, again.output
    assert "already exists, skipping" in again.output

    store = db_session.query(Store).filter_by(slug='test-store').one()
    merchant = db_session.query(User).filter_by(email='merchant@example.com').one()
    cashier = db_session.query(User).filter_by(email='cashier@example.com').one()
    assert merchant.store_id == store.id
    assert cashier.store_id == store.id
    assert db_session.query(Customer).filter_by(phone='771234567').count() == 1


def test_reset_db_requires_confirmation(runner, db_session, merchant):
    result = runner.invoke(args=['system', 'reset-db'], input='n\n')

    assert result.exit_code != 0
    assert db_session.query(User).count() == 1


def test_cleanup_sessions(runner, db_session, merchant):
    session, token = session_service.create_session(merchant.id)
    session_service.revoke_session(token)
    session.created_at = utcnow() - timedelta(days=45)
    db_session.commit()

    result = runner.invoke(args=['system', 'cleanup-sessions'])

    assert 'Deleted 1 expired or revoked sessions.' in result.output
    assert db_session.query(SessionToken).count() == 0


def test_migrations_apply_and_status(runner, db_session, tmp_path):
    (tmp_path / '0001_cli.sql').write_text('CREATE TABLE IF NOT EXISTS cli_notes (id INTEGER PRIMARY KEY);',
                                           encoding='utf-8')

    before = runner.invoke(args=['migrations', 'status', '--dir', str(tmp_path)])
    applied = runner.invoke(args=['migrations', 'apply-sql', '--dir', str(tmp_path)])
    after = runner.invoke(args=['migrations', 'status', '--dir', str(tmp_path)])

    assert 'PENDING 0001_cli.sql' in before.output
    assert 'PASS Applied 0001_cli.sql' in applied.output
    assert 'DONE 1 applied, 0 already applied' in applied.output
    assert 'PASS 0001_cli.sql' in after.output


def test_migrations_status_without_files(runner, db_session, tmp_path):
    result = runner.invoke(args=['migrations', 'status', '--dir', str(tmp_path)])

    assert 'No SQL migration files found.' in result.output
