"""
Test application factory and configuration.
"""

import pytest
from app import create_app


class TestAppFactory:
    """Test Flask application factory."""

    def test_create_app_development(self):
        """Test app creation with development config."""
        app = create_app('development')
        assert app is not None
        assert app.config['DEBUG'] is True
        assert app.config['TESTING'] is False

    def test_create_app_test(self):
        """Test app creation with test config."""
        app = create_app('test')
        assert app is not None
        assert app.config['TESTING'] is True
        assert app.config['WTF_CSRF_ENABLED'] is False
        assert app.config['BOOKING_INSERT_BACKOFF_MS'] == 0

    def test_create_app_default(self):
        """Test app creation with default config."""
        app = create_app()
        assert app is not None

    def test_app_has_blueprints(self):
        """Test that all blueprints are registered."""
        app = create_app('test')
        blueprint_names = list(app.blueprints.keys())

        assert 'auth' in blueprint_names
        assert 'api' in blueprint_names
        assert 'public' in blueprint_names

    def test_app_has_extensions(self):
        """Test that extensions and engine state are initialized."""
        from utils.rate_limiter import FixedWindowRateLimiter

        app = create_app('test')

        assert hasattr(app, 'login_manager')
        assert isinstance(app.extensions['lookup_rate_limiter'], FixedWindowRateLimiter)
        assert app.extensions['view_invalidation'] == []

    def test_each_app_has_own_limiter(self):
        first = create_app('test')
        second = create_app('test')
        assert first.extensions['lookup_rate_limiter'] is not second.extensions['lookup_rate_limiter']


class TestAppConfiguration:
    """Test application configuration."""

    def test_secret_key_set(self):
        """Test that secret key is configured."""
        app = create_app('test')
        assert app.config['SECRET_KEY'] is not None
        assert len(app.config['SECRET_KEY']) > 0

    def test_database_path_set(self):
        """Test that database path is configured."""
        app = create_app('test')
        assert 'DATABASE_PATH' in app.config

    def test_app_name_set(self):
        """Test that app name is configured."""
        app = create_app('test')
        assert app.config.get('APP_NAME') == 'Meeple Tables'

    def test_engine_defaults(self):
        app = create_app('test')
        assert app.config['ALLOW_DIRECT_SEATING'] is True
        assert app.config['BOOKING_INSERT_MAX_ATTEMPTS'] == 3
        assert app.config['LOOKUP_MAX_ATTEMPTS'] == 5
        assert app.config['LOOKUP_WINDOW_MINUTES'] == 15

    def test_production_requires_secret_key(self, monkeypatch):
        from config import ProductionConfig

        monkeypatch.delenv('SECRET_KEY', raising=False)
        with pytest.raises(ValueError, match='SECRET_KEY'):
            ProductionConfig.validate()


class TestEndpoints:
    """Test app-level endpoints and error handlers."""

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'ok'

    def test_unknown_url_is_json_404(self, client):
        response = client.get('/no/such/page')

        assert response.status_code == 404
        assert response.get_json()['code'] == 'NOT_FOUND'


class TestCLICommands:
    """Test CLI command registration."""

    def test_cli_commands_registered(self):
        """Test that CLI commands are registered."""
        app = create_app('test')

        # Get registered CLI commands
        commands = list(app.cli.commands.keys())

        assert 'init-db' in commands
        assert 'seed-demo' in commands
        assert 'create-user' in commands
        assert 'create-venue' in commands
        assert 'expire-waitlist' in commands

    def test_create_venue_command(self, app):
        from models.venue import get_venue_by_slug

        runner = app.test_cli_runner()
        result = runner.invoke(args=['create-venue', 'Dice Den', 'dice-den', 'admin'])

        assert 'Venue created successfully' in result.output
        assert get_venue_by_slug('dice-den')['owner_id'] == 1

    def test_create_venue_unknown_owner(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['create-venue', 'Dice Den', 'dice-den', 'nobody'])

        assert 'user "nobody" not found' in result.output

    def test_expire_waitlist_command(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['expire-waitlist'])

        assert '0 waitlist entries expired.' in result.output
