"""
Meeple Tables - Board Game Cafe Booking Engine
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, g
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db, get_db

from utils.api_response import api_error
from utils.messages import MESSAGES
from utils.rate_limiter import FixedWindowRateLimiter
from utils.results import ErrorKind


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions and per-app engine state."""
    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)

    # Guest lookup attempts, keyed by venue and email
    app.extensions['lookup_rate_limiter'] = FixedWindowRateLimiter(
        max_attempts=app.config['LOOKUP_MAX_ATTEMPTS'],
        window_seconds=app.config['LOOKUP_WINDOW_MINUTES'] * 60
    )
    # Listeners notified when booking views go stale
    app.extensions['view_invalidation'] = []


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.api import api_bp
    from blueprints.public.routes import public_bp

    csrf.exempt(public_bp)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(public_bp)

    @app.route('/health')
    def health_check():
        """Health check endpoint (no authentication required)."""
        from flask import jsonify
        return jsonify({
            'status': 'ok',
            'version': app.config.get('APP_VERSION', '1.0.0'),
            'app': app.config.get('APP_NAME', 'Meeple Tables')
        })


def register_error_handlers(app):
    """Register JSON error handlers."""

    @app.errorhandler(400)
    def bad_request_error(error):
        """Handle 400 errors (including CSRF failures)."""
        return api_error(getattr(error, 'description', None) or 'Bad request.',
                         status=400, code=ErrorKind.VALIDATION)

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 errors."""
        return api_error(MESSAGES['forbidden'], status=403, code=ErrorKind.UNAUTHORIZED)

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return api_error(MESSAGES['not_found'], status=404, code=ErrorKind.NOT_FOUND)

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        return api_error(MESSAGES['unknown_error'], status=500, code=ErrorKind.UNKNOWN)


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    @click.option('--seed/--no-seed', default=False, help='Also insert the demo venue.')
    def init_db_command(seed):
        """Initialize database schema (drops existing data)."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db(seed=seed)
        click.echo('Database initialized successfully!')

    @app.cli.command('seed-demo')
    def seed_demo_command():
        """Recreate the database with the demo venue, tables, games and admin user."""
        click.echo('Seeding demo data...')
        with app.app_context():
            init_db(seed=True)
        click.echo('Demo venue "meeple-corner" ready. Log in as admin / admin123.')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.argument('email')
    @click.option('--full-name', default=None, help='Display name.')
    @click.password_option()
    def create_user_command(username, email, full_name, password):
        """Create a new staff user."""
        from models.user import create_user

        with app.app_context():
            try:
                user_id = create_user(
                    username=username,
                    email=email,
                    password=password,
                    full_name=full_name
                )
                click.echo(f'User created successfully! ID: {user_id}')
            except Exception as e:
                click.echo(f'Error creating user: {str(e)}', err=True)

    @app.cli.command('create-venue')
    @click.argument('name')
    @click.argument('slug')
    @click.argument('owner')
    def create_venue_command(name, slug, owner):
        """Create a venue owned by an existing user."""
        from models.user import get_user_by_username
        from models.venue import create_venue
        from models.booking_settings import get_or_create_booking_settings

        with app.app_context():
            user = get_user_by_username(owner)
            if not user:
                click.echo(f'Error: user "{owner}" not found', err=True)
                return
            try:
                venue_id = create_venue(name, slug, user['id'])
                get_or_create_booking_settings(venue_id)
                click.echo(f'Venue created successfully! ID: {venue_id}')
            except Exception as e:
                click.echo(f'Error creating venue: {str(e)}', err=True)

    @app.cli.command('expire-waitlist')
    def expire_waitlist_command():
        """Expire open waitlist entries whose date has passed, for every venue."""
        from models.waitlist import expire_old_entries
        from models.booking_settings import get_or_create_booking_settings
        from utils.datetime_helpers import get_today

        with app.app_context():
            total = 0
            for row in get_db().execute('SELECT id FROM venues').fetchall():
                settings = get_or_create_booking_settings(row['id'])
                total += expire_old_entries(row['id'], get_today(settings.get('timezone')))
            click.echo(f'{total} waitlist entries expired.')


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/meeple_tables.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        logging.getLogger().addHandler(file_handler)
        logging.getLogger().setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('Meeple Tables startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', debug=True)
