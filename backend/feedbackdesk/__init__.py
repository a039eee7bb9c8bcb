from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import logging
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()

INTEGRATIONS_KEY = 'feedbackdesk.integrations'
CHANGES_KEY = 'feedbackdesk.changes'


def create_app(config: Optional[Dict[str, Any]] = None, http_session=None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///dev.db')
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')
    from .config.integrations import load_integration_config
    app.config.update(load_integration_config())

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    logging.getLogger('feedbackdesk').setLevel(app.config['LOG_LEVEL'])

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    # Outbound clients (sheets, chat bot, task tracker) share one HTTP session
    from .integrations.hub import IntegrationHub
    app.extensions[INTEGRATIONS_KEY] = IntegrationHub.from_config(app.config, http_session)
    from .services.events import ChangeFeed
    app.extensions[CHANGES_KEY] = ChangeFeed(maxlen=app.config['CHANGE_FEED_SIZE'])

    from .routes.auth import auth_bp  # login / me
    from .routes.submissions import sub_bp  # public intake form
    from .routes.tickets import tickets_bp  # admin ticket actions
    from .routes.views import views_bp  # dashboard, reports, meetings, redirected
    from .routes.statuses import statuses_bp  # dynamic status taxonomy
    from .routes.employees import employees_bp  # employee directory
    from .routes.settings import settings_bp  # per-department integration settings
    from .routes.sync import sync_bp  # inbound sheet / tracker sync
    from .routes.history import history_bp  # admin action log + change feed
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(sub_bp, url_prefix='/feedback')
    app.register_blueprint(tickets_bp, url_prefix='/admin/tickets')
    app.register_blueprint(views_bp, url_prefix='/admin/views')
    app.register_blueprint(statuses_bp, url_prefix='/admin/statuses')
    app.register_blueprint(employees_bp, url_prefix='/admin/employees')
    app.register_blueprint(settings_bp, url_prefix='/admin/settings')
    app.register_blueprint(sync_bp, url_prefix='/admin/sync')
    app.register_blueprint(history_bp, url_prefix='/admin')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            return payload, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    return app


def get_db():
    return SessionLocal()


def get_integrations():
    from flask import current_app
    return current_app.extensions[INTEGRATIONS_KEY]


def get_change_feed():
    from flask import current_app
    return current_app.extensions[CHANGES_KEY]
