from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

DEMO_PROFILES = [
    ('google12345', 'Bob The Great'),
    ('google67890', 'Alice The Brave'),
    ('github13579', 'Cara The Quick'),
]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Registers the request loader on login_manager
    from hackduel import auth  # noqa: F401

    from hackduel.main import main
    flask_app.register_blueprint(main)

    from hackduel.api.duels import duels
    flask_app.register_blueprint(duels, url_prefix='/duel')

    from hackduel.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from hackduel.models import AttendeeProfile
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            for user_id, name in DEMO_PROFILES:
                db.session.add(AttendeeProfile(user_id=user_id, display_name=name))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
