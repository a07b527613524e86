from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

DEMO_SCORES = [('alice', 1500), ('bob', 1200), ('cara', 900)]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Mini-game registry, validated once so a broken tutorial fails at boot
    from partyarcade.games import build_registry
    registry = build_registry()
    registry.validate()
    flask_app.extensions['arcade_registry'] = registry

    from partyarcade.main import main
    flask_app.register_blueprint(main)

    from partyarcade.api.leaderboard import leaderboard
    flask_app.register_blueprint(leaderboard, url_prefix='/api')

    from partyarcade.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from partyarcade.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('init-db')
    def init_db_command():
        """Creates the leaderboard table if it does not exist yet."""
        from partyarcade.services.leaderboard.store import ScoreStore
        with flask_app.app_context():
            ScoreStore().init_schema()
            print('Leaderboard table ready.')

    @click.command('db-reset')
    @click.option('--seed/--no-seed', default=True, help='Insert demo scores after recreating.')
    def db_reset_command(seed):
        """Drops, recreates, and optionally seeds the database."""
        from partyarcade.services.leaderboard.store import ScoreStore
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            if seed:
                store = ScoreStore()
                for pseudo, score in DEMO_SCORES:
                    store.upsert_best(pseudo, score)

            print('Database has been reset' + (' and seeded!' if seed else '!'))

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(db_reset_command)

    return flask_app
