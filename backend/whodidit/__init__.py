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

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One shared store per app; it owns the change subscribers
    from whodidit.store import GameStore
    flask_app.extensions['game_store'] = GameStore()

    from whodidit.main import main
    flask_app.register_blueprint(main)

    from whodidit.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from whodidit.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates all game tables."""
        import whodidit.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('questions')
    def questions_command():
        """Lists the prompt corpus."""
        from whodidit.services.games.questions import QUESTIONS
        for i, question in enumerate(QUESTIONS, start=1):
            print(f'{i:2d}. {question}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(questions_command)

    return flask_app
