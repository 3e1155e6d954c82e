from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    secret = flask_app.config.get('SCORE_TOKEN_SECRET')
    if not secret:
        raise RuntimeError('SCORE_TOKEN_SECRET is not set; refusing to start without a token secret')

    from platform_drop.services.scores.tokens import TokenCodec
    flask_app.extensions['token_codec'] = TokenCodec(secret)

    origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from platform_drop.main import main
    flask_app.register_blueprint(main)

    from platform_drop.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api')

    # Importing binds the /ws handlers to the initialized socketio instance
    from platform_drop.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @flask_app.errorhandler(404)
    def not_found(_exc):
        return jsonify({'success': False, 'code': 'not-found', 'message': 'Not found'}), 404

    @flask_app.errorhandler(405)
    def method_not_allowed(_exc):
        return jsonify({'success': False, 'code': 'invalid-input', 'message': 'Method not allowed'}), 405

    @flask_app.errorhandler(500)
    def internal_error(exc):
        flask_app.logger.error(f"[internal] unhandled error: {exc!r}")
        db.session.rollback()
        return jsonify({'success': False, 'code': 'internal', 'message': 'Internal error, please retry'}), 500

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database schema."""
        import platform_drop.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('reap-sessions')
    def reap_sessions_command():
        """Deletes expired, never-used game sessions once."""
        from platform_drop.services.scores.reaper import run_sweep
        deleted = run_sweep(flask_app)
        print(f'Deleted {deleted} expired game sessions')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(reap_sessions_command)

    from platform_drop.services.scores.reaper import schedule_reaper
    schedule_reaper(flask_app)

    return flask_app
