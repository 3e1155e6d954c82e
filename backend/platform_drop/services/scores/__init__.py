"""Score protocol services: session issue, submission checks, expiry sweep.

Everything here receives its store, token codec and clock explicitly so it
can be driven from HTTP routes, CLI commands and tests alike. The helpers
below wire them from the current Flask app's config.
"""

from flask import current_app

from platform_drop import db
from .clock import now_ms
from .sessions import SessionService
from .store import SessionStore
from .submission import ScoreSubmissionService


def _clock(app):
    return app.config.get('SCORE_CLOCK') or now_ms


def build_session_service(app=None) -> SessionService:
    app = app or current_app._get_current_object()
    return SessionService(
        SessionStore(db.session),
        app.extensions['token_codec'],
        clock=_clock(app),
        logger=app.logger,
    )


def build_submission_service(app=None) -> ScoreSubmissionService:
    app = app or current_app._get_current_object()
    cfg = app.config
    return ScoreSubmissionService(
        SessionStore(db.session),
        app.extensions['token_codec'],
        max_rate_per_sec=float(cfg.get('MAX_DISTANCE_PER_SEC', 30)),
        min_duration_ms=int(cfg.get('MIN_GAME_DURATION_MS', 1000)),
        expiry_ms=int(cfg.get('SESSION_EXPIRY_MS', 60 * 60 * 1000)),
        clock=_clock(app),
        logger=app.logger,
    )
