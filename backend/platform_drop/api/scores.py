from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from platform_drop import db
from platform_drop.services.scores import build_session_service, build_submission_service
from platform_drop.services.scores.results import Failure, Reason
from platform_drop.services.scores.store import SessionStore
from platform_drop.socketio_events import broadcast_leaderboard_update


scores = Blueprint('scores', __name__)


def _client_ip() -> str:
    # Advisory only; never used for validation
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()[:64]
    return (request.remote_addr or 'unknown')[:64]


def _failure_response(failure: Failure):
    return jsonify(failure.to_dict()), failure.http_status


@scores.route('/sessions', methods=['POST'])
def create_session():
    result = build_session_service().create_session(_client_ip())
    if isinstance(result, Failure):
        return _failure_response(result)
    return jsonify(result.to_dict()), 201


@scores.route('/scores', methods=['POST'])
def submit_score():
    data = request.get_json(silent=True)
    result = build_submission_service().submit(data)
    if isinstance(result, Failure):
        return _failure_response(result)
    try:
        broadcast_leaderboard_update(result.entry)
    except Exception:
        # score is already committed; a failed push must not turn it into an error
        current_app.logger.exception(f"[broadcast-error] session={result.entry.get('sessionId')} leaderboard_update failed")
    return jsonify(result.to_dict()), 201


@scores.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    cfg = current_app.config
    default_limit = int(cfg.get('LEADERBOARD_DEFAULT_LIMIT', 10))
    max_limit = int(cfg.get('LEADERBOARD_MAX_LIMIT', 100))
    raw = request.args.get('limit')
    try:
        limit = int(raw) if raw is not None else default_limit
    except ValueError:
        return _failure_response(Failure(Reason.INVALID_INPUT))
    if limit < 1:
        return _failure_response(Failure(Reason.INVALID_INPUT))
    limit = min(limit, max_limit)

    try:
        entries = SessionStore(db.session).top_entries(limit)
    except SQLAlchemyError:
        current_app.logger.exception("[leaderboard-error] query failed")
        return _failure_response(Failure(Reason.INTERNAL))
    return jsonify([e.to_dict() for e in entries])
