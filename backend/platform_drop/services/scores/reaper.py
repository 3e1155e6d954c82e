import logging
from typing import Optional

from platform_drop import db, socketio
from .clock import now_ms
from .store import SessionStore


_reaper_started = False


def reap_expired_sessions(store: SessionStore, now: int, expiry_ms: int,
                          batch_size: int = 500, logger: Optional[logging.Logger] = None) -> int:
    """Delete unused sessions issued more than ``expiry_ms`` before ``now``.

    Works in batches, each committed on its own, so a sweep interrupted
    halfway can simply be run again. Consumed sessions are never touched.
    Returns the number of rows deleted.
    """
    logger = logger or logging.getLogger(__name__)
    cutoff = now - expiry_ms
    deleted = 0
    while True:
        ids = store.expired_unused_ids(cutoff, batch_size)
        if not ids:
            break
        deleted += store.delete_unused(ids)
        if len(ids) < batch_size:
            break
    logger.info(f"[reaper-sweep] cutoff={cutoff} deleted={deleted}")
    return deleted


def run_sweep(app) -> int:
    with app.app_context():
        clock = app.config.get('SCORE_CLOCK') or now_ms
        return reap_expired_sessions(
            SessionStore(db.session),
            now=int(clock()),
            expiry_ms=int(app.config.get('SESSION_EXPIRY_MS', 60 * 60 * 1000)),
            batch_size=int(app.config.get('REAPER_BATCH_SIZE', 500)),
            logger=app.logger,
        )


def sweep_guarded(app) -> Optional[int]:
    """Run one sweep, logging any failure instead of ending the caller's loop."""
    try:
        return run_sweep(app)
    except Exception:
        # next run retries; deletes already committed stay deleted
        app.logger.exception("[reaper-error] sweep failed")
        return None


def schedule_reaper(app) -> None:
    """Start the periodic sweep as a Socket.IO background task.

    - No-ops in TESTING mode unless ENABLE_REAPER_IN_TESTS is set
    - Starts at most one worker per process
    - Waits REAPER_OFFSET_SEC before the first sweep, then every REAPER_INTERVAL_SEC
    """
    global _reaper_started
    if app.config.get('TESTING') and not app.config.get('ENABLE_REAPER_IN_TESTS'):
        return
    if _reaper_started:
        app.logger.info("[reaper-skip] already scheduled")
        return
    _reaper_started = True

    interval = int(app.config.get('REAPER_INTERVAL_SEC', 24 * 60 * 60))
    offset = int(app.config.get('REAPER_OFFSET_SEC', 0))
    app.logger.info(f"[reaper-set] offset={offset}s interval={interval}s")

    def _worker():
        socketio.sleep(offset)
        while True:
            sweep_guarded(app)
            socketio.sleep(interval)

    socketio.start_background_task(_worker)
