from typing import List


def sweep_idle_rooms(registry, broadcaster=None, now=None, logger=None) -> List[str]:
    """Close every room idle for longer than the configured TTL.

    Candidates are re-checked under their own lock, so a room that saw
    activity after the snapshot was taken is left alone.
    """
    removed = []
    for room in registry.idle_rooms(now):
        with room.lock:
            current = registry.clock() if now is None else now
            if room.closed or not registry.is_idle(room, current):
                continue
            registry.delete(room.code)
            if broadcaster is not None:
                broadcaster.room_closed(room.code, 'idle')
            removed.append(room.code)
    if removed and logger is not None:
        logger.info(f"[reaper-sweep] removed={len(removed)} codes={','.join(removed)}")
    return removed


def start_room_reaper(app, socketio) -> None:
    """Run ``sweep_idle_rooms`` forever on a Socket.IO background task.

    No-ops in TESTING mode unless ENABLE_REAPER_IN_TESTS is set.
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_REAPER_IN_TESTS'):
        return

    try:
        interval = max(1, int(app.config.get('REAPER_INTERVAL_SEC', 60)))
    except (TypeError, ValueError):
        interval = 60

    def _worker():
        ctx = app.extensions['impostor']
        app.logger.info(f"[reaper-start] interval={interval}s ttl={ctx.registry.settings.room_ttl_sec}s")
        while True:
            socketio.sleep(interval)
            try:
                with app.app_context():
                    sweep_idle_rooms(ctx.registry, ctx.broadcaster, logger=app.logger)
            except Exception:
                app.logger.exception("[reaper-error] sweep failed")

    socketio.start_background_task(_worker)
