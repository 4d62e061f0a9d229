from logger import LogCategory, LoggableMixin, get_logger, setup_logger


def _flush(logger):
    for handler in logger.logger.handlers:
        handler.flush()
    logger.field_handler.flush()


def test_logger_accepts_string_category(tmp_path):
    log_dir = tmp_path / "logs"
    logger = setup_logger(log_dir=log_dir)

    logger.info("String category entry", category="DATA", extra_field="value")
    _flush(logger)

    log_file = log_dir / "gridnav.log"
    assert log_file.exists()
    content = log_file.read_text(encoding="utf-8")
    assert "String category entry" in content
    assert '"category": "DATA"' in content
    assert '"field_extra_field": "value"' in content


def test_field_events_are_written_to_field_log(tmp_path):
    logger = setup_logger(log_dir=tmp_path)

    logger.field_event("Waypoint reached", waypoint="TGT")
    _flush(logger)

    field_log = (tmp_path / "gridnav_field.log").read_text(encoding="utf-8")
    assert "FIELD EVENT: Waypoint reached" in field_log
    assert '"field_waypoint": "TGT"' in field_log


def test_navigation_event_carries_route_fields(tmp_path):
    logger = setup_logger(log_dir=tmp_path)

    logger.log_navigation_event("route_started", route="GOTO Target", leg_index=0)
    _flush(logger)

    content = (tmp_path / "gridnav.log").read_text(encoding="utf-8")
    assert '"category": "NAVIGATION"' in content
    assert '"field_route": "GOTO Target"' in content


def test_errors_land_in_error_log(tmp_path):
    logger = setup_logger(log_dir=tmp_path)

    try:
        raise OSError("disk full")
    except OSError as exc:
        logger.error("Registry write failed", exception=exc, category=LogCategory.DATA)
    _flush(logger)

    errors = (tmp_path / "gridnav_errors.log").read_text(encoding="utf-8")
    assert "Registry write failed" in errors
    assert '"type": "OSError"' in errors


def test_loggable_mixin_prefixes_class_name(tmp_path):
    setup_logger(log_dir=tmp_path)

    class Probe(LoggableMixin):
        pass

    Probe().log_info("hello")
    _flush(get_logger())

    content = (tmp_path / "gridnav.log").read_text(encoding="utf-8")
    assert "[Probe] hello" in content
