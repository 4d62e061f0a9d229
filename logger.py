"""
Structured logging for GridNav.
Console output for operators, rotating JSON-annotated files for later review,
and a separate field-event log for navigation milestones.
"""
import logging
import logging.handlers
import time
import json
import traceback
from pathlib import Path
from typing import Optional, Dict, Any, Union
from enum import Enum, auto
from contextlib import contextmanager
from datetime import datetime
import uuid
class LogLevel(Enum):
    """Log levels including a TRACE level below DEBUG."""
    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50
class LogCategory(Enum):
    """Categories attached to every structured record."""
    SYSTEM = auto()
    GPS = auto()
    NAVIGATION = auto()
    GEODESY = auto()
    TILES = auto()
    NETWORK = auto()
    DATA = auto()
    USER_ACTION = auto()
    FIELD_EVENT = auto()
class StructuredFormatter(logging.Formatter):
    """Formatter that appends structured fields as a JSON tail."""
    def __init__(self, include_json=True):
        super().__init__()
        self.include_json = include_json
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        basic_line = f"[{timestamp}] {record.levelname:8} {record.name}: {record.getMessage()}"
        structured_data = {}
        for key, value in record.__dict__.items():
            if key.startswith('field_') or key in ['category', 'session_id']:
                structured_data[key] = value
        if record.exc_info:
            structured_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }
        structured_data['location'] = {
            'filename': record.filename,
            'line': record.lineno,
            'function': record.funcName
        }
        if structured_data and self.include_json:
            json_data = json.dumps(structured_data, default=str, ensure_ascii=False)
            return f"{basic_line} | {json_data}"
        return basic_line
class GridNavLogger:
    """Session-scoped logger with navigation specific helpers."""
    def __init__(self, name: str = "gridnav", log_dir: Optional[Path] = None):
        self.name = name
        self.session_id = str(uuid.uuid4())[:8]
        if log_dir is None:
            log_dir = Path.home() / "GridNav" / "logs"
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._setup_loggers()
        self.debug("GridNav logging system initialized",
                   session_id=self.session_id,
                   log_dir=str(self.log_dir))
    def _setup_loggers(self):
        """Attach console, rolling file, error and field-event handlers."""
        logging.addLevelName(LogLevel.TRACE.value, "TRACE")
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(LogLevel.TRACE.value)
        self.logger.propagate = False
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(StructuredFormatter(include_json=False))
        self.logger.addHandler(console_handler)
        file_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / f"{self.name}.log", maxBytes=10*1024*1024, backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter(include_json=True))
        self.logger.addHandler(file_handler)
        # Field events go to their own file and are not attached to the logger.
        self.field_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / f"{self.name}_field.log", maxBytes=5*1024*1024, backupCount=3,
            encoding="utf-8"
        )
        self.field_handler.setLevel(logging.INFO)
        self.field_handler.setFormatter(StructuredFormatter(include_json=True))
        error_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / f"{self.name}_errors.log", maxBytes=5*1024*1024, backupCount=5,
            encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(StructuredFormatter(include_json=True))
        self.logger.addHandler(error_handler)
    def _log(self, level: int, message: str, category: Optional[Union[LogCategory, str]] = None,
             exception: Optional[BaseException] = None, **kwargs):
        if isinstance(category, LogCategory):
            category_name = category.name
        elif category:
            category_name = str(category).upper()
        else:
            category_name = 'GENERAL'
        extra = {'session_id': self.session_id, 'category': category_name}
        for key, value in kwargs.items():
            if not key.startswith('_'):
                extra[f'field_{key}'] = value
        if exception is not None:
            self.logger.log(level, message, exc_info=(type(exception), exception, exception.__traceback__), extra=extra)
        else:
            self.logger.log(level, message, extra=extra)
    def trace(self, message: str, category: Optional[LogCategory] = None, **kwargs):
        """Log trace message (per-tile and per-iteration detail)."""
        self._log(LogLevel.TRACE.value, message, category, **kwargs)
    def debug(self, message: str, category: Optional[LogCategory] = None, **kwargs):
        self._log(LogLevel.DEBUG.value, message, category, **kwargs)
    def info(self, message: str, category: Optional[LogCategory] = None, **kwargs):
        self._log(LogLevel.INFO.value, message, category, **kwargs)
    def warning(self, message: str, category: Optional[LogCategory] = None,
                exception: Optional[BaseException] = None, **kwargs):
        self._log(LogLevel.WARNING.value, message, category, exception, **kwargs)
    def error(self, message: str, exception: Optional[BaseException] = None,
              category: Optional[LogCategory] = None, **kwargs):
        self._log(LogLevel.ERROR.value, message, category, exception, **kwargs)
    def critical(self, message: str, exception: Optional[BaseException] = None,
                 category: Optional[LogCategory] = None, **kwargs):
        self._log(LogLevel.CRITICAL.value, message, category, exception, **kwargs)
    def field_event(self, message: str, **kwargs):
        """Log a navigation milestone to the main log and the field log."""
        self._log(LogLevel.INFO.value, f"FIELD EVENT: {message}",
                  LogCategory.FIELD_EVENT, **kwargs)
        extra = {'session_id': self.session_id, 'category': 'FIELD_EVENT'}
        for key, value in kwargs.items():
            if not key.startswith('_'):
                extra[f'field_{key}'] = value
        self.field_handler.handle(
            self.logger.makeRecord(self.name, LogLevel.INFO.value, __file__, 0,
                                   f"FIELD EVENT: {message}", (), None, extra=extra)
        )
    def log_user_action(self, action: str, details: Optional[Dict[str, Any]] = None):
        log_data = {'action': action, 'timestamp': time.time()}
        if details:
            log_data.update(details)
        self._log(LogLevel.INFO.value, f"USER ACTION: {action}",
                  LogCategory.USER_ACTION, **log_data)
    def log_gps_event(self, event_type: str, latitude: Optional[float] = None,
                      longitude: Optional[float] = None, accuracy: Optional[float] = None, **kwargs):
        """Log position feed events (fixes, rejected fixes, provider state)."""
        gps_data = {'event_type': event_type}
        if latitude is not None:
            gps_data['latitude'] = latitude
        if longitude is not None:
            gps_data['longitude'] = longitude
        if accuracy is not None:
            gps_data['accuracy'] = accuracy
        gps_data.update(kwargs)
        self._log(LogLevel.DEBUG.value, f"GPS: {event_type}", LogCategory.GPS, **gps_data)
    def log_navigation_event(self, event_type: str, route: Optional[str] = None,
                             leg_index: Optional[int] = None, **kwargs):
        """Log route lifecycle events (start, leg advance, completion, cancel)."""
        nav_data = {'event_type': event_type}
        if route is not None:
            nav_data['route'] = route
        if leg_index is not None:
            nav_data['leg_index'] = leg_index
        nav_data.update(kwargs)
        self._log(LogLevel.INFO.value, f"NAVIGATION: {event_type}",
                  LogCategory.NAVIGATION, **nav_data)
    def log_tile_event(self, event_type: str, zone: Optional[str] = None,
                       layer: Optional[str] = None, **kwargs):
        """Log offline tile prefetch progress and outcomes."""
        tile_data = {'event_type': event_type}
        if zone:
            tile_data['zone'] = zone
        if layer:
            tile_data['layer'] = layer
        tile_data.update(kwargs)
        self._log(LogLevel.INFO.value, f"TILES: {event_type}", LogCategory.TILES, **tile_data)
    def log_network_event(self, event_type: str, url: Optional[str] = None,
                          status_code: Optional[int] = None, **kwargs):
        network_data = {'event_type': event_type}
        if url:
            network_data['url'] = url
        if status_code:
            network_data['status_code'] = status_code
        network_data.update(kwargs)
        self._log(LogLevel.DEBUG.value, f"NETWORK: {event_type}",
                  LogCategory.NETWORK, **network_data)
    @contextmanager
    def timer(self, operation: str, log_result: bool = True):
        """Context manager for timing operations."""
        start_time = time.time()
        operation_id = str(uuid.uuid4())[:8]
        self.debug(f"Starting operation: {operation}",
                   category=LogCategory.SYSTEM, operation_id=operation_id)
        try:
            yield operation_id
        finally:
            duration = time.time() - start_time
            if log_result:
                self.info(f"Completed operation: {operation} in {duration:.3f}s",
                          category=LogCategory.SYSTEM, operation_id=operation_id,
                          duration=duration)
    def get_session_id(self) -> str:
        return self.session_id
    def set_log_level(self, level: Union[str, int, LogLevel]):
        """Set the level of the console handler (files always keep DEBUG)."""
        if isinstance(level, LogLevel):
            level = level.value
        elif isinstance(level, str):
            level = getattr(logging, level.upper())
        for handler in self.logger.handlers:
            if type(handler) is logging.StreamHandler:
                handler.setLevel(level)
        self.debug(f"Console log level set to: {logging.getLevelName(level)}")
    def close(self):
        """Flush and release every file handle held by this logger."""
        for handler in list(self.logger.handlers) + [self.field_handler]:
            handler.flush()
            handler.close()
_global_logger: Optional[GridNavLogger] = None
def get_logger() -> GridNavLogger:
    """Get the global logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = GridNavLogger()
    return _global_logger
def setup_logger(name: str = "gridnav", log_dir: Optional[Path] = None) -> GridNavLogger:
    """Set up and return the global logger."""
    global _global_logger
    if _global_logger is not None:
        _global_logger.close()
    _global_logger = GridNavLogger(name, log_dir)
    return _global_logger
class LoggableMixin:
    """Mixin giving classes ``log_*`` helpers prefixed with the class name."""
    def __init__(self):
        self._logger = get_logger()
        self._module_name = self.__class__.__name__
    def log_trace(self, message: str, **kwargs):
        self._logger.trace(f"[{self._module_name}] {message}", **kwargs)
    def log_debug(self, message: str, **kwargs):
        self._logger.debug(f"[{self._module_name}] {message}", **kwargs)
    def log_info(self, message: str, **kwargs):
        self._logger.info(f"[{self._module_name}] {message}", **kwargs)
    def log_warning(self, message: str, **kwargs):
        self._logger.warning(f"[{self._module_name}] {message}", **kwargs)
    def log_error(self, message: str, exception: Optional[BaseException] = None, **kwargs):
        self._logger.error(f"[{self._module_name}] {message}", exception=exception, **kwargs)
    def log_field_event(self, message: str, **kwargs):
        self._logger.field_event(f"[{self._module_name}] {message}", **kwargs)
    def log_user_action(self, action: str, details: Optional[Dict[str, Any]] = None):
        action_details = {'module': self._module_name}
        if details:
            action_details.update(details)
        self._logger.log_user_action(action, action_details)
