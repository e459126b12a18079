"""
Structured logging for Tickcast components.

Every component logs through an AgentLogger tagged with its name.
Session-wide fields (symbol, session id) live in structlog contextvars
so feeds and loops do not have to pass them around.
"""

import logging
import sys
import uuid
from typing import Any

import structlog
from structlog.types import Processor

# Chatty transport libraries; their request lines drown the session log
NOISY_LOGGERS = ("aiohttp.access", "httpx", "httpcore", "openai")


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger for a component."""
    return structlog.get_logger(name)


class AgentLogger:
    """Component logger that tags every event with its agent name."""

    def __init__(self, agent_name: str):
        self.logger = structlog.get_logger(agent_name)
        self.agent_name = agent_name

    def info(self, message: str, **context: Any) -> None:
        self.logger.info(message, agent=self.agent_name, **context)

    def warning(self, message: str, **context: Any) -> None:
        self.logger.warning(message, agent=self.agent_name, **context)

    def error(self, message: str, **context: Any) -> None:
        self.logger.error(message, agent=self.agent_name, **context)

    def debug(self, message: str, **context: Any) -> None:
        self.logger.debug(message, agent=self.agent_name, **context)

    def exception(self, message: str, **context: Any) -> None:
        """Log at error level with the active traceback."""
        self.logger.exception(message, agent=self.agent_name, **context)

    def bind(self, **context: Any) -> "AgentLogger":
        """Copy of this logger with extra fixed context."""
        bound = AgentLogger(self.agent_name)
        bound.logger = self.logger.bind(**context)
        return bound


def bind_session_context(symbol: str, session_id: str | None = None) -> str:
    """
    Tag every following log line with the traded symbol and a session id.

    Returns the session id (a short random hex string unless given).
    """
    session_id = session_id or uuid.uuid4().hex[:8]
    structlog.contextvars.bind_contextvars(session=session_id, symbol=symbol)
    return session_id


def clear_session_context() -> None:
    structlog.contextvars.clear_contextvars()


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    quiet_libraries: bool = True,
) -> None:
    """
    Configure structlog for a session.

    Console rendering is the default; ``json_format`` switches to one
    JSON object per line for log shippers. Unknown level names fall
    back to INFO.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    if quiet_libraries:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        # Reconfigured by the entry point after import-time defaults
        cache_logger_on_first_use=False,
    )


configure_logging()
