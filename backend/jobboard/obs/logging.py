"""JSON logging with request context for the moderation service."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from jobboard.settings import settings

_LOGGER_NAME = "jobboard"

# Output key for each request-scoped field bound by the HTTP middleware.
_CONTEXT: Dict[str, tuple[str, ContextVar[Optional[str]]]] = {
	"request_id": ("request_id", ContextVar("obs_request_id", default=None)),
	"route": ("route", ContextVar("obs_route", default=None)),
	"user_id": ("user_id", ContextVar("obs_user_id", default=None)),
	"client_ip": ("ip", ContextVar("obs_client_ip", default=None)),
}

_REDACTED_KEYS = ("token", "secret", "authorization", "password")
_MAX_STRING_LENGTH = 256
_MAX_LIST_ITEMS = 10

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "taskName"}


def bind_context(**fields: Optional[str]) -> Dict[str, Token]:
	"""Bind request fields (request_id, route, user_id, client_ip); returns reset tokens."""
	return {name: _CONTEXT[name][1].set(value) for name, value in fields.items() if value is not None}


def reset_context(tokens: Dict[str, Token]) -> None:
	for name, token in tokens.items():
		_CONTEXT[name][1].reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT["request_id"][1].get()


def _clip(key: str, value: Any) -> Any:
	if any(secret in key.lower() for secret in _REDACTED_KEYS):
		return "[redacted]"
	if isinstance(value, str) and len(value) > _MAX_STRING_LENGTH:
		return f"{value[:_MAX_STRING_LENGTH]}…"
	if isinstance(value, (list, tuple)) and len(value) > _MAX_LIST_ITEMS:
		return [*value[:_MAX_LIST_ITEMS], f"+{len(value) - _MAX_LIST_ITEMS} more"]
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per record: service identity, request context, then extras."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		for key, var in _CONTEXT.values():
			value = var.get()
			if value:
				payload[key] = value
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key not in _RECORD_ATTRS:
				payload[key] = _clip(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Sample info records at ``obs_log_sampling_rate_info``; audit and warnings always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO or record.name.startswith("audit."):
			return True
		rate = max(0.0, min(1.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
