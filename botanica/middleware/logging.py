"""Structured JSON logging with request ID and plant ID propagation."""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from botanica.config import LogFormat, get_settings

_configured = False
_PLANT_PATH = re.compile(r"^/api/v1/plants/(?P<plant_id>[^/]+)")
_PROBE_PATHS = {"/health", "/health/ready"}


def configure_structured_logging() -> None:
	"""Configure stdlib + structlog once for the API process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
	shared_processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.processors.add_log_level,
		timestamper,
	]

	if settings.log_format == LogFormat.json:
		renderer: Any = structlog.processors.JSONRenderer()
		logging.basicConfig(level=log_level, format="%(message)s")
	else:
		renderer = structlog.dev.ConsoleRenderer()
		logging.basicConfig(level=log_level)

	structlog.configure(
		processors=[
			*shared_processors,
			structlog.processors.format_exc_info,
			renderer,
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def _elapsed_ms(start: float) -> float:
	return round((time.perf_counter() - start) * 1000.0, 2)


def extract_plant_id(path: str) -> str | None:
	match = _PLANT_PATH.match(path)
	return match.group("plant_id") if match else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Attach request IDs, bind the addressed plant, and log per-request timing.

	Health probes log at debug level and 5xx responses at warning.
	"""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
		request.state.request_id = request_id
		path = request.url.path

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id)
		plant_id = extract_plant_id(path)
		if plant_id is not None:
			structlog.contextvars.bind_contextvars(plant_id=plant_id)

		logger = structlog.get_logger("botanica.request")
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=path,
				duration_ms=_elapsed_ms(start),
				error=str(exc),
			)
			raise

		response.headers["x-request-id"] = request_id
		if path in _PROBE_PATHS:
			log = logger.debug
		elif response.status_code >= 500:
			log = logger.warning
		else:
			log = logger.info
		log(
			"http_request",
			method=request.method,
			path=path,
			status_code=response.status_code,
			duration_ms=_elapsed_ms(start),
		)
		return response
