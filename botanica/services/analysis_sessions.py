"""In-flight analyses keyed by the capture session that requested them."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import structlog

T = TypeVar("T")

_logger = structlog.get_logger("botanica.analysis_sessions")


class AnalysisCancelled(RuntimeError):
	"""Raised to the waiting caller when its session was cancelled."""


class AnalysisSessionRegistry:
	"""One running analysis task per session id.

	Starting a session that already has a task cancels the older one. When
	the waiting caller is itself cancelled (client gone), the task goes too,
	so no result resolves into a discarded session.
	"""

	def __init__(self) -> None:
		self._tasks: dict[str, asyncio.Task[Any]] = {}

	def __contains__(self, session_id: str) -> bool:
		return session_id in self._tasks

	async def run(self, session_id: str, work: Coroutine[Any, Any, T]) -> T:
		previous = self._tasks.get(session_id)
		if previous is not None:
			previous.cancel()
			_logger.info("analysis_session_superseded", session_id=session_id)

		task: asyncio.Task[T] = asyncio.create_task(work)
		self._tasks[session_id] = task
		try:
			await asyncio.wait({task})
		except asyncio.CancelledError:
			task.cancel()
			raise
		finally:
			if self._tasks.get(session_id) is task:
				del self._tasks[session_id]

		if task.cancelled():
			raise AnalysisCancelled(f"analysis session {session_id} was cancelled")
		return task.result()

	def cancel(self, session_id: str) -> bool:
		task = self._tasks.pop(session_id, None)
		if task is None:
			return False
		task.cancel()
		_logger.info("analysis_session_cancelled", session_id=session_id)
		return True

	async def aclose(self) -> None:
		tasks = list(self._tasks.values())
		self._tasks.clear()
		for task in tasks:
			task.cancel()
		if tasks:
			await asyncio.gather(*tasks, return_exceptions=True)
