"""Analysis credential resolution.

Sources, first match wins, all read through pydantic-settings:

1. ``BOTANICA_GEMINI_API_KEY``
2. ``GEMINI_API_KEY``
3. ``API_KEY``

each from the process environment or the ``.env`` file. Blank values and
the literal ``"undefined"`` (what some static hosts inject for unset
variables) count as missing.
"""

from __future__ import annotations

from botanica.config import Settings, get_settings

_MISSING_VALUES = {"", "undefined", "null", "none"}


def resolve_credential(settings: Settings | None = None) -> str | None:
	settings = settings or get_settings()
	value = (settings.gemini_api_key or "").strip()
	if value.lower() in _MISSING_VALUES:
		return None
	return value
