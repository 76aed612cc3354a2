"""Botanical assessment from photos via the Gemini REST API."""

from __future__ import annotations

import json
import re
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from enum import StrEnum
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from botanica.config import Settings, get_settings
from botanica.models.plant import AnalysisResult
from botanica.services.credentials import resolve_credential
from botanica.services.image_codec import data_url_payload

DEFAULT_QUICK_MOISTURE = 5

ANALYSIS_PROMPT = (
	"Act as a senior botanist. Produce a complete assessment of the specimen in the images. "
	"Required: 1) precise scientific and common names; "
	"2) biometry: current height, pot size and the species' maximum height; "
	"3) life cycle and estimated longevity; "
	"4) health: leaf analysis, turgor, vigor index 0-100 and root health 0-100, "
	"substrate moisture 0-10; "
	"5) care: watering technique, millilitres per watering, days between waterings, "
	"misting guidance and seasonal schedule; "
	"6) botany: geographic origin, curiosities and unique particularities of the species. "
	"Answer with JSON only, matching the response schema."
)

QUICK_MOISTURE_PROMPT = "Substrate moisture on a 0-10 scale. Reply with the number only."


def _obj(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
	return {"type": "OBJECT", "properties": properties, "required": required}


_STR = {"type": "STRING"}
_NUM = {"type": "NUMBER"}

_RESPONSE_SCHEMA: dict[str, Any] = _obj(
	{
		"identificacion": _obj({"cientifico": _STR, "comun": _STR}, ["cientifico", "comun"]),
		"salud": _obj(
			{
				"estado": {"type": "STRING", "enum": ["óptimo", "alerta", "crítico"]},
				"observaciones": _STR,
				"hidrometria": _NUM,
				"analisis_foliar": _STR,
				"riesgo_plagas": {"type": "STRING", "enum": ["bajo", "medio", "alto"]},
				"vigor_index": _NUM,
				"estado_raices": _NUM,
			},
			["estado", "observaciones", "analisis_foliar", "vigor_index", "estado_raices"],
		),
		"medidas_sugeridas": _obj(
			{
				"altura_cm": _NUM,
				"maceta_diametro_cm": _NUM,
				"maceta_altura_cm": _NUM,
				"altura_max_especie_cm": _NUM,
			},
			["altura_cm", "maceta_diametro_cm", "altura_max_especie_cm"],
		),
		"estudio_trasplante": _obj(
			{
				"necesidad": {"type": "STRING", "enum": ["inmediata", "recomendada", "preparar", "no_necesario"]},
				"maceta_objetivo_cm": _NUM,
				"proxima_fecha_estimada": _STR,
				"riesgo_trauma": {"type": "STRING", "enum": ["bajo", "medio", "alto"]},
				"analisis_relacion": _STR,
			},
			["necesidad", "maceta_objetivo_cm", "proxima_fecha_estimada"],
		),
		"cuidados": _obj(
			{
				"agua_ml": _NUM,
				"frecuencia_dias": _NUM,
				"luz_optima": _STR,
				"temp_min": _NUM,
				"temp_max": _NUM,
				"temp_optima": _NUM,
				"forma_riego": _STR,
				"cantidad_agua_info": _STR,
				"recomendacion_aspersion": _STR,
				"periodicidad_estacional": _obj(
					{"primavera": _STR, "verano": _STR, "otono": _STR, "invierno": _STR},
					["primavera", "verano", "otono", "invierno"],
				),
			},
			[
				"agua_ml",
				"frecuencia_dias",
				"luz_optima",
				"forma_riego",
				"cantidad_agua_info",
				"recomendacion_aspersion",
				"periodicidad_estacional",
			],
		),
		"ficha_botanica": _obj(
			{
				"origen_geografico": _STR,
				"tipo_hojas": _STR,
				"tipo_raices": _STR,
				"particularidades": _STR,
				"curiosidades": _STR,
				"longevidad_estimada": _STR,
				"explicacion_botanica_extensa": _STR,
			},
			[
				"origen_geografico",
				"longevidad_estimada",
				"explicacion_botanica_extensa",
				"tipo_hojas",
				"tipo_raices",
				"curiosidades",
				"particularidades",
			],
		),
	},
	["identificacion", "salud", "medidas_sugeridas", "cuidados", "ficha_botanica", "estudio_trasplante"],
)

_logger = structlog.get_logger("botanica.analysis")


class AnalysisErrorKind(StrEnum):
	missing_credential = "missing_credential"
	empty_response = "empty_response"
	request_failed = "request_failed"
	invalid_response = "invalid_response"


class AnalysisUnavailable(RuntimeError):
	"""Raised when the analysis model cannot produce a usable assessment."""

	def __init__(self, kind: AnalysisErrorKind, message: str):
		super().__init__(message)
		self.kind = kind


class AnalysisService:
	def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
		self.settings = settings or get_settings()
		self._client = client

	async def analyze(
		self,
		images: Sequence[str],
		current_pot_diameter_cm: float | None = None,
	) -> AnalysisResult:
		if not images:
			raise ValueError("at least one image is required for analysis")

		prompt = ANALYSIS_PROMPT
		if current_pot_diameter_cm:
			prompt += f" The current pot is {current_pot_diameter_cm:g} cm wide; use it as the scale reference."
		parts = [self._image_part(image) for image in images]
		parts.append({"text": prompt})

		text = await self._generate(
			parts,
			{"responseMimeType": "application/json", "responseSchema": _RESPONSE_SCHEMA},
		)
		try:
			return AnalysisResult.model_validate(json.loads(text))
		except (json.JSONDecodeError, ValidationError) as exc:
			_logger.warning("analysis_response_rejected", error=str(exc))
			raise AnalysisUnavailable(
				AnalysisErrorKind.invalid_response,
				"the model answered with an assessment that does not match the expected shape",
			) from exc

	async def quick_moisture_read(self, image: str) -> int:
		text = await self._generate([self._image_part(image), {"text": QUICK_MOISTURE_PROMPT}])
		match = re.search(r"\d+", text)
		if match is None:
			return DEFAULT_QUICK_MOISTURE
		return max(0, min(10, int(match.group())))

	async def _generate(self, parts: list[dict[str, Any]], generation_config: dict[str, Any] | None = None) -> str:
		api_key = resolve_credential(self.settings)
		if api_key is None:
			raise AnalysisUnavailable(
				AnalysisErrorKind.missing_credential,
				"no analysis API key is configured",
			)

		url = f"{self.settings.gemini_base_url.rstrip('/')}/models/{self.settings.gemini_model}:generateContent"
		headers = {
			"x-goog-api-key": api_key,
			"content-type": "application/json",
		}
		body: dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
		if generation_config:
			body["generationConfig"] = generation_config

		start = time.perf_counter()
		try:
			async with self._http() as client:
				response = await client.post(url, headers=headers, json=body)
				response.raise_for_status()
				payload = response.json()
		except (httpx.HTTPError, ValueError) as exc:
			_logger.error(
				"analysis_request_failed",
				model=self.settings.gemini_model,
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
				error=str(exc),
			)
			raise AnalysisUnavailable(AnalysisErrorKind.request_failed, f"analysis request failed: {exc}") from exc

		text = self._response_text(payload)
		if not text:
			raise AnalysisUnavailable(AnalysisErrorKind.empty_response, "the model returned no content")
		_logger.info(
			"analysis_request",
			model=self.settings.gemini_model,
			duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
		)
		return text

	@asynccontextmanager
	async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
		if self._client is not None:
			yield self._client
			return
		async with httpx.AsyncClient(timeout=self.settings.gemini_timeout_seconds) as client:
			yield client

	@staticmethod
	def _image_part(image: str) -> dict[str, Any]:
		return {"inline_data": {"mime_type": "image/jpeg", "data": data_url_payload(image)}}

	@staticmethod
	def _response_text(payload: Any) -> str:
		if not isinstance(payload, dict):
			return ""
		candidates = payload.get("candidates")
		if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
			return ""
		content = candidates[0].get("content") or {}
		parts = content.get("parts") if isinstance(content, dict) else None
		if not isinstance(parts, list):
			return ""
		return "".join(str(part.get("text") or "") for part in parts if isinstance(part, dict)).strip()
