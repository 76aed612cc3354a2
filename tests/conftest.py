"""Shared pytest fixtures: in-memory plant store, analysis stub, async test client."""

from __future__ import annotations

import io
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from botanica.dependencies import get_analysis_service, get_analysis_sessions, get_store
from botanica.main import app
from botanica.models.plant import AnalysisResult, PlantRecord
from botanica.services.analysis_sessions import AnalysisSessionRegistry
from botanica.services.plant_store import PlantStore
from botanica.services.storage import MemoryStorage


def analysis_payload(**overrides: Any) -> dict[str, Any]:
	"""An assessment as the analysis model returns it (stored key names)."""
	payload: dict[str, Any] = {
		"identificacion": {"cientifico": "Monstera deliciosa", "comun": "Costilla de Adán"},
		"salud": {
			"estado": "óptimo",
			"observaciones": "Hojas firmes y brillantes",
			"hidrometria": 6,
			"analisis_foliar": "Sin manchas",
			"riesgo_plagas": "bajo",
			"vigor_index": 85,
			"estado_raices": 80,
		},
		"medidas_sugeridas": {
			"altura_cm": 60,
			"maceta_diametro_cm": 20,
			"maceta_altura_cm": 18,
			"altura_max_especie_cm": 300,
		},
		"estudio_trasplante": {
			"necesidad": "preparar",
			"maceta_objetivo_cm": 24,
			"proxima_fecha_estimada": "Primavera 2025",
			"riesgo_trauma": "bajo",
			"analisis_relacion": "Raíces próximas al borde",
		},
		"cuidados": {
			"agua_ml": 400,
			"frecuencia_dias": 7,
			"luz_optima": "Luz indirecta brillante",
			"forma_riego": "Riego profundo",
			"cantidad_agua_info": "Hasta drenar",
			"recomendacion_aspersion": "Pulverizar dos veces por semana",
			"periodicidad_estacional": {
				"primavera": "Cada 7 días",
				"verano": "Cada 5 días",
				"otono": "Cada 10 días",
				"invierno": "Cada 14 días",
			},
		},
		"ficha_botanica": {
			"origen_geografico": "Selvas de México",
			"tipo_hojas": "Perennes, fenestradas",
			"tipo_raices": "Aéreas",
			"particularidades": "Hojas perforadas",
			"curiosidades": "Su fruto es comestible",
			"longevidad_estimada": "Décadas",
			"explicacion_botanica_extensa": "Trepadora hemiepífita de la familia Araceae.",
		},
	}
	payload.update(overrides)
	return payload


def make_record(plant_id: str = "plant-1", **overrides: Any) -> PlantRecord:
	analysis = AnalysisResult.model_validate(analysis_payload())
	fields: dict[str, Any] = {
		"id": plant_id,
		"location": "Salón",
		"identification": analysis.identification,
		"health": analysis.health,
		"suggested_measures": analysis.suggested_measures,
		"transplant_study": analysis.transplant_study,
		"care": analysis.care,
		"botanical_profile": analysis.botanical_profile,
		"created_at": datetime(2024, 1, 1, 9, 0, tzinfo=UTC),
	}
	fields.update(overrides)
	return PlantRecord(**fields)


def png_bytes(size: tuple[int, int] = (64, 32), color: str = "green", fmt: str = "PNG") -> bytes:
	buffer = io.BytesIO()
	Image.new("RGB", size, color).save(buffer, format=fmt)
	return buffer.getvalue()


class FakeAnalyzer:
	"""Stand-in for the analysis client; records what it was asked."""

	def __init__(self, moisture: int = 7) -> None:
		self.moisture = moisture
		self.analyze_calls: list[tuple[list[str], float | None]] = []
		self.moisture_calls: list[str] = []

	async def analyze(self, images: list[str], current_pot_diameter_cm: float | None = None) -> AnalysisResult:
		self.analyze_calls.append((list(images), current_pot_diameter_cm))
		return AnalysisResult.model_validate(analysis_payload())

	async def quick_moisture_read(self, image: str) -> int:
		self.moisture_calls.append(image)
		return self.moisture


class FakeRedis:
	"""Minimal async Redis double covering the calls the storage backend makes."""

	def __init__(self, set_error: Exception | None = None, ping_error: Exception | None = None) -> None:
		self.values: dict[str, str] = {}
		self.set_error = set_error
		self.ping_error = ping_error
		self.closed = False

	async def get(self, key: str) -> str | None:
		return self.values.get(key)

	async def set(self, key: str, value: str) -> bool:
		if self.set_error is not None:
			raise self.set_error
		self.values[key] = value
		return True

	async def delete(self, key: str) -> int:
		return 1 if self.values.pop(key, None) is not None else 0

	async def ping(self) -> bool:
		if self.ping_error is not None:
			raise self.ping_error
		return True

	async def aclose(self) -> None:
		self.closed = True


@pytest.fixture
def memory_storage() -> MemoryStorage:
	return MemoryStorage()


@pytest.fixture
def store(memory_storage: MemoryStorage) -> PlantStore:
	return PlantStore(memory_storage, "test_plants")


@pytest.fixture
def record_factory() -> Callable[..., PlantRecord]:
	return make_record


@pytest.fixture
def fake_analyzer() -> FakeAnalyzer:
	return FakeAnalyzer()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def analysis_sessions() -> AnalysisSessionRegistry:
	return AnalysisSessionRegistry()


@pytest.fixture
async def client(
	store: PlantStore,
	fake_analyzer: FakeAnalyzer,
	analysis_sessions: AnalysisSessionRegistry,
) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and the store kept in memory."""

	app.dependency_overrides[get_store] = lambda: store
	app.dependency_overrides[get_analysis_service] = lambda: fake_analyzer
	app.dependency_overrides[get_analysis_sessions] = lambda: analysis_sessions
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
	await analysis_sessions.aclose()


@pytest.fixture
def now_utc() -> datetime:
	return datetime.now(UTC)


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
	return png_bytes


@pytest.fixture
def analysis_factory() -> Callable[..., dict[str, Any]]:
	return analysis_payload
