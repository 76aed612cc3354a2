"""FastAPI dependencies resolving the shared store and services from app state."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from botanica.config import get_settings
from botanica.services.analysis_service import AnalysisService
from botanica.services.analysis_sessions import AnalysisSessionRegistry
from botanica.services.plant_service import PlantService
from botanica.services.plant_store import PlantStore


def get_store(request: Request) -> PlantStore:
	store = getattr(request.app.state, "store", None)
	if store is None:
		raise HTTPException(
			status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
			detail="plant store is not initialized",
		)
	return store


def get_analysis_service(request: Request) -> AnalysisService:
	analyzer = getattr(request.app.state, "analyzer", None)
	if analyzer is None:
		analyzer = AnalysisService(get_settings())
	return analyzer


def get_analysis_sessions(request: Request) -> AnalysisSessionRegistry:
	sessions = getattr(request.app.state, "analysis_sessions", None)
	if sessions is None:
		sessions = AnalysisSessionRegistry()
		request.app.state.analysis_sessions = sessions
	return sessions


def get_plant_service(
	store: PlantStore = Depends(get_store),
	analyzer: AnalysisService = Depends(get_analysis_service),
) -> PlantService:
	return PlantService(store, analyzer, get_settings())
