"""Photo analysis routes: capture batch in, botanical assessment out."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from botanica.dependencies import get_analysis_sessions, get_plant_service
from botanica.schemas.plants import AnalysisPreview
from botanica.services.analysis_service import AnalysisErrorKind, AnalysisUnavailable
from botanica.services.analysis_sessions import AnalysisCancelled, AnalysisSessionRegistry
from botanica.services.plant_service import PlantService

router = APIRouter(prefix="/analysis", tags=["analysis"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, AnalysisUnavailable):
		code = (
			status.HTTP_503_SERVICE_UNAVAILABLE
			if exc.kind == AnalysisErrorKind.missing_credential
			else status.HTTP_502_BAD_GATEWAY
		)
		return HTTPException(status_code=code, detail={"error": exc.kind.value, "message": str(exc)})
	if isinstance(exc, AnalysisCancelled):
		return HTTPException(
			status_code=status.HTTP_409_CONFLICT,
			detail={"error": "analysis_cancelled", "message": str(exc)},
		)
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="analysis failure")


@router.post("", response_model=AnalysisPreview, response_model_by_alias=False)
async def analyze_capture(
	images: list[UploadFile] = File(...),
	current_pot_diameter_cm: float | None = Form(default=None, gt=0),
	session_id: str | None = Form(default=None, min_length=1, max_length=100),
	service: PlantService = Depends(get_plant_service),
	sessions: AnalysisSessionRegistry = Depends(get_analysis_sessions),
) -> AnalysisPreview:
	session = session_id or uuid.uuid4().hex
	raw_images = [await upload.read() for upload in images]
	try:
		encoded, result = await sessions.run(
			session,
			service.analyze_capture(raw_images, current_pot_diameter_cm),
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return AnalysisPreview(session_id=session, images=encoded, analysis=result)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_analysis(
	session_id: str,
	sessions: AnalysisSessionRegistry = Depends(get_analysis_sessions),
) -> None:
	if not sessions.cancel(session_id):
		raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No analysis running for {session_id}")
