from __future__ import annotations

from fastapi import APIRouter, Request, Response

from api.schemas import FrameReportResponse, FrameRequest, SessionCreateRequest, TickRequest
from api.services.sessions import SessionRegistry, apply_ticks, submit_frame, to_response

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


@router.post("", response_model=FrameReportResponse, status_code=201)
async def create_session(request: Request, payload: SessionCreateRequest | None = None) -> FrameReportResponse:
    """
    Start a new exercise session. Calibration begins with the first frame that contains a usable pose.
    """
    registry = _registry(request)
    session_id = registry.create(payload or SessionCreateRequest())
    return to_response(session_id, registry.get(session_id).session.report())


@router.get("/{session_id}", response_model=FrameReportResponse)
async def get_session(request: Request, session_id: str) -> FrameReportResponse:
    return to_response(session_id, _registry(request).get(session_id).session.report())


@router.post("/{session_id}/frames", response_model=FrameReportResponse)
async def post_frame(request: Request, session_id: str, payload: FrameRequest) -> FrameReportResponse:
    """
    Submit the poses detected in one frame and return what the display should show next.
    """
    return await submit_frame(_registry(request), session_id, payload)


@router.post("/{session_id}/ticks", response_model=FrameReportResponse)
async def post_ticks(request: Request, session_id: str, payload: TickRequest | None = None) -> FrameReportResponse:
    """
    Advance the calibration countdown explicitly, for clients that drive the clock themselves.
    """
    ticks = payload.ticks if payload is not None else 1
    return await apply_ticks(_registry(request), session_id, ticks)


@router.delete("/{session_id}", status_code=204)
async def delete_session(request: Request, session_id: str) -> Response:
    _registry(request).delete(session_id)
    return Response(status_code=204)
