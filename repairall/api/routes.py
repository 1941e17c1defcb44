from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response

from repairall.api.types import GenerateGuideResponse, SessionResponse, StatusResponse, Technician
from repairall.core.config import Settings
from repairall.core.errors import FileTooLarge, FormatError, GuideError, TransportError, ValidationError
from repairall.core.logging import get_logger, safe_snippet
from repairall.guide.orchestrator import GuideOrchestrator
from repairall.images.stock import svg_placeholder
from repairall.llm.schemas import DamageReport


"""
FastAPI routes for the repair guide service.
What it provides:
- Capability status endpoint
- Generate guide endpoint (multipart description + photo)
- Current session state and reset
- Stock photo proxy (/fetch-image), always answering with an image

And, the main purpose:
Expose guide generation over HTTP and map errors to status codes.
"""

log = get_logger("api.routes")

router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_technician(
    request: Request,
    x_user_email: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
) -> Technician:
    if not get_settings(request).auth_configured:
        raise HTTPException(503, "Identity provider is not configured (AUTH0_DOMAIN / AUTH0_CLIENT_ID)")
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(401, "Sign in to generate a repair guide")
    return Technician(email=x_user_email.strip(), name=(x_user_name or "").strip() or None)


def get_session(request: Request, tech: Technician = Depends(require_technician)) -> GuideOrchestrator:
    return request.app.state.sessions.get(tech.email)


def _http_error(e: GuideError) -> HTTPException:
    if isinstance(e, FileTooLarge):
        return HTTPException(413, str(e))
    if isinstance(e, ValidationError):
        return HTTPException(400, str(e))
    if isinstance(e, FormatError):
        return HTTPException(
            502,
            {"error": str(e), "violation": e.violation, "raw": safe_snippet(e.raw_text, 2000)},
        )
    if isinstance(e, TransportError):
        return HTTPException(502, {"error": str(e), "status_code": e.status_code})
    return HTTPException(500, str(e))


@router.get("/v1/status", response_model=StatusResponse)
async def api_status(request: Request):
    s = get_settings(request)
    guidance = "Ready" if s.model_ready else "Gemini key missing. Falling back to local sample guide."
    return StatusResponse(
        model_ready=s.model_ready,
        image_search_ready=s.image_search_ready,
        generative_images=s.model_ready and s.ENABLE_GENERATIVE_IMAGES,
        auth_configured=s.auth_configured,
        guidance=guidance,
    )


@router.post("/v1/guides", response_model=GenerateGuideResponse, response_model_exclude_none=True)
async def api_generate_guide(
    description: str = Form(...),
    photo: Optional[UploadFile] = File(None),
    tech: Technician = Depends(require_technician),
    session: GuideOrchestrator = Depends(get_session),
):
    if session.is_generating:
        raise HTTPException(409, "A guide is already being generated for this session")

    data = await photo.read() if photo is not None else None
    report = DamageReport(
        description=description,
        photo=data or None,
        photo_mime=(photo.content_type if photo is not None else None) or "image/jpeg",
    )

    progress: list[str] = []
    # generate() checks is_generating before its first await
    busy = session.is_generating
    try:
        guide = await session.generate(report, on_progress=progress.append)
    except GuideError as e:
        raise _http_error(e)

    if guide is None:
        if busy:
            raise HTTPException(409, "A guide is already being generated for this session")
        raise HTTPException(409, "Generation was reset before it finished")

    log.info(f"Guide {guide.title!r} ready for {tech.display_name}")
    return GenerateGuideResponse(
        technician=tech.display_name,
        state=session.state.value,
        progress=progress,
        guide=guide,
    )


@router.get("/v1/guides/current", response_model=SessionResponse, response_model_exclude_none=True)
async def api_current_guide(session: GuideOrchestrator = Depends(get_session)):
    return SessionResponse(**session.snapshot())


@router.post("/v1/guides/reset", response_model=SessionResponse, response_model_exclude_none=True)
async def api_reset(session: GuideOrchestrator = Depends(get_session)):
    session.reset()
    return SessionResponse(**session.snapshot())


def _lenient_index(raw: Optional[str]) -> int:
    try:
        value = int((raw or "0").strip())
    except ValueError:
        return 0
    return value if value >= 0 else 0


@router.get("/fetch-image")
async def api_fetch_image(
    request: Request,
    q: str = Query("repair,tools,electronics"),
    index: str = Query("0"),
):
    index = _lenient_index(index)
    log.info(f"[fetch-image] step {index}: {q}")
    try:
        body, content_type = await request.app.state.stock.fetch(q, index)
        return Response(
            content=body,
            media_type=content_type,
            headers={"Cache-Control": "public, max-age=86400"},
        )
    except Exception as e:
        # upstream failures never surface as HTTP errors here
        log.warning(f"[fetch-image] placeholder for step {index}: {type(e).__name__}: {e}")
        return Response(
            content=svg_placeholder(index),
            media_type="image/svg+xml",
            headers={"Cache-Control": "public, max-age=3600"},
        )
