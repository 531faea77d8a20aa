"""
UtilityHub API — Writing Tool Routes
======================================

What:  POST /api/grammar, /api/humanizer, /api/paraphrase, /api/plagiarism.
Why:   Browser entry points for the writing tools; the Gemini key never leaves
       the server.
How:   Thin handlers: FastAPI resolves the credential (get_writing_service) and
       parses the JSON body, the service does the rest, and the result is
       returned as {"success": true, ...fields}.

Request Flow:
    1. CORS gate has already answered any OPTIONS preflight
    2. get_gemini_service: missing GEMINI_API_KEY → 500, no outbound call
    3. Body parsed into the request model (not a JSON object → 400)
    4. Service validates required fields (→ 400 with the tool's message)
    5. One logical Gemini call, retried on 503
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from utilityhub.dependencies import get_writing_service
from utilityhub.schemas.common import ErrorResponse
from utilityhub.schemas.requests import ParaphraseRequest, TextRequest
from utilityhub.services.writing_service import WritingToolsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Writing Tools"])

ERROR_RESPONSES = {
    400: {"description": "Missing or invalid input", "model": ErrorResponse},
    405: {"description": "Method not allowed", "model": ErrorResponse},
    500: {"description": "Configuration or upstream failure", "model": ErrorResponse},
}


@router.post(
    "/grammar",
    responses=ERROR_RESPONSES,
    summary="Check spelling, grammar and style",
    description=(
        "Returns the text's tone and clarity score plus a list of corrections with "
        "character offsets into the original text."
    ),
)
async def check_grammar(
    payload: TextRequest,
    service: WritingToolsService = Depends(get_writing_service),
) -> JSONResponse:
    data = await service.check_grammar(payload.text)
    return JSONResponse({"success": True, **data})


@router.post(
    "/humanizer",
    responses=ERROR_RESPONSES,
    summary="Rewrite AI-generated text to sound human",
)
async def humanize(
    payload: TextRequest,
    service: WritingToolsService = Depends(get_writing_service),
) -> JSONResponse:
    data = await service.humanize(payload.text)
    return JSONResponse({"success": True, **data})


@router.post(
    "/paraphrase",
    responses=ERROR_RESPONSES,
    summary="Paraphrase text in a given mode",
    description="Both `text` and `mode` are required. The result is plain text.",
)
async def paraphrase(
    payload: ParaphraseRequest,
    service: WritingToolsService = Depends(get_writing_service),
) -> JSONResponse:
    data = await service.paraphrase(payload.text, payload.mode)
    return JSONResponse({"success": True, **data})


@router.post(
    "/plagiarism",
    responses=ERROR_RESPONSES,
    summary="Estimate how much of the text appears on the web",
    description=(
        "Uses search grounding to find matching sources. Text that closely recites "
        "a web source may be blocked by the model; that case gets a dedicated message."
    ),
)
async def check_plagiarism(
    payload: TextRequest,
    service: WritingToolsService = Depends(get_writing_service),
) -> JSONResponse:
    data = await service.check_plagiarism(payload.text)
    return JSONResponse({"success": True, **data})
