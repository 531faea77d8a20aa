"""
UtilityHub API — Game & Generator Routes
==========================================

What:  POST /api/hangman-ai, /api/word-scramble-ai, /api/riddle-joke,
       /api/name-combiner-ai, /api/typing-test-text.
How:   Same shape as routes/writing.py: credential dependency, JSON body model,
       one service call, {"success": true, ...fields}.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from utilityhub.dependencies import get_game_service
from utilityhub.routes.writing import ERROR_RESPONSES
from utilityhub.schemas.requests import (
    CategoryRequest,
    HangmanRequest,
    NameCombinerRequest,
    RiddleJokeRequest,
    TypingTestRequest,
)
from utilityhub.services.games_service import GameContentService

router = APIRouter(prefix="/api", tags=["Games & Generators"])


@router.post(
    "/hangman-ai",
    responses=ERROR_RESPONSES,
    summary="Generate a hangman word and hint",
)
async def hangman_word(
    payload: HangmanRequest,
    service: GameContentService = Depends(get_game_service),
) -> JSONResponse:
    data = await service.hangman_word(payload.category, payload.length_constraint)
    return JSONResponse({"success": True, **data})


@router.post(
    "/word-scramble-ai",
    responses=ERROR_RESPONSES,
    summary="Generate a 6-10 letter word and hint for word scramble",
)
async def scramble_word(
    payload: CategoryRequest,
    service: GameContentService = Depends(get_game_service),
) -> JSONResponse:
    data = await service.scramble_word(payload.category)
    return JSONResponse({"success": True, **data})


@router.post(
    "/riddle-joke",
    responses=ERROR_RESPONSES,
    summary="Generate a riddle or a joke",
    description="`type` is usually `riddle` or `joke`; both `type` and `category` are required.",
)
async def riddle_or_joke(
    payload: RiddleJokeRequest,
    service: GameContentService = Depends(get_game_service),
) -> JSONResponse:
    data = await service.riddle_or_joke(payload.kind, payload.category)
    return JSONResponse({"success": True, **data})


@router.post(
    "/name-combiner-ai",
    responses=ERROR_RESPONSES,
    summary="Combine two words into ten name ideas",
)
async def combine_names(
    payload: NameCombinerRequest,
    service: GameContentService = Depends(get_game_service),
) -> JSONResponse:
    data = await service.combine_names(payload.name1, payload.name2, payload.context)
    return JSONResponse({"success": True, **data})


@router.post(
    "/typing-test-text",
    responses=ERROR_RESPONSES,
    summary="Generate a passage for a typing speed test",
)
async def typing_text(
    payload: TypingTestRequest,
    service: GameContentService = Depends(get_game_service),
) -> JSONResponse:
    data = await service.typing_text(payload.category, payload.duration)
    return JSONResponse({"success": True, **data})
