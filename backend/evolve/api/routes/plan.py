"""Plan generation endpoint."""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from evolve.api.deps import get_plan_generator
from evolve.api.schemas.plan import ErrorResponse, Plan
from evolve.services.plan_generator import PlanGenerationError, PlanGenerator
from evolve.services.profile_normalizer import normalize

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/generate-plan",
    response_model=Plan,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    tags=["plan"],
)
async def generate_plan(
    request: Request,
    generator: PlanGenerator = Depends(get_plan_generator),
):
    body = await request.body()
    try:
        payload = json.loads(body) if body.strip() else {}
    except ValueError as exc:
        logger.info("Rejected plan request with malformed JSON body")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error="Request body must be valid JSON", detail=str(exc)).model_dump(exclude_none=True),
        )

    profile = normalize(payload)
    try:
        return await run_in_threadpool(generator.generate, profile)
    except PlanGenerationError as exc:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=ErrorResponse(
                error="Model did not return a usable plan",
                detail=exc.meta.error,
                reason=exc.meta.reason,
                raw=exc.meta.raw,
            ).model_dump(exclude_none=True),
        )
