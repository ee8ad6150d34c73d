"""Conversion endpoints: flatten an OpenAPI document, or synthesize one from examples."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from specshift.models import ServiceConfig
from specshift.service import convert_document, synthesize_payload

from ..dependencies import get_config

router = APIRouter(prefix="/convert", tags=["Convert"])


@router.post("")
async def convert(
    document: Any = Body(default=None),
    config: ServiceConfig = Depends(get_config),
) -> dict[str, Any]:
    """
    Validate an OpenAPI 3.0 document and return its flattened form.

    Response shape: ``{"ans": {path: {METHOD: summary}}}``.
    """
    return await convert_document(document, resolver=config.resolver)


@router.post("/openapi")
async def convert_openapi(
    payload: Any = Body(default=None),
    config: ServiceConfig = Depends(get_config),
) -> dict[str, Any]:
    """
    Synthesize an OpenAPI document from ``{"input", "output", "parameters"}``.

    Response shape: ``{"openapiSchema": document}``.
    """
    return synthesize_payload(payload, synthesis=config.synthesis)
