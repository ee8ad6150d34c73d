"""GET /test: forward a request to a caller-chosen URL with caller-supplied credentials."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ConfigDict

from specshift.exceptions import RelayError
from specshift.relay import HttpRelay

from ..dependencies import get_relay

router = APIRouter(tags=["Relay"])


class RelayRequest(BaseModel):
    """Body of ``GET /test``; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None
    apikey: Optional[str] = None
    Authorization: Optional[str] = None


@router.get("/test")
async def relay_request(
    payload: Optional[RelayRequest] = Body(default=None),
    relay: HttpRelay = Depends(get_relay),
) -> Any:
    """Return the relayed response body.

    Any failure (missing URL, network error, upstream 4xx/5xx) becomes a
    generic ``500 {"error": "Internal Server Error"}``; the cause is logged
    by :class:`~specshift.relay.HttpRelay`.
    """
    if payload is None or not payload.url:
        raise RelayError("Internal Server Error")
    try:
        return await relay.forward(
            payload.url,
            {"apikey": payload.apikey, "Authorization": payload.Authorization},
        )
    except RelayError as exc:
        raise RelayError("Internal Server Error") from exc
