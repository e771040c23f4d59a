"""
Liveness probes and checkout redirect pages.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])

SUCCESS_PAGE = "Payment successful! Your purchase will be activated in game shortly."
CANCEL_PAGE = "Payment cancelled. No charge was made."


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "OK"


@router.get("/health", response_class=PlainTextResponse)
async def health() -> str:
    return "OK"


@router.get("/ping", response_class=PlainTextResponse)
async def ping() -> str:
    return "pong"


@router.get("/success", response_class=PlainTextResponse)
async def checkout_success() -> str:
    """Stripe success_url target."""
    return SUCCESS_PAGE


@router.get("/cancel", response_class=PlainTextResponse)
async def checkout_cancel() -> str:
    """Stripe cancel_url target."""
    return CANCEL_PAGE
