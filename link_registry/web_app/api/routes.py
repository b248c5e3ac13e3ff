"""API routes implementation."""

from datetime import datetime, timezone
from urllib.parse import quote

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from .schemas import RegisterRequest, Payload, HealthResponse
from ...lib.database.models import Direction
from ...lib.exceptions import ConstraintViolationError, RegistryError
from ...lib.common.validators import is_valid_url, is_valid_id
from ...lib.common.logging_config import get_logger

router = APIRouter()
logger = get_logger("api")

# Reserved URI characters and existing escapes pass through unchanged
LOCATION_SAFE = ":/?#[]@!$&'()*+,;=%"


def payload_response(status_code: int, **fields) -> JSONResponse:
    """Build a JSON payload response."""
    return JSONResponse(status_code=status_code, content=Payload(**fields).model_dump())


def location_header(target: str) -> dict:
    """Location header with non-ASCII characters percent-encoded."""
    return {"Location": quote(target, safe=LOCATION_SAFE)}


@router.get(
    "/urls/{link_id}",
    status_code=status.HTTP_308_PERMANENT_REDIRECT,
    responses={
        404: {"model": Payload, "description": "Id not found or expired"},
        500: {"description": "Internal server error"},
    },
    summary="Resolve a link",
    description="Redirect to the URL registered under the id.",
)
async def resolve_url(request: Request, link_id: str):
    """Redirect to the original URL of a live id."""
    registry = request.app.state.registry

    try:
        _, url = await registry.find(Direction.ID_TO_URL, link_id)
    except RegistryError as e:
        logger.error(f"Error while retrieving data for id {link_id}: {e}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if url:
        return Response(
            status_code=status.HTTP_308_PERMANENT_REDIRECT,
            headers=location_header(url),
        )

    return payload_response(
        status.HTTP_404_NOT_FOUND,
        id=link_id,
        error=f"ID {link_id} does not exists",
    )


@router.post(
    "/urls",
    status_code=status.HTTP_201_CREATED,
    response_model=Payload,
    responses={
        400: {"model": Payload, "description": "Invalid url or id"},
        409: {"model": Payload, "description": "Id or url already registered"},
        500: {"description": "Internal server error"},
    },
    summary="Register a link",
    description="Register a URL under a 6 character id, derived from the URL when omitted.",
)
async def register_url(request: Request, body: RegisterRequest):
    """Register a URL."""
    registry = request.app.state.registry
    generator = request.app.state.generator
    config = request.app.state.config

    valid, _ = is_valid_url(body.url)
    if not valid:
        return payload_response(
            status.HTTP_400_BAD_REQUEST,
            id=body.id,
            error=f"Invalid url: {body.url}",
        )

    valid, error = is_valid_id(body.id, length=config.id_length)
    if not valid:
        return payload_response(status.HTTP_400_BAD_REQUEST, id=body.id, url=body.url, error=error)

    link_id = body.id or generator.generate_from_url(body.url, length=config.id_length)

    try:
        existing_id, _ = await registry.find(Direction.URL_TO_ID, body.url)
        if existing_id:
            return payload_response(
                status.HTTP_409_CONFLICT,
                id=existing_id,
                url=body.url,
                error=f"Url {body.url} already registered under id {existing_id}",
            )

        _, existing_url = await registry.find(Direction.ID_TO_URL, link_id)
        if existing_url:
            return payload_response(
                status.HTTP_409_CONFLICT,
                id=link_id,
                url=existing_url,
                error=f"ID {link_id} already registered for url {existing_url}",
            )

        entry = await registry.register(link_id, body.url)
    except ConstraintViolationError as e:
        return payload_response(status.HTTP_409_CONFLICT, id=link_id, url=body.url, error=str(e))
    except RegistryError as e:
        logger.error(f"Error while registering id {link_id} for url {body.url}: {e}")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=Payload(id=entry.id, url=entry.url).model_dump(),
        headers=location_header(f"/{entry.id}"),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    registry = request.app.state.registry

    healthy = await registry.health_check()

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        database="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
