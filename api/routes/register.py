"""
User registration endpoint.

- POST /api/register - Create an account and sign the user in
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_registration_manager
from api.schemas.register import ErrorResponse, RegisterRequest, RegisterResponse
from core.errors import RegistrationError
from core.logging import get_logger
from core.signing import auth_cookie_kwargs
from manager.registration import RegistrationManager


logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    # The body is read raw; document its shape by hand.
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": RegisterRequest.model_json_schema()},
            },
        },
    },
)
async def register(
    request: Request,
    manager: RegistrationManager = Depends(get_registration_manager),
) -> JSONResponse:
    """
    Register a new user.

    On success the response carries an `auth` cookie valid for 7 days,
    signed so that other parts of the site can trust the username.
    """
    body = await request.body()

    try:
        result = await manager.register(body)
    except RegistrationError as e:
        logger.info(
            "Registration request failed",
            status_code=e.status_code,
            error=e.message,
        )
        return JSONResponse(status_code=e.status_code, content=e.to_dict())

    response = JSONResponse(content=RegisterResponse().model_dump())
    response.set_cookie(**auth_cookie_kwargs(result.cookie_value, expires=result.expires))
    return response
