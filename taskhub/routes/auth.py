"""
TaskHub Backend — Auth Route Handlers
=======================================

What:  POST /auth/register, /auth/login and /auth/refresh.
How:   Validate the JSON body against the declarative rule set, call
       AuthService, schedule the audit entry, answer.

Audit entries (collection "users"):
    register success → USER_REGISTER
    login success    → USER_LOGIN
    login failure    → LOGIN_FAILED (user_id set when the email matched)

A failed login is answered with a prepared 401 response instead of a raised
exception so the LOGIN_FAILED entry can ride along as the response's
background task.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.database import get_db_session
from taskhub.dependencies import RequestData, client_ip, get_audit_logger, validate_request
from taskhub.exceptions import InvalidCredentialsError
from taskhub.models.audit_log import AuditAction
from taskhub.responses import error_response
from taskhub.schemas.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from taskhub.schemas.common import ErrorResponse, json_request_body
from taskhub.services.audit_service import AuditLogger
from taskhub.services.auth_service import auth_service
from taskhub.validation import LOGIN_RULES, REFRESH_RULES, REGISTER_RULES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=RegisterResponse,
    responses={
        400: {"description": "Validation failed or user already exists", "model": ErrorResponse},
    },
    summary="Register a new user",
    openapi_extra=json_request_body(RegisterRequest),
)
async def register(
    request: Request,
    background_tasks: BackgroundTasks,
    data: RequestData = Depends(validate_request(REGISTER_RULES)),
    db: AsyncSession = Depends(get_db_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> RegisterResponse:
    """Creates a `user`-role account. Admins are provisioned in the database."""
    payload = RegisterRequest.model_validate(data.body)
    user = await auth_service.register(db, payload.name, payload.email, payload.password)

    audit.schedule(
        background_tasks,
        AuditAction.USER_REGISTER,
        "users",
        user_id=user.id,
        document_id=user.id,
        ip_address=client_ip(request),
    )
    return RegisterResponse()


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        400: {"description": "Validation failed", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Log in and receive an access/refresh token pair",
    openapi_extra=json_request_body(LoginRequest),
)
async def login(
    request: Request,
    background_tasks: BackgroundTasks,
    data: RequestData = Depends(validate_request(LOGIN_RULES)),
    db: AsyncSession = Depends(get_db_session),
    audit: AuditLogger = Depends(get_audit_logger),
):
    payload = LoginRequest.model_validate(data.body)
    ip_address = client_ip(request)

    try:
        user, tokens = await auth_service.login(db, payload.email, payload.password)
    except InvalidCredentialsError as exc:
        audit.schedule(
            background_tasks,
            AuditAction.LOGIN_FAILED,
            "users",
            user_id=exc.user_id,
            document_id=exc.user_id,
            ip_address=ip_address,
        )
        return error_response(exc.status_code, exc.message, background=background_tasks)

    audit.schedule(
        background_tasks,
        AuditAction.USER_LOGIN,
        "users",
        user_id=user.id,
        document_id=user.id,
        ip_address=ip_address,
    )
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    responses={
        400: {"description": "Validation failed", "model": ErrorResponse},
        401: {"description": "Refresh token invalid or expired", "model": ErrorResponse},
    },
    summary="Exchange a refresh token for a new token pair",
    openapi_extra=json_request_body(RefreshRequest),
)
async def refresh(
    data: RequestData = Depends(validate_request(REFRESH_RULES)),
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    payload = RefreshRequest.model_validate(data.body)
    tokens = await auth_service.refresh(db, payload.refresh_token)
    return TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)
