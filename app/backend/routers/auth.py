from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from app.backend.db.store import UserStore, get_user_store
from app.backend.schemas.auth import AuthPayload, LoginRequest, RegisterRequest
from app.backend.schemas.common import Envelope
from app.backend.services.auth_service import login_user, register_user

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post(
    "/register",
    response_model=Envelope[AuthPayload],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    request: Request,
    users: UserStore = Depends(get_user_store),
):
    data = await register_user(body, users, request.app.state.settings)
    return Envelope(message="User registered successfully", data=data)


@auth_router.post("/login", response_model=Envelope[AuthPayload])
async def login(
    body: LoginRequest,
    request: Request,
    users: UserStore = Depends(get_user_store),
):
    data = await login_user(body, users, request.app.state.settings)
    return Envelope(message="Login successful", data=data)
