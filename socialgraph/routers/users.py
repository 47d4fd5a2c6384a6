from fastapi import APIRouter

from socialgraph.dependencies import CurrentUserDep, DatabaseDep
from socialgraph.schemas import (
    AccountResponse,
    AuthResponse,
    LinkEmailRequest,
    LinkPhoneRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
)
from socialgraph.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

@router.post("/register", status_code=201, response_model=AuthResponse)
async def register(data: RegisterRequest, db: DatabaseDep):
    return await user_service.register_user(db, data)

@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: DatabaseDep):
    return await user_service.authenticate_user(db, data)

@router.post("/link/email", response_model=AccountResponse)
async def link_email(data: LinkEmailRequest, user_id: CurrentUserDep, db: DatabaseDep):
    return await user_service.link_credential(db, user_id, "email", data.email)

@router.post("/link/phone", response_model=AccountResponse)
async def link_phone(data: LinkPhoneRequest, user_id: CurrentUserDep, db: DatabaseDep):
    return await user_service.link_credential(db, user_id, "phone", data.phone)

@router.patch("", response_model=AccountResponse)
async def update_profile(data: ProfileUpdate, user_id: CurrentUserDep, db: DatabaseDep):
    return await user_service.update_profile(db, user_id, data)
