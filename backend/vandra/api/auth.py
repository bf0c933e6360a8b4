from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vandra.api.errors import ApiError
from vandra.database import get_db
from vandra.models import User
from vandra.schemas import UserRegister, UserLogin, UserResponse, TokenResponse
from vandra.services.auth import (
    authenticate_user,
    create_access_token,
    get_current_user,
    register_user,
)

router = APIRouter()


@router.post("/register", status_code=201)
async def register(payload: UserRegister, db: Session = Depends(get_db)):
    user = register_user(db, payload.email, payload.password, payload.name)
    return {"data": UserResponse.model_validate(user).model_dump(mode="json")}


@router.post("/login", response_model=TokenResponse)
async def login(payload: UserLogin, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.email, payload.password)
    if not user:
        raise ApiError("UNAUTHORIZED", "Invalid email or password", 401)
    return TokenResponse(access_token=create_access_token(user))


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return user
