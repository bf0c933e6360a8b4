import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Request
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from vandra.api.errors import ApiError
from vandra.config import get_settings
from vandra.database import get_db
from vandra.models.user import User

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260_000
MIN_PASSWORD_LENGTH = 8


def hash_password(password: str, salt: Optional[str] = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Salted PBKDF2-SHA256, stored as "pbkdf2_sha256$iterations$salt$hexdigest"."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        algorithm, iterations, salt, expected = password_hash.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    try:
        rounds = int(iterations)
    except ValueError:
        return False
    if rounds < 1:
        return False
    candidate = hash_password(password, salt, rounds).rsplit("$", 1)[1]
    return hmac.compare_digest(candidate, expected)


def create_access_token(user: User, now: Optional[datetime] = None) -> str:
    settings = get_settings()
    now = now or datetime.utcnow()
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(days=settings.session_max_age_days),
    }
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_alg)


def decode_bearer_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.auth_jwt_secret, algorithms=[settings.auth_jwt_alg])
    except JWTError:
        raise ApiError("UNAUTHORIZED", "Invalid token", 401)


def register_user(db: Session, email: str, password: str, name: Optional[str] = None) -> User:
    email = email.strip().lower()
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ApiError(
            "VALIDATION_ERROR",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            400,
        )
    if db.query(User).filter(User.email == email).first():
        raise ApiError("USER_EXISTS", "A user with this email already exists", 409)

    user = User(email=email, name=name, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


async def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise ApiError("UNAUTHORIZED", "Missing Bearer token", 401)
    payload = decode_bearer_token(auth.split(" ", 1)[1].strip())

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise ApiError("UNAUTHORIZED", "Token missing subject", 401)

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise ApiError("UNAUTHORIZED", "Unknown user", 401)
    return user
