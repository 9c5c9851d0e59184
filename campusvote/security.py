from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from campusvote.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from campusvote.errors import Unauthorized

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

Role = Literal["admin", "voter"]


class Identity(BaseModel):
    id: str
    role: Role


# Hash a password
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


# Verify a plain password against a hash
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# Create JWT access token
def create_access_token(identity: Identity, expires_delta: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_delta)
    to_encode = {"sub": identity.id, "role": identity.role, "exp": expire}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: Optional[str]) -> Identity:
    if not token:
        raise Unauthorized()
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")
    if payload.get("role") not in ("admin", "voter") or not payload.get("sub"):
        raise Unauthorized("Invalid token")
    return Identity(id=payload["sub"], role=payload["role"])


def require_role(identity: Identity, role: Role) -> Identity:
    if identity.role != role:
        raise Unauthorized()
    return identity
