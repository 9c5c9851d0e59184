from typing import Any, Optional

from bson import ObjectId
from fastapi import Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from campusvote.security import Identity, decode_access_token, require_role
from campusvote.services import Services

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def current_identity(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Identity:
    return decode_access_token(credentials.credentials if credentials else None)


def require_admin(identity: Identity = Depends(current_identity)) -> Identity:
    return require_role(identity, "admin")


def require_voter(identity: Identity = Depends(current_identity)) -> Identity:
    return require_role(identity, "voter")


def to_json(data: Any) -> Any:
    return jsonable_encoder(data, custom_encoder={ObjectId: str})


def public_user(user: dict) -> dict:
    return {k: v for k, v in user.items() if k not in ("password", "hashed_password")}
