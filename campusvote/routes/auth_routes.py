from fastapi import APIRouter, Depends

from campusvote.routes.deps import get_services, public_user, to_json
from campusvote.schemas import LoginRequest, TokenOut
from campusvote.security import create_access_token
from campusvote.services import Services

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=TokenOut)
def login(body: LoginRequest, services: Services = Depends(get_services)):
    identity, user = services.accounts.login(body.email, body.password, body.role)
    return TokenOut(
        access_token=create_access_token(identity),
        role=identity.role,
        user=to_json(public_user(user)),
    )
