# backend/utils/identity.py
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status

from config import settings
from models.cart import SESSION_ID_MAX_LENGTH
from models.users import User
from utils.tokenJWT import get_optional_user


@dataclass(frozen=True)
class CartIdentity:
    """Key under which a cart is stored: a user id or an anonymous session id."""

    user_id: Optional[int] = None
    session_id: Optional[str] = None

    def __post_init__(self):
        if (self.user_id is None) == (self.session_id is None):
            raise ValueError("CartIdentity needs exactly one of user_id or session_id")

    def __str__(self):
        return f"user:{self.user_id}" if self.user_id is not None else f"session:{self.session_id}"


def new_session_id() -> str:
    return f"session_{uuid.uuid4().hex}"


def _session_header(request: Request) -> str:
    session_id = (request.headers.get(settings.SESSION_HEADER) or "").strip()
    if len(session_id) > SESSION_ID_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{settings.SESSION_HEADER} must be at most {SESSION_ID_MAX_LENGTH} characters",
        )
    return session_id


# Resolve the cart identity for the current request.
# A valid bearer token wins; otherwise the session header is authoritative.
# With neither, a new anonymous session is started and echoed back.
def get_cart_identity(
    request: Request,
    response: Response,
    current_user: Optional[User] = Depends(get_optional_user),
) -> CartIdentity:
    if current_user is not None:
        return CartIdentity(user_id=current_user.id)

    session_id = _session_header(request)
    if not session_id:
        session_id = new_session_id()
    response.headers[settings.SESSION_HEADER] = session_id
    return CartIdentity(session_id=session_id)


# Merging needs both halves: the authenticated user and the session being absorbed
def get_merge_identities(
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    session_id = _session_header(request)
    if not session_id:
        raise HTTPException(status_code=400, detail=f"Missing {settings.SESSION_HEADER} header")
    return current_user.id, session_id
