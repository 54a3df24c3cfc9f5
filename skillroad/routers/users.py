"""
Users router.

Endpoint: GET /api/auth/user, the signed-in user
"""

from fastapi import APIRouter, Depends

from skillroad.auth import get_current_user
from skillroad.models import User
from skillroad.schemas import UserOut

router = APIRouter()


@router.get("/auth/user", response_model=UserOut)
def current_user(user: User = Depends(get_current_user)):
    return user
