from fastapi import APIRouter, Depends

from app.backend.core.errors import NotFound
from app.backend.db.store import UserStore, get_user_store
from app.backend.dependencies.auth import Identity, get_current_user
from app.backend.schemas.auth import UserOut
from app.backend.schemas.common import Envelope

user_router = APIRouter(prefix="/api", tags=["users"])


@user_router.get("/profile", response_model=Envelope[UserOut])
async def get_profile(
    identity: Identity = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    user = users.get(identity.user_id)
    if user is None:
        raise NotFound("User not found")
    return Envelope(data=UserOut.from_user(user))
