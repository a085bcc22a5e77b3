from fastapi import APIRouter, Depends, File, UploadFile
from typing import Any
from zync.core.auth import get_current_user
from zync.schemas.user import UserUpdate, UserResponse, AvatarResponse
from zync.services.user_service import update_user, to_user_response
from zync.services.profile_service import upload_avatar

router = APIRouter()

@router.put("", response_model=UserResponse)
async def update_profile(
    user_update: UserUpdate,
    current_user: dict = Depends(get_current_user)
) -> Any:
    """
    Update the caller's name and bio
    """
    user = await update_user(str(current_user["_id"]), user_update)
    return to_user_response(user)

@router.post("/avatar", response_model=AvatarResponse)
async def upload_profile_avatar(
    avatar: UploadFile = File(...),
    current_user: dict = Depends(get_current_user)
) -> Any:
    """
    Upload a profile image (jpeg, png or gif) for the caller
    """
    result = await upload_avatar(str(current_user["_id"]), avatar)
    return {"avatar_url": result["avatar_url"], "user": to_user_response(result["user"])}
