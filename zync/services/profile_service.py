import re
from typing import Dict, Any
from fastapi import UploadFile
from zync.core.config import settings
from zync.core.exceptions import BadRequestError
from zync.services.user_service import get_user_by_id, set_avatar_url
from zync.utils.file_upload import upload_file, delete_file
import logging

logger = logging.getLogger(__name__)

AVATAR_CONTENT_TYPE = re.compile(r"^image/(jpeg|jpg|png|gif)$")
AVATAR_FOLDER = "avatars"

async def upload_avatar(user_id: str, file: UploadFile) -> Dict[str, Any]:
    """
    Validate and store a new avatar image for the user, replacing the
    previous one. Returns the new URL and the updated user.
    """
    if file is None or not file.filename:
        raise BadRequestError("No file uploaded")

    if not AVATAR_CONTENT_TYPE.match(file.content_type or ""):
        raise BadRequestError("Only image files are allowed")

    contents = await file.read()
    if len(contents) > settings.AVATAR_MAX_BYTES:
        raise BadRequestError(
            f"File too large, the limit is {settings.AVATAR_MAX_BYTES} bytes"
        )
    await file.seek(0)

    previous = await get_user_by_id(user_id)
    avatar_url = await upload_file(file, folder=AVATAR_FOLDER, filename_stem=user_id)
    user = await set_avatar_url(user_id, avatar_url)

    previous_url = (previous or {}).get("avatar_url")
    if previous_url and previous_url.startswith(f"/uploads/{AVATAR_FOLDER}/"):
        if not await delete_file(previous_url):
            logger.warning(f"Previous avatar {previous_url} was already gone")

    return {"avatar_url": avatar_url, "user": user}
