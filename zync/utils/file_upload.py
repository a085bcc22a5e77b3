import os
import time
from fastapi import UploadFile
from pathlib import Path
from zync.core.config import settings

UPLOADS_DIR = Path(settings.UPLOADS_DIR)

async def upload_file(file: UploadFile, folder: str, filename_stem: str) -> str:
    """
    Save an uploaded file to local storage and return its public URL.

    The stored name is `<filename_stem>-<epoch ms><original extension>`.
    """
    folder_path = UPLOADS_DIR / folder
    folder_path.mkdir(parents=True, exist_ok=True)

    file_extension = os.path.splitext(file.filename)[1].lower() if file.filename else ""
    unique_filename = f"{filename_stem}-{int(time.time() * 1000)}{file_extension}"

    content = await file.read()
    with open(folder_path / unique_filename, "wb") as buffer:
        buffer.write(content)

    return f"/uploads/{folder}/{unique_filename}"

async def delete_file(file_url: str) -> bool:
    """
    Delete a previously uploaded file given the URL returned by upload_file.
    """
    relative = file_url.removeprefix("/uploads/")
    abs_path = UPLOADS_DIR / relative
    if not abs_path.is_file():
        return False
    os.remove(abs_path)
    return True
