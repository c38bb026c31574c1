import os
import uuid
from datetime import datetime, timezone
from fastapi import UploadFile
from app.config import settings
from app.utils.errors import ValidationFailed

_IMAGE_EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png"}


def to_naive_utc(value: datetime | None) -> datetime | None:
    """DB 에는 UTC 기준 naive datetime 으로 저장합니다. 오프셋이 있으면 UTC 로 바꾼 뒤 tzinfo 를 뗍니다."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def validate_image(file: UploadFile) -> str:
    content_type = str(file.content_type or "").lower()
    if content_type not in settings.ALLOWED_IMAGE_MIME_TYPES:
        raise ValidationFailed(
            f"허용되지 않는 파일 형식입니다. 허용 형식: {', '.join(settings.ALLOWED_IMAGE_MIME_TYPES)}"
        )
    return _IMAGE_EXTENSIONS.get(content_type, "bin")


async def save_image(file: UploadFile, subfolder: str = "") -> dict:
    ext = validate_image(file)
    content = await file.read()
    if not content:
        raise ValidationFailed("빈 파일은 업로드할 수 없습니다.")
    if len(content) > settings.MAX_IMAGE_UPLOAD_SIZE:
        limit_mb = settings.MAX_IMAGE_UPLOAD_SIZE // (1024 * 1024)
        raise ValidationFailed(f"파일 크기는 {limit_mb}MB 이하여야 합니다.")

    folder = os.path.join(settings.UPLOAD_DIR, subfolder)
    os.makedirs(folder, exist_ok=True)

    filename = f"{uuid.uuid4().hex}.{ext}"
    path = os.path.join(folder, filename)

    with open(path, "wb") as f:
        f.write(content)

    return {
        "filename": filename,
        "url": f"/uploads/{subfolder}/{filename}".replace("\\", "/").replace("//", "/"),
        "size": len(content),
    }


def delete_stored_file(url: str | None) -> bool:
    """``save_image`` 가 돌려준 URL 의 파일을 지웁니다. 업로드 폴더 밖 경로는 무시합니다."""
    if not url or not url.startswith("/uploads/"):
        return False
    relative = url[len("/uploads/"):]
    root = os.path.abspath(settings.UPLOAD_DIR)
    path = os.path.abspath(os.path.join(root, relative))
    if not path.startswith(root + os.sep):
        return False
    if os.path.isfile(path):
        os.remove(path)
        return True
    return False
