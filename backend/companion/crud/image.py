from sqlalchemy.orm import Session
from companion.models.image import Image
from typing import Optional


def create_image(
    db: Session,
    user_id: str,
    workspace_id: str,
    url: str,
    storage_path: str,
    file_name: str,
    file_size: int,
    mime_type: str,
    chat_id: Optional[str] = None,
) -> Image:
    db_image = Image(
        user_id=user_id,
        workspace_id=workspace_id,
        chat_id=chat_id,
        url=url,
        storage_path=storage_path,
        file_name=file_name,
        file_size=file_size,
        mime_type=mime_type,
    )
    db.add(db_image)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_image)
    return db_image
