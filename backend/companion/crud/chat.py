from sqlalchemy.orm import Session
from companion.models.chat import Chat
from companion.models.message import Message
from typing import List, Optional


def create_chat(
    db: Session,
    user_id: str,
    workspace_id: str,
    title: str,
    ai_model_id: Optional[str] = None,
) -> Chat:
    """Create a new chat"""
    db_chat = Chat(
        user_id=user_id,
        workspace_id=workspace_id,
        ai_model_id=ai_model_id,
        title=title,
    )
    db.add(db_chat)
    db.commit()
    db.refresh(db_chat)
    return db_chat


def list_chats(
    db: Session,
    user_id: str,
    workspace_id: Optional[str] = None,
    ai_model_id: Optional[str] = None,
) -> List[Chat]:
    """Chats of a user, newest first"""
    query = db.query(Chat).filter(Chat.user_id == user_id)
    if workspace_id:
        query = query.filter(Chat.workspace_id == workspace_id)
    if ai_model_id:
        query = query.filter(Chat.ai_model_id == ai_model_id)
    return query.order_by(Chat.created_at.desc()).all()


def get_chat(db: Session, chat_id: str) -> Optional[Chat]:
    return db.query(Chat).filter(Chat.id == chat_id).first()


def rename_chat(db: Session, db_chat: Chat, title: str) -> Chat:
    db_chat.title = title
    db.commit()
    db.refresh(db_chat)
    return db_chat


def delete_chat(db: Session, db_chat: Chat) -> None:
    """Delete a chat's messages, then the chat itself"""
    db.query(Message).filter(Message.chat_id == db_chat.id).delete(synchronize_session=False)
    db.delete(db_chat)
    db.commit()


def get_chat_messages(db: Session, chat_id: str) -> List[Message]:
    """Get all messages for a chat"""
    return (
        db.query(Message)
        .filter(Message.chat_id == chat_id)
        .order_by(Message.created_at.asc())
        .all()
    )


def create_message(
    db: Session,
    chat_id: str,
    user_id: str,
    workspace_id: str,
    ai_model_id: Optional[str],
    prompt: str,
    response: str,
) -> Message:
    """Store one prompt/response pair"""
    db_message = Message(
        chat_id=chat_id,
        user_id=user_id,
        workspace_id=workspace_id,
        ai_model_id=ai_model_id,
        prompt=prompt,
        response=response,
    )
    db.add(db_message)
    db.commit()
    db.refresh(db_message)
    return db_message
