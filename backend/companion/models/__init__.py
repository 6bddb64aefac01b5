from .user import User
from .workspace import Workspace
from .ai_model import AIModel
from .chat import Chat
from .message import Message
from .image import Image
from .app_user import AppUser

__all__ = ["User", "Workspace", "AIModel", "Chat", "Message", "Image", "AppUser"]
