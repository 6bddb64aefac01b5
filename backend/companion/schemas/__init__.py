from .user import User, UserUpdate, PasswordChange, AdminPasswordSet, AppUser, CheckoutSessionResponse
from .workspace import (
    Workspace, WorkspaceCreate, NameStep, PreferencesStep, InterestsStep, ProfileStep,
    OnboardingComplete
)
from .ai_model import AIModel, AIModelCreate
from .chat import Chat, ChatGroup, ChatHistory, ChatRename, Message, SendMessageRequest, SendMessageResponse
from .image import Image, StoreImageResponse, SaveGeneratedImageRequest, SaveGeneratedImageResponse
from .completion import CompletionRequest, CompletionResponse

__all__ = [
    "User", "UserUpdate", "PasswordChange", "AdminPasswordSet", "AppUser", "CheckoutSessionResponse",
    "Workspace", "WorkspaceCreate", "NameStep", "PreferencesStep", "InterestsStep", "ProfileStep",
    "OnboardingComplete",
    "AIModel", "AIModelCreate",
    "Chat", "ChatGroup", "ChatHistory", "ChatRename", "Message", "SendMessageRequest", "SendMessageResponse",
    "Image", "StoreImageResponse", "SaveGeneratedImageRequest", "SaveGeneratedImageResponse",
    "CompletionRequest", "CompletionResponse",
]
