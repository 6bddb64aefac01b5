from dataclasses import dataclass
from typing import Optional

from companion.core.errors import CompanionError
from companion.core.logging import auth_logger
from companion.services.supabase_client import get_supabase


class IdentityError(CompanionError):
    """The identity provider rejected a token or an admin call."""


@dataclass
class Identity:
    id: str
    email: str
    name: Optional[str] = None


class IdentityProvider:
    """Supabase Auth: token verification and password management"""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def get_user(self, token: str) -> Identity:
        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            raise IdentityError(str(e), status_code=401) from e

        user = getattr(response, "user", None)
        if user is None:
            raise IdentityError("Invalid or expired token", status_code=401)

        metadata = getattr(user, "user_metadata", None) or {}
        return Identity(
            id=str(user.id),
            email=user.email or "",
            name=metadata.get("name") or metadata.get("full_name"),
        )

    def set_password(self, user_id: str, password: str) -> None:
        try:
            self.client.auth.admin.update_user_by_id(user_id, {"password": password})
        except Exception as e:
            auth_logger.warning("Password update rejected", user_id=user_id, error=str(e))
            raise IdentityError(str(e), status_code=400) from e
        auth_logger.info("Password updated", user_id=user_id)


def get_identity_provider() -> IdentityProvider:
    return IdentityProvider()
