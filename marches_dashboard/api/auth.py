"""
Authentication endpoints (/auth).

The backend keeps the session in a `token` cookie; login stores it in the
client's cookie jar and logout clears it.
"""

from typing import Optional

from marches_dashboard.models import User


class AuthApi:
    """Endpoints for login, registration and password recovery."""

    def __init__(self, client):
        self.client = client

    async def current_user(self) -> User:
        data = await self.client.get("/auth/currentUser")
        return User.from_api(data or {})

    async def login(self, email: str, password: str) -> Optional[str]:
        """Log in and return the session token set by the backend."""
        data = await self.client.post("/auth/login", json={"email": email, "password": password})
        # Some deployments return the token in the body instead of a cookie
        if isinstance(data, dict) and data.get("token") and not self.client.token:
            self.client.set_token(data["token"])
        return self.client.token

    async def logout(self) -> None:
        try:
            await self.client.post("/auth/logout")
        finally:
            self.client.clear_token()

    async def register(self, name: str, last_name: str, email: str, password: str) -> Optional[dict]:
        return await self.client.post(
            "/auth/register",
            json={"name": name, "last_name": last_name, "email": email, "password": password},
        )

    async def forgot_password(self, email: str) -> Optional[dict]:
        return await self.client.post("/auth/forgot-password", json={"email": email})

    async def reset_password(self, token: str, new_password: str) -> Optional[dict]:
        return await self.client.post(
            "/auth/reset-password",
            json={"token": token, "newPassword": new_password},
        )

    async def verify_email(self, token: str) -> str:
        data = await self.client.get(f"/auth/verify-email/{token}")
        if isinstance(data, dict) and data.get("message"):
            return data["message"]
        return "Email verified."
