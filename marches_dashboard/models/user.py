"""Authenticated user model."""

from dataclasses import dataclass


@dataclass
class User:
    """User returned by /auth/currentUser."""

    id: int
    name: str = ""  # First name
    last_name: str = ""
    email: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.last_name}".strip() or self.email

    @classmethod
    def from_api(cls, data: dict) -> "User":
        # Some backends wrap the user as {"user": {...}}
        if "user" in data and isinstance(data["user"], dict):
            data = data["user"]
        return cls(
            id=int(data.get("id") or 0),
            name=data.get("name") or "",
            last_name=data.get("last_name") or "",
            email=data.get("email") or "",
        )
