"""
User record model.

Records arrive as JSON objects from the members endpoint. Only the four
fields the console displays are kept; everything else is dropped.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict

EDITABLE_FIELDS = ("name", "email", "role")
REQUIRED_FIELDS = ("id",) + EDITABLE_FIELDS


@dataclass(frozen=True)
class UserRecord:
    """
    One user row.

    Attributes:
        id: Unique identifier (normalised to str, URLs carry it as text)
        name: Display name
        email: Email address
        role: Role label, e.g. "admin" or "member"
    """
    id: str
    name: str
    email: str
    role: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        """
        Build a record from a decoded JSON object.

        Raises:
            KeyError: If any of id/name/email/role is missing
        """
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            email=str(data["email"]),
            role=str(data["role"]),
        )

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def matches(self, query: str) -> bool:
        """True if query (already lower-cased) is in name, email or role."""
        return (
            query in self.name.lower()
            or query in self.email.lower()
            or query in self.role.lower()
        )
