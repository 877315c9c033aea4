from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Principal:
    """
    The verified identity of whoever is making a request.

    Every engine call takes the viewer explicitly as a ``Principal`` or
    ``None`` for anonymous access; nothing reads the current user from
    ambient state.
    """
    id: int
    fullname: str = ""

    @classmethod
    def from_user(cls, user) -> Optional["Principal"]:
        """Build a principal from a Django user, or None when anonymous."""
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return cls(id=user.pk, fullname=user.fullname or user.username)
