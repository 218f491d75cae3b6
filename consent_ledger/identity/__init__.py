from .users import Principal, UserRole

__all__ = ["Principal", "UserRole"]
