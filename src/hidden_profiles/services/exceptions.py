"""Shared exceptions for service layer operations."""


class UserNotFoundError(Exception):
    """Raised when an operation targets a user that does not exist."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class InvalidRoleError(ValueError):
    """Raised when a role name is not one of the known roles."""

    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(f"Unknown role: {role}")
