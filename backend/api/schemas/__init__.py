"""
API request and response schemas.
"""

from .auth import LoginRequest, TokenResponse, UserResponse, UserSummary

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "UserResponse",
    "UserSummary",
]
