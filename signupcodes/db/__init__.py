"""Database helpers: engine/session factories and the signup_codes table."""

from .session import Base, get_engine, get_session
from .models import SignupCode

__all__ = ["Base", "SignupCode", "get_engine", "get_session"]
