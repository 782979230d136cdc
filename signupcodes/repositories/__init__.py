"""
Persistence adapters.

Services depend on the record store interface exposed here rather than
touching SQLAlchemy sessions directly.
"""

from .sql_repository import DuplicateCodeError, SignupCodeRepository, StoreError, StoreUnavailableError

__all__ = ["DuplicateCodeError", "SignupCodeRepository", "StoreError", "StoreUnavailableError"]
