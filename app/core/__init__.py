"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps. Nothing here knows about
conversations or messages.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer (logger, atomic, after_commit)
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes and HTTP status
    - ValidationError, NotFoundError, PermissionDeniedError, ConflictError,
      ExternalServiceError
    - register_error_codes / kind_for_code: error code → kind registry

Usage:
    from core.models import BaseModel
    from core.services import BaseService, ServiceResult
    from core.exceptions import ValidationError, NotFoundError
"""
