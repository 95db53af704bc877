from __future__ import annotations

import logging
from functools import wraps

from ..core.exceptions import BackendError, ServiceError

logger = logging.getLogger(__name__)


def wrap_backend_errors(context: str):
    """Turn a BackendError raised inside a service method into a ServiceError.

    The resulting message is "<context>: <backend message>", which the controllers
    return verbatim. Domain errors (validation, not found) pass through untouched.
    """

    def decorator(method):
        @wraps(method)
        def wrapper(*args, **kwargs):
            try:
                return method(*args, **kwargs)
            except BackendError as e:
                logger.error("Error in %s: %s", method.__qualname__, e)
                raise ServiceError(f"{context}: {e}") from e

        return wrapper

    return decorator
