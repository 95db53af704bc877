"""JSON helpers shared by the controllers."""
from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any

from flask import jsonify, request

from ..core.exceptions import AuthenticationError, NotFoundError, ServiceError, ValidationError

logger = logging.getLogger(__name__)


def jsonable(value: Any) -> Any:
    """Dataclasses, dates and decimals to plain JSON values (dates as ISO strings)."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [jsonable(v) for v in value]
    return value


def ok(status: int = 200, **payload: Any):
    body = {"success": True}
    body.update({k: jsonable(v) for k, v in payload.items()})
    return jsonify(body), status


def fail(message: str, status: int, **extra: Any):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def page_payload(page, serialize) -> dict:
    total_pages = (page.total + page.page_size - 1) // page.page_size if page.total else 0
    return {
        "data": [serialize(item) for item in page.items],
        "pagination": {
            "page": page.page,
            "page_size": page.page_size,
            "total": page.total,
            "total_pages": total_pages,
        },
    }


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("El cuerpo de la petición debe ser un objeto JSON")
    return data


def json_errors(view):
    """Map domain errors raised by a view to {"success": false, "message": ...}."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return fail(str(e), 400)
        except NotFoundError as e:
            return fail(str(e), 404)
        except AuthenticationError as e:
            return fail(str(e), 401)
        except ServiceError as e:
            return fail(str(e), 500)
        except Exception:
            logger.exception("Unexpected error in %s %s", request.method, request.path)
            return fail("Error interno del servidor", 500)

    return wrapper
