from __future__ import annotations

from typing import Any, Iterable, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} es obligatorio")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} debe tener al menos {min_len} caracteres")
    return value


def optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def optional_int(value: Any, field_name: str, *, min_value: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} debe ser un número entero")
    if min_value is not None and number < min_value:
        raise ValidationError(f"{field_name} no puede ser menor que {min_value}")
    return number


def optional_amount(value: Any, field_name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} debe ser un número")
    if amount < 0:
        raise ValidationError(f"{field_name} no puede ser negativo")
    return amount


def require_amount(value: Any, field_name: str) -> float:
    amount = optional_amount(value, field_name)
    if amount is None:
        raise ValidationError(f"{field_name} es obligatorio")
    return amount


def unique_ids(values: Iterable[Any], field_name: str) -> list[int]:
    """Normalize a list of ids: ints, positive, first occurrence wins."""
    out: list[int] = []
    for v in values:
        n = optional_int(v, field_name, min_value=1)
        if n is None:
            raise ValidationError(f"{field_name} contiene un valor vacío")
        if n not in out:
            out.append(n)
    return out
