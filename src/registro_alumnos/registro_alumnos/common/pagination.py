from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def of(cls, page: object = 1, page_size: object = DEFAULT_PAGE_SIZE) -> "PageRequest":
        try:
            p = 1 if page in (None, "") else int(page)
            size = DEFAULT_PAGE_SIZE if page_size in (None, "") else int(page_size)
        except (TypeError, ValueError):
            raise ValidationError("Paginación inválida")
        if p < 1:
            raise ValidationError("La página debe ser mayor o igual a 1")
        if size < 1 or size > MAX_PAGE_SIZE:
            raise ValidationError(f"El tamaño de página debe estar entre 1 y {MAX_PAGE_SIZE}")
        return cls(page=p, page_size=size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
