import math

from app.joyeria.core.config import settings


def resolve_page_size(por_pagina: int | None) -> int:
    if not por_pagina:
        return settings.LIST_DEFAULT_PAGE_SIZE
    return min(por_pagina, settings.LIST_MAX_PAGE_SIZE)


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0
