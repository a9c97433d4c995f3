from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from bakery.services.pagination import Page


def page_payload(page: Page, schema: type[BaseModel]) -> dict[str, Any]:
    return {
        "items": [schema.model_validate(item) for item in page.items],
        "total": page.total,
        "limit": page.limit,
        "offset": page.offset,
        "pages": page.pages,
        "has_next": page.has_next,
        "has_prev": page.has_prev,
    }
