"""
Shared response shaping for collection endpoints.

Every list route ends the same way: wrap rows in the Page envelope, attach
`_links`, and mirror those links in the `Link` and `X-Total-Count` headers.
"""

from typing import Any, Mapping, Optional, Sequence, Type

from fastapi import Request, Response
from pydantic import BaseModel

from campus_scheduler.schemas.common import Page, PaginationMeta
from campus_scheduler.services.crud import ListQuery
from campus_scheduler.services.hypermedia import build_page_links, link_header, total_pages


def collection_url(request: Request, collection: str) -> str:
    return f"{str(request.base_url).rstrip('/')}/{collection}"


def page_response(
    request: Request,
    response: Response,
    *,
    collection: str,
    rows: Sequence[Any],
    total: int,
    query: ListQuery,
    item_schema: Type[BaseModel],
    filters: Optional[Mapping[str, Any]] = None,
) -> Page:
    pages = total_pages(total, query.limit)
    params = {
        "sortBy": query.sort_by,
        "order": query.order.upper(),
        "startDate": query.start_date.isoformat() if query.start_date else None,
        "endDate": query.end_date.isoformat() if query.end_date else None,
    }
    params.update(filters or {})
    links = build_page_links(
        collection_url(request, collection), query.page, query.limit, pages, params
    )

    response.headers["Link"] = link_header(links)
    response.headers["X-Total-Count"] = str(total)

    return Page(
        data=[item_schema.model_validate(row) for row in rows],
        pagination=PaginationMeta(
            total=total, page=query.page, limit=query.limit, total_pages=pages
        ),
        links=links,
    )
