"""
Campus Scheduler — Pagination Math & Hypermedia Links
=======================================================

What:  Offset-pagination arithmetic, the `_links` navigation block for
       collections, the RFC 8288 `Link` header, and the per-resource
       `_links` blocks for single-item responses.
Who:   Route handlers (they own the request's base URL).

Navigation rules (collections):
    self         always
    first, last  only when totalPages > 0
    prev         only when page > 1
    next         only when page < totalPages
"""

import math
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

from campus_scheduler.schemas.common import Link


def total_pages(total: int, limit: int) -> int:
    """ceil(total / limit); zero rows means zero pages."""
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def _page_url(collection_url: str, page: int, limit: int, params: Mapping[str, Any]) -> str:
    query = {"page": page, "limit": limit}
    query.update({k: v for k, v in params.items() if v is not None})
    return f"{collection_url}?{urlencode(query)}"


def build_page_links(
    collection_url: str,
    page: int,
    limit: int,
    pages: int,
    params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, str]:
    """
    Navigation links for one page of a collection.

    Args:
        collection_url: absolute collection URL without query string
        page, limit:    the requested page and size
        pages:          total number of pages
        params:         extra query parameters (filters, sort) carried into
                        every link; None values are dropped
    """
    params = params or {}
    links = {"self": _page_url(collection_url, page, limit, params)}
    if pages > 0:
        links["first"] = _page_url(collection_url, 1, limit, params)
        links["last"] = _page_url(collection_url, pages, limit, params)
        if page > 1:
            links["prev"] = _page_url(collection_url, page - 1, limit, params)
        if page < pages:
            links["next"] = _page_url(collection_url, page + 1, limit, params)
    return links


def link_header(links: Mapping[str, str]) -> str:
    """Render links as an RFC 8288 header: <url>; rel="next", <url>; rel="prev"."""
    return ", ".join(f'<{url}>; rel="{rel}"' for rel, url in links.items())


# ══════════════════════════════════════════════════════════════════════════
# Single-resource links
# ══════════════════════════════════════════════════════════════════════════


def _crud_links(base_url: str, collection: str, resource_id: int) -> Dict[str, Link]:
    base_url = base_url.rstrip("/")
    item = f"{base_url}/{collection}/{resource_id}"
    return {
        "self": Link(href=item, method="GET"),
        "collection": Link(href=f"{base_url}/{collection}", method="GET"),
        "update": Link(href=item, method="PUT"),
        "delete": Link(href=item, method="DELETE"),
    }


def collection_link(base_url: str, collection: str) -> Dict[str, Link]:
    """The lone `collection` link offered alongside a 404."""
    return {"collection": Link(href=f"{base_url.rstrip('/')}/{collection}", method="GET")}


def appointment_links(base_url: str, appointment) -> Dict[str, Link]:
    root = base_url.rstrip("/")
    links = _crud_links(base_url, "appointments", appointment.id)
    links["schedule"] = Link(href=f"{root}/schedules/{appointment.schedule_id}")
    links["user"] = Link(href=f"{root}/users/{appointment.user_id}")
    links["updateAsync"] = Link(href=f"{root}/appointments/{appointment.id}/async", method="PUT")
    return links


def schedule_links(base_url: str, schedule) -> Dict[str, Link]:
    root = base_url.rstrip("/")
    links = _crud_links(base_url, "schedules", schedule.id)
    links["appointments"] = Link(href=f"{root}/appointments/schedule/{schedule.id}")
    if schedule.course_id is not None:
        links["course"] = Link(href=f"{root}/courses/{schedule.course_id}")
    return links


def course_links(base_url: str, course) -> Dict[str, Link]:
    root = base_url.rstrip("/")
    links = _crud_links(base_url, "courses", course.id)
    links["members"] = Link(href=f"{root}/course-memberships?courseId={course.id}")
    return links


def course_membership_links(base_url: str, membership) -> Dict[str, Link]:
    root = base_url.rstrip("/")
    links = _crud_links(base_url, "course-memberships", membership.id)
    links["course"] = Link(href=f"{root}/courses/{membership.course_id}")
    links["user"] = Link(href=f"{root}/users/{membership.user_id}")
    return links
