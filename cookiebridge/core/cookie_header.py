"""Conversion of cookies into an HTTP Cookie header value."""

from __future__ import annotations

from typing import Iterable

from cookiebridge.core.models import Cookie

SORT_BY_NAME = "name"
SORT_NONE = "none"


def to_cookie_header(
    cookies: Iterable[Cookie],
    sort: str = SORT_BY_NAME,
    dedupe_by_name: bool = False,
) -> str:
    """
    Join cookies into a ``Cookie`` header value.

    No RFC validation is attempted; pairs are emitted as ``name=value``
    separated by ``"; "``.

    Args:
        cookies: Cookies to serialize.
        sort: "name" for alphabetical order by name, "none" to keep input order.
        dedupe_by_name: Keep only the first cookie for each name (after sorting).

    Returns:
        Header value, empty string when there are no usable cookies.
    """
    items = [
        (cookie.name, cookie.value)
        for cookie in cookies
        if cookie is not None and cookie.name and isinstance(cookie.value, str)
    ]

    if sort == SORT_BY_NAME:
        items.sort(key=lambda item: item[0])

    if dedupe_by_name:
        seen: set[str] = set()
        deduped = []
        for name, value in items:
            if name in seen:
                continue
            seen.add(name)
            deduped.append((name, value))
        items = deduped

    return "; ".join(f"{name}={value}" for name, value in items)
