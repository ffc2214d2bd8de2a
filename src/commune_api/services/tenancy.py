"""Resolve the community a request is addressed to from its hostname."""

from __future__ import annotations

from urllib.parse import urlsplit

from sqlalchemy.orm import Session

from commune_api.core.errors import bad_request, forbidden, not_found
from commune_api.core.settings import settings
from commune_api.models import AuthSession, Community
from commune_api.services.communities import (
    get_community_by_custom_domain,
    get_community_by_slug,
)


def extract_hostname(origin: str | None, host: str | None) -> str:
    """Prefer the Origin header; fall back to Host without its port."""
    if origin:
        try:
            hostname = urlsplit(origin).hostname
        except ValueError as err:
            raise bad_request("Invalid Origin header") from err
        if not hostname:
            raise bad_request("Invalid Origin header")
        return hostname.lower()
    if host:
        hostname = host.rsplit(":", 1)[0] if not host.endswith("]") else host
        hostname = hostname.strip().lower()
        if hostname:
            return hostname
    raise bad_request("Could not determine the request hostname")


def resolve_community(db: Session, hostname: str, base_domain: str | None = None) -> Community:
    """Map a hostname to a community.

    A verified custom domain wins; otherwise ``<slug>.<base_domain>`` is
    looked up by slug. The bare base domain is not a community.
    """
    base = (base_domain or settings.base_domain).lower()

    community = get_community_by_custom_domain(db, hostname)
    if community is not None:
        return community

    if hostname == base:
        raise not_found("Community not found")
    suffix = f".{base}"
    if not hostname.endswith(suffix):
        raise bad_request("Unknown domain")

    slug = hostname[: -len(suffix)]
    community = get_community_by_slug(db, slug) if slug else None
    if community is None:
        raise not_found("Community not found")
    return community


def ensure_session_matches(session: AuthSession | None, community: Community) -> None:
    """A session bound to one community must not be replayed against another."""
    if session is not None and session.community_id is not None:
        if session.community_id != community.id:
            raise forbidden("Session belongs to a different community")
