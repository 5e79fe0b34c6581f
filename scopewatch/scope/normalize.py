"""Deterministic target canonicalization.

These rules give every raw target a stable identity. They are applied
before any AI normalization and are also used to build cache keys for
stored AI enhancements.
"""

from urllib.parse import urlsplit, urlunsplit

from scopewatch.scope.categories import normalize_category

_DEFAULT_PORTS = {"http": ":80", "https": ":443"}


def _canonical_url(value: str) -> str | None:
    """Canonicalize value if it parses as a URL with a host, else None."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return None
    if not parts.netloc:
        return None

    scheme = parts.scheme or "https"
    netloc = parts.netloc.lower()
    default_port = _DEFAULT_PORTS.get(scheme)
    if default_port and netloc.endswith(default_port):
        netloc = netloc[: -len(default_port)]

    path = parts.path
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/")

    return urlunsplit((scheme, netloc, path, parts.query, parts.fragment))


def normalize_target(value: str) -> str:
    """Apply simple canonicalization rules suitable for identity.

    URLs get a lower-cased host, default ports removed, trailing slashes
    trimmed and https assumed. Everything else (domains, wildcards, CIDRs,
    app ids) is lower-cased with a trailing dot or slash removed.
    """
    value = (value or "").strip()
    if not value:
        return value

    url = _canonical_url(value)
    if url is not None:
        return url

    value = value.lower()
    value = value.removesuffix(".")
    return value.rstrip("/") if value.endswith("/") else value


def normalize_program_url(value: str) -> str:
    """Ensure consistent program URL identity."""
    value = (value or "").strip()
    if not value:
        return value
    url = _canonical_url(value)
    return url if url is not None else value


def build_target_category_key(target: str, category: str) -> str:
    """Create the lookup key for a target/category combination.

    Stored AI enhancements are keyed this way so that cosmetic differences
    in a platform's listing do not cause a cache miss.
    """
    norm_target = normalize_target(target).lower()
    if not norm_target:
        norm_target = (target or "").strip().lower()
    return f"{norm_target}|{normalize_category(category)}"
