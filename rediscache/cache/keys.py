"""Cache key builders and text normalization.

Key Naming Convention:
    - Use colons (:) to separate namespaces
    - Format: {prefix}:{part1}:{part2}:...
    - Examples:
        - app:course:by_id
        - app:group:name2id

Segments are joined as-is. No escaping is performed, so a segment that
itself contains ":" produces a key that cannot be told apart from one with
more segments. Callers must keep the separator out of their segments.

Usage:
    from rediscache.cache.keys import build_key, normalize

    key = build_key("svc", "course", "by_id")
    # Returns: "svc:course:by_id"

    field = normalize("  Backend   Team ")
    # Returns: "backend team"
"""

import logging

logger = logging.getLogger(__name__)

KEY_SEPARATOR = ":"

# Marker inserted between a destination key and the random token of a
# staging key used by atomic rebuilds.
STAGING_TAG = "tmp"


def build_key(prefix: str, *parts: str) -> str:
    """
    Build a namespaced cache key.

    Args:
        prefix: Namespace prefix (e.g., "app")
        *parts: Ordered key segments

    Returns:
        Cache key in format: "{prefix}:{part1}:{part2}..."

    Examples:
        >>> build_key("svc", "course", "by_id")
        'svc:course:by_id'

        >>> build_key("svc")
        'svc'
    """
    return KEY_SEPARATOR.join((prefix, *parts))


def staging_key(destination: str, token: str) -> str:
    """
    Build the transient key a rebuild stages into before publishing.

    Args:
        destination: Key that will hold the published mapping
        token: Globally unique token for this rebuild

    Returns:
        Key in format: "{destination}:tmp:{token}"

    Example:
        >>> staging_key("app:group:by_id", "abc")
        'app:group:by_id:tmp:abc'
    """
    return KEY_SEPARATOR.join((destination, STAGING_TAG, token))


def staging_pattern(destination: str) -> str:
    """
    Get pattern to match every staging key of a destination key.

    Example:
        >>> staging_pattern("app:group:by_id")
        'app:group:by_id:tmp:*'
    """
    return staging_key(destination, "*")


def normalize(text: str) -> str:
    """
    Normalize free text for use as a key segment or hash field.

    Lower-cases, trims, and collapses every run of whitespace (any Unicode
    whitespace) into a single space.

    Examples:
        >>> normalize("  Hello   World ")
        'hello world'

        >>> normalize("\\tGo\\tLang\\n")
        'go lang'

        >>> normalize("")
        ''
    """
    return " ".join(text.lower().split())
