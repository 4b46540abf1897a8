"""URL security checks shared by every outbound fetch."""

from .url_validator import (
    ALLOWED_SCHEMES,
    BLOCKED_METADATA_HOSTS,
    BLOCKED_NETWORKS,
    is_blocked_address,
    validate_redirect_url,
    validate_secure_url,
)

__all__ = [
    "ALLOWED_SCHEMES",
    "BLOCKED_METADATA_HOSTS",
    "BLOCKED_NETWORKS",
    "is_blocked_address",
    "validate_redirect_url",
    "validate_secure_url",
]
