"""Unified scope categories.

Every platform names its asset types differently. Targets are stored and
compared under one small, shared vocabulary; this module owns it.
"""

from enum import Enum


class Category(str, Enum):
    """Unified scope categories."""

    WILDCARD = "wildcard"
    URL = "url"
    CIDR = "cidr"
    ANDROID = "android"
    IOS = "ios"
    AI = "ai"
    HARDWARE = "hardware"
    BLOCKCHAIN = "blockchain"
    BINARY = "binary"
    CODE = "code"
    OTHER = "other"


# Platform-specific asset type names -> unified category
CATEGORY_ALIASES: dict[str, Category] = {
    "wildcard": Category.WILDCARD,
    "url": Category.URL,
    "website": Category.URL,
    "web": Category.URL,
    "web-application": Category.URL,
    "api": Category.URL,
    "domain": Category.URL,
    "cidr": Category.CIDR,
    "iprange": Category.CIDR,
    "ip_address": Category.CIDR,
    "ip-address": Category.CIDR,
    "network": Category.CIDR,
    "android": Category.ANDROID,
    "google_play_app_id": Category.ANDROID,
    "other_apk": Category.ANDROID,
    "android-application": Category.ANDROID,
    "ios": Category.IOS,
    "apple_store_app_id": Category.IOS,
    "testflight": Category.IOS,
    "other_ipa": Category.IOS,
    "ios-application": Category.IOS,
    "ai": Category.AI,
    "ai_model": Category.AI,
    "hardware": Category.HARDWARE,
    "iot": Category.HARDWARE,
    "blockchain": Category.BLOCKCHAIN,
    "smart_contract": Category.BLOCKCHAIN,
    "binary": Category.BINARY,
    "executable": Category.BINARY,
    "downloadable_executables": Category.BINARY,
    "windows_app_store_app_id": Category.BINARY,
    "code": Category.CODE,
    "source_code": Category.CODE,
    "other": Category.OTHER,
}


def unified_categories() -> list[str]:
    """Return the unified category names, sorted."""
    return sorted(c.value for c in Category)


def is_unified_category(value: str) -> bool:
    """Check whether value already is a unified category name."""
    return value in Category._value2member_map_


def normalize_category(raw: str) -> str:
    """Map a platform-specific category name to the unified set.

    Unknown and empty names map to "other".
    """
    key = (raw or "").strip().lower()
    if not key:
        return Category.OTHER.value
    category = CATEGORY_ALIASES.get(key)
    if category is None:
        return Category.OTHER.value
    return category.value
