"""Runtime configuration for provider fetchers and the document cache."""

from __future__ import annotations

from dataclasses import dataclass
import os
import re
from typing import Mapping

from beyondimport.models import Channel, ContentKind

DEFAULT_API_BASE_URL = "https://www.dndbeyond.com/api"
DEFAULT_SITE_BASE_URL = "https://www.dndbeyond.com"
DEFAULT_USER_AGENT = "beyond-import/0.1"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONTENT_CACHE_TTL_SECONDS = 86400.0
DEFAULT_SHORT_CACHE_TTL_SECONDS = 300.0

CLASS_IDS: dict[str, int] = {
    "barbarian": 2190875,
    "bard": 2190876,
    "cleric": 2190877,
    "druid": 2190878,
    "fighter": 2190879,
    "monk": 2190880,
    "paladin": 2190881,
    "ranger": 2190882,
    "rogue": 2190883,
    "sorcerer": 2190884,
    "warlock": 2190885,
    "wizard": 2190886,
    "artificer": 252717,
}

_NUMERIC_PREFIX_RE = re.compile(r"^(\d+)(?:-|$)")


def _parse_float(*, name: str, raw_value: str, minimum: float) -> float:
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_base_url(*, name: str, raw_value: str) -> str:
    if not raw_value:
        raise ValueError(f"{name} cannot be empty")
    if not (raw_value.startswith("http://") or raw_value.startswith("https://")):
        raise ValueError(f"{name} must start with http:// or https://")
    return raw_value.rstrip("/")


def resolve_api_id(content_id: str, kind: ContentKind) -> str | None:
    """Map a content slug to the provider's numeric id, or None when unknown."""

    slug = content_id.strip().lower()
    match = _NUMERIC_PREFIX_RE.match(slug)
    if match:
        return match.group(1)
    if kind is ContentKind.CLASS and slug in CLASS_IDS:
        return str(CLASS_IDS[slug])
    return None


@dataclass(frozen=True, slots=True)
class ImportSettings:
    """Validated provider endpoints, timeouts and cache lifetimes."""

    api_base_url: str = DEFAULT_API_BASE_URL
    site_base_url: str = DEFAULT_SITE_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    class_cache_ttl_seconds: float = DEFAULT_CONTENT_CACHE_TTL_SECONDS
    spell_cache_ttl_seconds: float = DEFAULT_CONTENT_CACHE_TTL_SECONDS
    default_cache_ttl_seconds: float = DEFAULT_SHORT_CACHE_TTL_SECONDS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ImportSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        api_base_url = _parse_base_url(
            name="BEYOND_API_BASE_URL",
            raw_value=source.get("BEYOND_API_BASE_URL", DEFAULT_API_BASE_URL).strip(),
        )
        site_base_url = _parse_base_url(
            name="BEYOND_SITE_BASE_URL",
            raw_value=source.get("BEYOND_SITE_BASE_URL", DEFAULT_SITE_BASE_URL).strip(),
        )

        user_agent = source.get("BEYOND_USER_AGENT", DEFAULT_USER_AGENT).strip()
        if not user_agent:
            raise ValueError("BEYOND_USER_AGENT cannot be empty")

        numeric: dict[str, float] = {}
        for name, default, minimum in (
            ("BEYOND_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, 0.1),
            ("BEYOND_CLASS_CACHE_TTL_SECONDS", DEFAULT_CONTENT_CACHE_TTL_SECONDS, 0.0),
            ("BEYOND_SPELL_CACHE_TTL_SECONDS", DEFAULT_CONTENT_CACHE_TTL_SECONDS, 0.0),
            ("BEYOND_DEFAULT_CACHE_TTL_SECONDS", DEFAULT_SHORT_CACHE_TTL_SECONDS, 0.0),
        ):
            raw_value = source.get(name, str(default)).strip()
            if not raw_value:
                raise ValueError(f"{name} cannot be empty")
            numeric[name] = _parse_float(name=name, raw_value=raw_value, minimum=minimum)

        return cls(
            api_base_url=api_base_url,
            site_base_url=site_base_url,
            user_agent=user_agent,
            timeout_seconds=numeric["BEYOND_TIMEOUT_SECONDS"],
            class_cache_ttl_seconds=numeric["BEYOND_CLASS_CACHE_TTL_SECONDS"],
            spell_cache_ttl_seconds=numeric["BEYOND_SPELL_CACHE_TTL_SECONDS"],
            default_cache_ttl_seconds=numeric["BEYOND_DEFAULT_CACHE_TTL_SECONDS"],
        )

    def ttl_for_kind(self, kind: ContentKind | str) -> float:
        if kind == ContentKind.CLASS:
            return self.class_cache_ttl_seconds
        if kind == ContentKind.SPELL:
            return self.spell_cache_ttl_seconds
        return self.default_cache_ttl_seconds

    def api_url(self, kind: ContentKind, api_id: str) -> str:
        return f"{self.api_base_url}/{_collection(kind)}/{api_id}"

    def html_url(self, kind: ContentKind, slug: str) -> str:
        return f"{self.site_base_url}/{_collection(kind)}/{slug.strip()}"

    def url_for(self, kind: ContentKind, channel: Channel, content_id: str) -> str | None:
        """Return the request URL, or None when the API id cannot be resolved."""

        if channel is Channel.HTML:
            return self.html_url(kind, content_id)
        api_id = resolve_api_id(content_id, kind)
        if api_id is None:
            return None
        return self.api_url(kind, api_id)


def _collection(kind: ContentKind) -> str:
    return "classes" if kind is ContentKind.CLASS else "spells"
