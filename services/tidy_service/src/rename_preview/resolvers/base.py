"""Shared types for placeholder resolvers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from ..models import PlaceholderSource
from ..sanitizer import sanitize_filename


@dataclass(frozen=True)
class ResolverOptions:
    """Options shared by all resolvers.

    Attributes:
        fallback: Value used when a placeholder has no data
        fallbacks: Per-placeholder fallbacks, overriding ``fallback``
        sanitize_for_filename: Run values through the generic sanitizer
        format_spec: Format suffix of the token being resolved (``YYYY-MM-DD``)
        template_has_date: The surrounding template contains a date placeholder
    """

    fallback: str = ""
    fallbacks: Mapping[str, str] = field(default_factory=dict)
    sanitize_for_filename: bool = True
    format_spec: str | None = None
    template_has_date: bool = False

    def fallback_for(self, name: str) -> str:
        return self.fallbacks.get(name, self.fallback)

    def with_format(self, format_spec: str | None) -> ResolverOptions:
        return replace(self, format_spec=format_spec)


@dataclass(frozen=True)
class ResolvedPlaceholder:
    """A resolved value and where it came from."""

    name: str
    value: str
    source: PlaceholderSource

    @property
    def is_empty(self) -> bool:
        return self.value == ""

    @property
    def used_fallback(self) -> bool:
        return self.source == PlaceholderSource.FALLBACK


def resolved(name: str, value: str, source: PlaceholderSource, options: ResolverOptions) -> ResolvedPlaceholder:
    """Build a result from real data, sanitizing it when requested."""
    if options.sanitize_for_filename and value:
        value = sanitize_filename(value)
    return ResolvedPlaceholder(name=name, value=value, source=source)


def missing(name: str, options: ResolverOptions) -> ResolvedPlaceholder:
    """Build the result for a placeholder without data.

    Uses the configured fallback (source ``fallback``) when there is one,
    otherwise an empty value with ``literal`` source.
    """
    fallback = options.fallback_for(name)
    if options.sanitize_for_filename:
        fallback = sanitize_filename(fallback)
    if fallback:
        return ResolvedPlaceholder(name=name, value=fallback, source=PlaceholderSource.FALLBACK)
    return ResolvedPlaceholder(name=name, value="", source=PlaceholderSource.LITERAL)
