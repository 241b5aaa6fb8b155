"""
Token registry with name, theme and category indices.

The registry stores what it is handed. Which record is active for a
(name, theme) key is decided by the caller (see aggregator.SourceAggregator);
the registry only keeps the indices consistent with that decision.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .models import Theme, TokenCategory, TokenRecord


class TokenRegistry:
    """Indexed store of token records.

    Indices:
        - name index: every record ever registered for a name, in
          registration order (audit trail, never deduplicated).
        - theme index: theme -> name -> active record.
        - category index: category -> active records, keyed by (name, theme).
    """

    def __init__(self) -> None:
        self._by_name: dict[str, list[TokenRecord]] = {}
        self._by_theme: dict[Theme, dict[str, TokenRecord]] = {
            Theme.LIGHT: {},
            Theme.DARK: {},
        }
        self._by_category: dict[TokenCategory, dict[tuple[str, Theme], TokenRecord]] = {}
        self._names_cache: Optional[list[str]] = None

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(self, record: TokenRecord, active: bool = True) -> None:
        """Register a record.

        The record is always appended to the name index. When active, it
        becomes the theme-index entry for its (name, theme) key and replaces
        any previously active record for that key in the category index.
        """
        self._by_name.setdefault(record.name, []).append(record)
        self._names_cache = None

        if active:
            self.activate(record)

    def register_batch(self, records: Iterable[TokenRecord]) -> None:
        """Register records, each as active."""
        for record in records:
            self.register(record)

    def deactivate(self, name: str, theme: Theme) -> Optional[TokenRecord]:
        """Remove the active record for a key from theme/category indices.

        The name index is left untouched.

        Returns:
            The record that was active, or None.
        """
        previous = self._by_theme[theme].pop(name, None)
        if previous is not None:
            bucket = self._by_category.get(previous.category)
            if bucket is not None:
                bucket.pop((name, theme), None)
        return previous

    def activate(self, record: TokenRecord) -> None:
        """Make a record the active one for its key without touching the name index."""
        previous = self._by_theme[record.theme].get(record.name)
        if previous is not None and previous.category is not record.category:
            self._by_category.get(previous.category, {}).pop(record.key, None)

        self._by_theme[record.theme][record.name] = record
        self._by_category.setdefault(record.category, {})[record.key] = record

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get(self, name: str, theme: Optional[Theme] = None) -> Optional[TokenRecord]:
        """Get a token by name.

        Args:
            name: Token name, e.g. '--ant-color-primary'.
            theme: Theme to look in. When omitted, the active light record is
                returned, then the active dark record, then the first record
                ever registered for the name.

        Returns:
            The record, or None if the name is unknown.
        """
        if theme is not None:
            return self._by_theme[theme].get(name)

        for candidate_theme in (Theme.LIGHT, Theme.DARK):
            record = self._by_theme[candidate_theme].get(name)
            if record is not None:
                return record

        records = self._by_name.get(name)
        return records[0] if records else None

    def get_all(self, name: str) -> list[TokenRecord]:
        """Get every record registered for a name (audit trail)."""
        return list(self._by_name.get(name, []))

    def get_by_category(self, category: TokenCategory) -> list[TokenRecord]:
        return list(self._by_category.get(category, {}).values())

    def get_by_theme(self, theme: Theme) -> list[TokenRecord]:
        return list(self._by_theme[theme].values())

    def all_names(self) -> list[str]:
        """Get distinct token names in first-registration order."""
        if self._names_cache is None:
            self._names_cache = list(self._by_name.keys())
        return self._names_cache

    def search(self, keyword: str, theme: Optional[Theme] = None) -> list[TokenRecord]:
        """Search tokens by case-insensitive keyword.

        A name matches when it contains the keyword, or when every
        dash-separated segment of the keyword is also a segment of the name
        ('--ant-color' finds '--ant-primary-color'). Results are ranked:
        exact name match first, then prefix matches, then other substring
        matches, then segment-only matches; ties are ordered alphabetically
        by name.

        Args:
            keyword: Text to look for in token names.
            theme: Restrict the search to active records of one theme. When
                omitted the whole audit trail is searched, so a name can
                appear once per registered record.
        """
        needle = keyword.lower()
        segments = {s for s in needle.split("-") if s}

        if theme is not None:
            candidates: Iterable[TokenRecord] = self._by_theme[theme].values()
        else:
            candidates = (r for records in self._by_name.values() for r in records)

        ranked: list[tuple[int, str, TokenRecord]] = []
        for record in candidates:
            lowered = record.name.lower()
            if lowered == needle:
                tier = 0
            elif lowered.startswith(needle):
                tier = 1
            elif needle in lowered:
                tier = 2
            elif segments and segments <= set(lowered.split("-")):
                tier = 3
            else:
                continue
            ranked.append((tier, record.name, record))

        ranked.sort(key=lambda entry: entry[:2])
        return [record for _, _, record in ranked]

    def has(self, name: str) -> bool:
        return name in self._by_name

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """Remove every record from every index."""
        self._by_name.clear()
        for bucket in self._by_theme.values():
            bucket.clear()
        self._by_category.clear()
        self._names_cache = None

    @property
    def size(self) -> int:
        """Number of registered records, counting every contribution."""
        return sum(len(records) for records in self._by_name.values())

    @property
    def unique_size(self) -> int:
        """Number of distinct token names."""
        return len(self._by_name)

    def __len__(self) -> int:
        return self.size

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)
