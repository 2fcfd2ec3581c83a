from __future__ import annotations

from dataclasses import dataclass

from app.domain.content_frontmatter import ParsedEntry
from app.domain.content_store import ContentStore
from models import Post, PostLocale
from slug_utils import generate_slug, slug_candidates

MATCH_BY_GROUP = "groupId+locale"
MATCH_BY_SLUG = "locale+slug"


@dataclass(frozen=True)
class IdentityMatch:
    target: Post | None
    match_key: str | None

    @property
    def found(self) -> bool:
        return self.target is not None


class IdentityResolver:
    """Find the existing post an archive entry refers to.

    ``(groupId, locale)`` wins over ``(locale, slug)``. An entry whose groupId
    matches nothing still falls back to its slug, so posts exported before
    they were grouped are updated instead of duplicated. A slug holder that
    belongs to another group is a foreign collision, not a match.
    """

    def __init__(self, store: ContentStore):
        self.store = store

    def resolve(self, entry: ParsedEntry) -> IdentityMatch:
        if entry.group_id:
            target = self.store.find_by_group_and_locale(entry.group_id, entry.locale)
            if target is not None:
                return IdentityMatch(target=target, match_key=MATCH_BY_GROUP)

        if entry.slug:
            target = self.store.find_by_locale_and_slug(entry.locale, entry.slug)
            if target is not None and not self._is_foreign(entry, target):
                return IdentityMatch(target=target, match_key=MATCH_BY_SLUG)

        return IdentityMatch(target=None, match_key=None)

    @staticmethod
    def _is_foreign(entry: ParsedEntry, target: Post) -> bool:
        # ungrouped entries and ungrouped posts still match by slug
        return bool(entry.group_id and target.group_id and target.group_id != entry.group_id)


class SlugAllocator:
    def __init__(self, store: ContentStore):
        self.store = store

    def allocate(self, desired_slug: str, locale: PostLocale) -> str:
        candidates = slug_candidates(desired_slug)
        candidate = next(candidates)
        while self.store.find_by_locale_and_slug(locale, candidate) is not None:
            candidate = next(candidates)
        return candidate

    def base_slug_for(self, entry: ParsedEntry) -> tuple[str, bool]:
        """Return ``(slug, generated)``; titles are transliterated when the entry has no slug."""
        if entry.slug:
            return entry.slug, False
        return generate_slug(entry.title), True
