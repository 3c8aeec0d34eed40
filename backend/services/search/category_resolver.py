"""
Resolves the `category` request parameter into course taxonomy term ids.

Accepts comma-separated values that can be a mix of IDs, slugs and names:
    category=168
    category=vietnam
    category=Vietnam
    category=168,Vietnam,thailand
"""
import logging
import re
from typing import Callable, List, Optional

from core.config import COURSE_TAXONOMY, TERMS_TABLE, TERM_TAXONOMY_TABLE
from core.database import Database, parse_row_id
from models.content_models import Category

logger = logging.getLogger(__name__)

TermLookup = Callable[[str], Optional[Category]]


def split_tokens(raw: Optional[str]) -> List[str]:
    """Split a comma-separated filter into trimmed, non-empty tokens."""
    if not raw:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


class CategoryResolver:
    """Maps raw category tokens to term ids within one taxonomy."""

    def __init__(self, database: Database, taxonomy: str = COURSE_TAXONOMY):
        self.db = database
        self.taxonomy = taxonomy

    @staticmethod
    def is_requested(raw: Optional[str]) -> bool:
        """True when the caller supplied a non-blank category filter."""
        return bool(split_tokens(raw))

    def resolve(self, raw: Optional[str]) -> List[int]:
        """
        Resolve every token and return the distinct term ids.

        Unresolvable tokens are dropped. The result is empty for an empty
        filter as well as for a filter where nothing resolved; callers use
        is_requested() to tell the two apart.
        """
        term_ids: List[int] = []
        for token in split_tokens(raw):
            category = self.resolve_token(token)
            if category is None:
                logger.debug(f"Category token did not resolve: {token!r}")
                continue
            if category.term_id not in term_ids:
                term_ids.append(category.term_id)
        return term_ids

    def resolve_token(self, token: str) -> Optional[Category]:
        """Try each lookup for this token in order, first hit wins."""
        for lookup in self._lookups_for(token):
            category = lookup(token)
            if category is not None:
                return category
        return None

    def _lookups_for(self, token: str) -> List[TermLookup]:
        if re.fullmatch(r"[0-9]+", token):
            return [self._by_id]
        # Non-numeric tokens: slug first, then name
        return [self._by_slug, self._by_name]

    def _by_id(self, token: str) -> Optional[Category]:
        term_id = parse_row_id(token)
        if term_id is None:
            return None
        row = self.db.execute_one(
            f"""
            SELECT t.term_id, t.slug, t.name
            FROM {TERMS_TABLE} t
            INNER JOIN {TERM_TAXONOMY_TABLE} tt ON t.term_id = tt.term_id
            WHERE tt.taxonomy = ? AND t.term_id = ?
            LIMIT 1
            """,
            (self.taxonomy, term_id)
        )
        return self._to_category(row)

    def _by_slug(self, token: str) -> Optional[Category]:
        # "=" uses BINARY collation, so slug matching is case-sensitive
        row = self.db.execute_one(
            f"""
            SELECT t.term_id, t.slug, t.name
            FROM {TERMS_TABLE} t
            INNER JOIN {TERM_TAXONOMY_TABLE} tt ON t.term_id = tt.term_id
            WHERE tt.taxonomy = ? AND t.slug = ?
            ORDER BY t.term_id
            LIMIT 1
            """,
            (self.taxonomy, token)
        )
        return self._to_category(row)

    def _by_name(self, token: str) -> Optional[Category]:
        row = self.db.execute_one(
            f"""
            SELECT t.term_id, t.slug, t.name
            FROM {TERMS_TABLE} t
            INNER JOIN {TERM_TAXONOMY_TABLE} tt ON t.term_id = tt.term_id
            WHERE tt.taxonomy = ? AND LOWER(t.name) = LOWER(?)
            ORDER BY t.term_id
            LIMIT 1
            """,
            (self.taxonomy, token)
        )
        return self._to_category(row)

    @staticmethod
    def _to_category(row) -> Optional[Category]:
        if row is None:
            return None
        return Category(term_id=int(row["term_id"]), slug=row["slug"], name=row["name"])
