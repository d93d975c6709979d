"""
Corpus of known companies used by the external similarity stage.

Usage:
    provider = StaticCorpusProvider()
    entries = await provider.fetch_corpus(category="fintech")
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from core.config import settings
from core.exceptions import KeywordTablesError
from review.models import CorpusEntry
from review.tables import DATA_DIR

logger = logging.getLogger(__name__)

DEFAULT_CORPUS_PATH = DATA_DIR / "corpus.json"

_entries_adapter = TypeAdapter(list[CorpusEntry])


class CorpusProvider(ABC):
    """Source of prior-art companies."""

    @abstractmethod
    async def fetch_corpus(
        self,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        exhaustive: bool = False,
    ) -> list[CorpusEntry]:
        """
        Fetch corpus entries.

        Args:
            category: Case-insensitive filter on industry or any tag
            limit: Maximum number of entries when not exhaustive
            exhaustive: Return every matching entry, ignoring the limit

        Returns:
            Matching corpus entries
        """


def matches_category(entry: CorpusEntry, category: str) -> bool:
    needle = category.lower()
    if needle in entry.industry.lower():
        return True
    return any(needle in tag.lower() for tag in entry.tags)


class StaticCorpusProvider(CorpusProvider):
    """Corpus loaded once from a JSON document."""

    def __init__(
        self,
        entries: Optional[list[CorpusEntry]] = None,
        path: Optional[str | Path] = None,
        default_limit: Optional[int] = None,
    ):
        self.default_limit = default_limit or settings.corpus_fetch_limit
        if entries is not None:
            self._entries = list(entries)
        else:
            self._entries = self.load(path or settings.corpus_path or DEFAULT_CORPUS_PATH)

    @staticmethod
    def load(path: str | Path) -> list[CorpusEntry]:
        corpus_path = Path(path)
        try:
            raw = json.loads(corpus_path.read_text(encoding="utf-8"))
            entries = _entries_adapter.validate_python(raw)
        except (OSError, ValueError, ValidationError) as e:
            raise KeywordTablesError(f"Cannot load corpus from {corpus_path}: {e}") from e

        logger.info(f"Loaded {len(entries)} corpus entries from {corpus_path}")
        return entries

    async def fetch_corpus(
        self,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        exhaustive: bool = False,
    ) -> list[CorpusEntry]:
        entries = self._entries
        if category:
            entries = [entry for entry in entries if matches_category(entry, category)]
        if not exhaustive:
            entries = entries[: limit or self.default_limit]
        return list(entries)
