"""Text corpus searched by the target service."""
import re2
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

from src.loadgen.core.config import settings
from src.loadgen.services.base import CorpusService


class TextCorpus(CorpusService):
    """Lines of every ``*.txt`` file under a directory.

    A query is a regular expression matched case-insensitively against
    each line; the result is the number of matching lines. Patterns are
    compiled with RE2, so matching time stays linear in the line length
    whatever the query.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, lines: Optional[List[str]] = None):
        self.path = Path(path or settings.CORPUS_PATH)
        self.lines: Optional[List[str]] = [line.lower() for line in lines] if lines is not None else None

    @property
    def loaded(self) -> bool:
        return self.lines is not None

    def load(self) -> None:
        """Read the corpus from disk."""
        if not self.path.exists():
            logger.warning(f"⚠️  Corpus not found: {self.path}, serving an empty corpus")
            self.lines = []
            return

        files = [self.path] if self.path.is_file() else sorted(self.path.rglob("*.txt"))
        lines: List[str] = []
        for file in files:
            lines.extend(file.read_text(encoding="utf-8", errors="replace").lower().splitlines())

        self.lines = lines
        logger.info(f"✅ Corpus loaded: {len(files)} files, {len(lines)} lines from {self.path}")

    def count_matches(self, query: str) -> int:
        """Count lines matching ``query``.

        Raises:
            ValueError: If the query is not a valid RE2 regular expression
        """
        if self.lines is None:
            self.load()
        try:
            pattern = re2.compile(query.lower())
        except re2.error as e:
            raise ValueError(f"invalid query {query!r}: {e}") from e

        return sum(1 for line in self.lines if pattern.search(line))
