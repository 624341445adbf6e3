from abc import ABC, abstractmethod

class CorpusService(ABC):
    @property
    @abstractmethod
    def loaded(self) -> bool:
        """Whether the corpus has been read."""
        pass

    @abstractmethod
    def load(self) -> None:
        """Load the corpus text into memory."""
        pass

    @abstractmethod
    def count_matches(self, query: str) -> int:
        """Count corpus lines matching the query."""
        pass
