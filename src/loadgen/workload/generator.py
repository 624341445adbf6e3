"""Request generation: pick a vocabulary term and build the request URL."""
import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from src.loadgen.core.config import validate_endpoint
from src.loadgen.core.errors import ConfigurationError


@dataclass(frozen=True)
class RequestDescriptor:
    """One request to issue: the chosen term and the URL carrying it."""
    term: str
    url: str


class RequestGenerator:
    """Builds ``<endpoint>?q=<term>`` requests from a fixed vocabulary.

    The random source is injected so a seeded ``random.Random`` makes
    the sequence of terms reproducible.
    """

    def __init__(
        self,
        vocabulary: Sequence[str],
        target_endpoint: str,
        rng: Optional[random.Random] = None,
        param: str = "q",
    ):
        """Initialize the generator.

        Args:
            vocabulary: Candidate query terms, must not be empty
            target_endpoint: Absolute http(s) base URL
            rng: Random source (a fresh unseeded one by default)
            param: Name of the query parameter carrying the term

        Raises:
            ConfigurationError: If the vocabulary is empty or the endpoint invalid
        """
        if not vocabulary:
            raise ConfigurationError("Vocabulary must contain at least one term")
        self.vocabulary: Tuple[str, ...] = tuple(vocabulary)
        self.endpoint = validate_endpoint(target_endpoint)
        self.rng = rng or random.Random()
        self.param = param

    def generate(self) -> RequestDescriptor:
        """Draw a term uniformly at random and build its request URL."""
        term = self.vocabulary[self.rng.randrange(len(self.vocabulary))]
        url = self.endpoint.copy_set_param(self.param, term)
        return RequestDescriptor(term=term, url=str(url))


def generate(
    vocabulary: Sequence[str],
    target_endpoint: str,
    rng: Optional[random.Random] = None,
) -> Tuple[str, str]:
    """Return ``(term, url)`` for a single random request."""
    descriptor = RequestGenerator(vocabulary, target_endpoint, rng).generate()
    return descriptor.term, descriptor.url
