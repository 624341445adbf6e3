"""End-of-test aggregate report."""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Union


@dataclass
class AggregateReport:
    """Summary of one load test run.

    ``counts`` holds requests per term (successes and failures);
    ``failures_by_term`` the failed subset.
    """
    total_requests: int = 0
    total_failures: int = 0
    counts: Dict[str, int] = field(default_factory=dict)
    failures_by_term: Dict[str, int] = field(default_factory=dict)
    duration_seconds: float = 0.0  # observed wall-clock time
    concurrency: int = 0  # virtual users requested
    active_users: int = 0  # virtual users that ran until the end
    failed_users: int = 0  # virtual users that failed to start
    died_users: int = 0  # virtual users that stopped on an unexpected error
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def successes(self) -> int:
        return self.total_requests - self.total_failures

    @property
    def requests_per_second(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return self.total_requests / self.duration_seconds

    @property
    def degraded(self) -> bool:
        """True when fewer virtual users ran than were requested."""
        return self.active_users < self.concurrency

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_requests": self.total_requests,
            "total_failures": self.total_failures,
            "successes": self.successes,
            "counts": dict(self.counts),
            "failures_by_term": dict(self.failures_by_term),
            "duration_seconds": self.duration_seconds,
            "requests_per_second": self.requests_per_second,
            "concurrency": self.concurrency,
            "active_users": self.active_users,
            "failed_users": self.failed_users,
            "died_users": self.died_users,
            "started_at": self.started_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregateReport":
        """Create from dictionary."""
        return cls(
            total_requests=data["total_requests"],
            total_failures=data["total_failures"],
            counts=dict(data["counts"]),
            failures_by_term=dict(data.get("failures_by_term", {})),
            duration_seconds=data["duration_seconds"],
            concurrency=data["concurrency"],
            active_users=data["active_users"],
            failed_users=data.get("failed_users", 0),
            died_users=data.get("died_users", 0),
            started_at=datetime.fromisoformat(data["started_at"]),
        )

    def write_json(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.write_text(json.dumps(self.to_dict(), indent=2) + "\n")
        return path

    def _user_losses(self) -> str:
        losses = []
        if self.failed_users:
            losses.append(f"{self.failed_users} failed to start")
        if self.died_users:
            losses.append(f"{self.died_users} stopped on error")
        return f" ({', '.join(losses)})" if losses else ""

    def format_summary(self) -> str:
        """Human-readable summary for the console."""
        lines = [
            f"Duration:        {self.duration_seconds:.1f}s",
            f"Virtual users:   {self.active_users}/{self.concurrency}{self._user_losses()}",
            f"Requests:        {self.total_requests} ({self.requests_per_second:.2f} req/s)",
            f"Failures:        {self.total_failures}",
            "",
            f"{'term':<20}{'requests':>10}{'failures':>10}",
        ]
        for term, count in sorted(self.counts.items(), key=lambda item: (-item[1], item[0])):
            failures = self.failures_by_term.get(term, 0)
            lines.append(f"{term:<20}{count:>10}{failures:>10}")
        return "\n".join(lines)
