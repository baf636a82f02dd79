"""Run-scoped counters and capped samples for feed contract debugging."""

from __future__ import annotations

from collections import Counter, deque
from collections.abc import Callable
from dataclasses import asdict, dataclass
from functools import wraps

from feedmirror.utils import Now
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)

DIAGNOSTICS_KEY = "feed_diagnostics"
DEFAULT_SAMPLE_CAP = 2000


@dataclass(slots=True)
class PageStats:
    page: int
    entries: int
    events: int
    deduped: int
    dropped: int
    newest: int | None
    oldest: int | None


def _never_raise[**P](method: Callable[P, None]) -> Callable[P, None]:
    @wraps(method)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> None:
        try:
            method(*args, **kwargs)
        except Exception:  # pragma: no cover
            logger.debug("Diagnostics recorder failed in %s", method.__name__, exc_info=True)

    return wrapper


class DiagnosticsRecorder:
    """Passive accumulator owned by one sync run.

    Samples and page records are bounded; once full, the oldest entries are
    dropped first.
    """

    def __init__(self, sample_cap: int = DEFAULT_SAMPLE_CAP) -> None:
        self.sample_cap = max(sample_cap, 1)
        self.started_at = Now.as_milliseconds()
        self.counters: dict[str, Counter[str]] = {}
        self.samples: deque[dict[str, object]] = deque(maxlen=self.sample_cap)
        self.pages: deque[PageStats] = deque(maxlen=self.sample_cap)
        self.stop_reason: str | None = None
        self.error: str | None = None

    @_never_raise
    def count(self, category: str, key: str, amount: int = 1) -> None:
        self.counters.setdefault(category, Counter())[str(key)] += amount

    @_never_raise
    def record_id_source(self, path: str) -> None:
        self.count("id_source", path)

    @_never_raise
    def record_drop(
        self,
        reason: str,
        *,
        page: int,
        drop_type: str | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        self.count("drop_reason", reason)
        self.count("drop_type", drop_type or "unknown")
        sample: dict[str, object] = {"reason": reason, "page": page}
        sample.update(context or {})
        self.samples.append(sample)

    @_never_raise
    def record_page(self, stats: PageStats) -> None:
        self.pages.append(stats)

    @_never_raise
    def record_stop(self, reason: str) -> None:
        self.stop_reason = reason

    @_never_raise
    def record_error(self, message: str) -> None:
        self.error = message

    def counter(self, category: str, key: str) -> int:
        return self.counters.get(category, Counter())[key]

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of the run."""

        return {
            "startedAt": self.started_at,
            "finishedAt": Now.as_milliseconds(),
            "stopReason": self.stop_reason,
            "error": self.error,
            "counters": {name: dict(values) for name, values in self.counters.items()},
            "samples": list(self.samples),
            "pages": [asdict(stats) for stats in self.pages],
        }
