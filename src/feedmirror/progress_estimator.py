"""Live ETA estimates for a feed sync run.

Two signals are combined. The span estimate assumes history is spread evenly
over time and compares how much of ``[last_seen, newest]`` the run has walked.
The probe estimate uses the page count found by `LookaheadProbe`. Neither
estimate influences when the loop stops.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from feedmirror.format_eta_label__progress import _format_eta_label
from feedmirror.lookahead_probe import ProbeHandle, ProbeStatus
from feedmirror.utils import Now


def _span_progress(newest: int | None, oldest: int | None, baseline: int | None) -> float | None:
    if not baseline or newest is None or oldest is None or newest <= baseline:
        return None
    progress = (newest - oldest) / (newest - baseline)
    return min(max(progress, 0.0), 1.0)


@dataclass(slots=True)
class ProgressEstimator:
    baseline: int | None
    max_pages: int
    clock: Callable[[], int] = Now.as_milliseconds
    started_at: int = 0
    newest: int | None = None
    oldest: int | None = None
    probe: ProbeHandle | None = None
    _pages_done: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        if not self.started_at:
            self.started_at = self.clock()

    def attach_probe(self, probe: ProbeHandle) -> None:
        self.probe = probe

    def observe_page(self, newest: int | None, oldest: int | None) -> None:
        self._pages_done += 1
        if newest is not None:
            self.newest = newest if self.newest is None else max(self.newest, newest)
        if oldest is not None:
            self.oldest = oldest if self.oldest is None else min(self.oldest, oldest)

    @property
    def pages_done(self) -> int:
        return self._pages_done

    def elapsed_ms(self) -> int:
        return max(0, self.clock() - self.started_at)

    def span_progress(self) -> float | None:
        return _span_progress(self.newest, self.oldest, self.baseline)

    def span_eta_ms(self) -> float | None:
        progress = self.span_progress()
        if not progress:
            return None
        return self.elapsed_ms() * (1 - progress) / progress

    def probe_eta_ms(self) -> float | None:
        """ETA from the probe's page count; None until the probe is done."""

        if self.probe is None or self._pages_done == 0:
            return None
        snapshot = self.probe.snapshot()
        if snapshot.status is not ProbeStatus.DONE:
            return None
        total_pages = min(1 + snapshot.pages, self.max_pages)
        remaining = max(0, total_pages - self._pages_done)
        return self.elapsed_ms() / self._pages_done * remaining

    def _probe_pending(self) -> bool:
        return self.probe is not None and self.probe.snapshot().status is ProbeStatus.RUNNING

    def eta_ms(self) -> float | None:
        """Best available ETA, or None while still estimating."""

        probe_eta = self.probe_eta_ms()
        if probe_eta is not None:
            return probe_eta
        span_eta = self.span_eta_ms()
        if span_eta is not None:
            return span_eta
        if self._probe_pending() or self._pages_done == 0:
            return None
        average = self.elapsed_ms() / self._pages_done
        return average * max(0, self.max_pages - self._pages_done)

    def eta_label(self) -> str:
        return _format_eta_label(self.eta_ms())
