from __future__ import annotations


def _format_eta_label(eta_ms: float | None) -> str:
    """Format an ETA as ``"Xm YYs"`` or ``"Ys"``; None reads as ``"estimating"``."""

    if eta_ms is None:
        return "estimating"
    seconds = int(max(0.0, eta_ms) / 1000 + 0.5)
    minutes, seconds = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}m {seconds:02d}s"
    return f"{seconds}s"
