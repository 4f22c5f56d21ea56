"""
Event-conditioned analysis for neurodecode.

This module aligns per-sample signals, such as decoded trajectories, on
discrete events such as sharp-wave ripple peaks.

Public API
----------
Result Dataclasses:
    TriggeredResult : Snippets aligned on events, with mean and SEM

Alignment:
    event_window : Symmetric sample offsets around an event
    triggered_snippets : Signal snippets around events
    ripple_triggered_decoding : Decoded trajectory around ripple peaks

Visualization:
    plot_triggered : Plot the event-triggered mean

Examples
--------
>>> from neurodecode.events import ripple_triggered_decoding
>>> triggered = ripple_triggered_decoding(  # doctest: +SKIP
...     result, ripple_peak_mask, sample_rate=50.0, half_width=0.2
... )
>>> triggered.mean  # doctest: +SKIP
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

# Mapping of public API names to "module_path:attribute_name"
_LAZY_IMPORTS: dict[str, str] = {
    "TriggeredResult": "neurodecode.events.triggered:TriggeredResult",
    "event_window": "neurodecode.events.triggered:event_window",
    "plot_triggered": "neurodecode.events.triggered:plot_triggered",
    "ripple_triggered_decoding": "neurodecode.events.triggered:ripple_triggered_decoding",
    "triggered_snippets": "neurodecode.events.triggered:triggered_snippets",
}


def __getattr__(name: str) -> Any:
    """Lazy import public API functions."""
    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_path, attr_name = _LAZY_IMPORTS[name].split(":")
    module = import_module(module_path)
    value = getattr(module, attr_name)

    globals()[name] = value
    return value


__all__ = [
    "TriggeredResult",
    "event_window",
    "plot_triggered",
    "ripple_triggered_decoding",
    "triggered_snippets",
]
