"""Shared test fixtures for the neurodecode test suite.

Fixture Naming Convention
=========================

Synthetic recordings follow the pattern ``{shape}_{dims}d``:
    - track_1d: runs back and forth on a linear track, with 1D place cells
    - arena_2d: raster sweeps of a square arena, with 2D place cells

Each recording fixture returns ``(behavior, spike_train, params)`` ready to
pass to ``decoding_analysis``.
"""

import os

import matplotlib
import numpy as np
import pytest
from hypothesis import Phase, Verbosity, settings

from neurodecode.config import BehaviorData, DecodingParams

matplotlib.use("Agg")  # Non-interactive backend

# =============================================================================
# Hypothesis Configuration for Performance
# =============================================================================
# - "ci": Fast profile for CI pipelines (fewer examples, no deadline)
# - "dev": Standard development profile (moderate examples)
# - "thorough": Full property testing (many examples, for pre-release)

settings.register_profile(
    "ci",
    max_examples=10,
    deadline=None,
    suppress_health_check=[],
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
    verbosity=Verbosity.quiet,
)

settings.register_profile(
    "dev",
    max_examples=25,
    deadline=5000,
    verbosity=Verbosity.normal,
)

settings.register_profile(
    "thorough",
    max_examples=100,
    deadline=None,
    verbosity=Verbosity.verbose,
)

# Set HYPOTHESIS_PROFILE=ci in CI environments for faster tests
_profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
settings.load_profile(_profile)

# =============================================================================
# Test Configuration Constants
# =============================================================================

DEFAULT_SEED = 42
SAMPLE_RATE = 50.0  # Hz
TRACK_LENGTH = 100.0  # cm
N_LAPS = 8
N_PLACE_CELLS = 20
PEAK_RATE = 25.0  # Hz
BASELINE_RATE = 0.5  # Hz


def place_cell_spikes(
    rng: np.random.Generator,
    positions: np.ndarray,
    centers: np.ndarray,
    width: float,
) -> np.ndarray:
    """Poisson spike counts of Gaussian place cells at each sample.

    positions has shape (n_samples, n_dims), centers (n_cells, n_dims).
    """
    sq_dist = ((positions[:, np.newaxis, :] - centers[np.newaxis, :, :]) ** 2).sum(axis=-1)
    rates = PEAK_RATE * np.exp(-0.5 * sq_dist / width**2) + BASELINE_RATE
    return rng.poisson(rates / SAMPLE_RATE).astype(np.float64)


# =============================================================================
# --- Fixtures ---
# =============================================================================


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(DEFAULT_SEED)


@pytest.fixture(scope="module")
def track_1d():
    """Back-and-forth runs on a 1D track with evenly spaced place cells.

    Returns
    -------
    behavior : BehaviorData
        Position, condition (all 1), direction (+1 / -1) and speed. The
        animal stops within 1 cm of either end.
    spike_train : np.ndarray, shape (2000, N_PLACE_CELLS + 1)
        Spike counts. The last cell never fires.
    params : DecodingParams
        2 cm bins, 5 folds, min_spikes=10.
    """
    rng = np.random.default_rng(DEFAULT_SEED)
    lap = np.linspace(0.0, TRACK_LENGTH, 250)
    x = np.concatenate([lap if i % 2 == 0 else lap[::-1] for i in range(N_LAPS)])
    direction = np.concatenate(
        [np.full(lap.size, 1 if i % 2 == 0 else -1) for i in range(N_LAPS)]
    )
    speed = np.full(x.size, 20.0)
    speed[(x < 1.0) | (x > TRACK_LENGTH - 1.0)] = 0.0

    centers = np.linspace(0.0, TRACK_LENGTH, N_PLACE_CELLS)[:, np.newaxis]
    spikes = place_cell_spikes(rng, x[:, np.newaxis], centers, 6.0)
    spike_train = np.column_stack([spikes, np.zeros(x.size)])

    behavior = BehaviorData(
        x=x,
        condition=np.ones(x.size, dtype=int),
        direction=direction,
        speed=speed,
    )
    params = DecodingParams(
        sample_rate=SAMPLE_RATE,
        x_bin_edges=np.arange(0.0, TRACK_LENGTH + 2.0, 2.0),
        n_folds=5,
        min_spikes=10,
    )
    return behavior, spike_train, params


@pytest.fixture(scope="module")
def arena_2d():
    """Two raster sweeps of a 50 x 50 cm arena with a 5 x 5 grid of place cells.

    Folds are interleaved so that every fold's training set covers the
    whole arena.
    """
    rng = np.random.default_rng(DEFAULT_SEED + 1)
    grid = np.linspace(1.0, 49.0, 60)
    xs, ys = np.meshgrid(grid, grid)
    xs[1::2] = xs[1::2, ::-1]
    x = np.tile(xs.ravel(), 2)
    y = np.tile(ys.ravel(), 2)

    cx, cy = np.meshgrid(np.linspace(5.0, 45.0, 5), np.linspace(5.0, 45.0, 5))
    centers = np.column_stack([cx.ravel(), cy.ravel()])
    spike_train = place_cell_spikes(rng, np.column_stack([x, y]), centers, 8.0)

    behavior = BehaviorData(x=x, y=y, speed=np.full(x.size, 10.0))
    params = DecodingParams(
        sample_rate=SAMPLE_RATE,
        x_bin_edges=np.arange(0.0, 55.0, 5.0),
        y_bin_edges=np.arange(0.0, 55.0, 5.0),
        n_folds=4,
        min_spikes=10,
        cv_strategy="interleaved",
    )
    return behavior, spike_train, params
