"""K-fold partitioning of sample indices.

Functions
---------
crossval_partition : Split ``range(n)`` into k train/test folds

Notes
-----
Partitions are deterministic: the same ``(n, k, strategy)`` always gives the
same folds, so decoding errors are reproducible across runs.

Spike counts are usually smoothed over the decoding window before the
samples are partitioned. Samples next to a fold boundary therefore share
spikes across the train/test split. This is an accepted approximation; the
partition itself only guarantees index disjointness.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np
from numpy.typing import NDArray

__all__ = [
    "Fold",
    "crossval_partition",
]


@dataclass(frozen=True, eq=False)
class Fold:
    """One train/test split of k-fold cross-validation.

    Attributes
    ----------
    train : NDArray[np.int64]
        Sorted training indices, the complement of ``test`` in ``range(n)``.
    test : NDArray[np.int64]
        Sorted held-out indices.
    """

    train: NDArray[np.int64]
    test: NDArray[np.int64]

    def __post_init__(self) -> None:
        for name in ("train", "test"):
            arr = np.array(getattr(self, name), dtype=np.int64)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @property
    def n_train(self) -> int:
        """Number of training indices."""
        return int(self.train.size)

    @property
    def n_test(self) -> int:
        """Number of held-out indices."""
        return int(self.test.size)


def crossval_partition(
    n: int,
    k: int,
    *,
    strategy: Literal["contiguous", "interleaved"] = "contiguous",
) -> list[Fold]:
    """Split ``range(n)`` into ``k`` train/test folds.

    Every index appears in exactly one test set; each fold's training set is
    the complement of its test set.

    Parameters
    ----------
    n : int
        Number of samples to partition.
    k : int
        Number of folds, ``2 <= k <= n``.
    strategy : {"contiguous", "interleaved"}, default="contiguous"
        - "contiguous": consecutive blocks whose sizes differ by at most
          one, larger blocks first.
        - "interleaved": fold ``i`` tests indices ``i, i + k, i + 2k, ...``.

    Returns
    -------
    list[Fold]
        ``k`` folds in order.

    Raises
    ------
    ValueError
        [E2002] If ``k < 2`` or ``k > n``. Also if ``strategy`` is unknown.

    Examples
    --------
    >>> folds = crossval_partition(10, 5)
    >>> [fold.test.tolist() for fold in folds]
    [[0, 1], [2, 3], [4, 5], [6, 7], [8, 9]]
    >>> crossval_partition(5, 2, strategy="interleaved")[1].test.tolist()
    [1, 3]
    """
    if strategy not in ("contiguous", "interleaved"):
        raise ValueError(
            f"strategy must be 'contiguous' or 'interleaved', got {strategy!r}."
        )
    if k < 2 or k > n:
        raise ValueError(
            f"[E2002] Number of folds must satisfy 2 <= k <= n, got k={k} "
            f"for n={n} samples.\n"
            "  WHY: Each fold needs at least one held-out sample and one "
            "training sample.\n"
            "  HOW: Lower n_folds or relax the training-sample selection."
        )

    indices = np.arange(n, dtype=np.int64)
    if strategy == "contiguous":
        from sklearn.model_selection import KFold

        # Unshuffled KFold gives the first n % k folds one extra sample.
        return [
            Fold(train=train, test=test)
            for train, test in KFold(n_splits=k).split(indices)
        ]

    folds = []
    for i in range(k):
        in_test = np.zeros(n, dtype=bool)
        in_test[i::k] = True
        folds.append(Fold(train=indices[~in_test], test=indices[in_test]))
    return folds
