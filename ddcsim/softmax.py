"""Logit choice probabilities and the integrated value.

With i.i.d. type-1 extreme value shocks of unit scale added to the choice values Q,

    E[max_a (Q_a + eps_a)] = log sum_a exp(Q_a)        (up to Euler's constant)
    Pr(a)                 = exp(Q_a) / sum_a' exp(Q_a')

Both quantities are evaluated after subtracting max_a Q_a, so large values never
overflow. The solver and the simulator go through these two functions only, which
keeps the integrated value and the sampled choices on the same normalization.
"""

from __future__ import annotations

import numpy as np

from .errors import NumericalError


def _check_finite(q: np.ndarray) -> None:
    if not np.all(np.isfinite(q)):
        raise NumericalError("choice values contain NaN or inf")


def logsumexp(q: np.ndarray, axis: int = -1) -> np.ndarray:
    q = np.asarray(q, dtype=float)
    _check_finite(q)
    q_max = np.max(q, axis=axis, keepdims=True)
    out = q_max + np.log(np.sum(np.exp(q - q_max), axis=axis, keepdims=True))
    return np.squeeze(out, axis=axis)


def choice_probabilities(q: np.ndarray, axis: int = -1) -> np.ndarray:
    """Multinomial logit probabilities along `axis`.

    Shift-invariant: choice_probabilities(q + c) == choice_probabilities(q).
    """
    q = np.asarray(q, dtype=float)
    _check_finite(q)
    z = q - np.max(q, axis=axis, keepdims=True)  # stability
    w = np.exp(z)
    return w / np.sum(w, axis=axis, keepdims=True)
