import numpy as np
import pandas as pd
from sklearn.utils import check_random_state

from .exceptions import InvalidInputError


def generate_crescent_moon(n: int, u: int, sigma: float = 1.0, random_state=None) -> pd.DataFrame:
    """Two noisy crescent moons, ``n`` points per class, the last ``u`` of each unlabelled.

    Columns: ``class_truth``, ``class_observed`` (missing for unlabelled points),
    ``x1``, ``x2``. Classes are ``"+"`` and ``"-"``.
    """
    if u >= n:
        raise InvalidInputError("Число неразмеченных точек u должно быть меньше размера класса n")
    rng = check_random_state(random_state)

    # Первый класс: верхняя дуга
    r = rng.uniform(0, np.pi, n)
    c1 = np.column_stack([
        5 * np.cos(r) - 2.5 + rng.normal(0, sigma, n),
        10 * np.sin(r) - 2.5 + rng.normal(0, sigma, n),
    ])

    # Второй класс: нижняя дуга, сдвинутая навстречу первой
    r = rng.uniform(np.pi, 2 * np.pi, n)
    c2 = np.column_stack([
        5 * np.cos(r) + 2.5 + rng.normal(0, sigma, n),
        10 * np.sin(r) + 2.5 + rng.normal(0, sigma, n),
    ])

    labels = np.array(["+"] * n + ["-"] * n, dtype=object)
    observed = labels.copy()
    observed[n - u:n] = None
    observed[2 * n - u:] = None

    X = np.vstack([c1, c2])
    return pd.DataFrame({
        "class_truth": labels,
        "class_observed": observed,
        "x1": X[:, 0],
        "x2": X[:, 1],
    })
