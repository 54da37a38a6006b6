from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

from .logging_utils import get_logger

logger = get_logger(__name__)


def class_prior(Y: np.ndarray) -> np.ndarray:
    return np.asarray(Y, dtype=float).sum(axis=0)


def class_mass_normalize(Y_hat: np.ndarray, prior) -> np.ndarray:
    """Rescale each column of ``Y_hat`` by ``prior / column mass``.

    Columns with zero mass are left at zero.
    """
    Y_hat = np.asarray(Y_hat, dtype=float)
    prior = np.ravel(np.asarray(prior, dtype=float))
    class_mass = Y_hat.sum(axis=0)
    logger.debug("Масса классов: %s, априорные частоты: %s", class_mass, prior)
    scale = np.divide(prior, class_mass, out=np.zeros_like(class_mass), where=class_mass != 0)
    return Y_hat * scale


def _pick(scores: np.ndarray, classes: Sequence[Any]) -> np.ndarray:
    # np.argmax берёт первый максимум, т.е. при равенстве побеждает первый класс
    winner = np.argmax(scores, axis=1)
    return np.array(list(classes[:2]), dtype=object)[winner]


def assign_class(
    Y_hat: np.ndarray,
    classes: Sequence[Any],
    *,
    ids: Optional[Sequence[Any]] = None,
    prior=None,
) -> pd.DataFrame:
    Y_hat = np.asarray(Y_hat, dtype=float)

    preds = pd.DataFrame({
        "prob_class1": Y_hat[:, 0],
        "prob_class2": Y_hat[:, 1],
    })
    if ids is not None:
        preds.insert(0, "id", list(ids))

    if prior is not None:
        Y_cmn = class_mass_normalize(Y_hat, prior)
        preds["cmn_class1"] = Y_cmn[:, 0]
        preds["cmn_class2"] = Y_cmn[:, 1]
        preds["pred_class"] = _pick(Y_cmn, classes)
    else:
        preds["pred_class"] = _pick(Y_hat, classes)

    return preds
