from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .exceptions import InvalidInputError
from .logging_utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PreparedInput:
    """Features and labels reordered so that labelled rows come first.

    ``order[i]`` is the original row position of reordered row ``i``; the first
    ``n_labelled`` entries are the labelled rows.
    """

    X: np.ndarray
    Y: np.ndarray
    classes: Tuple[Any, Any]
    ids: np.ndarray
    order: np.ndarray
    n_labelled: int

    def __iter__(self) -> Iterator:
        # (X, Y, classes, ids)
        return iter((self.X, self.Y, self.classes, self.ids))


def labelled_first_order(unlabelled_mask) -> np.ndarray:
    mask = np.asarray(unlabelled_mask, dtype=bool)
    return np.concatenate([np.flatnonzero(~mask), np.flatnonzero(mask)])


def distinct_classes(labels) -> Tuple[Any, ...]:
    # pd.unique keeps first-encountered order
    return tuple(pd.unique(pd.Series(labels, dtype=object)))


def label_matrix(labels, classes: Sequence[Any]) -> np.ndarray:
    labels = np.asarray(labels, dtype=object)
    Y = np.zeros((len(labels), len(classes)), dtype=float)
    for j, cls in enumerate(classes):
        Y[:, j] = labels == cls
    Y.setflags(write=False)
    return Y


def check_two_classes(classes: Sequence[Any]) -> None:
    if len(classes) < 2:
        raise InvalidInputError(
            f"Среди размеченных наблюдений найдено классов: {len(classes)}, нужно ровно 2"
        )
    if len(classes) > 2:
        raise InvalidInputError(
            f"Поддерживаются только два класса, найдено {len(classes)}: {list(classes)}"
        )


def _feature_matrix(data: pd.DataFrame, features: Sequence[str]) -> np.ndarray:
    if len(features) == 0:
        raise InvalidInputError("Не выбрано ни одного признака")
    for col in features:
        if pd.api.types.is_bool_dtype(data[col]) or not pd.api.types.is_numeric_dtype(data[col]):
            raise InvalidInputError(f"Признак '{col}' не является числовым")
    X = data[list(features)].to_numpy(dtype=float, na_value=np.nan)
    if np.isnan(X).any():
        raise InvalidInputError("Признаки содержат пропущенные значения")
    return X


def prepare_input_data(
    data: pd.DataFrame,
    target: str,
    features: Sequence[str],
    id: Optional[str] = None,
) -> PreparedInput:
    if isinstance(features, str):
        features = [features]
    missing = [c for c in [target, *features, *([id] if id is not None else [])] if c not in data.columns]
    if missing:
        raise InvalidInputError(f"Колонки не найдены: {missing}")
    if len(data) < 2:
        raise InvalidInputError("Нужно как минимум два наблюдения")

    u_mask = pd.isna(data[target]).to_numpy()

    if id is None:
        ids = np.arange(1, len(data) + 1)[u_mask]
    else:
        ids = data.loc[u_mask, id].to_numpy()

    labels = data.loc[~u_mask, target].to_numpy(dtype=object)
    classes = distinct_classes(labels)
    check_two_classes(classes)

    X = _feature_matrix(data, features)
    order = labelled_first_order(u_mask)

    logger.info(
        "Подготовлено %d наблюдений: %d размеченных, %d неразмеченных",
        len(order), len(labels), int(u_mask.sum()),
    )
    return PreparedInput(
        X=X[order],
        Y=label_matrix(labels, classes),
        classes=(classes[0], classes[1]),
        ids=ids,
        order=order,
        n_labelled=len(labels),
    )
