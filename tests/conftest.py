import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def two_clusters():
    """Two labelled pairs far apart and one unlabelled point next to the first pair."""
    return pd.DataFrame({
        "x1": [0.0, 0.0, 10.0, 10.0, 0.0],
        "x2": [0.0, 1.0, 10.0, 11.0, 2.0],
        "diagnosis": ["a", "a", "b", "b", None],
    })


def unbalanced_frame(minority_first=False):
    """90 labelled 'A', 10 labelled 'B' and an unlabelled point between them.

    The 'A' cluster is a chain on the negative x axis interleaved with 60
    unlabelled points; the point 'mid' at x=4.9 sits between the outermost 'A'
    (x=4) and the outermost 'B' (x=6), slightly closer to 'A'.
    """
    a = [-0.02 * i for i in range(89)] + [4.0]
    b = [6.0] + [10.0 + 0.02 * j for j in range(9)]
    u = [-0.01 - 0.02 * i for i in range(60)] + [4.9]

    frame_a = pd.DataFrame({"x": a, "label": "A"})
    frame_b = pd.DataFrame({"x": b, "label": "B"})
    frame_u = pd.DataFrame({"x": u, "label": None})
    frame_u["name"] = [f"u{i}" for i in range(60)] + ["mid"]

    parts = [frame_b, frame_a] if minority_first else [frame_a, frame_b]
    df = pd.concat(parts + [frame_u], ignore_index=True)
    df["y"] = 0.0
    df["name"] = df["name"].fillna("labelled")
    df["label"] = df["label"].astype(object).where(df["label"].notna(), None)
    return df


@pytest.fixture
def unbalanced():
    return unbalanced_frame()


@pytest.fixture
def make_unbalanced():
    return unbalanced_frame


@pytest.fixture
def rng():
    return np.random.default_rng(12345)
