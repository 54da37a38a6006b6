import numpy as np

from .exceptions import InvalidInputError


def radial_basis(r, epsilon: float):
    # w(r) = exp(-(r / ε)^2)
    return np.exp(-np.square(np.asarray(r, dtype=float) / epsilon))


class RadialBasis:
    """Gaussian kernel of distance, used to weight graph edges."""

    def __init__(self, epsilon: float = 2.0):
        if not epsilon > 0:
            raise InvalidInputError("epsilon должен быть положительным")
        self.epsilon = float(epsilon)

    def __call__(self, distances):
        return radial_basis(distances, self.epsilon)

    def __repr__(self) -> str:
        return f"RadialBasis(epsilon={self.epsilon})"
