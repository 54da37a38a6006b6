import numpy as np


class HarmonicSSLError(Exception):
    """Base class for errors raised by harmonic_ssl."""


class InvalidInputError(HarmonicSSLError, ValueError):
    """Malformed data or configuration, detected before any computation."""


class SingularSystemError(HarmonicSSLError, np.linalg.LinAlgError):
    """The unlabelled block of the Laplacian cannot be solved."""


class InternalError(HarmonicSSLError, RuntimeError):
    """An internal invariant was violated; the result cannot be trusted."""
