# harmonic_ssl/__init__.py
from .harmonic_function import predict, predict_graph
from .preprocessing import PreparedInput, prepare_input_data, labelled_first_order, label_matrix
from .graph import construct_graph, nearest_neighbour_indicator, pairwise_distance_matrix
from .weighting import RadialBasis, radial_basis
from .solver import SolverConfig, clamp_probabilities, solve_harmonic_function
from .assign import assign_class, class_mass_normalize, class_prior
from .data_generation import generate_crescent_moon
from .exceptions import (
    HarmonicSSLError,
    InternalError,
    InvalidInputError,
    SingularSystemError,
)
