"""
Visualization session state and the parameter controller that keeps the
point cloud in sync with (zeta, n, l).
"""

import logging
from dataclasses import dataclass, replace, asdict
from typing import Callable, Optional

import numpy as np

import config
from hydrogen_radial import SolverError, solve_radial
from shell_cloud import (
    create_point_cloud, layout_shells, sample_shells, shell_intensities, update_point_cloud,
)

logger = logging.getLogger(__name__)

FIELDS = ("zeta", "n", "l")


class InvalidQuantumState(ValueError):
    """Proposed quantum numbers cannot be solved (n <= l or out of range)."""


@dataclass(frozen=True)
class QuantumParameters:
    zeta: float = config.DEFAULT_ZETA
    n: int = config.DEFAULT_N
    l: int = config.DEFAULT_L

    def as_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    parameters: QuantumParameters
    reason: str = ""


def validate_parameters(params, n_max=None):
    """Raise InvalidQuantumState unless params lie in the control ranges with n > l"""
    n_max = config.N_MAX if n_max is None else n_max
    if not config.ZETA_MIN <= params.zeta <= config.ZETA_MAX:
        raise InvalidQuantumState(
            f"zeta={params.zeta} outside [{config.ZETA_MIN}, {config.ZETA_MAX}]")
    if not 1 <= params.n <= n_max:
        raise InvalidQuantumState(f"n={params.n} outside [1, {n_max}]")
    if not 0 <= params.l <= n_max - 1:
        raise InvalidQuantumState(f"l={params.l} outside [0, {n_max - 1}]")
    if params.n <= params.l:
        raise InvalidQuantumState(f"n={params.n} must be greater than l={params.l}")


def coerce_value(field, value):
    """Convert a raw control value to the type of `field`"""
    if field not in FIELDS:
        raise ValueError(f"Unknown parameter '{field}', expected one of {FIELDS}")
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number, got {value!r}")
    if field == "zeta":
        return float(value)
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"{field} must be an integer, got {value!r}")
    return int(number)


@dataclass
class VisualizationSession:
    """Everything one viewer owns: parameters, the displayed cloud and the redraw hook"""
    parameters: QuantumParameters
    layer_count: int = config.LAYER_COUNT
    polar_steps: int = config.POLAR_STEPS
    azimuth_steps: int = config.AZIMUTH_STEPS
    point_size: float = config.POINT_SIZE
    on_redraw: Optional[Callable[[], None]] = None
    cloud: object = None
    solution: object = None
    shells: object = None
    revision: int = 0

    @property
    def buffer_length(self):
        return self.layer_count * self.polar_steps * self.azimuth_steps * 3

    @property
    def positions(self):
        return None if self.cloud is None else self.cloud.positions

    def request_redraw(self):
        """Render boundary: tell the renderer the cloud changed"""
        self.revision += 1
        if self.on_redraw is not None:
            self.on_redraw()


def check_solution(solution):
    """Raise SolverError when a solver hands back non-finite data"""
    radii = np.asarray(solution.radii, dtype=np.float64)
    values = np.asarray(solution.values, dtype=np.float64)
    if not (np.all(np.isfinite(radii)) and np.all(np.isfinite(values))
            and np.isfinite(solution.eigenvalue)):
        raise SolverError("Solver returned non-finite radii, values or eigenvalue")


def build_positions(session, params, solve):
    """solve -> sample -> layout; touches nothing in `session`"""
    solution = solve(params.zeta, params.n, params.l)
    check_solution(solution)
    shells = sample_shells(solution, session.layer_count)
    positions = layout_shells(shells, session.polar_steps, session.azimuth_steps)
    intensities = shell_intensities(shells, session.polar_steps, session.azimuth_steps)
    return solution, shells, positions, intensities


class ParameterController:
    """
    Validates parameter edits and re-runs the pipeline for accepted ones.
    Each edit replaces one field and re-reads the other two from the committed state.
    """

    def __init__(self, session, solve=solve_radial, n_max=None):
        self.session = session
        self.solve = solve
        self.n_max = config.N_MAX if n_max is None else n_max

    @property
    def parameters(self):
        return self.session.parameters

    def start(self):
        """Build the first cloud from the session's initial parameters"""
        params = self.session.parameters
        validate_parameters(params, self.n_max)
        self._commit(params, *build_positions(self.session, params, self.solve))
        return self.session.cloud

    def propose_change(self, field, value):
        """
        Apply one control edit. Returns a rejected ValidationResult (and leaves
        parameters, cloud and revision untouched) when the edit is invalid or
        the solver fails.
        """
        committed = self.session.parameters
        candidate = replace(committed, **{field: coerce_value(field, value)})

        try:
            validate_parameters(candidate, self.n_max)
        except InvalidQuantumState as exc:
            logger.warning("Rejected %s=%r: %s", field, value, exc)
            return ValidationResult(False, committed, str(exc))

        try:
            results = build_positions(self.session, candidate, self.solve)
        except SolverError as exc:
            logger.error("Solver failed for %s: %s", candidate, exc)
            return ValidationResult(False, committed, f"solver failed: {exc}")

        self._commit(candidate, *results)
        return ValidationResult(True, candidate)

    def _commit(self, params, solution, shells, positions, intensities):
        session = self.session
        if session.cloud is None:
            session.cloud = create_point_cloud(positions, session.point_size, intensities,
                                               expected_length=session.buffer_length)
        else:
            update_point_cloud(session.cloud, positions, session.point_size, intensities)
        session.parameters = params
        session.solution = solution
        session.shells = shells
        logger.info("Point cloud rebuilt for zeta=%.2f n=%d l=%d (%d shells, stride %d)",
                    params.zeta, params.n, params.l, len(shells), shells.stride)
        session.request_redraw()
