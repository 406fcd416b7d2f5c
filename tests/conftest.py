import os
import sys

import numpy as np
import pytest

# Add the repository root to the path for all tests
root_path = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if root_path not in sys.path:
    sys.path.insert(0, root_path)

from hydrogen_radial import RadialSolution, SolverError  # noqa: E402


def make_solution(n_samples, zeta=1.0, n=1, l=0):
    radii = np.linspace(0.1, 10.0, n_samples) * zeta
    values = np.exp(-radii) * n + l
    return RadialSolution(radii=radii, values=values, potential=-2.0 * zeta / radii,
                          eigenvalue=-zeta ** 2 / n ** 2, zeta=zeta, n=n, l=l)


class FakeSolver:
    """Deterministic stand-in for solve_radial; records calls, can be told to fail"""

    def __init__(self, n_samples=200):
        self.n_samples = n_samples
        self.calls = []
        self.fail = False
        self.non_finite = False

    def __call__(self, zeta, n, l):
        self.calls.append((zeta, n, l))
        if self.fail:
            raise SolverError("not converged")
        solution = make_solution(self.n_samples, zeta, n, l)
        if self.non_finite:
            radii = solution.radii.copy()
            radii[-1] = np.inf
            return RadialSolution(radii=radii, values=solution.values, potential=solution.potential,
                                  eigenvalue=float("nan"), zeta=zeta, n=n, l=l)
        return solution


@pytest.fixture
def fake_solver():
    return FakeSolver()


@pytest.fixture
def solution_factory():
    return make_solution
