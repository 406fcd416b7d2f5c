import numpy as np
import pytest

import config
from hydrogen_radial import (
    R_nl, SolverError, calculate_energy, find_radial_nodes, mesh_size, solve_radial,
)


def test_mesh_size_matches_log_grid():
    assert mesh_size(1.0) == 1260
    expected = int((np.log(10.0 * config.RMAX) - config.XMIN) / config.DX)
    assert mesh_size(10.0) == expected


def test_solution_grid_and_shapes():
    sol = solve_radial(1.0, 1, 0)
    assert len(sol) == 1261
    assert sol.values.shape == sol.radii.shape == sol.potential.shape
    assert np.all(np.diff(sol.radii) > 0)
    assert sol.radii[0] == pytest.approx(np.exp(config.XMIN))
    assert sol.label == "1s"


def test_solution_arrays_are_read_only():
    sol = solve_radial(1.0, 1, 0)
    with pytest.raises(ValueError):
        sol.radii[0] = 0.0


@pytest.mark.parametrize("zeta,n,l", [(1.0, 1, 0), (1.0, 2, 1), (2.0, 2, 0), (1.0, 3, 2)])
def test_eigenvalue_matches_bohr_energy(zeta, n, l):
    sol = solve_radial(zeta, n, l)
    E_ry, _ = calculate_energy(n, zeta)
    assert sol.eigenvalue == pytest.approx(E_ry, abs=1e-4)


@pytest.mark.parametrize("n,l", [(1, 0), (2, 1)])
def test_radial_function_matches_analytic(n, l):
    sol = solve_radial(1.0, n, l)
    mask = sol.radii < 30.0
    analytic = R_nl(sol.radii[mask], n, l, 1.0)
    assert np.allclose(sol.values[mask], analytic, atol=1e-3 * np.max(np.abs(analytic)))


def test_effective_potential_includes_centrifugal_term():
    sol = solve_radial(1.0, 2, 1)
    r = sol.radii
    assert np.allclose(sol.potential, -2.0 / r + 2.0 / r ** 2)


def test_invalid_quantum_numbers_raise_solver_error():
    with pytest.raises(SolverError):
        solve_radial(1.0, 1, 1)


def test_radial_nodes():
    assert find_radial_nodes(1, 0, 1.0).size == 0
    nodes = find_radial_nodes(2, 0, 1.0)
    assert nodes == pytest.approx([2.0])
