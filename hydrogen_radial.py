"""
HYDROGEN-LIKE ATOM RADIAL SOLVER
Numerov solution of the radial Schroedinger equation on a logarithmic grid
(Rydberg atomic units), plus the analytic hydrogen-like reference formulas.
"""

import logging
from dataclasses import dataclass
from math import copysign, factorial

import numpy as np
from scipy.special import eval_genlaguerre
from scipy.special import genlaguerre as scipy_genlaguerre

import config

logger = logging.getLogger(__name__)

a0 = 1.0
RYDBERG_TO_EV = 13.605693122994

ORBITAL_LABELS = {0: 's', 1: 'p', 2: 'd', 3: 'f', 4: 'g', 5: 'h', 6: 'i', 7: 'j'}


class SolverError(RuntimeError):
    """The radial solver could not produce a valid solution."""


@dataclass(frozen=True)
class RadialSolution:
    """Output of one solve: grid radii, radial function, effective potential and eigenvalue (Ry)."""
    radii: np.ndarray
    values: np.ndarray
    potential: np.ndarray
    eigenvalue: float
    zeta: float
    n: int
    l: int

    def __len__(self):
        return len(self.radii)

    @property
    def label(self):
        return f"{self.n}{ORBITAL_LABELS.get(self.l, '?')}"


def mesh_size(zeta, xmin=None, dx=None, rmax=None):
    """Index of the last grid point; the grid holds mesh_size + 1 samples"""
    xmin = config.XMIN if xmin is None else xmin
    dx = config.DX if dx is None else dx
    rmax = config.RMAX if rmax is None else rmax
    return int((np.log(zeta * rmax) - xmin) / dx)


def do_mesh(mesh, zmesh, xmin, dx):
    """
    Logarithmic radial grid x = xmin + i*dx, r = exp(x)/zmesh

    Returns:
    --------
    r, sqr, r2 : ndarray
        Radii, their square roots and their squares (mesh + 1 points each)
    """
    x = xmin + dx * np.arange(mesh + 1, dtype=np.float64)
    r = np.exp(x) / zmesh
    logger.debug("Radial grid: dx=%.6f, xmin=%.6f, zmesh=%.6f, mesh=%d, r(0)=%.6f, r(mesh)=%.6f",
                 dx, xmin, zmesh, mesh, r[0], r[mesh])
    return r, np.sqrt(r), r * r


def init_pot(zeta, r):
    """Coulomb potential of a point nucleus, V(r) = -2 zeta / r (Ry)"""
    return -2.0 * zeta / r


def solve_sheq(n, l, zeta, mesh, dx, r, sqr, r2, vpot, eps=None, n_iter=None):
    """
    Solve the radial equation by Numerov shooting with bisection on the node
    count and a perturbative cusp correction once the node count is right.

    Returns:
    --------
    e : float
        Eigenvalue (Ry)
    y : ndarray
        Normalized solution of the transformed equation, y = sqrt(r) R(r)
    """
    eps = config.SOLVER_EPS if eps is None else eps
    n_iter = config.SOLVER_MAX_ITER if n_iter is None else n_iter

    ddx12 = dx * dx / 12.0
    sqlhf = (l + 0.5) ** 2
    x2l2 = 2.0 * l + 2.0

    # very rough initial bounds on the eigenvalue
    eup = float(vpot[mesh])
    elw = min(eup, float(np.min(sqlhf / r2 + vpot)))
    if eup - elw < eps:
        raise SolverError(f"Lower and upper bounds are equal: eup={eup:.16e}, elw={elw:.16e}")

    e = (elw + eup) * 0.5
    nodes = n - l - 1
    y = np.zeros(mesh + 1, dtype=np.float64)

    de = 1e10
    ncross = 0
    icl = -1
    kkk = 0
    while kkk < n_iter and abs(de) > eps:
        # f < 0 classically allowed, f > 0 forbidden
        f = ddx12 * (sqlhf + r2 * (vpot - e))
        # an exact zero would hide a change of sign
        f[1:][f[1:] == 0.0] = 1e-20
        crossings = np.nonzero(np.signbit(f[1:]) != np.signbit(f[:-1]))[0]
        icl = int(crossings[-1]) + 1 if crossings.size else -1
        if icl < 0 or icl >= mesh - 2:
            raise SolverError(f"Last change of sign too far: icl={icl}, mesh={mesh}")

        f = 1.0 - f
        y[:] = 0.0

        y[0] = r[0] ** (l + 1) * (1.0 - zeta * 2.0 * r[0] / x2l2) / sqr[0]
        y[1] = r[1] ** (l + 1) * (1.0 - zeta * 2.0 * r[1] / x2l2) / sqr[1]

        # outward integration up to the classical turning point
        ncross = 0
        for i in range(1, icl):
            y[i + 1] = ((12.0 - f[i] * 10.0) * y[i] - f[i - 1] * y[i - 1]) / f[i + 1]
            if y[i] != copysign(y[i], y[i + 1]):
                ncross += 1
        fac = y[icl]

        if ncross != nodes:
            if ncross > nodes:
                eup = e
            else:
                elw = e
            e = (eup + elw) * 0.5
        else:
            # inward integration assuming y(mesh+1) = 0 and y(mesh) = dx
            y[mesh] = dx
            y[mesh - 1] = (12.0 - f[mesh] * 10.0) * y[mesh] / f[mesh - 1]
            for i in range(mesh - 1, icl, -1):
                y[i - 1] = ((12.0 - f[i] * 10.0) * y[i] - f[i + 1] * y[i + 1]) / f[i - 1]
                if y[i - 1] > 1e10:
                    y[i - 1:] /= y[i - 1]

            # match at the turning point, then normalize
            fac /= y[icl]
            y[icl:] *= fac
            norm = np.sqrt(np.sum(y[1:] ** 2 * r2[1:] * dx))
            y /= norm

            i = icl
            ycusp = (y[i - 1] * f[i - 1] + f[i + 1] * y[i + 1] + f[i] * 10.0 * y[i]) / 12.0
            dfcusp = f[i] * (y[i] / ycusp - 1.0)
            de = float(dfcusp / ddx12 * ycusp * ycusp * dx)
            if de > 0.0:
                elw = e
            if de < 0.0:
                eup = e
            e = max(min(e + de, eup), elw)
        kkk += 1

    if abs(de) > eps:
        if ncross != nodes:
            detail = (f"ncross={ncross} nodes={nodes} icl={icl} "
                      f"e={e:.8e} elw={elw:.8e} eup={eup:.8e}")
        else:
            detail = f"e={e:.8e} de={de:.8e}"
        raise SolverError(f"Not converged after {n_iter} iterations ({detail})")

    logger.debug("Convergence achieved at iter # %d, de = %.8e", kkk, de)
    return e, y


def solve_radial(zeta, n, l):
    """
    Solve the radial problem for a hydrogen-like atom of nuclear charge zeta.

    Parameters:
    -----------
    zeta : float
        Nuclear charge (zeta >= 1)
    n : int
        Principal quantum number (n >= 1)
    l : int
        Angular momentum quantum number (0 <= l < n)

    Returns:
    --------
    RadialSolution
        Grid radii, radial function R(r), effective potential and eigenvalue.
        The arrays are read-only.
    """
    if n - l - 1 < 0:
        raise SolverError(f"Invalid quantum numbers: n={n}, l={l}. Must have n > l.")
    if zeta <= 0:
        raise SolverError(f"Nuclear charge must be positive, got zeta={zeta}")

    zmesh = zeta
    mesh = mesh_size(zmesh)
    r, sqr, r2 = do_mesh(mesh, zmesh, config.XMIN, config.DX)
    vpot = init_pot(zeta, r)

    eigen, y = solve_sheq(n, l, zeta, mesh, config.DX, r, sqr, r2, vpot)

    radial = y / sqr
    potential = vpot + l * (l + 1) / r2

    finite = all(np.all(np.isfinite(arr)) for arr in (r, radial, potential))
    if not (finite and np.isfinite(eigen)):
        raise SolverError(f"Solver produced non-finite values for zeta={zeta}, n={n}, l={l}")

    logger.info("eigenvalue = %.8e, eig*(n/zeta)^2 = %.8e", eigen, eigen * (n * n / zeta / zeta))

    for arr in (r, radial, potential):
        arr.setflags(write=False)
    return RadialSolution(radii=r, values=radial, potential=potential,
                          eigenvalue=float(eigen), zeta=float(zeta), n=int(n), l=int(l))


def R_nl(r, n, l, Z):
    """
    Analytic radial wavefunction for a hydrogen-like atom

    Parameters:
    -----------
    r : array_like
        Radial distance (a0)
    n : int
        Principal quantum number (n >= 1)
    l : int
        Angular momentum quantum number (0 <= l < n)
    Z : float
        Nuclear charge

    Returns:
    --------
    R : ndarray
        Radial wavefunction values, normalized so that the integral of R^2 r^2 dr is 1
    """
    r = np.asarray(r, dtype=np.float64)
    if n - l - 1 < 0:
        raise ValueError(f"Invalid quantum numbers: n={n}, l={l}. Must have n > l.")

    rho = 2.0 * Z * r / (n * a0)
    N_factor = ((2.0 * Z / (n * a0)) ** 3 * factorial(n - l - 1)) / (2 * n * factorial(n + l))
    L = eval_genlaguerre(n - l - 1, 2 * l + 1, rho)
    return np.sqrt(N_factor) * np.exp(-rho / 2.0) * (rho ** l) * L


def calculate_energy(n, Z):
    """Bohr energy in Rydberg and eV"""
    E_ry = -Z ** 2 / n ** 2
    return E_ry, E_ry * RYDBERG_TO_EV


def find_radial_nodes(n, l, Z):
    """
    Radial nodes from the roots of the associated Laguerre polynomial

    Returns:
    --------
    nodes : ndarray
        Positions of radial nodes in units of a0
    """
    if n - l - 1 == 0:
        return np.array([])
    rho_nodes = scipy_genlaguerre(n - l - 1, 2 * l + 1).roots
    r_nodes = np.real(rho_nodes) * (n * a0) / (2.0 * Z)
    return np.sort(r_nodes[r_nodes > 0])
