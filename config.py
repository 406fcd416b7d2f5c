"""
Configuration constants for the radial shell point cloud.
Every value can be overridden with a SHELLCLOUD_<NAME> environment variable.
"""

import os


def _env(name, default, cast):
    raw = os.environ.get(f"SHELLCLOUD_{name}", "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid value for SHELLCLOUD_{name}: {raw!r}") from None


N_MAX = _env("N_MAX", 5, int)
ZETA_MIN = _env("ZETA_MIN", 1.0, float)
ZETA_MAX = _env("ZETA_MAX", 10.0, float)
ZETA_STEP = _env("ZETA_STEP", 0.01, float)

DEFAULT_ZETA = _env("DEFAULT_ZETA", 1.0, float)
DEFAULT_N = _env("DEFAULT_N", 2, int)
DEFAULT_L = _env("DEFAULT_L", 1, int)

LAYER_COUNT = _env("LAYER_COUNT", 100, int)
POLAR_STEPS = _env("POLAR_STEPS", 8, int)
AZIMUTH_STEPS = _env("AZIMUTH_STEPS", 16, int)
POINT_SIZE = _env("POINT_SIZE", 2.0, float)

# Logarithmic radial grid, Rydberg atomic units
XMIN = _env("XMIN", -8.0, float)
DX = _env("DX", 0.01, float)
RMAX = _env("RMAX", 100.0, float)

SOLVER_EPS = _env("SOLVER_EPS", 1e-10, float)
SOLVER_MAX_ITER = _env("SOLVER_MAX_ITER", 100, int)

HOST = _env("HOST", "127.0.0.1", str)
PORT = _env("PORT", 5000, int)
LOG_LEVEL = _env("LOG_LEVEL", "INFO", str).upper()
