"""
Shell sampling, spherical layout and the plotly point-cloud resource.
"""

import logging
from dataclasses import dataclass

import numpy as np
import plotly.graph_objects as go

logger = logging.getLogger(__name__)


class InvalidBufferLength(AssertionError):
    """A position buffer does not hold the number of floats the cloud was built for."""


@dataclass(frozen=True)
class ShellSet:
    """Radii and radial values of the sampled shells, with their grid indices"""
    radii: np.ndarray
    values: np.ndarray
    indices: np.ndarray
    stride: int

    def __len__(self):
        return len(self.radii)


def sample_shells(solution, layer_count):
    """
    Reduce a radial solution to `layer_count` shells by uniform-stride subsampling.

    stride = N // layer_count and shell i reads grid index i*stride. When
    layer_count > N the stride is 0 and every shell sits on the innermost sample.
    """
    radii = np.asarray(solution.radii, dtype=np.float64)
    values = np.asarray(solution.values, dtype=np.float64)
    n_samples = len(radii)
    if layer_count < 1:
        raise ValueError(f"layer_count must be >= 1, got {layer_count}")
    if n_samples < 1:
        raise ValueError("Radial solution is empty")
    if len(values) != n_samples:
        raise ValueError(f"radii and values differ in length: {n_samples} != {len(values)}")

    stride = n_samples // layer_count
    if stride == 0:
        logger.warning("Degenerate sampling: %d shells requested from %d grid points, "
                       "all shells collapse onto r=%.6g", layer_count, n_samples, radii[0])

    indices = np.minimum(np.arange(layer_count) * stride, n_samples - 1)
    return ShellSet(radii=radii[indices], values=values[indices], indices=indices, stride=stride)


def _unit_grid(polar_steps, azimuth_steps):
    """(H, V, 3) unit vectors; polar p*pi/H never reaches the south pole"""
    polar = np.arange(polar_steps) * (np.pi / polar_steps)
    azimuth = np.arange(azimuth_steps) * (2.0 * np.pi / azimuth_steps)
    theta, phi = np.meshgrid(polar, azimuth, indexing="ij")
    sin_theta = np.sin(theta)
    return np.stack((sin_theta * np.cos(phi), sin_theta * np.sin(phi), np.cos(theta)), axis=-1)


def layout_shells(shells, polar_steps, azimuth_steps, out=None):
    """
    Lay out an H x V angular grid on every shell and flatten to float32 xyz.

    Points are ordered shell-major, then polar, then azimuth, so point
    (i, p, t) starts at offset 3*(i*H*V + p*V + t). A negative radius is
    mirrored through the origin.

    Parameters:
    -----------
    shells : ShellSet
    polar_steps : int
        H, number of polar angles per shell
    azimuth_steps : int
        V, number of azimuth angles per polar ring
    out : ndarray, optional
        float32 buffer of length len(shells)*H*V*3 to overwrite

    Returns:
    --------
    positions : ndarray
        Flat float32 buffer of length len(shells)*H*V*3
    """
    if polar_steps < 1 or azimuth_steps < 1:
        raise ValueError(f"Angular grid needs H >= 1 and V >= 1, got H={polar_steps}, V={azimuth_steps}")

    radii = np.asarray(shells.radii, dtype=np.float64)
    points = radii[:, None, None, None] * _unit_grid(polar_steps, azimuth_steps)[None]
    length = points.size

    if out is None:
        return points.astype(np.float32).reshape(-1)
    if out.shape != (length,) or out.dtype != np.float32:
        raise ValueError(f"Output buffer must be float32 of shape ({length},), "
                         f"got {out.dtype} {out.shape}")
    out[:] = points.reshape(-1)
    return out


def shell_intensities(shells, polar_steps, azimuth_steps):
    """Per-point radial value, in the same order as layout_shells"""
    values = np.asarray(shells.values, dtype=np.float64)
    return np.repeat(values, polar_steps * azimuth_steps)


class PointCloud:
    """Renderable point cloud: owns the current position buffer and its plotly figure"""

    def __init__(self, positions, point_size, intensities, expected_length):
        self.expected_length = expected_length
        self.positions = positions
        self.point_size = point_size
        self.intensities = intensities
        self.figure = go.Figure(data=go.Scatter3d(
            mode="markers",
            marker=dict(colorscale="Viridis", colorbar=dict(title="R(r)")),
            hoverinfo="skip",
        ))
        self.figure.update_layout(
            scene=dict(
                xaxis_title="x (a₀)",
                yaxis_title="y (a₀)",
                zaxis_title="z (a₀)",
                aspectmode='data'
            ),
            margin=dict(l=0, r=0, t=30, b=0)
        )
        self._sync_trace()

    @property
    def n_points(self):
        return len(self.positions) // 3

    def points(self):
        """(n_points, 3) read-only view of the current buffer"""
        return self.positions.reshape(-1, 3)

    def _sync_trace(self):
        xyz = self.points()
        self.figure.data[0].update(
            x=xyz[:, 0], y=xyz[:, 1], z=xyz[:, 2],
            marker=dict(size=self.point_size, color=self.intensities),
        )


def _checked_buffer(positions, expected_length):
    buf = np.array(positions, dtype=np.float32, copy=True).reshape(-1)
    if buf.size % 3 != 0:
        raise InvalidBufferLength(f"Position buffer length {buf.size} is not a multiple of 3")
    if expected_length is not None and buf.size != expected_length:
        raise InvalidBufferLength(f"Position buffer length {buf.size} != expected {expected_length}")
    buf.setflags(write=False)
    return buf


def _checked_intensities(intensities, n_points):
    if intensities is None:
        return None
    colors = np.array(intensities, dtype=np.float64, copy=True).reshape(-1)
    if colors.size != n_points:
        raise InvalidBufferLength(f"{colors.size} intensities for {n_points} points")
    colors.setflags(write=False)
    return colors


def create_point_cloud(positions, point_size, intensities=None, expected_length=None):
    """Build the point-cloud resource; its buffer length is fixed from here on"""
    buf = _checked_buffer(positions, expected_length)
    colors = _checked_intensities(intensities, buf.size // 3)
    logger.debug("Created point cloud with %d points", buf.size // 3)
    return PointCloud(buf, point_size, colors, buf.size)


def update_point_cloud(cloud, positions, point_size, intensities=None):
    """
    Replace the whole position buffer of `cloud`. The previous buffer is
    dropped, never merged. Nothing is rendered until a redraw is requested.
    """
    buf = _checked_buffer(positions, cloud.expected_length)
    colors = _checked_intensities(intensities, buf.size // 3)
    cloud.positions = buf
    cloud.point_size = point_size
    cloud.intensities = colors
    cloud._sync_trace()
    logger.debug("Replaced point cloud buffer (%d points)", buf.size // 3)
