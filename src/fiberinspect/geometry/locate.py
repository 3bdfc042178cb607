"""
Fiber geometry detection.

Finds the cladding as the largest circle a Hough transform reports and derives
the core from it. The core radius is a calibrated fraction of the cladding
radius; the core center is taken from a matching inner circle when one is
found and otherwise assumed to coincide with the cladding center.
"""

import math

import cv2
import numpy as np

from fiberinspect.io.load_image import to_luminance
from fiberinspect.models import GeometryEstimate
from fiberinspect.tracer import get_tracer, trace


@trace(label="locate")
def locate(image, config, debug_writer=None):
    """
    Estimate fiber center, core radius and cladding radius.
    
    Args:
        image: canonical image (luminance, RGB or RGBA)
        config: AnalysisConfig
        debug_writer: optional DebugArtifactWriter
    
    Returns:
        GeometryEstimate. When no circle is found the center is the image
        midpoint and every radius, the ratio and concentricity are 0.
    """
    tracer = get_tracer()
    geo = config.geometry
    
    gray = to_luminance(image)
    blurred = cv2.GaussianBlur(gray, (geo.blur_kernel, geo.blur_kernel), 0)
    
    circles = find_circles(blurred, geo)
    tracer.event(f"Circle candidates: {len(circles)}")
    
    if debug_writer:
        debug_writer.save_image(gray, "geometry", "01_luminance.png")
        debug_writer.save_image(blurred, "geometry", "02_blurred.png")
    
    cladding_idx = select_cladding(circles)
    if cladding_idx is None:
        height, width = gray.shape[:2]
        midpoint = [float(width // 2), float(height // 2)]
        tracer.event("No circle detected, falling back to image midpoint", level="WARN")
        return GeometryEstimate(center=midpoint, core_center=midpoint)
    
    cx, cy, cladding_radius = (float(v) for v in circles[cladding_idx])
    core_radius = cladding_radius * geo.core_fraction
    
    core_center = [cx, cy]
    if geo.measure_core_center:
        measured = select_core_center(
            circles, cladding_idx, core_radius, geo.core_radius_tolerance,
        )
        if measured is not None:
            core_center = measured
    
    estimate = GeometryEstimate(
        center=[cx, cy],
        core_center=core_center,
        core_radius=core_radius,
        cladding_radius=cladding_radius,
        core_clad_ratio=compute_core_clad_ratio(core_radius, cladding_radius),
        concentricity=compute_concentricity([cx, cy], core_center, core_radius, cladding_radius),
        detected=True,
    )
    
    tracer.event(
        f"Cladding r={cladding_radius:.1f} at ({cx:.1f},{cy:.1f}), "
        f"ratio={estimate.core_clad_ratio:.3f} concentricity={estimate.concentricity:.3f}"
    )
    
    if debug_writer:
        debug_writer.save_json(
            {
                "candidates": [[round(float(v), 2) for v in c] for c in circles],
                "geometry": estimate.model_dump(),
            },
            "geometry",
            "geometry_metrics.json",
        )
    
    return estimate


def find_circles(blurred, geo):
    """
    Run the Hough gradient circle detector.
    
    Returns an (N, 3) float array of (x, y, radius) rows, empty if none.
    """
    min_dist = max(1.0, blurred.shape[0] / geo.min_dist_divisor)
    circles = cv2.HoughCircles(
        blurred,
        cv2.HOUGH_GRADIENT,
        dp=geo.hough_dp,
        minDist=min_dist,
        param1=geo.hough_param1,
        param2=geo.hough_param2,
        minRadius=geo.min_radius,
        maxRadius=geo.max_radius,
    )
    if circles is None:
        return np.empty((0, 3), dtype=np.float32)
    return circles.reshape(-1, 3)


def select_cladding(circles):
    """Index of the largest-radius circle, first one on ties. None if empty."""
    best = None
    for idx, circle in enumerate(circles):
        if best is None or circle[2] > circles[best][2]:
            best = idx
    return best


def select_core_center(circles, cladding_idx, core_radius, tolerance=0.15):
    """
    Pick the center of the inner circle that best matches the core.
    
    A candidate's radius must be within tolerance * core_radius of the
    derived core radius, and its center no further from the cladding center
    than cladding_radius - core_radius. Returns [x, y] or None.
    """
    cx, cy, cladding_radius = (float(v) for v in circles[cladding_idx])
    max_offset = cladding_radius - core_radius
    
    best = None
    best_diff = None
    for idx, (x, y, r) in enumerate(circles):
        if idx == cladding_idx or r >= cladding_radius:
            continue
        diff = abs(float(r) - core_radius)
        if diff > tolerance * core_radius:
            continue
        offset = math.hypot(float(x) - cx, float(y) - cy)
        if offset > max_offset or offset + r > cladding_radius:
            continue
        if best_diff is None or diff < best_diff:
            best = [float(x), float(y)]
            best_diff = diff
    
    return best


def compute_core_clad_ratio(core_radius, cladding_radius):
    """Core radius over cladding radius, 0 when there is no cladding."""
    if cladding_radius <= 0:
        return 0.0
    return core_radius / cladding_radius


def compute_concentricity(cladding_center, core_center, core_radius, cladding_radius):
    """
    1 minus the core offset normalized by the room the core has to move.
    
    Clamped to [0, 1]. 0 without a cladding, 1 when the core fills it.
    """
    if cladding_radius <= 0:
        return 0.0
    
    max_offset = cladding_radius - core_radius
    if max_offset <= 0:
        return 1.0
    
    offset = math.hypot(
        core_center[0] - cladding_center[0],
        core_center[1] - cladding_center[1],
    )
    return min(1.0, max(0.0, 1.0 - offset / max_offset))
