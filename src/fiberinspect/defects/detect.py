"""
Defect segmentation.

Isolates local anomalies with an inverse adaptive threshold and turns each
external contour of acceptable size into a candidate region. Regions are
returned in contour extraction order; no spatial or severity sort is applied.
"""

from dataclasses import dataclass

import cv2

from fiberinspect.io.load_image import to_luminance
from fiberinspect.io.save_artifacts import create_mask_overlay
from fiberinspect.models import BoundingBox, Defect
from fiberinspect.tracer import get_tracer, trace


@dataclass(frozen=True)
class DefectRegion:
    """A candidate defect: bounding box plus the contour area it came from."""
    bounding_box: BoundingBox
    area: float


@trace(label="detect_defect_regions")
def detect_defect_regions(image, config, debug_writer=None):
    """
    Segment candidate defect regions.
    
    Keeps contours with min_area < area <= max_area.
    
    Returns list of DefectRegion.
    """
    tracer = get_tracer()
    cfg = config.defects
    
    gray = to_luminance(image)
    mask = segment_anomalies(gray, cfg.adaptive_block_size, cfg.adaptive_c)
    
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    
    regions = []
    for contour in contours:
        area = cv2.contourArea(contour)
        if not in_area_range(area, cfg.min_area, cfg.max_area):
            continue
        x, y, w, h = cv2.boundingRect(contour)
        regions.append(DefectRegion(
            bounding_box=BoundingBox(x=x, y=y, width=w, height=h),
            area=float(area),
        ))
    
    tracer.event(f"Contours: {len(contours)}, defect candidates: {len(regions)}")
    
    if debug_writer:
        debug_writer.save_image(mask, "defects", "01_anomaly_mask.png")
        overlay = create_mask_overlay(cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB), mask)
        debug_writer.save_image(overlay, "defects", "02_mask_overlay.png")
        debug_writer.save_json(
            {
                "contours": len(contours),
                "candidates": len(regions),
                "area_range": [cfg.min_area, cfg.max_area],
                "mask_ratio": round(float((mask > 0).mean()), 4),
            },
            "defects",
            "defect_metrics.json",
        )
    
    return regions


def segment_anomalies(gray, block_size, c):
    """Inverse Gaussian adaptive threshold: 255 where darker than the local mean."""
    return cv2.adaptiveThreshold(
        gray,
        255,
        cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
        cv2.THRESH_BINARY_INV,
        block_size,
        c,
    )


def in_area_range(area, min_area, max_area):
    """Open-closed range check: min_area < area <= max_area."""
    return min_area < area <= max_area


def build_defects(regions, classifier, scorer):
    """
    Classify and score regions, preserving their order.
    
    Returns list of Defect.
    """
    defects = []
    for region in regions:
        defect_type = classifier.classify(region.bounding_box)
        severity = scorer.score(defect_type, region.bounding_box)
        defects.append(Defect(
            type=defect_type,
            bounding_box=region.bounding_box,
            severity=severity,
            description=classifier.describe(defect_type),
        ))
    return defects
