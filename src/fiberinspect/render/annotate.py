"""
Annotated overlay rendering.

Draws defects and the fiber geometry onto an RGB copy of the input. The
geometry drawn is the estimate the caller already used for the metrics.
"""

import cv2

from fiberinspect.io.load_image import to_rgb
from fiberinspect.models import DefectType
from fiberinspect.tracer import get_tracer, trace


# RGB
DEFECT_COLORS = {
    DefectType.SCRATCH: (255, 165, 0),
    DefectType.CHIP: (255, 0, 0),
    DefectType.CRACK: (255, 0, 255),
    DefectType.CONTAMINATION: (0, 255, 255),
    DefectType.UNKNOWN: (128, 128, 128),
}
CLADDING_COLOR = (0, 255, 0)
CORE_COLOR = (0, 0, 255)
CENTER_COLOR = (255, 0, 0)
LABEL_COLOR = (255, 255, 255)


def defect_opacity(severity):
    """More severe defects are drawn more opaque."""
    return min(1.0, max(0.0, 0.3 + severity * 0.7))


def defect_label(defect):
    return f"{defect.description} ({defect.severity:.2f})"


@trace(label="render_annotations")
def render_annotations(image, defects, geometry, config):
    """
    Render defects and geometry onto a copy of the image.
    
    Args:
        image: canonical input image (not modified)
        defects: list of Defect
        geometry: GeometryEstimate computed for this image
        config: AnalysisConfig
    
    Returns:
        RGB uint8 annotated image.
    """
    tracer = get_tracer()
    cfg = config.annotation
    font = cv2.FONT_HERSHEY_SIMPLEX
    
    annotated = to_rgb(image)
    
    for defect in defects:
        x0, y0, x1, y1 = defect.bounding_box.as_corners()
        color = DEFECT_COLORS.get(defect.type, DEFECT_COLORS[DefectType.UNKNOWN])
        
        overlay = annotated.copy()
        cv2.rectangle(overlay, (x0, y0), (x1, y1), color, cfg.box_thickness)
        alpha = defect_opacity(defect.severity)
        annotated = cv2.addWeighted(overlay, alpha, annotated, 1.0 - alpha, 0)
        
        text_y = max(y0 - 5, 10)
        cv2.putText(annotated, defect_label(defect), (x0, text_y), font,
                    cfg.font_scale, LABEL_COLOR, 1, cv2.LINE_AA)
    
    center = _to_pixel(geometry.center)
    if geometry.cladding_radius > 0:
        cv2.circle(annotated, center, int(round(geometry.cladding_radius)),
                   CLADDING_COLOR, cfg.circle_thickness)
    if geometry.core_radius > 0:
        cv2.circle(annotated, _to_pixel(geometry.core_center), int(round(geometry.core_radius)),
                   CORE_COLOR, cfg.circle_thickness)
    cv2.circle(annotated, center, cfg.center_point_radius, CENTER_COLOR, -1)
    
    tracer.event(f"Annotated {len(defects)} defects")
    
    return annotated


def _to_pixel(point):
    return (int(round(point[0])), int(round(point[1])))
