"""
JSON (de)serialization of analysis results.

Produces exactly the persisted result schema: scalar metrics, summary and the
defect list. Geometry, acceptance checks and the annotated image are not
persisted.
"""

import json

from fiberinspect.io.save_artifacts import save_json
from fiberinspect.models import AnalysisResult, BoundingBox, Defect, DefectType
from fiberinspect.tracer import get_tracer


def defect_to_dict(defect):
    box = defect.bounding_box
    return {
        "type": int(defect.type),
        "bounding_box": {
            "x": box.x,
            "y": box.y,
            "width": box.width,
            "height": box.height,
        },
        "severity": defect.severity,
        "description": defect.description,
    }


def defect_from_dict(data):
    box = data.get("bounding_box", {})
    return Defect(
        type=DefectType.from_code(data.get("type", DefectType.UNKNOWN)),
        bounding_box=BoundingBox(
            x=int(box.get("x", 0)),
            y=int(box.get("y", 0)),
            width=int(box.get("width", 0)),
            height=int(box.get("height", 0)),
        ),
        severity=float(data.get("severity", 0.0)),
        description=str(data.get("description", "")),
    )


def result_to_dict(result):
    """Encode an AnalysisResult into the persisted schema."""
    return {
        "is_acceptable": bool(result.is_acceptable),
        "core_clad_ratio": float(result.core_clad_ratio),
        "concentricity": float(result.concentricity),
        "overall_quality": float(result.overall_quality),
        "summary": result.summary,
        "defects": [defect_to_dict(d) for d in result.defects],
    }


def result_from_dict(data):
    """Decode the persisted schema back into an AnalysisResult."""
    return AnalysisResult(
        is_acceptable=bool(data.get("is_acceptable", False)),
        core_clad_ratio=float(data.get("core_clad_ratio", 0.0)),
        concentricity=float(data.get("concentricity", 0.0)),
        overall_quality=float(data.get("overall_quality", 0.0)),
        summary=str(data.get("summary", "")),
        defects=[defect_from_dict(d) for d in data.get("defects", [])],
    )


def save_result(result, path):
    """Write an AnalysisResult to a JSON file."""
    save_json(result_to_dict(result), path)


def load_result(path):
    """Read an AnalysisResult from a JSON file."""
    tracer = get_tracer()
    
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    
    result = result_from_dict(data)
    tracer.event(f"Loaded result: {path} ({len(result.defects)} defects)")
    return result
