"""
Pydantic data models for Fiber Inspect.

Every value produced by the analysis flows through these validated models so
the invariants (non-negative radii, severities and quality in [0, 1]) hold
wherever a result is consumed.
"""

from enum import IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DefectType(IntEnum):
    """Defect categories. The integer value is the serialized type code."""
    SCRATCH = 0
    CHIP = 1
    CRACK = 2
    CONTAMINATION = 3
    UNKNOWN = 4
    
    @classmethod
    def from_code(cls, code):
        """Decode a serialized type code, mapping unknown codes to UNKNOWN."""
        try:
            return cls(int(code))
        except (TypeError, ValueError):
            return cls.UNKNOWN


class BoundingBox(BaseModel):
    """Axis-aligned bounding box in pixel coordinates."""
    x: int = 0
    y: int = 0
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    
    model_config = ConfigDict(extra="forbid", frozen=True)
    
    @property
    def area(self):
        return self.width * self.height
    
    @property
    def aspect_ratio(self):
        """Width over height; 0 for a box with no height."""
        if self.height == 0:
            return 0.0
        return self.width / self.height
    
    def as_corners(self):
        """Return [min_x, min_y, max_x, max_y]."""
        return [self.x, self.y, self.x + self.width, self.y + self.height]


class Defect(BaseModel):
    """A classified and scored defect."""
    type: DefectType = DefectType.UNKNOWN
    bounding_box: BoundingBox = Field(default_factory=BoundingBox)
    severity: float = Field(default=0.0, ge=0.0, le=1.0)
    description: str = ""
    
    model_config = ConfigDict(extra="forbid", frozen=True)


class GeometryEstimate(BaseModel):
    """Fiber center and radii measured from one image."""
    center: List[float] = Field(default_factory=lambda: [0.0, 0.0], min_length=2, max_length=2)
    core_center: List[float] = Field(default_factory=lambda: [0.0, 0.0], min_length=2, max_length=2)
    core_radius: float = Field(default=0.0, ge=0.0)
    cladding_radius: float = Field(default=0.0, ge=0.0)
    core_clad_ratio: float = Field(default=0.0, ge=0.0)
    concentricity: float = Field(default=0.0, ge=0.0, le=1.0)
    detected: bool = False
    
    model_config = ConfigDict(extra="forbid", frozen=True)


class AcceptanceCheck(BaseModel):
    """Result of a single acceptability rule."""
    rule_id: str
    passed: bool
    message: str
    evidence: Dict[str, Any] = Field(default_factory=dict)
    
    model_config = ConfigDict(extra="forbid", frozen=True)


class ReferenceParameters(BaseModel):
    """Reference values a fiber is judged against."""
    ideal_core_clad_ratio: float = Field(default=0.8, gt=0.0)
    max_allowed_defects: float = Field(default=5.0, ge=0.0)
    
    model_config = ConfigDict(extra="forbid", frozen=True)


class AnalysisResult(BaseModel):
    """
    Outcome of analyzing one fiber endface image.
    
    Only the scalar fields, defects and summary are part of the serialized
    schema; geometry, checks and the annotated image stay in memory.
    """
    is_acceptable: bool = True
    core_clad_ratio: float = Field(default=0.0, ge=0.0)
    concentricity: float = Field(default=0.0, ge=0.0, le=1.0)
    overall_quality: float = Field(default=1.0, ge=0.0, le=1.0)
    defects: List[Defect] = Field(default_factory=list)
    summary: str = ""
    geometry: Optional[GeometryEstimate] = Field(default=None, exclude=True)
    checks: List[AcceptanceCheck] = Field(default_factory=list, exclude=True)
    annotated_image: Optional[Any] = Field(default=None, exclude=True, repr=False)
    
    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)
    
    @property
    def defect_count(self):
        return len(self.defects)
    
    @property
    def failed_checks(self):
        return [c for c in self.checks if not c.passed]
