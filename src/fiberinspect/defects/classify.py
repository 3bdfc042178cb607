"""
Defect classification policies.

Classification is a strategy so a richer classifier can replace the rule
based one without touching detection or scoring.
"""

from abc import ABC, abstractmethod

from fiberinspect.models import DefectType


DESCRIPTIONS = {
    DefectType.SCRATCH: "Surface scratch",
    DefectType.CHIP: "Edge chip",
    DefectType.CRACK: "Internal crack",
    DefectType.CONTAMINATION: "Surface contamination",
    DefectType.UNKNOWN: "Unknown defect",
}


class DefectClassifier(ABC):
    """Abstract interface for defect classifiers."""
    
    @abstractmethod
    def classify(self, bounding_box):
        """
        Map a defect region to a category.
        
        Args:
            bounding_box: BoundingBox of the region
        
        Returns:
            DefectType
        """
        pass
    
    def describe(self, defect_type):
        """Human-readable description for a category."""
        return DESCRIPTIONS.get(defect_type, DESCRIPTIONS[DefectType.UNKNOWN])


class AspectRatioClassifier(DefectClassifier):
    """
    Rule-based classifier using the bounding box shape.
    
    Rules are evaluated in order and the first match wins:
    elongated horizontally -> scratch, elongated vertically -> crack,
    wide -> chip, anything else -> contamination. Never returns UNKNOWN.
    """
    
    def __init__(self, scratch_aspect=3.0, crack_aspect=0.33, chip_width=50):
        self.scratch_aspect = scratch_aspect
        self.crack_aspect = crack_aspect
        self.chip_width = chip_width
    
    @classmethod
    def from_config(cls, config):
        cfg = config.classifier
        return cls(
            scratch_aspect=cfg.scratch_aspect,
            crack_aspect=cfg.crack_aspect,
            chip_width=cfg.chip_width,
        )
    
    def classify(self, bounding_box):
        aspect = bounding_box.aspect_ratio
        
        if aspect > self.scratch_aspect:
            return DefectType.SCRATCH
        if aspect < self.crack_aspect:
            return DefectType.CRACK
        if bounding_box.width > self.chip_width:
            return DefectType.CHIP
        return DefectType.CONTAMINATION
