"""
Defect severity scoring.

Severity is a category base score raised by the bounding box size, capped
at 1.0.
"""

from abc import ABC, abstractmethod

from fiberinspect.errors import ConfigurationError
from fiberinspect.models import DefectType


DEFAULT_BASE_SCORES = {
    DefectType.SCRATCH: 0.3,
    DefectType.CHIP: 0.5,
    DefectType.CRACK: 0.8,
    DefectType.CONTAMINATION: 0.2,
    DefectType.UNKNOWN: 0.4,
}


class SeverityScorer(ABC):
    """Abstract interface for severity scoring policies."""
    
    @abstractmethod
    def score(self, defect_type, bounding_box):
        """Return a severity in [0, 1]."""
        pass


class SizeWeightedSeverityScorer(SeverityScorer):
    """Base score per category plus a size factor from the box area."""
    
    def __init__(self, base_scores=None, area_normalizer=1000.0, size_weight=0.5):
        self.base_scores = dict(DEFAULT_BASE_SCORES)
        if base_scores:
            self.base_scores.update(base_scores)
        self.area_normalizer = area_normalizer
        self.size_weight = size_weight
    
    @classmethod
    def from_config(cls, config):
        cfg = config.severity
        base_scores = {}
        for name, value in cfg.base_scores.items():
            try:
                base_scores[DefectType[name.upper()]] = float(value)
            except KeyError:
                raise ConfigurationError(f"Unknown defect category in severity config: {name}") from None
        return cls(
            base_scores=base_scores,
            area_normalizer=cfg.area_normalizer,
            size_weight=cfg.size_weight,
        )
    
    def score(self, defect_type, bounding_box):
        base = self.base_scores.get(defect_type, self.base_scores[DefectType.UNKNOWN])
        size_factor = min(1.0, bounding_box.area / self.area_normalizer)
        return min(1.0, max(0.0, base + size_factor * self.size_weight))


def assess_severity(defect, scorer=None):
    """Score an existing Defect with the given (or default) scorer."""
    scorer = scorer or SizeWeightedSeverityScorer()
    return scorer.score(defect.type, defect.bounding_box)
