"""
Continuous quality score.

Starts from 1.0 and deducts for defects, concentricity loss and deviation
from the ideal core-clad ratio. Deductions accumulate uncapped; only the
final value is clamped to [0, 1].
"""

DEFECT_WEIGHT = 0.1
CONCENTRICITY_WEIGHT = 0.3
RATIO_WEIGHT = 0.3


def compute_quality(defects, concentricity, core_clad_ratio, ideal_ratio):
    """Return the overall quality in [0, 1]."""
    score = 1.0
    
    for defect in defects:
        score -= defect.severity * DEFECT_WEIGHT
    
    score -= (1.0 - concentricity) * CONCENTRICITY_WEIGHT
    score -= abs(core_clad_ratio - ideal_ratio) / ideal_ratio * RATIO_WEIGHT
    
    return max(0.0, min(1.0, score))
