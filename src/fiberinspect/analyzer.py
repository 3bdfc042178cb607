"""
Fiber endface analysis orchestrator.

Sequences geometry detection, defect detection, classification, scoring,
acceptance, annotation and summary for one image. Every failure raised
inside the sequence is caught here and reported through the returned
result; analyze never raises.
"""

import threading

import numpy as np

from fiberinspect.config import AnalysisConfig, validate_config, validate_reference
from fiberinspect.defects.classify import AspectRatioClassifier
from fiberinspect.defects.detect import build_defects, detect_defect_regions
from fiberinspect.geometry.locate import locate
from fiberinspect.io.load_image import is_valid_image, normalize_image
from fiberinspect.models import AnalysisResult, ReferenceParameters
from fiberinspect.render.annotate import render_annotations
from fiberinspect.report.summary import format_error_summary, generate_summary
from fiberinspect.scoring.acceptance import is_fiber_acceptable, run_acceptance_checks
from fiberinspect.scoring.quality import compute_quality
from fiberinspect.scoring.severity import SizeWeightedSeverityScorer
from fiberinspect.tracer import get_tracer


NO_IMAGE_SUMMARY = "No image provided for analysis."
NO_DEFECTS_SUMMARY = "No defects detected."


class FiberAnalyzer:
    """
    Analyzes fiber endface images against reference parameters.
    
    One lock guards both the reference parameters and the whole analyze
    call, so calls on the same instance run one at a time. Use separate
    instances for parallel throughput.
    """
    
    def __init__(self, config=None, classifier=None, scorer=None):
        self.config = config or AnalysisConfig()
        validate_config(self.config)
        self.classifier = classifier or AspectRatioClassifier.from_config(self.config)
        self.scorer = scorer or SizeWeightedSeverityScorer.from_config(self.config)
        self._lock = threading.Lock()
        self._reference = _reference_from_config(self.config)
    
    @property
    def reference(self):
        """Snapshot of the current reference parameters."""
        with self._lock:
            return self._reference
    
    def set_reference_parameters(self, ideal_ratio, max_allowed_defects):
        """
        Replace the reference parameters used by later analyses.
        
        Raises ConfigurationError for a non-positive ideal ratio or a
        negative maximum; the previous values are then kept.
        """
        validate_reference(ideal_ratio, max_allowed_defects)
        reference = ReferenceParameters(
            ideal_core_clad_ratio=float(ideal_ratio),
            max_allowed_defects=float(max_allowed_defects),
        )
        with self._lock:
            self._reference = reference
    
    def analyze(self, image, reference=None, debug_writer=None):
        """
        Analyze one image.
        
        Args:
            image: numpy pixel array (luminance, RGB, RGBA or convertible)
            reference: optional ReferenceParameters overriding the instance's
            debug_writer: optional DebugArtifactWriter
        
        Returns:
            AnalysisResult. Invalid input yields a default, unanalyzed result;
            a failure part way through yields a rejected result carrying the
            error in its summary and whatever was computed before it.
        """
        with self._lock:
            return self._analyze(image, reference or self._reference, debug_writer)
    
    def _analyze(self, image, reference, debug_writer):
        tracer = get_tracer()
        
        if not is_valid_image(image):
            tracer.event("Invalid or empty image, skipping analysis", level="WARN")
            return AnalysisResult(
                summary=NO_IMAGE_SUMMARY,
                annotated_image=image.copy() if isinstance(image, np.ndarray) else None,
            )
        
        state = {
            "is_acceptable": True,
            "core_clad_ratio": 0.0,
            "concentricity": 0.0,
            "overall_quality": 1.0,
            "defects": [],
            "summary": NO_DEFECTS_SUMMARY,
            "annotated_image": image.copy(),
        }
        
        try:
            with tracer.span("analyze", module="analyzer", image=image):
                canonical = normalize_image(image)
                
                with tracer.span("geometry", module="analyzer"):
                    geometry = locate(canonical, self.config, debug_writer)
                    state["geometry"] = geometry
                    state["core_clad_ratio"] = geometry.core_clad_ratio
                    state["concentricity"] = geometry.concentricity
                
                with tracer.span("defects", module="analyzer"):
                    regions = detect_defect_regions(canonical, self.config, debug_writer)
                    state["defects"] = build_defects(regions, self.classifier, self.scorer)
                
                with tracer.span("acceptance", module="analyzer"):
                    checks = run_acceptance_checks(
                        state["defects"], geometry.core_clad_ratio,
                        reference, self.config.acceptance,
                    )
                    state["checks"] = checks
                    state["is_acceptable"] = is_fiber_acceptable(checks)
                
                with tracer.span("annotate", module="analyzer"):
                    state["annotated_image"] = render_annotations(
                        canonical, state["defects"], geometry, self.config,
                    )
                
                # quality first so the summary reports the final score
                state["overall_quality"] = compute_quality(
                    state["defects"], geometry.concentricity,
                    geometry.core_clad_ratio, reference.ideal_core_clad_ratio,
                )
                
                state["summary"] = generate_summary(
                    AnalysisResult(**state), reference.ideal_core_clad_ratio,
                )
                
                tracer.event(
                    f"{'PASS' if state['is_acceptable'] else 'FAIL'} "
                    f"quality={state['overall_quality']:.2f} defects={len(state['defects'])}"
                )
        except Exception as e:
            tracer.event(f"Analysis failed: {type(e).__name__}: {e}", level="ERROR")
            state["is_acceptable"] = False
            state["summary"] = format_error_summary(e)
        
        return AnalysisResult(**state)


def _reference_from_config(config):
    return ReferenceParameters(
        ideal_core_clad_ratio=float(config.reference.ideal_core_clad_ratio),
        max_allowed_defects=float(config.reference.max_allowed_defects),
    )
