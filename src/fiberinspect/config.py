"""
Configuration management for Fiber Inspect.

Loads YAML configuration with sensible defaults for every analysis stage.
"""

import os
from dataclasses import asdict, dataclass, field, fields, is_dataclass

import yaml

from fiberinspect.errors import ConfigurationError


@dataclass
class ReferenceConfig:
    """Reference values the accept/reject decision is measured against."""
    ideal_core_clad_ratio: float = 0.8
    max_allowed_defects: float = 5.0  # maximum total severity


@dataclass
class GeometryConfig:
    """Configuration for fiber center and radius detection."""
    blur_kernel: int = 5
    hough_dp: float = 1.0
    min_dist_divisor: int = 8  # minimum center separation = height / divisor
    hough_param1: float = 100.0  # edge strength
    hough_param2: float = 30.0  # accumulator threshold
    min_radius: int = 0
    max_radius: int = 0
    core_fraction: float = 0.8
    measure_core_center: bool = True
    core_radius_tolerance: float = 0.15  # fraction of the derived core radius


@dataclass
class DefectConfig:
    """Configuration for defect segmentation."""
    adaptive_block_size: int = 11
    adaptive_c: float = 2.0
    min_area: float = 20.0  # exclusive
    max_area: float = 500.0  # inclusive


@dataclass
class ClassifierConfig:
    """Thresholds for the aspect ratio defect classifier."""
    scratch_aspect: float = 3.0
    crack_aspect: float = 0.33
    chip_width: int = 50


@dataclass
class SeverityConfig:
    """Configuration for defect severity scoring."""
    base_scores: dict = field(default_factory=lambda: {
        "scratch": 0.3,
        "chip": 0.5,
        "crack": 0.8,
        "contamination": 0.2,
        "unknown": 0.4,
    })
    area_normalizer: float = 1000.0
    size_weight: float = 0.5


@dataclass
class AcceptanceConfig:
    """Configuration for the acceptability rules."""
    ratio_tolerance: float = 0.3  # fraction of the ideal ratio
    critical_severity: float = 0.7
    max_critical_defects: int = 2  # exclusive


@dataclass
class AnnotationConfig:
    """Configuration for the annotated overlay."""
    box_thickness: int = 2
    circle_thickness: int = 2
    font_scale: float = 0.4
    center_point_radius: int = 3


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class DebugConfig:
    """Configuration for debug artifact generation."""
    enabled: bool = False
    max_edge_scale: int = 1600


@dataclass
class AnalysisConfig:
    """Complete analysis configuration."""
    reference: ReferenceConfig = field(default_factory=ReferenceConfig)
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    defects: DefectConfig = field(default_factory=DefectConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    severity: SeverityConfig = field(default_factory=SeverityConfig)
    acceptance: AcceptanceConfig = field(default_factory=AcceptanceConfig)
    annotation: AnnotationConfig = field(default_factory=AnnotationConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)


def load_config(config_path=None):
    """
    Load configuration from YAML file.
    
    Falls back to defaults for any missing values. Raises ConfigurationError
    if the merged configuration is out of range.
    """
    config = AnalysisConfig()
    
    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}
        
        config = _merge_config(config, yaml_data)
    
    validate_config(config)
    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass. Unknown keys are ignored."""
    for section in fields(config):
        values = yaml_data.get(section.name)
        if not isinstance(values, dict):
            continue
        
        target = getattr(config, section.name)
        for key, value in values.items():
            if not hasattr(target, key):
                continue
            current = getattr(target, key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged = dict(current)
                merged.update(value)
                value = merged
            setattr(target, key, value)
    
    return config


def validate_config(config):
    """Raise ConfigurationError for values the analysis cannot work with."""
    validate_reference(
        config.reference.ideal_core_clad_ratio,
        config.reference.max_allowed_defects,
    )
    
    block = config.defects.adaptive_block_size
    if block < 3 or block % 2 == 0:
        raise ConfigurationError(f"adaptive_block_size must be odd and >= 3, got {block}")
    
    if config.defects.min_area < 0 or config.defects.max_area <= config.defects.min_area:
        raise ConfigurationError(
            f"defect area range ({config.defects.min_area}, {config.defects.max_area}] is empty"
        )
    
    kernel = config.geometry.blur_kernel
    if kernel < 1 or kernel % 2 == 0:
        raise ConfigurationError(f"blur_kernel must be odd and positive, got {kernel}")
    
    if not 0.0 < config.geometry.core_fraction <= 1.0:
        raise ConfigurationError(f"core_fraction must be in (0, 1], got {config.geometry.core_fraction}")
    
    if config.geometry.core_radius_tolerance < 0:
        raise ConfigurationError("core_radius_tolerance must be non-negative")
    
    if config.severity.area_normalizer <= 0:
        raise ConfigurationError("area_normalizer must be positive")


def validate_reference(ideal_core_clad_ratio, max_allowed_defects):
    """Check reference parameters before they are stored."""
    if ideal_core_clad_ratio is None or not ideal_core_clad_ratio > 0:
        raise ConfigurationError(f"ideal core-clad ratio must be positive, got {ideal_core_clad_ratio}")
    if max_allowed_defects is None or not max_allowed_defects >= 0:
        raise ConfigurationError(f"max allowed defects must be non-negative, got {max_allowed_defects}")


def config_to_dict(config):
    """Convert a config dataclass tree into plain YAML-ready data."""
    if not is_dataclass(config):
        raise TypeError(f"expected a config dataclass, got {type(config).__name__}")
    return asdict(config)


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = config_to_dict(AnalysisConfig())
    
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
