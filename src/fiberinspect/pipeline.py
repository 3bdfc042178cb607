"""
Batch pipeline for Fiber Inspect.

Loads each input image, analyzes it and writes the result JSON and the
annotated image to the output directory.
"""

import os

from fiberinspect.analyzer import FiberAnalyzer
from fiberinspect.config import load_config
from fiberinspect.export.result_json import result_to_dict, save_result
from fiberinspect.io.load_image import load_image, validate_image_inputs
from fiberinspect.io.save_artifacts import DebugArtifactWriter, ensure_dir, save_image, save_json
from fiberinspect.tracer import get_tracer, trace


@trace(label="run_pipeline")
def run_pipeline(input_paths, out_dir, config=None, config_path=None, debug=False):
    """
    Analyze a batch of fiber endface images.
    
    Args:
        input_paths: list of input image file paths
        out_dir: output directory
        config: AnalysisConfig object (optional)
        config_path: path to YAML config file (optional)
        debug: enable debug artifact generation
    
    Returns:
        list of AnalysisResult, in input order
    """
    tracer = get_tracer()
    
    if config is None:
        config = load_config(config_path)
    
    config.debug.enabled = debug or config.debug.enabled
    
    errors = validate_image_inputs(input_paths)
    if errors:
        for error in errors:
            tracer.event(error, level="ERROR")
        raise ValueError(f"Input validation failed: {errors}")
    
    ensure_dir(out_dir)
    
    analyzer = FiberAnalyzer(config)
    
    results = []
    batch = []
    used_ids = set()
    for idx, input_path in enumerate(input_paths):
        image_id = make_image_id(input_path, idx, used_ids)
        with tracer.span(f"process_image_{idx}", module="pipeline", path=input_path):
            result = process_single_image(input_path, image_id, out_dir, analyzer, config)
        results.append(result)
        batch.append({
            "input": os.path.abspath(input_path),
            "image_id": image_id,
            "is_acceptable": result.is_acceptable,
            "overall_quality": result.overall_quality,
            "defect_count": result.defect_count,
            "failed_checks": [c.rule_id for c in result.failed_checks],
        })
    
    save_json({"results": batch}, os.path.join(out_dir, "batch_summary.json"))
    
    passed = sum(1 for r in results if r.is_acceptable)
    tracer.event(f"Pipeline complete: {len(results)} images, {passed} passed")
    
    return results


def process_single_image(input_path, image_id, out_dir, analyzer, config):
    """
    Analyze one image and write its outputs.
    
    Returns the AnalysisResult.
    """
    image, metadata = load_image(input_path)
    
    debug_writer = DebugArtifactWriter(
        out_dir, image_id,
        enabled=config.debug.enabled,
        max_edge=config.debug.max_edge_scale,
    ) if config.debug.enabled else None
    
    result = analyzer.analyze(image, debug_writer=debug_writer)
    
    save_result(result, os.path.join(out_dir, f"{image_id}_result.json"))
    if result.annotated_image is not None:
        save_image(result.annotated_image, os.path.join(out_dir, f"{image_id}_annotated.png"))
    
    if debug_writer:
        debug_writer.save_image(result.annotated_image, "annotation", "01_annotated.png")
        debug_writer.save_json(
            {
                "metadata": metadata,
                "result": result_to_dict(result),
                "geometry": result.geometry.model_dump() if result.geometry else None,
                "checks": [c.model_dump() for c in result.checks],
            },
            "annotation",
            "analysis_metrics.json",
        )
    
    return result


def make_image_id(input_path, index, used_ids):
    """File stem, suffixed with the input index when the stem repeats."""
    stem = os.path.splitext(os.path.basename(input_path))[0] or f"image_{index}"
    image_id = stem if stem not in used_ids else f"{stem}_{index}"
    used_ids.add(image_id)
    return image_id
