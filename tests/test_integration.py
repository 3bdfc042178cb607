"""Integration tests for the batch pipeline and the CLI."""

import json
import os

import cv2
import pytest
import yaml


class TestRunPipeline:
    """End-to-end pipeline tests."""
    
    def test_pipeline_outputs(self, temp_dir, fiber_image_file):
        from fiberinspect.pipeline import run_pipeline
        
        out_dir = os.path.join(temp_dir, "out")
        results = run_pipeline([fiber_image_file], out_dir)
        
        assert len(results) == 1
        assert results[0].is_acceptable
        assert os.path.exists(os.path.join(out_dir, "fiber_result.json"))
        assert os.path.exists(os.path.join(out_dir, "fiber_annotated.png"))
        
        with open(os.path.join(out_dir, "batch_summary.json"), "r", encoding="utf-8") as f:
            batch = json.load(f)
        
        assert len(batch["results"]) == 1
        assert batch["results"][0]["image_id"] == "fiber"
        assert batch["results"][0]["is_acceptable"] is True
        assert batch["results"][0]["failed_checks"] == []
    
    def test_result_file_matches_result(self, temp_dir, fiber_image_file):
        from fiberinspect.export.result_json import load_result
        from fiberinspect.pipeline import run_pipeline
        
        out_dir = os.path.join(temp_dir, "out")
        result = run_pipeline([fiber_image_file], out_dir)[0]
        loaded = load_result(os.path.join(out_dir, "fiber_result.json"))
        
        assert loaded.is_acceptable == result.is_acceptable
        assert loaded.core_clad_ratio == pytest.approx(result.core_clad_ratio)
        assert loaded.summary == result.summary
        assert len(loaded.defects) == len(result.defects)
    
    def test_annotated_image_size(self, temp_dir, fiber_image_file):
        from fiberinspect.pipeline import run_pipeline
        
        out_dir = os.path.join(temp_dir, "out")
        run_pipeline([fiber_image_file], out_dir)
        
        annotated = cv2.imread(os.path.join(out_dir, "fiber_annotated.png"))
        assert annotated.shape == (480, 640, 3)
    
    def test_debug_artifacts(self, temp_dir, fiber_image_file):
        from fiberinspect.pipeline import run_pipeline
        
        out_dir = os.path.join(temp_dir, "out")
        run_pipeline([fiber_image_file], out_dir, debug=True)
        
        debug_root = os.path.join(out_dir, "debug", "fiber")
        assert os.path.exists(os.path.join(debug_root, "geometry", "01_luminance.png"))
        assert os.path.exists(os.path.join(debug_root, "defects", "01_anomaly_mask.png"))
        assert os.path.exists(os.path.join(debug_root, "annotation", "analysis_metrics.json"))
    
    def test_duplicate_stems_get_distinct_ids(self, temp_dir, fiber_image):
        from fiberinspect.pipeline import run_pipeline
        
        paths = []
        for sub in ("a", "b"):
            os.makedirs(os.path.join(temp_dir, sub))
            path = os.path.join(temp_dir, sub, "endface.png")
            cv2.imwrite(path, cv2.cvtColor(fiber_image, cv2.COLOR_RGB2BGR))
            paths.append(path)
        
        out_dir = os.path.join(temp_dir, "out")
        run_pipeline(paths, out_dir)
        
        assert os.path.exists(os.path.join(out_dir, "endface_result.json"))
        assert os.path.exists(os.path.join(out_dir, "endface_1_result.json"))
    
    def test_missing_input_rejected(self, temp_dir):
        from fiberinspect.pipeline import run_pipeline
        
        with pytest.raises(ValueError, match="Input validation failed"):
            run_pipeline([os.path.join(temp_dir, "nope.png")], os.path.join(temp_dir, "out"))
    
    def test_config_file_reference(self, temp_dir, fiber_image_file):
        from fiberinspect.pipeline import run_pipeline
        
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump({"reference": {"ideal_core_clad_ratio": 0.4}}, f)
        
        out_dir = os.path.join(temp_dir, "out")
        results = run_pipeline([fiber_image_file], out_dir, config_path=config_path)
        
        # 0.8 is outside 0.4 +/- 30%
        assert not results[0].is_acceptable
        
        with open(os.path.join(out_dir, "batch_summary.json"), "r", encoding="utf-8") as f:
            batch = json.load(f)
        assert "ratio_tolerance" in batch["results"][0]["failed_checks"]


class TestCli:
    """Tests for the command-line entry point."""
    
    def test_run_command(self, temp_dir, fiber_image_file, capsys):
        from fiberinspect.cli import main
        
        out_dir = os.path.join(temp_dir, "out")
        code = main(["run", "--inputs", fiber_image_file, "--out", out_dir])
        
        assert code == 0
        assert "[PASS]" in capsys.readouterr().out
        assert os.path.exists(os.path.join(out_dir, "fiber_result.json"))
    
    def test_run_command_rejected_fiber(self, temp_dir, fiber_image_file, capsys):
        from fiberinspect.cli import main
        
        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump({"reference": {"ideal_core_clad_ratio": 0.4}}, f)
        
        code = main([
            "run", "--inputs", fiber_image_file,
            "--out", os.path.join(temp_dir, "out"),
            "--config", config_path,
        ])
        
        assert code == 1
        assert "[FAIL]" in capsys.readouterr().out
    
    def test_run_missing_input(self, temp_dir, capsys):
        from fiberinspect.cli import main
        
        code = main(["run", "--inputs", os.path.join(temp_dir, "nope.png"), "--out", temp_dir])
        
        assert code == 1
        assert "Error" in capsys.readouterr().err
    
    def test_run_with_trace_file(self, temp_dir, fiber_image_file):
        from fiberinspect.cli import main
        from fiberinspect.tracer import configure_tracer
        
        trace_path = os.path.join(temp_dir, "trace.log")
        try:
            main([
                "run", "--inputs", fiber_image_file,
                "--out", os.path.join(temp_dir, "out"),
                "--trace", "--trace-file", trace_path,
            ])
        finally:
            configure_tracer(enabled=False)
        
        with open(trace_path, "r", encoding="utf-8") as f:
            content = f.read()
        assert "run_pipeline" in content
        assert "locate" in content
    
    def test_show_command(self, temp_dir, fiber_image_file, capsys):
        from fiberinspect.cli import main
        
        out_dir = os.path.join(temp_dir, "out")
        main(["run", "--inputs", fiber_image_file, "--out", out_dir])
        capsys.readouterr()
        
        code = main(["show", "--result", os.path.join(out_dir, "fiber_result.json")])
        
        assert code == 0
        assert capsys.readouterr().out.startswith("PASS: Fiber meets quality standards.")
    
    def test_show_missing_file(self, temp_dir):
        from fiberinspect.cli import main
        
        assert main(["show", "--result", os.path.join(temp_dir, "nope.json")]) == 1
    
    def test_init_config(self, temp_dir):
        from fiberinspect.cli import main
        from fiberinspect.config import AnalysisConfig, load_config
        
        path = os.path.join(temp_dir, "config.yaml")
        
        assert main(["init-config", "--out", path]) == 0
        assert load_config(path) == AnalysisConfig()
