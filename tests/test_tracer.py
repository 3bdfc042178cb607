"""Tests for the tracer module."""

import numpy as np
import pytest


class TestSummarize:
    """Tests for object summarization."""
    
    def test_numpy_array_summary(self):
        """Test that numpy arrays are summarized with shape and type."""
        from fiberinspect.tracer import summarize
        
        arr = np.zeros((480, 640, 3), dtype=np.uint8)
        summary = summarize(arr)
        
        assert "ndarray" in summary
        assert "480x640x3" in summary
        assert "uint8" in summary
    
    def test_summary_capped_length(self):
        """Test that summary never exceeds max length."""
        from fiberinspect.tracer import summarize
        
        large_dict = {f"key_{i}": f"value_{i}" for i in range(100)}
        summary = summarize(large_dict, max_len=20)
        
        assert len(summary) <= 20
    
    def test_list_summary(self):
        from fiberinspect.tracer import summarize
        
        summary = summarize([1, 2, 3, 4, 5])
        
        assert "list" in summary
        assert "len=5" in summary
    
    def test_float_summary(self):
        from fiberinspect.tracer import summarize
        
        assert summarize(0.123456789) == "0.1235"
    
    def test_none_summary(self):
        from fiberinspect.tracer import summarize
        
        assert summarize(None) == "None"
    
    def test_pydantic_model_summary(self):
        """Test Pydantic model summarization."""
        from fiberinspect.tracer import summarize
        from fiberinspect.models import BoundingBox, Defect
        
        defect = Defect(bounding_box=BoundingBox(width=3, height=4), severity=0.5)
        summary = summarize(defect)
        
        assert "Defect" in summary


class TestTracerSpan:
    """Tests for tracer span functionality."""
    
    def test_span_nesting(self, capsys):
        """Test that spans produce start/end lines and indented events."""
        from fiberinspect.tracer import get_tracer, configure_tracer
        
        configure_tracer(enabled=True, level="INFO")
        tracer = get_tracer()
        
        try:
            with tracer.span("outer", module="test"):
                with tracer.span("inner", module="test"):
                    tracer.event("inside")
        finally:
            configure_tracer(enabled=False)
        
        lines = capsys.readouterr().err.strip().split("\n")
        
        assert len(lines) == 5
        assert "    test:inner  inside" in lines[2]
    
    def test_failed_span_logged_and_reraised(self, capsys):
        from fiberinspect.tracer import get_tracer, configure_tracer
        
        configure_tracer(enabled=True, level="INFO")
        tracer = get_tracer()
        
        try:
            with pytest.raises(RuntimeError):
                with tracer.span("boom", module="test"):
                    raise RuntimeError("broken")
            tracer.event("after")
        finally:
            configure_tracer(enabled=False)
        
        lines = capsys.readouterr().err.strip().split("\n")
        
        assert "failed" in lines[1]
        assert "RuntimeError: broken" in lines[1]
        # span stack unwound
        assert "after" in lines[2]
        assert tracer._depth == 0
    
    def test_level_filtering(self, capsys):
        from fiberinspect.tracer import get_tracer, configure_tracer
        
        configure_tracer(enabled=True, level="WARN")
        try:
            get_tracer().event("quiet", level="INFO")
            get_tracer().event("loud", level="WARN")
        finally:
            configure_tracer(enabled=False)
        
        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "loud" in err
    
    def test_tracer_disabled_no_output(self, capsys):
        """Test that disabled tracer produces no output."""
        from fiberinspect.tracer import get_tracer, configure_tracer
        
        configure_tracer(enabled=False)
        tracer = get_tracer()
        
        with tracer.span("test", module="test"):
            tracer.event("should not appear")
        
        assert capsys.readouterr().err == ""
    
    def test_trace_file(self, temp_dir):
        import os
        from fiberinspect.tracer import get_tracer, configure_tracer
        
        path = os.path.join(temp_dir, "trace.log")
        configure_tracer(enabled=True, file_path=path)
        try:
            get_tracer().event("to file")
        finally:
            configure_tracer(enabled=False)
        
        with open(path, "r", encoding="utf-8") as f:
            assert "to file" in f.read()


class TestTraceDecorator:
    """Tests for the @trace decorator."""
    
    def test_decorator_runs_function(self):
        from fiberinspect.tracer import trace, configure_tracer
        
        configure_tracer(enabled=False)
        
        @trace(label="test_func")
        def my_func(x):
            return x * 2
        
        assert my_func(5) == 10
    
    def test_decorator_with_exception(self):
        from fiberinspect.tracer import trace, configure_tracer
        
        configure_tracer(enabled=False)
        
        @trace(label="failing_func")
        def failing_func():
            raise ValueError("test error")
        
        with pytest.raises(ValueError):
            failing_func()
