"""
Human-readable analysis summary.
"""


def generate_summary(result, ideal_ratio):
    """
    Build the multi-line summary for an AnalysisResult.
    
    Defects are listed in result order.
    """
    lines = []
    
    if result.is_acceptable:
        lines.append("PASS: Fiber meets quality standards.")
    else:
        lines.append("FAIL: Fiber does not meet quality standards.")
    
    lines.append(f"Core-Cladding Ratio: {result.core_clad_ratio:.3f} (Ideal: {ideal_ratio:.3f})")
    lines.append(f"Concentricity: {result.concentricity:.3f}")
    lines.append(f"Overall Quality Score: {result.overall_quality:.2f}")
    lines.append(f"Defects found: {len(result.defects)}")
    
    if result.defects:
        lines.append("Defect List:")
        for i, defect in enumerate(result.defects, start=1):
            lines.append(f"{i}. {defect.description} (Severity: {defect.severity:.2f})")
    
    return "\n".join(lines) + "\n"


def format_error_summary(error):
    """Summary text for an analysis that failed part way through."""
    return f"Analysis error: {error}"
