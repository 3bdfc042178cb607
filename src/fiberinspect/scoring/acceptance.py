"""
Acceptability rules for a fiber endface.

Each rule produces an AcceptanceCheck. The fiber is acceptable only when
every check passes.
"""

from fiberinspect.models import AcceptanceCheck
from fiberinspect.tracer import get_tracer, trace


@trace(label="run_acceptance_checks")
def run_acceptance_checks(defects, core_clad_ratio, reference, acceptance):
    """
    Run all acceptability checks.
    
    Args:
        defects: list of Defect
        core_clad_ratio: measured core-clad ratio
        reference: ReferenceParameters
        acceptance: AcceptanceConfig
    
    Returns list of AcceptanceCheck.
    """
    tracer = get_tracer()
    
    checks = [
        check_ratio_tolerance(core_clad_ratio, reference.ideal_core_clad_ratio, acceptance.ratio_tolerance),
        check_total_severity(defects, reference.max_allowed_defects),
        check_critical_defects(defects, acceptance.critical_severity, acceptance.max_critical_defects),
    ]
    
    failed = [c.rule_id for c in checks if not c.passed]
    tracer.event(f"Acceptance checks: {len(checks) - len(failed)}/{len(checks)} passed", failed=failed)
    
    return checks


def is_fiber_acceptable(checks):
    """A fiber passes only if every check passed."""
    return all(c.passed for c in checks)


def evaluate(defects, core_clad_ratio, reference, acceptance):
    """Run the checks and return the pass/fail decision."""
    return is_fiber_acceptable(run_acceptance_checks(defects, core_clad_ratio, reference, acceptance))


def check_ratio_tolerance(core_clad_ratio, ideal_ratio, tolerance):
    """
    Check the core-clad ratio lies within the tolerance band around the ideal.
    
    Both band edges are inclusive.
    """
    lower = (1.0 - tolerance) * ideal_ratio
    upper = (1.0 + tolerance) * ideal_ratio
    passed = lower <= core_clad_ratio <= upper
    
    if passed:
        message = f"Core-clad ratio {core_clad_ratio:.3f} within [{lower:.3f}, {upper:.3f}]"
    else:
        message = f"Core-clad ratio {core_clad_ratio:.3f} outside [{lower:.3f}, {upper:.3f}]"
    
    return AcceptanceCheck(
        rule_id="ratio_tolerance",
        passed=passed,
        message=message,
        evidence={"ratio": core_clad_ratio, "lower": lower, "upper": upper},
    )


def check_total_severity(defects, max_allowed):
    """Check the summed severity stays strictly below the allowed maximum."""
    total = sum(d.severity for d in defects)
    passed = total < max_allowed
    
    return AcceptanceCheck(
        rule_id="total_severity",
        passed=passed,
        message=f"Total defect severity {total:.2f} {'<' if passed else '>='} {max_allowed:.2f}",
        evidence={"total_severity": total, "max_allowed": max_allowed},
    )


def check_critical_defects(defects, critical_severity, max_critical):
    """Check fewer than max_critical defects exceed the critical severity."""
    critical = [i for i, d in enumerate(defects) if d.severity > critical_severity]
    passed = len(critical) < max_critical
    
    return AcceptanceCheck(
        rule_id="critical_defects",
        passed=passed,
        message=f"{len(critical)} critical defects (severity > {critical_severity:.2f}), limit {max_critical}",
        evidence={"critical_indices": critical, "critical_severity": critical_severity},
    )
