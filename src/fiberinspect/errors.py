"""
Exception types for Fiber Inspect.

Invalid input is not an exception: the analyzer short-circuits and returns a
default result. Everything raised inside the analysis pipeline is caught at
the FiberAnalyzer boundary.
"""


class FiberInspectError(Exception):
    """Base class for all Fiber Inspect errors."""


class VisionPrimitiveError(FiberInspectError):
    """A vision primitive produced an unusable result."""


class ConfigurationError(FiberInspectError, ValueError):
    """Reference parameters or configuration values are out of range."""
