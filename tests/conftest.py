"""Pytest fixtures for Fiber Inspect tests."""

import os
import tempfile

import cv2
import numpy as np
import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def fiber_image():
    """
    A 640x480 RGB endface: white cladding disk of radius 100 at (320, 240)
    with a slightly darker core disk of radius 80 inside it.
    """
    img = np.zeros((480, 640, 3), dtype=np.uint8)
    cv2.circle(img, (320, 240), 100, (255, 255, 255), -1)
    cv2.circle(img, (320, 240), 80, (240, 240, 240), -1)
    return img


@pytest.fixture
def blank_image():
    """A uniform gray image with nothing to detect."""
    return np.full((120, 160, 3), 128, dtype=np.uint8)


@pytest.fixture
def spotted_image():
    """
    White background with a small dark spot, a thin horizontal line and a
    large dark blob outside the retained defect size range.
    """
    img = np.full((200, 300, 3), 255, dtype=np.uint8)
    cv2.circle(img, (50, 50), 5, (0, 0, 0), -1)
    cv2.rectangle(img, (100, 150), (139, 153), (0, 0, 0), -1)
    cv2.circle(img, (230, 80), 30, (0, 0, 0), -1)
    return img


@pytest.fixture
def default_config():
    """Create default analysis configuration."""
    from fiberinspect.config import AnalysisConfig
    return AnalysisConfig()


@pytest.fixture
def fiber_image_file(temp_dir, fiber_image):
    """Write the synthetic fiber image to disk for pipeline tests."""
    path = os.path.join(temp_dir, "fiber.png")
    cv2.imwrite(path, cv2.cvtColor(fiber_image, cv2.COLOR_RGB2BGR))
    return path
