"""
Artifact saving utilities for Fiber Inspect.

Handles writing annotated images, debug images and JSON files.
"""

import json
import os

import cv2
import numpy as np

from fiberinspect.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def get_debug_dir(out_dir, image_id, stage_name):
    """
    Get the debug directory path for a stage.
    
    Creates the directory if it does not exist.
    """
    debug_dir = os.path.join(out_dir, "debug", image_id, stage_name)
    ensure_dir(debug_dir)
    return debug_dir


def save_image(img, path, max_edge=None):
    """
    Save an image to disk.
    
    Optionally downscales to max_edge while preserving aspect ratio.
    Converts RGB/RGBA to OpenCV's BGR/BGRA order before writing.
    """
    tracer = get_tracer()
    
    # Downscale if needed
    if max_edge and max(img.shape[:2]) > max_edge:
        scale = max_edge / max(img.shape[:2])
        new_size = (int(img.shape[1] * scale), int(img.shape[0] * scale))
        img = cv2.resize(img, new_size, interpolation=cv2.INTER_AREA)
    
    if img.ndim == 3 and img.shape[2] == 3:
        img_bgr = cv2.cvtColor(img, cv2.COLOR_RGB2BGR)
    elif img.ndim == 3 and img.shape[2] == 4:
        img_bgr = cv2.cvtColor(img, cv2.COLOR_RGBA2BGRA)
    else:
        img_bgr = img
    
    ensure_dir(os.path.dirname(path))
    if not cv2.imwrite(path, img_bgr):
        raise ValueError(f"Failed to write image: {path}")
    tracer.event(f"Saved image: {path}")


def save_json(data, path, indent=2):
    """
    Save a dictionary or Pydantic model to JSON.
    """
    tracer = get_tracer()
    
    ensure_dir(os.path.dirname(path))
    
    # Handle Pydantic models
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)
    
    tracer.event(f"Saved JSON: {path}")


def create_mask_overlay(rgb_img, mask, color=(255, 0, 0)):
    """
    Paint the foreground of a binary mask onto an RGB image.
    
    mask should be uint8 with 255 for foreground.
    """
    overlay = rgb_img.copy()
    overlay[mask > 0] = color
    return overlay


class DebugArtifactWriter:
    """
    Helper class to manage debug artifact writing for a single image.
    
    Handles creation of debug directories and provides convenience methods
    for saving various artifact types.
    """
    
    def __init__(self, out_dir, image_id, enabled=True, max_edge=1600):
        self.out_dir = out_dir
        self.image_id = image_id
        self.enabled = enabled
        self.max_edge = max_edge
    
    def get_stage_dir(self, stage_name):
        """Get the debug directory for a stage."""
        return get_debug_dir(self.out_dir, self.image_id, stage_name)
    
    def save_image(self, img, stage_name, filename):
        """Save an image artifact."""
        if not self.enabled:
            return
        path = os.path.join(self.get_stage_dir(stage_name), filename)
        save_image(np.ascontiguousarray(img), path, max_edge=self.max_edge)
    
    def save_json(self, data, stage_name, filename):
        """Save a JSON artifact."""
        if not self.enabled:
            return
        path = os.path.join(self.get_stage_dir(stage_name), filename)
        save_json(data, path)
