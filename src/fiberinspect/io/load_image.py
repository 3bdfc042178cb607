"""
Image loading and normalization for Fiber Inspect.

Color images are held in RGB (or RGBA) channel order throughout the package.
Accepted canonical forms are 8-bit luminance and 8-bit 3/4-channel color;
any other pixel layout is converted to 8-bit RGBA.
"""

import os

import cv2
import numpy as np

from fiberinspect.tracer import get_tracer, trace


SUPPORTED_EXTENSIONS = [".png", ".jpg", ".jpeg", ".tiff", ".tif", ".bmp"]


def is_valid_image(image):
    """Return True if image is a non-empty 2-D or 3-D pixel array."""
    if image is None or not isinstance(image, np.ndarray):
        return False
    if image.ndim not in (2, 3) or image.size == 0:
        return False
    if image.shape[0] == 0 or image.shape[1] == 0:
        return False
    return True


def is_canonical(image):
    """Check whether image is already 8-bit luminance or 8-bit 3/4-channel color."""
    if image.dtype != np.uint8:
        return False
    if image.ndim == 2:
        return True
    return image.shape[2] in (3, 4)


def normalize_image(image):
    """
    Bring an image into one of the canonical forms.
    
    Canonical inputs are returned unchanged. Everything else becomes a new
    RGBA uint8 array. Raises ValueError for arrays that cannot be images.
    """
    if not is_valid_image(image):
        raise ValueError("Image is empty or not a 2-D/3-D array")
    
    if is_canonical(image):
        return image
    
    data = _to_uint8(image)
    
    if data.ndim == 2:
        return cv2.cvtColor(data, cv2.COLOR_GRAY2RGBA)
    
    channels = data.shape[2]
    if channels == 1:
        return cv2.cvtColor(np.ascontiguousarray(data[:, :, 0]), cv2.COLOR_GRAY2RGBA)
    if channels == 2:
        # luminance + alpha
        rgba = cv2.cvtColor(np.ascontiguousarray(data[:, :, 0]), cv2.COLOR_GRAY2RGBA)
        rgba[:, :, 3] = data[:, :, 1]
        return rgba
    if channels == 3:
        return cv2.cvtColor(data, cv2.COLOR_RGB2RGBA)
    if channels == 4:
        return data
    
    raise ValueError(f"Unsupported channel count: {channels}")


def _to_uint8(image):
    """Rescale any numeric pixel type into 0..255 uint8."""
    if image.dtype == np.uint8:
        return image
    
    if image.dtype == np.bool_:
        return image.astype(np.uint8) * 255
    
    if np.issubdtype(image.dtype, np.floating):
        data = np.nan_to_num(image.astype(np.float64))
        if data.size and data.max() <= 1.0:
            data = data * 255.0
        return np.clip(np.rint(data), 0, 255).astype(np.uint8)
    
    if np.issubdtype(image.dtype, np.unsignedinteger):
        scale = 255.0 / np.iinfo(image.dtype).max
        return np.clip(np.rint(image * scale), 0, 255).astype(np.uint8)
    
    return np.clip(image, 0, 255).astype(np.uint8)


def to_luminance(image):
    """Convert a canonical image to single-channel 8-bit luminance."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)


def to_rgb(image):
    """Convert a canonical image to 3-channel RGB for drawing."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2RGB)
    return image.copy()


@trace(label="load_image")
def load_image(path):
    """
    Load an image from disk.
    
    Returns a tuple of (image, metadata) where:
    - image: canonical numpy array (H, W), (H, W, 3) RGB or (H, W, 4) RGBA
    - metadata: dict with width, height, channels, source_path
    
    Raises FileNotFoundError if path does not exist.
    Raises ValueError if image cannot be loaded.
    """
    tracer = get_tracer()
    
    if not os.path.exists(path):
        raise FileNotFoundError(f"Image not found: {path}")
    
    raw = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    
    if raw is None:
        raise ValueError(f"Failed to load image: {path}")
    
    # OpenCV decodes color as BGR(A)
    if raw.ndim == 3 and raw.shape[2] == 3:
        raw = cv2.cvtColor(raw, cv2.COLOR_BGR2RGB)
    elif raw.ndim == 3 and raw.shape[2] == 4:
        raw = cv2.cvtColor(raw, cv2.COLOR_BGRA2RGBA)
    
    image = normalize_image(raw)
    
    height, width = image.shape[:2]
    channels = 1 if image.ndim == 2 else image.shape[2]
    
    tracer.event(f"Loaded image: {width}x{height}, channels={channels}")
    
    metadata = {
        "width": width,
        "height": height,
        "channels": channels,
        "source_path": os.path.abspath(path),
    }
    
    return image, metadata


def validate_image_inputs(paths):
    """
    Validate that all input paths exist and are readable images.
    
    Returns a list of error messages (empty if all valid).
    """
    errors = []
    
    for path in paths:
        if not os.path.exists(path):
            errors.append(f"File not found: {path}")
            continue
        
        ext = os.path.splitext(path)[1].lower()
        if ext not in SUPPORTED_EXTENSIONS:
            errors.append(f"Unsupported image format: {path}")
            continue
        
        if cv2.imread(path, cv2.IMREAD_UNCHANGED) is None:
            errors.append(f"Cannot read image: {path}")
    
    return errors
