"""Image file helpers for the CLI (decode targets, save renders, plot progress).

The engine itself only sees flat RGBA uint8 buffers; these helpers convert
between those buffers and image files via matplotlib.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from .renderer import as_image


def to_rgba8(image: np.ndarray) -> np.ndarray:
    """Convert a decoded image `(H, W)`, `(H, W, 3)` or `(H, W, 4)` to uint8 RGBA.

    Float images (as returned for PNG files) are assumed to be in `[0, 1]`.
    Missing alpha is filled with 255.
    """
    arr = np.asarray(image)
    if np.issubdtype(arr.dtype, np.floating):
        arr = np.clip(np.rint(arr * 255.0), 0, 255)
    arr = arr.astype(np.uint8)
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"unsupported image shape {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=-1)
    return np.ascontiguousarray(arr)


def load_rgba(path: Path) -> tuple[np.ndarray, int, int]:
    """Load an image file as `(flat_rgba_pixels, width, height)`."""
    image = to_rgba8(plt.imread(str(path)))
    height, width = int(image.shape[0]), int(image.shape[1])
    return image.reshape(-1), width, height


def save_rgba(path: Path, pixels: np.ndarray, width: int, height: int) -> Path:
    """Write a flat RGBA buffer to an image file (format from the suffix)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.imsave(str(path), as_image(pixels, width, height))
    return path


def plot_history(history: Sequence[tuple[int, float]], filename: Path, *, title: str = "") -> Path:
    """Plot accuracy against iteration and save it as an image.

    Args:
        history: `(iteration, accuracy)` samples.
        filename: Output image path.
        title: Optional plot title.
    """
    filename = Path(filename)
    filename.parent.mkdir(parents=True, exist_ok=True)
    its = [it for it, _ in history]
    acc = [100.0 * a for _, a in history]

    plt.figure(figsize=(8, 5))
    plt.plot(its, acc, "g-")
    plt.xlabel("iteration")
    plt.ylabel("accuracy (%)")
    if title:
        plt.title(title)
    plt.grid(True, alpha=0.3)
    plt.savefig(filename)
    plt.close()
    return filename
