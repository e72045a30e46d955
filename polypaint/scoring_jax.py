"""JAX batched accuracy kernels.

This module mirrors `polypaint.scoring` for a stack of rendered buffers, so
the elitist and differential strategies can score a whole generation in one
jitted call. The device only computes integer error totals; the final
division runs on the host in float64, so scores are bit-identical to the
NumPy metrics.
"""

from __future__ import annotations

from functools import partial

import jax
import jax.numpy as jnp
import numpy as np

from .constants import MAX_CHANNEL
from .scoring import as_pixels

# Largest block whose squared-error total still fits in int32.
_CHUNK = 32768


def _sad_block(target: jax.Array, rendered: jax.Array) -> jax.Array:
    return jnp.sum(jnp.abs(target - rendered), axis=-1)


def _mse_block(target: jax.Array, rendered: jax.Array) -> jax.Array:
    diff = target - rendered
    return jnp.sum(diff * diff, axis=-1)


@partial(jax.jit, static_argnames=("metric",))
def _batch_totals(target: jax.Array, stack: jax.Array, metric: str) -> jax.Array:
    """`(K, C)` target blocks vs `(B, K, C)` renders -> `(B, K)` int32 totals."""
    block_fn = _sad_block if metric == "sad" else _mse_block
    t = target.astype(jnp.int32)
    return jax.vmap(lambda r: block_fn(t, r.astype(jnp.int32)))(stack)


def batch_accuracy(target: object, stack: np.ndarray, *, metric: str = "sad") -> np.ndarray:
    """Score every row of `stack` against `target`.

    Args:
        target: Target pixels (bytes-like or array-like).
        stack: `(B, L)` uint8 array of rendered buffers.
        metric: `"sad"` or `"mse"`.

    Returns:
        A `(B,)` float64 array of accuracies; all zeros when `L` does not
        match the target length or is zero.
    """
    if metric not in {"sad", "mse"}:
        raise ValueError(f"Unknown metric: {metric!r}")
    t = as_pixels(target)
    stack = np.asarray(stack, dtype=np.uint8)
    if stack.ndim != 2:
        raise ValueError(f"expected a (B, L) stack, got shape {stack.shape}")
    size = t.size
    if stack.shape[1] != size or size == 0:
        return np.zeros((stack.shape[0],), dtype=float)

    chunk = min(_CHUNK, size)
    blocks = -(-size // chunk)
    pad = blocks * chunk - size
    # Zero padding on both sides adds nothing to either total.
    t_blocks = np.pad(t, (0, pad)).reshape(blocks, chunk)
    s_blocks = np.pad(stack, ((0, 0), (0, pad))).reshape(stack.shape[0], blocks, chunk)
    partials = _batch_totals(jnp.asarray(t_blocks), jnp.asarray(s_blocks), metric)
    totals = np.asarray(partials, dtype=np.int64).sum(axis=1)

    scale = MAX_CHANNEL if metric == "sad" else MAX_CHANNEL * MAX_CHANNEL
    denom = float(size * scale)
    return np.array([1.0 - int(total) / denom for total in totals], dtype=float)
