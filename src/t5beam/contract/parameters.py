from __future__ import annotations

from typing import Optional

from t5beam.ir.types import Shape, concrete_dim, format_shape

from .errors import ShapeInferenceError
from .models import ShapeParameters

# Per-layer cache layout: (batch_size * num_beams, num_heads, seq_len, head_size)
CACHE_RANK = 4
NUM_HEADS_DIM = 1
HEAD_SIZE_DIM = 3

# Logits layout: (batch_size * num_beams, seq_len, width)
LOGITS_RANK = 3


def _require_rank(shape: Optional[Shape], rank: int, what: str) -> Shape:
    if shape is None:
        raise ShapeInferenceError(f"{what} shape has unknown rank, expected rank {rank}")
    if len(shape) != rank:
        raise ShapeInferenceError(
            f"{what} shape {format_shape(shape)} has rank {len(shape)}, expected {rank}"
        )
    return shape


def _require_dim(shape: Shape, index: int, what: str, label: str) -> int:
    value = concrete_dim(shape, index)
    if value is None or value < 1:
        raise ShapeInferenceError(
            f"{what} dimension {index} ({label}) must be a positive integer, "
            f"got {shape[index]!r} in {format_shape(shape)}"
        )
    return value


def cache_heads(cache_shape: Optional[Shape]) -> Optional[tuple]:
    """(num_heads, head_size) declared by a cache shape, or None when not fully known."""
    if cache_shape is None or len(cache_shape) != CACHE_RANK:
        return None
    heads = concrete_dim(cache_shape, NUM_HEADS_DIM)
    size = concrete_dim(cache_shape, HEAD_SIZE_DIM)
    if heads is None or size is None:
        return None
    return heads, size


def get_parameters(cache_shape: Optional[Shape], logits_shape: Optional[Shape]) -> ShapeParameters:
    """Derive head count, head size and hidden size from declared output shapes.

    ``cache_shape`` is the shape of the first self-attention key cache and
    ``logits_shape`` the shape of the logits output. Both must carry concrete
    values where a size is read, and the logits trailing dimension must agree
    with ``num_heads * head_size``.
    """
    cache = _require_rank(cache_shape, CACHE_RANK, "cache")
    num_heads = _require_dim(cache, NUM_HEADS_DIM, "cache", "num_heads")
    head_size = _require_dim(cache, HEAD_SIZE_DIM, "cache", "head_size")

    logits = _require_rank(logits_shape, LOGITS_RANK, "logits")
    width = _require_dim(logits, LOGITS_RANK - 1, "logits", "hidden_size")

    hidden_size = num_heads * head_size
    if hidden_size != width:
        raise ShapeInferenceError(
            f"num_heads * head_size ({num_heads} * {head_size} = {hidden_size}) "
            f"does not match logits hidden size {width}"
        )
    return ShapeParameters(num_heads=num_heads, head_size=head_size, hidden_size=hidden_size)
