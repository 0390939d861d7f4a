from __future__ import annotations

from typing import Literal, Optional, Tuple, Union


# A dimension is a concrete size, a symbolic name ("batch_size") or unknown.
Dim = Union[int, str, None]
Shape = Tuple[Dim, ...]

ElemType = Literal["float", "float16", "bfloat16", "double", "int32", "int64", "bool"]


def is_concrete(dim: Dim) -> bool:
    return isinstance(dim, int) and not isinstance(dim, bool) and dim >= 0


def concrete_dim(shape: Optional[Shape], index: int) -> Optional[int]:
    """Return ``shape[index]`` when it is a known size, else None."""
    if shape is None or not -len(shape) <= index < len(shape):
        return None
    dim = shape[index]
    return dim if is_concrete(dim) else None


def format_shape(shape: Optional[Shape]) -> str:
    if shape is None:
        return "<unknown rank>"
    return "(" + ", ".join("?" if d is None else str(d) for d in shape) + ")"
