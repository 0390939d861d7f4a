from __future__ import annotations

import pytest
from pydantic import ValidationError

from t5beam.contract.errors import ShapeInferenceError
from t5beam.contract.models import ModelParameters
from t5beam.contract.parameters import get_parameters


def test_heads_and_size_from_cache_shape() -> None:
    params = get_parameters(("batch", 8, "seq", 64), ("batch", 1, 512))
    assert (params.num_heads, params.head_size, params.hidden_size) == (8, 64, 512)


def test_hidden_size_mismatch_fails() -> None:
    with pytest.raises(ShapeInferenceError):
        get_parameters(("batch", 8, "seq", 64), ("batch", 1, 256))


@pytest.mark.parametrize(
    "cache_shape",
    [
        None,
        ("batch", 8, 64),
        (2, "batch", 8, "seq", 64),
        ("batch", "heads", "seq", 64),
        ("batch", 8, "seq", None),
        ("batch", 0, "seq", 64),
    ],
)
def test_unresolvable_cache_shape(cache_shape) -> None:
    with pytest.raises(ShapeInferenceError):
        get_parameters(cache_shape, ("batch", 1, 512))


@pytest.mark.parametrize("logits_shape", [None, ("batch", 512), ("batch", 1, "vocab"), ("batch", 1, None)])
def test_unresolvable_logits_shape(logits_shape) -> None:
    with pytest.raises(ShapeInferenceError):
        get_parameters(("batch", 8, "seq", 64), logits_shape)


def test_batch_and_sequence_dims_may_be_symbolic() -> None:
    params = get_parameters((None, 12, None, 64), (None, None, 768))
    assert params.hidden_size == 768


def test_model_parameters_enforce_hidden_size() -> None:
    with pytest.raises(ValidationError):
        ModelParameters(num_layers=1, num_heads=8, head_size=64, hidden_size=256)
    with pytest.raises(ValidationError):
        ModelParameters(num_layers=0, num_heads=8, head_size=64, hidden_size=512)
