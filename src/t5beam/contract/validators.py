from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .errors import (
    NameMismatch,
    ShapeInferenceError,
    UnsupportedDataType,
    WrongInputCount,
    WrongOutputCount,
)
from .models import ModelParameters, ShapeParameters, TensorDescriptor
from .parameters import cache_heads, get_parameters
from .table import (
    FIRST_CACHE_INDEX,
    INPUT_ELEM_TYPES,
    INPUT_NAMES,
    LOGITS_ELEM_TYPES,
    LOGITS_INDEX,
    LOW_PRECISION_ELEM_TYPES,
    NUM_INPUTS,
    OUTPUT_NAMES,
    layers_from_output_count,
    parse_cache_name,
)

logger = logging.getLogger(__name__)


def _check_counts(inputs: Sequence[TensorDescriptor], outputs: Sequence[TensorDescriptor]) -> int:
    if len(inputs) != NUM_INPUTS:
        raise WrongInputCount(NUM_INPUTS, len(inputs))
    num_layers = layers_from_output_count(len(outputs))
    if num_layers is None:
        raise WrongOutputCount(len(outputs))
    return num_layers


def _check_names(kind: str, descriptors: Sequence[TensorDescriptor], expected: Iterable[str]) -> None:
    for position, name in enumerate(expected):
        actual = descriptors[position].name
        if actual != name:
            raise NameMismatch(kind, position, name, actual)


def _check_elem_types(inputs: Sequence[TensorDescriptor], outputs: Sequence[TensorDescriptor]) -> None:
    for position, desc in enumerate(inputs):
        if desc.elem_type not in INPUT_ELEM_TYPES:
            raise UnsupportedDataType("input", position, desc.name, desc.elem_type, INPUT_ELEM_TYPES)
    logits = outputs[LOGITS_INDEX]
    if logits.elem_type not in LOGITS_ELEM_TYPES:
        raise UnsupportedDataType(
            "output", LOGITS_INDEX, logits.name, logits.elem_type, LOGITS_ELEM_TYPES
        )


def _check_layer_consistency(outputs: Sequence[TensorDescriptor], shape_params: ShapeParameters) -> None:
    expected = (shape_params.num_heads, shape_params.head_size)
    for desc in outputs[FIRST_CACHE_INDEX + 1 :]:
        if parse_cache_name(desc.name) is None:
            continue
        declared = cache_heads(desc.shape)
        # Symbolic head dims on later layers are fine, only concrete conflicts fail.
        if declared is not None and declared != expected:
            raise ShapeInferenceError(
                f"declares num_heads={declared[0]}, head_size={declared[1]} but "
                f"{outputs[FIRST_CACHE_INDEX].name} declares "
                f"num_heads={expected[0]}, head_size={expected[1]}",
                name=desc.name,
            )


def validate_signature(
    inputs: Sequence[TensorDescriptor], outputs: Sequence[TensorDescriptor]
) -> ModelParameters:
    num_layers = _check_counts(inputs, outputs)
    _check_names("input", inputs, INPUT_NAMES)
    _check_names("output", outputs, OUTPUT_NAMES)
    _check_elem_types(inputs, outputs)

    shape_params = get_parameters(
        outputs[FIRST_CACHE_INDEX].shape, outputs[LOGITS_INDEX].shape
    )
    _check_layer_consistency(outputs, shape_params)

    params = ModelParameters(
        num_layers=num_layers,
        output_is_low_precision=outputs[LOGITS_INDEX].elem_type in LOW_PRECISION_ELEM_TYPES,
        **shape_params.model_dump(),
    )
    logger.debug(
        "encoder subgraph validated: layers=%d heads=%d head_size=%d hidden=%d low_precision=%s",
        params.num_layers,
        params.num_heads,
        params.head_size,
        params.hidden_size,
        params.output_is_low_precision,
    )
    return params
