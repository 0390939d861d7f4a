from __future__ import annotations

from typing import List, Optional, Tuple

from t5beam.contract.models import TensorDescriptor
from t5beam.contract.table import cache_output_names


def make_inputs(elem_type: str = "int32") -> List[TensorDescriptor]:
    return [
        TensorDescriptor(name="encoder_input_ids", elem_type=elem_type, shape=("batch", "seq")),
        TensorDescriptor(name="encoder_attention_mask", elem_type=elem_type, shape=("batch", "seq")),
        TensorDescriptor(name="decoder_input_ids", elem_type=elem_type, shape=("batch", 1)),
    ]


def make_outputs(
    num_layers: int = 1,
    *,
    num_heads: int = 8,
    head_size: int = 64,
    width: Optional[int] = None,
    logits_type: str = "float",
) -> List[TensorDescriptor]:
    width = num_heads * head_size if width is None else width
    cache_shape: Tuple = ("batch", num_heads, "seq", head_size)
    outputs = [
        TensorDescriptor(name="logits", elem_type=logits_type, shape=("batch", 1, width)),
        TensorDescriptor(name="encoder_hidden_states", elem_type=logits_type, shape=("batch", "seq", width)),
    ]
    for name in cache_output_names(num_layers):
        outputs.append(TensorDescriptor(name=name, elem_type=logits_type, shape=cache_shape))
    return outputs


