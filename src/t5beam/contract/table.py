from __future__ import annotations

import re
from typing import List, Optional, Tuple

# inputs: encoder_input_ids, encoder_attention_mask, decoder_input_ids
# outputs: logits, encoder_hidden_states,
#          present_key_self_0, present_value_self_0, ..., present_key_cross_0, present_value_cross_0, ...
INPUT_NAMES: Tuple[str, ...] = (
    "encoder_input_ids",
    "encoder_attention_mask",
    "decoder_input_ids",
)
OUTPUT_NAMES: Tuple[str, ...] = (
    "logits",
    "encoder_hidden_states",
    "present_key_self_0",
    "present_value_self_0",
)

INPUT_ELEM_TYPES: Tuple[str, ...] = ("int32",)
LOGITS_ELEM_TYPES: Tuple[str, ...] = ("float", "float16")
LOW_PRECISION_ELEM_TYPES: Tuple[str, ...] = ("float16",)

NUM_INPUTS = len(INPUT_NAMES)
NUM_NON_CACHE_OUTPUTS = 2
OUTPUTS_PER_LAYER = 4
MIN_OUTPUTS = NUM_NON_CACHE_OUTPUTS + OUTPUTS_PER_LAYER

LOGITS_INDEX = 0
FIRST_CACHE_INDEX = 2

_CACHE_NAME_RE = re.compile(r"^present_(key|value)_(self|cross)_(\d+)$")


def expected_output_count(num_layers: int) -> int:
    return NUM_NON_CACHE_OUTPUTS + OUTPUTS_PER_LAYER * num_layers


def layers_from_output_count(num_outputs: int) -> Optional[int]:
    """Layer count implied by ``num_outputs``, or None when it breaks the 2 + 4L rule."""
    if num_outputs < MIN_OUTPUTS:
        return None
    if (num_outputs - NUM_NON_CACHE_OUTPUTS) % OUTPUTS_PER_LAYER != 0:
        return None
    return (num_outputs - NUM_NON_CACHE_OUTPUTS) // OUTPUTS_PER_LAYER


def cache_output_names(num_layers: int) -> List[str]:
    """Conventional cache output names: all self-attention pairs, then all cross-attention pairs."""
    names: List[str] = []
    for kind in ("self", "cross"):
        for layer in range(num_layers):
            names.append(f"present_key_{kind}_{layer}")
            names.append(f"present_value_{kind}_{layer}")
    return names


def parse_cache_name(name: str) -> Optional[Tuple[str, str, int]]:
    """Split ``present_key_cross_3`` into ``("key", "cross", 3)``."""
    m = _CACHE_NAME_RE.match(name)
    if m is None:
        return None
    return m.group(1), m.group(2), int(m.group(3))
