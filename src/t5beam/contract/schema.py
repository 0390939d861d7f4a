from __future__ import annotations

# JSON Schema for subgraph signature documents (YAML or JSON).

_DIM = {"type": ["integer", "string", "null"], "minimum": 0}

SIGNATURE_JSON_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Encoder subgraph signature v0.1",
    "type": "object",
    "required": ["inputs", "outputs"],
    "properties": {
        "name": {"type": "string"},
        "inputs": {
            "type": "array",
            "items": {"$ref": "#/definitions/tensor"},
        },
        "outputs": {
            "type": "array",
            "items": {"$ref": "#/definitions/tensor"},
        },
    },
    "additionalProperties": False,
    "definitions": {
        "tensor": {
            "type": "object",
            "required": ["name", "elem_type"],
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "elem_type": {
                    "enum": ["float", "float16", "bfloat16", "double", "int32", "int64", "bool"]
                },
                "shape": {
                    "type": ["array", "null"],
                    "items": _DIM,
                },
            },
            "additionalProperties": False,
        },
    },
}

EXPANSION_JSON_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Beam expansion request",
    "type": "object",
    "required": ["num_beams", "pad_token_id", "start_token_id"],
    "properties": {
        "num_beams": {"type": "integer", "minimum": 1},
        "pad_token_id": {"type": "integer"},
        "start_token_id": {"type": "integer"},
    },
    "additionalProperties": False,
}
