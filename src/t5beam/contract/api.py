from __future__ import annotations

import json
from pathlib import Path
from typing import Tuple

import yaml
from jsonschema import Draft202012Validator
from pydantic import ValidationError

from .errors import SignatureFormatError
from .models import BeamExpansionRequest, ModelParameters, SubgraphSignature
from .schema import EXPANSION_JSON_SCHEMA, SIGNATURE_JSON_SCHEMA
from .validators import validate_signature


def dump_schema(path: Path) -> None:
    path.write_text(json.dumps(SIGNATURE_JSON_SCHEMA, indent=2))


def _validate_schema(doc: object, schema: dict) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(doc), key=lambda e: [str(p) for p in e.path])
    if errors:
        msg = "\n".join(
            [
                f"{list(e.path)}: {e.message}" if e.path else e.message
                for e in errors
            ]
        )
        raise SignatureFormatError(msg)


def parse_signature(doc: object) -> SubgraphSignature:
    _validate_schema(doc, SIGNATURE_JSON_SCHEMA)
    try:
        return SubgraphSignature.model_validate(doc)
    except ValidationError as exc:
        raise SignatureFormatError(str(exc)) from exc


def parse_expansion(doc: object) -> BeamExpansionRequest:
    _validate_schema(doc, EXPANSION_JSON_SCHEMA)
    try:
        return BeamExpansionRequest.model_validate(doc)
    except ValidationError as exc:
        raise SignatureFormatError(str(exc)) from exc


def load_signature_yaml(path: Path) -> SubgraphSignature:
    return parse_signature(yaml.safe_load(path.read_text()))


def load_validate_yaml(path: Path) -> Tuple[SubgraphSignature, ModelParameters]:
    signature = load_signature_yaml(path)
    params = validate_signature(signature.inputs, signature.outputs)
    return signature, params
