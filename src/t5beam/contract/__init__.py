from .api import dump_schema, load_signature_yaml, load_validate_yaml, parse_expansion, parse_signature
from .errors import (
    ContractViolation,
    NameMismatch,
    ShapeInferenceError,
    SignatureFormatError,
    SubgraphError,
    UnsupportedDataType,
    WrongInputCount,
    WrongOutputCount,
)
from .models import BeamExpansionRequest, ModelParameters, SubgraphSignature, TensorDescriptor
from .parameters import get_parameters
from .validators import validate_signature

__all__ = [
    "BeamExpansionRequest",
    "ContractViolation",
    "ModelParameters",
    "NameMismatch",
    "ShapeInferenceError",
    "SignatureFormatError",
    "SubgraphError",
    "SubgraphSignature",
    "TensorDescriptor",
    "UnsupportedDataType",
    "WrongInputCount",
    "WrongOutputCount",
    "dump_schema",
    "get_parameters",
    "load_signature_yaml",
    "load_validate_yaml",
    "parse_expansion",
    "parse_signature",
    "validate_signature",
]
