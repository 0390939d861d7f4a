from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from t5beam.ir.types import Dim, ElemType


class TensorDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    elem_type: ElemType
    shape: Optional[Tuple[Dim, ...]] = None


class SubgraphSignature(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    inputs: Tuple[TensorDescriptor, ...]
    outputs: Tuple[TensorDescriptor, ...]


class ShapeParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    num_heads: int = Field(..., ge=1)
    head_size: int = Field(..., ge=1)
    hidden_size: int = Field(..., ge=1)


class ModelParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    num_layers: int = Field(..., ge=1)
    num_heads: int = Field(..., ge=1)
    head_size: int = Field(..., ge=1)
    hidden_size: int = Field(..., ge=1)
    output_is_low_precision: bool = False

    @model_validator(mode="after")
    def _check_hidden_size(self) -> "ModelParameters":
        if self.num_heads * self.head_size != self.hidden_size:
            raise ValueError(
                f"hidden_size ({self.hidden_size}) must equal "
                f"num_heads * head_size ({self.num_heads} * {self.head_size})"
            )
        return self


class BeamExpansionRequest(BaseModel):
    num_beams: int = Field(..., ge=1)
    pad_token_id: int
    start_token_id: int
