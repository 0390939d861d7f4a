from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Tuple

import torch

from t5beam.contract.errors import AllocationError

ExpandedInputs = Tuple[torch.Tensor, torch.Tensor, torch.Tensor]


@dataclass(frozen=True)
class Allocator:
    device: torch.device

    def allocate(self, shape: Tuple[int, ...], dtype: torch.dtype = torch.int32) -> torch.Tensor:
        try:
            return torch.empty(shape, dtype=dtype, device=self.device)
        except RuntimeError as err:
            raise AllocationError(f"failed to allocate {tuple(shape)} {dtype} on {self.device}: {err}") from err


@dataclass(frozen=True)
class ExecutionProvider:
    name: str
    device: torch.device


@dataclass
class ExecutionResources:
    """Execution provider plus one allocator per device type ("cpu", "cuda", ...)."""

    provider: ExecutionProvider
    allocators: Dict[str, Allocator] = field(default_factory=dict)

    @classmethod
    def for_device(cls, device: str = "cpu") -> "ExecutionResources":
        dev = torch.device(device)
        allocators = {"cpu": Allocator(torch.device("cpu"))}
        allocators[dev.type] = Allocator(dev)
        name = "CPUExecutionProvider" if dev.type == "cpu" else f"{dev.type.upper()}ExecutionProvider"
        return cls(provider=ExecutionProvider(name, dev), allocators=allocators)

    def allocator_for(self, device: torch.device) -> Optional[Allocator]:
        return self.allocators.get(device.type)


class DeviceHelper(Protocol):
    """Device specific pieces of first-step feed construction."""

    def create_encoder_inputs(
        self,
        encoder_input_ids: torch.Tensor,
        num_beams: int,
        pad_token_id: int,
        start_token_id: int,
        sequence_lengths: torch.Tensor,
        allocator: Allocator,
    ) -> ExpandedInputs:
        ...

    def add_to_feeds(
        self,
        provider: ExecutionProvider,
        expanded_input_ids: torch.Tensor,
        expanded_attention_mask: torch.Tensor,
        expanded_decoder_input_ids: torch.Tensor,
        feeds: List[torch.Tensor],
        buffer: Optional[torch.Tensor],
    ) -> Optional[torch.Tensor]:
        ...
