from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import torch

from t5beam.contract.errors import (
    ContractViolation,
    DeviceMismatchError,
    LifecycleError,
    NotInitializedError,
)
from t5beam.contract.models import (
    BeamExpansionRequest,
    ModelParameters,
    SubgraphSignature,
    TensorDescriptor,
)
from t5beam.contract.table import INPUT_NAMES
from t5beam.contract.validators import validate_signature

from .hooks import DeviceHelper, ExecutionResources
from .torch_helper import TorchDeviceHelper

logger = logging.getLogger(__name__)


class SubgraphState(enum.Enum):
    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"
    READY = "ready"
    FEEDS_BUILT = "feeds_built"


@dataclass
class InitialFeeds:
    feeds: List[torch.Tensor]
    sequence_lengths: torch.Tensor
    buffer: Optional[torch.Tensor] = None


class T5EncoderSubgraph:
    """Encoder subgraph of an encoder-decoder beam search.

    Lifecycle: ``validate`` once at load time, ``setup`` once to bind
    execution resources, then ``create_initial_feeds`` per generation request.
    """

    def __init__(self, *, device_helper: Optional[DeviceHelper] = None, name: str = "encoder") -> None:
        self.name = name
        self.device_helper: DeviceHelper = device_helper or TorchDeviceHelper()
        self.state = SubgraphState.UNVALIDATED
        self._parameters: Optional[ModelParameters] = None
        self._resources: Optional[ExecutionResources] = None
        self._implicit_input_names: Optional[List[str]] = None

    @property
    def parameters(self) -> ModelParameters:
        if self._parameters is None:
            raise NotInitializedError(f"validate must be called before reading parameters of '{self.name}'")
        return self._parameters

    @property
    def resources(self) -> ExecutionResources:
        if self._resources is None:
            raise NotInitializedError(f"setup must be called before using resources of '{self.name}'")
        return self._resources

    @property
    def num_implicit_inputs(self) -> Optional[int]:
        if self._implicit_input_names is None:
            return None
        return len(self._implicit_input_names)

    @property
    def feed_names(self) -> List[str]:
        return list(INPUT_NAMES) + list(self._implicit_input_names or [])

    def validate(
        self, inputs: Sequence[TensorDescriptor], outputs: Sequence[TensorDescriptor]
    ) -> ModelParameters:
        if self.state is not SubgraphState.UNVALIDATED:
            raise LifecycleError(f"subgraph '{self.name}' is already validated")
        self._parameters = validate_signature(inputs, outputs)
        self.state = SubgraphState.VALIDATED
        return self._parameters

    def validate_signature(self, signature: SubgraphSignature) -> ModelParameters:
        return self.validate(signature.inputs, signature.outputs)

    def setup(
        self, resources: ExecutionResources, implicit_input_names: Optional[Sequence[str]] = None
    ) -> None:
        if self.state is SubgraphState.UNVALIDATED:
            raise NotInitializedError(f"validate must be called before setup of '{self.name}'")
        if self.state is not SubgraphState.VALIDATED:
            raise LifecycleError(f"subgraph '{self.name}' is already set up")
        self._resources = resources
        if implicit_input_names is not None:
            self._implicit_input_names = list(implicit_input_names)
        self.state = SubgraphState.READY
        logger.info(
            "subgraph '%s' ready on %s with feeds %s",
            self.name,
            resources.provider.name,
            self.feed_names,
        )

    def create_initial_feeds(
        self,
        encoder_input_ids: torch.Tensor,
        implicit_inputs: Sequence[torch.Tensor],
        expansion: BeamExpansionRequest,
    ) -> InitialFeeds:
        """Build the feeds for the first run of the subgraph.

        The feed order is the one used in ``setup``: the three contract inputs
        followed by ``implicit_inputs`` as given.
        """
        if self.state not in (SubgraphState.READY, SubgraphState.FEEDS_BUILT):
            raise NotInitializedError("setup must be called before create_initial_feeds")
        expected_implicit = self.num_implicit_inputs
        if expected_implicit is not None and len(implicit_inputs) != expected_implicit:
            raise ContractViolation(
                f"expect {expected_implicit} implicit inputs, got: {len(implicit_inputs)}"
            )

        resources = self.resources
        # Subgraph inputs live on the same device as encoder_input_ids.
        allocator = resources.allocator_for(encoder_input_ids.device)
        if allocator is None:
            raise DeviceMismatchError(f"no allocator bound for device '{encoder_input_ids.device}'")

        batch_size = int(encoder_input_ids.shape[0])
        sequence_lengths = torch.zeros(batch_size * expansion.num_beams, dtype=torch.int32)

        input_ids, attention_mask, decoder_input_ids = self.device_helper.create_encoder_inputs(
            encoder_input_ids,
            expansion.num_beams,
            expansion.pad_token_id,
            expansion.start_token_id,
            sequence_lengths,
            allocator,
        )

        feeds: List[torch.Tensor] = []
        buffer = self.device_helper.add_to_feeds(
            resources.provider, input_ids, attention_mask, decoder_input_ids, feeds, None
        )
        feeds.extend(implicit_inputs)

        self.state = SubgraphState.FEEDS_BUILT
        logger.debug(
            "built %d feeds for '%s' (batch=%d, beams=%d)",
            len(feeds),
            self.name,
            batch_size,
            expansion.num_beams,
        )
        return InitialFeeds(feeds=feeds, sequence_lengths=sequence_lengths, buffer=buffer)
