from __future__ import annotations

from typing import List, Optional

import pytest
import torch

from signatures import make_inputs, make_outputs
from t5beam.contract.errors import (
    AllocationError,
    ContractViolation,
    DeviceMismatchError,
    LifecycleError,
    NotInitializedError,
)
from t5beam.contract.models import BeamExpansionRequest
from t5beam.feeds import (
    Allocator,
    ExecutionProvider,
    ExecutionResources,
    SubgraphState,
    T5EncoderSubgraph,
    TorchDeviceHelper,
)


class FakeHelper:
    """Deterministic hooks that record their calls."""

    def __init__(self, fail_with: Optional[Exception] = None) -> None:
        self.fail_with = fail_with
        self.calls: List[str] = []

    def create_encoder_inputs(self, ids, num_beams, pad_token_id, start_token_id, sequence_lengths, allocator):
        self.calls.append("create")
        if self.fail_with is not None:
            raise self.fail_with
        batch = ids.shape[0]
        sequence_lengths.fill_(ids.shape[1])
        return (
            torch.full((batch * num_beams, ids.shape[1]), 1, dtype=torch.int32),
            torch.full((batch * num_beams, ids.shape[1]), 2, dtype=torch.int32),
            torch.full((batch * num_beams, 1), 3, dtype=torch.int32),
        )

    def add_to_feeds(self, provider, ids, mask, decoder_ids, feeds, buffer):
        self.calls.append("add")
        feeds.extend([ids, mask, decoder_ids])
        return buffer


def _ready(helper=None, implicit_names=None) -> T5EncoderSubgraph:
    subgraph = T5EncoderSubgraph(device_helper=helper or TorchDeviceHelper())
    subgraph.validate(make_inputs(), make_outputs(2))
    subgraph.setup(ExecutionResources.for_device("cpu"), implicit_names)
    return subgraph


def _ids() -> torch.Tensor:
    return torch.tensor([[0, 0, 5, 6], [7, 0, 8, 9]], dtype=torch.int32)


EXPANSION = BeamExpansionRequest(num_beams=4, pad_token_id=0, start_token_id=2)


def test_feeds_before_setup_fail() -> None:
    subgraph = T5EncoderSubgraph(device_helper=FakeHelper())
    with pytest.raises(NotInitializedError):
        subgraph.create_initial_feeds(_ids(), [], EXPANSION)
    subgraph.validate(make_inputs(), make_outputs())
    with pytest.raises(NotInitializedError):
        subgraph.create_initial_feeds(_ids(), [], EXPANSION)
    assert subgraph.device_helper.calls == []


def test_lifecycle_order() -> None:
    subgraph = T5EncoderSubgraph()
    assert subgraph.state is SubgraphState.UNVALIDATED
    with pytest.raises(NotInitializedError):
        subgraph.setup(ExecutionResources.for_device("cpu"))
    with pytest.raises(NotInitializedError):
        subgraph.parameters
    params = subgraph.validate(make_inputs(), make_outputs(3))
    assert subgraph.state is SubgraphState.VALIDATED
    assert subgraph.parameters is params
    with pytest.raises(LifecycleError):
        subgraph.validate(make_inputs(), make_outputs(3))
    subgraph.setup(ExecutionResources.for_device("cpu"))
    assert subgraph.state is SubgraphState.READY
    with pytest.raises(LifecycleError):
        subgraph.setup(ExecutionResources.for_device("cpu"))
    subgraph.create_initial_feeds(_ids(), [], EXPANSION)
    assert subgraph.state is SubgraphState.FEEDS_BUILT
    subgraph.create_initial_feeds(_ids(), [], EXPANSION)


def test_failed_validation_keeps_state() -> None:
    subgraph = T5EncoderSubgraph()
    with pytest.raises(ContractViolation):
        subgraph.validate(make_inputs(), make_outputs()[:5])
    assert subgraph.state is SubgraphState.UNVALIDATED


@pytest.mark.parametrize("num_implicit", [0, 1, 3])
def test_implicit_inputs_appended_in_order(num_implicit: int) -> None:
    helper = FakeHelper()
    subgraph = _ready(helper)
    implicit = [torch.arange(i + 1, dtype=torch.float32) for i in range(num_implicit)]
    result = subgraph.create_initial_feeds(_ids(), implicit, EXPANSION)
    assert len(result.feeds) == 3 + num_implicit
    for got, want in zip(result.feeds[3:], implicit):
        assert got is want
    assert [int(f[0, 0]) for f in result.feeds[:3]] == [1, 2, 3]
    assert helper.calls == ["create", "add"]


def test_feed_names_follow_setup_order() -> None:
    subgraph = _ready(FakeHelper(), ["shared_weight", "position_bias"])
    assert subgraph.feed_names == [
        "encoder_input_ids",
        "encoder_attention_mask",
        "decoder_input_ids",
        "shared_weight",
        "position_bias",
    ]
    with pytest.raises(ContractViolation):
        subgraph.create_initial_feeds(_ids(), [torch.zeros(1)], EXPANSION)


def test_hook_errors_propagate_unchanged() -> None:
    err = AllocationError("out of memory")
    subgraph = _ready(FakeHelper(fail_with=err))
    with pytest.raises(AllocationError) as exc:
        subgraph.create_initial_feeds(_ids(), [], EXPANSION)
    assert exc.value is err


def test_missing_allocator_for_device() -> None:
    resources = ExecutionResources(
        provider=ExecutionProvider("MetaExecutionProvider", torch.device("meta")),
        allocators={"meta": Allocator(torch.device("meta"))},
    )
    subgraph = T5EncoderSubgraph(device_helper=FakeHelper())
    subgraph.validate(make_inputs(), make_outputs())
    subgraph.setup(resources)
    with pytest.raises(DeviceMismatchError):
        subgraph.create_initial_feeds(_ids(), [], EXPANSION)


def test_torch_helper_expands_beams() -> None:
    subgraph = _ready()
    result = subgraph.create_initial_feeds(_ids(), [], EXPANSION)
    ids, mask, decoder_ids = result.feeds

    assert ids.shape == (8, 4)
    assert torch.equal(ids[:4], _ids()[0].expand(4, 4))
    assert torch.equal(ids[4:], _ids()[1].expand(4, 4))
    # Only leading pads are masked; the pad inside row 1 is kept.
    assert mask[0].tolist() == [0, 0, 1, 1]
    assert mask[4].tolist() == [1, 1, 1, 1]
    assert decoder_ids.shape == (8, 1)
    assert (decoder_ids == 2).all()

    lengths = result.sequence_lengths
    assert lengths.shape == (8,)
    assert lengths.tolist() == [2, 2, 2, 2, 4, 4, 4, 4]
    assert result.buffer is None


def test_sequence_lengths_equal_within_beam_group() -> None:
    ids = torch.tensor([[0, 3, 4], [0, 0, 4], [5, 6, 7]], dtype=torch.int32)
    expansion = BeamExpansionRequest(num_beams=3, pad_token_id=0, start_token_id=0)
    result = _ready().create_initial_feeds(ids, [], expansion)
    groups = result.sequence_lengths.view(3, 3)
    assert (groups == groups[:, :1]).all()
    assert groups[:, 0].tolist() == [2, 1, 3]


def test_single_beam_keeps_batch() -> None:
    expansion = BeamExpansionRequest(num_beams=1, pad_token_id=0, start_token_id=2)
    result = _ready().create_initial_feeds(_ids(), [], expansion)
    assert torch.equal(result.feeds[0], _ids())
    assert result.sequence_lengths.tolist() == [2, 4]


def test_torch_helper_rejects_bad_ids() -> None:
    subgraph = _ready()
    with pytest.raises(ValueError):
        subgraph.create_initial_feeds(_ids().to(torch.int64), [], EXPANSION)
    with pytest.raises(ValueError):
        subgraph.create_initial_feeds(_ids()[0], [], EXPANSION)
    bad_start = BeamExpansionRequest(num_beams=2, pad_token_id=0, start_token_id=-1)
    with pytest.raises(ValueError):
        subgraph.create_initial_feeds(_ids(), [], bad_start)
