from __future__ import annotations

from typing import List, Optional

import torch

from t5beam.contract.errors import DeviceMismatchError

from .hooks import Allocator, ExecutionProvider, ExpandedInputs


class TorchDeviceHelper:
    """Reference hooks built on torch tensors.

    Encoder inputs are left padded: the attention mask is 0 for pad tokens
    before the first real token of a row and 1 from there on, so a pad id
    inside the text still counts. Every row is repeated ``num_beams`` times
    contiguously and each beam of a row starts with the row's length.
    """

    def create_encoder_inputs(
        self,
        encoder_input_ids: torch.Tensor,
        num_beams: int,
        pad_token_id: int,
        start_token_id: int,
        sequence_lengths: torch.Tensor,
        allocator: Allocator,
    ) -> ExpandedInputs:
        if encoder_input_ids.dim() != 2:
            raise ValueError(
                f"encoder_input_ids must be 2-D (batch_size, sequence_length), got {tuple(encoder_input_ids.shape)}"
            )
        if encoder_input_ids.dtype != torch.int32:
            raise ValueError(f"encoder_input_ids must be int32, got {encoder_input_ids.dtype}")
        if start_token_id < 0:
            raise ValueError("start_token_id must be >= 0, decoder_input_ids is a required input")
        batch_size, seq_len = encoder_input_ids.shape
        expanded_batch = batch_size * num_beams
        if sequence_lengths.numel() != expanded_batch:
            raise ValueError(
                f"sequence_lengths has {sequence_lengths.numel()} entries, expected {expanded_batch}"
            )

        started = torch.cumsum((encoder_input_ids != pad_token_id).to(torch.int32), dim=1) > 0
        mask = started.to(torch.int32)
        lengths = mask.sum(dim=1, dtype=torch.int32)

        input_ids = allocator.allocate((expanded_batch, seq_len))
        input_ids.copy_(encoder_input_ids.repeat_interleave(num_beams, dim=0))
        attention_mask = allocator.allocate((expanded_batch, seq_len))
        attention_mask.copy_(mask.repeat_interleave(num_beams, dim=0))
        decoder_input_ids = allocator.allocate((expanded_batch, 1))
        decoder_input_ids.fill_(start_token_id)

        sequence_lengths.copy_(lengths.repeat_interleave(num_beams).view_as(sequence_lengths))
        return input_ids, attention_mask, decoder_input_ids

    def add_to_feeds(
        self,
        provider: ExecutionProvider,
        expanded_input_ids: torch.Tensor,
        expanded_attention_mask: torch.Tensor,
        expanded_decoder_input_ids: torch.Tensor,
        feeds: List[torch.Tensor],
        buffer: Optional[torch.Tensor],
    ) -> Optional[torch.Tensor]:
        tensors = (expanded_input_ids, expanded_attention_mask, expanded_decoder_input_ids)
        target = provider.device
        if all(t.device == target for t in tensors):
            feeds.extend(tensors)
            return buffer
        if target.type == "cpu":
            raise DeviceMismatchError(
                f"{provider.name} expects cpu tensors, got {[str(t.device) for t in tensors]}"
            )

        # Stage through one pinned host buffer, then copy each slice to the device.
        total = sum(t.numel() for t in tensors)
        if buffer is None or buffer.numel() < total:
            buffer = torch.empty(total, dtype=torch.int32, pin_memory=torch.cuda.is_available())
        offset = 0
        for t in tensors:
            n = t.numel()
            staged = buffer[offset : offset + n].view(t.shape)
            staged.copy_(t)
            feeds.append(staged.to(target, non_blocking=True))
            offset += n
        return buffer
