from .hooks import Allocator, DeviceHelper, ExecutionProvider, ExecutionResources
from .subgraph import InitialFeeds, SubgraphState, T5EncoderSubgraph
from .torch_helper import TorchDeviceHelper

__all__ = [
    "Allocator",
    "DeviceHelper",
    "ExecutionProvider",
    "ExecutionResources",
    "InitialFeeds",
    "SubgraphState",
    "T5EncoderSubgraph",
    "TorchDeviceHelper",
]
