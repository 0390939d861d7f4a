from __future__ import annotations

from typing import Optional


class SubgraphError(Exception):
    """Base class for every error raised by t5beam."""


class ContractViolation(SubgraphError):
    """The subgraph signature does not follow the encoder contract."""


class SignatureFormatError(ContractViolation):
    pass


class WrongInputCount(ContractViolation):
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"expect {expected} inputs, got: {actual}")


class WrongOutputCount(ContractViolation):
    def __init__(self, actual: int, minimum: int = 6) -> None:
        self.actual = actual
        self.minimum = minimum
        if actual < minimum:
            msg = f"expect >={minimum} outputs, got: {actual}"
        else:
            msg = f"number of outputs expected to be 2 + 4 * layers, got: {actual}"
        super().__init__(msg)


class NameMismatch(ContractViolation):
    def __init__(self, kind: str, position: int, expected: str, actual: str) -> None:
        self.kind = kind
        self.position = position
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"subgraph {kind} {position} shall be named as {expected}, got: {actual}"
        )


class UnsupportedDataType(ContractViolation):
    def __init__(self, kind: str, position: int, name: str, actual: str, allowed) -> None:
        self.kind = kind
        self.position = position
        self.name = name
        self.actual = actual
        self.allowed = tuple(allowed)
        super().__init__(
            f"subgraph {kind} {position} ({name}) shall have "
            f"{' or '.join(self.allowed)} type, got: {actual}"
        )


class ShapeInferenceError(SubgraphError):
    def __init__(self, message: str, *, name: Optional[str] = None) -> None:
        self.name = name
        super().__init__(f"{name}: {message}" if name else message)


class LifecycleError(SubgraphError):
    """An operation was called out of order on a subgraph."""


class NotInitializedError(LifecycleError):
    pass


class HookError(SubgraphError):
    """Raised by device helper hooks; passed through to the caller unchanged."""


class AllocationError(HookError):
    pass


class DeviceMismatchError(HookError):
    pass
