"""
Exceptions raised by the gateway core.

Only request preconditions and operator input errors are exceptions. Malformed
terminal payloads are absorbed by the parsers and reported as outcomes.
"""


class GatewayError(Exception):
    """Base class for gateway errors."""


class PreconditionError(GatewayError):
    """A terminal request is missing a parameter the protocol requires."""

    def __init__(self, operation: str, parameter: str = "SN") -> None:
        self.operation = operation
        self.parameter = parameter
        super().__init__(f"Missing required parameter '{parameter}' for {operation}")


class UnknownCommandKindError(GatewayError):
    """The operator asked for a command kind the gateway cannot encode."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"Unknown command kind: {kind}")


class CommandPayloadError(GatewayError):
    """A command payload lacks fields its kind needs."""

    def __init__(self, kind: str, missing: list[str]) -> None:
        self.kind = kind
        self.missing = missing
        super().__init__(f"Command '{kind}' requires: {', '.join(missing)}")


class BodyReadTimeoutError(GatewayError):
    """A terminal did not finish sending its request body in time."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Request body not received within {timeout:g}s")
