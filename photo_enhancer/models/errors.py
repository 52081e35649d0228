class PhotoEnhancerError(Exception):
    """Base class for errors raised by the enhancement core."""


class InvalidInputError(PhotoEnhancerError, ValueError):
    """A non-image or undecodable file was supplied."""


class PipelineNotReadyError(PhotoEnhancerError, RuntimeError):
    """Export or comparison requested while no enhanced result is ready."""

    def __init__(self, operation: str, state):
        self.operation = operation
        self.state = state
        super().__init__(f"{operation} requires an enhanced result (current state: {state.value})")
