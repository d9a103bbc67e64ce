"""Exceptions raised by the BME280 adapter pipeline."""

from __future__ import annotations


class AdapterError(Exception):
    """Base class for recoverable, per-message adapter failures."""


class ShortFrameError(AdapterError, ValueError):
    def __init__(self, length: int, minimum: int) -> None:
        super().__init__(f"Frame has {length} bytes, at least {minimum} are required.")
        self.length = length
        self.minimum = minimum


class EmptyBufferError(AdapterError, LookupError):
    def __init__(self, message: str = "Readout buffer is empty.") -> None:
        super().__init__(message)


class UnsupportedMessageError(AdapterError, ValueError):
    pass


class UnknownParameterError(AdapterError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else super().__str__()
