"""Exceptions raised while decoding a Filing Cabinet."""

from typing import Optional


class CabinetError(Exception):
    """Base exception for cabinet decoding errors."""

    def __init__(self, message: str, percent: Optional[int] = None):
        super().__init__(message)
        self.percent = percent


class InvalidContainerError(CabinetError):
    """Raised when the file does not start with the cabinet identity literal."""

    pass


class TruncatedReadError(CabinetError, IndexError):
    """Raised when fewer bytes remain than a field access requires."""

    pass


OutOfRangeError = TruncatedReadError


class TruncatedSubItemError(CabinetError):
    """Raised when a subitem's declared length overruns its block."""

    pass


class DecompressionError(CabinetError):
    """Raised when a compressed body chunk cannot be inflated."""

    pass


class MalformedGraphError(CabinetError):
    """Raised when record pointers form a cycle or point outside the cabinet."""

    pass


class ReadCancelledError(CabinetError):
    """Raised when a cabinet read is cancelled before completion."""

    pass
