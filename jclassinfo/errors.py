"""
Exceptions raised while reading class files and building class metadata.
"""

from typing import Optional


class ClassInfoError(Exception):
    """Base class for jclassinfo errors."""

    def __init__(self, message: str, location: Optional[object] = None):
        if location is not None:
            message = f"{location}: {message}"
        super().__init__(message)
        self.location = location


class ProtocolViolation(ClassInfoError):
    """Visitor callbacks arrived in an order the visitor cannot accept."""
    pass


class ClassFormatError(ClassInfoError):
    """The bytes of a class file could not be decoded."""
    pass


class DescriptorError(ClassInfoError):
    """A type descriptor could not be parsed."""
    pass
