"""
Name and descriptor handling.

Class files store type names in internal form (``java/lang/String``) and
field/method types as descriptors (``[Ljava/lang/String;``, ``(IJ)V``).
This module turns both into the dotted names Java source uses. Descriptors
are parsed with a small Lark grammar; callers that only need a best-effort
name get one even when the descriptor is malformed.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from lark import Lark, Transformer
from lark.exceptions import LarkError

from .errors import DescriptorError

logger = logging.getLogger(__name__)

GRAMMAR_FILE = Path(__file__).parent / "descriptor.lark"

BASE_TYPES = {
    "B": "byte", "C": "char", "D": "double", "F": "float",
    "I": "int", "J": "long", "S": "short", "Z": "boolean",
}


@dataclass(frozen=True)
class MethodType:
    """Parameter and return types of a method descriptor, as Java names."""
    parameter_types: tuple[str, ...]
    return_type: str

    def __str__(self) -> str:
        return f"{self.return_type} ({', '.join(self.parameter_types)})"


def external_name(internal_name: Optional[str]) -> Optional[str]:
    """Convert an internal name (``com/foo/Bar``) to a dotted one."""
    if internal_name is None:
        return None
    return internal_name.replace("/", ".")


class DescriptorTransformer(Transformer):
    """Transforms descriptor parse trees to Java type names."""

    def base_type(self, items):
        return BASE_TYPES[str(items[0])]

    def object_type(self, items):
        return external_name(str(items[0])[1:-1])

    def array_type(self, items):
        return items[0] + "[]"

    def void_type(self, items):
        return "void"

    def field_descriptor(self, items):
        return items[0]

    def method_descriptor(self, items):
        return MethodType(parameter_types=tuple(items[:-1]), return_type=items[-1])


class DescriptorParser:
    """Parser for field and method descriptors."""

    def __init__(self):
        with open(GRAMMAR_FILE, "r") as f:
            grammar = f.read()

        self._parser = Lark(
            grammar,
            parser="lalr",
            start=["field_descriptor", "method_descriptor"],
        )
        self._transformer = DescriptorTransformer()

    def _parse(self, descriptor: str, start: str):
        try:
            tree = self._parser.parse(descriptor, start=start)
        except LarkError as e:
            raise DescriptorError(f"Invalid descriptor {descriptor!r}: {e}") from e
        return self._transformer.transform(tree)

    def parse_field(self, descriptor: str) -> str:
        """Parse a field descriptor and return the Java type name."""
        return self._parse(descriptor, "field_descriptor")

    def parse_method(self, descriptor: str) -> MethodType:
        """Parse a method descriptor."""
        return self._parse(descriptor, "method_descriptor")


_parser = DescriptorParser()


@lru_cache(maxsize=4096)
def parse_field_descriptor(descriptor: str) -> str:
    """Return the Java type name for a field descriptor.

    Raises DescriptorError if the descriptor is malformed.
    """
    return _parser.parse_field(descriptor)


@lru_cache(maxsize=4096)
def parse_method_descriptor(descriptor: str) -> MethodType:
    """Return the parameter and return types of a method descriptor.

    Raises DescriptorError if the descriptor is malformed.
    """
    return _parser.parse_method(descriptor)


def field_type_name(descriptor: str) -> str:
    """Best-effort Java type name for a field descriptor."""
    try:
        return parse_field_descriptor(descriptor)
    except DescriptorError:
        logger.debug("Cannot parse field descriptor %r", descriptor)
        return external_name(descriptor)


@lru_cache(maxsize=4096)
def annotation_class_name(descriptor: str) -> str:
    """Derive an annotation's dotted type name from its descriptor.

    ``Lcom/foo/Marker;`` becomes ``com.foo.Marker``. A malformed descriptor
    still yields a name: at most one leading ``L`` and one trailing ``;``
    are stripped and package separators are replaced.
    """
    if descriptor.startswith("L"):
        try:
            return parse_field_descriptor(descriptor)
        except DescriptorError:
            pass

    logger.warning("Malformed annotation descriptor %r, using best-effort name", descriptor)
    name = descriptor
    if name.startswith("L"):
        name = name[1:]
    if name.endswith(";"):
        name = name[:-1]
    return external_name(name)
