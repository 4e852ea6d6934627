"""
In-memory metadata for classes read from class files.

A ClassRecord owns its fields, methods and class-level annotations. Fields
and methods keep a back-reference to the class that declares them, used for
display and for equality, never for ownership.
"""

import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .access import AccessFlags, modifier_names
from .descriptors import (
    MethodType, annotation_class_name, external_name, field_type_name,
    parse_method_descriptor,
)
from .errors import DescriptorError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnumValue:
    """An enum constant used as an annotation value."""
    type_name: str
    name: str

    def __str__(self) -> str:
        return f"{self.type_name}.{self.name}"


class AnnotationRecord:
    """An annotation and its (name, value) parameters.

    Two annotation records are equal when their type names are equal; the
    parameter values play no part, so ``AnnotationRecord("a.B")`` can be used
    to probe a list of annotations for presence.
    """

    def __init__(self, type_name: str, params: Optional[list] = None, visible: bool = True):
        self.type_name = type_name
        self.params: list[tuple[str, Any]] = list(params) if params else []
        self.visible = visible

    @classmethod
    def from_descriptor(cls, descriptor: str, visible: bool = True) -> "AnnotationRecord":
        return cls(annotation_class_name(descriptor), visible=visible)

    def add_param(self, name: str, value: Any):
        self.params.append((name, value))

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value of parameter name, or default."""
        for param_name, value in self.params:
            if param_name == name:
                return value
        return default

    def to_dict(self) -> dict:
        return {
            "type": self.type_name,
            "params": {name: _jsonable(value) for name, value in self.params},
        }

    def __eq__(self, other):
        if isinstance(other, AnnotationRecord):
            return self.type_name == other.type_name
        return NotImplemented

    def __hash__(self):
        return hash(self.type_name)

    def __repr__(self):
        return f"AnnotationRecord({self.type_name!r}, params={self.params!r})"

    def __str__(self):
        if not self.params:
            return f"@{self.type_name}"
        args = ", ".join(f"{name}={_format_value(value)}" for name, value in self.params)
        return f"@{self.type_name}({args})"


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return repr(value)
    if isinstance(value, list):
        return "{" + ", ".join(_format_value(v) for v in value) + "}"
    return str(value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, AnnotationRecord):
        return value.to_dict()
    if isinstance(value, EnumValue):
        return str(value)
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, bytes):
        return value.hex()
    return value


class AnnotatedMixin:
    """Annotation bookkeeping shared by classes, fields and methods."""

    annotations: list[AnnotationRecord]

    def add_annotation(self, annotation: AnnotationRecord):
        self.annotations.append(annotation)

    def is_annotation_present(self, type_name: str) -> bool:
        """True if an annotation of type type_name (dotted) is attached."""
        return AnnotationRecord(type_name) in self.annotations

    def get_annotation(self, type_name: str) -> Optional[AnnotationRecord]:
        probe = AnnotationRecord(type_name)
        for annotation in self.annotations:
            if annotation == probe:
                return annotation
        return None


@dataclass(eq=False)
class FieldRecord(AnnotatedMixin):
    """A field declared by a class."""
    access_flags: int
    name: str
    descriptor: str
    signature: str
    value: Any = None
    declaring_class: Optional["ClassRecord"] = field(default=None, repr=False)
    annotations: list[AnnotationRecord] = field(default_factory=list)

    @property
    def type_name(self) -> str:
        return field_type_name(self.descriptor)

    @property
    def modifiers(self) -> str:
        return " ".join(modifier_names(self.access_flags, "field"))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "access_flags": self.access_flags,
            "modifiers": self.modifiers,
            "descriptor": self.descriptor,
            "signature": self.signature,
            "type": self.type_name,
            "value": _jsonable(self.value),
            "annotations": [a.to_dict() for a in self.annotations],
        }

    def _owner_name(self) -> Optional[str]:
        return self.declaring_class.name if self.declaring_class is not None else None

    def __eq__(self, other):
        if not isinstance(other, FieldRecord):
            return NotImplemented
        return (self.signature == other.signature
                and self._owner_name() == other._owner_name())

    def __hash__(self):
        return hash(self.signature) + hash(self._owner_name())

    def __str__(self):
        owner = self._owner_name()
        return f"{owner}.{self.name}" if owner else self.name


@functools.total_ordering
@dataclass(eq=False)
class MethodRecord(AnnotatedMixin):
    """A method declared by a class.

    Methods are equal when their signatures and declaring class names are
    equal, and are ordered by signature. Both must be set before comparing
    or hashing.
    """
    access_flags: int
    name: str
    descriptor: str
    signature: str
    exceptions: Optional[list[str]] = None
    declaring_class: Optional["ClassRecord"] = field(default=None, repr=False)
    annotations: list[AnnotationRecord] = field(default_factory=list)

    def __post_init__(self):
        # A generic signature starts at the parameter list; qualify it with
        # the name so overloads stay distinct.
        if self.signature is not None and self.signature.startswith("(") and self.name is not None:
            self.signature = self.name + self.signature
        if self.exceptions is not None:
            self.exceptions = [external_name(e) for e in self.exceptions]

    @property
    def method_type(self) -> Optional[MethodType]:
        try:
            return parse_method_descriptor(self.descriptor)
        except DescriptorError:
            logger.warning("Cannot parse descriptor %r of method %s", self.descriptor, self)
            return None

    @property
    def parameter_types(self) -> tuple[str, ...]:
        method_type = self.method_type
        return method_type.parameter_types if method_type else ()

    @property
    def return_type(self) -> Optional[str]:
        method_type = self.method_type
        return method_type.return_type if method_type else None

    @property
    def modifiers(self) -> str:
        return " ".join(modifier_names(self.access_flags, "method"))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "access_flags": self.access_flags,
            "modifiers": self.modifiers,
            "descriptor": self.descriptor,
            "signature": self.signature,
            "parameter_types": list(self.parameter_types),
            "return_type": self.return_type,
            "exceptions": self.exceptions,
            "annotations": [a.to_dict() for a in self.annotations],
        }

    def __eq__(self, other):
        if not isinstance(other, MethodRecord):
            return NotImplemented
        return (self.signature == other.signature
                and self.declaring_class.name == other.declaring_class.name)

    def __lt__(self, other):
        if not isinstance(other, MethodRecord):
            return NotImplemented
        return self.signature < other.signature

    def __hash__(self):
        return hash(self.signature) + hash(self.declaring_class.name)

    def __str__(self):
        if self.declaring_class is not None:
            return f"{self.declaring_class.name}.{self.signature or self.name}"
        return self.signature or self.name


@dataclass(eq=False)
class ClassRecord(AnnotatedMixin):
    """Metadata for one class, interface, enum or annotation type.

    Internal names passed to the constructor (``com/foo/Bar``) are converted
    to dotted names; dotted names pass through unchanged.
    """
    name: str
    super_name: Optional[str]
    interfaces: list[str]
    access_flags: int
    location: Optional[Union[Path, str]] = None
    bytecode: Optional[bytes] = field(default=None, repr=False)
    version: Optional[tuple[int, int]] = None
    fields: list[FieldRecord] = field(default_factory=list, repr=False)
    methods: list[MethodRecord] = field(default_factory=list, repr=False)
    annotations: list[AnnotationRecord] = field(default_factory=list)

    def __post_init__(self):
        self.name = external_name(self.name)
        self.super_name = external_name(self.super_name)
        self.interfaces = [external_name(i) for i in (self.interfaces or ())]

    def add_field(self, access_flags: int, name: str, descriptor: str,
                  signature: str, value: Any = None) -> FieldRecord:
        field_record = FieldRecord(access_flags, name, descriptor, signature, value,
                                   declaring_class=self)
        self.fields.append(field_record)
        return field_record

    def add_method(self, access_flags: int, name: str, descriptor: str,
                   signature: str, exceptions: Optional[list[str]] = None) -> MethodRecord:
        method = MethodRecord(access_flags, name, descriptor, signature, exceptions,
                              declaring_class=self)
        self.methods.append(method)
        return method

    def get_field(self, name: str) -> Optional[FieldRecord]:
        for field_record in self.fields:
            if field_record.name == name:
                return field_record
        return None

    def get_methods(self, name: str) -> list[MethodRecord]:
        """All overloads of the method called name, in declaration order."""
        return [m for m in self.methods if m.name == name]

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def package(self) -> str:
        return self.name.rpartition(".")[0]

    @property
    def modifiers(self) -> str:
        return " ".join(modifier_names(self.access_flags, "class"))

    @property
    def is_interface(self) -> bool:
        return bool(self.access_flags & AccessFlags.INTERFACE)

    @property
    def is_abstract(self) -> bool:
        return bool(self.access_flags & AccessFlags.ABSTRACT)

    @property
    def is_annotation(self) -> bool:
        return bool(self.access_flags & AccessFlags.ANNOTATION)

    @property
    def is_enum(self) -> bool:
        return bool(self.access_flags & AccessFlags.ENUM)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "super_name": self.super_name,
            "interfaces": list(self.interfaces),
            "access_flags": self.access_flags,
            "modifiers": self.modifiers,
            "location": str(self.location) if self.location is not None else None,
            "version": list(self.version) if self.version else None,
            "annotations": [a.to_dict() for a in self.annotations],
            "fields": [f.to_dict() for f in self.fields],
            "methods": [m.to_dict() for m in self.methods],
        }

    def __eq__(self, other):
        if not isinstance(other, ClassRecord):
            return NotImplemented
        return (self.name == other.name
                and self.super_name == other.super_name
                and self.interfaces == other.interfaces
                and self.access_flags == other.access_flags
                and self.location == other.location
                and self.fields == other.fields
                and self.methods == other.methods
                and self.annotations == other.annotations)

    def __hash__(self):
        return hash(self.name)

    def __str__(self):
        return self.name
