"""
Java class file reader.

Decodes the structural parts of a class file (constant pool, class header,
fields, methods and their annotation-related attributes) and replays them
as callbacks on a ClassInfoVisitor. Method bodies are skipped.
"""

import logging
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, Optional

from .descriptors import annotation_class_name, field_type_name
from .errors import ClassFormatError, ClassInfoError
from .model import AnnotationRecord, ClassRecord, EnumValue
from .visitor import ClassInfoVisitor

logger = logging.getLogger(__name__)

MAGIC = 0xCAFEBABE


class ConstantPoolTag(IntEnum):
    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELDREF = 9
    METHODREF = 10
    INTERFACE_METHODREF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    METHOD_TYPE = 16
    DYNAMIC = 17
    INVOKE_DYNAMIC = 18
    MODULE = 19
    PACKAGE = 20


@dataclass
class ConstantPoolEntry:
    """A constant pool entry."""
    tag: int
    value: Any


@dataclass
class RawAnnotation:
    """An annotation as stored in the class file."""
    descriptor: str
    elements: list = field(default_factory=list)  # [(name, value)]
    visible: bool = True


@dataclass
class MemberInfo:
    """A field or method before it is replayed to a visitor."""
    access_flags: int
    name: str
    descriptor: str
    signature: Optional[str] = None
    constant_value: Any = None
    exceptions: Optional[list[str]] = None
    annotations: list[RawAnnotation] = field(default_factory=list)
    parameter_annotations: list[list[RawAnnotation]] = field(default_factory=list)


class ClassReader:
    """Reads one Java class file."""

    def __init__(self, data: bytes, location=None):
        self.data = data
        self.location = location
        self.pos = 0
        self.constant_pool: list[Optional[ConstantPoolEntry]] = [None]  # 1-indexed

    def _read_u1(self) -> int:
        val = self.data[self.pos]
        self.pos += 1
        return val

    def _read_u2(self) -> int:
        val = struct.unpack_from(">H", self.data, self.pos)[0]
        self.pos += 2
        return val

    def _read_u4(self) -> int:
        val = struct.unpack_from(">I", self.data, self.pos)[0]
        self.pos += 4
        return val

    def _read_i4(self) -> int:
        val = struct.unpack_from(">i", self.data, self.pos)[0]
        self.pos += 4
        return val

    def _read_i8(self) -> int:
        val = struct.unpack_from(">q", self.data, self.pos)[0]
        self.pos += 8
        return val

    def _read_f4(self) -> float:
        val = struct.unpack_from(">f", self.data, self.pos)[0]
        self.pos += 4
        return val

    def _read_f8(self) -> float:
        val = struct.unpack_from(">d", self.data, self.pos)[0]
        self.pos += 8
        return val

    def _read_bytes(self, length: int) -> bytes:
        if self.pos + length > len(self.data):
            raise ClassFormatError("Unexpected end of class file", self.location)
        val = self.data[self.pos:self.pos + length]
        self.pos += length
        return val

    def _entry(self, index: int) -> ConstantPoolEntry:
        if not 0 < index < len(self.constant_pool) or self.constant_pool[index] is None:
            raise ClassFormatError(f"Bad constant pool index {index}", self.location)
        return self.constant_pool[index]

    def _get_utf8(self, index: int) -> Optional[str]:
        """Get UTF8 string from constant pool."""
        if index == 0:
            return None
        entry = self._entry(index)
        if entry.tag == ConstantPoolTag.UTF8:
            return entry.value
        raise ClassFormatError(f"Expected UTF8 at index {index}, got tag {entry.tag}", self.location)

    def _get_class_name(self, index: int) -> Optional[str]:
        """Get internal class name from constant pool."""
        if index == 0:
            return None
        entry = self._entry(index)
        if entry.tag == ConstantPoolTag.CLASS:
            return self._get_utf8(entry.value)
        raise ClassFormatError(f"Expected CLASS at index {index}, got tag {entry.tag}", self.location)

    def _get_constant(self, index: int) -> Any:
        """Get a loadable constant (number or string) from the constant pool."""
        entry = self._entry(index)
        if entry.tag == ConstantPoolTag.STRING:
            return self._get_utf8(entry.value)
        return entry.value

    def _read_constant_pool(self):
        """Read the constant pool."""
        count = self._read_u2()
        i = 1
        while i < count:
            tag = self._read_u1()
            entry = None

            if tag == ConstantPoolTag.UTF8:
                length = self._read_u2()
                value = self._read_bytes(length).decode("utf-8", errors="replace")
                entry = ConstantPoolEntry(tag, value)

            elif tag == ConstantPoolTag.INTEGER:
                entry = ConstantPoolEntry(tag, self._read_i4())

            elif tag == ConstantPoolTag.FLOAT:
                entry = ConstantPoolEntry(tag, self._read_f4())

            elif tag in (ConstantPoolTag.LONG, ConstantPoolTag.DOUBLE):
                value = self._read_i8() if tag == ConstantPoolTag.LONG else self._read_f8()
                self.constant_pool.append(ConstantPoolEntry(tag, value))
                self.constant_pool.append(None)  # Long and double take 2 slots
                i += 2
                continue

            elif tag in (ConstantPoolTag.CLASS, ConstantPoolTag.STRING,
                         ConstantPoolTag.METHOD_TYPE, ConstantPoolTag.MODULE,
                         ConstantPoolTag.PACKAGE):
                entry = ConstantPoolEntry(tag, self._read_u2())

            elif tag in (ConstantPoolTag.FIELDREF, ConstantPoolTag.METHODREF,
                         ConstantPoolTag.INTERFACE_METHODREF, ConstantPoolTag.NAME_AND_TYPE,
                         ConstantPoolTag.DYNAMIC, ConstantPoolTag.INVOKE_DYNAMIC):
                first = self._read_u2()
                second = self._read_u2()
                entry = ConstantPoolEntry(tag, (first, second))

            elif tag == ConstantPoolTag.METHOD_HANDLE:
                kind = self._read_u1()
                ref_idx = self._read_u2()
                entry = ConstantPoolEntry(tag, (kind, ref_idx))

            else:
                raise ClassFormatError(f"Unknown constant pool tag: {tag}", self.location)

            self.constant_pool.append(entry)
            i += 1

    def _read_annotation(self, visible: bool) -> RawAnnotation:
        """Read a single annotation."""
        descriptor = self._get_utf8(self._read_u2())
        if descriptor is None:
            raise ClassFormatError("Annotation without a type descriptor", self.location)
        num_pairs = self._read_u2()
        elements = []
        for _ in range(num_pairs):
            name = self._get_utf8(self._read_u2())
            elements.append((name, self._read_element_value(visible)))
        return RawAnnotation(descriptor, elements, visible)

    def _read_annotations(self, visible: bool) -> list[RawAnnotation]:
        num_ann = self._read_u2()
        return [self._read_annotation(visible) for _ in range(num_ann)]

    def _read_element_value(self, visible: bool) -> Any:
        """Read an annotation element value as a plain Python value."""
        tag = chr(self._read_u1())

        if tag in "BDFIJS":
            return self._get_constant(self._read_u2())

        elif tag == "Z":
            return bool(self._get_constant(self._read_u2()))

        elif tag == "C":
            return chr(self._get_constant(self._read_u2()))

        elif tag == "s":
            return self._get_utf8(self._read_u2())

        elif tag == "e":
            # Enum constant
            type_desc = self._get_utf8(self._read_u2())
            const_name = self._get_utf8(self._read_u2())
            return EnumValue(field_type_name(type_desc), const_name)

        elif tag == "c":
            # Class literal, stored as a return descriptor ("V" for void.class)
            class_desc = self._get_utf8(self._read_u2())
            return "void" if class_desc == "V" else field_type_name(class_desc)

        elif tag == "@":
            return _to_record(self._read_annotation(visible))

        elif tag == "[":
            num_values = self._read_u2()
            return [self._read_element_value(visible) for _ in range(num_values)]

        else:
            raise ClassFormatError(f"Unknown annotation element value tag: {tag}", self.location)

    def _read_parameter_annotations(self, visible: bool) -> list[list[RawAnnotation]]:
        num_params = self._read_u1()
        return [self._read_annotations(visible) for _ in range(num_params)]

    def _read_attributes(self) -> dict:
        """Read attributes and return the ones we use as a dict."""
        count = self._read_u2()
        attrs = {}
        for _ in range(count):
            name = self._get_utf8(self._read_u2())
            length = self._read_u4()
            start = self.pos

            if name == "Signature":
                attrs["Signature"] = self._get_utf8(self._read_u2())

            elif name == "Exceptions":
                num_exc = self._read_u2()
                attrs["Exceptions"] = [
                    self._get_class_name(self._read_u2()) for _ in range(num_exc)
                ]

            elif name in ("RuntimeVisibleAnnotations", "RuntimeInvisibleAnnotations"):
                visible = name == "RuntimeVisibleAnnotations"
                attrs.setdefault("Annotations", []).extend(self._read_annotations(visible))

            elif name in ("RuntimeVisibleParameterAnnotations",
                          "RuntimeInvisibleParameterAnnotations"):
                visible = name == "RuntimeVisibleParameterAnnotations"
                params = self._read_parameter_annotations(visible)
                merged = attrs.setdefault("ParameterAnnotations", [])
                for index, anns in enumerate(params):
                    if index < len(merged):
                        merged[index].extend(anns)
                    else:
                        merged.append(list(anns))

            elif name == "ConstantValue":
                attrs["ConstantValue"] = self._get_constant(self._read_u2())

            # Skip other attributes
            self.pos = start + length

        return attrs

    def _read_member(self, is_method: bool) -> MemberInfo:
        """Read a field or method."""
        access = self._read_u2()
        name = self._get_utf8(self._read_u2())
        descriptor = self._get_utf8(self._read_u2())
        attrs = self._read_attributes()

        return MemberInfo(
            access_flags=access,
            name=name,
            descriptor=descriptor,
            signature=attrs.get("Signature"),
            constant_value=None if is_method else attrs.get("ConstantValue"),
            exceptions=attrs.get("Exceptions") if is_method else None,
            annotations=attrs.get("Annotations", []),
            parameter_annotations=attrs.get("ParameterAnnotations", []),
        )

    def accept(self, visitor: ClassInfoVisitor, keep_bytecode: bool = False):
        """Decode the class file and replay it on visitor."""
        self.pos = 0
        self.constant_pool = [None]
        try:
            header, fields, methods, attrs = self._read_class()
        except (struct.error, IndexError) as e:
            raise ClassFormatError(f"Truncated class file: {e}", self.location) from e
        except (TypeError, ValueError, AttributeError) as e:
            # Constants of the wrong kind, e.g. a float behind a char element value
            raise ClassFormatError(f"Malformed class file: {e}", self.location) from e

        version, access_flags, this_class, super_class, interfaces = header
        visitor.visit_class(
            version, access_flags, this_class, attrs.get("Signature"),
            super_class, interfaces,
            bytes(self.data) if keep_bytecode else None,
        )
        _replay_annotations(visitor, attrs.get("Annotations", []))

        for member in fields:
            visitor.visit_field(member.access_flags, member.name, member.descriptor,
                                member.signature, member.constant_value)
            _replay_annotations(visitor, member.annotations)
            visitor.visit_end()

        for member in methods:
            visitor.visit_method(member.access_flags, member.name, member.descriptor,
                                 member.signature, member.exceptions)
            _replay_annotations(visitor, member.annotations)
            for index, anns in enumerate(member.parameter_annotations):
                for ann in anns:
                    visitor.visit_parameter_annotation(index, ann.descriptor, ann.visible)
                    _replay_values(visitor, ann)
                    visitor.visit_end()
            visitor.visit_end()

        visitor.visit_end()

    def _read_class(self):
        magic = self._read_u4()
        if magic != MAGIC:
            raise ClassFormatError(f"Invalid class file magic: {hex(magic)}", self.location)

        minor = self._read_u2()
        major = self._read_u2()

        self._read_constant_pool()

        access_flags = self._read_u2()
        this_class = self._get_class_name(self._read_u2())
        super_class = self._get_class_name(self._read_u2())

        interfaces_count = self._read_u2()
        interfaces = [self._get_class_name(self._read_u2()) for _ in range(interfaces_count)]

        fields_count = self._read_u2()
        fields = [self._read_member(False) for _ in range(fields_count)]

        methods_count = self._read_u2()
        methods = [self._read_member(True) for _ in range(methods_count)]

        attrs = self._read_attributes()

        header = ((major, minor), access_flags, this_class, super_class, interfaces)
        return header, fields, methods, attrs


def _replay_values(visitor: ClassInfoVisitor, ann: RawAnnotation):
    for name, value in ann.elements:
        visitor.visit_value(name, value)


def _replay_annotations(visitor: ClassInfoVisitor, annotations: list[RawAnnotation]):
    for ann in annotations:
        visitor.visit_annotation(ann.descriptor, ann.visible)
        _replay_values(visitor, ann)
        visitor.visit_end()


def _to_record(ann: RawAnnotation) -> AnnotationRecord:
    """Build a nested annotation value directly; it has no owner element."""
    return AnnotationRecord(annotation_class_name(ann.descriptor), ann.elements, ann.visible)


def read_class(data: bytes, location=None, keep_bytecode: bool = False) -> ClassRecord:
    """Decode one class file into a ClassRecord."""
    visitor = ClassInfoVisitor({}, location)
    ClassReader(data, location).accept(visitor, keep_bytecode=keep_bytecode)
    if not visitor.finished:
        raise ClassInfoError("Class file produced no class", location)
    return visitor.result


def read_class_file(path, keep_bytecode: bool = False) -> ClassRecord:
    """Read a single class file; its directory is recorded as the location."""
    path = Path(path)
    return read_class(path.read_bytes(), path.parent, keep_bytecode=keep_bytecode)
