"""
Visitor that rebuilds class metadata from a class-file callback stream.

A decoder (see classreader.ClassReader) walks one class file and calls the
visit_* methods below in file order::

    visit_class
      visit_annotation, visit_value*, visit_end          (class annotations)
      visit_field
        visit_annotation, visit_value*, visit_end        (field annotations)
      visit_end                                          (end of field)
      visit_method
        visit_annotation, visit_value*, visit_end        (method annotations)
        visit_parameter_annotation, visit_value*, visit_end
      visit_end                                          (end of method)
    visit_end                                            (end of class)

The end callback carries no context, so the visitor keeps a stack of the
elements that are open. An annotation end attaches the open annotation to
the element on top of the stack; any other end closes that element.

A visitor handles exactly one compiled unit and is not thread-safe. Run one
instance per unit and merge the results.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, MutableMapping, Optional, Union

from .errors import ProtocolViolation
from .model import AnnotationRecord, ClassRecord, FieldRecord, MethodRecord

logger = logging.getLogger(__name__)


class ElementKind(Enum):
    CLASS = "class"
    FIELD = "field"
    METHOD = "method"
    PARAMETER = "parameter"


@dataclass
class Frame:
    """An open element: what kind it is and the record annotations go to."""
    kind: ElementKind
    target: Union[ClassRecord, FieldRecord, MethodRecord, int]


class ClassInfoVisitor:
    """Builds one ClassRecord from the callbacks for one class file.

    found_classes receives the finished record, keyed by its dotted name,
    when the class's end callback arrives. A stream that fails part-way
    leaves found_classes untouched.
    """

    def __init__(self, found_classes: Optional[MutableMapping[str, ClassRecord]] = None,
                 location=None):
        self.found_classes = found_classes if found_classes is not None else {}
        self.location = location
        self._class: Optional[ClassRecord] = None
        self._stack: list[Frame] = []
        self._annotation: Optional[AnnotationRecord] = None
        self._finished = False

    @property
    def result(self) -> Optional[ClassRecord]:
        return self._class

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def current(self) -> Optional[Frame]:
        """The element an annotation declared now would belong to."""
        return self._stack[-1] if self._stack else None

    def _violation(self, message: str) -> ProtocolViolation:
        return ProtocolViolation(message, self.location)

    def _require_class(self, callback: str):
        if self._class is None:
            raise self._violation(f"{callback} before any class was declared")
        if self._finished:
            raise self._violation(f"{callback} after the end of class {self._class.name}")

    def _close_member(self):
        """Implicitly end a field or method whose end callback never came."""
        top = self.current
        if top is not None and top.kind in (ElementKind.FIELD, ElementKind.METHOD):
            self._stack.pop()

    def visit_class(self, version: Optional[tuple[int, int]], access: int, name: str,
                    signature: Optional[str], super_name: Optional[str],
                    interfaces: Optional[list[str]], bytecode: Optional[bytes] = None):
        if self._class is not None:
            raise self._violation(
                f"class {name} declared while building {self._class.name}")
        self._class = ClassRecord(
            name=name,
            super_name=super_name,
            interfaces=list(interfaces or ()),
            access_flags=access,
            location=self.location,
            bytecode=bytecode,
            version=version,
        )
        self._stack.append(Frame(ElementKind.CLASS, self._class))

    def visit_field(self, access: int, name: str, descriptor: str,
                    signature: Optional[str], value: Any) -> FieldRecord:
        self._require_class("field declaration")
        self._close_member()
        if signature is None:
            signature = descriptor + " " + name
        field_record = self._class.add_field(access, name, descriptor, signature, value)
        self._stack.append(Frame(ElementKind.FIELD, field_record))
        return field_record

    def visit_method(self, access: int, name: str, descriptor: str,
                     signature: Optional[str], exceptions: Optional[list[str]]) -> MethodRecord:
        self._require_class("method declaration")
        self._close_member()
        if signature is None:
            signature = name + descriptor
        method = self._class.add_method(access, name, descriptor, signature, exceptions)
        self._stack.append(Frame(ElementKind.METHOD, method))
        return method

    def _open_annotation(self, descriptor: str, visible: bool) -> AnnotationRecord:
        if self._annotation is not None:
            raise self._violation(
                f"annotation {descriptor} declared while "
                f"@{self._annotation.type_name} is still open")
        self._annotation = AnnotationRecord.from_descriptor(descriptor, visible)
        return self._annotation

    def visit_annotation(self, descriptor: str, visible: bool = True) -> AnnotationRecord:
        self._require_class("annotation declaration")
        return self._open_annotation(descriptor, visible)

    def visit_parameter_annotation(self, parameter: int, descriptor: str,
                                   visible: bool = True) -> AnnotationRecord:
        self._require_class("parameter annotation declaration")
        if self.current.kind != ElementKind.METHOD:
            raise self._violation("parameter annotation outside of a method")
        annotation = self._open_annotation(descriptor, visible)
        self._stack.append(Frame(ElementKind.PARAMETER, parameter))
        return annotation

    def visit_value(self, name: str, value: Any):
        if self._annotation is None:
            logger.debug("%s: dropping annotation value %s=%r outside an annotation",
                         self.location, name, value)
            return
        self._annotation.add_param(name, value)

    def visit_end(self):
        if self._annotation is not None:
            self._end_annotation()
            return

        if not self._stack:
            raise self._violation("end of element with no element open")
        frame = self._stack.pop()
        if frame.kind == ElementKind.CLASS:
            self._finished = True
            self.found_classes[self._class.name] = self._class

    def _end_annotation(self):
        annotation = self._annotation
        self._annotation = None
        frame = self.current
        if frame.kind == ElementKind.PARAMETER:
            # Parameters are not modelled; their annotations are dropped.
            self._stack.pop()
            logger.debug("%s: ignoring annotation %s on parameter %d of %s",
                         self.location, annotation, frame.target, self.current.target)
            return
        frame.target.add_annotation(annotation)
