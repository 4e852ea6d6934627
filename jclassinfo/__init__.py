"""jclassinfo - static class metadata from Java class files."""

from .classreader import ClassReader, read_class, read_class_file
from .errors import ClassFormatError, ClassInfoError, DescriptorError, ProtocolViolation
from .finder import ClassFinder
from .model import AnnotationRecord, ClassRecord, EnumValue, FieldRecord, MethodRecord
from .visitor import ClassInfoVisitor

__version__ = "0.1.0"
__all__ = [
    "AnnotationRecord", "ClassFinder", "ClassFormatError", "ClassInfoError",
    "ClassInfoVisitor", "ClassReader", "ClassRecord", "DescriptorError",
    "EnumValue", "FieldRecord", "MethodRecord", "ProtocolViolation",
    "read_class", "read_class_file",
]
