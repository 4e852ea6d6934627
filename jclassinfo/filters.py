"""
Filters that select classes from a mapping of found classes.

Filters work on metadata only; nothing is loaded. Combine them with
``&``, ``|`` and ``~``::

    SubclassClassFilter("java.lang.Exception") & ~AbstractClassFilter()
"""

import re
from abc import ABC, abstractmethod
from typing import Mapping

from .model import ClassRecord


class ClassFilter(ABC):
    """Base class for class filters."""

    @abstractmethod
    def accept(self, record: ClassRecord, found: Mapping[str, ClassRecord]) -> bool:
        """True if record is selected. found holds every known class."""

    def __and__(self, other: "ClassFilter") -> "ClassFilter":
        return AndClassFilter(self, other)

    def __or__(self, other: "ClassFilter") -> "ClassFilter":
        return OrClassFilter(self, other)

    def __invert__(self) -> "ClassFilter":
        return NotClassFilter(self)


class AndClassFilter(ClassFilter):
    def __init__(self, *filters: ClassFilter):
        self.filters = filters

    def accept(self, record, found):
        return all(f.accept(record, found) for f in self.filters)


class OrClassFilter(ClassFilter):
    def __init__(self, *filters: ClassFilter):
        self.filters = filters

    def accept(self, record, found):
        return any(f.accept(record, found) for f in self.filters)


class NotClassFilter(ClassFilter):
    def __init__(self, inner: ClassFilter):
        self.inner = inner

    def accept(self, record, found):
        return not self.inner.accept(record, found)


class ClassModifiersClassFilter(ClassFilter):
    """Accepts classes that have any of the given access flags set."""

    def __init__(self, modifiers: int):
        self.modifiers = modifiers

    def accept(self, record, found):
        return (record.access_flags & self.modifiers) != 0


class InterfaceOnlyClassFilter(ClassFilter):
    def accept(self, record, found):
        return record.is_interface


class AbstractClassFilter(ClassFilter):
    """Accepts abstract classes, but not interfaces."""

    def accept(self, record, found):
        return record.is_abstract and not record.is_interface


class RegexClassFilter(ClassFilter):
    """Accepts classes whose dotted name contains a match for pattern."""

    def __init__(self, pattern: str):
        self.pattern = re.compile(pattern)

    def accept(self, record, found):
        return self.pattern.search(record.name) is not None


class SubclassClassFilter(ClassFilter):
    """Accepts classes that extend or implement base_name.

    The hierarchy is followed through superclasses and interfaces as far as
    the found mapping knows them. A class is not its own subclass.
    """

    def __init__(self, base_name: str):
        self.base_name = base_name

    def accept(self, record, found):
        if record.name == self.base_name:
            return False
        seen = set()
        pending = [record]
        while pending:
            current = pending.pop()
            parents = list(current.interfaces)
            if current.super_name:
                parents.append(current.super_name)
            for parent in parents:
                if parent == self.base_name:
                    return True
                if parent in seen:
                    continue
                seen.add(parent)
                parent_record = found.get(parent)
                if parent_record is not None:
                    pending.append(parent_record)
        return False


class AnnotatedClassFilter(ClassFilter):
    """Accepts classes annotated with type_name.

    With members=True a class is also accepted when one of its fields or
    methods carries the annotation.
    """

    def __init__(self, type_name: str, members: bool = False):
        self.type_name = type_name
        self.members = members

    def accept(self, record, found):
        if record.is_annotation_present(self.type_name):
            return True
        if not self.members:
            return False
        return any(m.is_annotation_present(self.type_name)
                   for m in (*record.fields, *record.methods))
