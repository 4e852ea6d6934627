"""Tests for class filters."""

import pytest

from jclassinfo.access import AccessFlags
from jclassinfo.filters import (
    AbstractClassFilter, AnnotatedClassFilter, ClassModifiersClassFilter,
    InterfaceOnlyClassFilter, RegexClassFilter, SubclassClassFilter,
)
from jclassinfo.model import AnnotationRecord, ClassRecord

PUBLIC = AccessFlags.PUBLIC
ABSTRACT = AccessFlags.ABSTRACT
INTERFACE = AccessFlags.INTERFACE


@pytest.fixture
def found():
    records = [
        ClassRecord("java/lang/Object", None, [], PUBLIC),
        ClassRecord("a/Shape", "java/lang/Object", [], PUBLIC | INTERFACE | ABSTRACT),
        ClassRecord("a/Polygon", "java/lang/Object", ["a/Shape"], PUBLIC | INTERFACE | ABSTRACT),
        ClassRecord("a/AbstractPolygon", "java/lang/Object", ["a/Polygon"], PUBLIC | ABSTRACT),
        ClassRecord("a/Square", "a/AbstractPolygon", [], PUBLIC | AccessFlags.FINAL),
        ClassRecord("a/Hidden", "java/lang/Object", [], 0),
    ]
    square = records[4]
    square.add_annotation(AnnotationRecord("a.Entity"))
    hidden = records[5]
    hidden.add_method(PUBLIC, "run", "()V", "run()V").add_annotation(AnnotationRecord("a.Timed"))
    return {r.name: r for r in records}


def accepted(class_filter, found):
    return sorted(name for name, record in found.items() if class_filter.accept(record, found))


class TestFilters:
    def test_modifiers(self, found):
        assert accepted(ClassModifiersClassFilter(AccessFlags.FINAL), found) == ["a.Square"]
        assert "a.Hidden" not in accepted(ClassModifiersClassFilter(PUBLIC), found)

    def test_interfaces_and_abstract(self, found):
        assert accepted(InterfaceOnlyClassFilter(), found) == ["a.Polygon", "a.Shape"]
        assert accepted(AbstractClassFilter(), found) == ["a.AbstractPolygon"]

    def test_regex(self, found):
        assert accepted(RegexClassFilter(r"Polygon$"), found) == ["a.AbstractPolygon", "a.Polygon"]

    def test_subclass_is_transitive(self, found):
        assert accepted(SubclassClassFilter("a.Shape"), found) == [
            "a.AbstractPolygon", "a.Polygon", "a.Square"]

    def test_not_own_subclass(self, found):
        assert "a.Square" not in accepted(SubclassClassFilter("a.Square"), found)

    def test_subclass_of_unknown_parent(self, found):
        assert len(accepted(SubclassClassFilter("java.lang.Object"), found)) == 5

    def test_annotated(self, found):
        assert accepted(AnnotatedClassFilter("a.Entity"), found) == ["a.Square"]
        assert accepted(AnnotatedClassFilter("a.Timed"), found) == []
        assert accepted(AnnotatedClassFilter("a.Timed", members=True), found) == ["a.Hidden"]

    def test_composition(self, found):
        concrete_shapes = SubclassClassFilter("a.Shape") & ~InterfaceOnlyClassFilter()
        assert accepted(concrete_shapes, found) == ["a.AbstractPolygon", "a.Square"]
        either = AbstractClassFilter() | RegexClassFilter("Hidden")
        assert accepted(either, found) == ["a.AbstractPolygon", "a.Hidden"]
