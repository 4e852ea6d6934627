"""Tests for the class metadata visitor."""

import pytest

from jclassinfo.access import AccessFlags
from jclassinfo.errors import ProtocolViolation
from jclassinfo.visitor import ClassInfoVisitor, ElementKind

from conftest import replay

PUBLIC = int(AccessFlags.PUBLIC)

CLASS_BAR = ("class", (52, 0), PUBLIC, "com/foo/Bar", None, "java/lang/Object", [])


def annotated_bar_stream():
    """Class, field and method annotated with @A; method also with @B."""
    return [
        CLASS_BAR,
        ("annotation", "LA;", True),
        ("end",),
        ("field", PUBLIC, "count", "I", None, None),
        ("annotation", "LA;", True),
        ("end",),
        ("end",),
        ("method", PUBLIC, "run", "(I)V", None, None),
        ("annotation", "LA;", True),
        ("value", "name", "first"),
        ("end",),
        ("annotation", "LB;", True),
        ("end",),
        ("end",),
        ("end",),
    ]


@pytest.fixture
def found():
    return {}


@pytest.fixture
def visitor(found):
    return ClassInfoVisitor(found, "/tmp/classes")


class TestClassDeclaration:
    def test_name_is_dotted(self, visitor, found):
        replay(visitor, [CLASS_BAR, ("end",)])
        assert visitor.result.name == "com.foo.Bar"
        assert list(found) == ["com.foo.Bar"]

    def test_header(self, visitor):
        replay(visitor, [
            ("class", (52, 0), PUBLIC, "com/foo/Bar", None, "com/foo/Base",
             ["java/io/Serializable"], b"\xca\xfe"),
            ("end",),
        ])
        record = visitor.result
        assert record.super_name == "com.foo.Base"
        assert record.interfaces == ["java.io.Serializable"]
        assert record.access_flags == PUBLIC
        assert record.location == "/tmp/classes"
        assert record.bytecode == b"\xca\xfe"
        assert record.version == (52, 0)

    def test_root_type_has_no_superclass(self, visitor):
        replay(visitor, [("class", None, PUBLIC, "java/lang/Object", None, None, None), ("end",)])
        assert visitor.result.super_name is None
        assert visitor.result.interfaces == []

    def test_committed_only_at_end(self, visitor, found):
        replay(visitor, [CLASS_BAR, ("field", PUBLIC, "count", "I", None, None), ("end",)])
        assert found == {}
        assert not visitor.finished
        visitor.visit_end()
        assert visitor.finished
        assert found["com.foo.Bar"] is visitor.result

    def test_second_class_is_violation(self, visitor):
        visitor.visit_class(*CLASS_BAR[1:])
        with pytest.raises(ProtocolViolation):
            visitor.visit_class(*CLASS_BAR[1:])


class TestMembers:
    def test_fields_in_declaration_order(self, visitor):
        names = ["a", "b", "c", "d"]
        events = [CLASS_BAR]
        for name in names:
            events += [("field", PUBLIC, name, "I", None, None), ("end",)]
        replay(visitor, events + [("end",)])
        assert [f.name for f in visitor.result.fields] == names

    def test_field_signature_synthesized(self, visitor):
        replay(visitor, [CLASS_BAR, ("field", PUBLIC, "count", "I", None, None)])
        assert visitor.result.fields[0].signature == "I count"

    def test_field_generic_signature_kept(self, visitor):
        replay(visitor, [CLASS_BAR,
                         ("field", PUBLIC, "names", "Ljava/util/List;",
                          "Ljava/util/List<Ljava/lang/String;>;", None)])
        assert visitor.result.fields[0].signature == "Ljava/util/List<Ljava/lang/String;>;"

    def test_field_constant_value(self, visitor):
        replay(visitor, [CLASS_BAR, ("field", PUBLIC, "MAX", "I", None, 42)])
        assert visitor.result.fields[0].value == 42

    def test_method_signature_synthesized(self, visitor):
        replay(visitor, [CLASS_BAR, ("method", PUBLIC, "run", "(I)V", None, None)])
        assert visitor.result.methods[0].signature == "run(I)V"

    def test_method_back_reference_and_exceptions(self, visitor):
        replay(visitor, [CLASS_BAR,
                         ("method", PUBLIC, "load", "()V", None, ["java/io/IOException"])])
        method = visitor.result.methods[0]
        assert method.declaring_class is visitor.result
        assert method.exceptions == ["java.io.IOException"]

    def test_member_without_end_is_closed_by_next_member(self, visitor):
        replay(visitor, [
            CLASS_BAR,
            ("field", PUBLIC, "a", "I", None, None),
            ("method", PUBLIC, "run", "()V", None, None),
            ("annotation", "LA;", True),
            ("end",),
        ])
        assert visitor.result.fields[0].annotations == []
        assert visitor.result.methods[0].is_annotation_present("A")

    @pytest.mark.parametrize("event", [
        ("field", PUBLIC, "count", "I", None, None),
        ("method", PUBLIC, "run", "()V", None, None),
        ("annotation", "LA;", True),
    ])
    def test_callback_before_class_is_violation(self, visitor, found, event):
        with pytest.raises(ProtocolViolation) as excinfo:
            replay(visitor, [event])
        assert "/tmp/classes" in str(excinfo.value)
        assert excinfo.value.location == "/tmp/classes"
        assert found == {}

    def test_field_after_class_end_is_violation(self, visitor):
        replay(visitor, [CLASS_BAR, ("end",)])
        with pytest.raises(ProtocolViolation):
            visitor.visit_field(PUBLIC, "late", "I", None, None)


class TestAnnotationAttribution:
    def test_stacked_annotations(self, visitor):
        replay(visitor, annotated_bar_stream())
        record = visitor.result
        assert [a.type_name for a in record.annotations] == ["A"]
        assert [a.type_name for a in record.fields[0].annotations] == ["A"]
        assert [a.type_name for a in record.methods[0].annotations] == ["A", "B"]

    def test_values_go_to_open_annotation(self, visitor):
        replay(visitor, annotated_bar_stream())
        first = visitor.result.methods[0].annotations[0]
        assert first.params == [("name", "first")]
        assert visitor.result.methods[0].annotations[1].params == []

    def test_several_class_annotations(self, visitor):
        replay(visitor, [
            CLASS_BAR,
            ("annotation", "Lcom/foo/A;", True), ("end",),
            ("annotation", "Lcom/foo/B;", False), ("end",),
            ("annotation", "Lcom/foo/C;", True), ("end",),
            ("field", PUBLIC, "x", "I", None, None), ("end",),
            ("end",),
        ])
        record = visitor.result
        assert [a.type_name for a in record.annotations] == ["com.foo.A", "com.foo.B", "com.foo.C"]
        assert record.annotations[1].visible is False
        assert record.fields[0].annotations == []

    def test_class_annotations_after_members(self, visitor):
        replay(visitor, [
            CLASS_BAR,
            ("method", PUBLIC, "run", "()V", None, None), ("end",),
            ("annotation", "LA;", True), ("end",),
            ("end",),
        ])
        assert visitor.result.is_annotation_present("A")
        assert visitor.result.methods[0].annotations == []

    def test_annotation_attached_once(self, visitor):
        replay(visitor, annotated_bar_stream())
        total = (len(visitor.result.annotations)
                 + sum(len(f.annotations) for f in visitor.result.fields)
                 + sum(len(m.annotations) for m in visitor.result.methods))
        assert total == 4

    def test_parameter_annotations_are_not_attached(self, visitor):
        replay(visitor, [
            CLASS_BAR,
            ("method", PUBLIC, "load", "(Ljava/lang/String;)V", None, None),
            ("parameter_annotation", 0, "Lcom/foo/NotNull;", True),
            ("value", "message", "x"),
            ("end",),
            ("annotation", "LA;", True),
            ("end",),
            ("end",),
            ("end",),
        ])
        method = visitor.result.methods[0]
        assert [a.type_name for a in method.annotations] == ["A"]
        assert not visitor.result.is_annotation_present("com.foo.NotNull")
        assert visitor.finished

    def test_parameter_annotation_outside_method(self, visitor):
        visitor.visit_class(*CLASS_BAR[1:])
        with pytest.raises(ProtocolViolation):
            visitor.visit_parameter_annotation(0, "LA;", True)

    def test_value_without_annotation_is_dropped(self, visitor):
        replay(visitor, [
            CLASS_BAR,
            ("value", "stray", 1),
            ("annotation", "LA;", True),
            ("end",),
            ("end",),
        ])
        assert visitor.result.annotations[0].params == []

    def test_annotation_inside_open_annotation_is_violation(self, visitor):
        replay(visitor, [CLASS_BAR, ("annotation", "LA;", True)])
        with pytest.raises(ProtocolViolation):
            visitor.visit_annotation("LB;", True)

    def test_current_frame_tracks_open_element(self, visitor):
        visitor.visit_class(*CLASS_BAR[1:])
        assert visitor.current.kind == ElementKind.CLASS
        field_record = visitor.visit_field(PUBLIC, "x", "I", None, None)
        assert visitor.current.kind == ElementKind.FIELD
        assert visitor.current.target is field_record
        visitor.visit_end()
        assert visitor.current.kind == ElementKind.CLASS

    def test_end_with_nothing_open_is_violation(self, visitor):
        with pytest.raises(ProtocolViolation):
            visitor.visit_end()


class TestIdempotence:
    def test_same_stream_gives_equal_graphs(self):
        first = ClassInfoVisitor({}, "loc")
        second = ClassInfoVisitor({}, "loc")
        replay(first, annotated_bar_stream())
        replay(second, annotated_bar_stream())
        assert first.result is not second.result
        assert first.result == second.result
        assert first.result.to_dict() == second.result.to_dict()
