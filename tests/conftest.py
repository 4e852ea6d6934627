"""Shared fixtures: class files built in memory."""

import pytest

from jclassinfo.access import AccessFlags
from jclassinfo.classreader import ConstantPoolTag

from classfile_builder import Annotation, ClassFile


def replay(visitor, events):
    """Feed a list of (callback, *args) tuples to a visitor."""
    for name, *args in events:
        getattr(visitor, "visit_" + name)(*args)


@pytest.fixture
def bar_class() -> ClassFile:
    """com/foo/Bar: annotated class with a constant, a generic field and methods."""
    cf = ClassFile("com/foo/Bar", super_class="com/foo/Base")
    cf.interfaces = ["java/io/Serializable", "java/lang/Runnable"]
    cf.annotations = [
        Annotation("Lcom/foo/Entity;", {"value": ("s", "bars")}),
    ]
    cf.add_field(
        AccessFlags.PUBLIC | AccessFlags.STATIC | AccessFlags.FINAL,
        "MAX", "I",
        constant_value=(ConstantPoolTag.INTEGER, 42),
    )
    cf.add_field(
        AccessFlags.PRIVATE, "names", "Ljava/util/List;",
        signature="Ljava/util/List<Ljava/lang/String;>;",
        annotations=[Annotation("Lcom/foo/Inject;")],
    )
    cf.add_method(
        AccessFlags.PUBLIC, "run", "()V",
        annotations=[
            Annotation("Ljava/lang/Override;"),
            Annotation("Lcom/foo/Timed;", {
                "unit": ("e", ("Ljava/util/concurrent/TimeUnit;", "SECONDS")),
                "limit": ("J", 5000),
            }),
        ],
        code=b"\x00\x01\x00\x01\x00\x00\x00\x01\xb1\x00\x00\x00\x00",
    )
    cf.add_method(
        AccessFlags.PUBLIC, "load", "(Ljava/lang/String;[I)Ljava/lang/Object;",
        exceptions=["java/io/IOException"],
        parameter_annotations=[[Annotation("Lcom/foo/NotNull;")], []],
    )
    return cf
