"""
JVM access flags and their Java modifier spelling.
"""

from enum import IntFlag


class AccessFlags(IntFlag):
    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SUPER = 0x0020  # For classes (invokespecial semantics)
    SYNCHRONIZED = 0x0020  # For methods
    VOLATILE = 0x0040
    BRIDGE = 0x0040
    TRANSIENT = 0x0080
    VARARGS = 0x0080
    NATIVE = 0x0100
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    STRICT = 0x0800
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000


# Same order as java.lang.reflect.Modifier.toString
_CLASS_MODIFIERS = (
    (AccessFlags.PUBLIC, "public"),
    (AccessFlags.PROTECTED, "protected"),
    (AccessFlags.PRIVATE, "private"),
    (AccessFlags.ABSTRACT, "abstract"),
    (AccessFlags.STATIC, "static"),
    (AccessFlags.FINAL, "final"),
    (AccessFlags.STRICT, "strictfp"),
    (AccessFlags.INTERFACE, "interface"),
)

_FIELD_MODIFIERS = (
    (AccessFlags.PUBLIC, "public"),
    (AccessFlags.PROTECTED, "protected"),
    (AccessFlags.PRIVATE, "private"),
    (AccessFlags.STATIC, "static"),
    (AccessFlags.FINAL, "final"),
    (AccessFlags.TRANSIENT, "transient"),
    (AccessFlags.VOLATILE, "volatile"),
)

_METHOD_MODIFIERS = (
    (AccessFlags.PUBLIC, "public"),
    (AccessFlags.PROTECTED, "protected"),
    (AccessFlags.PRIVATE, "private"),
    (AccessFlags.ABSTRACT, "abstract"),
    (AccessFlags.STATIC, "static"),
    (AccessFlags.FINAL, "final"),
    (AccessFlags.SYNCHRONIZED, "synchronized"),
    (AccessFlags.NATIVE, "native"),
    (AccessFlags.STRICT, "strictfp"),
)

_TABLES = {
    "class": _CLASS_MODIFIERS,
    "field": _FIELD_MODIFIERS,
    "method": _METHOD_MODIFIERS,
}

# Lookup used by the CLI --modifiers option
MODIFIER_NAMES = {
    "public": AccessFlags.PUBLIC,
    "private": AccessFlags.PRIVATE,
    "protected": AccessFlags.PROTECTED,
    "static": AccessFlags.STATIC,
    "final": AccessFlags.FINAL,
    "synchronized": AccessFlags.SYNCHRONIZED,
    "volatile": AccessFlags.VOLATILE,
    "transient": AccessFlags.TRANSIENT,
    "native": AccessFlags.NATIVE,
    "interface": AccessFlags.INTERFACE,
    "abstract": AccessFlags.ABSTRACT,
    "strictfp": AccessFlags.STRICT,
    "synthetic": AccessFlags.SYNTHETIC,
    "annotation": AccessFlags.ANNOTATION,
    "enum": AccessFlags.ENUM,
}


def modifier_names(access_flags: int, kind: str = "class") -> list[str]:
    """Return the Java modifier keywords set in access_flags.

    kind selects the flag table ("class", "field" or "method"), since the
    same bit means different things on different elements.
    """
    return [name for flag, name in _TABLES[kind] if access_flags & flag]


def parse_modifiers(text: str) -> int:
    """Parse a comma-separated list of modifier names into a flag mask."""
    flags = 0
    for word in text.split(","):
        word = word.strip().lower()
        if not word:
            continue
        if word not in MODIFIER_NAMES:
            raise ValueError(f"Unknown modifier: {word}")
        flags |= MODIFIER_NAMES[word]
    return flags
