#!/usr/bin/env python3
"""
Command-line interface for jclassinfo.
"""

import argparse
import json
import logging
import sys
from pathlib import Path


def _build_finder(args):
    from .finder import ClassFinder

    finder = ClassFinder(workers=args.jobs)
    for entry in args.paths:
        path = Path(entry)
        if not path.exists():
            print(f"Error: Path not found: {entry}", file=sys.stderr)
            sys.exit(1)
        if not finder.add_path(path):
            print(f"Error: Not a directory or jar/zip file: {entry}", file=sys.stderr)
            sys.exit(1)
    if getattr(args, "classpath", False):
        finder.add_class_path()
    return finder


def _build_filter(args):
    from .access import parse_modifiers
    from .filters import (
        AbstractClassFilter, AndClassFilter, AnnotatedClassFilter,
        ClassModifiersClassFilter, InterfaceOnlyClassFilter, RegexClassFilter,
        SubclassClassFilter,
    )

    filters = []
    if args.subclass_of:
        filters.append(SubclassClassFilter(args.subclass_of))
    if args.annotated_with:
        filters.append(AnnotatedClassFilter(args.annotated_with, members=args.members))
    if args.modifiers:
        try:
            filters.append(ClassModifiersClassFilter(parse_modifiers(args.modifiers)))
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    if args.interfaces_only:
        filters.append(InterfaceOnlyClassFilter())
    if args.abstract_only:
        filters.append(AbstractClassFilter())
    if args.match:
        filters.append(RegexClassFilter(args.match))

    if not filters:
        return None
    return AndClassFilter(*filters)


def find_command(args):
    """List the classes matching the given filters."""
    finder = _build_finder(args)
    classes = finder.find_classes(_build_filter(args))

    if args.json:
        print(json.dumps([classes[name].to_dict() for name in sorted(classes)], indent=2))
    else:
        for name in sorted(classes):
            print(name)

    if finder.failures:
        print(f"Warning: {len(finder.failures)} class file(s) could not be read",
              file=sys.stderr)


def _class_header(record) -> str:
    modifiers = record.modifiers.split()
    super_name = record.super_name
    if record.is_interface:
        keyword = "@interface" if record.is_annotation else "interface"
        modifiers = [m for m in modifiers if m not in ("abstract", "interface")]
        # Interfaces extend their super-interfaces, never a class
        super_name = None
        interfaces = [i for i in record.interfaces
                      if not (record.is_annotation and i == "java.lang.annotation.Annotation")]
        implements = "extends"
    else:
        keyword = "enum" if record.is_enum else "class"
        if record.is_enum:
            modifiers = [m for m in modifiers if m != "final"]
            if super_name == "java.lang.Enum":
                super_name = None
        interfaces = record.interfaces
        implements = "implements"

    header = " ".join(modifiers + [keyword, record.name])
    if super_name:
        header += f" extends {super_name}"
    if interfaces:
        header += f" {implements} {', '.join(interfaces)}"
    return header


def _print_class(record):
    for annotation in record.annotations:
        print(annotation)
    print(_class_header(record))
    print(f"  location: {record.location}")

    for field_record in record.fields:
        for annotation in field_record.annotations:
            print(f"  {annotation}")
        decl = " ".join(filter(None, [field_record.modifiers, field_record.type_name,
                                      field_record.name]))
        if field_record.value is not None:
            decl += f" = {field_record.value!r}"
        print(f"  {decl}")

    for method in record.methods:
        for annotation in method.annotations:
            print(f"  {annotation}")
        params = ", ".join(method.parameter_types)
        decl = " ".join(filter(None, [method.modifiers, method.return_type, method.name]))
        decl += f"({params})"
        if method.exceptions:
            decl += f" throws {', '.join(method.exceptions)}"
        print(f"  {decl}")


def show_command(args):
    """Print the metadata of one class."""
    finder = _build_finder(args)
    classes = finder.find_classes()
    record = classes.get(args.class_name)
    if record is None:
        print(f"Error: Class not found: {args.class_name}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(record.to_dict(), indent=2))
    else:
        _print_class(record)


def main(argv=None):
    """Main entry point for jclassinfo CLI."""
    from . import __version__

    parser = argparse.ArgumentParser(
        prog="jclassinfo",
        description="Inspect Java class files without loading them",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"jclassinfo {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Number of threads used to read class files",
    )
    common.add_argument(
        "--json",
        action="store_true",
        help="Print JSON instead of text",
    )
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug messages",
    )

    # Find command
    find_parser = subparsers.add_parser(
        "find",
        parents=[common],
        help="List classes in directories and jar files",
    )
    find_parser.add_argument(
        "paths",
        nargs="+",
        help="Directories or jar/zip files to search",
    )
    find_parser.add_argument(
        "-cp", "--classpath",
        action="store_true",
        help="Also search the entries of $CLASSPATH",
    )
    find_parser.add_argument(
        "--subclass-of",
        metavar="CLASS",
        help="Only classes extending or implementing CLASS",
    )
    find_parser.add_argument(
        "--annotated-with",
        metavar="ANNOTATION",
        help="Only classes carrying ANNOTATION (dotted name)",
    )
    find_parser.add_argument(
        "--members",
        action="store_true",
        help="With --annotated-with, also match annotated fields and methods",
    )
    find_parser.add_argument(
        "--modifiers",
        help="Only classes with any of these modifiers (comma-separated)",
    )
    kind = find_parser.add_mutually_exclusive_group()
    kind.add_argument(
        "--interfaces-only",
        action="store_true",
        help="Only interfaces",
    )
    kind.add_argument(
        "--abstract-only",
        action="store_true",
        help="Only abstract classes (not interfaces)",
    )
    find_parser.add_argument(
        "--match",
        metavar="REGEX",
        help="Only classes whose name matches REGEX",
    )
    find_parser.set_defaults(func=find_command)

    # Show command
    show_parser = subparsers.add_parser(
        "show",
        parents=[common],
        help="Show fields, methods and annotations of a class",
    )
    show_parser.add_argument(
        "paths",
        nargs="+",
        help="Directories or jar/zip files to search",
    )
    show_parser.add_argument(
        "class_name",
        metavar="CLASS",
        help="Fully qualified class name",
    )
    show_parser.set_defaults(func=show_command)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    args.func(args)


if __name__ == "__main__":
    main()
