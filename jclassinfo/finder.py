"""
Locate class files in directories and archives and collect their metadata.
"""

import logging
import os
import zipfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterator, Optional

from .classreader import ClassReader
from .errors import ClassInfoError
from .model import ClassRecord
from .visitor import ClassInfoVisitor

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIXES = (".jar", ".zip", ".war", ".ear")
SKIPPED_ENTRIES = ("module-info.class",)
# Multi-release jar copies; the base entries are the ones a classpath sees
VERSIONED_PREFIX = "META-INF/versions/"


def _process_unit(location: Path, entry: str, data: bytes,
                  keep_bytecode: bool) -> tuple[Optional[ClassRecord], Optional[ClassInfoError]]:
    """Decode one class file with a private visitor.

    Returns (record, None) on success and (None, error) when the unit could
    not be read; a failed unit never yields a partial record.
    """
    found: dict[str, ClassRecord] = {}
    visitor = ClassInfoVisitor(found, location)
    try:
        ClassReader(data, f"{location}!{entry}").accept(visitor, keep_bytecode=keep_bytecode)
    except ClassInfoError as e:
        return None, e
    if not found:
        return None, ClassInfoError(f"{entry}: no class produced", location)
    return next(iter(found.values())), None


class ClassFinder:
    """Finds classes in a set of directories and jar/zip files.

    Each class file is read by its own visitor. With workers > 1 the files
    are decoded on a thread pool; results are merged in the calling thread
    in the order the files were found, so the first location that defines
    a class wins, as on a classpath.
    """

    def __init__(self, workers: Optional[int] = None, keep_bytecode: bool = False):
        self.workers = workers
        self.keep_bytecode = keep_bytecode
        self.locations: list[Path] = []
        self.failures: list[ClassInfoError] = []

    def add_path(self, path) -> bool:
        """Add a directory or jar/zip file. Returns False if it is unusable."""
        path = Path(path)
        if path.is_dir():
            self.locations.append(path)
            return True
        if path.is_file() and path.suffix.lower() in ARCHIVE_SUFFIXES:
            if zipfile.is_zipfile(path):
                self.locations.append(path)
                return True
            logger.warning("Not a valid archive, skipping: %s", path)
            return False
        logger.warning("Invalid classpath entry, skipping: %s", path)
        return False

    def add_class_path(self, class_path: Optional[str] = None) -> int:
        """Add every entry of class_path (default: $CLASSPATH).

        Returns the number of entries added.
        """
        if class_path is None:
            class_path = os.environ.get("CLASSPATH", "")
        added = 0
        for entry in class_path.split(os.pathsep):
            if entry and self.add_path(entry):
                added += 1
        return added

    def iter_class_files(self) -> Iterator[tuple[Path, str, bytes]]:
        """Yield (location, entry name, bytes) for every class file found."""
        for location in self.locations:
            if location.is_dir():
                for class_file in sorted(location.rglob("*.class")):
                    if class_file.name in SKIPPED_ENTRIES:
                        continue
                    entry = class_file.relative_to(location).as_posix()
                    yield location, entry, class_file.read_bytes()
            else:
                with zipfile.ZipFile(location, "r") as zf:
                    for name in sorted(zf.namelist()):
                        if not name.endswith(".class") or name.rsplit("/", 1)[-1] in SKIPPED_ENTRIES:
                            continue
                        if name.startswith(VERSIONED_PREFIX):
                            continue
                        yield location, name, zf.read(name)

    def find_classes(self, class_filter=None) -> dict[str, ClassRecord]:
        """Read every class in the added locations.

        Returns a mapping of dotted class name to ClassRecord. When
        class_filter is given, only the classes it accepts are returned;
        the filter sees the full mapping so it can follow superclasses.
        """
        self.failures = []
        if self.workers is not None and self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [
                    executor.submit(_process_unit, location, entry, data, self.keep_bytecode)
                    for location, entry, data in self.iter_class_files()
                ]
                results = [future.result() for future in futures]
        else:
            results = [
                _process_unit(location, entry, data, self.keep_bytecode)
                for location, entry, data in self.iter_class_files()
            ]

        found: dict[str, ClassRecord] = {}
        for record, error in results:
            if error is not None:
                logger.warning("Skipping unreadable class file: %s", error)
                self.failures.append(error)
                continue
            if record.name in found:
                logger.debug("%s in %s is shadowed by %s", record.name,
                             record.location, found[record.name].location)
                continue
            found[record.name] = record

        logger.debug("Found %d classes in %d locations", len(found), len(self.locations))

        if class_filter is None:
            return found
        return {name: record for name, record in found.items()
                if class_filter.accept(record, found)}
