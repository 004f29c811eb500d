"""Remap collaborators.

A remapper hands the preprocessor, per file, the renamed text of every line
together with the errors the renaming produced for that line. The
preprocessor only asks for ``for_file(rel_path)``, which returns either None
(no remap, the file is used as is) or a function from the file's lines to a
list of ``(text, errors)`` records of the same length.

Two remappers live here:

- ``MappedSources`` replays the output of an external remapping run stored
  as JSON: the whole remapped text of each file plus ``[line, message]``
  error pairs with zero-based line numbers.
- ``IdentifierRemapper`` renames identifiers itself, word by word, from a
  ``MappingTable``.
"""

import json
import logging
import os
import re
from collections import OrderedDict

from .errors import MappingError
from .keywords import DEFAULT_KEYWORDS

logger = logging.getLogger(__name__)

DEFAULT_REMAP_EXTENSIONS = (".java", ".kt")


class MappedSources:
    def __init__(self, sources=None):
        # rel path -> (text, [(line index, message)])
        self.sources = {normalize_path(path): entry for path, entry in (sources or {}).items()}

    @classmethod
    def load(cls, filepath):
        with open(filepath, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise MappingError(f"Invalid remapped sources file {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise MappingError(f"Remapped sources file {filepath} must contain a JSON object")

        sources = {}
        for rel_path, entry in data.items():
            if not isinstance(entry, dict) or not isinstance(entry.get("source"), str):
                raise MappingError(f"{filepath}: entry for {rel_path} needs a 'source' string")
            errors = []
            for error in entry.get("errors", []):
                if (not isinstance(error, list) or len(error) != 2
                        or isinstance(error[0], bool) or not isinstance(error[0], int)):
                    raise MappingError(
                        f"{filepath}: errors of {rel_path} must be [line, message] pairs, got {error!r}")
                errors.append((error[0], str(error[1])))
            sources[rel_path] = (entry["source"], errors)
        logger.debug(f"Loaded remapped sources for {len(sources)} files from {filepath}")
        return cls(sources)

    def for_file(self, rel_path):
        entry = self.sources.get(normalize_path(rel_path))
        if entry is None:
            return None
        source, errors = entry

        def remap(lines):
            errors_by_line = {}
            for line, message in errors:
                errors_by_line.setdefault(line, []).append(message)
            return [(text, errors_by_line.get(index, []))
                    for index, text in enumerate(source.split("\n"))]

        return remap


class MappingTable:
    """Ordered identifier renames, old name -> new name.

    An empty new name marks an identifier that does not exist on the target
    side; the remapper reports every use of it.
    """

    def __init__(self, entries=None):
        self.entries = OrderedDict(entries or {})

    def __len__(self):
        return len(self.entries)

    def __contains__(self, name):
        return name in self.entries

    def __getitem__(self, name):
        return self.entries[name]

    def __eq__(self, other):
        return isinstance(other, MappingTable) and dict(self.entries) == dict(other.entries)

    def __repr__(self):
        return f"MappingTable({len(self.entries)} entries)"

    @classmethod
    def load(cls, filepath):
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()

        if content.lstrip().startswith('{'):
            try:
                return cls(json.loads(content, object_pairs_hook=OrderedDict))
            except json.JSONDecodeError as e:
                raise MappingError(f"Invalid mapping file {filepath}: {e}") from e

        entries = OrderedDict()
        for n, line in enumerate(content.split("\n"), 1):
            line = line.split('#', 1)[0].strip()
            if not line:
                continue
            parts = line.split()
            if len(parts) == 1:
                entries[parts[0]] = ""
            elif len(parts) == 2:
                entries[parts[0]] = parts[1]
            else:
                raise MappingError(f"{filepath}:{n}: expected 'old new', got '{line}'")
        return cls(entries)

    def write(self, filepath):
        parent = os.path.dirname(filepath)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.entries, f, indent=2, sort_keys=True)

    def reverse(self):
        reversed_entries = OrderedDict()
        for old, new in self.entries.items():
            if not new:
                continue
            if new in reversed_entries:
                raise MappingError(
                    f"Cannot reverse mapping: both {reversed_entries[new]} and {old} map to {new}")
            reversed_entries[new] = old
        return MappingTable(reversed_entries)

    def join(self, other):
        """Composes a->b here with b->c in `other` into a->c.

        Entries whose target `other` does not know are dropped.
        """
        return MappingTable((old, other[new]) for old, new in self.entries.items() if new in other)

    def merge(self, other):
        """Overlays `other` on top of this table."""
        merged = OrderedDict(self.entries)
        merged.update(other.entries)
        return MappingTable(merged)


class IdentifierRemapper:
    def __init__(self, table, extensions=DEFAULT_REMAP_EXTENSIONS, keywords=DEFAULT_KEYWORDS):
        self.table = table
        self.extensions = tuple(extensions)
        # Conditions name directive variables, not code identifiers
        self.directives = (keywords.if_, keywords.ifdef, keywords.else_, keywords.endif)
        names = sorted(table.entries, key=len, reverse=True)
        if names:
            self.pattern = re.compile(
                r"(?<![\w$])(?:" + "|".join(re.escape(name) for name in names) + r")(?![\w$])")
        else:
            self.pattern = None

    def remap_line(self, line):
        errors = []

        def replace(match):
            name = match.group(0)
            new = self.table[name]
            if not new:
                errors.append(f"{name} has no mapping in the target")
                return name
            return new

        if self.pattern is None or line.strip().startswith(self.directives):
            return line, errors
        return self.pattern.sub(replace, line), errors

    def remap(self, lines):
        return [self.remap_line(line) for line in lines]

    def for_file(self, rel_path):
        if not rel_path.endswith(self.extensions):
            return None
        return self.remap


def normalize_path(rel_path):
    return rel_path.replace(os.sep, "/")


def build_remapper(mapping=None, source_mappings=None, destination_mappings=None,
                   reverse=False, build_dir=None):
    """Builds an IdentifierRemapper from mapping table files, or returns None.

    With only `mapping`, that table is used (reversed if asked). With source
    and destination tables, the renames are source joined with the reversed
    destination. With all three, `mapping` is laid over that join on both
    sides so its own entries survive the join.
    """
    if mapping is None and (source_mappings is None or destination_mappings is None):
        return None

    if mapping is not None:
        table = MappingTable.load(mapping)
        if reverse:
            table = table.reverse()
        if source_mappings is not None and destination_mappings is not None:
            src = MappingTable.load(source_mappings)
            dst = MappingTable.load(destination_mappings)
            table = table.merge(src.merge(table).join(dst.reverse()).merge(table))
    else:
        src = MappingTable.load(source_mappings)
        dst = MappingTable.load(destination_mappings)
        table = src.join(dst.reverse())

    if build_dir:
        path = os.path.join(build_dir, "mapping.json")
        table.write(path)
        logger.debug(f"Wrote merged mapping to {path}")

    logger.info(f"Remapping with {len(table)} identifier mappings")
    return IdentifierRemapper(table)
