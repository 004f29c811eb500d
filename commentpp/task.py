import logging
import os
import shutil
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .errors import PreprocessorError, RemapFailedError
from .keywords import default_keyword_map, select_keywords
from .preprocessor import CommentPreprocessor

logger = logging.getLogger(__name__)


class FailureTracker:
    """Sticky run-wide failure flag, shared by every file of a run."""

    def __init__(self, stream=None):
        self.stream = stream
        self.failed = False
        self._lock = threading.Lock()

    def record(self, result):
        stream = self.stream or sys.stderr
        with self._lock:
            for diagnostic in result.diagnostics:
                stream.write(diagnostic + "\n")
            stream.flush()
            self.failed = self.failed or result.failed


@dataclass
class TaskReport:
    converted: int = 0
    copied: int = 0


class PreprocessTask:
    def __init__(self, source=None, generated=None, variables=None, keywords=None,
                 remapper=None, jobs=1, stream=None):
        self.source = source
        self.generated = generated
        self.variables = variables or {}
        self.keywords = keywords if keywords is not None else default_keyword_map()
        self.remapper = remapper
        self.jobs = jobs
        self.stream = stream

    def inplace(self, path):
        self.source = path
        self.generated = path

    @property
    def in_place(self):
        return os.path.abspath(self.source) == os.path.abspath(self.generated)

    def discover(self):
        generated = os.path.abspath(self.generated)
        files = []
        for root, dirs, filenames in os.walk(self.source):
            if not self.in_place:
                # An output directory nested in the source is not input
                dirs[:] = [d for d in dirs if os.path.abspath(os.path.join(root, d)) != generated]
            dirs.sort()
            for name in sorted(filenames):
                path = os.path.join(root, name)
                files.append((path, os.path.relpath(path, self.source)))
        return files

    def clean_output(self):
        source = os.path.abspath(self.source)
        generated = os.path.abspath(self.generated)
        if os.path.commonpath([source, generated]) == generated:
            raise PreprocessorError(f"Refusing to delete {generated}: it contains the source {source}")
        if os.path.exists(generated):
            shutil.rmtree(generated)
        os.makedirs(generated)

    def process_file(self, preprocessor, tracker, path, rel_path):
        out_file = os.path.join(self.generated, rel_path)
        kws = select_keywords(self.keywords, os.path.basename(path))
        if kws is not None:
            remap = self.remapper.for_file(rel_path) if self.remapper else None
            logger.debug(f"Preprocessing {rel_path}{' (remapped)' if remap else ''}")
            result = preprocessor.convert_file(kws, path, out_file, remap=remap, file_name=path)
            tracker.record(result)
            return "converted"
        if not self.in_place:
            logger.debug(f"Copying {rel_path}")
            os.makedirs(os.path.dirname(out_file), exist_ok=True)
            shutil.copy2(path, out_file)
            return "copied"
        return None

    def run(self):
        if not os.path.isdir(self.source):
            raise PreprocessorError(f"Source directory '{self.source}' does not exist")

        files = self.discover()
        if not self.in_place:
            self.clean_output()

        preprocessor = CommentPreprocessor(self.variables)
        tracker = FailureTracker(self.stream)

        if self.jobs > 1:
            with ThreadPoolExecutor(max_workers=self.jobs) as executor:
                futures = [executor.submit(self.process_file, preprocessor, tracker, path, rel_path)
                           for path, rel_path in files]
            # The pool has drained; re-raise the first failure in file order
            outcomes = [future.result() for future in futures]
        else:
            outcomes = [self.process_file(preprocessor, tracker, path, rel_path)
                        for path, rel_path in files]

        report = TaskReport(
            converted=outcomes.count("converted"),
            copied=outcomes.count("copied"),
        )
        logger.debug(f"Preprocessed {report.converted} files, copied {report.copied}")

        if tracker.failed:
            raise RemapFailedError("Failed to remap sources. See errors above for details.")
        return report
