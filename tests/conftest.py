"""Shared test fixtures and helpers."""

import os

import pytest

from commentpp.keywords import DEFAULT_KEYWORDS
from commentpp.preprocessor import CommentPreprocessor


def write_tree(root, files):
    """Create files under root from a {rel path: text} dict."""
    for rel_path, text in files.items():
        path = os.path.join(root, rel_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)


def read_file(path):
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


@pytest.fixture
def variables():
    return {"VERSION": 1, "MC": 11202, "ZERO": 0}


@pytest.fixture
def preprocessor(variables):
    return CommentPreprocessor(variables)


@pytest.fixture
def convert(preprocessor):
    """Run the default keyword set over a block of text, returning the text."""

    def run(text, remapped=None, file_name="Test.java"):
        result = preprocessor.convert_source(DEFAULT_KEYWORDS, text.split("\n"), remapped, file_name)
        return "\n".join(result.lines)

    return run
