from collections import OrderedDict
from dataclasses import dataclass


@dataclass(frozen=True)
class Keywords:
    """Directive prefixes for one comment syntax."""

    if_: str
    ifdef: str
    else_: str
    endif: str
    eval: str


DEFAULT_KEYWORDS = Keywords(
    if_="//#if ",
    ifdef="//#ifdef ",
    else_="//#else",
    endif="//#endif",
    eval="//$$",
)

CFG_KEYWORDS = Keywords(
    if_="##if ",
    ifdef="##ifdef ",
    else_="##else",
    endif="##endif",
    eval="#$$",
)

NAMED_KEYWORDS = {
    "default": DEFAULT_KEYWORDS,
    "cfg": CFG_KEYWORDS,
}


def default_keyword_map():
    return OrderedDict([
        (".java", DEFAULT_KEYWORDS),
        (".kt", DEFAULT_KEYWORDS),
        (".gradle", DEFAULT_KEYWORDS),
        (".json", DEFAULT_KEYWORDS),
        (".mcmeta", DEFAULT_KEYWORDS),
        (".cfg", CFG_KEYWORDS),
    ])


def select_keywords(keyword_map, filename):
    """Returns the keyword set of the first suffix `filename` ends with, or None."""
    for suffix, keywords in keyword_map.items():
        if filename.endswith(suffix):
            return keywords
    return None
