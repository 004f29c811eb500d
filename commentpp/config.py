import json
from collections import OrderedDict

from .errors import ConfigError
from .keywords import Keywords, NAMED_KEYWORDS, default_keyword_map

KEYWORD_FIELDS = {
    "if": "if_",
    "ifdef": "ifdef",
    "else": "else_",
    "endif": "endif",
    "eval": "eval",
}


class Config:
    def __init__(self):
        self.variables = {}  # Directive variables, e.g. MC=11202
        self.keywords = default_keyword_map()

    def parse_vars(self, vars_str):
        """Parses a string like 'MC=11202,FABRIC=1' into the variables dict."""
        if not vars_str:
            return

        for pair in vars_str.split(','):
            if not pair.strip():
                continue
            if '=' in pair:
                key, value = pair.split('=', 1)
                self.set_var(key.strip(), value.strip())
            else:
                # A bare name is enough for ifdef
                self.variables[pair.strip()] = 1

    def set_var(self, name, value):
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise ConfigError(f"Variable {name} must be an integer, got {value!r}")
        try:
            self.variables[name] = int(value)
        except ValueError:
            raise ConfigError(f"Variable {name} must be an integer, got {value!r}") from None

    def load_file(self, filepath):
        """Loads variables and keyword sets from a JSON config file."""
        with open(filepath, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid config file {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {filepath} must contain a JSON object")

        for section in ("vars", "keywords"):
            if section in data and not isinstance(data[section], dict):
                raise ConfigError(f"'{section}' in {filepath} must be a JSON object")

        for name, value in data.get("vars", {}).items():
            self.set_var(name, value)

        if "keywords" in data:
            # Configured suffixes are matched before the defaults
            merged = OrderedDict()
            for suffix, entry in data["keywords"].items():
                merged[suffix] = self.parse_keywords(suffix, entry)
            for suffix, kws in self.keywords.items():
                if suffix not in merged:
                    merged[suffix] = kws
            self.keywords = merged

    @staticmethod
    def parse_keywords(suffix, entry):
        if isinstance(entry, str):
            if entry not in NAMED_KEYWORDS:
                raise ConfigError(f"Unknown keyword set '{entry}' for {suffix}")
            return NAMED_KEYWORDS[entry]
        if not isinstance(entry, dict):
            raise ConfigError(f"Keywords for {suffix} must be a name or an object")

        missing = [key for key in KEYWORD_FIELDS if key not in entry]
        if missing:
            raise ConfigError(f"Keywords for {suffix} lack {', '.join(missing)}")
        return Keywords(**{field: entry[key] for key, field in KEYWORD_FIELDS.items()})
