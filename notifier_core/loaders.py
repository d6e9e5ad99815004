"""
Rule and data loaders

Rule files are JSON: either a top-level array of rules, or an object with a
`rules` array and an optional `channels` object of per-channel settings.
Data files are comma-separated lines; empty lines are dropped before rows
are numbered.
"""
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from notifier_core.errors import ConfigLoadError, DataLoadError
from notifier_core.models import Row, Rule

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class LoadedConfig:
    """Rules plus any channel settings found in the rule file"""
    rules: List[Rule]
    channels: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def parse_rules(data: Any) -> LoadedConfig:
    """
    Validate decoded JSON into rules

    Raises:
        ConfigLoadError: on a wrong top-level structure, an invalid rule
            shape, or duplicate rule ids
    """
    channels: Dict[str, Dict[str, Any]] = {}

    if isinstance(data, dict):
        raw_channels = data.get('channels', {})
        if not isinstance(raw_channels, dict):
            raise ConfigLoadError("'channels' must be an object keyed by channel name")
        channels = raw_channels
        data = data.get('rules')

    if not isinstance(data, list):
        raise ConfigLoadError("Rule configuration must be a JSON array of rules (or an object with a 'rules' array)")

    rules: List[Rule] = []
    seen_ids = set()

    for position, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ConfigLoadError(f"Rule #{position} must be a JSON object")
        try:
            rule = Rule(**entry)
        except ValidationError as e:
            raise ConfigLoadError(f"Rule #{position} is invalid: {e}") from e

        if rule.id in seen_ids:
            raise ConfigLoadError(f"Duplicate rule id: {rule.id}")
        seen_ids.add(rule.id)
        rules.append(rule)

    return LoadedConfig(rules=rules, channels=channels)


def load_config(path: PathLike) -> LoadedConfig:
    """Read and validate a JSON rule file"""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as handle:
            data = json.load(handle)
    except OSError as e:
        raise ConfigLoadError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON in config file {path}: {e}") from e

    loaded = parse_rules(data)
    logger.info(f"Loaded {len(loaded.rules)} rules from {path}")
    return loaded


def load_rules(path: PathLike) -> List[Rule]:
    return load_config(path).rules


def parse_rows(text: str, has_header: bool = False, delimiter: str = ',') -> List[Row]:
    """
    Split CSV-like text into rows

    Args:
        text: File contents
        has_header: Treat the first non-empty line as field names
        delimiter: Field separator

    Returns:
        Rows indexed from 0 in file order
    """
    header: Optional[List[str]] = None
    rows: List[Row] = []

    for line in text.splitlines():
        if not line.strip():
            continue
        values = line.split(delimiter)
        if has_header and header is None:
            header = [name.strip() for name in values]
            continue
        rows.append(Row.from_values(values, index=len(rows), header=header))

    return rows


def load_rows(path: PathLike, has_header: bool = False, delimiter: str = ',') -> List[Row]:
    """Read a data file into rows"""
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Cannot read data file {path}: {e}") from e

    rows = parse_rows(text, has_header=has_header, delimiter=delimiter)
    logger.info(f"Loaded {len(rows)} rows from {path}")
    return rows
