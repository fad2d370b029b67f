"""
Configuration document reading and writing.

YAML is the native format; ``.json`` files are handled with orjson.
Strings must survive a dump/load cycle unchanged, so the dumper quotes
every string and the loader keeps dates as plain strings.
"""
import copy
import logging
from pathlib import Path
from typing import Any, Union

import orjson
import yaml

from .exceptions import ConfigLoadError

logger = logging.getLogger("firefly_importer.config")

PathLike = Union[str, Path]

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class DocumentLoader(yaml.SafeLoader):
    """SafeLoader that leaves date-like scalars as strings."""


DocumentLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class DocumentDumper(yaml.SafeDumper):
    """SafeDumper that single-quotes every string scalar."""


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.Node:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="'")


DocumentDumper.add_representer(str, _represent_str)


def _is_json(path: Path) -> bool:
    return path.suffix.lower() == ".json"


def _check_tree(node: Any, path: str, ancestors: set, source: str) -> None:
    """Reject cycles (YAML self-aliases), non-string keys and unsupported scalars."""
    if node is None or isinstance(node, (str, bool, int, float)):
        return
    where = path or "<root>"
    if not isinstance(node, (dict, list)):
        raise ConfigLoadError(
            f"Config file {source}: unsupported value at '{where}' ({type(node).__name__})"
        )
    if id(node) in ancestors:
        raise ConfigLoadError(f"Config file {source}: recursive alias at '{where}'")
    ancestors.add(id(node))
    if isinstance(node, list):
        for index, item in enumerate(node):
            _check_tree(item, f"{path}[{index}]", ancestors, source)
    else:
        for key, value in node.items():
            if not isinstance(key, str):
                raise ConfigLoadError(
                    f"Config file {source}: mapping key at '{where}' must be a string"
                )
            _check_tree(value, f"{path}.{key}" if path else key, ancestors, source)
    ancestors.discard(id(node))


def parse_document(text: Union[str, bytes], source: str = "<string>", json: bool = False) -> dict:
    """Parse document text into a configuration tree.

    Raises:
        ConfigLoadError: If the text cannot be parsed, its root is not a
            mapping, or it is not a tree of supported nodes.
    """
    try:
        if json:
            data = orjson.loads(text)
        else:
            data = yaml.load(text, Loader=DocumentLoader)
    except (yaml.YAMLError, orjson.JSONDecodeError) as exc:
        raise ConfigLoadError(f"Failed to parse config file {source}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigLoadError(f"Config file {source} must contain a mapping at the top level.")
    _check_tree(data, "", set(), source)
    return data


def load_document(path: PathLike) -> dict:
    """Read and parse a configuration document.

    Raises:
        ConfigLoadError: If the file is missing, unreadable or unparsable.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ConfigLoadError(f"Unable to read config file {path}: {exc.strerror or exc}") from exc
    document = parse_document(raw, source=str(path), json=_is_json(path))
    logger.debug("Config file '%s' loaded (%d top-level key(s))", path, len(document))
    return document


def dump_document(document: dict, json: bool = False) -> str:
    """Serialize a configuration tree to YAML (or JSON) text."""
    if json:
        return orjson.dumps(document, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n"
    return yaml.dump(
        document,
        Dumper=DocumentDumper,
        indent=2,
        width=float("inf"),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def write_document(document: dict, path: PathLike) -> Path:
    """Write a configuration tree to ``path``, format chosen by extension."""
    path = Path(path)
    path.write_text(dump_document(document, json=_is_json(path)), encoding="utf-8")
    logger.debug("Config file '%s' written", path)
    return path


def deep_merge(base: dict, override: dict) -> dict:
    """Return base updated by override; nested mappings merge, the rest replaces."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def get_path(document: dict, dotted: str, default: Any = None) -> Any:
    """Look up a dotted key (``firefly.baseUrl``) in a mapping tree."""
    node: Any = document
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def set_path(document: dict, dotted: str, value: Any) -> None:
    """Set a dotted key, creating intermediate mappings as needed."""
    parts = dotted.split(".")
    node = document
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value
