"""
Vault Tree Codec — Selective encryption/decryption over a configuration tree.

A configuration tree is built from ``dict`` (str keys), ``list`` and scalar
leaves (``str``, ``int``, ``float``, ``bool``, ``None``). Every traversal is
depth-first, keeps list order and key order, and returns a new tree.

Leaves are addressed by paths such as ``banks[0].credentials.password``;
a string leaf is sensitive when its path matches one of the predicates in
``SENSITIVE_PATTERNS``.

Security Note:
    Only paths and counts are ever logged, never leaf values.
"""
import re
import logging
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Union

from .crypto import encrypt, decrypt, is_envelope

logger = logging.getLogger("firefly_importer.vault")

Node = Union[None, bool, int, float, str, list, dict]

SENSITIVE_PATTERNS = (
    re.compile(r"\.credentials\."),
    re.compile(r"\.credentials$"),
    re.compile(r"\.password$"),
    re.compile(r"\.tokenApi$"),
    re.compile(r"\.token$"),
    re.compile(r"\.secret$"),
    re.compile(r"\.apiKey$"),
)

REDACTED = "***"


def is_sensitive_path(path: str) -> bool:
    """Return True if a leaf at ``path`` must be stored encrypted.

    Root-level keys count as a ``.key`` segment, so ``tokenApi`` and
    ``credentials.username`` are sensitive just like their nested forms.
    """
    dotted = f".{path}"
    return any(pattern.search(dotted) for pattern in SENSITIVE_PATTERNS)


def _child_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _iter_strings(node: Node, path: str = "") -> Iterator[tuple[str, str]]:
    """Yield (path, value) for every string leaf, depth-first."""
    if isinstance(node, str):
        yield path, node
    elif node is None or isinstance(node, (bool, int, float)):
        return
    elif isinstance(node, list):
        for index, item in enumerate(node):
            yield from _iter_strings(item, f"{path}[{index}]")
    elif isinstance(node, dict):
        for key, value in node.items():
            if not isinstance(key, str):
                raise TypeError(f"Mapping keys must be strings at '{path}', got {type(key).__name__}")
            yield from _iter_strings(value, _child_path(path, key))
    else:
        raise TypeError(f"Unsupported configuration node at '{path}': {type(node).__name__}")


def _rebuild(node: Node, path: str, transform: Callable[[str, str], Any]) -> Node:
    """Copy the tree, replacing every string leaf with transform(path, value)."""
    if isinstance(node, str):
        return transform(path, node)
    if node is None or isinstance(node, (bool, int, float)):
        return node
    if isinstance(node, list):
        return [
            _rebuild(item, f"{path}[{index}]", transform)
            for index, item in enumerate(node)
        ]
    if isinstance(node, dict):
        result = {}
        for key, value in node.items():
            if not isinstance(key, str):
                raise TypeError(f"Mapping keys must be strings at '{path}', got {type(key).__name__}")
            result[key] = _rebuild(value, _child_path(path, key), transform)
        return result
    raise TypeError(f"Unsupported configuration node at '{path}': {type(node).__name__}")


def _map_leaves(
    node: Node,
    path: str,
    select: Callable[[str, str], bool],
    func: Callable[[str], str],
    max_workers: Optional[int] = None,
) -> Node:
    """Apply func to every selected string leaf and reassemble the tree.

    Leaves are independent, so with ``max_workers > 1`` they are processed
    on a thread pool. Results are joined before reassembly and put back in
    traversal order, so the tree shape is preserved either way.
    """
    targets = [value for leaf_path, value in _iter_strings(node, path) if select(leaf_path, value)]
    if max_workers and max_workers > 1 and len(targets) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(func, targets))
    else:
        results = [func(value) for value in targets]
    replacements = iter(results)

    def _replace(leaf_path: str, value: str) -> str:
        if select(leaf_path, value):
            return next(replacements)
        return value

    return _rebuild(node, path, _replace)


def _needs_encryption(path: str, value: str) -> bool:
    return not is_envelope(value) and value.strip() != "" and is_sensitive_path(path)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def decrypt_tree(node: Node, secret: str, max_workers: Optional[int] = None) -> Node:
    """Return a copy of node with every encrypted leaf decrypted.

    Raises:
        CipherError: On the first leaf that fails; no partial tree is returned.
    """
    return _map_leaves(
        node, "", lambda _path, value: is_envelope(value),
        lambda value: decrypt(value, secret),
        max_workers=max_workers,
    )


def encrypt_sensitive_fields(
    node: Node,
    secret: str,
    path: str = "",
    max_workers: Optional[int] = None,
) -> Node:
    """Return a copy of node with every sensitive plaintext leaf encrypted.

    Already encrypted leaves, blank strings and leaves outside the sensitive
    paths are kept as they are, so running it twice is a no-op.

    Args:
        node: Configuration tree.
        secret: Master password.
        path: Path of ``node`` inside a larger document.
        max_workers: Encrypt leaves on a thread pool of this size.
    """
    result = _map_leaves(
        node, path, _needs_encryption,
        lambda value: encrypt(value, secret),
        max_workers=max_workers,
    )
    logger.debug("Encrypted sensitive fields under '%s'", path or "<root>")
    return result


def list_sensitive_paths(node: Node, path: str = "") -> list[str]:
    """List the paths :func:`encrypt_sensitive_fields` would encrypt."""
    return [
        leaf_path for leaf_path, value in _iter_strings(node, path)
        if _needs_encryption(leaf_path, value)
    ]


def has_encrypted_values(node: Node) -> bool:
    """True if any leaf in the tree is an encrypted envelope."""
    return any(is_envelope(value) for _, value in _iter_strings(node))


def count_encrypted_fields(node: Node) -> int:
    return sum(1 for _, value in _iter_strings(node) if is_envelope(value))


def redact_sensitive_fields(node: Node, placeholder: str = REDACTED) -> Node:
    """Copy of node safe to log: sensitive and encrypted leaves are masked."""
    def _mask(leaf_path: str, value: str) -> str:
        if is_envelope(value) or (value.strip() and is_sensitive_path(leaf_path)):
            return placeholder
        return value

    return _rebuild(node, "", _mask)
