"""Naming helpers for operations, resource tags and Python identifiers."""

from __future__ import annotations

import keyword
import re

HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "patch",
    "head",
    "options",
    "trace",
)

_IDENTIFIER_SANITIZE_RE = re.compile(r"[^0-9a-zA-Z_]+")
_MULTIPLE_UNDERSCORES_RE = re.compile(r"_+")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_MULTIPLE_SPACES_RE = re.compile(r"\s+")

_STOP_WORDS: tuple[str, ...] = (
    " an ",
    " or ",
    " for ",
    " to ",
    " your ",
    " is ",
    " and ",
    " the ",
)
_OBJECT_NAME_STOP_WORDS: tuple[str, ...] = (*_STOP_WORDS, " a ", " of ")

_CONNECTOR_INFIXES: tuple[str, ...] = ("_in_", "_id_", "_a_", "_to_", "_with_", "_by_")
_LEADING_CONNECTORS: tuple[str, ...] = ("in_", "by_", "with_", "to_", "a_")
_TRAILING_CONNECTORS: tuple[str, ...] = ("_a", "_in", "_id", "_by", "_with", "_to")


def sanitize_identifier(raw: str, *, lowercase: bool = True) -> str:
    """Convert arbitrary text into a valid Python identifier."""
    text = raw.lower() if lowercase else raw
    text = _IDENTIFIER_SANITIZE_RE.sub("_", text)
    text = _MULTIPLE_UNDERSCORES_RE.sub("_", text).strip("_")
    if not text:
        text = "root"
    if text[0].isdigit():
        text = f"x_{text}"
    if keyword.iskeyword(text):
        text = f"{text}_"
    return text


def snake_case(raw: str) -> str:
    """Convert camelCase, PascalCase, kebab-case or spaced text to snake_case.

    Acronyms split the way inflector-style converters do it, so ``IDs`` becomes
    ``i_ds``. The result may start with a digit; use :func:`sanitize_identifier`
    when a valid identifier is required.
    """
    text = _CAMEL_BOUNDARY_RE.sub("_", raw.strip())
    text = _IDENTIFIER_SANITIZE_RE.sub("_", text.lower())
    return _MULTIPLE_UNDERSCORES_RE.sub("_", text).strip("_")


def clean_name(raw: str) -> str:
    """Normalize a tag or type hint into deduplicated snake_case words."""
    text = "root" if raw == "/" else raw
    text = f" {text.replace('/', ' ').replace('-', ' ')} "
    for word in _STOP_WORDS:
        text = text.replace(word, " ")

    snake = snake_case(text)
    if snake == "i_ds":
        snake = "ids"
    snake = f"_{snake}_".replace("_i_ds_", "_ids_").strip("_")
    return "_".join(_unique_words(snake.split("_")))


def make_plural(word: str) -> str:
    """Pluralize a snake_case resource name."""
    if word.endswith("ss") and not word.endswith("access"):
        return f"{word}es"
    if word.endswith("s") or word.endswith("_all"):
        return word
    if word.endswith("y"):
        return f"{word.removesuffix('y')}ies"
    return f"{word}s"


def make_singular(word: str) -> str:
    """Undo ``make_plural`` for a snake_case resource name."""
    if word.endswith("sses"):
        return word.removesuffix("es")
    if word.endswith("ies"):
        return f"{word.removesuffix('ies')}y"
    if word.endswith("ss"):
        return word
    return word.removesuffix("s")


def path_to_operation_id(path: str, method: str) -> str:
    """Synthesize an operation id from an HTTP verb and a path template."""
    slug = path.replace("/", "-").lstrip("-").replace("{", "_by_").replace("}", "")
    return snake_case(f"{method.lower()}_{slug}")


def oid_to_object_name(operation_id: str) -> str:
    """Turn an operation id into space separated words used as a type-name hint."""
    text = operation_id.lower().replace(".", "").replace("_", " ")
    text = f" {text} "
    for word in _OBJECT_NAME_STOP_WORDS:
        text = text.replace(word, " ")
    for noise in ("(beta)", "(legacy)", "'"):
        text = text.replace(noise, "")
    text = text.replace("-", " ")
    return _MULTIPLE_SPACES_RE.sub(" ", text).strip()


def function_name(operation_id: str, tag: str) -> str:
    """Derive a method name from an operation id by removing the resource tag.

    Args:
        operation_id (str): Canonical snake_case operation id.
        tag (str): Resolved resource tag for the operation.

    Returns:
        str: Python identifier for the generated method.
    """
    text = snake_case(operation_id)
    for infix in _CONNECTOR_INFIXES:
        text = text.replace(infix, "_")
    text = text.strip("_")
    for prefix in _LEADING_CONNECTORS:
        text = text.removeprefix(prefix)
    for suffix in _TRAILING_CONNECTORS:
        text = text.removesuffix(suffix)
    text = "_".join(_unique_words(text.split("_")))

    if text == tag:
        return "get"

    singular = make_singular(tag)
    padded = f"_{text}_".replace(f"_{tag}_", "_")
    if singular:
        padded = padded.replace(f"_{singular}_", "_")
    text = _MULTIPLE_UNDERSCORES_RE.sub("_", padded).strip("_")
    text = text.removesuffix("_s").replace("_s_", "_")
    if not text:
        return "get"
    return sanitize_identifier(text)


def single_page_name(name: str) -> str:
    """Return the name of the one-page variant of a paginated method."""
    if name in ("get", "list"):
        return f"{name}_page"
    return name


def all_pages_name(name: str) -> str:
    """Return the name of the all-pages variant of a paginated method."""
    padded = f"_{name}_"
    if "_get_" in padded:
        return padded.replace("_get_", "_get_all_", 1).strip("_")
    if "_list_" in padded:
        return padded.replace("_list_", "_list_all_", 1).strip("_")
    return f"get_all_{name}"


def claim_function_name(
    fn_names: frozenset[str],
    tag: str,
    name: str,
) -> tuple[str, frozenset[str]]:
    """Reserve a method name inside one tag module.

    Args:
        fn_names (frozenset[str]): ``tag.name`` entries already emitted in this run.
        tag (str): Tag module that will hold the method.
        name (str): Preferred method name.

    Returns:
        tuple[str, frozenset[str]]: The unique name and the updated name set.
    """
    candidate = name
    if f"{tag}.{candidate}" in fn_names:
        candidate = f"{name}_{tag}"
    base = candidate
    suffix = 2
    while f"{tag}.{candidate}" in fn_names:
        candidate = f"{base}_{suffix}"
        suffix += 1
    return candidate, fn_names | {f"{tag}.{candidate}"}


def class_name(raw: str) -> str:
    """Convert a name to PascalCase class name."""
    clean = sanitize_identifier(snake_case(raw))
    return "".join(part.capitalize() for part in clean.split("_") if part) or "Model"


def _unique_words(words: list[str]) -> list[str]:
    unique: list[str] = []
    for word in words:
        if word and word not in unique:
            unique.append(word)
    return unique
