"""Merging TX3 settings into a project's configuration files.

tsconfig.json and package.json are merged as JSON. next.config.* is merged as
text: there is no JavaScript parser here, only a scanner that counts braces
outside string literals and comments to find the exported config object.
When the object cannot be located unambiguously the merge fails rather than
guessing.
"""

import logging
import re
from typing import Any

from tx3next.config.parser import ParseError, dump_json, parse_json_object
from tx3next.template.files import render_next_config, webpack_block

logger = logging.getLogger("tx3next.merge")

TX3_PATHS: dict[str, list[str]] = {
    "@tx3/*": ["./tx3/bindings/*"],
    "@tx3": ["./tx3/bindings"],
}

# A webpack property (webpack: ...) or method (webpack(config) {...})
_WEBPACK_KEY = re.compile(r"\bwebpack\s*[:(]")

# The alias line of the block this tool inserts
_TX3_ALIAS = re.compile(r"""['"]@tx3['"]\s*:""")

_CONFIG_START = re.compile(
    r"^\s*(?:export\s+)?(?:const|let|var)\s+nextConfig\b"
    r"|^\s*module\.exports\s*="
    r"|^\s*export\s+default\s*\{",
    re.MULTILINE,
)

_QUOTES = "'\"`"


class ConflictError(Exception):
    """The existing configuration cannot be merged automatically."""


def merge_tsconfig_paths(json_text: str) -> str:
    """Add the TX3 path mappings to tsconfig.json text.

    Args:
        json_text: Current tsconfig.json content

    Returns:
        Updated tsconfig.json content, indented with 2 spaces

    Raises:
        ParseError: If the text is not a JSON object or has non-object
            compilerOptions/paths
    """
    tsconfig = parse_json_object(json_text)

    compiler_options = tsconfig.setdefault("compilerOptions", {})
    if not isinstance(compiler_options, dict):
        raise ParseError("tsconfig.json compilerOptions must be an object")

    paths = compiler_options.setdefault("paths", {})
    if not isinstance(paths, dict):
        raise ParseError("tsconfig.json compilerOptions.paths must be an object")

    for alias, targets in TX3_PATHS.items():
        paths[alias] = list(targets)

    return dump_json(tsconfig)


def merge_scripts(package_json: dict[str, Any], scripts_to_add: dict[str, str]) -> dict[str, Any]:
    """Set scripts in a parsed package.json, overwriting same-named entries.

    Args:
        package_json: Parsed package.json, modified in place
        scripts_to_add: Script name to command

    Returns:
        The same package_json object

    Raises:
        ParseError: If package.json has a non-object "scripts" entry
    """
    scripts = package_json.setdefault("scripts", {})
    if not isinstance(scripts, dict):
        raise ParseError("package.json scripts must be an object")

    for name, command in scripts_to_add.items():
        if name in scripts and scripts[name] != command:
            logger.info("Replacing script %s: %s -> %s", name, scripts[name], command)
        scripts[name] = command

    return package_json


def has_webpack_config(source: str) -> bool:
    """Check whether a next config source already customizes webpack."""
    return _WEBPACK_KEY.search(source) is not None


def has_tx3_webpack_config(source: str) -> bool:
    """Check whether a next config source already holds the TX3 webpack hook."""
    return has_webpack_config(source) and _TX3_ALIAS.search(source) is not None


def merge_webpack_config(existing: str | None, typescript: bool = False) -> str:
    """Merge the TX3 webpack hook into a next config source.

    Args:
        existing: Current next.config.* content, or None to create one
        typescript: Whether a new file is next.config.ts

    Returns:
        The new config source; an existing source that already holds the
        TX3 hook is returned unchanged

    Raises:
        ConflictError: If the config already has a foreign webpack key
        ParseError: If the exported config object cannot be located
    """
    if existing is None:
        return render_next_config(typescript=typescript)

    if has_tx3_webpack_config(existing):
        logger.debug("Next.js configuration already has the TX3 webpack hook")
        return existing

    if has_webpack_config(existing):
        raise ConflictError(
            "Existing webpack configuration detected. Please manually merge the "
            "TX3 webpack configuration."
        )

    match = _CONFIG_START.search(existing)
    if match is None:
        raise ParseError("Could not parse existing Next.js configuration")

    open_idx, close_idx, last_idx = _scan_object(existing, match.start())
    return _insert_block(existing, open_idx, close_idx, last_idx)


def _scan_object(text: str, start: int) -> tuple[int, int, int]:
    """Find the object literal that follows a config declaration.

    Returns:
        (opening brace, matching closing brace, last significant character
        inside the object or the opening brace if it is empty)
    """
    depth = 0
    open_idx = -1
    last_idx = -1
    i = start
    n = len(text)

    while i < n:
        ch = text[i]
        if text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise ParseError("Unterminated comment in Next.js configuration")
            i = end + 2
            continue
        if ch in _QUOTES:
            end = _skip_string(text, i)
            if open_idx != -1:
                last_idx = end - 1
            i = end
            continue

        if ch == "{":
            if open_idx == -1:
                open_idx = i
            depth += 1
        elif ch == "}":
            if open_idx == -1:
                break
            depth -= 1
            if depth == 0:
                return open_idx, i, last_idx
        elif ch == ";" and open_idx == -1:
            # Statement ended before any object literal, e.g. `module.exports = cfg;`
            break

        if open_idx != -1 and not ch.isspace():
            last_idx = i
        i += 1

    if open_idx == -1:
        raise ParseError("Could not find the Next.js configuration object")
    raise ParseError("Could not find insertion point in Next.js configuration")


def _skip_string(text: str, start: int) -> int:
    """Return the index just past the string literal opened at start."""
    quote = text[start]
    i = start + 1
    n = len(text)
    expr_depth = 0

    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if quote == "`":
            if expr_depth:
                if ch == "{":
                    expr_depth += 1
                elif ch == "}":
                    expr_depth -= 1
            elif text.startswith("${", i):
                expr_depth = 1
                i += 2
                continue
            elif ch == "`":
                return i + 1
        elif ch == quote:
            return i + 1
        elif ch == "\n":
            break
        i += 1

    raise ParseError("Unterminated string literal in Next.js configuration")


def _line_start(text: str, idx: int) -> int:
    return text.rfind("\n", 0, idx) + 1


def _leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]


def _member_indent(text: str, open_idx: int, close_idx: int, base_indent: str) -> str:
    """Indentation used by the object's members, or one level below base."""
    body_start = text.find("\n", open_idx, close_idx)
    if body_start != -1:
        for line in text[body_start + 1 : _line_start(text, close_idx)].split("\n"):
            if line.strip():
                return _leading_whitespace(line)
    return base_indent + "  "


def _insert_block(text: str, open_idx: int, close_idx: int, last_idx: int) -> str:
    base_indent = _leading_whitespace(text[_line_start(text, open_idx) :])
    block = webpack_block(_member_indent(text, open_idx, close_idx, base_indent))

    # The last member needs a trailing comma before another property follows
    needs_comma = last_idx != open_idx and text[last_idx] != ","
    comma_at = last_idx + 1

    close_line_start = _line_start(text, close_idx)
    if close_line_start > open_idx and not text[close_line_start:close_idx].strip():
        head = text[:close_line_start]
        insertion = block + "\n"
        tail = text[close_line_start:]
    else:
        head = text[:close_idx].rstrip(" \t")
        insertion = "\n" + block + "\n" + base_indent
        tail = text[close_idx:]

    if needs_comma:
        head = head[:comma_at] + "," + head[comma_at:]

    logger.debug("Inserted webpack block before offset %d", close_idx)
    return head + insertion + tail
