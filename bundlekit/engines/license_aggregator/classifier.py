"""License identification and permissive classification."""

from __future__ import annotations

import re
from typing import Any, Mapping

UNKNOWN = "Unknown"

_PERMISSIVE = frozenset(
    {
        "0bsd",
        "afl-2.1",
        "afl-3.0",
        "apache-2.0",
        "artistic-2.0",
        "blueoak-1.0.0",
        "bsd",
        "bsd-2-clause",
        "bsd-3-clause",
        "bsl-1.0",
        "cc-by-3.0",
        "cc-by-4.0",
        "cc0-1.0",
        "isc",
        "mit",
        "mit-0",
        "public domain",
        "python-2.0",
        "unlicense",
        "wtfpl",
        "x11",
        "zlib",
    }
)

_ALIASES = {
    "apache 2.0": "apache-2.0",
    "apache-2": "apache-2.0",
    "apache license 2.0": "apache-2.0",
    "apache license, version 2.0": "apache-2.0",
    "apache2": "apache-2.0",
    "bsd-2": "bsd-2-clause",
    "bsd-3": "bsd-3-clause",
    "cc0": "cc0-1.0",
    "mit license": "mit",
    "mit/x11": "mit",
    "new bsd": "bsd-3-clause",
    "publicdomain": "public domain",
    "simplified bsd": "bsd-2-clause",
    "the unlicense": "unlicense",
}

# Checked in order against the title area of the text; the GNU licenses
# mention each other in their bodies.
_TITLE_FINGERPRINTS: list[tuple[str, re.Pattern[str]]] = [
    ("AGPL-3.0", re.compile(r"GNU AFFERO GENERAL PUBLIC LICENSE", re.I)),
    ("LGPL-3.0", re.compile(r"GNU LESSER GENERAL PUBLIC LICENSE.{0,40}Version 3", re.I)),
    ("LGPL-2.1", re.compile(r"GNU (LESSER|LIBRARY) GENERAL PUBLIC LICENSE", re.I)),
    ("GPL-3.0", re.compile(r"GNU GENERAL PUBLIC LICENSE.{0,40}Version 3", re.I)),
    ("GPL-2.0", re.compile(r"GNU GENERAL PUBLIC LICENSE", re.I)),
    ("MPL-2.0", re.compile(r"Mozilla Public License,? Version 2\.0", re.I)),
    ("Apache-2.0", re.compile(r"Apache License,? Version 2\.0", re.I)),
]

_TITLE_SPAN = 300

_TEXT_FINGERPRINTS: list[tuple[str, re.Pattern[str]]] = [
    ("MIT", re.compile(r"Permission is hereby granted, free of charge", re.I)),
    (
        "ISC",
        re.compile(
            r"Permission to use, copy, modify, and(/or)? distribute this software "
            r"for any purpose with or without fee is hereby granted",
            re.I,
        ),
    ),
    ("Unlicense", re.compile(r"This is free and unencumbered software released into the public domain", re.I)),
    ("WTFPL", re.compile(r"DO WHAT THE FUCK YOU WANT TO PUBLIC LICENSE", re.I)),
    ("CC0-1.0", re.compile(r"CC0 1\.0 Universal", re.I)),
]

_BSD_RE = re.compile(r"Redistribution and use in source and binary forms", re.I)
_BSD3_RE = re.compile(r"Neither the name|names of (its|the) contributors", re.I)

_README_SECTION_RE = re.compile(r"^#+\s*licen[cs]e\s*$", re.I | re.M)
_README_ID_RE = re.compile(r"\b(MIT|ISC|BSD-[23]-Clause|Apache-2\.0|Unlicense|WTFPL)\b")

_TOKEN_RE = re.compile(r"\(|\)|[^\s()]+")


def _normalize_id(value: str) -> str:
    key = value.strip().rstrip("*").strip().lower()
    return _ALIASES.get(key, key)


def _squash(text: str) -> str:
    return re.sub(r"\s+", " ", text)


def license_from_package(package: Mapping[str, Any]) -> str | None:
    """Read the declared license from package.json metadata.

    Handles the ``license`` string/object forms and the legacy ``licenses``
    array. Returns ``None`` when nothing usable is declared.
    """
    declared = package.get("license")
    if isinstance(declared, dict):
        declared = declared.get("type")
    if isinstance(declared, str) and declared.strip():
        if declared.strip().upper().startswith("SEE LICENSE IN"):
            return None
        return declared.strip()

    legacy = package.get("licenses")
    if isinstance(legacy, list):
        names = []
        for item in legacy:
            if isinstance(item, dict):
                item = item.get("type")
            if isinstance(item, str) and item.strip():
                names.append(item.strip())
        if len(names) == 1:
            return names[0]
        if names:
            return "(" + " OR ".join(names) + ")"
    return None


def detect_license_text(text: str) -> str | None:
    """Identify a license from the full text of a LICENSE-like file."""
    flat = _squash(text).strip()
    title = flat[:_TITLE_SPAN]
    for license_id, pattern in _TITLE_FINGERPRINTS:
        if pattern.search(title):
            return license_id
    for license_id, pattern in _TEXT_FINGERPRINTS:
        if pattern.search(flat):
            return license_id
    if _BSD_RE.search(flat):
        return "BSD-3-Clause" if _BSD3_RE.search(flat) else "BSD-2-Clause"
    return None


def detect_readme_license(text: str) -> str | None:
    """Look for a "License" heading in a README and identify what follows."""
    m = _README_SECTION_RE.search(text)
    if not m:
        return None
    section = text[m.end():]
    next_heading = re.search(r"^#", section, re.M)
    if next_heading:
        section = section[: next_heading.start()]
    found = detect_license_text(section)
    if found:
        return found
    ident = _README_ID_RE.search(section)
    return ident.group(1) if ident else None


def is_permissive(expression: str | None) -> bool:
    """Whether *expression* allows redistribution without reciprocal obligations.

    Understands SPDX expressions: ``OR`` passes if any alternative passes,
    ``AND`` only if every operand does, ``WITH`` exceptions are ignored.
    Unknown and unrecognized identifiers are never permissive.
    """
    if not expression or not expression.strip():
        return False
    whole = _normalize_id(expression)
    if whole in _PERMISSIVE:
        return True
    tokens = _TOKEN_RE.findall(expression)
    try:
        result, pos = _parse_or(tokens, 0)
    except (IndexError, ValueError):
        return False
    return result if pos == len(tokens) else False


def _parse_or(tokens: list[str], pos: int) -> tuple[bool, int]:
    result, pos = _parse_and(tokens, pos)
    while pos < len(tokens) and tokens[pos].upper() == "OR":
        rhs, pos = _parse_and(tokens, pos + 1)
        result = result or rhs
    return result, pos


def _parse_and(tokens: list[str], pos: int) -> tuple[bool, int]:
    result, pos = _parse_atom(tokens, pos)
    while pos < len(tokens) and tokens[pos].upper() == "AND":
        rhs, pos = _parse_atom(tokens, pos + 1)
        result = result and rhs
    return result, pos


def _parse_atom(tokens: list[str], pos: int) -> tuple[bool, int]:
    token = tokens[pos]
    if token == "(":
        result, pos = _parse_or(tokens, pos + 1)
        if pos >= len(tokens) or tokens[pos] != ")":
            raise ValueError("unbalanced parenthesis")
        return result, pos + 1
    if token == ")" or token.upper() in ("AND", "OR", "WITH"):
        raise ValueError(f"unexpected {token!r}")
    pos += 1
    if pos < len(tokens) and tokens[pos].upper() == "WITH":
        pos += 2
    return _normalize_id(token) in _PERMISSIVE, pos


_HOSTED_SHORTHAND = {
    "github": "https://github.com",
    "gitlab": "https://gitlab.com",
    "bitbucket": "https://bitbucket.org",
}


def normalize_repository(repository: Any) -> str | None:
    """Turn a package.json ``repository`` field into a browsable https URL."""
    if isinstance(repository, dict):
        repository = repository.get("url")
    if not isinstance(repository, str) or not repository.strip():
        return None
    url = repository.strip()

    m = re.match(r"^(github|gitlab|bitbucket):(.+)$", url)
    if m:
        url = f"{_HOSTED_SHORTHAND[m.group(1)]}/{m.group(2)}"
    elif re.match(r"^[\w.-]+/[\w.-]+$", url):
        url = f"https://github.com/{url}"
    else:
        url = re.sub(r"^git\+", "", url)
        url = re.sub(r"^git@([^:]+):", r"https://\1/", url)
        url = re.sub(r"^(ssh|git)://(git@)?", "https://", url)
        url = re.sub(r"^https?://[^@/]+@", "https://", url)

    url = url.split("#", 1)[0].rstrip("/")
    if url.endswith(".git"):
        url = url[:-4]
    return url
