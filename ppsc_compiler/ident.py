# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

"""Rust identifier casing and relative path resolution."""

import re
from typing import List, Sequence

# Keywords that can be used as raw identifiers.
RAW_KEYWORDS = frozenset(
    [
        "as",
        "break",
        "const",
        "continue",
        "else",
        "enum",
        "false",
        "fn",
        "for",
        "if",
        "impl",
        "in",
        "let",
        "loop",
        "match",
        "mod",
        "move",
        "mut",
        "pub",
        "ref",
        "return",
        "static",
        "struct",
        "trait",
        "true",
        "type",
        "unsafe",
        "use",
        "where",
        "while",
        "dyn",
        "abstract",
        "become",
        "box",
        "do",
        "final",
        "macro",
        "override",
        "priv",
        "typeof",
        "unsized",
        "virtual",
        "yield",
        "async",
        "await",
        "try",
        "gen",
    ]
)

# Path keywords cannot be raw identifiers, they get a trailing underscore.
PATH_KEYWORDS = frozenset(["self", "super", "extern", "crate"])

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]*[a-z0-9]+|[A-Z]+[0-9]*")
_SEPARATOR_RE = re.compile(r"[^A-Za-z0-9]+")


def split_words(name: str) -> List[str]:
    """Split an identifier into words.

    Words are separated by any non alphanumeric character and by case
    boundaries, so ``HTTPServer_v2`` splits into ``HTTP``, ``Server``, ``v2``.
    """
    words = []
    for chunk in _SEPARATOR_RE.split(name):
        words.extend(_WORD_RE.findall(chunk))
    return words


def to_snake(name: str) -> str:
    """Convert a name to a Rust module/field identifier (snake_case).

    Rust keywords are escaped: path keywords get a trailing underscore,
    all others become raw identifiers.
    """
    ident = "_".join(word.lower() for word in split_words(name))
    if ident in PATH_KEYWORDS:
        return ident + "_"
    if ident in RAW_KEYWORDS:
        return "r#" + ident
    return ident


def to_upper_camel(name: str) -> str:
    """Convert a name to a Rust type identifier (UpperCamelCase)."""
    ident = "".join(word.capitalize() for word in split_words(name))
    # Self cannot be a raw identifier.
    if ident == "Self":
        return ident + "_"
    return ident


def strip_enum_prefix(prefix: str, name: str) -> str:
    """Strip an UpperCamel enum name from the front of a variant name.

    The prefix is only removed when the remainder still starts with an
    uppercase letter, e.g. ``Foo`` is stripped from ``FooBar`` but not from
    ``Foobar`` or ``Foo1``.
    """
    if not name.startswith(prefix):
        return name
    stripped = name[len(prefix) :]
    if stripped and stripped[0].isupper():
        return stripped
    return name


def resolve_relative_ident(local_path: Sequence[str], pb_ident: str) -> str:
    """Build a Rust path to ``pb_ident`` relative to ``local_path``.

    ``local_path`` holds the raw package segments followed by the names of
    the enclosing messages. Shared leading segments are skipped, each
    remaining local segment becomes ``super``, and the remaining target
    namespaces are snake cased.
    """
    ident_path = pb_ident[1:].split(".")
    ident_type = ident_path[-1]
    namespaces = ident_path[:-1]

    common = 0
    for left, right in zip(local_path, namespaces):
        if left != right:
            break
        common += 1

    parts = ["super"] * (len(local_path) - common)
    parts.extend(to_snake(segment) for segment in namespaces[common:])
    parts.append(to_upper_camel(ident_type))
    return "::".join(parts)


__all__ = [
    "split_words",
    "to_snake",
    "to_upper_camel",
    "strip_enum_prefix",
    "resolve_relative_ident",
]
