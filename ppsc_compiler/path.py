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

"""Selector matching over fully-qualified Protobuf paths."""

from typing import Generic, Iterator, List, Optional, Set, Tuple, TypeVar

T = TypeVar("T")


def sub_paths(fq_path: str) -> Iterator[str]:
    """Yield every selector that matches ``fq_path``.

    For ``.a.b.c`` this yields the full path, then the relative suffixes
    ``a.b.c``, ``b.c``, ``c``, then the absolute prefixes ``.a.b``, ``.a``,
    and finally the global selector ``.``.
    """
    yield fq_path

    # Relative suffixes, skipping the leading dot.
    index = fq_path.find(".", 0)
    while index != -1:
        suffix = fq_path[index + 1 :]
        if suffix:
            yield suffix
        index = fq_path.find(".", index + 1)

    # Absolute prefixes, longest first.
    index = fq_path.rfind(".")
    while index > 0:
        yield fq_path[:index]
        index = fq_path.rfind(".", 0, index)

    if fq_path != ".":
        yield "."


class PathMap(Generic[T]):
    """An insertion-ordered list of (selector, value) pairs.

    Selectors starting with ``.`` are absolute and match the path itself and
    every path nested below it. Other selectors are relative and match any
    path ending with them on a segment boundary.
    """

    def __init__(self):
        self._matchers: List[Tuple[str, T]] = []

    def insert(self, matcher: str, value: T) -> None:
        self._matchers.append((matcher, value))

    def get(self, fq_path: str) -> Iterator[T]:
        """Yield the values of all matching selectors in insertion order."""
        candidates: Set[str] = set(sub_paths(fq_path))
        for matcher, value in self._matchers:
            if matcher in candidates:
                yield value

    def get_field(self, fq_path: str, field: str) -> Iterator[T]:
        return self.get(f"{fq_path}.{field}")

    def get_first(self, fq_path: str) -> Optional[T]:
        """Return the value of the first matching selector, or None."""
        return next(self.get(fq_path), None)

    def get_first_field(self, fq_path: str, field: str) -> Optional[T]:
        return self.get_first(f"{fq_path}.{field}")

    def clear(self) -> None:
        self._matchers.clear()

    def __len__(self) -> int:
        return len(self._matchers)

    def __repr__(self) -> str:
        return f"PathMap({self._matchers!r})"


__all__ = ["PathMap", "sub_paths"]
