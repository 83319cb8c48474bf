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

"""Rust output modules derived from Protobuf packages."""

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from ppsc_compiler.ident import to_snake


@dataclass(frozen=True, order=True)
class Module:
    """A Rust module path, one snake cased component per package segment."""

    components: Tuple[str, ...] = ()

    @classmethod
    def from_parts(cls, parts: Iterable[str]) -> "Module":
        return cls(tuple(parts))

    @classmethod
    def from_protobuf_package_name(cls, name: str) -> "Module":
        return cls(tuple(to_snake(part) for part in name.split(".") if part))

    def parts(self) -> Tuple[str, ...]:
        return self.components

    def part(self, index: int) -> str:
        return self.components[index]

    def is_empty(self) -> bool:
        return not self.components

    def starts_with(self, prefix: Sequence[str]) -> bool:
        return self.components[: len(prefix)] == tuple(prefix)

    def to_file_name_or(self, default: str) -> str:
        """Return the file name for this module.

        The root module has no components and uses ``default`` instead.
        """
        root = ".".join(self.components) or default
        return f"{root}.rs"

    def __len__(self) -> int:
        return len(self.components)

    def __str__(self) -> str:
        return ".".join(self.components)


__all__ = ["Module"]
