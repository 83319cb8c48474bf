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

"""Registry of Protobuf types that are provided by external Rust crates."""

import logging
from typing import Dict, Iterable, Optional, Tuple

from ppsc_compiler.error import ConfigError
from ppsc_compiler.ident import to_snake, to_upper_camel

logger = logging.getLogger(__name__)


def validate_proto_path(path: str) -> None:
    if not path.startswith("."):
        raise ConfigError(
            "Protobuf paths must be fully qualified "
            f"(begin with a leading '.'): {path}"
        )
    if any(not segment for segment in path.split(".")[1:]):
        raise ConfigError(f"invalid fully-qualified Protobuf path: {path}")


class ExternPaths:
    """Maps Protobuf paths to Rust paths of externally provided types."""

    def __init__(self, paths: Iterable[Tuple[str, str]]):
        self.extern_paths: Dict[str, str] = {}
        for proto_path, rust_path in paths:
            self.insert(proto_path, rust_path)

    def insert(self, proto_path: str, rust_path: str) -> None:
        validate_proto_path(proto_path)
        if proto_path in self.extern_paths:
            raise ConfigError(f"duplicate extern Protobuf path: {proto_path}")
        self.extern_paths[proto_path] = rust_path

    def resolve_ident(self, pb_ident: str) -> Optional[str]:
        """Resolve a fully-qualified Protobuf identifier to a Rust path.

        An exact registration wins. Otherwise the longest registered prefix
        of ``pb_ident`` is used and the unmatched segments are appended:
        intermediate segments as modules, the last one as the type name.
        Returns None when no registration covers the identifier.
        """
        # Protobuf paths are always fully qualified.
        assert pb_ident.startswith("."), pb_ident

        rust_path = self.extern_paths.get(pb_ident)
        if rust_path is not None:
            return rust_path

        index = pb_ident.rfind(".")
        while index > 0:
            rust_path = self.extern_paths.get(pb_ident[:index])
            if rust_path is not None:
                segments = rust_path.split("::")
                segments.extend(pb_ident[index + 1 :].split("."))
                ident_type = segments.pop()

                parts = []
                for position, segment in enumerate(segments):
                    if position == 0 and segment == "crate":
                        parts.append(segment)
                    else:
                        parts.append(to_snake(segment))
                parts.append(to_upper_camel(ident_type))
                resolved = "::".join(parts)
                logger.debug("Resolved extern %s to %s", pb_ident, resolved)
                return resolved
            index = pb_ident.rfind(".", 0, index)

        return None

    def __contains__(self, proto_path: str) -> bool:
        return proto_path in self.extern_paths

    def __len__(self) -> int:
        return len(self.extern_paths)


__all__ = ["ExternPaths", "validate_proto_path"]
