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

"""Lookup of source locations by descriptor path."""

from bisect import bisect_left
from typing import List, Optional, Sequence, Tuple

from google.protobuf.descriptor_pb2 import SourceCodeInfo

from ppsc_compiler.ir.ast import Comments

# Field numbers used to build descriptor paths.
FILE_MESSAGE_TYPE = 4
FILE_ENUM_TYPE = 5
FILE_SERVICE = 6
MESSAGE_FIELD = 2
MESSAGE_NESTED_TYPE = 3
MESSAGE_ENUM_TYPE = 4
MESSAGE_ONEOF_DECL = 8
ENUM_VALUE = 2
SERVICE_METHOD = 2


class SourceInfo:
    """Sorted index of the locations of declarations in a file.

    Declarations always have a path of even length, a pair of field number
    and index per nesting level. Odd paths point at parts of a declaration,
    such as its name or type, and are dropped.
    """

    def __init__(self, source_code_info: Optional[SourceCodeInfo] = None):
        locations = []
        if source_code_info is not None:
            locations = [
                location
                for location in source_code_info.location
                if location.path and len(location.path) % 2 == 0
            ]
        # Stable sort keeps the first location recorded for a path.
        locations.sort(key=lambda location: tuple(location.path))
        self._paths: List[Tuple[int, ...]] = [
            tuple(location.path) for location in locations
        ]
        self._locations: List[SourceCodeInfo.Location] = locations

    def location(self, path: Sequence[int]) -> Optional[SourceCodeInfo.Location]:
        key = tuple(path)
        index = bisect_left(self._paths, key)
        if index < len(self._paths) and self._paths[index] == key:
            return self._locations[index]
        return None

    def comments(self, path: Sequence[int]) -> Optional[Comments]:
        location = self.location(path)
        if location is None:
            return None
        return Comments.from_location(location)

    def __len__(self) -> int:
        return len(self._paths)


__all__ = ["SourceInfo"]
