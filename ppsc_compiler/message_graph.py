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

"""Directed graph of singular message containment."""

from typing import Dict, Iterable, Set

import rustworkx as rx
from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    FieldDescriptorProto,
    FileDescriptorProto,
)

MESSAGE_TYPES = (FieldDescriptorProto.TYPE_MESSAGE, FieldDescriptorProto.TYPE_GROUP)


class MessageGraph:
    """Graph with one node per message and an edge for each singular
    message-typed field, pointing from the containing message to the
    field's type.

    A field whose type can reach back to the containing message forms a
    cycle of inline storage and must be boxed.
    """

    def __init__(self, files: Iterable[FileDescriptorProto]):
        self.graph = rx.PyDiGraph(multigraph=False)
        self.index: Dict[str, int] = {}
        self._descendants: Dict[int, Set[int]] = {}

        for file in files:
            package = file.package
            prefix = f".{package}" if package else ""
            for message in file.message_type:
                self.add_message(f"{prefix}.{message.name}", message)

    def get_or_insert_index(self, name: str) -> int:
        assert name.startswith("."), name
        index = self.index.get(name)
        if index is None:
            index = self.graph.add_node(name)
            self.index[name] = index
        return index

    def add_message(self, name: str, message: DescriptorProto) -> None:
        """Add a message and its nested messages to the graph.

        Map entry messages only hold the key and value of a map field, and
        a map field is always a heap allocated container, so they add no
        edges.
        """
        index = self.get_or_insert_index(name)
        if not message.options.map_entry:
            for field in message.field:
                if (
                    field.type in MESSAGE_TYPES
                    and field.label != FieldDescriptorProto.LABEL_REPEATED
                ):
                    target = self.get_or_insert_index(field.type_name)
                    self.graph.add_edge(index, target, field.name)
        for nested in message.nested_type:
            self.add_message(f"{name}.{nested.name}", nested)

    def is_nested(self, outer: str, inner: str) -> bool:
        """Return True if ``inner`` is reachable from ``outer``.

        A message is always nested in itself. Names that are not part of
        the graph are never nested.
        """
        outer_index = self.index.get(outer)
        inner_index = self.index.get(inner)
        if outer_index is None or inner_index is None:
            return False
        if outer_index == inner_index:
            return True
        descendants = self._descendants.get(outer_index)
        if descendants is None:
            descendants = set(rx.descendants(self.graph, outer_index))
            self._descendants[outer_index] = descendants
        return inner_index in descendants


__all__ = ["MessageGraph"]
