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

"""State shared by the code generators of one compilation."""

from typing import TYPE_CHECKING, List, Optional

from google.protobuf.descriptor_pb2 import FieldDescriptorProto

from ppsc_compiler.extern_paths import ExternPaths
from ppsc_compiler.ir.types import BytesType, MapType
from ppsc_compiler.message_graph import MessageGraph, MESSAGE_TYPES

if TYPE_CHECKING:
    from ppsc_compiler.config import Config
    from ppsc_compiler.generators.base import ServiceGenerator


class Context:
    """Read-only view of the configuration, message graph and extern paths."""

    def __init__(
        self,
        config: "Config",
        message_graph: MessageGraph,
        extern_paths: ExternPaths,
    ):
        self.config = config
        self.message_graph = message_graph
        self.extern_paths = extern_paths

    @property
    def service_generator(self) -> Optional["ServiceGenerator"]:
        return self.config.service_gen

    def resolve_extern_ident(self, pb_ident: str) -> Optional[str]:
        return self.extern_paths.resolve_ident(pb_ident)

    def bytes_type(self, fq_message_name: str, field_name: str) -> BytesType:
        bytes_type = self.config.bytes_type.get_first_field(fq_message_name, field_name)
        return bytes_type or BytesType.VEC

    def map_type(self, fq_message_name: str, field_name: str) -> MapType:
        map_type = self.config.map_type.get_first_field(fq_message_name, field_name)
        return map_type or MapType.HASH_MAP

    def type_attributes(self, fq_type_name: str) -> List[str]:
        return list(self.config.type_attributes.get(fq_type_name))

    def message_attributes(self, fq_message_name: str) -> List[str]:
        return list(self.config.message_attributes.get(fq_message_name))

    def enum_attributes(self, fq_enum_name: str) -> List[str]:
        return list(self.config.enum_attributes.get(fq_enum_name))

    def field_attributes(self, fq_message_name: str, field_name: str) -> List[str]:
        return list(self.config.field_attributes.get_field(fq_message_name, field_name))

    def should_skip_debug(self, fq_name: str) -> bool:
        return self.config.skip_debug_paths.get_first(fq_name) is not None

    def should_disable_comments(
        self, fq_name: str, field_name: Optional[str] = None
    ) -> bool:
        if field_name is not None:
            match = self.config.disable_comments_paths.get_first_field(fq_name, field_name)
        else:
            match = self.config.disable_comments_paths.get_first(fq_name)
        return match is not None

    def should_strip_enum_prefix(self) -> bool:
        return self.config.strip_enum_prefix

    def type_name_domain(self, fq_message_name: str) -> str:
        return self.config.type_name_domains.get_first(fq_message_name) or ""

    def should_box_message_field(
        self,
        fq_message_name: str,
        field: FieldDescriptorProto,
        oneof: Optional[str] = None,
    ) -> bool:
        """Return True if the field must be stored behind a Box.

        Repeated fields are already heap allocated. A singular message
        field is boxed when its type contains the enclosing message, or
        when a ``boxed`` selector matches it. Oneof members are matched
        against ``<message>.<oneof>.<field>``.
        """
        if field.label == FieldDescriptorProto.LABEL_REPEATED:
            return False
        if field.type in MESSAGE_TYPES and self.message_graph.is_nested(
            field.type_name, fq_message_name
        ):
            return True
        config_path = fq_message_name if oneof is None else f"{fq_message_name}.{oneof}"
        return self.config.boxed_paths.get_first_field(config_path, field.name) is not None


__all__ = ["Context"]
