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

"""Container choices and schema syntax."""

from enum import Enum as PyEnum

from google.protobuf.descriptor_pb2 import FieldDescriptorProto


class MapType(PyEnum):
    """Container requested for map fields.

    The SCALE codec only implements ``Encode`` and ``Decode`` for ordered maps
    under ``alloc``, so both choices are generated as ``BTreeMap``.
    """

    HASH_MAP = "hash_map"
    BTREE_MAP = "btree_map"

    def rust_type(self) -> str:
        return "alloc::collections::BTreeMap"


class BytesType(PyEnum):
    """Rust container used for bytes fields."""

    VEC = "alloc::vec::Vec<u8>"
    BYTES = "bytes::Bytes"

    def rust_type(self) -> str:
        return self.value


class Syntax(PyEnum):
    PROTO2 = "proto2"
    PROTO3 = "proto3"

    @classmethod
    def from_file_syntax(cls, syntax: str) -> "Syntax":
        # An unset syntax means proto2.
        if syntax == "proto3":
            return cls.PROTO3
        return cls.PROTO2


# Scalar field types and their Rust spelling. Enums are carried as i32.
SCALAR_TYPES = {
    FieldDescriptorProto.TYPE_FLOAT: "f32",
    FieldDescriptorProto.TYPE_DOUBLE: "f64",
    FieldDescriptorProto.TYPE_UINT32: "u32",
    FieldDescriptorProto.TYPE_FIXED32: "u32",
    FieldDescriptorProto.TYPE_UINT64: "u64",
    FieldDescriptorProto.TYPE_FIXED64: "u64",
    FieldDescriptorProto.TYPE_INT32: "i32",
    FieldDescriptorProto.TYPE_SFIXED32: "i32",
    FieldDescriptorProto.TYPE_SINT32: "i32",
    FieldDescriptorProto.TYPE_ENUM: "i32",
    FieldDescriptorProto.TYPE_INT64: "i64",
    FieldDescriptorProto.TYPE_SFIXED64: "i64",
    FieldDescriptorProto.TYPE_SINT64: "i64",
    FieldDescriptorProto.TYPE_BOOL: "bool",
    FieldDescriptorProto.TYPE_STRING: "alloc::string::String",
}


__all__ = ["MapType", "BytesType", "Syntax", "SCALAR_TYPES"]
