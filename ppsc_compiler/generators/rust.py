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

"""Rust code generator for SCALE codec types."""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    EnumDescriptorProto,
    FieldDescriptorProto,
    FileDescriptorProto,
    OneofDescriptorProto,
    ServiceDescriptorProto,
)

from ppsc_compiler.context import Context
from ppsc_compiler.error import SchemaError
from ppsc_compiler.generators.base import INDENT
from ppsc_compiler.generators.enums import build_enum_value_mappings
from ppsc_compiler.generators.source_info import (
    ENUM_VALUE,
    FILE_ENUM_TYPE,
    FILE_MESSAGE_TYPE,
    FILE_SERVICE,
    MESSAGE_ENUM_TYPE,
    MESSAGE_FIELD,
    MESSAGE_NESTED_TYPE,
    MESSAGE_ONEOF_DECL,
    SERVICE_METHOD,
    SourceInfo,
)
from ppsc_compiler.ident import resolve_relative_ident, to_snake, to_upper_camel
from ppsc_compiler.ir.ast import Comments, Method, Service
from ppsc_compiler.ir.types import SCALAR_TYPES, BytesType, Syntax

logger = logging.getLogger(__name__)

IndexedField = Tuple[int, FieldDescriptorProto]


class CodeGenerator:
    """Generates Rust declarations for one Protobuf file.

    The generator walks the file depth first and keeps a cursor made of the
    current package, the enclosing message names, the descriptor path used
    to find comments, and the indentation depth. Output lines are appended
    to ``buf``, which may be shared by all files of a package.
    """

    def __init__(self, context: Context, file: FileDescriptorProto, buf: List[str]):
        self.context = context
        self.file = file
        self.package = file.package
        self.syntax = Syntax.from_file_syntax(file.syntax)
        source_code_info = None
        if file.HasField("source_code_info"):
            source_code_info = file.source_code_info
        self.source_info = SourceInfo(source_code_info)
        self.type_path: List[str] = []
        self.path: List[int] = []
        self.depth = 0
        self.buf = buf

    @classmethod
    def generate(
        cls, context: Context, file: FileDescriptorProto, buf: List[str]
    ) -> None:
        cls(context, file, buf).generate_file()

    def generate_file(self) -> None:
        logger.debug("file: %s, package: %s", self.file.name, self.package)

        with self.descriptor_path(FILE_MESSAGE_TYPE):
            for idx, message in enumerate(self.file.message_type):
                with self.descriptor_path(idx):
                    self.append_message(message)

        with self.descriptor_path(FILE_ENUM_TYPE):
            for idx, desc in enumerate(self.file.enum_type):
                with self.descriptor_path(idx):
                    self.append_enum(desc)

        service_generator = self.context.service_generator
        if service_generator is not None:
            with self.descriptor_path(FILE_SERVICE):
                for idx, service in enumerate(self.file.service):
                    with self.descriptor_path(idx):
                        service_generator.generate(self.build_service(service), self.buf)
            service_generator.finalize(self.buf)

    # Cursor

    @contextmanager
    def descriptor_path(self, *numbers: int) -> Iterator[None]:
        self.path.extend(numbers)
        try:
            yield
        finally:
            del self.path[len(self.path) - len(numbers) :]

    @contextmanager
    def indented(self) -> Iterator[None]:
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    @contextmanager
    def nested_module(self, message_name: str) -> Iterator[None]:
        """Open ``pub mod <message>`` holding the message's nested types."""
        self.push_line(f"/// Nested message and enum types in `{message_name}`.")
        self.push_line(f"pub mod {to_snake(message_name)} {{")
        self.depth += 1
        self.type_path.append(message_name)
        self.push_line("use super::*;")
        self.push_line("")
        try:
            yield
        finally:
            self.type_path.pop()
            self.depth -= 1
            self.push_line("}")

    def push_line(self, line: str) -> None:
        self.buf.append(f"{INDENT * self.depth}{line}" if line else "")

    def fq_name(self, message_name: str) -> str:
        parts = [""]
        if self.package:
            parts.append(self.package.strip("."))
        parts.extend(self.type_path)
        parts.append(message_name)
        return ".".join(parts)

    # Messages

    def append_message(self, message: DescriptorProto) -> None:
        message_name = message.name
        fq_message_name = self.fq_name(message_name)

        # Types provided by another crate are not generated.
        if self.context.resolve_extern_ident(fq_message_name) is not None:
            logger.debug("  message: %s is extern, skipping", fq_message_name)
            return

        logger.debug("  message: %s", fq_message_name)

        map_entries: Dict[str, Tuple[FieldDescriptorProto, FieldDescriptorProto]] = {}
        nested_types: List[Tuple[int, DescriptorProto]] = []
        for idx, nested in enumerate(message.nested_type):
            if nested.options.map_entry:
                map_entries[f"{fq_message_name}.{nested.name}"] = self.map_entry_fields(
                    fq_message_name, nested
                )
            else:
                nested_types.append((idx, nested))

        fields: List[IndexedField] = []
        oneof_fields: Dict[int, List[IndexedField]] = {}
        for idx, field in enumerate(message.field):
            # proto3 optional fields belong to a synthetic oneof but are
            # generated as plain optional fields.
            if field.HasField("oneof_index") and not field.proto3_optional:
                oneof_fields.setdefault(field.oneof_index, []).append((idx, field))
            else:
                fields.append((idx, field))

        oneofs = [
            (idx, oneof, oneof_fields[idx])
            for idx, oneof in enumerate(message.oneof_decl)
            if idx in oneof_fields
        ]

        self.append_doc(fq_message_name)
        self.append_type_attributes(fq_message_name)
        self.append_message_attributes(fq_message_name)
        self.append_derive(fq_message_name)
        self.push_line(f"pub struct {to_upper_camel(message_name)} {{")

        with self.indented():
            with self.descriptor_path(MESSAGE_FIELD):
                for idx, field in fields:
                    with self.descriptor_path(idx):
                        entry = None
                        if field.type == FieldDescriptorProto.TYPE_MESSAGE:
                            entry = map_entries.get(field.type_name)
                        if entry is not None:
                            self.append_map_field(fq_message_name, field, *entry)
                        else:
                            self.append_field(fq_message_name, field)

            with self.descriptor_path(MESSAGE_ONEOF_DECL):
                for idx, oneof, _ in oneofs:
                    with self.descriptor_path(idx):
                        self.append_oneof_field(message_name, fq_message_name, oneof)

        self.push_line("}")

        if self.context.config.type_names_enabled:
            self.append_type_name(message_name, fq_message_name)

        if message.enum_type or nested_types or oneofs:
            with self.nested_module(message_name):
                with self.descriptor_path(MESSAGE_NESTED_TYPE):
                    for idx, nested in nested_types:
                        with self.descriptor_path(idx):
                            self.append_message(nested)

                with self.descriptor_path(MESSAGE_ENUM_TYPE):
                    for idx, nested_enum in enumerate(message.enum_type):
                        with self.descriptor_path(idx):
                            self.append_enum(nested_enum)

                for idx, oneof, members in oneofs:
                    self.append_oneof(fq_message_name, idx, oneof, members)

    def map_entry_fields(
        self, fq_message_name: str, entry: DescriptorProto
    ) -> Tuple[FieldDescriptorProto, FieldDescriptorProto]:
        names = [field.name for field in entry.field]
        if names != ["key", "value"]:
            raise SchemaError(
                f"{fq_message_name}.{entry.name}: map entry must have exactly "
                f"the fields `key` and `value`, found {names}"
            )
        return entry.field[0], entry.field[1]

    def append_field(self, fq_message_name: str, field: FieldDescriptorProto) -> None:
        repeated = field.label == FieldDescriptorProto.LABEL_REPEATED
        optional = self.optional(field)
        boxed = self.context.should_box_message_field(fq_message_name, field)
        ty = self.resolve_type(field, fq_message_name)

        logger.debug("    field: %s, type: %s, boxed: %s", field.name, ty, boxed)

        self.append_doc(fq_message_name, field.name)
        self.append_field_attributes(fq_message_name, field.name)

        if boxed:
            ty = f"alloc::boxed::Box<{ty}>"
        if repeated:
            ty = f"alloc::vec::Vec<{ty}>"
        elif optional:
            ty = f"Option<{ty}>"
        self.push_line(f"pub {to_snake(field.name)}: {ty},")

    def append_map_field(
        self,
        fq_message_name: str,
        field: FieldDescriptorProto,
        key: FieldDescriptorProto,
        value: FieldDescriptorProto,
    ) -> None:
        key_ty = self.resolve_type(key, fq_message_name)
        value_ty = self.resolve_type(value, fq_message_name)

        logger.debug(
            "    map field: %s, key type: %s, value type: %s",
            field.name,
            key_ty,
            value_ty,
        )

        self.append_doc(fq_message_name, field.name)
        map_type = self.context.map_type(fq_message_name, field.name)
        self.append_field_attributes(fq_message_name, field.name)
        self.push_line(
            f"pub {to_snake(field.name)}: {map_type.rust_type()}<{key_ty}, {value_ty}>,"
        )

    def append_oneof_field(
        self, message_name: str, fq_message_name: str, oneof: OneofDescriptorProto
    ) -> None:
        type_name = f"{to_snake(message_name)}::{to_upper_camel(oneof.name)}"
        self.append_doc(fq_message_name)
        self.append_field_attributes(fq_message_name, oneof.name)
        self.push_line(f"pub {to_snake(oneof.name)}: Option<{type_name}>,")

    def append_oneof(
        self,
        fq_message_name: str,
        oneof_idx: int,
        oneof: OneofDescriptorProto,
        members: List[IndexedField],
    ) -> None:
        """Append the enum holding the alternatives of a oneof."""
        with self.descriptor_path(MESSAGE_ONEOF_DECL, oneof_idx):
            self.append_doc(fq_message_name)

        oneof_name = f"{fq_message_name}.{oneof.name}"
        self.append_type_attributes(oneof_name)
        self.append_enum_attributes(oneof_name)
        self.append_derive(oneof_name)
        self.push_line(f"pub enum {to_upper_camel(oneof.name)} {{")

        with self.indented():
            for idx, field in members:
                with self.descriptor_path(MESSAGE_FIELD, idx):
                    self.append_doc(fq_message_name, field.name)

                self.append_field_attributes(oneof_name, field.name)
                ty = self.resolve_type(field, fq_message_name)
                boxed = self.context.should_box_message_field(
                    fq_message_name, field, oneof=oneof.name
                )

                logger.debug("    oneof: %s, type: %s, boxed: %s", field.name, ty, boxed)

                if boxed:
                    ty = f"alloc::boxed::Box<{ty}>"
                self.push_line(f"{to_upper_camel(field.name)}({ty}),")

        self.push_line("}")

    def append_type_name(self, message_name: str, fq_message_name: str) -> None:
        full_name = fq_message_name[1:]
        domain = self.context.type_name_domain(fq_message_name)
        self.push_line(f"impl {to_upper_camel(message_name)} {{")
        with self.indented():
            self.push_line(f"pub const NAME: &'static str = \"{message_name}\";")
            self.push_line(f"pub const PACKAGE: &'static str = \"{self.package}\";")
            self.push_line("pub fn full_name() -> alloc::string::String {")
            self.push_line(f'{INDENT}"{full_name}".into()')
            self.push_line("}")
            self.push_line("pub fn type_url() -> alloc::string::String {")
            self.push_line(f'{INDENT}"{domain}/{full_name}".into()')
            self.push_line("}")
        self.push_line("}")

    # Enums

    def append_enum(self, desc: EnumDescriptorProto) -> None:
        proto_enum_name = desc.name
        enum_name = to_upper_camel(proto_enum_name)
        fq_proto_enum_name = self.fq_name(proto_enum_name)

        if self.context.resolve_extern_ident(fq_proto_enum_name) is not None:
            logger.debug("  enum: %s is extern, skipping", fq_proto_enum_name)
            return

        logger.debug("  enum: %s", fq_proto_enum_name)

        variant_mappings = build_enum_value_mappings(
            enum_name,
            self.context.should_strip_enum_prefix(),
            desc.value,
            fq_proto_enum_name,
        )

        self.append_doc(fq_proto_enum_name)
        self.append_type_attributes(fq_proto_enum_name)
        self.append_enum_attributes(fq_proto_enum_name)
        self.append_derive(fq_proto_enum_name)
        self.push_line(f"pub enum {enum_name} {{")

        with self.indented(), self.descriptor_path(ENUM_VALUE):
            for variant in variant_mappings:
                with self.descriptor_path(variant.path_idx):
                    self.append_doc(fq_proto_enum_name, variant.proto_name)
                self.append_field_attributes(fq_proto_enum_name, variant.proto_name)
                self.push_line(
                    f"{variant.generated_variant_name} = {variant.proto_number},"
                )

        self.push_line("}")

        self.push_line(f"impl {enum_name} {{")
        with self.indented():
            self.push_line(
                "/// String value of the enum field names used in the ProtoBuf definition."
            )
            self.push_line("///")
            self.push_line(
                "/// The values are not transformed in any way and thus are considered stable"
            )
            self.push_line(
                "/// (if the ProtoBuf definition does not change) and safe for programmatic use."
            )
            self.push_line("pub fn as_str_name(&self) -> &'static str {")
            with self.indented():
                self.push_line("match self {")
                with self.indented():
                    for variant in variant_mappings:
                        self.push_line(
                            f'Self::{variant.generated_variant_name} => "{variant.proto_name}",'
                        )
                self.push_line("}")
            self.push_line("}")

            self.push_line(
                "/// Creates an enum from field names used in the ProtoBuf definition."
            )
            self.push_line("pub fn from_str_name(value: &str) -> Option<Self> {")
            with self.indented():
                self.push_line("match value {")
                with self.indented():
                    for variant in variant_mappings:
                        self.push_line(
                            f'"{variant.proto_name}" => Some(Self::{variant.generated_variant_name}),'
                        )
                    self.push_line("_ => None,")
                self.push_line("}")
            self.push_line("}")
        self.push_line("}")

    # Services

    def build_service(self, service: ServiceDescriptorProto) -> Service:
        name = service.name
        logger.debug("  service: %s", name)

        comments = self.comments()
        methods = []
        with self.descriptor_path(SERVICE_METHOD):
            for idx, method in enumerate(service.method):
                with self.descriptor_path(idx):
                    logger.debug("    method: %s", method.name)
                    methods.append(
                        Method(
                            name=to_snake(method.name),
                            proto_name=method.name,
                            comments=self.comments(),
                            input_type=self.resolve_ident(method.input_type),
                            output_type=self.resolve_ident(method.output_type),
                            input_proto_type=method.input_type,
                            output_proto_type=method.output_type,
                            options=method.options,
                            client_streaming=method.client_streaming,
                            server_streaming=method.server_streaming,
                        )
                    )

        return Service(
            name=to_upper_camel(name),
            proto_name=name,
            package=self.package,
            comments=comments,
            methods=methods,
            options=service.options,
        )

    # Helpers

    def comments(self) -> Comments:
        return self.source_info.comments(self.path) or Comments()

    def append_doc(self, fq_name: str, field_name: Optional[str] = None) -> None:
        if self.context.should_disable_comments(fq_name, field_name):
            return
        comments = self.source_info.comments(self.path)
        if comments is not None:
            comments.append_with_indent(self.depth, self.buf)

    def append_type_attributes(self, fq_name: str) -> None:
        for attribute in self.context.type_attributes(fq_name):
            self.push_line(attribute)

    def append_message_attributes(self, fq_message_name: str) -> None:
        for attribute in self.context.message_attributes(fq_message_name):
            self.push_line(attribute)

    def append_enum_attributes(self, fq_enum_name: str) -> None:
        for attribute in self.context.enum_attributes(fq_enum_name):
            self.push_line(attribute)

    def append_field_attributes(self, fq_message_name: str, field_name: str) -> None:
        for attribute in self.context.field_attributes(fq_message_name, field_name):
            self.push_line(attribute)

    def append_derive(self, fq_name: str) -> None:
        derives = ["Encode", "Decode"]
        if not self.context.should_skip_debug(fq_name):
            derives.append("Debug")
        self.push_line(f"#[derive({', '.join(derives)})]")

    def resolve_type(self, field: FieldDescriptorProto, fq_message_name: str) -> str:
        scalar = SCALAR_TYPES.get(field.type)
        if scalar is not None:
            return scalar
        if field.type == FieldDescriptorProto.TYPE_BYTES:
            bytes_type: BytesType = self.context.bytes_type(fq_message_name, field.name)
            return bytes_type.rust_type()
        # Message and group fields.
        return self.resolve_ident(field.type_name)

    def resolve_ident(self, pb_ident: str) -> str:
        """Return the Rust path of a type, relative to the current module."""
        # Protobuf paths are always fully qualified.
        assert pb_ident.startswith("."), pb_ident

        extern = self.context.resolve_extern_ident(pb_ident)
        if extern is not None:
            return extern

        local_path = [part for part in self.package.split(".") if part]
        local_path.extend(self.type_path)
        return resolve_relative_ident(local_path, pb_ident)

    def optional(self, field: FieldDescriptorProto) -> bool:
        if field.proto3_optional:
            return True
        if field.label != FieldDescriptorProto.LABEL_OPTIONAL:
            return False
        if field.type == FieldDescriptorProto.TYPE_MESSAGE:
            return True
        return self.syntax == Syntax.PROTO2


__all__ = ["CodeGenerator"]
