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

"""Mapping of Protobuf enum values to Rust enum variants."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Set

from google.protobuf.descriptor_pb2 import EnumValueDescriptorProto

from ppsc_compiler.error import SchemaError
from ppsc_compiler.ident import strip_enum_prefix, to_upper_camel


@dataclass
class EnumVariantMapping:
    """A Rust variant for one distinct enum number."""

    path_idx: int
    proto_name: str
    proto_number: int
    generated_variant_name: str


def build_enum_value_mappings(
    generated_enum_name: str,
    do_strip_enum_prefix: bool,
    enum_values: Iterable[EnumValueDescriptorProto],
    fq_enum_name: str = "",
) -> List[EnumVariantMapping]:
    """Map enum values to variants, keeping the first value of each number.

    Aliases, later values sharing a number, are dropped since a Rust enum
    discriminant must be unique. Raises SchemaError if two values end up
    with the same variant name.
    """
    numbers: Set[int] = set()
    generated_names: Dict[str, str] = {}
    mappings = []

    for idx, value in enumerate(enum_values):
        if value.number in numbers:
            continue
        numbers.add(value.number)

        variant = to_upper_camel(value.name)
        if do_strip_enum_prefix:
            variant = strip_enum_prefix(generated_enum_name, variant)

        previous = generated_names.get(variant)
        if previous is not None:
            location = f"{fq_enum_name}: " if fq_enum_name else ""
            raise SchemaError(
                f"{location}Generated enum variant names overlap: `{variant}` "
                f"variant name to be used both by `{previous}` and "
                f"`{value.name}` ProtoBuf enum values"
            )
        generated_names[variant] = value.name

        mappings.append(
            EnumVariantMapping(
                path_idx=idx,
                proto_name=value.name,
                proto_number=value.number,
                generated_variant_name=variant,
            )
        )
    return mappings


__all__ = ["EnumVariantMapping", "build_enum_value_mappings"]
