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

"""Tests for Rust code generation."""

from typing import Dict, List, Optional

import pytest
from google.protobuf import text_format
from google.protobuf.descriptor_pb2 import FileDescriptorProto

from ppsc_compiler.config import Config, GENERATED_HEADER
from ppsc_compiler.error import SchemaError
from ppsc_compiler.generators.base import ServiceGenerator
from ppsc_compiler.generators.service_trait import ServiceTraitGenerator
from ppsc_compiler.module import Module

PREFIX = (
    GENERATED_HEADER
    + "\n"
    + "extern crate alloc;\n"
    + "use parity_scale_codec::{Encode, Decode};\n"
    + "\n"
)


def parse_file(source: str) -> FileDescriptorProto:
    return text_format.Parse(source, FileDescriptorProto())


def generate(
    files: List[FileDescriptorProto], config: Optional[Config] = None
) -> Dict[Module, str]:
    config = config or Config()
    requests = [
        (Module.from_protobuf_package_name(file.package), file) for file in files
    ]
    return config.generate(requests)


def generate_one(source: str, config: Optional[Config] = None) -> str:
    """Generate a single file and return its code without the preamble."""
    modules = generate([parse_file(source)], config)
    assert len(modules) == 1
    content = next(iter(modules.values()))
    assert content.startswith(PREFIX)
    return content[len(PREFIX) :]


TUTORIAL = """
name: "tutorial.proto"
package: "tutorial"
syntax: "proto3"
message_type {
  name: "Person"
  field { name: "name" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
  field { name: "id" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32 }
  field { name: "email" number: 3 label: LABEL_OPTIONAL type: TYPE_STRING }
  field {
    name: "phones" number: 4 label: LABEL_REPEATED type: TYPE_MESSAGE
    type_name: ".tutorial.Person.PhoneNumber"
  }
  nested_type {
    name: "PhoneNumber"
    field { name: "number" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
    field {
      name: "type" number: 2 label: LABEL_OPTIONAL type: TYPE_ENUM
      type_name: ".tutorial.Person.PhoneType"
    }
  }
  enum_type {
    name: "PhoneType"
    value { name: "MOBILE" number: 0 }
    value { name: "HOME" number: 1 }
    value { name: "WORK" number: 2 }
  }
}
"""

EXPECTED_TUTORIAL = '''\
#[derive(Encode, Decode, Debug)]
pub struct Person {
    pub name: alloc::string::String,
    pub id: i32,
    pub email: alloc::string::String,
    pub phones: alloc::vec::Vec<person::PhoneNumber>,
}
/// Nested message and enum types in `Person`.
pub mod person {
    use super::*;

    #[derive(Encode, Decode, Debug)]
    pub struct PhoneNumber {
        pub number: alloc::string::String,
        pub r#type: i32,
    }
    #[derive(Encode, Decode, Debug)]
    pub enum PhoneType {
        Mobile = 0,
        Home = 1,
        Work = 2,
    }
    impl PhoneType {
        /// String value of the enum field names used in the ProtoBuf definition.
        ///
        /// The values are not transformed in any way and thus are considered stable
        /// (if the ProtoBuf definition does not change) and safe for programmatic use.
        pub fn as_str_name(&self) -> &'static str {
            match self {
                Self::Mobile => "MOBILE",
                Self::Home => "HOME",
                Self::Work => "WORK",
            }
        }
        /// Creates an enum from field names used in the ProtoBuf definition.
        pub fn from_str_name(value: &str) -> Option<Self> {
            match value {
                "MOBILE" => Some(Self::Mobile),
                "HOME" => Some(Self::Home),
                "WORK" => Some(Self::Work),
                _ => None,
            }
        }
    }
}
'''

FIELD_ATTRIBUTES = """
name: "field_attributes.proto"
package: "field_attributes"
syntax: "proto3"
message_type {
  name: "Container"
  field {
    name: "foo" number: 1 label: LABEL_OPTIONAL type: TYPE_MESSAGE
    type_name: ".field_attributes.Foo" oneof_index: 0
  }
  field {
    name: "bar" number: 2 label: LABEL_OPTIONAL type: TYPE_MESSAGE
    type_name: ".field_attributes.Bar" oneof_index: 0
  }
  oneof_decl { name: "data" }
}
message_type {
  name: "Foo"
  field { name: "foo" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
}
message_type {
  name: "Bar"
  field {
    name: "qux" number: 1 label: LABEL_OPTIONAL type: TYPE_MESSAGE
    type_name: ".field_attributes.Qux"
  }
}
message_type { name: "Qux" }
"""

EXPECTED_FIELD_ATTRIBUTES = """\
#[derive(Encode, Decode, Debug)]
pub struct Container {
    pub data: Option<container::Data>,
}
/// Nested message and enum types in `Container`.
pub mod container {
    use super::*;

    #[derive(Encode, Decode, Debug)]
    pub enum Data {
        Foo(alloc::boxed::Box<super::Foo>),
        Bar(super::Bar),
    }
}
#[derive(Encode, Decode, Debug)]
pub struct Foo {
    pub foo: alloc::string::String,
}
#[derive(Encode, Decode, Debug)]
pub struct Bar {
    pub qux: Option<alloc::boxed::Box<Qux>>,
}
#[derive(Encode, Decode, Debug)]
pub struct Qux {
}
"""


class TestFixtures:
    """Whole-file output for representative schemas."""

    def test_tutorial(self):
        assert generate_one(TUTORIAL) == EXPECTED_TUTORIAL

    def test_field_attributes(self):
        config = Config()
        config.boxed(".field_attributes.Container.data.foo")
        config.boxed(".field_attributes.Bar.qux")

        assert generate_one(FIELD_ATTRIBUTES, config) == EXPECTED_FIELD_ATTRIBUTES

    def test_output_is_deterministic(self):
        first = generate([parse_file(TUTORIAL), parse_file(FIELD_ATTRIBUTES)])
        second = generate([parse_file(TUTORIAL), parse_file(FIELD_ATTRIBUTES)])

        assert first == second
        assert list(first) == list(second) == [
            Module(("tutorial",)),
            Module(("field_attributes",)),
        ]


RECURSIVE = """
name: "recursive.proto"
package: "pkg"
syntax: "proto3"
message_type {
  name: "Node"
  field { name: "next" number: 1 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".pkg.Node" }
  field { name: "children" number: 2 label: LABEL_REPEATED type: TYPE_MESSAGE type_name: ".pkg.Node" }
  field { name: "peer" number: 3 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".pkg.Peer" }
}
message_type {
  name: "Peer"
  field { name: "node" number: 1 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".pkg.Node" }
}
"""


class TestBoxing:
    """Tests for indirection of recursive fields."""

    def test_self_reference_is_boxed(self):
        code = generate_one(RECURSIVE)

        assert "    pub next: Option<alloc::boxed::Box<Node>>,\n" in code
        assert "    pub children: alloc::vec::Vec<Node>,\n" in code

    def test_mutual_recursion_is_boxed(self):
        code = generate_one(RECURSIVE)

        assert "    pub peer: Option<alloc::boxed::Box<Peer>>,\n" in code
        assert "    pub node: Option<alloc::boxed::Box<Node>>,\n" in code

    def test_override_and_recursion_box_once(self):
        config = Config().boxed(".pkg.Node.next").boxed("children")
        code = generate_one(RECURSIVE, config)

        assert "    pub next: Option<alloc::boxed::Box<Node>>,\n" in code
        assert "    pub children: alloc::vec::Vec<Node>,\n" in code
        assert "Box<alloc::boxed::Box" not in code

    def test_relative_selectors(self):
        config = Config().boxed("Bar.qux").boxed("Container.data.foo")

        assert generate_one(FIELD_ATTRIBUTES, config) == EXPECTED_FIELD_ATTRIBUTES

    def test_relative_selector_on_cycle_boxes_once(self):
        source = FIELD_ATTRIBUTES.replace(
            'message_type { name: "Qux" }',
            """message_type {
              name: "Qux"
              field {
                name: "bar" number: 1 label: LABEL_OPTIONAL type: TYPE_MESSAGE
                type_name: ".field_attributes.Bar"
              }
            }""",
        )
        config = Config().boxed("Bar.qux").boxed("Container.data.foo")
        code = generate_one(source, config)

        assert "    pub qux: Option<alloc::boxed::Box<Qux>>,\n" in code
        assert "    pub bar: Option<alloc::boxed::Box<Bar>>,\n" in code
        assert "        Foo(alloc::boxed::Box<super::Foo>),\n" in code
        assert "        Bar(super::Bar),\n" in code
        assert "Box<alloc::boxed::Box" not in code


SCALARS = """
name: "scalars.proto"
package: "pkg"
syntax: "proto3"
message_type {
  name: "Scalars"
  field { name: "f_float" number: 1 label: LABEL_OPTIONAL type: TYPE_FLOAT }
  field { name: "f_double" number: 2 label: LABEL_OPTIONAL type: TYPE_DOUBLE }
  field { name: "f_uint32" number: 3 label: LABEL_OPTIONAL type: TYPE_UINT32 }
  field { name: "f_fixed64" number: 4 label: LABEL_OPTIONAL type: TYPE_FIXED64 }
  field { name: "f_sint32" number: 5 label: LABEL_OPTIONAL type: TYPE_SINT32 }
  field { name: "f_sfixed64" number: 6 label: LABEL_OPTIONAL type: TYPE_SFIXED64 }
  field { name: "f_bool" number: 7 label: LABEL_OPTIONAL type: TYPE_BOOL }
  field { name: "f_bytes" number: 8 label: LABEL_OPTIONAL type: TYPE_BYTES }
  field { name: "f_list" number: 9 label: LABEL_REPEATED type: TYPE_UINT64 }
  field {
    name: "f_optional" number: 10 label: LABEL_OPTIONAL type: TYPE_INT32
    proto3_optional: true oneof_index: 0
  }
  field {
    name: "counts" number: 11 label: LABEL_REPEATED type: TYPE_MESSAGE
    type_name: ".pkg.Scalars.CountsEntry"
  }
  nested_type {
    name: "CountsEntry"
    field { name: "key" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
    field { name: "value" number: 2 label: LABEL_OPTIONAL type: TYPE_BYTES }
    options { map_entry: true }
  }
  oneof_decl { name: "_f_optional" }
}
"""


class TestFieldTypes:
    """Tests for field type mapping."""

    def test_scalar_types(self):
        code = generate_one(SCALARS)

        for line in [
            "pub f_float: f32,",
            "pub f_double: f64,",
            "pub f_uint32: u32,",
            "pub f_fixed64: u64,",
            "pub f_sint32: i32,",
            "pub f_sfixed64: i64,",
            "pub f_bool: bool,",
            "pub f_bytes: alloc::vec::Vec<u8>,",
            "pub f_list: alloc::vec::Vec<u64>,",
            "pub f_optional: Option<i32>,",
        ]:
            assert f"    {line}\n" in code

    def test_proto3_optional_has_no_oneof(self):
        code = generate_one(SCALARS)

        assert "pub mod scalars" not in code
        assert "f_optional: Option<scalars::" not in code

    def test_map_field_defaults_to_btree_map(self):
        code = generate_one(SCALARS)

        assert (
            "    pub counts: alloc::collections::BTreeMap"
            "<alloc::string::String, alloc::vec::Vec<u8>>,\n"
        ) in code
        assert "CountsEntry" not in code
        assert "std::" not in code

    def test_btree_map_and_bytes(self):
        config = Config().btree_map(["."]).bytes([".pkg.Scalars"])
        code = generate_one(SCALARS, config)

        assert "    pub f_bytes: bytes::Bytes,\n" in code
        assert (
            "    pub counts: alloc::collections::BTreeMap"
            "<alloc::string::String, bytes::Bytes>,\n"
        ) in code

    def test_btree_map_replaces_previous_paths(self):
        config = Config().btree_map(["."]).btree_map([".other"])

        assert list(config.map_type.get(".pkg.Scalars.counts")) == []
        assert "alloc::collections::BTreeMap<" in generate_one(SCALARS, config)

    def test_proto2_optional_and_required(self):
        code = generate_one(
            """
            name: "legacy.proto"
            package: "legacy"
            message_type {
              name: "Legacy"
              field { name: "maybe" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32 }
              field { name: "always" number: 2 label: LABEL_REQUIRED type: TYPE_STRING }
              field { name: "child" number: 3 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".legacy.Child" }
            }
            message_type { name: "Child" }
            """
        )

        assert "    pub maybe: Option<i32>,\n" in code
        assert "    pub always: alloc::string::String,\n" in code
        assert "    pub child: Option<Child>,\n" in code


def test_nested_enum_reference_from_other_message():
    code = generate_one(
        """
        name: "refs.proto"
        package: "a.b"
        syntax: "proto3"
        message_type {
          name: "Outer"
          nested_type {
            name: "Inner"
            field { name: "x" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32 }
          }
        }
        message_type {
          name: "User"
          field { name: "inner" number: 1 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".a.b.Outer.Inner" }
          field { name: "other" number: 2 label: LABEL_OPTIONAL type: TYPE_MESSAGE type_name: ".a.c.Other" }
        }
        """
    )

    assert "    pub inner: Option<outer::Inner>,\n" in code
    assert "    pub other: Option<super::c::Other>,\n" in code


class TestExternPaths:
    """Tests for types provided by other crates."""

    SOURCE = """
    name: "ext.proto"
    package: "pkg"
    syntax: "proto3"
    message_type {
      name: "Event"
      field {
        name: "at" number: 1 label: LABEL_OPTIONAL type: TYPE_MESSAGE
        type_name: ".google.protobuf.Timestamp"
      }
      field {
        name: "local" number: 2 label: LABEL_OPTIONAL type: TYPE_MESSAGE
        type_name: ".pkg.Provided"
      }
    }
    message_type { name: "Provided" }
    enum_type { name: "ProvidedKind" value { name: "A" number: 0 } }
    """

    def test_reference_uses_extern_path(self):
        config = Config().extern_path(".google.protobuf", "::scale_types")
        code = generate_one(self.SOURCE, config)

        assert "    pub at: Option<::scale_types::Timestamp>,\n" in code

    def test_extern_declarations_are_skipped(self):
        config = (
            Config()
            .extern_path(".pkg.Provided", "crate::Provided")
            .extern_path(".pkg.ProvidedKind", "crate::Kind")
        )
        code = generate_one(self.SOURCE, config)

        assert "pub struct Provided" not in code
        assert "pub enum ProvidedKind" not in code
        assert "    pub local: Option<crate::Provided>,\n" in code

    def test_only_extern_declarations_drops_module(self):
        config = Config().extern_path(".pkg", "::elsewhere")
        modules = generate([parse_file(self.SOURCE)], config)

        assert modules == {}

    def test_invalid_extern_path_fails_before_generation(self):
        service_generator = RecordingServiceGenerator()
        config = (
            Config()
            .extern_path("pkg", "::elsewhere")
            .service_generator(service_generator)
        )
        with pytest.raises(ValueError):
            generate([parse_file(HELLOWORLD)], config)
        assert service_generator.calls == []


class TestAttributes:
    """Tests for user supplied attributes."""

    SOURCE = """
    name: "attrs.proto"
    package: "pkg"
    syntax: "proto3"
    message_type {
      name: "Msg"
      field { name: "name" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
      field { name: "a" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32 oneof_index: 0 }
      oneof_decl { name: "choice" }
    }
    enum_type { name: "Kind" value { name: "KIND_A" number: 0 } }
    """

    def test_type_attribute_applies_to_all_types(self):
        config = Config().type_attribute(".", "#[derive(Clone)]")
        code = generate_one(self.SOURCE, config)

        assert code.count("#[derive(Clone)]\n") == 3

    def test_message_and_enum_attributes(self):
        config = (
            Config()
            .message_attribute(".", "#[message]")
            .enum_attribute(".", "#[enumeration]")
        )
        code = generate_one(self.SOURCE, config)

        assert "#[message]\n#[derive(Encode, Decode, Debug)]\npub struct Msg {" in code
        assert "#[enumeration]\n#[derive(Encode, Decode, Debug)]\npub enum Kind {" in code
        assert (
            "    #[enumeration]\n    #[derive(Encode, Decode, Debug)]\n"
            "    pub enum Choice {"
        ) in code
        assert code.count("#[message]") == 1

    def test_field_attributes_accumulate(self):
        config = (
            Config()
            .field_attribute("Msg.name", "#[codec(skip)]")
            .field_attribute(".pkg.Msg.name", "#[cfg(feature = \"std\")]")
        )
        code = generate_one(self.SOURCE, config)

        assert (
            "    #[codec(skip)]\n"
            '    #[cfg(feature = "std")]\n'
            "    pub name: alloc::string::String,\n"
        ) in code

    def test_oneof_member_and_enum_value_attributes(self):
        config = (
            Config()
            .field_attribute(".pkg.Msg.choice.a", "#[codec(index = 7)]")
            .field_attribute(".pkg.Kind.KIND_A", "#[default]")
        )
        code = generate_one(self.SOURCE, config)

        assert "        #[codec(index = 7)]\n        A(i32),\n" in code
        assert "    #[default]\n    A = 0,\n" in code

    def test_skip_debug(self):
        config = Config().skip_debug([".pkg.Msg"])
        code = generate_one(self.SOURCE, config)

        assert "#[derive(Encode, Decode)]\npub struct Msg {" in code
        assert "    #[derive(Encode, Decode)]\n    pub enum Choice {" in code
        assert "#[derive(Encode, Decode, Debug)]\npub enum Kind {" in code


DOCUMENTED = """
name: "docs.proto"
package: "docs"
syntax: "proto3"
message_type {
  name: "Person"
  field { name: "name" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
}
enum_type {
  name: "Color"
  value { name: "RED" number: 0 }
}
source_code_info {
  location { path: [4, 0] leading_comments: " A person.\\n" }
  location { path: [4, 0, 2, 0] trailing_comments: " The name.\\n" }
  location { path: [5, 0] leading_comments: " A color.\\n" }
  location { path: [5, 0, 2, 0] leading_comments: " Red [0].\\n" }
}
"""


class TestComments:
    """Tests for doc comments taken from source info."""

    def test_comments_are_emitted(self):
        code = generate_one(DOCUMENTED)

        assert "/// A person.\n#[derive(Encode, Decode, Debug)]\npub struct Person {" in code
        assert "    /// The name.\n    pub name: alloc::string::String,\n" in code
        assert "/// A color.\n#[derive(Encode, Decode, Debug)]\npub enum Color {" in code
        assert "    /// Red \\[0\\].\n    Red = 0,\n" in code

    def test_disable_comments_for_field(self):
        code = generate_one(DOCUMENTED, Config().disable_comments([".docs.Person.name"]))

        assert "/// A person." in code
        assert "/// The name." not in code

    def test_disable_all_comments(self):
        code = generate_one(DOCUMENTED, Config().disable_comments(["."]))

        assert "/// A person." not in code
        assert "/// The name." not in code
        assert "/// A color." not in code
        assert "/// Red" not in code


class TestEnums:
    """Tests for enum generation."""

    def test_aliases_and_prefix(self):
        code = generate_one(
            """
            name: "enums.proto"
            package: "pkg"
            syntax: "proto3"
            enum_type {
              name: "MyEnum"
              value { name: "MY_ENUM_FOO" number: 0 }
              value { name: "MY_ENUM_BAR" number: 1 }
              value { name: "MY_ENUM_BAZ" number: 1 }
              value { name: "NEGATIVE" number: -1 }
              options { allow_alias: true }
            }
            """
        )

        assert "    Foo = 0,\n    Bar = 1,\n    Negative = -1,\n" in code
        assert "Baz" not in code
        assert '"MY_ENUM_BAR" => Some(Self::Bar),' in code

    def test_retain_enum_prefix(self):
        code = generate_one(
            """
            name: "enums.proto"
            package: "pkg"
            enum_type { name: "MyEnum" value { name: "MY_ENUM_FOO" number: 0 } }
            """,
            Config().retain_enum_prefix(),
        )

        assert "    MyEnumFoo = 0,\n" in code

    def test_variant_collision_is_fatal(self):
        with pytest.raises(SchemaError) as excinfo:
            generate_one(
                """
                name: "enums.proto"
                package: "pkg"
                enum_type {
                  name: "Status"
                  value { name: "STATUS_OK" number: 0 }
                  value { name: "OK" number: 1 }
                }
                """
            )
        assert ".pkg.Status" in str(excinfo.value)


def test_malformed_map_entry():
    with pytest.raises(SchemaError):
        generate_one(
            """
            name: "maps.proto"
            package: "pkg"
            message_type {
              name: "M"
              field { name: "m" number: 1 label: LABEL_REPEATED type: TYPE_MESSAGE type_name: ".pkg.M.MEntry" }
              nested_type {
                name: "MEntry"
                field { name: "value" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
                field { name: "key" number: 2 label: LABEL_OPTIONAL type: TYPE_STRING }
                options { map_entry: true }
              }
            }
            """
        )


def test_type_names():
    config = Config().enable_type_names().type_name_domain(["."], "type.example.com")
    code = generate_one(TUTORIAL, config)

    assert (
        "impl Person {\n"
        "    pub const NAME: &'static str = \"Person\";\n"
        "    pub const PACKAGE: &'static str = \"tutorial\";\n"
        "    pub fn full_name() -> alloc::string::String {\n"
        "        \"tutorial.Person\".into()\n"
        "    }\n"
        "    pub fn type_url() -> alloc::string::String {\n"
        "        \"type.example.com/tutorial.Person\".into()\n"
        "    }\n"
        "}\n"
    ) in code
    assert '"type.example.com/tutorial.Person.PhoneNumber".into()' in code


def test_empty_file_is_dropped():
    modules = generate(
        [
            parse_file('name: "empty.proto" package: "empty"'),
            parse_file(TUTORIAL),
        ]
    )

    assert list(modules) == [Module(("tutorial",))]


def test_files_of_one_package_share_a_module():
    first = parse_file('name: "a.proto" package: "pkg" message_type { name: "A" }')
    second = parse_file('name: "b.proto" package: "pkg" message_type { name: "B" }')
    modules = generate([first, second])

    assert list(modules) == [Module(("pkg",))]
    content = modules[Module(("pkg",))]
    assert content.count(GENERATED_HEADER) == 1
    assert content.index("pub struct A {") < content.index("pub struct B {")


class RecordingServiceGenerator(ServiceGenerator):
    """Service generator recording every call it receives."""

    def __init__(self):
        self.calls = []
        self.services = []

    def generate(self, service, buf):
        self.calls.append(("generate", service.proto_name))
        self.services.append(service)
        buf.append(f"// service {service.name}")

    def finalize(self, buf):
        self.calls.append(("finalize",))

    def finalize_package(self, package, buf):
        self.calls.append(("finalize_package", package))
        buf.append(f"// package {package}")


HELLOWORLD = """
name: "helloworld.proto"
package: "helloworld"
syntax: "proto3"
message_type {
  name: "HelloRequest"
  field { name: "name" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
}
message_type {
  name: "HelloReply"
  field { name: "message" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
}
service {
  name: "Greeter"
  method {
    name: "SayHello"
    input_type: ".helloworld.HelloRequest"
    output_type: ".helloworld.HelloReply"
  }
  method {
    name: "StreamHellos"
    input_type: ".helloworld.HelloRequest"
    output_type: ".helloworld.HelloReply"
    server_streaming: true
  }
}
source_code_info {
  location { path: [6, 0] leading_comments: " The greeting service.\\n" }
  location { path: [6, 0, 2, 0] leading_comments: " Sends a greeting.\\n" }
}
"""


class TestServices:
    """Tests for the service generator hooks."""

    def test_hooks_are_called(self):
        service_generator = RecordingServiceGenerator()
        modules = generate(
            [parse_file(HELLOWORLD)], Config().service_generator(service_generator)
        )

        assert service_generator.calls == [
            ("generate", "Greeter"),
            ("finalize",),
            ("finalize_package", "helloworld"),
        ]
        content = modules[Module(("helloworld",))]
        assert content.endswith("// service Greeter\n// package helloworld\n")

    def test_service_model(self):
        service_generator = RecordingServiceGenerator()
        generate([parse_file(HELLOWORLD)], Config().service_generator(service_generator))

        service = service_generator.services[0]
        assert service.name == "Greeter"
        assert service.package == "helloworld"
        assert service.comments.leading == [" The greeting service."]

        say_hello, stream = service.methods
        assert say_hello.name == "say_hello"
        assert say_hello.proto_name == "SayHello"
        assert say_hello.input_type == "HelloRequest"
        assert say_hello.output_type == "HelloReply"
        assert say_hello.input_proto_type == ".helloworld.HelloRequest"
        assert say_hello.comments.leading == [" Sends a greeting."]
        assert not say_hello.server_streaming
        assert stream.name == "stream_hellos"
        assert stream.server_streaming
        assert stream.comments.is_empty()

    def test_finalize_package_once_per_package(self):
        service_generator = RecordingServiceGenerator()
        other = parse_file(
            """
            name: "other.proto"
            package: "helloworld"
            syntax: "proto3"
            service { name: "Other" }
            """
        )
        generate(
            [parse_file(HELLOWORLD), other],
            Config().service_generator(service_generator),
        )

        assert service_generator.calls.count(("finalize_package", "helloworld")) == 1
        assert service_generator.calls.count(("finalize",)) == 2

    def test_services_ignored_without_generator(self):
        code = generate_one(HELLOWORLD)

        assert "Greeter" not in code

    def test_service_trait_generator(self):
        code = generate_one(
            HELLOWORLD, Config().service_generator(ServiceTraitGenerator())
        )

        assert (
            "/// The greeting service.\n"
            "pub trait Greeter {\n"
            "    /// Sends a greeting.\n"
            "    fn say_hello(&self, request: HelloRequest) -> HelloReply;\n"
            "    fn stream_hellos(&self, request: HelloRequest)"
            " -> alloc::vec::Vec<HelloReply>;\n"
            "}\n"
        ) in code
