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

"""Configuration and driver for generating Rust code from Protobuf files."""

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from google.protobuf.descriptor_pb2 import FileDescriptorProto, FileDescriptorSet

from ppsc_compiler.context import Context
from ppsc_compiler.error import CompileError, ConfigError
from ppsc_compiler.extern_paths import ExternPaths
from ppsc_compiler.generators.base import (
    INDENT,
    GeneratedFile,
    ServiceGenerator,
    write_file_if_changed,
)
from ppsc_compiler.generators.rust import CodeGenerator
from ppsc_compiler.ir.types import BytesType, MapType
from ppsc_compiler.message_graph import MessageGraph
from ppsc_compiler.module import Module
from ppsc_compiler.path import PathMap

logger = logging.getLogger(__name__)

GENERATED_HEADER = "// This file is @generated by ppsc-compiler."
CODEC_PREAMBLE = [
    "extern crate alloc;",
    "use parity_scale_codec::{Encode, Decode};",
    "",
]

PathLike = Union[str, os.PathLike]


class Config:
    """Configuration options for Protobuf code generation.

    Options are set through chainable builder methods. Most options take
    path selectors: ``.`` matches everything, a path starting with ``.``
    matches that fully-qualified name and everything nested below it, and
    any other path matches fully-qualified names ending with it.
    """

    def __init__(self):
        self.map_type: PathMap[MapType] = PathMap()
        self.bytes_type: PathMap[BytesType] = PathMap()
        self.type_attributes: PathMap[str] = PathMap()
        self.message_attributes: PathMap[str] = PathMap()
        self.enum_attributes: PathMap[str] = PathMap()
        self.field_attributes: PathMap[str] = PathMap()
        self.boxed_paths: PathMap[bool] = PathMap()
        self.disable_comments_paths: PathMap[bool] = PathMap()
        self.skip_debug_paths: PathMap[bool] = PathMap()
        self.type_name_domains: PathMap[str] = PathMap()
        self.extern_paths: List[Tuple[str, str]] = []
        self.service_gen: Optional[ServiceGenerator] = None
        self.strip_enum_prefix = True
        self.type_names_enabled = False
        self.out_dir_path: Optional[Path] = None
        self.default_package_file = "_"
        self.include_file_path: Optional[Path] = None
        self.protoc_args: List[str] = []

    # Builder

    def btree_map(self, paths: Iterable[str]) -> "Config":
        """Request an ordered map for matching map fields.

        Every map field is generated as ``alloc::collections::BTreeMap``.
        """
        self.map_type.clear()
        for path in paths:
            self.map_type.insert(path, MapType.BTREE_MAP)
        return self

    def bytes(self, paths: Iterable[str]) -> "Config":
        """Generate ``Bytes`` instead of ``Vec<u8>`` for matching bytes fields."""
        self.bytes_type.clear()
        for path in paths:
            self.bytes_type.insert(path, BytesType.BYTES)
        return self

    def field_attribute(self, path: str, attribute: str) -> "Config":
        self.field_attributes.insert(path, attribute)
        return self

    def type_attribute(self, path: str, attribute: str) -> "Config":
        """Add an attribute to matching messages, enums and oneofs."""
        self.type_attributes.insert(path, attribute)
        return self

    def message_attribute(self, path: str, attribute: str) -> "Config":
        self.message_attributes.insert(path, attribute)
        return self

    def enum_attribute(self, path: str, attribute: str) -> "Config":
        """Add an attribute to matching enums and oneofs."""
        self.enum_attributes.insert(path, attribute)
        return self

    def boxed(self, path: str) -> "Config":
        """Store matching message fields behind ``Box``."""
        self.boxed_paths.insert(path, True)
        return self

    def service_generator(self, service_generator: ServiceGenerator) -> "Config":
        self.service_gen = service_generator
        return self

    def disable_comments(self, paths: Iterable[str]) -> "Config":
        """Do not emit doc comments for matching declarations."""
        self.disable_comments_paths.clear()
        for path in paths:
            self.disable_comments_paths.insert(path, True)
        return self

    def skip_debug(self, paths: Iterable[str]) -> "Config":
        """Do not derive ``Debug`` for matching messages, enums and oneofs."""
        self.skip_debug_paths.clear()
        for path in paths:
            self.skip_debug_paths.insert(path, True)
        return self

    def extern_path(self, proto_path: str, rust_path: str) -> "Config":
        """Use an existing Rust type for a Protobuf package or type.

        Declarations matching ``proto_path`` are not generated and every
        reference to them resolves below ``rust_path``.
        """
        self.extern_paths.append((proto_path, rust_path))
        return self

    def retain_enum_prefix(self) -> "Config":
        """Keep the enum name prefix on variant names."""
        self.strip_enum_prefix = False
        return self

    def enable_type_names(self) -> "Config":
        """Emit ``NAME``, ``PACKAGE``, ``full_name`` and ``type_url`` for messages."""
        self.type_names_enabled = True
        return self

    def type_name_domain(self, paths: Iterable[str], domain: str) -> "Config":
        for path in paths:
            self.type_name_domains.insert(path, domain)
        return self

    def out_dir(self, path: PathLike) -> "Config":
        self.out_dir_path = Path(path)
        return self

    def default_package_filename(self, filename: str) -> "Config":
        """File name (without extension) for files without a package."""
        self.default_package_file = filename
        return self

    def include_file(self, path: PathLike) -> "Config":
        """Also write a file including every generated module, relative to
        the output directory."""
        self.include_file_path = Path(path)
        return self

    def protoc_arg(self, arg: str) -> "Config":
        self.protoc_args.append(arg)
        return self

    # Generation

    def generate(
        self, requests: Sequence[Tuple[Module, FileDescriptorProto]]
    ) -> Dict[Module, str]:
        """Generate code for a set of files, grouped by output module.

        Returns a dict, in first-seen module order, mapping each module
        with generated code to its source text.
        """
        message_graph = MessageGraph(file for _, file in requests)
        extern_paths = ExternPaths(self.extern_paths)
        context = Context(self, message_graph, extern_paths)

        modules: Dict[Module, List[str]] = {}
        packages: Dict[Module, str] = {}

        for module, file in requests:
            # Only packages with services are finalized.
            if file.service:
                packages.setdefault(module, file.package)
            buf = modules.setdefault(module, [])
            CodeGenerator.generate(context, file, buf)
            if not buf:
                logger.debug("no code generated for %s", file.name)
                del modules[module]

        if self.service_gen is not None:
            for module, package in packages.items():
                buf = modules.setdefault(module, [])
                self.service_gen.finalize_package(package, buf)
                if not buf:
                    del modules[module]

        return {
            module: "\n".join([GENERATED_HEADER] + CODEC_PREAMBLE + buf) + "\n"
            for module, buf in modules.items()
        }

    def write_includes(
        self,
        modules: Iterable[Module],
        basepath: Optional[Path],
        file_names: Dict[Module, str],
    ) -> str:
        """Build the include file nesting every module's file in ``pub mod``
        blocks that mirror the package hierarchy."""
        lines: List[str] = []
        stack: List[str] = []

        for module in sorted(modules):
            while not module.starts_with(stack):
                stack.pop()
                lines.append(f"{INDENT * len(stack)}}}")
            while len(stack) < len(module):
                part = module.part(len(stack))
                lines.append(f"{INDENT * len(stack)}pub mod {part} {{")
                stack.append(part)

            file_name = file_names[module]
            if basepath is not None:
                include = f'include!("{file_name}");'
            else:
                include = f'include!(concat!(env!("OUT_DIR"), "/{file_name}"));'
            lines.append(f"{INDENT * len(stack)}{include}")

        for depth in reversed(range(len(stack))):
            lines.append(f"{INDENT * depth}}}")

        return "".join(f"{line}\n" for line in lines)

    def generate_files(self, fds: FileDescriptorSet) -> Tuple[List[GeneratedFile], bool]:
        """Generate the module files, and the include file when configured.

        Returns the files, with paths relative to the output directory, and
        whether the output directory is taken from ``$OUT_DIR``.
        """
        target_is_env = self.out_dir_path is None
        requests = [
            (Module.from_protobuf_package_name(file.package), file) for file in fds.file
        ]
        file_names = {
            module: module.to_file_name_or(self.default_package_file)
            for module, _ in requests
        }

        modules = self.generate(requests)
        files = [
            GeneratedFile(path=file_names[module], content=content)
            for module, content in modules.items()
        ]

        if self.include_file_path is not None:
            basepath = None if target_is_env else self.out_dir_path
            content = f"{GENERATED_HEADER}\n" + self.write_includes(
                modules.keys(), basepath, file_names
            )
            files.append(GeneratedFile(path=str(self.include_file_path), content=content))

        return files, target_is_env

    def compile_fds(self, fds: FileDescriptorSet) -> List[Path]:
        """Generate code for a descriptor set and write it to the output
        directory. Files whose content is unchanged are not rewritten.

        Returns the paths of all generated files.
        """
        target = self.out_dir_path
        if target is None:
            out_dir = os.environ.get("OUT_DIR")
            if not out_dir:
                raise ConfigError("OUT_DIR environment variable is not set")
            target = Path(out_dir)

        files, _ = self.generate_files(fds)
        paths = []
        for file in files:
            path = target / file.path
            write_file_if_changed(path, file.content)
            paths.append(path)
        return paths

    def load_fds(
        self, protos: Sequence[PathLike], includes: Sequence[PathLike]
    ) -> FileDescriptorSet:
        """Run protoc over ``protos`` and return the parsed descriptor set."""
        protoc = os.environ.get("PROTOC", "protoc")
        with tempfile.TemporaryDirectory() as tmp_dir:
            descriptor_path = Path(tmp_dir) / "ppsc-descriptor-set.bin"
            cmd = [
                protoc,
                "--include_imports",
                "--include_source_info",
                f"--descriptor_set_out={descriptor_path}",
            ]
            for include in includes:
                cmd.extend(["-I", str(include)])
            cmd.extend(self.protoc_args)
            cmd.extend(str(proto) for proto in protos)

            logger.debug("running: %s", " ".join(cmd))
            try:
                subprocess.run(cmd, check=True, capture_output=True)
            except FileNotFoundError as e:
                raise CompileError(
                    f"Could not find `{protoc}`. Install the Protocol Buffers "
                    "compiler or set the PROTOC environment variable."
                ) from e
            except subprocess.CalledProcessError as e:
                raise CompileError(
                    f"protoc failed with exit status {e.returncode}",
                    e.stderr.decode("utf-8", errors="replace"),
                ) from e

            fds = FileDescriptorSet()
            fds.ParseFromString(descriptor_path.read_bytes())
        return fds

    def compile_protos(
        self, protos: Sequence[PathLike], includes: Sequence[PathLike]
    ) -> List[Path]:
        """Compile ``.proto`` files with protoc and write the Rust code."""
        return self.compile_fds(self.load_fds(protos, includes))


def compile_protos(
    protos: Sequence[PathLike], includes: Sequence[PathLike]
) -> List[Path]:
    """Compile ``.proto`` files with the default configuration."""
    return Config().compile_protos(protos, includes)


def compile_fds(fds: FileDescriptorSet) -> List[Path]:
    """Compile a descriptor set with the default configuration."""
    return Config().compile_fds(fds)


__all__ = [
    "Config",
    "compile_protos",
    "compile_fds",
    "GENERATED_HEADER",
    "CODEC_PREAMBLE",
]
