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

"""protoc plugin entry point, installed as ``protoc-gen-ppsc``.

Usage::

    protoc --ppsc_out=src/generated --ppsc_opt=btree_map=.,include_file=mod.rs foo.proto
"""

import sys
from typing import List, Tuple

from google.protobuf.compiler import plugin_pb2
from google.protobuf.descriptor_pb2 import FileDescriptorSet

from ppsc_compiler.config import Config
from ppsc_compiler.error import CompilerError, ConfigError
from ppsc_compiler.generators import SERVICE_GENERATORS


def parse_parameter(parameter: str) -> List[Tuple[str, str]]:
    """Split a plugin parameter into (key, value) options.

    Options are separated by commas. Everything after the first ``=`` of an
    option is its value, so ``extern_path=.foo=::foo`` has the key
    ``extern_path`` and the value ``.foo=::foo``.
    """
    options = []
    for option in parameter.split(","):
        option = option.strip()
        if not option:
            continue
        key, _, value = option.partition("=")
        options.append((key.strip(), value.strip()))
    return options


def build_config(parameter: str) -> Config:
    config = Config()
    btree_map: List[str] = []
    bytes_paths: List[str] = []
    disable_comments: List[str] = []
    skip_debug: List[str] = []

    for key, value in parse_parameter(parameter):
        if key == "btree_map":
            btree_map.append(value or ".")
        elif key == "bytes":
            bytes_paths.append(value or ".")
        elif key == "boxed":
            config.boxed(value)
        elif key == "disable_comments":
            disable_comments.append(value or ".")
        elif key == "skip_debug":
            skip_debug.append(value or ".")
        elif key == "extern_path":
            proto_path, sep, rust_path = value.partition("=")
            if not sep:
                raise ConfigError(f"extern_path expects PROTO=RUST, got {value!r}")
            config.extern_path(proto_path, rust_path)
        elif key == "retain_enum_prefix":
            config.retain_enum_prefix()
        elif key == "enable_type_names":
            config.enable_type_names()
        elif key == "default_package_filename":
            config.default_package_filename(value)
        elif key == "include_file":
            config.include_file(value)
        elif key == "service_generator":
            if value not in SERVICE_GENERATORS:
                raise ConfigError(f"unknown service generator: {value!r}")
            config.service_generator(SERVICE_GENERATORS[value]())
        else:
            raise ConfigError(f"unknown plugin option: {key!r}")

    if btree_map:
        config.btree_map(btree_map)
    if bytes_paths:
        config.bytes(bytes_paths)
    if disable_comments:
        config.disable_comments(disable_comments)
    if skip_debug:
        config.skip_debug(skip_debug)
    # The include file is written next to the modules, by protoc.
    config.out_dir(".")
    return config


def generate(
    request: plugin_pb2.CodeGeneratorRequest,
) -> plugin_pb2.CodeGeneratorResponse:
    """Generate Rust code for the files named in ``request``."""
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = (
        plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    )

    to_generate = set(request.file_to_generate)
    fds = FileDescriptorSet()
    fds.file.extend(f for f in request.proto_file if f.name in to_generate)

    try:
        config = build_config(request.parameter)
        files, _ = config.generate_files(fds)
    except CompilerError as e:
        response.error = str(e)
        return response

    for file in files:
        response.file.add(name=file.path, content=file.content)
    return response


def main() -> None:
    request = plugin_pb2.CodeGeneratorRequest()
    request.ParseFromString(sys.stdin.buffer.read())
    response = generate(request)
    sys.stdout.buffer.write(response.SerializeToString())


if __name__ == "__main__":
    main()
