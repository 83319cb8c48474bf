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

"""CLI entry point for the ppsc compiler."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from google.protobuf.descriptor_pb2 import FileDescriptorSet
from google.protobuf.message import DecodeError

from ppsc_compiler.config import Config
from ppsc_compiler.error import CompilerError
from ppsc_compiler.generators import SERVICE_GENERATORS


def split_pair(value: str) -> Tuple[str, str]:
    """Split a ``KEY=VALUE`` argument."""
    key, sep, rest = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key, rest


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ppsc",
        description="Protobuf to Rust compiler for Parity SCALE codec types",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    compile_parser = subparsers.add_parser(
        "compile",
        help="Compile .proto files or a descriptor set to Rust code",
    )

    compile_parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        metavar="FILE",
        help=".proto files to compile with protoc",
    )

    compile_parser.add_argument(
        "--descriptor-set",
        type=Path,
        default=None,
        metavar="FILE",
        help="Compile a serialized FileDescriptorSet instead of running protoc",
    )

    compile_parser.add_argument(
        "--out-dir",
        "-o",
        type=Path,
        default=None,
        help="Output directory. Default: $OUT_DIR",
    )

    compile_parser.add_argument(
        "-I",
        "--proto_path",
        dest="import_paths",
        action="append",
        type=Path,
        default=[],
        metavar="PATH",
        help="Add a directory to the protoc import search path. Can be specified multiple times.",
    )

    compile_parser.add_argument(
        "--btree-map",
        action="append",
        default=[],
        metavar="PATH",
        help="Use BTreeMap for map fields matching PATH",
    )

    compile_parser.add_argument(
        "--bytes",
        action="append",
        default=[],
        metavar="PATH",
        help="Use Bytes for bytes fields matching PATH",
    )

    compile_parser.add_argument(
        "--boxed",
        action="append",
        default=[],
        metavar="PATH",
        help="Box message fields matching PATH",
    )

    for flag, noun in [
        ("--type-attribute", "messages, enums and oneofs"),
        ("--message-attribute", "messages"),
        ("--enum-attribute", "enums and oneofs"),
        ("--field-attribute", "fields and enum values"),
    ]:
        compile_parser.add_argument(
            flag,
            action="append",
            type=split_pair,
            default=[],
            metavar="PATH=ATTR",
            help=f"Add ATTR to {noun} matching PATH",
        )

    compile_parser.add_argument(
        "--extern-path",
        action="append",
        type=split_pair,
        default=[],
        metavar="PROTO=RUST",
        help="Use the existing Rust path RUST for the Protobuf path PROTO",
    )

    compile_parser.add_argument(
        "--disable-comments",
        action="append",
        default=[],
        metavar="PATH",
        help="Omit doc comments for declarations matching PATH",
    )

    compile_parser.add_argument(
        "--skip-debug",
        action="append",
        default=[],
        metavar="PATH",
        help="Do not derive Debug for declarations matching PATH",
    )

    compile_parser.add_argument(
        "--retain-enum-prefix",
        action="store_true",
        help="Keep the enum name prefix on variant names",
    )

    compile_parser.add_argument(
        "--enable-type-names",
        action="store_true",
        help="Emit NAME, PACKAGE, full_name() and type_url() for messages",
    )

    compile_parser.add_argument(
        "--type-name-domain",
        action="append",
        type=split_pair,
        default=[],
        metavar="PATH=DOMAIN",
        help="Type URL domain for messages matching PATH",
    )

    compile_parser.add_argument(
        "--default-package-filename",
        type=str,
        default="_",
        metavar="NAME",
        help="File name for files without a package. Default: _",
    )

    compile_parser.add_argument(
        "--include-file",
        type=Path,
        default=None,
        metavar="NAME",
        help="Also write an include file for all generated modules",
    )

    compile_parser.add_argument(
        "--service-generator",
        type=str,
        default=None,
        choices=sorted(SERVICE_GENERATORS),
        help="Generate code for services with the given generator",
    )

    compile_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every generated declaration",
    )

    return parser.parse_args(args)


def build_config(args: argparse.Namespace) -> Config:
    """Translate parsed arguments into a Config."""
    config = Config()
    if args.out_dir is not None:
        config.out_dir(args.out_dir)
    if args.btree_map:
        config.btree_map(args.btree_map)
    if args.bytes:
        config.bytes(args.bytes)
    for path in args.boxed:
        config.boxed(path)
    for path, attribute in args.type_attribute:
        config.type_attribute(path, attribute)
    for path, attribute in args.message_attribute:
        config.message_attribute(path, attribute)
    for path, attribute in args.enum_attribute:
        config.enum_attribute(path, attribute)
    for path, attribute in args.field_attribute:
        config.field_attribute(path, attribute)
    for proto_path, rust_path in args.extern_path:
        config.extern_path(proto_path, rust_path)
    if args.disable_comments:
        config.disable_comments(args.disable_comments)
    if args.skip_debug:
        config.skip_debug(args.skip_debug)
    if args.retain_enum_prefix:
        config.retain_enum_prefix()
    if args.enable_type_names:
        config.enable_type_names()
    for path, domain in args.type_name_domain:
        config.type_name_domain([path], domain)
    config.default_package_filename(args.default_package_filename)
    if args.include_file is not None:
        config.include_file(args.include_file)
    if args.service_generator is not None:
        config.service_generator(SERVICE_GENERATORS[args.service_generator]())
    return config


def load_descriptor_set(path: Path) -> FileDescriptorSet:
    fds = FileDescriptorSet()
    try:
        fds.ParseFromString(path.read_bytes())
    except DecodeError as e:
        raise CompilerError(f"{path}: not a serialized FileDescriptorSet: {e}") from e
    return fds


def cmd_compile(args: argparse.Namespace) -> int:
    """Handle the compile command."""
    if args.descriptor_set is None and not args.files:
        print("Error: No input files.", file=sys.stderr)
        print("Pass .proto files or --descriptor-set FILE.", file=sys.stderr)
        return 1

    for file_path in args.files:
        if not file_path.exists():
            print(f"Error: File not found: {file_path}", file=sys.stderr)
            return 1

    try:
        config = build_config(args)
        if args.descriptor_set is not None:
            print(f"Compiling {args.descriptor_set}...")
            fds = load_descriptor_set(args.descriptor_set)
        else:
            print(f"Compiling {', '.join(str(p) for p in args.files)}...")
            import_paths = args.import_paths or sorted({p.parent for p in args.files})
            fds = config.load_fds(args.files, import_paths)
        paths = config.compile_fds(fds)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except CompilerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for path in paths:
        print(f"  Generated: {path}")
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    if parsed.command is None:
        print("Usage: ppsc <command> [options]", file=sys.stderr)
        print("Commands: compile", file=sys.stderr)
        print("Use 'ppsc <command> --help' for more information", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if parsed.command == "compile":
        return cmd_compile(parsed)

    return 0


if __name__ == "__main__":
    sys.exit(main())
