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

"""Models handed to service generators: comments, services and methods."""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from google.protobuf.descriptor_pb2 import (
    MethodOptions,
    ServiceOptions,
    SourceCodeInfo,
)

INDENT = "    "

_URL_RE = re.compile(r"(?<![<(\w])(https?://[^\s<>()\[\]]+)")
_LINK_RE = re.compile(r"\[[^\[\]]*\](?:\([^)]*\)|\[[^\[\]]*\])")
_BRACKET_RE = re.compile(r"[\[\]]")


def _escape_brackets(text: str) -> str:
    return _BRACKET_RE.sub(r"\\\g<0>", text)


def sanitize_line(line: str) -> str:
    """Make a comment line safe for rustdoc.

    Bare URLs are wrapped in angle brackets and square brackets that are not
    part of a Markdown link are escaped. A leading space is inserted unless
    the line is empty or already starts with exactly one space.
    """
    line = _URL_RE.sub(r"<\1>", line)

    parts = []
    pos = 0
    for match in _LINK_RE.finditer(line):
        parts.append(_escape_brackets(line[pos : match.start()]))
        parts.append(match.group(0))
        pos = match.end()
    parts.append(_escape_brackets(line[pos:]))
    line = "".join(parts)

    if line and (line[0] != " " or line[1:2] == " "):
        line = " " + line
    return line


def _comment_lines(comment: str) -> List[str]:
    return comment.rstrip("\n").split("\n")


@dataclass
class Comments:
    """Comments attached to a schema element."""

    leading_detached: List[List[str]] = field(default_factory=list)
    leading: List[str] = field(default_factory=list)
    trailing: List[str] = field(default_factory=list)

    @classmethod
    def from_location(cls, location: SourceCodeInfo.Location) -> "Comments":
        leading_detached = [
            _comment_lines(comment) for comment in location.leading_detached_comments
        ]
        leading = []
        if location.HasField("leading_comments"):
            leading = _comment_lines(location.leading_comments)
        trailing = []
        if location.HasField("trailing_comments"):
            trailing = _comment_lines(location.trailing_comments)
        return cls(leading_detached, leading, trailing)

    def is_empty(self) -> bool:
        return not (self.leading_detached or self.leading or self.trailing)

    def append_with_indent(self, depth: int, buf: List[str]) -> None:
        """Append the comments to ``buf`` as Rust comment lines.

        Detached blocks become plain ``//`` comments separated by a blank
        line; leading and trailing comments become ``///`` doc comments.
        """
        indent = INDENT * depth
        for block in self.leading_detached:
            for line in block:
                buf.append(f"{indent}//{sanitize_line(line)}")
            buf.append("")

        for line in self.leading:
            buf.append(f"{indent}///{sanitize_line(line)}")

        if self.leading and self.trailing:
            buf.append(f"{indent}///")

        for line in self.trailing:
            buf.append(f"{indent}///{sanitize_line(line)}")


@dataclass
class Method:
    """A service method."""

    name: str
    proto_name: str
    comments: Comments
    input_type: str
    output_type: str
    input_proto_type: str
    output_proto_type: str
    options: MethodOptions
    client_streaming: bool = False
    server_streaming: bool = False

    def __repr__(self) -> str:
        return f"Method({self.proto_name}: {self.input_proto_type} -> {self.output_proto_type})"


@dataclass
class Service:
    """A service, with its methods in declaration order."""

    name: str
    proto_name: str
    package: str
    comments: Comments
    methods: List[Method]
    options: Optional[ServiceOptions] = None

    def __repr__(self) -> str:
        return f"Service({self.package}.{self.proto_name}, methods={len(self.methods)})"


__all__ = ["Comments", "INDENT", "Method", "Service", "sanitize_line"]
