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

"""Service generator emitting one Rust trait per service."""

from typing import List

from ppsc_compiler.generators.base import ServiceGenerator, indent_lines
from ppsc_compiler.ir.ast import Method, Service


class ServiceTraitGenerator(ServiceGenerator):
    """Emits a plain Rust trait for each service.

    Streaming requests and responses are carried as vectors of messages.
    """

    def generate(self, service: Service, buf: List[str]) -> None:
        lines: List[str] = []
        service.comments.append_with_indent(0, lines)
        lines.append(f"pub trait {service.name} {{")
        for method in service.methods:
            lines.extend(indent_lines(self.generate_method(method), 1))
        lines.append("}")
        buf.extend(lines)

    def generate_method(self, method: Method) -> List[str]:
        lines: List[str] = []
        method.comments.append_with_indent(0, lines)

        request = method.input_type
        if method.client_streaming:
            request = f"alloc::vec::Vec<{request}>"
        response = method.output_type
        if method.server_streaming:
            response = f"alloc::vec::Vec<{response}>"

        lines.append(f"fn {method.name}(&self, request: {request}) -> {response};")
        return lines


__all__ = ["ServiceTraitGenerator"]
