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

"""Base classes for code generators."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ppsc_compiler.ir.ast import INDENT, Service

logger = logging.getLogger(__name__)


@dataclass
class GeneratedFile:
    """A generated source file."""

    path: str
    content: str


def indent_lines(lines: List[str], level: int) -> List[str]:
    """Indent a list of lines by the given level, leaving blank lines empty."""
    prefix = INDENT * level
    return [f"{prefix}{line}" if line else line for line in lines]


def write_file_if_changed(path: Path, content: str) -> bool:
    """Write ``content`` to ``path`` unless the file already holds it.

    Returns True if the file was written.
    """
    try:
        if path.read_text() == content:
            logger.debug("unchanged: %s", path)
            return False
    except FileNotFoundError:
        pass
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("writing: %s", path)
    path.write_text(content)
    return True


class ServiceGenerator(ABC):
    """Emits code for Protobuf services.

    ``generate`` is called for every service of a file, ``finalize`` once
    after the services of each file, and ``finalize_package`` once per
    output module that contained services, after all files were generated.
    Generated lines are appended to ``buf``.
    """

    @abstractmethod
    def generate(self, service: Service, buf: List[str]) -> None:
        """Generate the code for a single service."""
        pass

    def finalize(self, buf: List[str]) -> None:
        """Finalize the services of a file."""
        pass

    def finalize_package(self, package: str, buf: List[str]) -> None:
        """Finalize the services of a package."""
        pass


__all__ = [
    "GeneratedFile",
    "ServiceGenerator",
    "indent_lines",
    "write_file_if_changed",
    "INDENT",
]
