#!/usr/bin/env python3
"""
protoc-gen-luau: a protoc plugin that generates Luau modules for proto3 files.

Code is generated for every file in the request's `proto_file`, dependencies
included, and the request fails as a whole if any of them is not proto3. Note
that this includes `google/protobuf/descriptor.proto`, for which protoc reports
an empty `syntax`: a file that imports it can't be generated.
"""
import copy
import logging
import luaugen.tracing
import os
import sys
from collections.abc import Iterable
from dataclasses import dataclass, is_dataclass
from google.protobuf.compiler import plugin_pb2
from google.protobuf.descriptor_pb2 import FileDescriptorProto
from google.protobuf.message import DecodeError
from log.log import get_logger
from luaugen.naming import (
    Alias,
    FullName,
    ModulePath,
    dependency_alias,
    dependency_module_path,
    format_compiler_version,
    output_file_name,
)
from luaugen.settings import (
    RUNTIME_MODULE,
    SUPPORTED_SYNTAX,
    TEMPLATE_FILENAME,
)
from luaugen.symbols import SymbolTable, build_symbol_table
from pyprotoc_plugin.helpers import (  # type: ignore[import]
    add_template_path,
    load_template,
)
from pyprotoc_plugin.plugins import ProtocPlugin  # type: ignore[import]
from typing import Any, BinaryIO, Optional

logger = get_logger(__name__)

# NOTE: we need to add the template path so we can test
# `LuauProtocPlugin` even when we're not '__main__'.
add_template_path(os.path.join(os.path.dirname(__file__), 'templates'))


class UserProtoError(Exception):
    """Exception raised in case of a malformed user-provided proto file."""
    pass


class UnsupportedSyntaxError(UserProtoError):
    """Exception raised for a proto file whose `syntax` we can't generate
    code for."""

    def __init__(self, *, expected: str, found: str):
        super().__init__(
            f"Unsupported syntax - expected '{expected}', got '{found}'"
        )
        self.expected = expected
        self.found = found


class MalformedRequestError(Exception):
    """Exception raised when what protoc sent us is not a
    `CodeGeneratorRequest`. There is no response to report it in."""
    pass


def asdict_omit_private_fields(name: str, obj: Any) -> Any:
    if obj is None:
        return None

    if isinstance(obj, dict):
        return {
            asdict_omit_private_fields(name=f"{name}.keys[?]", obj=k):
                asdict_omit_private_fields(name=f"{name}.values[?]", obj=v)
            for k, v in obj.items()
        }

    if isinstance(obj, Iterable) and not isinstance(obj, str):
        return [
            asdict_omit_private_fields(name=f"{name}[?]", obj=v) for v in obj
        ]

    if not is_dataclass(obj):
        # Templates only get primitives, lists and dicts; anything else is a
        # bug in the template data.
        if not isinstance(obj, int) and not isinstance(obj, str):
            raise AssertionError(
                f"Unexpected template data field type: '{name}' is a "
                f"'{type(obj)}'"
            )
        return copy.deepcopy(obj)

    return {
        k: asdict_omit_private_fields(name=f"{name}.{k}", obj=v)
        for k, v in obj.__dict__.items()
        if not k.startswith("_")
    }


@dataclass
class LuauDependency:
    # Local name the dependency is bound to, e.g. 'google_protobuf_timestamp'.
    alias: Alias
    # What gets `require`d, e.g. 'google/protobuf/timestamp'.
    module_path: ModulePath


@dataclass
class LuauFile:
    file_name: str
    runtime_module: ModulePath
    dependencies: list[LuauDependency]
    # Fully qualified names of all messages and enums declared in the file,
    # nested ones included, for templates that emit declarations.
    messages_and_enums: list[FullName]

    # Private fields are used only within the plugin, they are not passed to the
    # template.
    _descriptor: FileDescriptorProto


@dataclass(frozen=True)
class GeneratedFile:
    name: str
    content: str


def check_syntax(file: FileDescriptorProto) -> None:
    # NOTE: protoc sends an empty `syntax` for proto2 files, which we
    # report as-is.
    if file.syntax != SUPPORTED_SYNTAX:
        raise UnsupportedSyntaxError(
            expected=SUPPORTED_SYNTAX,
            found=file.syntax,
        )


def template_data(file: FileDescriptorProto, symbols: SymbolTable) -> LuauFile:
    return LuauFile(
        file_name=file.name,
        runtime_module=RUNTIME_MODULE,
        dependencies=[
            LuauDependency(
                alias=dependency_alias(dependency),
                module_path=dependency_module_path(dependency),
            ) for dependency in file.dependency
        ],
        messages_and_enums=symbols.declared_in(file.name),
        _descriptor=file,
    )


def template_render(data: LuauFile) -> str:
    template = load_template(
        TEMPLATE_FILENAME,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    return template.render(
        asdict_omit_private_fields(
            name='template_data',
            obj=data,
        )
    )


def generate_file(
    file: FileDescriptorProto,
    symbols: SymbolTable,
) -> GeneratedFile:
    """Generates the Luau module for `file`.

    Raises `UnsupportedSyntaxError` if `file` is not a proto3 file.
    """
    check_syntax(file)

    return GeneratedFile(
        name=output_file_name(file.name),
        content=template_render(template_data(file, symbols)),
    )


class LuauProtocPlugin(ProtocPlugin):

    def __init__(
        self,
        request: plugin_pb2.CodeGeneratorRequest,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or get_logger(type(self).__name__)
        self.request = request
        self.response = plugin_pb2.CodeGeneratorResponse()

        self.protoc_version = format_compiler_version(
            request.compiler_version
            if request.HasField('compiler_version') else None
        )

        # Built once, over every file protoc sent (including dependencies of
        # the files to generate), and only read from then on.
        self.symbols = build_symbol_table(request.proto_file)

    def process_file(self, file_proto: FileDescriptorProto) -> None:
        with luaugen.tracing.span(f"generate_file({file_proto.name})"):
            try:
                generated_file = generate_file(file_proto, self.symbols)
            except UserProtoError as error:
                raise UserProtoError(
                    f"Error processing '{file_proto.name}': {error}"
                ) from error

        self.response.file.add(
            name=generated_file.name,
            content=generated_file.content,
        )
        self.logger.debug(f"Generated '{generated_file.name}'")

    def process(self) -> None:
        """Generates one file per proto file in the request, in request
        order, into `self.response`.

        Fails as a whole: on the first file that can't be generated the
        response carries only the error, and none of the files.
        """
        self.logger.debug(
            f"Processing {len(self.request.proto_file)} file(s) from protoc "
            f"'{self.protoc_version}' with parameter "
            f"'{self.request.parameter}'; {len(self.symbols)} symbol(s) known"
        )

        self.response.supported_features = (
            plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
        )

        try:
            for file_proto in self.request.proto_file:
                self.process_file(file_proto)
        except UserProtoError as error:
            # protoc treats a set `error` as a failure of the whole run and
            # shows it to the user, so we log it only for debugging.
            self.logger.debug(f"Generation failed: {error}")
            del self.response.file[:]
            self.response.error = str(error)

    @staticmethod
    def read_request(input: BinaryIO) -> plugin_pb2.CodeGeneratorRequest:
        request = plugin_pb2.CodeGeneratorRequest()
        try:
            request.ParseFromString(input.read())
        except DecodeError as error:
            raise MalformedRequestError(
                f"Failed to parse the request from protoc: {error}"
            ) from error
        return request

    @classmethod
    def execute(
        cls,
        input: Optional[BinaryIO] = None,
        output: Optional[BinaryIO] = None,
        **kwargs,
    ) -> None:
        """Reads the request from `input` (default: stdin), processes it and
        writes the response to `output` (default: stdout).

        Raises `MalformedRequestError`, without writing anything, if the
        request can't be parsed.
        """
        if input is None:
            input = sys.stdin.buffer
        if output is None:
            output = sys.stdout.buffer

        plugin = cls(cls.read_request(input), **kwargs)
        plugin.process()

        output.write(plugin.response.SerializeToString())
        output.flush()


# This is a separate function (rather than just being in `__main__`) so that we
# can refer to it as a `script` in our `pyproject.toml`.
@luaugen.tracing.main_span("protoc_gen_luau")
def main() -> int:
    if sys.stdin.isatty():
        print(
            "protoc-gen-luau is a protoc plugin, it is not intended for "
            "direct use.\n"
            "\n"
            "Usage:\n"
            "  protoc --plugin=protoc-gen-luau=$(which protoc-gen-luau) \\\n"
            "         --luau_out=./gen \\\n"
            "         your_file.proto",
            file=sys.stderr,
        )
        return 1

    try:
        LuauProtocPlugin.execute()
    except MalformedRequestError as error:
        logger.error(f"{error}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
