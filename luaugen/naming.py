from google.protobuf.compiler import plugin_pb2
from luaugen.settings import (
    ALIAS_SEPARATOR,
    NAME_SEPARATOR,
    OUTPUT_FILENAME_SUFFIX,
    PATH_SEPARATOR,
    PROTO_FILENAME_SUFFIX,
)
from typing import Optional

# A fully qualified protobuf type name, always starting with the separator,
# e.g. ".demo.Outer.Inner" or ".TopLevel".
FullName = str
# A Luau `require` path, e.g. "google/protobuf/timestamp".
ModulePath = str
# A Luau local variable name, e.g. "google_protobuf_timestamp".
Alias = str


def package_prefix(package: Optional[str]) -> FullName:
    """Returns the prefix shared by every type declared in a file with the
    given package; the empty string when the file has no package.
    """
    if not package:
        return ''
    return f'{NAME_SEPARATOR}{package}'


def full_name(prefix: FullName, name: str) -> FullName:
    """Returns the fully qualified name of the type `name` declared within
    `prefix`, which is either a package prefix or the fully qualified name of
    the enclosing message.
    """
    return f'{prefix}{NAME_SEPARATOR}{name}'


def dependency_module_path(dependency: str) -> ModulePath:
    # Path separators are kept: this is what the Luau `require` resolves.
    return dependency.removesuffix(PROTO_FILENAME_SUFFIX)


def dependency_alias(dependency: str) -> Alias:
    return dependency_module_path(dependency).replace(
        PATH_SEPARATOR,
        ALIAS_SEPARATOR,
    )


def output_file_name(file_name: str) -> str:
    # Appended, not substituted, so 'foo/bar.proto' -> 'foo/bar.proto.luau'.
    return f'{file_name}{OUTPUT_FILENAME_SUFFIX}'


def format_compiler_version(
    version: Optional[plugin_pb2.Version],
) -> str:
    """Formats the protoc version from a `CodeGeneratorRequest` as
    'major.minor.patch', followed by the suffix (e.g. '-rc1') if any.

    Returns the empty string if protoc did not send its version.
    """
    if version is None:
        return ''
    return (
        f'{version.major}.{version.minor}.{version.patch}{version.suffix}'
    )
