"""Flattening of the nested message and enum declarations of a set of proto
files into one table keyed by fully qualified name.

The table follows protoc's own naming: `.demo.Outer.Inner` is the message
`Inner` nested in `Outer` in package `demo`, and `.TopLevel` is a message
declared in a file without a package.
"""
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    EnumDescriptorProto,
    FileDescriptorProto,
)
from log.log import get_logger
from luaugen.naming import FullName, full_name, package_prefix
from types import MappingProxyType
from typing import Literal, Union

logger = get_logger(__name__)

SymbolKind = Literal['message', 'enum']


@dataclass(frozen=True)
class Symbol:
    full_name: FullName
    kind: SymbolKind
    # Name of the file that first declared this symbol; the same type may
    # be seen again through another request's dependencies.
    file_name: str
    descriptor: Union[DescriptorProto, EnumDescriptorProto]


class SymbolTable(Mapping[FullName, Symbol]):
    """Read-only mapping from fully qualified name to `Symbol`.

    Iteration order is registration order, i.e. the order in which
    `build_symbol_table` visited the declarations.
    """

    def __init__(self, symbols: dict[FullName, Symbol]):
        self._symbols = MappingProxyType(dict(symbols))

    def __getitem__(self, name: FullName) -> Symbol:
        return self._symbols[name]

    def __iter__(self) -> Iterator[FullName]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        return f'SymbolTable({list(self._symbols)!r})'

    def declared_in(self, file_name: str) -> list[FullName]:
        """Returns the names of all symbols (nested ones included) that were
        registered from the file named `file_name`, in registration order.
        """
        return [
            name for name, symbol in self._symbols.items()
            if symbol.file_name == file_name
        ]


def _register(symbols: dict[FullName, Symbol], symbol: Symbol) -> bool:
    """Adds `symbol` unless its name is already taken; the first registration
    of a name always wins. Returns whether `symbol` was added.
    """
    if symbol.full_name in symbols:
        return False
    symbols[symbol.full_name] = symbol
    return True


def _collect_message(
    symbols: dict[FullName, Symbol],
    message: DescriptorProto,
    prefix: FullName,
    file_name: str,
) -> dict[FullName, Symbol]:
    message_name = full_name(prefix, message.name)

    registered = _register(
        symbols,
        Symbol(
            full_name=message_name,
            kind='message',
            file_name=file_name,
            descriptor=message,
        ),
    )
    if not registered:
        # Already visited, e.g. as part of a dependency earlier in the
        # request, so its whole subtree has been visited too.
        return symbols

    for enum in message.enum_type:
        _register(
            symbols,
            Symbol(
                full_name=full_name(message_name, enum.name),
                kind='enum',
                file_name=file_name,
                descriptor=enum,
            ),
        )

    for nested in message.nested_type:
        symbols = _collect_message(symbols, nested, message_name, file_name)

    return symbols


def _collect_file(
    symbols: dict[FullName, Symbol],
    file: FileDescriptorProto,
) -> dict[FullName, Symbol]:
    prefix = package_prefix(file.package)

    for message in file.message_type:
        symbols = _collect_message(symbols, message, prefix, file.name)

    for enum in file.enum_type:
        _register(
            symbols,
            Symbol(
                full_name=full_name(prefix, enum.name),
                kind='enum',
                file_name=file.name,
                descriptor=enum,
            ),
        )

    return symbols


def build_symbol_table(files: Iterable[FileDescriptorProto]) -> SymbolTable:
    """Builds the symbol table of every message and enum declared in `files`,
    visiting files in the given order and declarations in declaration order.

    Never fails: files without declarations simply contribute nothing.
    """
    symbols: dict[FullName, Symbol] = {}
    for file in files:
        count = len(symbols)
        symbols = _collect_file(symbols, file)
        logger.debug(
            f"Registered {len(symbols) - count} symbol(s) from '{file.name}'"
        )
    return SymbolTable(symbols)
