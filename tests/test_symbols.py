import pytest
from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    EnumDescriptorProto,
    EnumValueDescriptorProto,
    FileDescriptorProto,
)
from luaugen.symbols import SymbolTable, build_symbol_table


def _enum(name: str) -> EnumDescriptorProto:
    return EnumDescriptorProto(
        name=name,
        value=[EnumValueDescriptorProto(name=f'{name.upper()}_UNSPECIFIED')],
    )


def _demo_file() -> FileDescriptorProto:
    return FileDescriptorProto(
        name='demo/demo.proto',
        package='demo',
        syntax='proto3',
        message_type=[
            DescriptorProto(
                name='Outer',
                nested_type=[
                    DescriptorProto(
                        name='Inner',
                        enum_type=[_enum('Deep')],
                    ),
                ],
                enum_type=[_enum('Kind')],
            ),
            DescriptorProto(name='Other'),
        ],
        enum_type=[_enum('Status')],
    )


class TestNaming:
    def test_nested_message(self):
        symbols = build_symbol_table([_demo_file()])
        assert '.demo.Outer.Inner' in symbols
        assert symbols['.demo.Outer.Inner'].kind == 'message'
        assert symbols['.demo.Outer.Inner'].descriptor.name == 'Inner'

    def test_top_level_enum(self):
        symbols = build_symbol_table([_demo_file()])
        assert symbols['.demo.Status'].kind == 'enum'

    def test_nested_enums(self):
        symbols = build_symbol_table([_demo_file()])
        assert symbols['.demo.Outer.Kind'].kind == 'enum'
        assert symbols['.demo.Outer.Inner.Deep'].kind == 'enum'

    def test_no_package(self):
        file = FileDescriptorProto(
            name='top.proto',
            syntax='proto3',
            message_type=[DescriptorProto(name='TopLevel')],
            enum_type=[_enum('Color')],
        )
        symbols = build_symbol_table([file])
        assert list(symbols) == ['.TopLevel', '.Color']

    def test_registration_order(self):
        symbols = build_symbol_table([_demo_file()])
        assert list(symbols) == [
            '.demo.Outer',
            '.demo.Outer.Kind',
            '.demo.Outer.Inner',
            '.demo.Outer.Inner.Deep',
            '.demo.Other',
            '.demo.Status',
        ]

    def test_deeply_nested(self):
        innermost = DescriptorProto(name='D')
        for name in ['C', 'B', 'A']:
            innermost = DescriptorProto(name=name, nested_type=[innermost])
        file = FileDescriptorProto(
            name='deep.proto',
            package='x.y',
            message_type=[innermost],
        )
        symbols = build_symbol_table([file])
        assert list(symbols) == ['.x.y.A', '.x.y.A.B', '.x.y.A.B.C', '.x.y.A.B.C.D']

    def test_kinds(self):
        symbols = build_symbol_table([_demo_file()])
        assert [
            name for name, symbol in symbols.items() if symbol.kind == 'enum'
        ] == ['.demo.Outer.Kind', '.demo.Outer.Inner.Deep', '.demo.Status']


class TestIdempotency:
    def test_file_visited_twice(self):
        dependency = FileDescriptorProto(
            name='common/shared.proto',
            package='common',
            syntax='proto3',
            message_type=[
                DescriptorProto(
                    name='Shared',
                    nested_type=[DescriptorProto(name='Part')],
                ),
            ],
        )
        symbols = build_symbol_table([dependency, _demo_file(), dependency])
        assert list(symbols).count('.common.Shared') == 1
        assert list(symbols).count('.common.Shared.Part') == 1
        assert len(symbols) == 8

    def test_first_registration_wins(self):
        first = FileDescriptorProto(
            name='first.proto',
            package='demo',
            message_type=[DescriptorProto(name='Outer')],
        )
        second = FileDescriptorProto(
            name='second.proto',
            package='demo',
            message_type=[
                DescriptorProto(
                    name='Outer',
                    nested_type=[DescriptorProto(name='Inner')],
                ),
            ],
        )
        symbols = build_symbol_table([first, second])
        assert symbols['.demo.Outer'].file_name == 'first.proto'
        # The whole subtree of an already registered message is skipped.
        assert '.demo.Outer.Inner' not in symbols

    def test_enum_first_registration_wins(self):
        first = FileDescriptorProto(
            name='first.proto',
            package='demo',
            enum_type=[_enum('Status')],
        )
        second = FileDescriptorProto(
            name='second.proto',
            package='demo',
            enum_type=[_enum('Status')],
        )
        symbols = build_symbol_table([first, second])
        assert len(symbols) == 1
        assert symbols['.demo.Status'].file_name == 'first.proto'


class TestSymbolTable:
    def test_empty(self):
        symbols = build_symbol_table([])
        assert len(symbols) == 0
        assert isinstance(symbols, SymbolTable)

    def test_file_without_declarations(self):
        symbols = build_symbol_table(
            [FileDescriptorProto(name='empty.proto', package='demo')]
        )
        assert len(symbols) == 0

    def test_read_only(self):
        symbols = build_symbol_table([_demo_file()])
        with pytest.raises(TypeError):
            symbols['.demo.New'] = symbols['.demo.Outer']  # type: ignore[index]

    def test_unknown_name(self):
        symbols = build_symbol_table([_demo_file()])
        with pytest.raises(KeyError):
            symbols['.demo.Missing']

    def test_declared_in(self):
        other = FileDescriptorProto(
            name='other.proto',
            package='other',
            message_type=[DescriptorProto(name='Thing')],
        )
        symbols = build_symbol_table([other, _demo_file()])
        assert symbols.declared_in('other.proto') == ['.other.Thing']
        assert symbols.declared_in('demo/demo.proto')[0] == '.demo.Outer'
        assert len(symbols.declared_in('demo/demo.proto')) == 6
        assert symbols.declared_in('missing.proto') == []
