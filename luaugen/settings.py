# The settings below must match their equivalents, if applicable, in the
# Luau runtime support library that generated code `require`s.

# The only `syntax` we generate code for. Note that protoc reports an empty
# `syntax` for proto2 files, and "editions" for editions files.
SUPPORTED_SYNTAX = 'proto3'

# Suffix of the source files protoc hands us, stripped when deriving
# `require` paths and local aliases for dependencies.
PROTO_FILENAME_SUFFIX = '.proto'

# Appended (never substituted) to the input file name to form the output file
# name, e.g. 'foo/bar.proto' -> 'foo/bar.proto.luau'.
OUTPUT_FILENAME_SUFFIX = '.luau'

# The module every generated file binds to `local protobuf`.
RUNTIME_MODULE = 'google/protobuf'

# Separator of both the fully qualified names protoc uses for types, e.g.
# '.demo.Outer.Inner', and of package names.
NAME_SEPARATOR = '.'

# Separator of the paths protoc uses for file names, regardless of platform.
PATH_SEPARATOR = '/'

# Replaces `PATH_SEPARATOR` in the local name bound to a dependency.
ALIAS_SEPARATOR = '_'

TEMPLATE_FILENAME = 'luau.luau.j2'

# Environment variable holding the process name reported to tracing.
ENVVAR_LUAUGEN_NAME = 'LUAUGEN_NAME'

DEFAULT_PROCESS_NAME = 'protoc-gen-luau'
