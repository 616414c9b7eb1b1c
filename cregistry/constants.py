"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

IDENT_SEPARATOR = ":"
INTERN_TABLE_CONTEXT_KEY = "intern_table"

LANGUAGE = "c"
DEFAULT_REGISTRY_NAME = "c"
DEFAULT_FILE_NAME = "<source>"

# Anonymous record naming
STRUCT_TAG = "struct"
UNION_TAG = "union"
ANONYMOUS_NAME_TEMPLATE = "{tag}_de_{path}"
ENCLOSING_RECORD_TEMPLATE = "{tag}_{name}"
FIELD_FRAGMENT_TEMPLATE = "de_field_{name}"
PARAM_FRAGMENT_TEMPLATE = "de_param_{name}"
VAR_FRAGMENT_TEMPLATE = "var_{name}"
TYPEDEF_FRAGMENT_TEMPLATE = "typedef_{name}"
NEST_FRAGMENT_TEMPLATE = "de_nest_{index}"
POINTER_FRAGMENT = "p"
ARRAY_FRAGMENT = "arr"
FUNCTION_RETURN_FRAGMENT = "f"
PATH_JOINER = "_"

UNNAMED_PARAM_TEMPLATE = "param{index}"

# USRs produced by the tree-sitter front end
NAMED_USR_TEMPLATE = "c:@{marker}@{name}"
TYPEDEF_NAMED_USR_TEMPLATE = "c:@{marker}A@{name}"
ANONYMOUS_USR_TEMPLATE = "c:{file}@{offset}@{marker}a"
STRUCT_USR_MARKER = "S"
UNION_USR_MARKER = "U"
ENUM_USR_MARKER = "E"

# Integer literal handling
U64_MASK = (1 << 64) - 1
HEX_LITERAL_TEMPLATE = "0x{value:X}"

# LP64 data model used by the constant evaluator
POINTER_SIZE = 8

# Registry platform specifier
PLATFORM_SEPARATOR = "-"
ANY_SPECIFIER = "any"
OTHER_SPECIFIER = "other"
ENDIAN_FIELD = "endian"
ARCH_FIELD = "arch"
OS_FIELD = "os"
LIBC_FIELD = "libc"
PLATFORM_CUSTOM_TEMPLATE = "[{value}]"
PLATFORM_MIN_PARTS = 4
PLATFORM_MAX_PARTS = 5

# JSON output
DEFAULT_JSON_INDENT = 2
