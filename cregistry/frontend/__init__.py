"""C front end: tree-sitter parsing and libclang-shaped cursors."""

from .c import CFrontend, parse_translation_unit  # noqa: F401
from .cursor import Cursor, CursorKind, CursorType, SourceExtent, TypeKind  # noqa: F401
