"""
Glyphs used by stringifiers when composing rendered text
"""

NULL = "□"
ELLIPSIS = "…"
DEEP = "⋯"
ERROR = "⚠"
FORBIDDEN = "⛔"
ANONYMOUS = "¤"
LAMBDA = "λ"
CYCLE = "~"

VALUE = ":"
SEPARATOR = ","
SEPARATOR2 = ", "
FLAG_SEPARATOR = "|"
MEMBER_ACCESS = "#"
NESTED_TYPE = "+"
NULLABLE = "?"
POINTER = "*"
REFERENCE = "&"

LITERAL_BEGIN = "«"
LITERAL_END = "»"
MAP_BEGIN = "{"
MAP_END = "}"
COLLECTION_BEGIN = "["
COLLECTION_END = "]"
TUPLE_BEGIN = "("
TUPLE_END = ")"
GENERIC_BEGIN = "<"
GENERIC_END = ">"
