"""
Token tables shared by the TALA lexer and parser.

Exports:
    - token_hashmap: fixed spelling → canonical token type, matched longest-first by the lexer.
    - NUMBER_SUFFIXES: every admissible numeric suffix, grouped by family.
    - UNARY_OPERATOR_TOKENS: prefix operator token types.
    - BINARY_TIERS: binary operator token types per precedence tier, loosest first.
    - SYNC_TOKENS: token types the parser resynchronizes on after a syntax error.
"""

# Punctuation and operators. Lookup is longest-match, so "~|!" wins over "~|" and "|!" over "|".
token_hashmap: dict[str, str] = {
    # Or tier
    "|": "OR",
    "|!": "OR_NOT",
    # Xor tier
    "^": "XOR",
    "^!": "XOR_NOT",
    # And tier
    "&": "AND",
    "&!": "AND_NOT",
    # Cmp tier
    "==": "EQ",
    "!=": "NE",
    "<": "LT",
    ">=": "GE",
    ">": "GT",
    "<=": "LE",
    "<=>": "CMP",
    # Bitwise tiers
    "~|": "BOR",
    "~|!": "BOR_NOT",
    "~^": "BXOR",
    "~^!": "BXOR_NOT",
    "~&": "BAND",
    "~&!": "BAND_NOT",
    # Shift tier
    "<-<": "ROTL",
    ">->": "ROTR",
    "<<": "SHL",
    ">>": "SHR",
    # Sum / Factor
    "+": "PLUS",
    "-": "SUB",
    "*": "MULT",
    "/": "DIV",
    "%": "MOD",
    # Unary
    "!": "NOT",
    "~!": "BNOT",
    "#^0": "CL0",
    "#^1": "CL1",
    "#^-": "CLS",
    "#$0": "CT0",
    "#$1": "CT1",
    "#0": "C0",
    "#1": "C1",
    "^/": "SQRT",
    # Punctuation
    "=": "ASSIGN",
    ";": "SEMI",
    ",": "COMMA",
    ":": "COLON",
    ".": "DOT",
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "->": "ARROW",
}

MAX_OPERATOR_LENGTH = max(len(k) for k in token_hashmap)

UNSIGNED_SUFFIXES = ("u8", "u16", "u32", "u64")
SIGNED_SUFFIXES = ("i8", "i16", "i32", "i64")
FLOAT_SUFFIXES = ("f32", "f64")
NUMBER_SUFFIXES = UNSIGNED_SUFFIXES + SIGNED_SUFFIXES + FLOAT_SUFFIXES

UNARY_OPERATOR_TOKENS: frozenset[str] = frozenset(
    {"NOT", "BNOT", "CL0", "CL1", "CLS", "CT0", "CT1", "C0", "C1", "SQRT"}
)

# (tier name, operator token types, associative)
BINARY_TIERS: list[tuple[str, frozenset[str], bool]] = [
    ("or", frozenset({"OR", "OR_NOT"}), True),
    ("xor", frozenset({"XOR", "XOR_NOT"}), True),
    ("and", frozenset({"AND", "AND_NOT"}), True),
    ("cmp", frozenset({"EQ", "NE", "LT", "GE", "GT", "LE", "CMP"}), False),
    ("bor", frozenset({"BOR", "BOR_NOT"}), True),
    ("bxor", frozenset({"BXOR", "BXOR_NOT"}), True),
    ("band", frozenset({"BAND", "BAND_NOT"}), True),
    ("shift", frozenset({"ROTL", "ROTR", "SHL", "SHR"}), True),
    ("sum", frozenset({"PLUS", "SUB"}), True),
    ("factor", frozenset({"MULT", "DIV", "MOD"}), True),
]

SYNC_TOKENS: frozenset[str] = frozenset(
    {"SEMI", "RPAREN", "RBRACE", "COMMA", "OR", "ARROW", "EOF"}
)

OPENING_TOKENS: frozenset[str] = frozenset({"LPAREN", "LBRACE"})
CLOSING_TOKENS: frozenset[str] = frozenset({"RPAREN", "RBRACE"})

__all__ = [
    "BINARY_TIERS",
    "CLOSING_TOKENS",
    "FLOAT_SUFFIXES",
    "MAX_OPERATOR_LENGTH",
    "NUMBER_SUFFIXES",
    "OPENING_TOKENS",
    "SIGNED_SUFFIXES",
    "SYNC_TOKENS",
    "UNARY_OPERATOR_TOKENS",
    "UNSIGNED_SUFFIXES",
    "token_hashmap",
]
