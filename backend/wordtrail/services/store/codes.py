"""Sequential category codes.

Codes are fixed-width strings advanced like an odometer. The symbol table
below repeats the digits and uppercase letters; a symbol always resolves
to its first position, so the effective alphabet is the 62 distinct symbols
in table order and same-width codes sort lexicographically.
"""

SYMBOL_TABLE = (
    '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'
    '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'
    'abcdefghijklmnopqrstuvwxyz'
)
ALPHABET = ''.join(dict.fromkeys(SYMBOL_TABLE))

CODE_WIDTH = 7
INITIAL_CODE = ALPHABET[0] * CODE_WIDTH


def next_code(current: str) -> str:
    """Return the code following ``current``.

    The rightmost symbol advances; a symbol at the end of the alphabet
    resets and carries left. Overflow of the leftmost position wraps.
    """
    for symbol in current:
        if symbol not in ALPHABET:
            raise ValueError(f'invalid symbol {symbol!r} in code {current!r}')
    symbols = list(current)
    for i in range(len(symbols) - 1, -1, -1):
        index = ALPHABET.index(symbols[i])
        if index < len(ALPHABET) - 1:
            symbols[i] = ALPHABET[index + 1]
            break
        symbols[i] = ALPHABET[0]
    return ''.join(symbols)


def is_valid_code(code) -> bool:
    return (
        isinstance(code, str)
        and len(code) == CODE_WIDTH
        and all(symbol in ALPHABET for symbol in code)
    )
