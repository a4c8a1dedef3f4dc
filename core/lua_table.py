"""
Lua Table Parser - Liest Lua-Tabellenliterale aus SavedVariables-Dateien

Tokenizer + Recursive-Descent-Parser. Der Dateiinhalt wird nie ausgeführt.
"""

import re
from typing import Any, Dict, List, Tuple


class LuaParseError(ValueError):
    """Fehler beim Parsen eines Lua-Tabellenliterals"""


class AssignmentNotFoundError(LuaParseError):
    """Die gesuchte Zuweisung existiert nicht in der Datei"""


TOKEN_PATTERNS = [
    ('NEWLINE', r'\n'),
    ('WHITESPACE', r'[ \t\r\f\v]+'),
    ('LONG_COMMENT', r'--\[(?P<cmt_level>=*)\[.*?\](?P=cmt_level)\]'),
    ('COMMENT', r'--[^\n]*'),
    ('LONG_STRING', r'\[(?P<str_level>=*)\[.*?\](?P=str_level)\]'),
    ('STRING', r'"(?:[^"\\\n]|\\.)*"|\'(?:[^\'\\\n]|\\.)*\''),
    ('NUMBER', r'0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?'),
    ('NAME', r'[A-Za-z_][A-Za-z0-9_]*'),
    ('OP', r'[=\{\}\[\],;\-]'),
    ('MISMATCH', r'.'),
]

TOKEN_REGEX = re.compile(
    '|'.join(f'(?P<{name}>{pattern})' for name, pattern in TOKEN_PATTERNS),
    re.DOTALL,
)

KEYWORDS = {'true': True, 'false': False, 'nil': None}

SIMPLE_ESCAPES = {
    'n': '\n', 't': '\t', 'r': '\r', 'a': '\a', 'b': '\b',
    'f': '\f', 'v': '\v', '\\': '\\', '"': '"', "'": "'", '\n': '\n',
}

# Token: (Typ, Wert, Zeile)
Token = Tuple[str, str, int]


def tokenize(text: str) -> List[Token]:
    """
    Zerlegt Lua-Quelltext in Tokens

    Args:
        text: Lua-Quelltext

    Returns:
        Liste von Tokens (Typ, Wert, Zeile), abgeschlossen mit EOF

    Raises:
        LuaParseError: Bei unbekannten oder nicht abgeschlossenen Tokens
    """
    tokens = []
    line = 1
    for match in TOKEN_REGEX.finditer(text):
        kind = match.lastgroup
        value = match.group(kind)
        if kind == 'NEWLINE':
            line += 1
            continue
        if kind in ('WHITESPACE', 'COMMENT', 'LONG_COMMENT'):
            line += value.count('\n')
            continue
        if kind == 'MISMATCH':
            if value in ('"', "'"):
                raise LuaParseError(f"Unterminated string on line {line}")
            raise LuaParseError(f"Unexpected character {value!r} on line {line}")
        if kind == 'NUMBER' and match.end() < len(text) and re.match(r'[A-Za-z_]', text[match.end()]):
            raise LuaParseError(f"Malformed number near {value!r} on line {line}")
        tokens.append((kind, value, line))
        line += value.count('\n')
    tokens.append(('EOF', '', line))
    return tokens


def _decode_short_string(raw: str, line: int) -> str:
    """Dekodiert Escape-Sequenzen eines "..." bzw. '...' Strings"""
    body = raw[1:-1]
    result = []
    pos = 0
    while pos < len(body):
        char = body[pos]
        if char != '\\':
            result.append(char)
            pos += 1
            continue

        pos += 1
        if pos >= len(body):
            raise LuaParseError(f"Unfinished escape sequence on line {line}")
        esc = body[pos]

        if esc in SIMPLE_ESCAPES:
            result.append(SIMPLE_ESCAPES[esc])
            pos += 1
        elif esc == 'z':
            # \z überspringt folgenden Whitespace inkl. Zeilenumbrüche
            pos += 1
            while pos < len(body) and body[pos].isspace():
                pos += 1
        elif esc == 'x':
            hex_digits = body[pos + 1:pos + 3]
            if not re.fullmatch(r'[0-9a-fA-F]{2}', hex_digits):
                raise LuaParseError(f"Invalid hex escape on line {line}")
            result.append(chr(int(hex_digits, 16)))
            pos += 3
        elif esc == 'u':
            match = re.match(r'\{([0-9a-fA-F]+)\}', body[pos + 1:])
            if not match:
                raise LuaParseError(f"Invalid unicode escape on line {line}")
            code = int(match.group(1), 16)
            if code > 0x10FFFF:
                raise LuaParseError(f"Unicode escape out of range on line {line}")
            result.append(chr(code))
            pos += 1 + match.end()
        elif esc.isdigit():
            match = re.match(r'\d{1,3}', body[pos:])
            code = int(match.group(0))
            if code > 255:
                raise LuaParseError(f"Decimal escape too large on line {line}")
            result.append(chr(code))
            pos += match.end()
        else:
            raise LuaParseError(f"Invalid escape sequence '\\{esc}' on line {line}")
    return ''.join(result)


def _decode_long_string(raw: str) -> str:
    """Entfernt die [==[ ]==] Klammern, ein führender Zeilenumbruch entfällt"""
    level = raw.index('[', 1) - 1
    body = raw[level + 2:len(raw) - level - 2]
    if body.startswith('\r\n'):
        return body[2:]
    if body.startswith('\n'):
        return body[1:]
    return body


def _convert_number(raw: str, negative: bool, line: int):
    try:
        if raw[:2] in ('0x', '0X'):
            value = int(raw, 16)
        elif any(c in raw for c in '.eE'):
            value = float(raw)
        else:
            value = int(raw)
    except ValueError:
        raise LuaParseError(f"Malformed number {raw!r} on line {line}")
    return -value if negative else value


class LuaTableParser:
    """Recursive-Descent-Parser für Lua-Zuweisungen der Form Name = Wert"""

    # Gleiche Grenze wie der Lua-Compiler (LUAI_MAXCCALLS)
    MAX_DEPTH = 200

    def __init__(self, text: str):
        self.tokens = tokenize(text)
        self.pos = 0
        self.depth = 0

    # -- Token-Hilfen -------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def _next(self) -> Token:
        token = self.tokens[self.pos]
        if token[0] != 'EOF':
            self.pos += 1
        return token

    def _is_op(self, value: str, offset: int = 0) -> bool:
        kind, text, _ = self._peek(offset)
        return kind == 'OP' and text == value

    def _expect_op(self, value: str) -> Token:
        token = self._next()
        if token[0] != 'OP' or token[1] != value:
            raise self._error(f"Expected '{value}'", token)
        return token

    @staticmethod
    def _error(message: str, token: Token) -> LuaParseError:
        kind, text, line = token
        near = 'end of input' if kind == 'EOF' else repr(text[:20])
        return LuaParseError(f"{message} near {near} on line {line}")

    # -- Grammatik ----------------------------------------------------------

    def parse_chunk(self) -> Dict[str, Any]:
        """
        Parst alle Zuweisungen der Datei

        Returns:
            Dictionary Variablenname -> konvertierter Wert
        """
        assignments = {}
        while self._peek()[0] != 'EOF':
            name_token = self._next()
            if name_token[0] != 'NAME' or name_token[1] in KEYWORDS:
                raise self._error("Expected assignment", name_token)
            self._expect_op('=')
            assignments[name_token[1]] = self.parse_value()
            if self._is_op(';'):
                self._next()
        return assignments

    def parse_value(self) -> Any:
        token = self._next()
        kind, text, line = token

        if kind == 'OP' and text == '{':
            if self.depth >= self.MAX_DEPTH:
                raise self._error(f"Table nested too deeply (more than {self.MAX_DEPTH} levels)", token)
            self.depth += 1
            try:
                return self._parse_table_body()
            finally:
                self.depth -= 1
        if kind == 'OP' and text == '-':
            number = self._next()
            if number[0] != 'NUMBER':
                raise self._error("Expected number after '-'", number)
            return _convert_number(number[1], True, number[2])
        if kind == 'NUMBER':
            return _convert_number(text, False, line)
        if kind == 'STRING':
            return _decode_short_string(text, line)
        if kind == 'LONG_STRING':
            return _decode_long_string(text)
        if kind == 'NAME' and text in KEYWORDS:
            return KEYWORDS[text]

        raise self._error("Unexpected value", token)

    def _parse_table_body(self) -> Any:
        """Parst den Inhalt einer Tabelle nach der öffnenden Klammer"""
        fields = {}
        array_index = 1

        while not self._is_op('}'):
            if self._peek()[0] == 'EOF':
                raise self._error("Unclosed table", self._peek())

            if self._is_op('['):
                self._next()
                key = self.parse_value()
                if key is None:
                    raise self._error("Table index is nil", self._peek())
                self._expect_op(']')
                self._expect_op('=')
                fields[key] = self.parse_value()
            elif (self._peek()[0] == 'NAME' and self._peek()[1] not in KEYWORDS
                  and self._is_op('=', 1)):
                key = self._next()[1]
                self._next()
                fields[key] = self.parse_value()
            else:
                fields[array_index] = self.parse_value()
                array_index += 1

            if self._is_op(',') or self._is_op(';'):
                self._next()
            elif not self._is_op('}'):
                raise self._error("Expected ',' or '}'", self._peek())

        self._expect_op('}')
        return _convert_table(fields)


def _convert_table(fields: Dict[Any, Any]) -> Any:
    """
    Wandelt eine Lua-Tabelle in dict oder list um

    Tabellen mit ausschließlich positiven Integer-Schlüsseln werden zu Listen,
    Lücken und nil-Werte werden zu None. Leere Tabellen werden zu {}.
    """
    if not fields:
        return {}

    keys = list(fields.keys())
    if all(isinstance(k, int) and not isinstance(k, bool) and k > 0 for k in keys):
        max_key = max(keys)
        # Sehr dünn besetzte Tabellen bleiben Dictionaries
        if max_key <= 2 * len(keys):
            return [fields.get(i) for i in range(1, max_key + 1)]

    return {k: v for k, v in fields.items() if v is not None}


def parse_assignments(text: str) -> Dict[str, Any]:
    """Parst alle Name = Wert Zuweisungen eines Lua-Chunks"""
    return LuaTableParser(text).parse_chunk()


def parse_assignment(text: str, name: str) -> Any:
    """
    Liefert den Wert einer einzelnen Zuweisung

    Args:
        text: Inhalt der SavedVariables-Datei
        name: Variablenname, z.B. 'BugGrabberDB'

    Returns:
        Konvertierter Wert (dict, list, str, Zahl, bool oder None)

    Raises:
        AssignmentNotFoundError: Wenn keine Zuweisung an name existiert
        LuaParseError: Bei fehlerhaftem Inhalt
    """
    assignments = parse_assignments(text)
    if name not in assignments:
        raise AssignmentNotFoundError(f"No '{name} = ...' assignment found")
    return assignments[name]
