import string

IDENT_START = set(string.ascii_letters + "_")
IDENT_CHARS = IDENT_START | set(string.digits)
NUMBER_CHARS = set(string.digits + ".")
WHITESPACE = set(" \t\r\n")

SINGLE_CHAR_TOKENS = {
    "+": "PLUS",
    "-": "MINUS",
    "*": "STAR",
    "/": "SLASH",
    "%": "PERCENT",
    "(": "LPAREN",
    ")": "RPAREN",
    ",": "COMMA",
    ";": "SEMICOLON",
}


class Token:
    def __init__(self, type, value=None, line=1, column=1):
        self.type = type
        self.value = value
        self.line = line
        self.column = column

    def __repr__(self):
        if self.value is not None:
            return f"{self.type}({self.value})"
        return f"{self.type}"


class Lexer:
    """Turns equation text into tokens.

    The lexer never fails: characters it does not recognize are dropped
    without a token or a message. Existing presets depend on this (stray
    braces, backticks and comment markers are common).
    Number runs are handed to the parser as raw text; malformed literals
    such as ``1.2.3`` are rejected there.
    """

    def __init__(self, text, line=1, column=1):
        # line/column: where text starts in the enclosing preset
        self.text = text
        self.pos = 0
        self.current_char = text[0] if text else None
        self.line = line
        self.column = column

    def advance(self):
        if self.current_char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1
        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def peek(self):
        nxt = self.pos + 1
        if nxt >= len(self.text):
            return None
        return self.text[nxt]

    def skip_whitespace(self):
        while self.current_char and self.current_char in WHITESPACE:
            self.advance()

    def read_identifier(self):
        start_line, start_col = self.line, self.column
        result = ""
        while self.current_char and self.current_char in IDENT_CHARS:
            result += self.current_char
            self.advance()
        return Token("IDENT", result, line=start_line, column=start_col)

    def read_number(self):
        # maximal run of digits and dots; "1.2.3" stays one token
        start_line, start_col = self.line, self.column
        result = ""
        while self.current_char and self.current_char in NUMBER_CHARS:
            result += self.current_char
            self.advance()
        return Token("NUMBER", result, line=start_line, column=start_col)

    def _pair(self, second, type_if_pair, type_if_single):
        # two-character operators win over their one-character prefix
        start_line, start_col = self.line, self.column
        if self.peek() == second:
            self.advance()
            self.advance()
            return Token(type_if_pair, line=start_line, column=start_col)
        if type_if_single is None:
            self.advance()
            return None
        self.advance()
        return Token(type_if_single, line=start_line, column=start_col)

    def get_next_token(self):
        while self.current_char:

            if self.current_char in WHITESPACE:
                self.skip_whitespace()
                continue

            if self.current_char in IDENT_START:
                return self.read_identifier()

            if self.current_char in NUMBER_CHARS:
                return self.read_number()

            # ==, =
            if self.current_char == "=":
                return self._pair("=", "EQEQ", "ASSIGN")

            # <=, <
            if self.current_char == "<":
                return self._pair("=", "LTE", "LT")

            # >=, >
            if self.current_char == ">":
                return self._pair("=", "GTE", "GT")

            # !=, &&, || (a lone !, & or | is dropped)
            if self.current_char == "!":
                tok = self._pair("=", "NOTEQ", None)
                if tok is not None:
                    return tok
                continue
            if self.current_char == "&":
                tok = self._pair("&", "AND", None)
                if tok is not None:
                    return tok
                continue
            if self.current_char == "|":
                tok = self._pair("|", "OR", None)
                if tok is not None:
                    return tok
                continue

            token_type = SINGLE_CHAR_TOKENS.get(self.current_char)
            if token_type is not None:
                start_line, start_col = self.line, self.column
                self.advance()
                return Token(token_type, line=start_line, column=start_col)

            # unknown character
            self.advance()

        return Token("END", line=self.line, column=self.column)

    def tokenize(self):
        tokens = []
        while True:
            tok = self.get_next_token()
            tokens.append(tok)
            if tok.type == "END":
                return tokens


def tokenize(source):
    return Lexer(source).tokenize()
