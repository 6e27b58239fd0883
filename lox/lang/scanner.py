"""Lexical scanner for lox: converts source text into a list of Tokens terminated by an EOF token. Errors are reported
to the ErrorHandler and scanning continues, so every bad character in a source is reported at once.
"""

from lox.core.tokens import KEYWORDS, Token, TokenType
from lox.lang.error import LoxSyntaxError


class Scanner:
    SINGLE = {
        "(": TokenType.LEFT_PAREN,
        ")": TokenType.RIGHT_PAREN,
        "{": TokenType.LEFT_BRACE,
        "}": TokenType.RIGHT_BRACE,
        ",": TokenType.COMMA,
        ".": TokenType.DOT,
        "-": TokenType.MINUS,
        "+": TokenType.PLUS,
        ";": TokenType.SEMICOLON,
        ":": TokenType.COLON,
        "?": TokenType.QUESTION,
        "*": TokenType.STAR,
    }
    # char: (type if followed by '=', type otherwise)
    DOUBLE = {
        "!": (TokenType.BANG_EQUAL, TokenType.BANG),
        "=": (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
        "<": (TokenType.LESS_EQUAL, TokenType.LESS),
        ">": (TokenType.GREATER_EQUAL, TokenType.GREATER),
    }

    def __init__(self, source, error_handler, line=1):
        self.source = source
        self.error_handler = error_handler

        self.tokens = []
        self.start = 0
        self.current = 0
        self.line = line  # first line number, > 1 in command-line mode

    def scan_tokens(self):
        while not self.is_at_end():
            self.start = self.current
            self.scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line))
        return self.tokens

    def scan_token(self):
        char = self.advance()

        if char in Scanner.SINGLE:
            self.add_token(Scanner.SINGLE[char])
        elif char in Scanner.DOUBLE:
            matched, single = Scanner.DOUBLE[char]
            self.add_token(matched if self.match("=") else single)
        elif char == "/":
            if self.match("/"):
                while self.peek() != "\n" and not self.is_at_end():
                    self.advance()
            elif self.match("*"):
                self.block_comment()
            else:
                self.add_token(TokenType.SLASH)
        elif char == "\n":
            self.line += 1
        elif char.isspace():
            pass
        elif char == "\"":
            self.string()
        elif Scanner.is_digit(char):
            self.number()
        elif char.isalpha() or char == "_":
            self.identifier()
        else:
            self.error_handler.error(LoxSyntaxError(f"Unexpected character '{char}'.", line=self.line))

    def block_comment(self):
        while not (self.peek() == "*" and self.peek_next() == "/"):
            if self.is_at_end():
                self.error_handler.error(LoxSyntaxError("Unterminated block comment.", line=self.line))
                return
            if self.advance() == "\n":
                self.line += 1

        self.current += 2  # closing */

    def string(self):
        while self.peek() != "\"" and not self.is_at_end():
            if self.peek() == "\n":
                self.line += 1
            self.advance()

        if self.is_at_end():
            self.error_handler.error(LoxSyntaxError("Unterminated string.", line=self.line))
            return

        self.advance()  # closing "
        self.add_token(TokenType.STRING, self.source[self.start + 1:self.current - 1])

    def number(self):
        while Scanner.is_digit(self.peek()):
            self.advance()

        if self.peek() == "." and Scanner.is_digit(self.peek_next()):
            self.advance()
            while Scanner.is_digit(self.peek()):
                self.advance()

        self.add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self):
        while self.peek().isalnum() or self.peek() == "_":
            self.advance()

        text = self.source[self.start:self.current]
        self.add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def add_token(self, token_type, literal=None):
        self.tokens.append(Token(token_type, self.source[self.start:self.current], literal, self.line))

    def advance(self):
        self.current += 1
        return self.source[self.current - 1]

    def match(self, expected):
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self):
        return "" if self.is_at_end() else self.source[self.current]

    def peek_next(self):
        return "" if self.current + 1 >= len(self.source) else self.source[self.current + 1]

    def is_at_end(self):
        return self.current >= len(self.source)

    @staticmethod
    def is_digit(char):
        return "0" <= char <= "9" and len(char) == 1
