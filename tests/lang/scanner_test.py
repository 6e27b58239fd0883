import io
import unittest
from contextlib import redirect_stderr

from lox.core.tokens import TokenType
from lox.lang.error import ErrorHandler
from lox.lang.scanner import Scanner


def scan(source, line=1):
    error_handler = ErrorHandler(fatal=False)
    with redirect_stderr(io.StringIO()):
        tokens = Scanner(source, error_handler, line).scan_tokens()
    return tokens, error_handler


def types(source):
    tokens, __ = scan(source)
    return [token.type for token in tokens]


class ScannerTestCase(unittest.TestCase):

    def test_punctuation_and_operators(self):
        expected = [
            TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN, TokenType.LEFT_BRACE, TokenType.RIGHT_BRACE, TokenType.COMMA,
            TokenType.DOT, TokenType.SEMICOLON, TokenType.COLON, TokenType.QUESTION, TokenType.MINUS, TokenType.PLUS,
            TokenType.STAR, TokenType.SLASH, TokenType.BANG, TokenType.BANG_EQUAL, TokenType.EQUAL,
            TokenType.EQUAL_EQUAL, TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL,
            TokenType.EOF,
        ]
        self.assertEqual(expected, types("(){},.;:?-+*/! != = == > >= < <="))

    def test_keywords_and_identifiers(self):
        tokens, __ = scan("var fun class this nil orchid _x1")
        self.assertEqual([TokenType.VAR, TokenType.FUN, TokenType.CLASS, TokenType.THIS, TokenType.NIL,
                          TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.EOF], [token.type for token in tokens])
        self.assertEqual("orchid", tokens[5].lexeme)

    def test_literals(self):
        tokens, __ = scan("12 3.5 \"hi there\" 4.")
        self.assertEqual([12.0, 3.5, "hi there", 4.0], [token.literal for token in tokens[:4]])
        self.assertIsInstance(tokens[0].literal, float)
        self.assertEqual(TokenType.DOT, tokens[4].type)  # trailing dot is not part of the number

    def test_comments(self):
        self.assertEqual([TokenType.NUMBER, TokenType.NUMBER, TokenType.EOF], types("1 // ignored\n/* also\nignored */ 2"))

    def test_lines(self):
        tokens, __ = scan("a\nb\n\"multi\nline\" c", line=5)
        self.assertEqual([5, 6, 8, 8, 8], [token.line for token in tokens])

    def test_errors_continue(self):
        tokens, error_handler = scan("a @ b # c")
        self.assertEqual(2, len(error_handler.errors))
        self.assertEqual("Unexpected character '@'.", error_handler.errors[0].msg)
        self.assertEqual(["a", "b", "c", ""], [token.lexeme for token in tokens])

    def test_unterminated(self):
        __, error_handler = scan("\"open")
        self.assertEqual(["Unterminated string."], [error.msg for error in error_handler.errors])

        __, error_handler = scan("/* open")
        self.assertEqual(["Unterminated block comment."], [error.msg for error in error_handler.errors])


if __name__ == '__main__':
    unittest.main()
