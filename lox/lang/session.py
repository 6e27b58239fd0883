"""Session control for the lox language. Runs the scan -> parse -> resolve -> interpret pipeline, either on a whole file
or on one command-line entry at a time.
"""

from lox.core.evaluator import Evaluator
from lox.core.parser import Parser
from lox.core.resolver import Resolver
from lox.lang.error import LoxException
from lox.lang.scanner import Scanner


class Session:
    """Governs a lox session. Every source run in a session shares one global environment."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path, cmd_line):
        self.error_handler = error_handler

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode
        self.source = None

        self.evaluator = Evaluator(error_handler)

        if self.cmd_line:
            self.error_handler.fatal = False

        if path != Session.SH_FILE:
            try:
                with open(path, "r") as file:
                    self.source = file.read()
            except OSError:
                raise LoxException(f"'{path}' could not be opened", diagnosis=False)

            self.error_handler.register_file(path, self.source)

        elif not cmd_line:
            raise LoxException("'<in>' is a reserved filename")

    @staticmethod
    def preprocess_line(line):
        """Strips a line comment from a command-line entry. Returns updated line and whether or not the entry continues
        on the next line (unclosed braces, parentheses or string). Characters inside string literals are ignored.
        """
        depth = 0
        in_string = False
        for i, char in enumerate(line):
            if char == "\"":
                in_string = not in_string
            elif in_string:
                continue
            elif line.startswith("//", i):
                line = line[:i]
                break
            elif char in "{(":
                depth += 1
            elif char in "})":
                depth -= 1

        return line.rstrip(), depth > 0 or in_string

    def parse(self, source, line_num=1):
        """Scans and parses source. Returns list of statements, or None if there were syntax errors."""
        tokens = Scanner(source, self.error_handler, line_num).scan_tokens()
        self.error_handler.trace("scan", f"{len(tokens)} tokens")

        statements = Parser(tokens, self.error_handler).parse()
        self.error_handler.trace("parse", f"{len(statements)} statements")

        return None if self.error_handler.had_error else statements

    def resolve(self, statements):
        """Resolves statements against this session's evaluator. Returns whether or not resolution succeeded."""
        before = len(self.evaluator.locals)
        Resolver(self.evaluator, self.error_handler).resolve(statements)
        self.error_handler.trace("resolve", f"{len(self.evaluator.locals) - before} new local references")

        return not self.error_handler.had_error

    def run(self, source=None, line_num=1):
        """Runs source (or this session's file). Returns whether it ran without errors."""
        if source is None:
            source = self.source
        elif self.cmd_line:
            self.error_handler.reset()
            self.error_handler.register_line(self.path, source, line_num)

        statements = self.parse(source, line_num)
        if statements is None or not self.resolve(statements):
            return False

        self.error_handler.trace("interpret", f"{self.path}")
        return self.evaluator.interpret(statements)
