"""Error handling for the lox language. Only LoxExceptions should be encountered during running: if another type of
error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Static errors (scanner, parser, resolver) are accumulated by ErrorHandler rather than raised past their stage, so that
every error in a program is reported in one pass. Runtime errors abort the current interpret call.
"""

import sys

from termcolor import colored

from lox.core.tokens import TokenType


class LoxException(Exception):
    """Templates a lox error/warning message. token is the offending Token, if any; line is used when there is no
    token (ex: scanner errors).
    """

    def __init__(self, msg, token=None, line=None, diagnosis=True, internal=False):
        super().__init__(msg)
        self.msg = msg
        self.token = token
        self.line = line if line is not None or token is None else token.line

        self.diagnosis = diagnosis
        self.internal = internal

    @property
    def where(self):
        """Location suffix for error messages: " at 'lexeme'", " at end", or nothing."""
        if self.token is None:
            return ""
        elif self.token.type == TokenType.EOF:
            return " at end"
        return f" at '{self.token.lexeme}'"


class LoxSyntaxError(LoxException):
    """Raised/reported by the scanner and parser."""


class LoxResolveError(LoxException):
    """Reported by the resolver."""


class LoxRuntimeError(LoxException):
    """Raised by the evaluator. Aborts the current top-level evaluation."""


class ErrorHandler:
    """Shared diagnostic collaborator. Also a context manager that will silently suppress Python errors and report
    them as lox errors.
    """
    ERROR = "red"
    WARNING = "magenta"
    TRACE = "dark_grey"

    STATIC_ERROR_CODE = 65
    RUNTIME_ERROR_CODE = 70

    def __init__(self, fatal=True, verbose=False, warnings=True):
        self.fatal = fatal
        self.verbose = verbose
        self.show_warnings = warnings

        self.path = "<in>"
        self.lines = {}  # dict of line_num: source line, used for diagnosis

        self.errors = []
        self.warnings = []
        self.had_error = False
        self.had_runtime_error = False

    def register_file(self, path, source):
        """Registers path and every line of source for error messages."""
        self.path = path
        self.lines = {line_num + 1: line for line_num, line in enumerate(source.splitlines())}

    def register_line(self, path, line, line_num):
        """Registers a single line (command-line mode). Should be called prior to Session run."""
        self.path = path
        self.lines[line_num] = line

    def reset(self):
        """Forgets previous errors. Called between command-line entries."""
        self.errors = []
        self.warnings = []
        self.had_error = False
        self.had_runtime_error = False

    def diagnose(self, error, warning=False):
        """Returns offending line with error.token highlighted and underlined, or None if it can't be found."""
        line = self.lines.get(error.line)
        if line is None or error.token is None or not error.token.lexeme:
            return None

        start = line.find(error.token.lexeme)  # assumes first occurrence is the offending one
        if start == -1:
            return None

        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR
        end = start + len(error.token.lexeme)

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), color, attrs=["bold"])

        return diagnosis

    def _display(self, error, label, color):
        location = self.path if error.line is None else f"{self.path}:{error.line}"
        error_msg = colored(f"{location}: ", attrs=["bold"])

        if error.internal:
            error_msg += colored("[internal] ", color, attrs=["bold"])

        error_msg += colored(f"{label}{error.where}: ", color, attrs=["bold"]) + error.msg
        print(error_msg, file=sys.stderr)

        if error.diagnosis and not error.internal:
            diagnosis = self.diagnose(error, warning=color == ErrorHandler.WARNING)
            if diagnosis:
                print(diagnosis, file=sys.stderr)

    def error(self, error):
        """Reports a static (syntax or resolution) error. Execution must not proceed afterwards."""
        self.errors.append(error)
        self.had_error = True
        self._display(error, "error", ErrorHandler.ERROR)

    def warn(self, error):
        """Reports an advisory warning. Does not affect had_error."""
        self.warnings.append(error)
        if self.show_warnings:
            self._display(error, "warning", ErrorHandler.WARNING)

    def runtime_error(self, error):
        """Reports a runtime error raised by the evaluator."""
        self.errors.append(error)
        self.had_runtime_error = True
        self._display(error, "runtime error", ErrorHandler.ERROR)

    def trace(self, step, detail):
        """Prints a pipeline step if verbose."""
        if self.verbose:
            print(colored(f"[{step}] ", ErrorHandler.TRACE, attrs=["bold"]) + colored(detail, ErrorHandler.TRACE),
                  file=sys.stderr)

    def exit_code(self):
        """Process exit code for the errors reported so far."""
        if self.had_error:
            return ErrorHandler.STATIC_ERROR_CODE
        elif self.had_runtime_error:
            return ErrorHandler.RUNTIME_ERROR_CODE
        return 0

    def throw(self, error, code=1):
        """Reports an unrecoverable error. Exits if self.fatal."""
        self.errors.append(error)
        self._display(error, "error", ErrorHandler.ERROR)

        if self.fatal:
            sys.exit(code)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(LoxException("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(LoxRuntimeError("stack overflow: maximum recursion depth exceeded"),
                       ErrorHandler.RUNTIME_ERROR_CODE)
        elif exc_type is not None and issubclass(exc_type, LoxException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(LoxException(f"unknown error: '{exc_type.__name__}: {exc_val}'", internal=True))
            do_exit = True

        return not do_exit
