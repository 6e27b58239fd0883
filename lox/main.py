"""Runs the lox interpreter on a .lox file, or in command-line mode if no file is given. Also uses the error handling
context manager. Called from the lox console script.

Basic program flow:
    1. Scanner: converts source text into tokens (lang/scanner.py)
    2. Parser: builds statement/expression syntax trees from the tokens (core/parser.py)
    3. Resolver: computes the scope distance of every local variable reference and rejects statically invalid
       programs (core/resolver.py)
    4. Evaluator: walks the trees against a chain of Environments (core/evaluator.py)
"""

import argparse
import sys

from lox.lang.error import ErrorHandler
from lox.lang.session import Session
from lox.lang.shell import Shell


def main(argv=None):
    """Runs lox interpreter. Returns the process exit code."""
    parser = argparse.ArgumentParser(prog="lox", description="Tree-walking interpreter for the lox language.")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("-v", "--verbose", action="store_true", help="trace each stage of the pipeline")
    parser.add_argument("-W", "--no-warnings", action="store_true", help="do not print warnings")
    args = parser.parse_args(argv)

    with ErrorHandler(verbose=args.verbose, warnings=not args.no_warnings) as error_handler:
        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False)
            sess.run()
            return error_handler.exit_code()

        Shell(Session(error_handler, Session.SH_FILE, cmd_line=True)).cmdloop()
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
