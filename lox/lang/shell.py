"""Handles interactive/command-line mode for the lox interpreter. Uses cmd as backend."""

import cmd

from lox.lang.session import Session


class Shell(cmd.Cmd):
    """Lox interpreter shell."""
    intro = "Lox interpreter :: Python backend\nType 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess

        self._tmp_line = ""
        self._tmp_line_num = 0
        self.line_num = 0

    def default(self, line):
        """Executes arbitrary lox source."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.line_num += 1
            if not self._tmp_line:
                self._tmp_line_num = self.line_num

            line, add_to_prev = self.sess.preprocess_line(self._tmp_line + line)

            if add_to_prev:
                self._tmp_line = line + "\n"
                self.prompt = self.secondary_prompt
            else:
                self._tmp_line = ""
                self.prompt = self._tmp_prompt

                if line:
                    self.sess.run(line, self._tmp_line_num)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the lox interpreter!\n\n"
              "Lox is a small dynamically-typed scripting language with closures and classes.\n"
              "Every line is run as soon as its braces and parentheses are balanced, and\n"
              "globals persist between lines.\n\n"
              "Try it out by typing 'var greeting = \"hi\";', then 'print greeting + \" there\";'.\n"
              "Type 'exit' or press Ctrl-D to leave.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
