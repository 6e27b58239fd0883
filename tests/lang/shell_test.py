import io
import unittest
from contextlib import redirect_stderr, redirect_stdout

from lox.lang.error import ErrorHandler
from lox.lang.session import Session
from lox.lang.shell import Shell


class ShellTestCase(unittest.TestCase):

    def setUp(self):
        self.shell = Shell(Session(ErrorHandler(fatal=False), Session.SH_FILE, cmd_line=True))

    def feed(self, *lines):
        output = io.StringIO()
        with redirect_stdout(output), redirect_stderr(io.StringIO()):
            for line in lines:
                self.shell.onecmd(line)
        return output.getvalue().splitlines()

    def test_lines_share_globals(self):
        self.assertEqual(["3"], self.feed("var a = 1;", "var b = 2;", "print a + b;"))

    def test_continuation(self):
        self.assertEqual([], self.feed("fun add(a, b) {"))
        self.assertEqual(Shell.secondary_prompt, self.shell.prompt)

        self.assertEqual([], self.feed("return a + b;", "}"))
        self.assertEqual(Shell._tmp_prompt, self.shell.prompt)
        self.assertEqual(["5"], self.feed("print add(2, 3);"))

    def test_brackets_in_strings_and_comments(self):
        self.assertEqual(["{", "x"], self.feed("print \"{\";", "print \"x\"; // (note"))
        self.assertEqual(Shell._tmp_prompt, self.shell.prompt)

    def test_multi_line_string(self):
        self.assertEqual([], self.feed("print \"a"))
        self.assertEqual(Shell.secondary_prompt, self.shell.prompt)
        self.assertEqual(["a", "b"], self.feed("b\";"))

    def test_errors_do_not_exit(self):
        self.assertEqual(["ok"], self.feed("print -nil;", "print \"ok\";"))

    def test_exit(self):
        self.assertTrue(self.shell.onecmd("exit"))


if __name__ == '__main__':
    unittest.main()
