import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

from lox.main import main


class MainTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def run_main(self, source, *flags):
        path = os.path.join(self.tmp.name, "script.lox")
        with open(path, "w") as file:
            file.write(source)

        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main([*flags, path])
        return code, stdout.getvalue(), stderr.getvalue()

    def test_success(self):
        code, stdout, __ = self.run_main("class A { greet() { return \"hi\"; } }\nprint A().greet;\n")
        self.assertEqual(0, code)
        self.assertEqual("hi\n", stdout)

    def test_static_error(self):
        code, stdout, stderr = self.run_main("print \"never\";\nreturn 1;\n")
        self.assertEqual(65, code)
        self.assertEqual("", stdout)
        self.assertIn("Can't return from top-level code.", stderr)

    def test_runtime_error(self):
        code, stdout, stderr = self.run_main("print 1;\nprint -\"a\";\nprint 2;\n")
        self.assertEqual(70, code)
        self.assertEqual("1\n", stdout)
        self.assertIn("Operand of '-' must be a number.", stderr)
        self.assertIn(":2", stderr)

    def test_warnings_flag(self):
        source = "{ var unused = 1; }\n"
        __, __, stderr = self.run_main(source)
        self.assertIn("never used", stderr)

        code, __, stderr = self.run_main(source, "-W")
        self.assertEqual(0, code)
        self.assertNotIn("never used", stderr)

    def test_verbose(self):
        __, stdout, stderr = self.run_main("print 1;\n", "-v")
        self.assertEqual("1\n", stdout)
        self.assertIn("interpret", stderr)

    def test_missing_file(self):
        with redirect_stderr(io.StringIO()) as stderr:
            with self.assertRaises(SystemExit) as context:
                main([os.path.join(self.tmp.name, "missing.lox")])
        self.assertEqual(1, context.exception.code)
        self.assertIn("could not be opened", stderr.getvalue())


if __name__ == '__main__':
    unittest.main()
