import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

from lox.lang.error import ErrorHandler, LoxException
from lox.lang.session import Session


COUNTER = """
fun makeCounter() {
    var i = 0;
    fun count() {
        i = i + 1;
        return i;
    }
    return count;
}
var counter = makeCounter();
print counter();
print counter();
"""


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.error_handler = ErrorHandler(fatal=False)
        self.sess = Session(self.error_handler, Session.SH_FILE, cmd_line=True)

    def run_source(self, source, line_num=1):
        output = io.StringIO()
        with redirect_stdout(output), redirect_stderr(io.StringIO()):
            result = self.sess.run(source, line_num)
        return result, output.getvalue().splitlines()

    def test_globals_persist(self):
        self.assertEqual((True, []), self.run_source("var a = 1;"))
        self.assertEqual((True, ["2"]), self.run_source("a = a + 1; print a;", 2))

    def test_errors_reset_between_runs(self):
        result, __ = self.run_source("print ;")
        self.assertFalse(result)
        self.assertTrue(self.error_handler.had_error)

        self.assertEqual((True, ["1"]), self.run_source("print 1;", 2))
        self.assertFalse(self.error_handler.had_error)

    def test_runtime_error_then_recover(self):
        result, __ = self.run_source("print undefined;")
        self.assertFalse(result)
        self.assertTrue(self.error_handler.had_runtime_error)
        self.assertEqual((True, ["ok"]), self.run_source("print \"ok\";", 2))

    def test_line_numbers(self):
        self.run_source("print ;", 7)
        self.assertEqual(7, self.error_handler.errors[0].line)

    def test_resolve_and_interpret_twice(self):
        with redirect_stderr(io.StringIO()):
            statements = self.sess.parse(COUNTER)

        outputs = []
        for __ in range(2):
            output = io.StringIO()
            with redirect_stdout(output), redirect_stderr(io.StringIO()):
                self.assertTrue(self.sess.resolve(statements))
                self.assertTrue(self.sess.evaluator.interpret(statements))
            outputs.append(output.getvalue())

        self.assertEqual(["1", "2"], outputs[0].splitlines())
        self.assertEqual(outputs[0], outputs[1])

    def test_preprocess_line(self):
        cases = {
            "print 1;": ("print 1;", False),
            "fun f() {": ("fun f() {", True),
            "print (1 +": ("print (1 +", True),
            "}  // done": ("}", False),
            "print \"//\";": ("print \"//\";", False),
            "print \"{\";": ("print \"{\";", False),
            "print \"x\"; // (note": ("print \"x\";", False),
            "print \"a)\" + (1 +": ("print \"a)\" + (1 +", True),
            "print \"open": ("print \"open", True),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, Session.preprocess_line(case), case)

    def test_reserved_filename(self):
        self.assertRaises(LoxException, Session, self.error_handler, Session.SH_FILE, False)


class FileSessionTestCase(unittest.TestCase):

    def test_run_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "counter.lox")
            with open(path, "w") as file:
                file.write(COUNTER)

            error_handler = ErrorHandler(fatal=False)
            sess = Session(error_handler, path, cmd_line=False)

            output = io.StringIO()
            with redirect_stdout(output), redirect_stderr(io.StringIO()):
                self.assertTrue(sess.run())

        self.assertEqual(["1", "2"], output.getvalue().splitlines())
        self.assertEqual(path, error_handler.path)
        self.assertEqual("print counter();", error_handler.lines[11])

    def test_missing_file(self):
        with self.assertRaises(LoxException) as context:
            Session(ErrorHandler(fatal=False), "does/not/exist.lox", cmd_line=False)
        self.assertIn("could not be opened", context.exception.msg)


if __name__ == '__main__':
    unittest.main()
