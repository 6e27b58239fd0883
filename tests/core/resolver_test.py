import io
import unittest
from contextlib import redirect_stderr

from lox.core.evaluator import Evaluator
from lox.core.parser import Parser
from lox.core.resolver import Resolver
from lox.lang.error import ErrorHandler
from lox.lang.scanner import Scanner


def resolve(source):
    """Returns (statements, evaluator, error_handler) after parsing and resolving source."""
    error_handler = ErrorHandler(fatal=False)
    evaluator = Evaluator(error_handler)
    with redirect_stderr(io.StringIO()):
        statements = Parser(Scanner(source, error_handler).scan_tokens(), error_handler).parse()
        assert not error_handler.had_error, [error.msg for error in error_handler.errors]
        Resolver(evaluator, error_handler).resolve(statements)
    return statements, evaluator, error_handler


def messages(error_handler):
    return [error.msg for error in error_handler.errors]


class DistanceTestCase(unittest.TestCase):

    def test_shadowing(self):
        source = """
        {
            var a = 1;
            {
                var a = 2;
                {
                    var a = 3;
                    print a;
                }
                print a;
            }
            print a;
        }
        """
        statements, evaluator, __ = resolve(source)
        outer = statements[0]
        middle = outer.statements[1]
        inner = middle.statements[1]

        for block in (outer, middle, inner):
            read = block.statements[-1].expression
            self.assertEqual(0, evaluator.locals[read.uid])

    def test_reads_through_enclosing_blocks(self):
        statements, evaluator, __ = resolve("{ var a = 1; { { print a; } print a; } }")
        middle = statements[0].statements[1]
        innermost_read = middle.statements[0].statements[0].expression
        middle_read = middle.statements[1].expression

        self.assertEqual(2, evaluator.locals[innermost_read.uid])
        self.assertEqual(1, evaluator.locals[middle_read.uid])

    def test_globals_are_not_recorded(self):
        statements, evaluator, __ = resolve("var g = 1; print g; g = 2;")
        self.assertNotIn(statements[1].expression.uid, evaluator.locals)
        self.assertNotIn(statements[2].expression.uid, evaluator.locals)

    def test_parameters_share_scope_with_body(self):
        statements, evaluator, __ = resolve("fun f(x) { print x; { print x; } }")
        body = statements[0].body
        self.assertEqual(0, evaluator.locals[body[0].expression.uid])
        self.assertEqual(1, evaluator.locals[body[1].statements[0].expression.uid])

    def test_this_is_one_scope_outside_method(self):
        statements, evaluator, __ = resolve("class A { m() { return this; } }")
        this = statements[0].methods[0].body[0].value
        self.assertEqual(1, evaluator.locals[this.uid])

    def test_assignment_distance(self):
        statements, evaluator, __ = resolve("{ var a = 1; { a = 2; } }")
        assign = statements[0].statements[1].statements[0].expression
        self.assertEqual(1, evaluator.locals[assign.uid])

    def test_closure_sees_declaration_time_binding(self):
        source = """
        var a = "global";
        {
            fun show() { print a; }
            show();
            var a = "block";
            print a;
        }
        """
        statements, evaluator, __ = resolve(source)
        show = statements[1].statements[0]
        self.assertNotIn(show.body[0].expression.uid, evaluator.locals)

    def test_resolving_twice_is_idempotent(self):
        statements, evaluator, error_handler = resolve("{ var a = 1; { print a; } }")
        before = dict(evaluator.locals)

        with redirect_stderr(io.StringIO()):
            Resolver(evaluator, error_handler).resolve(statements)

        self.assertEqual(before, evaluator.locals)


class StaticErrorTestCase(unittest.TestCase):

    def test_duplicate_declaration(self):
        __, __, error_handler = resolve("{ var a = 1; var a = 2; print a; }")
        self.assertEqual(["Already a variable named 'a' in this scope."], messages(error_handler))

    def test_duplicate_globals_allowed(self):
        __, __, error_handler = resolve("var a = 1; var a = 2;")
        self.assertFalse(error_handler.had_error)

    def test_duplicate_parameter(self):
        __, __, error_handler = resolve("fun f(a, a) { return a; }")
        self.assertEqual(["Already a variable named 'a' in this scope."], messages(error_handler))

    def test_self_reference(self):
        __, __, error_handler = resolve("var a = 1; { var a = a; }")
        self.assertEqual(["Can't read local variable in its own initializer."], messages(error_handler))
        self.assertEqual("a", error_handler.errors[0].token.lexeme)

    def test_misplaced_jumps(self):
        cases = {
            "break;": "Can't use 'break' outside of a loop.",
            "continue;": "Can't use 'continue' outside of a loop.",
            "return 1;": "Can't return from top-level code.",
            "if (true) { break; }": "Can't use 'break' outside of a loop.",
            "while (true) { fun f() { continue; } f(); }": "Can't use 'continue' outside of a loop.",
        }
        for case, msg in cases.items():
            __, __, error_handler = resolve(case)
            self.assertEqual([msg], messages(error_handler), case)

    def test_jump_error_references_keyword(self):
        __, __, error_handler = resolve("print 1;\nbreak;")
        error = error_handler.errors[0]
        self.assertEqual("break", error.token.lexeme)
        self.assertEqual(2, error.line)

    def test_valid_jumps(self):
        source = """
        fun f() {
            while (true) {
                for (;;) { if (true) continue; break; }
                return 1;
            }
        }
        print f();
        """
        __, __, error_handler = resolve(source)
        self.assertFalse(error_handler.had_error)

    def test_this(self):
        cases = {
            "print this;": "Can't use 'this' outside of a class.",
            "fun f() { return this; }": "Can't use 'this' outside of a class.",
            "class A { class make() { return this; } }": "Can't use 'this' in a static method.",
            "class A { class make() { return fun () { return this; }; } }": "Can't use 'this' in a static method.",
        }
        for case, msg in cases.items():
            __, __, error_handler = resolve(case)
            self.assertEqual([msg], messages(error_handler), case)

    def test_inherit_from_self(self):
        __, __, error_handler = resolve("class A < A {}")
        self.assertEqual(["A class can't inherit from itself."], messages(error_handler))

    def test_errors_accumulate(self):
        __, __, error_handler = resolve("break; return; { var a = 1; var a = 2; print a; }")
        self.assertEqual(3, len(error_handler.errors))


class UnusedVariableTestCase(unittest.TestCase):

    def test_unused_local_is_a_warning(self):
        __, __, error_handler = resolve("{ var unused = 1; }")
        self.assertFalse(error_handler.had_error)
        self.assertEqual(["Local variable 'unused' is never used."], [warning.msg for warning in error_handler.warnings])

    def test_used_and_exempt_names(self):
        source = """
        fun f(ignored) { var a = 1; return a; }
        class A { m() { return 1; } }
        { var b; b = 2; }
        """
        __, __, error_handler = resolve(source)
        self.assertEqual([], error_handler.warnings)

    def test_unused_globals_not_reported(self):
        __, __, error_handler = resolve("var g = 1;")
        self.assertEqual([], error_handler.warnings)


if __name__ == '__main__':
    unittest.main()
