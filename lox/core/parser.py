"""Recursive-descent parser for lox. Converts a list of Tokens into a list of statements.

Expression grammar, lowest precedence first:

```
<expression> ::= <assignment> ( "," <assignment> )*              ; comma operator, yields right operand
<assignment> ::= <logic_or> ( "?" <assignment> ":" <assignment> )?
                 ( "=" <assignment> )?                           ; target must be a variable or property
<logic_or>   ::= <logic_and> ( "or" <logic_and> )*
<logic_and>  ::= <equality> ( "and" <equality> )*
<equality>   ::= <comparison> ( ( "!=" | "==" ) <comparison> )*
<comparison> ::= <term> ( ( ">" | ">=" | "<" | "<=" ) <term> )*
<term>       ::= <factor> ( ( "-" | "+" ) <factor> )*
<factor>     ::= <unary> ( ( "/" | "*" ) <unary> )*
<unary>      ::= ( "!" | "-" ) <unary> | <call>
<call>       ::= <primary> ( "(" <arguments>? ")" | "." IDENTIFIER )*
<primary>    ::= NUMBER | STRING | "true" | "false" | "nil" | "this" | IDENTIFIER
               | "(" <expression> ")" | "fun" "(" <parameters>? ")" <block>
```

Ternaries associate to the right on their else branch: a ? b : c ? d : e == a ? b : (c ? d : e), and since the else
branch is itself an <assignment>, a ? b : c = d == a ? b : (c = d).

Syntax errors are reported to the ErrorHandler. After an error, the parser discards tokens up to the next statement
boundary and keeps going, so that several errors are reported in one pass.
"""

from lox.core import syntax
from lox.core.tokens import TokenType
from lox.lang.error import LoxSyntaxError


class Parser:
    MAX_ARGS = 255
    # binary operators that are recognized with a missing left operand: (operator types, name, operand parser)
    MISSING_LEFT = [
        ((TokenType.COMMA,), "comma", "assignment"),
        ((TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL), "equality", "comparison"),
        ((TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL), "comparison", "term"),
        ((TokenType.PLUS,), "addition", "factor"),
        ((TokenType.SLASH, TokenType.STAR), "multiplication/division", "unary"),
    ]
    STATEMENT_STARTS = {
        TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR, TokenType.IF, TokenType.WHILE, TokenType.PRINT,
        TokenType.RETURN,
    }

    def __init__(self, tokens, error_handler):
        self.tokens = tokens
        self.error_handler = error_handler
        self.current = 0

    def parse(self):
        """Parses all tokens. Never raises a LoxSyntaxError: errors are reported and their statements dropped."""
        statements = []
        while not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    # declarations/statements

    def declaration(self):
        try:
            if self.match(TokenType.CLASS):
                return self.class_declaration()
            if self.check(TokenType.FUN) and self.check_next(TokenType.IDENTIFIER):
                self.advance()
                return self.function("function")
            if self.match(TokenType.VAR):
                return self.var_declaration()
            return self.statement()
        except LoxSyntaxError:
            self.synchronize()
            return None

    def class_declaration(self):
        name = self.consume(TokenType.IDENTIFIER, "Expect class name.")

        superclass = None
        if self.match(TokenType.LESS):
            self.consume(TokenType.IDENTIFIER, "Expect superclass name.")
            superclass = syntax.Variable(self.previous())

        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")

        methods, statics = [], []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            if self.match(TokenType.CLASS):
                statics.append(self.function("static method"))
            else:
                methods.append(self.function("method"))

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return syntax.Class(name, superclass, methods, statics)

    def function(self, kind):
        """Parses the rest of a named function. Methods may omit an empty parameter list."""
        name = self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")

        if kind == "method" and self.check(TokenType.LEFT_BRACE):
            self.advance()
            return syntax.Function(name, [], self.block())

        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params = self.parameters()
        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return syntax.Function(name, params, self.block())

    def parameters(self):
        """Parses a parameter list up to and including the closing paren."""
        params = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= Parser.MAX_ARGS:
                    self.error(self.peek(), f"Can't have more than {Parser.MAX_ARGS} parameters.")
                params.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenType.COMMA):
                    break

        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        return params

    def var_declaration(self):
        name = self.consume(TokenType.IDENTIFIER, "Expect variable name.")

        initializer = None
        if self.match(TokenType.EQUAL):
            initializer = self.expression()

        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return syntax.Var(name, initializer)

    def statement(self):
        if self.match(TokenType.FOR):
            return self.for_statement()
        if self.match(TokenType.IF):
            return self.if_statement()
        if self.match(TokenType.PRINT):
            return self.print_statement()
        if self.match(TokenType.RETURN):
            return self.return_statement()
        if self.match(TokenType.WHILE):
            return self.while_statement()
        if self.match(TokenType.BREAK, TokenType.CONTINUE):
            return self.jump_statement()
        if self.match(TokenType.LEFT_BRACE):
            return syntax.Block(self.block())
        return self.expression_statement()

    def for_statement(self):
        """Desugars for (init; cond; incr) body into { init; while (cond) body } with incr kept on the While."""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.statement()

        if condition is None:
            condition = syntax.Literal(True)
        loop = syntax.While(condition, body, increment)

        if initializer is None:
            return loop
        return syntax.Block([initializer, loop])

    def if_statement(self):
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self.statement()
        else_branch = self.statement() if self.match(TokenType.ELSE) else None
        return syntax.If(condition, then_branch, else_branch)

    def print_statement(self):
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return syntax.Print(value)

    def return_statement(self):
        keyword = self.previous()
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.expression()

        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return syntax.Return(keyword, value)

    def while_statement(self):
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return syntax.While(condition, self.statement())

    def jump_statement(self):
        keyword = self.previous()
        self.consume(TokenType.SEMICOLON, f"Expect ';' after '{keyword.lexeme}'.")
        if keyword.type == TokenType.BREAK:
            return syntax.Break(keyword)
        return syntax.Continue(keyword)

    def expression_statement(self):
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return syntax.Expression(expr)

    def block(self):
        """Parses statements up to and including the closing brace."""
        statements = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    # expressions

    def expression(self):
        return self.binary(self.assignment, TokenType.COMMA)

    def assignment(self):
        expr = self.logic_or()

        if self.match(TokenType.QUESTION):
            then_branch = self.assignment()
            self.consume(TokenType.COLON, "Expect ':' after then branch of conditional expression.")
            else_branch = self.assignment()
            expr = syntax.Ternary(expr, then_branch, else_branch)

        if self.match(TokenType.EQUAL):
            equals = self.previous()
            value = self.assignment()

            if isinstance(expr, syntax.Variable):
                return syntax.Assign(expr.name, value)
            elif isinstance(expr, syntax.Get):
                return syntax.Set(expr.object, expr.name, value)

            self.error(equals, "Invalid assignment target.")  # reported, but no need to synchronize

        return expr

    def logic_or(self):
        return self.binary(self.logic_and, TokenType.OR, node=syntax.Logical)

    def logic_and(self):
        return self.binary(self.equality, TokenType.AND, node=syntax.Logical)

    def equality(self):
        return self.binary(self.comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def comparison(self):
        return self.binary(self.term, TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL)

    def term(self):
        return self.binary(self.factor, TokenType.MINUS, TokenType.PLUS)

    def factor(self):
        return self.binary(self.unary, TokenType.SLASH, TokenType.STAR)

    def unary(self):
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.previous()
            return syntax.Unary(operator, self.unary())
        return self.call()

    def call(self):
        expr = self.primary()

        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = syntax.Get(expr, name)
            else:
                return expr

    def finish_call(self, callee):
        arguments = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= Parser.MAX_ARGS:
                    self.error(self.peek(), f"Can't have more than {Parser.MAX_ARGS} arguments.")
                arguments.append(self.assignment())
                if not self.match(TokenType.COMMA):
                    break

        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return syntax.Call(callee, paren, arguments)

    def primary(self):
        if self.match(TokenType.FALSE):
            return syntax.Literal(False)
        if self.match(TokenType.TRUE):
            return syntax.Literal(True)
        if self.match(TokenType.NIL):
            return syntax.Literal(None)
        if self.match(TokenType.NUMBER, TokenType.STRING):
            return syntax.Literal(self.previous().literal)
        if self.match(TokenType.THIS):
            return syntax.This(self.previous())
        if self.match(TokenType.IDENTIFIER):
            return syntax.Variable(self.previous())

        if self.match(TokenType.FUN):
            keyword = self.previous()
            self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'fun'.")
            params = self.parameters()
            self.consume(TokenType.LEFT_BRACE, "Expect '{' before function body.")
            return syntax.Lambda(keyword, params, self.block())

        if self.match(TokenType.LEFT_PAREN):
            expr = self.expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return syntax.Grouping(expr)

        for operators, name, operand in Parser.MISSING_LEFT:
            if self.match(*operators):
                self.error(self.previous(), f"Missing left-hand operand for {name} operator.")
                return getattr(self, operand)()  # parse and keep the right operand so parsing can continue

        raise self.error(self.peek(), "Expect expression.")

    # helpers

    def binary(self, operand, *operators, node=syntax.Binary):
        """Parses a left-associative run of operators, each operand parsed with operand."""
        expr = operand()
        while self.match(*operators):
            operator = self.previous()
            right = operand()
            expr = node(expr, operator, right)
        return expr

    def match(self, *types):
        for token_type in types:
            if self.check(token_type):
                self.advance()
                return True
        return False

    def consume(self, token_type, msg):
        if self.check(token_type):
            return self.advance()
        raise self.error(self.peek(), msg)

    def check(self, token_type):
        if self.is_at_end():
            return False
        return self.peek().type == token_type

    def check_next(self, token_type):
        if self.is_at_end():
            return False
        return self.tokens[self.current + 1].type == token_type

    def advance(self):
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self):
        return self.peek().type == TokenType.EOF

    def peek(self):
        return self.tokens[self.current]

    def previous(self):
        return self.tokens[self.current - 1]

    def error(self, token, msg):
        """Reports a syntax error and returns it, so that callers can raise it to unwind to declaration."""
        error = LoxSyntaxError(msg, token)
        self.error_handler.error(error)
        return error

    def synchronize(self):
        """Discards tokens until the start of the next statement."""
        self.advance()

        while not self.is_at_end():
            if self.previous().type == TokenType.SEMICOLON:
                return
            if self.peek().type in Parser.STATEMENT_STARTS:
                return
            self.advance()
