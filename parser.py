from ast_nodes import Statement, Assign, Number, Var, Binary, Negate, Call
from errors import ParseError
from lexer import Lexer

COMPARISON_TOKENS = ("EQEQ", "NOTEQ", "LT", "GT", "LTE", "GTE")

# parentheses, unary signs, calls and chained assignments all count
MAX_NESTING = 64


class Parser:
    def __init__(self, lexer):
        self.lexer = lexer
        self.current_token = self.lexer.get_next_token()
        self.next_token = self.lexer.get_next_token()
        self.depth = 0

    # move to next token, but only if it matches what we expect
    def eat(self, token_type):
        if self.current_token.type == token_type:
            self.current_token = self.next_token
            self.next_token = self.lexer.get_next_token()
        else:
            tok = self.current_token
            raise ParseError(f"Expected {token_type}, got {describe(tok)}", tok.line, tok.column)

    def error_here(self, message):
        tok = self.current_token
        raise ParseError(message, tok.line, tok.column)

    def enter(self, tok):
        self.depth += 1
        if self.depth > MAX_NESTING:
            raise ParseError("Expression nested too deeply", tok.line, tok.column)

    def leave(self):
        self.depth -= 1

    # ---------- TOP LEVEL ----------
    def parse(self):
        # one statement per source fragment; anything left over is an error
        node = self.statement()
        if self.current_token.type != "END":
            self.error_here(f"Unexpected token {describe(self.current_token)}")
        return node

    def statement(self):
        tok = self.current_token
        node = Statement(self.assignment())
        node.line = tok.line
        return node

    # assignment -> IDENT '=' assignment | expr   (a = b = 1 stores into both)
    def assignment(self):
        tok = self.current_token
        if tok.type == "IDENT" and self.next_token.type == "ASSIGN":
            self.eat("IDENT")
            self.eat("ASSIGN")
            self.enter(tok)
            node = Assign(tok.value, self.assignment())
            self.leave()
            node.line = tok.line
            return node
        return self.expr()

    # ---------- EXPRESSIONS ----------
    def expr(self):
        return self.or_expr()

    # or_expr -> and_expr (|| and_expr)*
    def or_expr(self):
        node = self.and_expr()
        while self.current_token.type == "OR":
            op_token = self.current_token
            self.eat("OR")
            node = Binary(node, "||", self.and_expr())
            node.line = op_token.line
        return node

    # and_expr -> comparison (&& comparison)*
    def and_expr(self):
        node = self.comparison()
        while self.current_token.type == "AND":
            op_token = self.current_token
            self.eat("AND")
            node = Binary(node, "&&", self.comparison())
            node.line = op_token.line
        return node

    # comparison -> term (cmp term)?   -- at most one, does not chain
    def comparison(self):
        node = self.term()
        if self.current_token.type in COMPARISON_TOKENS:
            op_token = self.current_token
            self.eat(op_token.type)
            node = Binary(node, self.op_token_to_text(op_token.type), self.term())
            node.line = op_token.line
        return node

    # term -> factor ((+|-) factor)*
    def term(self):
        node = self.factor()
        while self.current_token.type in ("PLUS", "MINUS"):
            op_token = self.current_token
            self.eat(op_token.type)
            right = self.factor()
            node = Binary(node, self.op_token_to_text(op_token.type), right)
            node.line = op_token.line
        return node

    # factor -> unary ((*|/|%) unary)*
    def factor(self):
        node = self.unary()
        while self.current_token.type in ("STAR", "SLASH", "PERCENT"):
            op_token = self.current_token
            self.eat(op_token.type)
            right = self.unary()
            node = Binary(node, self.op_token_to_text(op_token.type), right)
            node.line = op_token.line
        return node

    # unary -> (- unary) | (+ unary) | primary
    def unary(self):
        if self.current_token.type == "MINUS":
            tok = self.current_token
            self.eat("MINUS")
            self.enter(tok)
            node = Negate(self.unary())
            self.leave()
            node.line = tok.line
            return node
        if self.current_token.type == "PLUS":
            tok = self.current_token
            self.eat("PLUS")
            self.enter(tok)
            node = self.unary()
            self.leave()
            return node
        return self.primary()

    # primary -> NUMBER | IDENT | IDENT '(' args ')' | '(' expr ')'
    def primary(self):
        tok = self.current_token

        if tok.type == "NUMBER":
            self.eat("NUMBER")
            try:
                value = float(tok.value)
            except ValueError:
                raise ParseError(f"Malformed number literal '{tok.value}'", tok.line, tok.column) from None
            node = Number(value)
            node.line = tok.line
            return node

        if tok.type == "IDENT":
            self.eat("IDENT")
            if self.current_token.type == "LPAREN":
                node = self.finish_call(tok.value)
                node.line = tok.line
                return node
            node = Var(tok.value)
            node.line = tok.line
            return node

        if tok.type == "LPAREN":
            self.eat("LPAREN")
            self.enter(tok)
            node = self.expr()
            if self.current_token.type != "RPAREN":
                self.error_here("Expected ')' after expression")
            self.eat("RPAREN")
            self.leave()
            return node

        raise ParseError(f"Expected expression, got {describe(tok)}", tok.line, tok.column)

    def finish_call(self, func_name):
        self.enter(self.current_token)
        self.eat("LPAREN")
        args = []
        if self.current_token.type != "RPAREN":
            args.append(self.expr())
            while self.current_token.type == "COMMA":
                self.eat("COMMA")
                args.append(self.expr())
        if self.current_token.type != "RPAREN":
            self.error_here(f"Expected ')' after arguments to {func_name}()")
        self.eat("RPAREN")
        self.leave()
        return Call(func_name, args)

    # ---------- HELPERS ----------
    def op_token_to_text(self, op_type):
        mapping = {
            "PLUS": "+",
            "MINUS": "-",
            "STAR": "*",
            "SLASH": "/",
            "PERCENT": "%",
            "EQEQ": "==",
            "NOTEQ": "!=",
            "LT": "<",
            "LTE": "<=",
            "GT": ">",
            "GTE": ">=",
        }
        return mapping[op_type]


def describe(tok):
    if tok.type == "END":
        return "end of input"
    if tok.value is not None:
        return f"{tok.type} '{tok.value}'"
    return tok.type


def parse_statement(source):
    return Parser(Lexer(source)).parse()
