class ASTNode:
    # Optional source line (1-based). Parser may set this.
    line: int | None = None


class Statement(ASTNode):
    def __init__(self, body):
        self.body = body  # Assign or expression


class Assign(ASTNode):
    def __init__(self, name, value):
        self.name = name    # target variable
        self.value = value  # expression


class Number(ASTNode):
    def __init__(self, value):
        self.value = value  # float


class Var(ASTNode):
    def __init__(self, name):
        self.name = name


class Binary(ASTNode):
    def __init__(self, left, op, right):
        self.left = left
        self.op = op
        self.right = right


class Negate(ASTNode):
    def __init__(self, expr):
        self.expr = expr


class Call(ASTNode):
    def __init__(self, name, args):
        self.name = name
        self.args = args
