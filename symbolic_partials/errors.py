"""
Exception hierarchy for symbolic partial derivatives.

Every failure of parsing, tree construction, differentiation or evaluation is
raised as a subclass of SymbolicPartialsError. Inputs are never modified when
one of these is raised.
"""


class SymbolicPartialsError(Exception):
    """Base class for all errors raised by this package"""


class DifferentiationError(SymbolicPartialsError):
    """A partial derivative could not be built"""


class UnsupportedOperatorError(DifferentiationError):
    """An operator is missing from the registry or has no derivative rule"""

    def __init__(self, symbol: str, reason: str = "no derivative rule registered"):
        self.symbol = symbol
        super().__init__(f"operator '{symbol}' is not supported: {reason}")


class OperatorArityError(DifferentiationError):
    """An operator was requested in a position it has no function for"""

    def __init__(self, symbol: str, arity: str):
        self.symbol = symbol
        self.arity = arity
        super().__init__(f"operator '{symbol}' is not {arity}")


class RegistryMismatchError(DifferentiationError):
    """Two trees governed by different operator registries were mixed"""


class RegistryMissingError(DifferentiationError):
    """A tree needs an operator registry to synthesize new leaves but has none"""


class MalformedTreeError(SymbolicPartialsError, ValueError):
    """An expression tree violates its structural invariants"""


class VariableIndexError(MalformedTreeError):
    """A variable index is outside the variables declared by a tree"""

    def __init__(self, index, n_vars: int):
        self.index = index
        self.n_vars = n_vars
        super().__init__(f"variable index {index} out of range for {n_vars} declared variable(s)")


class ExpressionParseError(SymbolicPartialsError, ValueError):
    """Text could not be parsed into an expression tree"""


class EvaluationError(SymbolicPartialsError):
    """Numeric evaluation failed (unbound variable or domain fault)"""
