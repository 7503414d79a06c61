"""Exception types raised by the matching core."""


class MatchError(Exception):
    """Base class for all internmatch errors."""


class ConfigError(MatchError):
    """Rule document or application config could not be loaded."""


class ExpressionError(MatchError):
    """A rule expression could not be compiled or evaluated.

    The evaluator only knows the expression text; the engine attaches the
    id of the rule that owns it before reporting.
    """

    def __init__(self, message: str, expression: str | None = None, rule_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.expression = expression
        self.rule_id = rule_id

    def __str__(self) -> str:
        if self.rule_id:
            return f"[{self.rule_id}] {self.message}"
        return self.message


class ProfileIncompleteError(ExpressionError):
    """An expression reached through a section that is missing on a record."""
