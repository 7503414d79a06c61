"""Rule evaluation: expression language, engine and rule document loader."""

from .engine import RuleEngine, evaluate_one, rank
from .expression import Expression, compile_expression, to_bool, to_number
from .loader import load_default_rules, load_rules, parse_rules, validate_rules

__all__ = [
    "RuleEngine",
    "evaluate_one",
    "rank",
    "Expression",
    "compile_expression",
    "to_bool",
    "to_number",
    "load_rules",
    "load_default_rules",
    "parse_rules",
    "validate_rules",
]
