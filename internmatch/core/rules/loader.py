"""Load rule documents into RuleSet models."""

from collections import Counter
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..config.loader import get_config_loader, load_config
from ..errors import ConfigError, ExpressionError
from ..models.rules import RuleSet
from ...observability.logger import get_logger
from .expression import compile_expression

logger = get_logger(__name__)

RULE_SECTIONS = ("hard_rules", "soft_rules", "tie_breakers")


def parse_rules(document: Any) -> RuleSet:
    """Validate a parsed rule document and build a RuleSet.

    Args:
        document: Mapping with ``hard_rules``, ``soft_rules``, ``fairness`` and
            ``tie_breakers`` keys (all optional, but at least one rule section)

    Returns:
        Immutable RuleSet

    Raises:
        ConfigError: If the document does not have the expected shape
    """
    if not isinstance(document, Mapping):
        raise ConfigError(f"Rule document must be a mapping, got {type(document).__name__}")
    if not any(section in document for section in RULE_SECTIONS):
        raise ConfigError(f"Rule document has none of the sections: {', '.join(RULE_SECTIONS)}")

    data = dict(document)
    for section in RULE_SECTIONS:
        if data.get(section) is None:
            data[section] = []
    if data.get("fairness") is None:
        data["fairness"] = {}
    elif isinstance(data["fairness"], Mapping):
        # null entries fall back to model defaults
        fairness = {k: v for k, v in data["fairness"].items() if v is not None}
        if isinstance(fairness.get("diversity_boost"), Mapping):
            fairness["diversity_boost"] = {
                k: v for k, v in fairness["diversity_boost"].items() if v is not None
            }
        data["fairness"] = fairness

    try:
        rule_set = RuleSet.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid rule document: {exc}") from exc

    for section in ("hard_rules", "soft_rules"):
        counts = Counter(rule.id for rule in getattr(rule_set, section))
        duplicates = sorted(rule_id for rule_id, count in counts.items() if count > 1)
        if duplicates:
            raise ConfigError(f"Duplicate rule ids in {section}: {', '.join(duplicates)}")

    return rule_set


def validate_rules(rule_set: RuleSet) -> list[ExpressionError]:
    """Compile every expression in the rule set.

    Returns:
        Compile errors, each tagged with the id of the rule it belongs to
    """
    expressions: list[tuple[str, str]] = []
    for rule in rule_set.hard_rules:
        if rule.when is not None:
            expressions.append((rule.id, rule.when))
        expressions.append((rule.id, rule.check))
    for rule in rule_set.soft_rules:
        expressions.append((rule.id, rule.score))
    for index, source in enumerate(rule_set.tie_breakers):
        expressions.append((f"tie_breakers[{index}]", source))

    errors: list[ExpressionError] = []
    for rule_id, source in expressions:
        try:
            compile_expression(source)
        except ExpressionError as exc:
            exc.rule_id = rule_id
            errors.append(exc)
    return errors


def load_rules(path: Path | str, strict: bool = False) -> RuleSet:
    """Load a YAML rule document from disk.

    Args:
        path: Path to the rule file
        strict: Also compile every expression and reject the document on
            the first invalid one

    Returns:
        Immutable RuleSet

    Raises:
        ConfigError: If the file is missing, unreadable, not valid YAML, has
            the wrong shape, or (strict only) contains an invalid expression
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read rule file {path}: {exc}") from exc

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in rule file {path}: {exc}") from exc

    if document is None:
        raise ConfigError(f"Rule file {path} is empty")

    rule_set = parse_rules(document)

    if strict:
        errors = validate_rules(rule_set)
        if errors:
            raise ConfigError(f"Invalid expression in {path}: {errors[0]}") from errors[0]

    logger.info(
        "rules_loaded",
        path=str(path),
        hard_rules=len(rule_set.hard_rules),
        soft_rules=len(rule_set.soft_rules),
        tie_breakers=len(rule_set.tie_breakers),
    )
    return rule_set


def load_default_rules(strict: bool = False) -> RuleSet:
    """Load the rule file named by the ``rules.path`` config key."""
    config = load_config()
    rules_path = config.get("rules", {}).get("path")
    if not rules_path:
        raise ConfigError("No rule file configured (rules.path)")
    return load_rules(get_config_loader().resolve_path(rules_path), strict=strict)
