"""Filter expressions deciding which builds produce a notification."""

import ast
from typing import Any

from simpleeval import AttributeDoesNotExist, EvalWithCompoundTypes, InvalidExpression

from buildnotifier.core.exceptions import FilterCompileError
from buildnotifier.core.logging import get_logger
from buildnotifier.models.build import BUILD_FIELDS, Build, BuildStatus

logger = get_logger(__name__)

# Allowed functions in filter expressions
ALLOWED_FUNCTIONS = {
    "len": len,
    "min": min,
    "max": max,
    "any": any,
    "all": all,
    "str": str,
    "int": int,
    "bool": bool,
}

# Status names usable as bare constants, e.g. "status == SUCCESS"
STATUS_CONSTANTS: dict[str, str] = {status.name: status.value for status in BuildStatus}

KNOWN_NAMES: frozenset[str] = frozenset(
    BUILD_FIELDS
    | {"build", "True", "False", "None"}
    | set(STATUS_CONSTANTS)
    | set(ALLOWED_FUNCTIONS)
)

# Failures that depend on the values of a particular build, not on the
# expression itself
DATA_DEPENDENT_ERRORS = (
    KeyError,
    IndexError,
    TypeError,
    ArithmeticError,
    ValueError,
    AttributeDoesNotExist,
)

_PLACEHOLDER_BUILD = Build(id="placeholder")


def _eval_names(build: Build) -> dict[str, Any]:
    view = build.to_view()
    return {**STATUS_CONSTANTS, **view, "build": view}


def _unknown_names(tree: ast.AST) -> set[str]:
    """Names referenced by the expression that nothing will bind."""
    bound: set[str] = set()
    referenced: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.comprehension):
            bound.update(n.id for n in ast.walk(node.target) if isinstance(n, ast.Name))
        elif isinstance(node, ast.Name):
            referenced.add(node.id)
    return referenced - bound - KNOWN_NAMES


def _unknown_build_fields(tree: ast.AST) -> set[str]:
    """Fields reached through `build.<field>` or `build["<field>"]` that do not exist."""
    unknown: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute):
            base, field = node.value, node.attr
        elif isinstance(node, ast.Subscript):
            base, key = node.value, node.slice
            if not (isinstance(key, ast.Constant) and isinstance(key.value, str)):
                continue
            field = key.value
        else:
            continue
        if isinstance(base, ast.Name) and base.id == "build" and field not in BUILD_FIELDS:
            unknown.add(f"build.{field}")
    return unknown


class Predicate:
    """Compiled filter expression over builds.

    Holds only the parsed expression; a fresh evaluator is created per call so
    one predicate can serve concurrent events.
    """

    def __init__(self, expression: str, tree: ast.AST):
        self.expression = expression
        self._tree = tree

    def _evaluate(self, build: Build) -> Any:
        evaluator = EvalWithCompoundTypes(
            names=_eval_names(build),
            functions=ALLOWED_FUNCTIONS,
        )
        return evaluator.eval(self.expression, previously_parsed=self._tree)

    def apply(self, build: Build) -> bool:
        """Evaluate the filter for one build.

        A build the expression cannot be evaluated against (missing
        substitution, comparison with an unset field, ...) does not match.
        """
        try:
            return bool(self._evaluate(build))
        except Exception as e:
            logger.warning(
                "Filter evaluation failed, treating as no match",
                expression=self.expression,
                build_id=build.id,
                error=str(e),
            )
            return False

    def __repr__(self) -> str:
        return f"Predicate({self.expression!r})"


def compile_predicate(expression: str) -> Predicate:
    """Compile a filter expression.

    Args:
        expression: Filter expression, e.g. "status in [FAILURE, TIMEOUT]"

    Returns:
        Reusable predicate

    Raises:
        FilterCompileError: If the expression is empty, malformed or
            references unknown names
    """
    if not expression or not expression.strip():
        raise FilterCompileError("Filter expression is empty")

    try:
        tree = EvalWithCompoundTypes().parse(expression)
    except (SyntaxError, InvalidExpression) as e:
        raise FilterCompileError(f"Invalid filter expression {expression!r}: {e}") from e

    unknown = _unknown_names(tree) | _unknown_build_fields(tree)
    if unknown:
        raise FilterCompileError(
            f"Filter expression {expression!r} references unknown names: "
            f"{', '.join(sorted(unknown))}"
        )

    predicate = Predicate(expression, tree)

    # Dry run to surface constructs the evaluator refuses
    try:
        predicate._evaluate(_PLACEHOLDER_BUILD)
    except DATA_DEPENDENT_ERRORS:
        pass
    except Exception as e:
        raise FilterCompileError(f"Unsupported filter expression {expression!r}: {e}") from e

    logger.debug("Filter compiled", expression=expression)
    return predicate
