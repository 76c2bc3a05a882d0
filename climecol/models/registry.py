"""
registry.py
===========

Seasonal model definitions for the curve fitter.

This module provides:
    1. SeasonalModel - Frozen dataclass: parameter names, curve function,
       start-value rule and a printable expression
    2. BUILTIN_MODELS - Read-only registry of the built-in curves
       (``sin1``, ``sin2``), built once at import
    3. CustomModel - User-supplied curve (callable or expression string)
       plus start values, compiled into a SeasonalModel at fit time

Curves take the day of year (1..366) as predictor ``day_of_year``.

    sin1:  a + b1*sin(2*pi*t/365) + b2*cos(2*pi*t/365)
    sin2:  T0 * (1 + T1*cos(2*pi*(omega*t + theta)/365))

Author: climecol Team
"""

from __future__ import annotations

import ast
import inspect
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.0

PREDICTOR = "day_of_year"
_PREDICTOR_ALIASES = (PREDICTOR, "t")

# Names an expression formula may use besides its parameters
EXPRESSION_NAMESPACE: Mapping[str, Any] = MappingProxyType({
    "sin": np.sin,
    "cos": np.cos,
    "tan": np.tan,
    "tanh": np.tanh,
    "exp": np.exp,
    "log": np.log,
    "log10": np.log10,
    "sqrt": np.sqrt,
    "abs": np.abs,
    "minimum": np.minimum,
    "maximum": np.maximum,
    "pi": np.pi,
})


# =============================================================================
# Model Definition
# =============================================================================

@dataclass(frozen=True)
class SeasonalModel:
    """
    A curve ``y = f(day_of_year; params)`` with a rule for start values.

    Attributes
    ----------
    name : str
        Registry / result key.
    param_names : tuple of str
        Free parameters, in solver order.
    func : callable
        ``func(day_of_year, **params) -> array``.
    start : callable
        ``start(y) -> dict`` of initial parameter values from the response.
    expression : str
        Human-readable form of the curve.
    """

    name: str
    param_names: Tuple[str, ...]
    func: Callable[..., Any]
    start: Callable[[np.ndarray], Dict[str, float]]
    expression: str = ""

    @property
    def n_params(self) -> int:
        return len(self.param_names)

    def evaluate(self, day_of_year, params: Mapping[str, float]) -> np.ndarray:
        """Evaluate the curve at ``day_of_year`` with the given parameters."""
        t = np.asarray(day_of_year, dtype=float)
        values = self.func(t, **{p: float(params[p]) for p in self.param_names})
        return np.broadcast_to(np.asarray(values, dtype=float), t.shape).copy()


# =============================================================================
# Built-in Curves
# =============================================================================

def _sin1(t, a, b1, b2):
    omega = 2 * np.pi * t / DAYS_PER_YEAR
    return a + b1 * np.sin(omega) + b2 * np.cos(omega)


def _sin1_start(y: np.ndarray) -> Dict[str, float]:
    spread = float(np.std(y, ddof=1)) if len(y) > 1 else 1.0
    return {"a": float(np.mean(y)), "b1": 0.5 * spread, "b2": 0.5 * spread}


def _sin2(t, T0, T1, omega, theta):
    return T0 * (1 + T1 * np.cos(2 * np.pi * (omega * t + theta) / DAYS_PER_YEAR))


def _sin2_start(y: np.ndarray) -> Dict[str, float]:
    return {"T0": float(np.mean(y)), "T1": 0.5, "omega": 1.0, "theta": 1.0}


SIN1 = SeasonalModel(
    name="sin1",
    param_names=("a", "b1", "b2"),
    func=_sin1,
    start=_sin1_start,
    expression="a + b1*sin(2*pi*day_of_year/365) + b2*cos(2*pi*day_of_year/365)",
)

SIN2 = SeasonalModel(
    name="sin2",
    param_names=("T0", "T1", "omega", "theta"),
    func=_sin2,
    start=_sin2_start,
    expression="T0*(1 + T1*cos(2*pi*(omega*day_of_year + theta)/365))",
)

BUILTIN_MODELS: Mapping[str, SeasonalModel] = MappingProxyType({
    SIN1.name: SIN1,
    SIN2.name: SIN2,
})


# =============================================================================
# Custom Models
# =============================================================================

@dataclass(frozen=True)
class CustomModel:
    """
    User-supplied seasonal curve.

    Attributes
    ----------
    formula : str or callable
        Either a callable ``f(day_of_year, p1, p2, ...)`` or an expression
        such as ``"a + b*cos(2*pi*(day_of_year - c)/365)"``, optionally
        prefixed with ``"<response> ~ "``. ``^`` is read as a power.
    start : mapping
        Initial value for every parameter.

    Examples
    --------
    >>> CustomModel("mean_temp ~ a + b*cos(2*pi*(day_of_year - c)/365)",
    ...             {"a": 10, "b": 8, "c": 200})
    """

    formula: Union[str, Callable[..., Any]]
    start: Mapping[str, float] = field(default_factory=dict)

    def compile(self, name: str, response_col: Optional[str] = None) -> SeasonalModel:
        """
        Build the SeasonalModel for this formula.

        Raises
        ------
        ValueError
            If the expression is malformed, names the wrong response, or a
            parameter has no start value.
        """
        if callable(self.formula):
            param_names = _callable_params(self.formula)
            func = self.formula
            expression = getattr(self.formula, "__name__", "<callable>")
        else:
            param_names, func, expression = _compile_expression(self.formula, response_col)

        missing = [p for p in param_names if p not in self.start]
        if missing:
            raise ValueError(f"Model '{name}': missing start values for {missing}")
        unused = [p for p in self.start if p not in param_names]
        if unused:
            logger.debug(f"Model '{name}': ignoring start values for unused names {unused}")

        start_values = {p: float(self.start[p]) for p in param_names}
        return SeasonalModel(
            name=name,
            param_names=tuple(param_names),
            func=func,
            start=lambda y: dict(start_values),
            expression=expression,
        )


def as_custom_model(name: str, spec: Any) -> CustomModel:
    """
    Normalize a custom model specification.

    Accepts a ``CustomModel``, a ``(formula, start)`` pair or a mapping with
    ``formula`` and ``start`` keys.
    """
    if isinstance(spec, CustomModel):
        return spec
    if isinstance(spec, Mapping):
        if "formula" not in spec or "start" not in spec:
            raise ValueError(f"Custom model '{name}' must have both 'formula' and 'start'")
        return CustomModel(spec["formula"], dict(spec["start"]))
    if isinstance(spec, (tuple, list)) and len(spec) == 2:
        return CustomModel(spec[0], dict(spec[1]))
    raise ValueError(f"Custom model '{name}' must have both 'formula' and 'start'")


def _callable_params(func: Callable[..., Any]) -> list:
    params = [
        p.name for p in inspect.signature(func).parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
    ]
    if not params:
        raise ValueError("Custom model callable must accept the day of year as first argument")
    return params[1:]


_BINARY_OPS = {
    ast.Add: np.add,
    ast.Sub: np.subtract,
    ast.Mult: np.multiply,
    ast.Div: np.divide,
    ast.Pow: np.power,
}

_UNARY_OPS = {
    ast.UAdd: np.positive,
    ast.USub: np.negative,
}


def _check_node(node: ast.AST, formula: str) -> None:
    """Reject anything but arithmetic on names, numbers and namespace functions."""
    if isinstance(node, ast.Expression):
        _check_node(node.body, formula)
    elif isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        _check_node(node.left, formula)
        _check_node(node.right, formula)
    elif isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        _check_node(node.operand, formula)
    elif isinstance(node, ast.Name):
        return
    elif isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise ValueError(f"Unsupported constant {node.value!r} in formula {formula!r}")
    elif isinstance(node, ast.Call):
        target = node.func
        if not (
            isinstance(target, ast.Name)
            and callable(EXPRESSION_NAMESPACE.get(target.id))
            and not node.keywords
        ):
            raise ValueError(f"Unsupported function call in formula {formula!r}")
        for arg in node.args:
            _check_node(arg, formula)
    else:
        raise ValueError(f"Unsupported syntax in formula {formula!r}")


def _evaluate_node(node: ast.AST, scope: Mapping[str, Any]):
    """Evaluate a checked expression tree with numpy float arithmetic."""
    if isinstance(node, ast.Expression):
        return _evaluate_node(node.body, scope)
    if isinstance(node, ast.BinOp):
        left = _evaluate_node(node.left, scope)
        right = _evaluate_node(node.right, scope)
        return _BINARY_OPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp):
        return _UNARY_OPS[type(node.op)](_evaluate_node(node.operand, scope))
    if isinstance(node, ast.Name):
        return scope[node.id]
    if isinstance(node, ast.Constant):
        # Floats overflow to inf instead of growing like Python ints
        return np.float64(node.value)
    func = EXPRESSION_NAMESPACE[node.func.id]
    return func(*(_evaluate_node(arg, scope) for arg in node.args))


def _compile_expression(formula: str, response_col: Optional[str]):
    """Parse an expression formula into (param_names, func, expression)."""
    text = formula.strip()
    if "~" in text:
        lhs, text = (part.strip() for part in text.split("~", 1))
        if response_col is not None and lhs != response_col:
            raise ValueError(f"Formula response '{lhs}' does not match '{response_col}'")
    text = text.replace("^", "**")

    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError as exc:
        raise ValueError(f"Cannot parse formula {formula!r}: {exc.msg}") from exc

    _check_node(tree, formula)

    call_targets = {id(n.func) for n in ast.walk(tree) if isinstance(n, ast.Call)}
    names = sorted(
        (n for n in ast.walk(tree) if isinstance(n, ast.Name) and id(n) not in call_targets),
        key=lambda n: (n.lineno, n.col_offset),
    )
    param_names = []
    predictor = PREDICTOR
    for node in names:
        if node.id in _PREDICTOR_ALIASES:
            predictor = node.id
        elif node.id not in EXPRESSION_NAMESPACE and node.id not in param_names:
            param_names.append(node.id)

    def func(t, **params):
        scope = dict(EXPRESSION_NAMESPACE)
        scope.update({k: np.float64(v) for k, v in params.items()})
        scope[predictor] = np.asarray(t, dtype=float)
        return _evaluate_node(tree, scope)

    return param_names, func, text
