from __future__ import annotations

import ast
import operator
import re
from typing import Any, Dict

from agents.tools.base import ToolBase
from agents.tools.exceptions import ToolConfigurationError, ToolExecutionError

_ALLOWED_CHARS_RE = re.compile(r"^[0-9+\-*/%.()\s]+$")
_MAX_EXPONENT = 1000

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPS = {ast.UAdd: operator.pos, ast.USub: operator.neg}


def evaluate_expression(expression: str) -> float | int:
    """Evaluate plain arithmetic by walking the AST. Names, calls and attributes are rejected."""
    if not _ALLOWED_CHARS_RE.match(expression):
        raise ValueError("Invalid characters in expression")
    tree = ast.parse(expression.strip(), mode="eval")
    return _eval(tree.body)


def _eval(node: ast.AST) -> float | int:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval(node.operand))
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        left, right = _eval(node.left), _eval(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > _MAX_EXPONENT:
            raise ValueError("Exponent too large")
        return _BINARY_OPS[type(node.op)](left, right)
    raise ValueError(f"Unsupported expression element: {type(node).__name__}")


class CalculatorTool(ToolBase):
    name = "calculator"
    description = "Perform mathematical calculations and evaluate expressions"
    required_parameters = ("expression",)

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        expression = str(parameters["expression"])
        try:
            result = evaluate_expression(expression)
        except ZeroDivisionError as exc:
            raise ToolExecutionError("Calculator error: division by zero", tool_id=self.id) from exc
        except (ValueError, SyntaxError) as exc:
            raise ToolConfigurationError(f"Calculator error: {exc}", tool_id=self.id) from exc

        return {"expression": expression, "result": result, "type": "number"}
