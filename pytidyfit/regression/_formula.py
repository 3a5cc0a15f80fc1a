"""
Model formula parsing.

Term structure comes from patsy's formula grammar (``ModelDesc``); this
module only maps each patsy term onto the subset pytidyfit evaluates:

    response ~ term + term + ...

    term      := name | transform(name) | factor(name) | C(name)
    transform := log | log2 | log10 | log1p | sqrt | exp | abs
    name      := identifier | `any text` | Q("any text")

``- 1`` or ``+ 0`` removes the intercept, ``+ 1`` keeps it, ``- term``
removes a term. The response may carry a numeric transform but not
factor().
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from typing import Callable

import numpy as np
from patsy import ModelDesc, PatsyError

from pytidyfit.core.exceptions import FormulaError

TRANSFORMS: dict[str, Callable[[np.ndarray], np.ndarray]] = {
    'log': np.log,
    'log2': np.log2,
    'log10': np.log10,
    'log1p': np.log1p,
    'sqrt': np.sqrt,
    'exp': np.exp,
    'abs': np.abs,
}

FACTOR = 'factor'
FACTOR_ALIASES = (FACTOR, 'C')

# patsy's quoting function for names that are not Python identifiers
QUOTE = 'Q'

_BACKTICK = re.compile(r'`([^`]*)`')
_PLAIN_NAME = re.compile(r'[A-Za-z_.][A-Za-z0-9_.]*')


@dataclass(frozen=True)
class Term:
    """
    One formula term.

    Attributes:
        label: The term as written, normalized ('factor(month)', 'log(x)', 'x')
        variable: Source column name
        transform: None, a key of TRANSFORMS, or 'factor'
    """
    label: str
    variable: str
    transform: str | None = None

    @property
    def is_factor(self) -> bool:
        return self.transform == FACTOR

    def apply(self, values: np.ndarray) -> np.ndarray:
        """Apply the numeric transform (identity if none)."""
        if self.transform is None or self.transform == FACTOR:
            return values
        with np.errstate(all='ignore'):
            return TRANSFORMS[self.transform](values)


@dataclass(frozen=True)
class Formula:
    """
    Parsed model formula.

    Attributes:
        response: Response term (numeric)
        terms: Predictor terms in formula order, duplicates removed
        intercept: Whether the model has an intercept column
        text: Normalized formula text
    """
    response: Term
    terms: tuple[Term, ...]
    intercept: bool
    text: str

    @classmethod
    def parse(cls, text: str) -> Formula:
        return parse_formula(text)

    @property
    def variables(self) -> tuple[str, ...]:
        """Source columns referenced by the formula, response first."""
        seen: dict[str, None] = {self.response.variable: None}
        for term in self.terms:
            seen.setdefault(term.variable, None)
        return tuple(seen)

    @property
    def predictor_variables(self) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for term in self.terms:
            seen.setdefault(term.variable, None)
        return tuple(seen)

    def __str__(self) -> str:
        return self.text


def parse_formula(text: str) -> Formula:
    """
    Parse R-style formula text.

    Raises:
        FormulaError: On any unsupported or malformed input
    """
    if isinstance(text, Formula):
        return text
    if not isinstance(text, str):
        raise FormulaError(f"formula: expected str, got {type(text).__name__}")
    if text.count('~') != 1:
        raise FormulaError(
            f"formula: expected exactly one '~' separating response and terms, got {text!r}",
            formula=text,
        )

    quoted = _BACKTICK.sub(lambda m: f"{QUOTE}({m.group(1)!r})", text)
    try:
        desc = ModelDesc.from_formula(quoted)
    except PatsyError as e:
        raise FormulaError(f"formula: cannot parse {text!r}: {e.message}", formula=text) from e

    if len(desc.lhs_termlist) != 1 or not desc.lhs_termlist[0].factors:
        raise FormulaError(
            f"formula: expected a single response column in {text!r}", formula=text
        )
    response = _convert_term(desc.lhs_termlist[0], text)
    if response.is_factor:
        raise FormulaError(
            f"formula: response must be numeric, factor() is not allowed: {response.label!r}",
            formula=text,
        )

    intercept = False
    terms: dict[str, Term] = {}
    for patsy_term in desc.rhs_termlist:
        if not patsy_term.factors:
            intercept = True
            continue
        term = _convert_term(patsy_term, text)
        terms.setdefault(term.label, term)

    if not terms and not intercept:
        raise FormulaError(f"formula: model has no terms and no intercept: {text!r}", formula=text)

    rhs_text = ' + '.join(t.label for t in terms.values()) or '1'
    if not intercept:
        rhs_text += ' - 1'

    return Formula(
        response=response,
        terms=tuple(terms.values()),
        intercept=intercept,
        text=f"{response.label} ~ {rhs_text}",
    )


def _convert_term(patsy_term, text: str) -> Term:
    """Map one patsy term onto a Term."""
    if len(patsy_term.factors) != 1:
        raise FormulaError(
            f"formula: interactions are not supported: {patsy_term.name()!r}", formula=text
        )
    code = patsy_term.factors[0].code
    try:
        node = ast.parse(code, mode='eval').body
    except SyntaxError as e:
        raise FormulaError(f"formula: cannot parse term {code!r}", formula=text) from e

    if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id != QUOTE:
        func = node.func.id
        if func in FACTOR_ALIASES:
            func = FACTOR
        elif func not in TRANSFORMS:
            supported = sorted([*FACTOR_ALIASES, *TRANSFORMS])
            raise FormulaError(
                f"formula: unknown function {func!r} in {code!r}; supported: {supported}",
                formula=text,
            )
        if len(node.args) != 1 or node.keywords:
            raise FormulaError(f"formula: {func}() takes one column: {code!r}", formula=text)
        name = _column_name(node.args[0], code, text)
        return Term(label=f"{func}({_quote(name)})", variable=name, transform=func)

    name = _column_name(node, code, text)
    return Term(label=_quote(name), variable=name)


def _column_name(node: ast.expr, code: str, text: str) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        # R-style dotted names, e.g. sales.total
        return f"{_column_name(node.value, code, text)}.{node.attr}"
    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id == QUOTE
        and len(node.args) == 1
        and isinstance(node.args[0], ast.Constant)
        and isinstance(node.args[0].value, str)
    ):
        return node.args[0].value
    raise FormulaError(f"formula: cannot parse term {code!r}", formula=text)


def _quote(name: str) -> str:
    if _PLAIN_NAME.fullmatch(name):
        return name
    return f"`{name}`"
