"""
Classification of raw shell input into statements of the synthesized contract.

Solidity has no interactive mode, so every fragment the user types has to be
placed somewhere in a whole-program skeleton (see `solshell.template`). This
module decides *where* (the scope) and whether the fragment can be the tail
expression of the entry function (its return-value disposition), purely by
the shape of the text. It never parses Solidity; the compiler is the
backstop for anything that is not valid.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class Scope(Enum):
    SOURCE_UNIT = "sourceUnit"
    CONTRACT = "contract"
    MAIN = "main"
    VERSION_PRAGMA = "versionPragma"

    @classmethod
    def from_code(cls, code: "str | Scope") -> "Scope":
        if isinstance(code, Scope):
            return code
        return cls(code)


# placeholder return type, replaced by type inference
PLACEHOLDER_TYPE = "bool"
EMPTY_STATEMENT = ";"

CONTRACT_KEYWORDS = (
    "function",
    "modifier",
    "mapping",
    "event",
    "error",
    "constructor",
    "receive",
    "fallback",
    "using",
)
SOURCE_UNIT_PREFIXES = (
    "contract ",
    "interface ",
    "struct ",
    "library ",
    "abstract contract ",
    "enum ",
)
NO_RETURN_PREFIXES = ("delete ", "assembly", "revert", "unchecked ", "{")
CONTROL_FLOW_KEYWORDS = ("if", "for", "while", "do", "try", "emit", "return")

_CONTRACT_KEYWORD_RE = re.compile(rf"^(?:{'|'.join(CONTRACT_KEYWORDS)})[\s(]")
_CONTROL_FLOW_RE = re.compile(rf"^(?:{'|'.join(CONTROL_FLOW_KEYWORDS)})\b")

# `uint a`, `uint256[] memory xs`, `Foo.Bar storage s`
_DECLARATION_RE = re.compile(
    r"^[A-Za-z_$][\w$.]*(?:\s*\[[^\]]*\])*"
    r"(?:\s+(?:memory|storage|calldata))?"
    r"\s+[A-Za-z_$][\w$]*\s*;?$"
)
# `2 ether`, `10 days`, `1e9 gwei`: lexically also "word space word"
_NUMBER_WITH_UNIT_RE = re.compile(
    r"^(?:0x[0-9a-fA-F_]+|[0-9][0-9_]*(?:\.[0-9_]+)?(?:e-?[0-9]+)?)\s+"
    r"(?:wei|gwei|szabo|finney|ether|seconds|minutes|hours|days|weeks|years)\s*;?$"
)
_STRING_LITERAL_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\'')


def _strip_string_literals(text: str) -> str:
    return _STRING_LITERAL_RE.sub('""', text)


def has_top_level_assignment(text: str) -> bool:
    """
    Check for `=` (or a compound `op=`) outside of parentheses, brackets and
    string literals. Comparisons (`==`, `!=`, `<=`, `>=`) and `=>` are
    not assignments.
    """
    text = _strip_string_literals(text)
    depth = 0
    for i, c in enumerate(text):
        if c in "([":
            depth += 1
        elif c in ")]":
            depth = max(0, depth - 1)
        elif c == "=" and depth == 0:
            prev = text[i - 1] if i > 0 else ""
            nxt = text[i + 1] if i + 1 < len(text) else ""
            if nxt in "=>":
                continue
            if prev == "=":
                continue
            if prev in "!<>":
                # `<<=` and `>>=` are assignments, `<=` and `>=` are not
                if text[max(0, i - 2) : i] in ("<<", ">>"):
                    return True
                continue
            return True
    return False


def looks_like_declaration(text: str) -> bool:
    if _NUMBER_WITH_UNIT_RE.match(text):
        return False
    return _DECLARATION_RE.match(text) is not None


def has_no_return_value(text: str) -> bool:
    """
    Decide whether a function-body fragment cannot be the tail expression
    of the entry function.
    """
    if text == EMPTY_STATEMENT:
        return True
    if has_top_level_assignment(text):
        return True
    if text.startswith(NO_RETURN_PREFIXES):
        return True
    if _CONTROL_FLOW_RE.match(text):
        return True
    if text.endswith("}"):
        return True
    return looks_like_declaration(text)


def terminate(text: str) -> str:
    if text.endswith((";", "}")):
        return text
    return f"{text};"


def _keep(text: str) -> str:
    return text


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Callable[[str], bool]
    scope: Scope
    # True: never has a return value. None: decided by `has_no_return_value`
    no_return: Optional[bool]
    normalize: Callable[[str], str] = _keep


# evaluated top to bottom, first match wins. prefixes overlap
# (`pragma solidity ` vs `pragma `), so order matters.
RULES: tuple[Rule, ...] = (
    Rule(
        "declaration",
        lambda t: _CONTRACT_KEYWORD_RE.match(t) is not None,
        Scope.CONTRACT,
        True,
        terminate,
    ),
    Rule(
        "version_pragma",
        lambda t: t.startswith("pragma solidity "),
        Scope.VERSION_PRAGMA,
        True,
        terminate,
    ),
    Rule(
        "source_unit_directive",
        lambda t: t.startswith(("pragma ", "import ")),
        Scope.SOURCE_UNIT,
        True,
        terminate,
    ),
    Rule(
        "source_unit_definition",
        lambda t: t.startswith(SOURCE_UNIT_PREFIXES),
        Scope.SOURCE_UNIT,
        True,
    ),
    Rule("main", lambda t: True, Scope.MAIN, None, terminate),
)

# replayed statements use the first rule for their scope
_RULES_BY_SCOPE = {rule.scope: rule for rule in reversed(RULES)}


def match_rule(text: str) -> Rule:
    # the `main` rule matches everything
    return next(rule for rule in RULES if rule.predicate(text))


class Statement:
    """
    A classified fragment. Everything but `return_type` is fixed at
    construction; `return_type` may be replaced once by type inference.
    """

    def __init__(self, raw_text: str, scope: Scope, no_return: bool):
        self._raw_text = raw_text
        self._scope = scope
        self._has_no_return_value = no_return or scope is not Scope.MAIN

        if self._has_no_return_value:
            self._return_expression = EMPTY_STATEMENT
            self._return_type = ""
        else:
            self._return_expression = raw_text
            self._return_type = PLACEHOLDER_TYPE
        self._return_type_inferred = False

    @property
    def raw_text(self) -> str:
        return self._raw_text

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def has_no_return_value(self) -> bool:
        return self._has_no_return_value

    @property
    def return_expression(self) -> str:
        return self._return_expression

    @property
    def return_type(self) -> str:
        return self._return_type

    @property
    def return_type_inferred(self) -> bool:
        return self._return_type_inferred

    def set_return_type(self, return_type: str) -> None:
        """
        Replace the placeholder type. An empty type (a call to a function
        without return values) leaves the statement without return value.
        """
        if self._has_no_return_value or self._return_type_inferred:
            raise RuntimeError(f"return type of {self!r} cannot be changed")
        if not return_type:
            self._has_no_return_value = True
            self._return_expression = EMPTY_STATEMENT
        self._return_type = return_type
        self._return_type_inferred = True

    def __str__(self):
        return self._raw_text

    def __repr__(self):
        return f"Statement({self._raw_text!r}, {self._scope.value})"


def classify(text: Optional[str], explicit_scope: "Scope | str | None" = None) -> Statement:
    """
    Turn raw input into a `Statement`.
    :param text: the fragment, as typed. Empty input is the expression `true`.
    :param explicit_scope: skip heuristic classification (session replay).
    """
    text = (text or "").strip() or "true"

    if explicit_scope is not None:
        rule = _RULES_BY_SCOPE[Scope.from_code(explicit_scope)]
    else:
        rule = match_rule(text)

    raw_text = rule.normalize(text)
    no_return = rule.no_return
    if no_return is None:
        no_return = has_no_return_value(raw_text)

    return Statement(raw_text, rule.scope, no_return)
