#!/usr/bin/env python3
"""
Trigger expression evaluator.

Trigger expressions are written by script authors and decide whether a
guidance step fires. They are parsed into a small expression tree and
evaluated against a fixed five-name context; nothing is ever executed.

Grammar, lowest to highest precedence:

    or_expr    := and_expr ( "||" and_expr )*
    and_expr   := not_expr ( "&&" not_expr )*
    not_expr   := "!" not_expr | comparison
    comparison := primary ( ("===" | "!==" | ">=" | "<=" | ">" | "<") primary )?
    primary    := literal | "(" or_expr ")" | name [ "." "length" | "." method "(" arg ")" ]

Context names: code, stdout, stderr (strings), passed (bool), attempts (int).
Methods on the string names: includes, startsWith, endsWith, match.
A /regex/flags literal is only accepted as the argument to match().
Patterns that repeat a group which already repeats, such as /(a+)+/, are
rejected.

Comparisons only succeed between values of the same kind (bool, number,
string). Comparing across kinds is always False, for every operator.

Any failure (bad syntax, unknown name or method, bad argument, bad regex)
makes evaluate_trigger() return False and log a warning.
"""

import logging
import operator
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .errors import TriggerError, TriggerErrorKind
from .state import TriggerContext

logger = logging.getLogger(__name__)

CONTEXT_VARIABLES = frozenset({'code', 'stdout', 'stderr', 'passed', 'attempts'})
STRING_METHODS = frozenset({'includes', 'startsWith', 'endsWith', 'match'})
COMPARISON_OPERATORS = ('===', '!==', '>=', '<=', '>', '<')

# Parenthesis and '!' nesting limit
MAX_DEPTH = 64

_LITERALS = {
    'true': True,
    'false': False,
    'null': False,
    'undefined': False,
}

# JS regex flags that have a Python equivalent; the rest are accepted and ignored
_REGEX_FLAGS = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
    'd': 0,
    'g': 0,
    'u': 0,
    'v': 0,
    'y': 0,
}

_NUMBER_RE = re.compile(r'-?[0-9]+(?:\.[0-9]+)?')
_IDENT_RE = re.compile(r'[A-Za-z_$][A-Za-z0-9_$]*')

_ORDERING: Dict[str, Callable[[Any, Any], bool]] = {
    '>': operator.gt,
    '<': operator.lt,
    '>=': operator.ge,
    '<=': operator.le,
}


class TokenKind(Enum):
    NUMBER = 'number'
    STRING = 'string'
    REGEX = 'regex'
    IDENT = 'identifier'
    OP = 'operator'
    LPAREN = '('
    RPAREN = ')'
    DOT = '.'
    COMMA = ','
    EOF = 'end of expression'


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int
    flags: str = ''  # regex tokens only

    def describe(self) -> str:
        if self.kind == TokenKind.EOF:
            return 'end of expression'
        return f"'{self.text}' at position {self.position}"


def _syntax_error(message: str) -> TriggerError:
    return TriggerError(TriggerErrorKind.SYNTAX, message)


# =========================================================================
# Tokenizer
# =========================================================================

def tokenize(source: str) -> List[Token]:
    """Split an expression into tokens.

    Quoted strings and regex literals are consumed whole, so operator
    characters inside them never reach the parser.
    """
    tokens: List[Token] = []
    i = 0
    length = len(source)

    while i < length:
        char = source[i]

        if char.isspace():
            i += 1
            continue

        if char in ('"', "'"):
            end = source.find(char, i + 1)
            if end == -1:
                raise _syntax_error(f"unterminated string starting at position {i}")
            tokens.append(Token(TokenKind.STRING, source[i + 1:end], i))
            i = end + 1
            continue

        if char == '/':
            if not tokens or tokens[-1].kind not in (TokenKind.LPAREN, TokenKind.COMMA):
                raise _syntax_error(f"unexpected '/' at position {i}")
            i = _read_regex(source, i, tokens)
            continue

        number = _NUMBER_RE.match(source, i)
        if number:
            tokens.append(Token(TokenKind.NUMBER, number.group(0), i))
            i = number.end()
            continue

        ident = _IDENT_RE.match(source, i)
        if ident:
            tokens.append(Token(TokenKind.IDENT, ident.group(0), i))
            i = ident.end()
            continue

        three, two = source[i:i + 3], source[i:i + 2]
        if three in ('===', '!=='):
            tokens.append(Token(TokenKind.OP, three, i))
            i += 3
        elif two in ('||', '&&', '>=', '<='):
            tokens.append(Token(TokenKind.OP, two, i))
            i += 2
        elif char in ('!', '>', '<'):
            tokens.append(Token(TokenKind.OP, char, i))
            i += 1
        elif char == '(':
            tokens.append(Token(TokenKind.LPAREN, char, i))
            i += 1
        elif char == ')':
            tokens.append(Token(TokenKind.RPAREN, char, i))
            i += 1
        elif char == '.':
            tokens.append(Token(TokenKind.DOT, char, i))
            i += 1
        elif char == ',':
            tokens.append(Token(TokenKind.COMMA, char, i))
            i += 1
        else:
            raise _syntax_error(f"unexpected character '{char}' at position {i}")

    tokens.append(Token(TokenKind.EOF, '', length))
    return tokens


def _read_regex(source: str, start: int, tokens: List[Token]) -> int:
    """Consume /pattern/flags starting at `start`, return the next index"""
    i = start + 1
    in_class = False
    while i < len(source):
        char = source[i]
        if char == '\\':
            i += 2
            continue
        if char == '[':
            in_class = True
        elif char == ']':
            in_class = False
        elif char == '/' and not in_class:
            break
        i += 1
    else:
        raise _syntax_error(f"unterminated regex starting at position {start}")

    pattern = source[start + 1:i]
    if not pattern:
        raise _syntax_error(f"empty regex at position {start}")

    flags_end = i + 1
    while flags_end < len(source) and source[flags_end].isalpha():
        flags_end += 1

    tokens.append(Token(TokenKind.REGEX, pattern, start, flags=source[i + 1:flags_end]))
    return flags_end


def _has_nested_quantifier(pattern: str) -> bool:
    """True when a repeated group itself contains a repeat, e.g. (a+)+"""
    groups = [False]
    in_class = False
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == '\\':
            i += 2
            continue
        if in_class:
            if char == ']':
                in_class = False
        elif char == '[':
            in_class = True
        elif char == '(':
            groups.append(False)
        elif char == ')' and len(groups) > 1:
            inner = groups.pop()
            if inner and pattern[i + 1:i + 2] in ('+', '*', '{'):
                return True
            groups[-1] = groups[-1] or inner
        elif char in '+*{':
            groups[-1] = True
        i += 1
    return False


def _compile_regex(pattern: str, flags: str) -> re.Pattern:
    compiled_flags = 0
    for flag in flags:
        if flag not in _REGEX_FLAGS:
            raise TriggerError(TriggerErrorKind.INVALID_REGEX, f"invalid regex flag '{flag}' in /{pattern}/{flags}")
        if flags.count(flag) > 1:
            raise TriggerError(TriggerErrorKind.INVALID_REGEX, f"duplicate regex flag '{flag}' in /{pattern}/{flags}")
        compiled_flags |= _REGEX_FLAGS[flag]
    if _has_nested_quantifier(pattern):
        raise TriggerError(
            TriggerErrorKind.INVALID_REGEX,
            f"nested repetition in /{pattern}/{flags} can backtrack without bound",
        )
    try:
        return re.compile(pattern, compiled_flags)
    except (re.error, OverflowError, RecursionError) as e:
        raise TriggerError(TriggerErrorKind.INVALID_REGEX, f"invalid regex /{pattern}/{flags}: {e}")


# =========================================================================
# Expression tree
# =========================================================================

def _truthy(value: Any) -> bool:
    return bool(value)


def _kind(value: Any) -> Optional[str]:
    # bool is checked first: True/False are never numbers here
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    return None


def compare_values(op: str, left: Any, right: Any) -> bool:
    """Compare two resolved values; cross-kind comparisons are False"""
    left_kind = _kind(left)
    if left_kind is None or left_kind != _kind(right):
        return False
    if op == '===':
        return left == right
    if op == '!==':
        return left != right
    if left_kind == 'boolean':
        return False
    return _ORDERING[op](left, right)


@dataclass(frozen=True)
class Literal:
    value: Union[bool, int, float, str]

    def evaluate(self, values: Mapping[str, Any]) -> Any:
        return self.value


@dataclass(frozen=True)
class Variable:
    name: str

    def evaluate(self, values: Mapping[str, Any]) -> Any:
        if self.name not in values:
            raise TriggerError(TriggerErrorKind.UNKNOWN_IDENTIFIER, f"unknown identifier '{self.name}'")
        return values[self.name]


@dataclass(frozen=True)
class Length:
    target: Variable

    def evaluate(self, values: Mapping[str, Any]) -> int:
        value = self.target.evaluate(values)
        if not isinstance(value, str):
            raise TriggerError(TriggerErrorKind.NOT_A_STRING, f"'{self.target.name}' has no length")
        return len(value)


@dataclass(frozen=True)
class MethodCall:
    target: Variable
    method: str
    argument: Union[str, re.Pattern]

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        value = self.target.evaluate(values)
        if not isinstance(value, str):
            raise TriggerError(
                TriggerErrorKind.NOT_A_STRING,
                f"cannot call {self.method}() on '{self.target.name}'",
            )
        if self.method == 'includes':
            return self.argument in value
        if self.method == 'startsWith':
            return value.startswith(self.argument)
        if self.method == 'endsWith':
            return value.endswith(self.argument)
        # match: plain strings are a substring test
        if isinstance(self.argument, str):
            return self.argument in value
        return self.argument.search(value) is not None


@dataclass(frozen=True)
class Not:
    operand: Any

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        return not _truthy(self.operand.evaluate(values))


@dataclass(frozen=True)
class AllOf:
    operands: Tuple[Any, ...]

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        return all(_truthy(operand.evaluate(values)) for operand in self.operands)


@dataclass(frozen=True)
class AnyOf:
    operands: Tuple[Any, ...]

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        return any(_truthy(operand.evaluate(values)) for operand in self.operands)


@dataclass(frozen=True)
class Comparison:
    op: str
    left: Any
    right: Any

    def evaluate(self, values: Mapping[str, Any]) -> bool:
        return compare_values(self.op, self.left.evaluate(values), self.right.evaluate(values))


# =========================================================================
# Parser
# =========================================================================

class _Parser:
    """Recursive-descent parser over a token list"""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != TokenKind.EOF:
            self.pos += 1
        return token

    def _accept_op(self, text: str) -> bool:
        token = self.peek()
        if token.kind == TokenKind.OP and token.text == text:
            self.advance()
            return True
        return False

    def _enter(self):
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise _syntax_error(f"expression nested deeper than {MAX_DEPTH} levels")

    def parse(self):
        if self.peek().kind == TokenKind.EOF:
            raise _syntax_error('empty trigger expression')
        node = self.parse_or()
        token = self.peek()
        if token.kind != TokenKind.EOF:
            raise _syntax_error(f"unexpected {token.describe()}")
        return node

    def parse_or(self):
        operands = [self.parse_and()]
        while self._accept_op('||'):
            operands.append(self.parse_and())
        return operands[0] if len(operands) == 1 else AnyOf(tuple(operands))

    def parse_and(self):
        operands = [self.parse_not()]
        while self._accept_op('&&'):
            operands.append(self.parse_not())
        return operands[0] if len(operands) == 1 else AllOf(tuple(operands))

    def parse_not(self):
        if self._accept_op('!'):
            self._enter()
            operand = self.parse_not()
            self.depth -= 1
            return Not(operand)
        return self.parse_comparison()

    def parse_comparison(self):
        left = self.parse_primary()
        token = self.peek()
        if token.kind == TokenKind.OP and token.text in COMPARISON_OPERATORS:
            self.advance()
            return Comparison(token.text, left, self.parse_primary())
        return left

    def parse_primary(self):
        token = self.advance()

        if token.kind == TokenKind.LPAREN:
            self._enter()
            node = self.parse_or()
            closing = self.advance()
            if closing.kind != TokenKind.RPAREN:
                raise _syntax_error(f"expected ')' but found {closing.describe()}")
            self.depth -= 1
            return node

        if token.kind == TokenKind.NUMBER:
            try:
                number = float(token.text) if '.' in token.text else int(token.text)
            except ValueError:
                raise _syntax_error(f"number literal at position {token.position} is too long")
            return Literal(number)

        if token.kind == TokenKind.STRING:
            return Literal(token.text)

        if token.kind == TokenKind.REGEX:
            raise TriggerError(
                TriggerErrorKind.BAD_ARGUMENT,
                'regex literals are only allowed as the argument to match()',
            )

        if token.kind == TokenKind.IDENT:
            if token.text in _LITERALS:
                return Literal(_LITERALS[token.text])
            if token.text not in CONTEXT_VARIABLES:
                raise TriggerError(TriggerErrorKind.UNKNOWN_IDENTIFIER, f"unknown identifier '{token.text}'")
            variable = Variable(token.text)
            if self.peek().kind == TokenKind.DOT:
                return self.parse_member(variable)
            return variable

        raise _syntax_error(f"expected a value but found {token.describe()}")

    def parse_member(self, variable: Variable):
        self.advance()  # '.'
        name = self.advance()
        if name.kind != TokenKind.IDENT:
            raise _syntax_error(f"expected a property or method name but found {name.describe()}")

        if name.text == 'length':
            if self.peek().kind == TokenKind.LPAREN:
                raise TriggerError(TriggerErrorKind.UNKNOWN_MEMBER, "'length' is a property, not a method")
            node = Length(variable)
        elif name.text in STRING_METHODS:
            if self.peek().kind != TokenKind.LPAREN:
                raise TriggerError(TriggerErrorKind.UNKNOWN_MEMBER, f"{name.text} must be called as a method")
            self.advance()
            node = MethodCall(variable, name.text, self.parse_argument(name.text))
        else:
            raise TriggerError(TriggerErrorKind.UNKNOWN_MEMBER, f"unsupported property or method '{name.text}'")

        if self.peek().kind == TokenKind.DOT:
            raise _syntax_error(f"chained member access at position {self.peek().position} is not supported")
        return node

    def parse_argument(self, method: str) -> Union[str, re.Pattern]:
        token = self.advance()
        if token.kind == TokenKind.RPAREN:
            raise TriggerError(TriggerErrorKind.BAD_ARGUMENT, f"{method}() requires exactly one argument")

        if token.kind == TokenKind.STRING:
            argument: Union[str, re.Pattern] = token.text
        elif token.kind == TokenKind.REGEX and method == 'match':
            argument = _compile_regex(token.text, token.flags)
        elif method == 'match':
            raise TriggerError(TriggerErrorKind.BAD_ARGUMENT, 'match() requires a string or regex literal')
        else:
            raise TriggerError(TriggerErrorKind.BAD_ARGUMENT, f"{method}() requires a string literal")

        closing = self.advance()
        if closing.kind == TokenKind.COMMA:
            raise TriggerError(TriggerErrorKind.BAD_ARGUMENT, f"{method}() requires exactly one argument")
        if closing.kind != TokenKind.RPAREN:
            raise _syntax_error(f"expected ')' but found {closing.describe()}")
        return argument


# =========================================================================
# Public API
# =========================================================================

@lru_cache(maxsize=512)
def compile_trigger(trigger: str):
    """Parse a trigger into an expression tree. Raises TriggerError."""
    if not isinstance(trigger, str):
        raise TriggerError(TriggerErrorKind.SYNTAX, 'trigger expression must be a string')
    return _Parser(tokenize(trigger.strip())).parse()


def _context_values(context: Union[TriggerContext, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(context, TriggerContext):
        return context.as_dict()
    return {name: context[name] for name in CONTEXT_VARIABLES if name in context}


def evaluate_trigger(trigger: str, context: Union[TriggerContext, Mapping[str, Any]]) -> bool:
    """
    Evaluate a trigger expression against a context.

    Returns True only when the expression is well formed and its condition
    holds. Never raises: every failure is logged and reported as False.
    """
    if not isinstance(trigger, str):
        logger.warning("Ignoring trigger of type %s (expected a string)", type(trigger).__name__)
        return False

    try:
        tree = compile_trigger(trigger)
        return _truthy(tree.evaluate(_context_values(context)))
    except TriggerError as e:
        logger.warning("Failed to evaluate trigger %r (%s): %s", trigger, e.kind.value, e.message)
        return False


_SAMPLE_CONTEXT = TriggerContext(code='', stdout='', stderr='', passed=False, attempts=0)


def check_trigger(trigger: str) -> Optional[str]:
    """Return why a trigger can never fire, or None if it is usable"""
    try:
        compile_trigger(trigger).evaluate(_SAMPLE_CONTEXT.as_dict())
    except TriggerError as e:
        return e.message
    return None
