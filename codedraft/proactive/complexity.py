"""
Structural Complexity

Cyclomatic-style estimate computed with regular expressions. It is a rough
signal for "how much branching is in this text", not a parser.
"""

import math
import re

CALL_WEIGHT = 0.5
MAX_CALL_CONTRIBUTION = 10

CONDITIONAL_RE = re.compile(r"\belse\s+if\b|\belif\b|\bif\b|\belse\b|\bswitch\b|\bcase\b")
LOOP_RE = re.compile(
    r"\bfor\b|\bwhile\b|\bdo\s*\{|\.forEach\(|\.map\(|\.filter\(|\.reduce\(|\.flatMap\(|\.some\(|\.every\("
)
LOGICAL_RE = re.compile(r"&&|\|\|")
EXCEPTION_RE = re.compile(r"\btry\b|\bcatch\b|\bexcept\b|\bfinally\b")
# `?` not part of `?.` / `??` / `?:`, followed by an expression and `:` on the same line
TERNARY_RE = re.compile(r"(?<!\?)\?(?![.?:])[^:;\n?]+:")
CALL_RE = re.compile(r"\b([A-Za-z_$][\w$]*)\s*\(")

# Keywords that look like calls but are control flow or declarations
NON_CALL_KEYWORDS = frozenset({
    "if", "elif", "for", "while", "switch", "catch", "except", "with", "return",
    "function", "def", "class", "typeof", "await", "yield", "not", "and", "or",
    "in", "of", "new", "do", "else", "case", "print",
})


def brace_depth(code: str) -> int:
    """Maximum `{ }` nesting depth; unbalanced closers never go below zero"""
    max_depth = 0
    depth = 0
    for char in code:
        if char == "{":
            depth += 1
            max_depth = max(max_depth, depth)
        elif char == "}":
            depth = max(depth - 1, 0)
    return max_depth


def count_calls(code: str) -> int:
    return sum(1 for m in CALL_RE.finditer(code) if m.group(1) not in NON_CALL_KEYWORDS)


def calculate_complexity(code: str) -> int:
    """
    Estimate structural complexity of a text.

    1 + branches + loops + logical operators + exception constructs
    + ternaries + 0.5 per call (capped at 10) + 2 x max nesting depth,
    rounded half up.
    """
    if not code:
        return 1

    complexity = 1.0
    complexity += len(CONDITIONAL_RE.findall(code))
    complexity += len(LOOP_RE.findall(code))
    complexity += len(LOGICAL_RE.findall(code))
    complexity += len(EXCEPTION_RE.findall(code))
    complexity += len(TERNARY_RE.findall(code))
    complexity += min(count_calls(code) * CALL_WEIGHT, MAX_CALL_CONTRIBUTION)
    complexity += brace_depth(code) * 2

    return int(math.floor(complexity + 0.5))
