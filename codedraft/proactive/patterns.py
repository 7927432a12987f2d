"""
Change Pattern Rules

Table-driven heuristics that tag edited text. Each rule is independent:
a change may match several tags at once. Adding or removing a rule does not
touch the scoring code, which only reads `bonus` and `category` from here.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Optional, Pattern, Tuple

from ..common.schemas import ChangeCategory, PatternTag

I = re.IGNORECASE
M = re.MULTILINE


def is_test_file(file_path: str) -> bool:
    """Check if a path looks like a test file"""
    name = file_path.replace("\\", "/").lower()
    base = name.rsplit("/", 1)[-1]
    return (
        ".test." in base
        or ".spec." in base
        or base.startswith("test_")
        or "_test." in base
        or "/tests/" in name
        or "/test/" in name
        or "/__tests__/" in name
        or name.startswith(("tests/", "test/", "__tests__/"))
    )


def is_config_file(file_path: str) -> bool:
    """Check if a path looks like a configuration file"""
    name = file_path.replace("\\", "/").lower()
    base = name.rsplit("/", 1)[-1]
    return (
        base.endswith((".json", ".yaml", ".yml", ".toml", ".ini", ".cfg"))
        or base.startswith(".env")
        or "config" in base
    )


def is_doc_file(file_path: str) -> bool:
    """Check if a path looks like prose documentation"""
    return file_path.lower().endswith((".md", ".markdown", ".rst", ".txt", ".adoc"))


@dataclass(frozen=True)
class PatternRule:
    """One heuristic classifier"""
    tag: PatternTag
    bonus: int
    category: Optional[ChangeCategory]
    description: str
    patterns: Tuple[Pattern, ...] = ()
    path_check: Optional[Callable[[str], bool]] = field(default=None, compare=False)

    def matches(self, text: str, file_path: str = "") -> bool:
        if self.path_check and file_path and self.path_check(file_path):
            return True
        if not text:
            return False
        return any(p.search(text) for p in self.patterns)


def _compile(*patterns, flags: int = 0) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, flags) for p in patterns)


DEFAULT_RULES: List[PatternRule] = [
    PatternRule(
        tag=PatternTag.BUG_FIX,
        bonus=85,
        category=ChangeCategory.FIX,
        description="Bug fix pattern detected",
        patterns=_compile(r"\b(fix|fixes|fixed|bug|bugfix|patch|resolve|resolves|correct)\b", flags=I)
        + _compile(
            r"if\s*\([^)]*\b(null|undefined|empty)\b",
            r"\bif\s+\w+(\.\w+)*\s+is\s+(not\s+)?None\b",
            r"\?\.",   # optional chaining
            r"\?\?",   # nullish coalescing
            r"\.catch\(",
        ),
    ),
    PatternRule(
        tag=PatternTag.PERFORMANCE,
        bonus=80,
        category=ChangeCategory.PERFORMANCE,
        description="Performance optimization",
        patterns=_compile(
            r"\b(memo|usememo|usecallback|optimi[sz]e|optimi[sz]ed|cache|cached|debounce|throttle|memoize)\b",
            flags=I,
        )
        + _compile(
            r"Promise\.all",
            r"asyncio\.gather",
            r"\basync\b[\s\S]*\bawait\b",
            r"@(functools\.)?(lru_cache|cache)\b",
        ),
    ),
    PatternRule(
        tag=PatternTag.SECURITY,
        bonus=90,
        category=ChangeCategory.SECURITY,
        description="Security improvement",
        patterns=_compile(
            r"\b(sanitize|sanitise|validate|escape|auth|permission|permissions|token|encrypt|decrypt|hash|csrf|xss)\b",
            flags=I,
        )
        + _compile(r"\.test\(|\.match\("),
    ),
    PatternRule(
        tag=PatternTag.ERROR_HANDLING,
        bonus=70,
        category=ChangeCategory.FIX,
        description="Enhanced error handling",
        patterns=_compile(
            r"\btry\s*\{",
            r"\bcatch\s*\(",
            r"\bthrow\s+new\s+\w*Error\b",
            r"\.catch\(",
            r"\bfinally\s*\{",
            r"\braise\s+\w*(Error|Exception)\b",
        )
        + _compile(r"^\s*try\s*:", r"^\s*except\b", flags=M),
    ),
    PatternRule(
        tag=PatternTag.REFACTOR,
        bonus=65,
        category=ChangeCategory.REFACTOR,
        description="Code refactoring",
        patterns=_compile(r"\b(refactor|refactored|extract|extracted|rename|renamed|restructure|cleanup)\b", flags=I)
        + _compile(
            r"\bfunction\s+\w+\s*\(",
            r"\bconst\s+\w+\s*=\s*(async\s*)?\([^)]*\)\s*=>",
            r"\bclass\s+\w+",
        )
        + _compile(r"^\s*(async\s+)?def\s+\w+\s*\(", flags=M),
    ),
    PatternRule(
        tag=PatternTag.NEW_ALGORITHM,
        bonus=85,
        category=ChangeCategory.FEATURE,
        description="New algorithm implementation",
        patterns=_compile(
            r"\b(algorithm|recursive|recursion|iterate|traverse|search|sort|sorted|filter|reduce|map)\b",
            flags=I,
        )
        + _compile(r"\bfor\s*\(", r"\bwhile\s*\(", r"\.reduce\(|\.map\(|\.filter\("),
    ),
    PatternRule(
        tag=PatternTag.API_CHANGE,
        bonus=75,
        category=ChangeCategory.FEATURE,
        description="API design change",
        patterns=_compile(
            r"\bexport\s+(default\s+)?(async\s+)?function\b",
            r"\bexport\s+(default\s+)?class\b",
            r"\bexport\s+interface\b",
            r"\bpublic\s+async\b|\bpublic\s+\w+\s*\(",
        )
        + _compile(r"@(api|endpoint|route)\b|@(app|router)\.(get|post|put|patch|delete)\b", flags=I),
    ),
    PatternRule(
        tag=PatternTag.TEST_ADDITION,
        bonus=50,
        category=ChangeCategory.TEST,
        description="Test coverage added",
        patterns=_compile(r"\b(test|expect|assert)\b", r"@test\b", flags=I)
        + _compile(r"\b(describe|it)\s*\("),
        path_check=is_test_file,
    ),
    PatternRule(
        tag=PatternTag.CONFIG_FILE,
        bonus=40,
        category=None,
        description="Configuration update",
        path_check=is_config_file,
    ),
    PatternRule(
        tag=PatternTag.FRAMEWORK_PATTERN,
        bonus=0,
        category=None,
        description="Framework idiom",
        patterns=_compile(
            r"\buse(State|Effect|Ref|Context|Reducer|Callback|Memo)\b",
            r"<[A-Z]\w*[\s/>]",  # JSX component
            r"@(Component|Injectable|NgModule)\b",
            r"\bdefineComponent\(",
        ),
    ),
    PatternRule(
        tag=PatternTag.DATA_ACCESS,
        bonus=0,
        category=None,
        description="Data access",
        patterns=_compile(r"\b(select|insert|update|delete|query|transaction|migration)\b", flags=I)
        + _compile(
            r"\.(create|update|delete|find|findOne|findMany|save)\(",
            r"\.objects\.",
            r"\bsession\.(add|query|commit|execute)\(",
        ),
    ),
]

# Category resolution order when several tags match, strongest first
CATEGORY_PRIORITY: List[PatternTag] = [
    PatternTag.SECURITY,
    PatternTag.BUG_FIX,
    PatternTag.PERFORMANCE,
    PatternTag.NEW_ALGORITHM,
    PatternTag.API_CHANGE,
    PatternTag.ERROR_HANDLING,
    PatternTag.REFACTOR,
    PatternTag.TEST_ADDITION,
]


def detect_patterns(
    text: str,
    file_path: str = "",
    rules: Optional[Iterable[PatternRule]] = None,
) -> FrozenSet[PatternTag]:
    """Run every rule once over text; returns the set of matched tags"""
    active = DEFAULT_RULES if rules is None else rules
    return frozenset(rule.tag for rule in active if rule.matches(text, file_path))


def resolve_category(
    tags: Iterable[PatternTag],
    file_path: str = "",
    rules: Optional[Iterable[PatternRule]] = None,
) -> ChangeCategory:
    """Category of the highest-priority matched tag; docs/feature otherwise"""
    matched = set(tags)
    categories = {rule.tag: rule.category for rule in (DEFAULT_RULES if rules is None else rules)}
    for tag in CATEGORY_PRIORITY:
        if tag in matched and categories.get(tag):
            return categories[tag]
    if file_path and is_doc_file(file_path) and not (matched - {PatternTag.CONFIG_FILE}):
        return ChangeCategory.DOCS
    return ChangeCategory.FEATURE
