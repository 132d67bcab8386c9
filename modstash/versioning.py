"""
语义化版本工具

实现语义化版本解析、排序、约束表达式解析与匹配。
"""

import re
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from semantic_version import NpmSpec, Version

from modstash.exceptions import InvalidConstraintError
from modstash.models.manifest import normalize_version

T = TypeVar("T")

_OPERATOR_SPACE = re.compile(r"(!=|>=|<=|>|<|=|~|\^)\s+")
_V_PREFIX = re.compile(r"(?<![\w.\-+])v(?=\d)")


def parse_version(text: str) -> Optional[Version]:
    """
    解析语义化版本

    先按严格格式解析，失败时尝试补全 (1.2 -> 1.2.0)。

    Returns:
        Version 或 None（无法解析时）
    """
    if not text:
        return None
    text = normalize_version(text.strip())
    try:
        return Version(text)
    except ValueError:
        pass
    try:
        return Version.coerce(text)
    except ValueError:
        return None


def sort_versions(
    items: Iterable[T], key: Optional[Callable[[T], str]] = None
) -> List[T]:
    """
    按语义化版本升序排序

    无法解析的版本排在所有合法版本之后，彼此之间保持原顺序。

    Args:
        items: 版本字符串或带版本的对象
        key: 从对象中取出版本字符串的函数
    """

    def sort_key(item: T):
        text = key(item) if key else item
        parsed = parse_version(text)  # type: ignore[arg-type]
        if parsed is None:
            return (1,)
        return (0, parsed)

    return sorted(items, key=sort_key)


class VersionConstraint:
    """
    版本约束

    每个 "||" 分支由一个 NpmSpec 和若干排除项 (!=) 组成，
    版本满足任意一个分支即满足约束。
    """

    def __init__(self, expression: str, branches: List[Tuple[NpmSpec, List[NpmSpec]]]):
        self.expression = expression
        self.branches = branches

    def match(self, version: Version) -> bool:
        for spec, excluded in self.branches:
            if spec.match(version) and not any(e.match(version) for e in excluded):
                return True
        return False

    def __str__(self) -> str:
        return self.expression

    def __repr__(self) -> str:
        return f"VersionConstraint({self.expression!r})"


def parse_constraint(text: Optional[str]) -> VersionConstraint:
    """
    解析版本约束表达式

    支持 ">=1.0.0 <2.0.0"、">= 1.2, < 3.0"、"^1.2"、"~1.2.3"、"1.x"、"*"、"||"、
    "!=1.2.0"（"!=1.2" 排除整个 1.2.x）。

    Raises:
        InvalidConstraintError: 表达式无法解析
    """
    expression = (text or "").strip()
    if not expression:
        expression = "*"

    normalized = expression.replace(",", " ")
    normalized = _OPERATOR_SPACE.sub(r"\1", normalized)
    normalized = _V_PREFIX.sub("", normalized)

    branches = []
    try:
        for branch in normalized.split("||"):
            tokens = branch.split()
            excluded = []
            for token in tokens:
                if token.startswith("!="):
                    if not token[2:]:
                        raise ValueError("!= 缺少版本号")
                    excluded.append(NpmSpec(token[2:]))
            rest = " ".join(t for t in tokens if not t.startswith("!="))
            if not rest and not excluded:
                raise ValueError("空的约束分支")
            branches.append((NpmSpec(rest or "*"), excluded))
    except ValueError as e:
        raise InvalidConstraintError(
            f"无效的版本约束: {expression}",
            context={"constraint": expression, "error": str(e)},
        )
    return VersionConstraint(expression, branches)


def satisfies(version: str, constraint: VersionConstraint) -> bool:
    """检查版本是否满足约束，无法解析的版本视为不满足"""
    parsed = parse_version(version)
    if parsed is None:
        return False
    return constraint.match(parsed)


def is_newer(old_version: str, new_version: str) -> bool:
    """
    判断 new_version 是否比 old_version 新

    无法解析的新版本永远不视为更新。
    """
    new = parse_version(new_version)
    if new is None:
        return False
    old = parse_version(old_version)
    if old is None:
        return True
    return old < new


__all__ = [
    "parse_version",
    "sort_versions",
    "VersionConstraint",
    "parse_constraint",
    "satisfies",
    "is_newer",
]
