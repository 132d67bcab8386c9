"""
下载 / 安装结果模型

引擎对每个依赖记录一条 DependencyOutcome，调用方据此展示失败原因。
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class DependencyOutcome:
    """单个依赖的处理结果"""

    mod_id: str
    constraint: str
    parent: str
    version: Optional[str] = None
    success: bool = True
    # 已有满足约束的版本，未做任何操作
    skipped: bool = False
    reason: Optional[str] = None

    def describe(self) -> str:
        target = f"{self.mod_id}@{self.version or self.constraint}"
        if not self.success:
            return f"{target} (被 {self.parent} 依赖): {self.reason}"
        if self.skipped:
            return f"{target} (被 {self.parent} 依赖，已满足)"
        return f"{target} (被 {self.parent} 依赖)"


@dataclass
class AcquireResult:
    """依赖闭包下载结果"""

    mod_id: str
    version: str
    satisfied: bool = True
    total_count: int = 0
    outcomes: List[DependencyOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[DependencyOutcome]:
        return [o for o in self.outcomes if not o.success]


@dataclass
class InstallResult:
    """依赖闭包安装结果"""

    mod_id: str
    version: str
    newly_installed: bool = False
    satisfied: bool = True
    installed: List[str] = field(default_factory=list)
    outcomes: List[DependencyOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[DependencyOutcome]:
        return [o for o in self.outcomes if not o.success]


@dataclass
class UpdateResult:
    """模组更新结果"""

    mod_id: str
    previous_version: Optional[str]
    latest_version: str
    updated: bool = False
    acquire: Optional[AcquireResult] = None
