"""
バッチ処理結果の集計
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from gallery_framer.frame_core import ConversionResult

FAILURE_KIND_LABELS = {
    "decode": "読み込み/破損",
    "encode": "書き込み",
}


def failure_kind_label(kind: str) -> str:
    return FAILURE_KIND_LABELS.get(kind, "その他")


@dataclass(frozen=True)
class BatchSummary:
    """バッチ処理のサマリー"""

    total: int
    succeeded: int
    failed: int
    failures_by_kind: Dict[str, int] = field(default_factory=dict)
    failed_files: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def status(self) -> str:
        if self.total == 0:
            return "empty"
        if self.failed == 0:
            return "success"
        if self.succeeded == 0:
            return "failed"
        return "partial"

    def status_text(self) -> str:
        """ステータステキストを取得"""
        if self.total == 0:
            return "処理対象の .jpg 画像がありませんでした"
        parts = [
            f"処理: {self.total}件",
            f"成功: {self.succeeded}",
            f"失敗: {self.failed}",
            f"経過: {self.elapsed_seconds:.1f}秒",
        ]
        text = " | ".join(parts)
        if self.failures_by_kind:
            grouped = ", ".join(
                f"{failure_kind_label(kind)} {count}件"
                for kind, count in self.failures_by_kind.items()
            )
            text += f"\n原因別: {grouped}"
        return text

    def to_dict(self, **extra: Any) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": self.status,
            "total_files": self.total,
            "processed_count": self.succeeded,
            "failed_count": self.failed,
            "failures_by_kind": dict(self.failures_by_kind),
            "failed_files": list(self.failed_files),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }
        data.update(extra)
        return data


def summarize_results(
    results: Iterable[ConversionResult], elapsed_seconds: float = 0.0
) -> BatchSummary:
    """ファイルごとの結果を集計します"""
    results = list(results)
    failures = [r for r in results if not r.success]

    by_kind: Dict[str, int] = {}
    for result in failures:
        kind = result.error_kind or "other"
        by_kind[kind] = by_kind.get(kind, 0) + 1

    return BatchSummary(
        total=len(results),
        succeeded=len(results) - len(failures),
        failed=len(failures),
        failures_by_kind=dict(sorted(by_kind.items(), key=lambda item: (-item[1], item[0]))),
        failed_files=[f"{r.source_path.name}: {r.message}" for r in failures],
        elapsed_seconds=elapsed_seconds,
    )
