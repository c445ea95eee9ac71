"""実行ごとのログ/summary ファイルの保存先と保持ポリシー。"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Mapping, Optional

APP_NAME = "GalleryFramer"
LOG_DIR_ENV = "GALLERY_FRAMER_LOG_DIR"
DEFAULT_RETENTION_DAYS = 30
DEFAULT_MAX_FILES = 100
_RUN_ID_FORMAT = "%Y%m%d_%H%M%S"
_RUN_PREFIX = "run_"
_RUN_SUFFIXES = (".log", "_summary.json")


@dataclass(frozen=True)
class RunLogArtifacts:
    run_id: str
    log_dir: Path
    run_log_path: Path
    summary_path: Path


def get_default_log_dir(
    app_name: str = APP_NAME,
    *,
    os_name: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """ログディレクトリを返す。環境変数 GALLERY_FRAMER_LOG_DIR が最優先。"""
    env = os.environ if env is None else env
    override = env.get(LOG_DIR_ENV)
    if override:
        return Path(override)

    home = home or Path.home()
    dir_name = app_name.replace(" ", "")

    if (os_name or os.name) == "nt":
        base = env.get("LOCALAPPDATA") or env.get("APPDATA")
        if base:
            return Path(base) / dir_name / "logs"
        return home / f".{dir_name.lower()}" / "logs"

    state_home = env.get("XDG_STATE_HOME")
    state_dir = Path(state_home) if state_home else home / ".local" / "state"
    return state_dir / dir_name.lower() / "logs"


def create_run_log_artifacts(
    app_name: str = APP_NAME,
    *,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    max_files: int = DEFAULT_MAX_FILES,
    now: Optional[datetime] = None,
) -> RunLogArtifacts:
    """今回の実行用のログ/summary パスを決め、古いファイルを整理する。"""
    now = now or datetime.now()
    run_id = now.strftime(_RUN_ID_FORMAT)
    log_dir = get_default_log_dir(app_name)
    log_dir.mkdir(parents=True, exist_ok=True)
    prune_run_files(log_dir, retention_days=retention_days, max_files=max_files, now=now)
    return RunLogArtifacts(
        run_id=run_id,
        log_dir=log_dir,
        run_log_path=log_dir / f"{_RUN_PREFIX}{run_id}.log",
        summary_path=log_dir / f"{_RUN_PREFIX}{run_id}_summary.json",
    )


def prune_run_files(
    log_dir: Path,
    *,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    max_files: int = DEFAULT_MAX_FILES,
    now: Optional[datetime] = None,
) -> list[Path]:
    """保持日数を過ぎたもの、保持件数を超えた古いものから削除する。"""
    cutoff = (now or datetime.now()) - timedelta(days=max(0, retention_days))
    removed: list[Path] = []

    kept: list[Path] = []
    for path in _run_files_oldest_first(log_dir):
        if _modified_at(path) < cutoff and _try_unlink(path):
            removed.append(path)
        else:
            kept.append(path)

    if max_files > 0:
        overflow = kept[: max(0, len(kept) - max_files)]
        removed.extend(path for path in overflow if _try_unlink(path))

    return removed


def write_run_summary(summary_path: Path, payload: dict[str, Any]) -> None:
    """summary JSON を一時ファイル経由で書き込む。"""
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = summary_path.with_name(summary_path.name + ".tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp_path.replace(summary_path)


def _run_id_of(path: Path) -> Optional[str]:
    """run_YYYYmmdd_HHMMSS(.log|_summary.json) なら run id を返す。"""
    name = path.name
    if not name.startswith(_RUN_PREFIX):
        return None
    for suffix in _RUN_SUFFIXES:
        if name.endswith(suffix):
            candidate = name[len(_RUN_PREFIX) : -len(suffix)]
            try:
                datetime.strptime(candidate, _RUN_ID_FORMAT)
            except ValueError:
                return None
            return candidate
    return None


def _run_files_oldest_first(log_dir: Path) -> list[Path]:
    try:
        files = [p for p in log_dir.iterdir() if p.is_file() and _run_id_of(p)]
    except OSError:
        return []
    return sorted(files, key=_modified_at)


def _modified_at(path: Path) -> datetime:
    try:
        return datetime.fromtimestamp(path.stat().st_mtime)
    except OSError:
        return datetime.max


def _try_unlink(path: Path) -> bool:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        return False
    return True
