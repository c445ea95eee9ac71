#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
額縁付き画像を一括生成するコマンドラインツール

入力フォルダー直下の .jpg 画像を縮小し、額縁と著作権表示を付けて
出力フォルダーへ同じ名前で保存します。
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from loguru import logger
from tqdm import tqdm

from gallery_framer import runtime_logging
from gallery_framer.batch_summary import BatchSummary, summarize_results
from gallery_framer.frame_core import find_jpeg_files, setup_logging
from gallery_framer.image_processor import ImageProcessor


class TqdmProgressListener:
    """処理済み画像ごとにプログレスバーを進めるリスナー"""

    def __init__(self, bar: tqdm):
        self.bar = bar

    def processed_image(self, pathname: Path) -> None:
        self.bar.set_postfix_str(pathname.name)
        self.bar.update(1)


def _percent(value: str) -> int:
    try:
        percent = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"整数を指定してください: {value}") from None
    if not 0 <= percent <= 100:
        raise argparse.ArgumentTypeError(f"0から100の間で指定してください: {percent}")
    return percent


def _build_arg_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI use."""
    p = argparse.ArgumentParser(
        prog="gallery-framer",
        description="画像を縮小し、額縁と著作権表示を付けて一括保存するコマンドラインツール",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("-s", "--source", required=True, help="入力フォルダー (.jpg 画像を含む)")
    p.add_argument("-d", "--dest", required=True, help="出力フォルダー")
    p.add_argument("-c", "--copyright", default="", help="画像右下に入れる著作権表示")
    p.add_argument("-p", "--percent", type=_percent, default=50, help="長辺の縮小率 (0-100)")
    p.add_argument("--json", action="store_true", help="処理結果を JSON で標準出力に出す")
    p.add_argument("--log-file", default=None, help="ログファイル (省略時は実行ごとのログ)")
    p.add_argument("--verbose", "-v", action="count", default=0, help="詳細ログを増やす (重ね掛け可)")
    return p


def _build_cli_summary(
    summary: BatchSummary,
    *,
    source: Path,
    dest: Path,
    percent: int,
    copyright_text: str,
) -> Dict[str, Any]:
    return summary.to_dict(
        source=str(source),
        dest=str(dest),
        options={"percent": percent, "copyright": copyright_text},
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI のエントリーポイント。終了コードを返します"""
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    console_level = "INFO"
    if args.verbose == 1:
        console_level = "DEBUG"
    elif args.verbose >= 2:
        console_level = "TRACE"

    artifacts: Optional[runtime_logging.RunLogArtifacts] = None
    log_dir_error: Optional[OSError] = None
    try:
        artifacts = runtime_logging.create_run_log_artifacts()
    except OSError as e:
        log_dir_error = e

    log_file: Optional[Path] = None
    if args.log_file:
        log_file = Path(args.log_file)
    elif artifacts is not None:
        log_file = artifacts.run_log_path
    setup_logging(console_level="WARNING" if args.json else console_level, log_file=log_file)
    if log_dir_error is not None:
        logger.warning(f"ログディレクトリを作成できません。実行ログと summary は保存しません: {log_dir_error}")

    src_dir = Path(args.source)
    dst_dir = Path(args.dest)

    if not src_dir.is_dir():
        logger.error(f"入力ディレクトリが存在しません: {src_dir}")
        return 1
    if src_dir.resolve() == dst_dir.resolve():
        logger.error(f"入力ディレクトリと出力ディレクトリが同じです。元画像が上書きされるため中止します: {src_dir}")
        return 1
    try:
        dst_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"出力ディレクトリを作成できません: {dst_dir} ({e})")
        return 1

    total = len(find_jpeg_files(src_dir))
    processor = ImageProcessor(dst_dir, args.copyright)

    started = time.perf_counter()
    with tqdm(total=total, unit="枚", disable=args.json or total == 0) as bar:
        processor.add_image_processor_listener(TqdmProgressListener(bar))
        results = processor.process_files(src_dir, args.percent)
    summary = summarize_results(results, time.perf_counter() - started)

    payload = _build_cli_summary(
        summary,
        source=src_dir,
        dest=dst_dir,
        percent=args.percent,
        copyright_text=args.copyright,
    )
    if artifacts is not None:
        try:
            runtime_logging.write_run_summary(artifacts.summary_path, payload)
        except OSError as e:
            logger.warning(f"summary を保存できません: {artifacts.summary_path} ({e})")

    if args.json:
        print(json.dumps(payload, ensure_ascii=False, indent=2))

    if summary.total == 0:
        logger.warning("画像が見つかりませんでした")
    elif summary.failed:
        logger.warning(f"{summary.failed} 件の画像が失敗しました")
    else:
        logger.success("すべての画像を処理しました！")
    logger.info(summary.status_text())

    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
