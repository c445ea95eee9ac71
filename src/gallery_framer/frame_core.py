#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
額縁付き画像生成のコア機能モジュール

ウェブ用フォトギャラリーに掲載する画像を縮小し、白い額縁と
著作権表示を付けて JPEG として保存します。CLI と GUI の両方から
利用される共通機能を提供します。
"""

from __future__ import annotations

import os
import sys
import uuid
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont
from loguru import logger

# 額縁の幅(px)。上下左右すべてに付く
FRAME_WIDTH = 20
CAPTION_FONT_SIZE = 16
# 著作権表示の左側に空ける余白(px)
CAPTION_PADDING = 5
JPEG_QUALITY = 90
FRAME_COLOR = (255, 255, 255)
BORDER_COLOR = (0, 0, 0)
CAPTION_COLOR = (255, 255, 255)

FONT_ENV_VAR = "GALLERY_FRAMER_FONT"
# 太字 TrueType フォントの候補（上から順に試す）
BOLD_FONT_CANDIDATES = (
    "arialbd.ttf",
    "Arial Bold.ttf",
    "Arial_Bold.ttf",
    "DejaVuSans-Bold.ttf",
    "LiberationSans-Bold.ttf",
    "FreeSansBold.ttf",
)

ErrorKind = Literal["decode", "encode"]
PathLike = Union[str, Path]


class FramerError(Exception):
    """額縁処理で発生するエラーの基底クラス"""


class DecodeError(FramerError):
    """元画像が存在しない、または画像として読み込めない"""

    def __init__(self, path: PathLike, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"画像を読み込めません: {self.path} ({reason})")


class EncodeError(FramerError):
    """変換後の画像を出力先に書き込めない"""

    def __init__(self, path: PathLike, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"画像を保存できません: {self.path} ({reason})")


class ObserverDeliveryError(FramerError):
    """処理完了通知をリスナーへ配送できない"""


@dataclass(frozen=True)
class ConversionResult:
    """1ファイル分の変換結果"""

    source_path: Path
    success: bool
    output_path: Optional[Path] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    original_size: Optional[Tuple[int, int]] = None
    framed_size: Optional[Tuple[int, int]] = None

    @classmethod
    def failed(cls, source_path: Path, error: FramerError) -> "ConversionResult":
        kind: ErrorKind = "decode" if isinstance(error, DecodeError) else "encode"
        return cls(source_path=source_path, success=False, error_kind=kind, message=str(error))


# ログ設定
def setup_logging(
    console_level="INFO", file_level="DEBUG", log_file: Optional[PathLike] = None
):
    """ロギングの設定を行います"""
    logger.remove()  # デフォルト設定を削除
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{function}</cyan>: <white>{message}</white>",
        colorize=True,
        level=console_level,
    )
    if log_file is not None:
        logger.add(
            str(log_file),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {function}: {message}",
            rotation="1 day",
            level=file_level,
            encoding="utf-8",
        )


def check_scale_percent(scale_percent: int) -> None:
    """縮小率が 0〜100 の範囲にあるか確認します（範囲外は呼び出し側の誤り）"""
    if isinstance(scale_percent, bool) or not isinstance(scale_percent, int):
        raise ValueError(f"無効な縮小率です: {scale_percent!r}. 0から100の整数が必要です")
    if not 0 <= scale_percent <= 100:
        raise ValueError(f"無効な縮小率です: {scale_percent}. 0から100の整数が必要です")


def compute_target_size(width: int, height: int, scale_percent: int) -> Tuple[int, int]:
    """
    縦横比を維持したまま縮小後のサイズを計算します

    長辺を scale_percent/100 倍し、短辺は元の縦横比から求めます。
    正方形の場合は幅側の分岐を通ります。各辺は最低 1px です。

    Args:
        width: 元画像の幅
        height: 元画像の高さ
        scale_percent: 縮小率 (0-100)

    Returns:
        Tuple[int, int]: (幅, 高さ)
    """
    check_scale_percent(scale_percent)
    factor = scale_percent / 100
    if width >= height:
        ratio = height / width
        new_width = round(width * factor)
        new_height = round(new_width * ratio)
    else:
        ratio = width / height
        new_height = round(height * factor)
        new_width = round(new_height * ratio)
    return max(1, new_width), max(1, new_height)


@lru_cache(maxsize=None)
def load_caption_font(size: int = CAPTION_FONT_SIZE):
    """著作権表示用の太字フォントを読み込みます"""
    candidates = list(BOLD_FONT_CANDIDATES)
    override = os.environ.get(FONT_ENV_VAR)
    if override:
        candidates.insert(0, override)

    for candidate in candidates:
        try:
            font = ImageFont.truetype(candidate, size)
        except OSError:
            continue
        logger.debug(f"著作権表示フォント: {candidate} ({size}pt)")
        return font

    logger.warning(f"太字フォントが見つからないため既定フォントを使用します ({size}pt)")
    return ImageFont.load_default(size=size)


def _caption_metrics(font) -> Tuple[int, int]:
    """(ascent, 行の高さ) を返します"""
    if hasattr(font, "getmetrics"):
        ascent, descent = font.getmetrics()
        return ascent, ascent + descent
    # ビットマップフォントには getmetrics がない
    _, top, _, bottom = font.getbbox("Ag")
    return bottom, bottom - top


def stamp_caption(canvas: Image.Image, text: str, font=None) -> None:
    """
    著作権表示を右下の額縁内側に描画します

    文字幅は描画時にフォントから計測します。折り返しは行わないため、
    長い文字列は左側へはみ出します。
    """
    if not text:
        return
    font = font or load_caption_font()
    draw = ImageDraw.Draw(canvas)
    canvas_width, canvas_height = canvas.size

    ascent, line_height = _caption_metrics(font)
    advance = draw.textlength(text, font=font) + CAPTION_PADDING
    x = canvas_width - FRAME_WIDTH - advance
    baseline = canvas_height - FRAME_WIDTH - line_height
    draw.text((x, baseline - ascent), text, font=font, fill=CAPTION_COLOR)


def render_framed_image(
    image: Image.Image,
    copyright_text: str,
    scale_percent: int,
    font=None,
) -> Image.Image:
    """
    縮小・額縁付け・著作権表示を行った新しい画像を返します

    Args:
        image: 元画像
        copyright_text: 右下に入れる著作権表示
        scale_percent: 縮小率 (0-100)
        font: 著作権表示のフォント（省略時は太字 16pt）

    Returns:
        PIL.Image.Image: RGB の額縁付き画像
    """
    target_size = compute_target_size(image.width, image.height, scale_percent)

    source = image if image.mode == "RGB" else image.convert("RGB")
    if source.size == target_size:
        scaled = source
    else:
        scaled = source.resize(target_size, Image.Resampling.LANCZOS)

    canvas = Image.new(
        "RGB",
        (target_size[0] + FRAME_WIDTH * 2, target_size[1] + FRAME_WIDTH * 2),
        FRAME_COLOR,
    )
    draw = ImageDraw.Draw(canvas)
    draw.rectangle(
        (0, 0, canvas.width - 1, canvas.height - 1), outline=BORDER_COLOR, width=1
    )
    canvas.paste(scaled, (FRAME_WIDTH, FRAME_WIDTH))

    stamp_caption(canvas, copyright_text, font)
    return canvas


def decode_image(source_path: PathLike) -> Image.Image:
    """元画像を読み込みます。失敗時は DecodeError を送出します"""
    path = Path(source_path)
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except FileNotFoundError as e:
        raise DecodeError(path, "ファイルが存在しません") from e
    except (OSError, Image.DecompressionBombError) as e:
        raise DecodeError(path, str(e)) from e


def encode_jpeg(canvas: Image.Image, dest_path: PathLike, quality: int = JPEG_QUALITY) -> Path:
    """
    JPEG として書き込みます。同名ファイルは上書きします

    一時ファイルに保存してから置き換えるため、失敗しても
    中途半端なファイルは残りません。
    """
    dest = Path(dest_path)
    temp_path = dest.with_name(f".{dest.name}.{uuid.uuid4().hex}.tmp")
    try:
        canvas.save(temp_path, format="JPEG", quality=quality)
        os.replace(temp_path, dest)
    except OSError as e:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.debug(f"一時ファイルのクリーンアップに失敗: {cleanup_error}")
        raise EncodeError(dest, str(e)) from e
    return dest


def convert_image(
    source_path: PathLike,
    destination_dir: PathLike,
    copyright_text: str,
    scale_percent: int,
    font=None,
) -> ConversionResult:
    """
    1枚の画像を額縁付きに変換して出力先へ保存します

    読み込み・書き込みのエラーはここで捕捉してログに記録し、
    失敗した ConversionResult として返します。

    Args:
        source_path: 元画像のパス
        destination_dir: 出力先ディレクトリ
        copyright_text: 著作権表示
        scale_percent: 縮小率 (0-100)
        font: 著作権表示のフォント

    Returns:
        ConversionResult: 変換結果
    """
    check_scale_percent(scale_percent)
    source = Path(source_path)
    dest_path = Path(destination_dir) / source.name

    try:
        original = decode_image(source)
        framed = render_framed_image(original, copyright_text, scale_percent, font)
        encode_jpeg(framed, dest_path)
    except FramerError as e:
        logger.error(f"画像の変換中にエラーが発生しました: {e}")
        return ConversionResult.failed(source, e)

    logger.info(f"✔ {source.name} → {dest_path} ({framed.width}x{framed.height})")
    return ConversionResult(
        source_path=source,
        success=True,
        output_path=dest_path,
        original_size=original.size,
        framed_size=framed.size,
    )


def is_jpeg_name(name: str) -> bool:
    """ファイル名が .jpg で終わるか（大文字小文字を区別しない）"""
    return name.lower().endswith(".jpg")


def find_jpeg_files(directory: PathLike) -> list[Path]:
    """
    ディレクトリ直下の .jpg ファイルを列挙します

    順序はファイルシステムの列挙順のままで、並べ替えは行いません。
    サブディレクトリは探索しません。
    """
    return [
        entry
        for entry in Path(directory).iterdir()
        if entry.is_file() and is_jpeg_name(entry.name)
    ]
