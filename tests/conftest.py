#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
pytest設定ファイル
共通のフィクスチャやテスト設定を定義
"""

import pytest
from pathlib import Path
from PIL import Image
from loguru import logger


def make_pattern_image(size, mode="RGB"):
    """座標ごとに色が変わる画像（リサイズ結果の比較用）"""
    width, height = size
    img = Image.new("RGB", size)
    img.putdata(
        [((x * 7) % 256, (y * 5) % 256, (x + y) % 256) for y in range(height) for x in range(width)]
    )
    return img if mode == "RGB" else img.convert(mode)


@pytest.fixture
def source_dir(tmp_path):
    """入力ディレクトリ"""
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def dest_dir(tmp_path):
    """出力ディレクトリ"""
    path = tmp_path / "dest"
    path.mkdir()
    return path


@pytest.fixture
def sample_images(source_dir):
    """様々な縦横比のサンプル画像を作成するフィクスチャ"""
    images = {}

    # 横長画像
    landscape_path = source_dir / "landscape.jpg"
    Image.new("RGB", (400, 300), color=(255, 0, 0)).save(landscape_path, "JPEG", quality=95)
    images["landscape"] = landscape_path

    # 縦長画像
    portrait_path = source_dir / "portrait.jpg"
    Image.new("RGB", (300, 400), color=(0, 0, 255)).save(portrait_path, "JPEG", quality=95)
    images["portrait"] = portrait_path

    # 正方形画像
    square_path = source_dir / "square.jpg"
    Image.new("RGB", (200, 200), color=(0, 128, 0)).save(square_path, "JPEG")
    images["square"] = square_path

    return images


@pytest.fixture
def corrupted_jpeg(source_dir):
    """拡張子だけ .JPG の壊れたファイル"""
    path = source_dir / "b.JPG"
    path.write_bytes(b"this is not an image" * 20)
    return path


@pytest.fixture
def log_messages():
    """loguru に出力されたメッセージを集めるフィクスチャ"""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
