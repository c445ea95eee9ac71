"""
フォトギャラリー用に画像を額縁付きで書き出すプロセッサ
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from loguru import logger

from gallery_framer import frame_core
from gallery_framer.frame_core import ConversionResult, PathLike
from gallery_framer.listeners import Dispatcher, Listener, ListenerRegistry


class ImageProcessor:
    """ウェブ用フォトギャラリーに載せる画像を、額縁と著作権表示付きで生成するクラス"""

    def __init__(
        self,
        destination_dir: PathLike,
        copyright_msg: str,
        dispatcher: Optional[Dispatcher] = None,
        font=None,
    ):
        """
        Args:
            destination_dir: 生成した画像を置くディレクトリ
            copyright_msg: 画像に入れる著作権表示
            dispatcher: リスナー通知を UI スレッドで実行する関数（省略時はその場で実行）
            font: 著作権表示のフォント（省略時は太字 16pt）
        """
        self.destination_dir = Path(destination_dir)
        self.copyright_msg = copyright_msg
        self._font = font
        self._listeners = ListenerRegistry(dispatcher)

    def convert_image(self, source_image: PathLike, size: int) -> ConversionResult:
        """
        指定画像を縮小し、額縁と著作権表示を付けて保存します

        成功した場合のみリスナーへ通知します。

        Args:
            source_image: 変換する画像
            size: 0〜100 の縮小率
        """
        result = frame_core.convert_image(
            source_image,
            self.destination_dir,
            self.copyright_msg,
            size,
            font=self._font,
        )
        if result.success:
            self._listeners.notify(result.source_path)
        return result

    def process_files(self, pathname: PathLike, size: int) -> List[ConversionResult]:
        """
        ディレクトリ内の .jpg 画像をすべて処理します

        生成画像は出力先ディレクトリに同じ名前で書き出されます。

        Args:
            pathname: 入力ディレクトリ
            size: 0〜100 の縮小率

        Returns:
            List[ConversionResult]: ファイルごとの結果（列挙順）
        """
        frame_core.check_scale_percent(size)
        images_dir = Path(pathname)
        try:
            images = frame_core.find_jpeg_files(images_dir)
        except OSError as e:
            logger.error(f"入力ディレクトリを読み込めません: {images_dir} ({e})")
            return []

        logger.info(f"{len(images)} 件の画像を処理します: {images_dir}")
        return [self.convert_image(image, size) for image in images]

    def add_image_processor_listener(self, listener: Listener) -> None:
        """リスナーを追加します"""
        self._listeners.subscribe(listener)

    def remove_image_processor_listener(self, listener: Listener) -> None:
        """リスナーを削除します"""
        self._listeners.unsubscribe(listener)

    @property
    def listeners(self):
        return self._listeners.listeners
