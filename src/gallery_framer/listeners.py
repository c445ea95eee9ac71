"""
画像処理の完了通知を購読者へ届けるリスナー登録簿
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Protocol, Tuple, Union, runtime_checkable

from loguru import logger

from gallery_framer.frame_core import ObserverDeliveryError

# 引数なしの関数を UI 側で実行し、終わるまで戻らない関数
Dispatcher = Callable[[Callable[[], None]], None]


@runtime_checkable
class ImageProcessorListener(Protocol):
    """画像処理イベントを受け取るクラスのインターフェース"""

    def processed_image(self, pathname: Path) -> None:
        """画像が1枚処理されるたびに呼ばれる"""


Listener = Union[ImageProcessorListener, Callable[[Path], None]]


def call_directly(func: Callable[[], None]) -> None:
    """呼び出し元のスレッドでそのまま実行するディスパッチャ"""
    func()


def _deliver_to(listener: Listener, pathname: Path) -> None:
    if isinstance(listener, ImageProcessorListener):
        listener.processed_image(pathname)
    else:
        listener(pathname)


class ListenerRegistry:
    """リスナー登録簿

    登録順に通知します。重複登録は除外しません。
    """

    def __init__(self, dispatcher: Optional[Dispatcher] = None):
        self._listeners: List[Listener] = []
        self._dispatcher: Dispatcher = dispatcher or call_directly

    @property
    def listeners(self) -> Tuple[Listener, ...]:
        return tuple(self._listeners)

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            logger.debug(f"未登録のリスナーは削除できません: {listener!r}")

    def notify(self, pathname: Path) -> bool:
        """
        処理済み画像を全リスナーへ通知します

        ディスパッチャ経由で UI 側のスレッドに渡し、配送が終わるまで待ちます。
        あるリスナーが失敗しても残りのリスナーには配送します。

        Returns:
            bool: ディスパッチャへの受け渡しに成功したか
        """
        snapshot = list(self._listeners)
        if not snapshot:
            return True

        def deliver() -> None:
            for listener in snapshot:
                try:
                    _deliver_to(listener, pathname)
                except Exception as e:
                    error = ObserverDeliveryError(
                        f"リスナー {listener!r} への通知に失敗しました: {e}"
                    )
                    logger.opt(exception=e).error(str(error))

        try:
            self._dispatcher(deliver)
        except Exception as e:
            error = e if isinstance(e, ObserverDeliveryError) else ObserverDeliveryError(str(e))
            logger.error(f"リスナー呼び出し中にエラーが発生しました ({pathname.name}): {error}")
            return False
        return True
