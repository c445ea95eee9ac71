"""
ワーカースレッドから Tk のメインループへ処理を渡して完了を待つディスパッチャ
"""

from __future__ import annotations

import threading
import tkinter
from queue import Empty, Queue
from typing import Any, Callable, Optional

from loguru import logger

from gallery_framer.frame_core import ObserverDeliveryError


class _PendingCall:
    """メインループ側で実行待ちの呼び出し"""

    def __init__(self, func: Callable[[], None]):
        self.func = func
        self.started = threading.Event()
        self.done = threading.Event()
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        self.started.set()
        try:
            self.func()
        except Exception as e:
            self.error = e
        finally:
            self.done.set()

    def cancel(self) -> None:
        self.error = ObserverDeliveryError("UIスレッドが終了したため通知を破棄しました")
        self.done.set()


class TkDispatcher:
    """Tk のメインループ上で関数を実行し、終わるまで呼び出し元を待たせる

    ワーカーはキューに呼び出しを積み、メインループは after() で
    定期的にキューを処理します。UI スレッド自身からの呼び出しは
    その場で実行します。タイムアウトはありません。
    """

    def __init__(self, widget: Any, poll_interval_ms: int = 50, max_calls_per_poll: int = 10):
        self._widget = widget
        self._queue: Queue[_PendingCall] = Queue()
        self._ui_thread = threading.current_thread()
        self._closed = threading.Event()
        self._poll_interval_ms = poll_interval_ms
        self._max_calls_per_poll = max_calls_per_poll
        self._after_id = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> None:
        """キューの監視を開始（UI スレッドから呼ぶ）"""
        self._schedule()

    def _schedule(self) -> None:
        if not self._closed.is_set():
            self._after_id = self._widget.after(self._poll_interval_ms, self._drain)

    def _drain(self) -> None:
        """キューに溜まった呼び出しを実行"""
        processed = 0
        while processed < self._max_calls_per_poll:
            try:
                call = self._queue.get_nowait()
            except Empty:
                break
            call.run()
            processed += 1
        self._schedule()

    def __call__(self, func: Callable[[], None]) -> None:
        if self._closed.is_set():
            raise ObserverDeliveryError("UIスレッドが利用できません")

        if threading.current_thread() is self._ui_thread:
            func()
            return

        call = _PendingCall(func)
        self._queue.put(call)
        while not call.done.wait(0.05):
            # 実行が始まっていれば、途中で close されても完了を待つ
            if self._closed.is_set() and not call.started.is_set():
                raise ObserverDeliveryError("UIスレッドが利用できません")

        if call.error is not None:
            if isinstance(call.error, ObserverDeliveryError):
                raise call.error
            raise ObserverDeliveryError(f"UIスレッドでの実行に失敗しました: {call.error}") from call.error

    def close(self) -> None:
        """監視を止め、実行待ちの呼び出しをすべて失敗させる"""
        self._closed.set()
        if self._after_id is not None:
            try:
                self._widget.after_cancel(self._after_id)
            except tkinter.TclError as e:
                logger.debug(f"after の取り消しに失敗: {e}")
            self._after_id = None

        while True:
            try:
                call = self._queue.get_nowait()
            except Empty:
                break
            call.cancel()
