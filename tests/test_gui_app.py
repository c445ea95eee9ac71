from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest

pytest.importorskip("customtkinter")

from gallery_framer import gui_app  # noqa: E402
from gallery_framer.frame_core import ConversionResult, DecodeError  # noqa: E402


class FakeDispatcher:
    """UI スレッドの代わりにその場で呼び出すディスパッチャー"""

    def __init__(self, closed: bool = False):
        self.closed = closed
        self.calls = 0
        self.close = Mock()

    def __call__(self, fn):
        self.calls += 1
        fn()


def _bare_app(dispatcher: FakeDispatcher) -> gui_app.FramerApp:
    # ウィンドウは作らず、完了処理で触る属性だけ用意する
    app = gui_app.FramerApp.__new__(gui_app.FramerApp)
    app._dispatcher = dispatcher
    app._dialog = Mock()
    app._dialog.winfo_exists.return_value = True
    app.start_button = Mock()
    return app


@pytest.fixture
def fake_messagebox(monkeypatch):
    box = Mock()
    monkeypatch.setattr(gui_app, "messagebox", box)
    return box


def _processor_returning(*results: ConversionResult) -> Mock:
    processor = Mock()
    processor.process_files.return_value = list(results)
    return processor


def test_run_batch_finishes_on_ui_thread(fake_messagebox) -> None:
    dispatcher = FakeDispatcher()
    app = _bare_app(dispatcher)
    dialog = app._dialog
    processor = _processor_returning(ConversionResult(source_path=Path("a.jpg"), success=True))

    app._run_batch(processor, Path("in"), 50)

    processor.process_files.assert_called_once_with(Path("in"), 50)
    assert dispatcher.calls == 1
    dialog.grab_release.assert_called_once_with()
    dialog.destroy.assert_called_once_with()
    dispatcher.close.assert_called_once_with()
    assert app._dialog is None
    assert app._dispatcher is None
    app.start_button.configure.assert_called_once_with(state="normal")
    fake_messagebox.showinfo.assert_called_once()
    fake_messagebox.showwarning.assert_not_called()


def test_run_batch_warns_when_some_files_failed(fake_messagebox) -> None:
    app = _bare_app(FakeDispatcher())
    processor = _processor_returning(
        ConversionResult(source_path=Path("a.jpg"), success=True),
        ConversionResult.failed(Path("b.JPG"), DecodeError(Path("b.JPG"), "画像を読み込めません")),
    )

    app._run_batch(processor, Path("in"), 50)

    fake_messagebox.showwarning.assert_called_once()
    assert "失敗: 1" in fake_messagebox.showwarning.call_args.args[1]
    fake_messagebox.showinfo.assert_not_called()


def test_run_batch_skips_finish_after_window_closed(fake_messagebox) -> None:
    dispatcher = FakeDispatcher(closed=True)
    app = _bare_app(dispatcher)
    processor = _processor_returning(ConversionResult(source_path=Path("a.jpg"), success=True))

    app._run_batch(processor, Path("in"), 50)

    assert dispatcher.calls == 0
    app.start_button.configure.assert_not_called()
    fake_messagebox.showinfo.assert_not_called()
