"""額縁付き画像を一括生成する GUI。

入力フォルダー・出力フォルダー・著作権表示・縮小率を指定して実行すると、
バックグラウンドの1スレッドで順に変換し、進捗ダイアログに処理済みの
画像名を表示します。

Usage:
    python -m gallery_framer.gui_app
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from tkinter import filedialog, messagebox
from typing import Optional

import customtkinter
from loguru import logger

from gallery_framer import runtime_logging
from gallery_framer.batch_summary import BatchSummary, summarize_results
from gallery_framer.frame_core import setup_logging
from gallery_framer.image_processor import ImageProcessor
from gallery_framer.progress_dialog import ProgressDialog
from gallery_framer.ui_dispatch import TkDispatcher

DEFAULT_PERCENT = 50


def validate_inputs(source: str, dest: str) -> Optional[str]:
    """入力値を確認し、問題があればエラーメッセージを返す"""
    if not source:
        return "入力フォルダが選択されていません。"
    if not Path(source).is_dir():
        return f"入力フォルダが存在しません: {source}"
    if not dest:
        return "出力フォルダが選択されていません。"
    if Path(source).resolve() == Path(dest).resolve():
        return "入力フォルダと出力フォルダには別のフォルダを指定してください。"
    return None


class FramerApp(customtkinter.CTk):
    def __init__(self) -> None:
        super().__init__()
        self.title("フォトギャラリー額縁ツール")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        self.source_var = customtkinter.StringVar(value="")
        self.dest_var = customtkinter.StringVar(value="")
        self.copyright_var = customtkinter.StringVar(value="")
        self.percent_var = customtkinter.IntVar(value=DEFAULT_PERCENT)

        self._add_folder_row(0, "入力フォルダ", self.source_var)
        self._add_folder_row(1, "出力フォルダ", self.dest_var)

        customtkinter.CTkLabel(self, text="著作権表示").grid(row=2, column=0, padx=8, pady=6, sticky="w")
        customtkinter.CTkEntry(self, textvariable=self.copyright_var, width=320).grid(
            row=2, column=1, columnspan=2, padx=8, pady=6, sticky="ew"
        )

        customtkinter.CTkLabel(self, text="縮小率 %").grid(row=3, column=0, padx=8, pady=6, sticky="w")
        self.percent_slider = customtkinter.CTkSlider(
            self,
            from_=0,
            to=100,
            number_of_steps=100,
            variable=self.percent_var,
            command=self._on_percent_change,
        )
        self.percent_slider.grid(row=3, column=1, padx=8, pady=6, sticky="ew")
        self.percent_label = customtkinter.CTkLabel(self, text=f"{DEFAULT_PERCENT}%", width=48)
        self.percent_label.grid(row=3, column=2, padx=8, pady=6)

        self.start_button = customtkinter.CTkButton(self, text="開始", command=self.start_batch)
        self.start_button.grid(row=4, column=0, columnspan=3, padx=8, pady=(6, 12))

        self._dispatcher: Optional[TkDispatcher] = None
        self._dialog: Optional[ProgressDialog] = None
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    def _add_folder_row(self, row: int, label: str, variable: customtkinter.StringVar) -> None:
        customtkinter.CTkLabel(self, text=label).grid(row=row, column=0, padx=8, pady=6, sticky="w")
        customtkinter.CTkEntry(self, textvariable=variable, width=320).grid(
            row=row, column=1, padx=8, pady=6, sticky="ew"
        )
        customtkinter.CTkButton(
            self, text="参照…", width=72, command=lambda: self._browse(variable)
        ).grid(row=row, column=2, padx=8, pady=6)

    def _browse(self, variable: customtkinter.StringVar) -> None:
        selected = filedialog.askdirectory(parent=self, initialdir=variable.get() or None)
        if selected:
            variable.set(selected)

    def _on_percent_change(self, value: float) -> None:
        self.percent_label.configure(text=f"{int(round(value))}%")

    def start_batch(self) -> None:
        source = self.source_var.get().strip()
        dest = self.dest_var.get().strip()
        error = validate_inputs(source, dest)
        if error:
            messagebox.showerror("エラー", error, parent=self)
            return

        try:
            Path(dest).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            messagebox.showerror("エラー", f"出力フォルダを作成できません: {e}", parent=self)
            return

        percent = int(round(self.percent_slider.get()))
        self.start_button.configure(state="disabled")

        self._dialog = ProgressDialog(self)
        self._dispatcher = TkDispatcher(self)
        self._dispatcher.start()

        processor = ImageProcessor(dest, self.copyright_var.get(), dispatcher=self._dispatcher)
        processor.add_image_processor_listener(self._dialog)

        worker = threading.Thread(
            target=self._run_batch, args=(processor, Path(source), percent), daemon=True
        )
        worker.start()

    def _run_batch(self, processor: ImageProcessor, source: Path, percent: int) -> None:
        """ワーカースレッドで実行"""
        started = time.perf_counter()
        results = processor.process_files(source, percent)
        summary = summarize_results(results, time.perf_counter() - started)
        logger.info(summary.status_text())

        dispatcher = self._dispatcher
        if dispatcher is None or dispatcher.closed:
            return
        try:
            dispatcher(lambda: self._finish_batch(summary))
        except Exception as e:
            logger.error(f"完了通知を UI に渡せませんでした: {e}")

    def _finish_batch(self, summary: BatchSummary) -> None:
        if self._dialog is not None and self._dialog.winfo_exists():
            self._dialog.grab_release()
            self._dialog.destroy()
        self._dialog = None
        if self._dispatcher is not None:
            self._dispatcher.close()
            self._dispatcher = None

        self.start_button.configure(state="normal")
        if summary.failed:
            messagebox.showwarning("完了（失敗あり）", summary.status_text(), parent=self)
        else:
            messagebox.showinfo("完了", summary.status_text(), parent=self)

    def _on_close(self) -> None:
        if self._dispatcher is not None:
            self._dispatcher.close()
        self.destroy()


def main() -> None:
    artifacts = runtime_logging.create_run_log_artifacts()
    setup_logging(log_file=artifacts.run_log_path)
    customtkinter.set_appearance_mode("system")
    app = FramerApp()
    app.mainloop()


if __name__ == "__main__":
    main()
