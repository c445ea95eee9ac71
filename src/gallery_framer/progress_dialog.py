"""処理中の画像名を表示する進捗ダイアログ。"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import customtkinter


class ProgressDialog(customtkinter.CTkToplevel):
    """ユーザーに処理が進んでいることを知らせるダイアログ"""

    def __init__(self, master: Any, modal: bool = True) -> None:
        super().__init__(master)
        self.title("進捗")
        self.resizable(False, False)

        self.msg_label = customtkinter.CTkLabel(self, text="処理中", width=360, height=25)
        self.msg_label.pack(padx=24, pady=(16, 12))

        self.transient(master)
        if modal:
            self.grab_set()
        self._center_on_screen()

    def processed_image(self, pathname: Path) -> None:
        """処理したばかりの画像名を表示"""
        self.msg_label.configure(text=Path(pathname).name)

    def _center_on_screen(self) -> None:
        self.update_idletasks()
        width = self.winfo_reqwidth()
        height = self.winfo_reqheight()
        x = (self.winfo_screenwidth() - width) // 2
        y = (self.winfo_screenheight() - height) // 2
        self.geometry(f"+{max(0, x)}+{max(0, y)}")
