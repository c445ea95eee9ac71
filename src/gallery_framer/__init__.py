"""フォトギャラリー向けに画像を縮小し、額縁と著作権表示を付けるツール"""

__version__ = "1.0.0"
