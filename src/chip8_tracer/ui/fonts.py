"""
UIフォント管理モジュール。

レジスタ表示や逆アセンブル表示に使う等幅フォントを、利用可能なものから選択します。
"""
from PySide6.QtGui import QFont, QFontDatabase

PREFERRED_FAMILIES = ["Consolas", "Menlo", "Monaco", "DejaVu Sans Mono", "Courier New"]

# @intent:responsibility 現在のシステムで利用可能な最適な等幅フォントファミリー名を返します。
def get_monospace_font_family() -> str:
    available_families = set(QFontDatabase.families())
    for family in PREFERRED_FAMILIES:
        if family in available_families:
            return family
    return QFontDatabase.systemFont(QFontDatabase.FixedFont).family()

def get_monospace_font(size: int = 10, bold: bool = False) -> QFont:
    font = QFont(get_monospace_font_family(), size)
    font.setStyleHint(QFont.Monospace)
    font.setBold(bold)
    return font
