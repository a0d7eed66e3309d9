"""
CHIP-8 仮想マシンのアーキテクチャ実装パッケージ。
"""
