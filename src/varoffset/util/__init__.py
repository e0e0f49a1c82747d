"""
どこで: `util` パッケージ。
何を: エンジンの入出力境界で使うアダプタ（閉ループ整形・作業平面・固定小数座標）。
"""
