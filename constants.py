"""Shared constants for the rational secret sharing protocol.

默认参数集中在此处，便于测试与实验复用。
"""

from fractions import Fraction

PRIME: int = 2**255 - 19  # 2^255 - 19，大素数域，适合真实秘密
TEST_MODULUS: int = 1009  # 小素数域，用于端到端测试与实验

DEFAULT_ALPHA: Fraction = Fraction(1, 10)  # 每一轮成为决定轮的概率

GF256_POLYNOMIAL: int = 0x11B  # x^8 + x^4 + x^3 + x + 1 (AES)

DEFAULT_SALT_BITS: int = 128  # 承诺盐值位数
