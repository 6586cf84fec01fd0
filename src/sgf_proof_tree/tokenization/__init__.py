"""Tokenization layer for SGF input.

Key Components:
    SGFTokenizer: Lazy tokenizer over a character stream
    Token: Token kind, text and half-open source span
    TokenType: Enumeration of token kinds
"""

from .tokenizer import (
    SGFTokenizer,
    Token,
    TokenType,
)

__all__ = [
    "SGFTokenizer",
    "Token",
    "TokenType",
]
