"""Token counting with tiktoken.

Chunk budgets are expressed in tokens of the embedding model the
downstream pipeline targets, so every length measurement in the
splitter goes through this module.
"""

from functools import lru_cache
from typing import Protocol

import tiktoken

DEFAULT_TOKENIZER_MODEL = "text-embedding-3-large"


class Tokenizer(Protocol):
    """Anything that can count tokens in a string."""

    def count_tokens(self, text: str) -> int: ...


class TiktokenTokenizer:
    """Sub-word tokenizer backed by a tiktoken encoding."""

    def __init__(self, model: str = DEFAULT_TOKENIZER_MODEL):
        self.model = model
        self._encoding = _load_encoding(model)

    def encode(self, text: str) -> list[int]:
        # Special-token text such as "<|endoftext|>" in a board pack is
        # counted as ordinary text rather than rejected.
        return self._encoding.encode(text, disallowed_special=())

    def count_tokens(self, text: str) -> int:
        return len(self.encode(text))


@lru_cache(maxsize=4)
def _load_encoding(model: str) -> tiktoken.Encoding:
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding("cl100k_base")


@lru_cache(maxsize=4)
def get_tokenizer(model: str = DEFAULT_TOKENIZER_MODEL) -> TiktokenTokenizer:
    """Get the shared tokenizer for a model (encodings are immutable)."""
    return TiktokenTokenizer(model)


def estimate_token_count(text: str, tokenizer: Tokenizer | None = None) -> int:
    """
    Estimate the number of tokens in a text string.

    Args:
        text: The text to measure
        tokenizer: Optional tokenizer; defaults to the embedding model's

    Returns:
        Number of tokens
    """
    return (tokenizer or get_tokenizer()).count_tokens(text)
