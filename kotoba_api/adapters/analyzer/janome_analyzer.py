"""Janome + pykakasi morphological analyzer adapter.

Loading the Janome system dictionary takes seconds and hundreds of megabytes,
so instances are built once per process through ``build_analyzer``.
"""

from __future__ import annotations

import asyncio
import logging
import threading

import pykakasi
from janome.tokenizer import Tokenizer

from kotoba_api.adapters.analyzer.base import EMPTY_FEATURE, AbstractMorphAnalyzer, RawToken

logger = logging.getLogger(__name__)


def _split_pos(part_of_speech: str) -> list[str]:
    parts = part_of_speech.split(",")
    return (parts + [EMPTY_FEATURE] * 4)[:4]


class JanomeAnalyzer(AbstractMorphAnalyzer):
    """Analyzer backed by Janome's IPADIC tokenizer and pykakasi."""

    def __init__(self) -> None:
        self._tokenizer = Tokenizer()
        self._kakasi = pykakasi.kakasi()
        self._lock = threading.Lock()

    def tokenize(self, text: str) -> list[RawToken]:
        with self._lock:
            tokens = list(self._tokenizer.tokenize(text))

        raw_tokens: list[RawToken] = []
        for token in tokens:
            pos, detail_1, detail_2, detail_3 = _split_pos(token.part_of_speech)
            raw_tokens.append(
                RawToken(
                    surface=token.surface,
                    pos=pos,
                    pos_detail_1=detail_1,
                    pos_detail_2=detail_2,
                    pos_detail_3=detail_3,
                    conjugated_type=token.infl_type or EMPTY_FEATURE,
                    conjugated_form=token.infl_form or EMPTY_FEATURE,
                    basic_form=token.base_form or EMPTY_FEATURE,
                    reading=token.reading or EMPTY_FEATURE,
                    pronunciation=token.phonetic or EMPTY_FEATURE,
                )
            )
        return raw_tokens

    def romanize(self, text: str) -> str:
        with self._lock:
            converted = self._kakasi.convert(text)
        words: list[str] = []
        for item in converted:
            word = item["hepburn"].strip()
            if not word:
                continue
            # Punctuation sticks to the preceding word
            if words and not any(ch.isalnum() for ch in word):
                words[-1] += word
            else:
                words.append(word)
        return " ".join(words)


async def build_analyzer() -> AbstractMorphAnalyzer:
    """Construct a JanomeAnalyzer in a worker thread.

    Returns:
        A ready-to-use analyzer.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, JanomeAnalyzer)
