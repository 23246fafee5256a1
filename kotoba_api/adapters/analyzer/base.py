from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

# Placeholder the IPADIC dictionary uses for "no value"
EMPTY_FEATURE = "*"


@dataclass(frozen=True)
class RawToken:
	"""Dictionary token as produced by an IPADIC-style tokenizer.

	Missing features hold ``EMPTY_FEATURE``.
	"""

	surface: str
	pos: str
	pos_detail_1: str = EMPTY_FEATURE
	pos_detail_2: str = EMPTY_FEATURE
	pos_detail_3: str = EMPTY_FEATURE
	conjugated_type: str = EMPTY_FEATURE
	conjugated_form: str = EMPTY_FEATURE
	basic_form: str = EMPTY_FEATURE
	reading: str = EMPTY_FEATURE
	pronunciation: str = EMPTY_FEATURE


class AbstractMorphAnalyzer(ABC):
	"""Interface for heavy, stateful Japanese morphological analyzers.

	Methods are synchronous and CPU-bound; callers run them off the event loop.
	"""

	@abstractmethod
	def tokenize(self, text: str) -> list[RawToken]:
		"""Split ``text`` into dictionary tokens, in order."""
		...

	@abstractmethod
	def romanize(self, text: str) -> str:
		"""Return space-separated Hepburn romanization of ``text``."""
		...
