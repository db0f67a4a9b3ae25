from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from ..catalog.config import DEFAULT_CATALOG_CONFIG
from .config import DEFAULT_CHAT_CONFIG
from .models import Faq


@dataclass(frozen=True)
class FaqMatch:
    faq: Faq
    method: str
    similarity: float = 1.0


def _normalize(text: str) -> str:
    return text.strip().lower()


def load_faqs(path: Path = DEFAULT_CATALOG_CONFIG.faq_path) -> list[Faq]:
    with open(path, encoding="utf-8") as fh:
        return [Faq(**item) for item in json.load(fh)]


class FaqMatcher:
    """Finds the FAQ entry a chat message is asking about.

    Match order: exact question/variation, question/variation contained in
    the message, keyword contained in the message, then TF-IDF character
    n-gram similarity at or above ``threshold``.
    """

    def __init__(
        self,
        faqs: list[Faq],
        threshold: float = DEFAULT_CHAT_CONFIG.faq_similarity_threshold,
    ) -> None:
        self.faqs = faqs
        self.threshold = threshold

        # One document per question phrasing, mapped back to its FAQ.
        documents: list[str] = []
        self._doc_owner: list[int] = []
        for i, faq in enumerate(faqs):
            for phrasing in [faq.question, *faq.variations]:
                documents.append(_normalize(phrasing))
                self._doc_owner.append(i)

        self._vectorizer: TfidfVectorizer | None = None
        self._matrix = None
        if documents:
            # Character n-grams cope with Korean particles and spacing.
            self._vectorizer = TfidfVectorizer(analyzer="char_wb", ngram_range=(2, 3))
            self._matrix = self._vectorizer.fit_transform(documents)

    def _phrasings(self, faq: Faq) -> list[str]:
        return [_normalize(p) for p in [faq.question, *faq.variations]]

    def match(self, message: str) -> FaqMatch | None:
        normalized = _normalize(message)
        if not normalized:
            return None

        for faq in self.faqs:
            if normalized in self._phrasings(faq):
                return FaqMatch(faq=faq, method="exact")

        for faq in self.faqs:
            if any(p and p in normalized for p in self._phrasings(faq)):
                return FaqMatch(faq=faq, method="contains")

        for faq in self.faqs:
            if any(k and _normalize(k) in normalized for k in faq.keywords):
                return FaqMatch(faq=faq, method="keyword")

        if self._vectorizer is None:
            return None

        query = self._vectorizer.transform([normalized])
        sims = cosine_similarity(query, self._matrix).flatten()
        best = int(np.argmax(sims))
        if sims[best] >= self.threshold:
            return FaqMatch(
                faq=self.faqs[self._doc_owner[best]],
                method="similarity",
                similarity=round(float(sims[best]), 4),
            )
        return None
