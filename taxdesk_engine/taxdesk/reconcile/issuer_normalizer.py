from typing import Any, Dict, Iterable, List

from fuzzywuzzy import fuzz


class IssuerNormalizer:
    """
    Map free-text issuer names (OCR output, bank narrations) onto a directory
    of known issuers so certificates score against one canonical spelling.
    """

    def __init__(self, known_issuers: Iterable[str], fuzzy_threshold: int = 75):
        self.issuer_list: List[str] = []
        self.fuzzy_threshold = fuzzy_threshold
        self._by_key: Dict[str, str] = {}
        for issuer in known_issuers:
            self.add(issuer)

    def add(self, issuer: str):
        issuer = (issuer or "").strip()
        if issuer and issuer.casefold() not in self._by_key:
            self.issuer_list.append(issuer)
            self._by_key[issuer.casefold()] = issuer

    def normalize(self, raw_name: str) -> Dict[str, Any]:
        name = (raw_name or "").strip()
        if not name:
            return {"input": raw_name, "canonical": None, "score": 0.0, "method": "none"}
        exact = self._by_key.get(name.casefold())
        if exact:
            return {"input": raw_name, "canonical": exact, "score": 1.0, "method": "exact"}
        best = None
        best_score = 0
        for v in self.issuer_list:
            s = fuzz.token_set_ratio(name, v)
            if s > best_score:
                best, best_score = v, s
        if best_score >= self.fuzzy_threshold:
            return {"input": raw_name, "canonical": best, "score": best_score / 100.0, "method": "fuzzy"}
        return {"input": raw_name, "canonical": None, "score": 0.0, "method": "none"}

    def canonical(self, raw_name: str) -> str:
        """Canonical spelling, or the input unchanged when nothing is close enough."""
        return self.normalize(raw_name)["canonical"] or raw_name
