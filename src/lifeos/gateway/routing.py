"""
Path-prefix classification of gateway requests.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple


@dataclass(frozen=True)
class RouteRule:
    """Send every path starting with ``prefix`` to ``backend``."""

    prefix: str
    backend: str

    def matches(self, path: str) -> bool:
        # Plain prefix test: "/notifications-admin" matches "/notifications"
        return path.startswith(self.prefix)


class RouteTable:
    """Ordered prefix rules; the first match wins, else the default backend."""

    def __init__(self, rules: Iterable[RouteRule], default_backend: str):
        self.rules: Tuple[RouteRule, ...] = tuple(rules)
        self.default_backend = default_backend

    @classmethod
    def from_pairs(cls, pairs: Sequence[Sequence[str]], default_backend: str) -> "RouteTable":
        return cls((RouteRule(prefix, backend) for prefix, backend in pairs), default_backend)

    def classify(self, path: str) -> str:
        """Backend name for ``path``. Total; never raises."""
        for rule in self.rules:
            if rule.matches(path):
                return rule.backend
        return self.default_backend

    def backends(self) -> List[str]:
        """Every backend name ``classify`` can return, in table order."""
        names = [rule.backend for rule in self.rules] + [self.default_backend]
        return list(dict.fromkeys(names))
