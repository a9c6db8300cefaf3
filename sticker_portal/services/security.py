from __future__ import annotations

import secrets
import time
from typing import Dict, Tuple

from ..settings import STATE_TOKEN_TTL_SECONDS


class StateTokens:
    """One-time OAuth ``state`` values bound to the client IP that requested them."""

    def __init__(self, ttl: float = STATE_TOKEN_TTL_SECONDS):
        self.ttl = ttl
        self._tokens: Dict[str, Tuple[str, float]] = {}  # {token: (ip, issued_at)}

    def issue(self, ip: str) -> str:
        token = secrets.token_urlsafe(16)
        now = time.time()
        self._tokens[token] = (ip, now)
        for t, (_, ts) in list(self._tokens.items()):
            if now - ts > self.ttl:
                self._tokens.pop(t, None)
        return token

    def validate(self, token: str, ip: str) -> bool:
        if not token:
            return False
        record = self._tokens.pop(token, None)
        if not record:
            return False
        saved_ip, ts = record
        if time.time() - ts > self.ttl:
            return False
        return saved_ip == ip
