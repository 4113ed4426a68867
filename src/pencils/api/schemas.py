from dataclasses import dataclass, field
from typing import Dict, Optional

import requests


@dataclass(frozen=True)
class BasicAuth:
    """Static basic-auth credentials"""
    username: str
    password: str

    def __repr__(self) -> str:
        return f"BasicAuth(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class ClientConfig:
    """Read-only configuration shared by every Resource derived from one Api."""
    base_url: str
    auth: Optional[BasicAuth] = None
    suffix: str = ""  # e.g. ".json", applied to the final segment only
    retries: int = 0  # total attempts = retries + 1
    timeout: float = 10.0  # per attempt, seconds
    retry_delay: float = 0.0
    deadline: Optional[float] = None  # cumulative across attempts, seconds
    headers: Dict[str, str] = field(default_factory=dict)
    verify: object = True  # bool or CA bundle path, passed through to requests
    session: requests.Session = field(default_factory=requests.Session, repr=False, compare=False)
