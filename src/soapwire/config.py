from __future__ import annotations
from typing import List

from .exceptions import InvalidVersion
from .namespaces import VERSIONS


class Settings:
    """
    Process-wide defaults.

    Read at use time: envelopes without an explicit version and responses
    without an explicit ``raise_errors`` look here whenever they need the
    value. Callers sharing these across threads must synchronize themselves.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self._soap_version = 1
        self.raise_errors: bool = True
        self.log_filter: List[str] = []

    @property
    def soap_version(self) -> int:
        return self._soap_version

    @soap_version.setter
    def soap_version(self, version: int) -> None:
        if version not in VERSIONS:
            raise InvalidVersion(f"Invalid SOAP version: {version!r}")
        self._soap_version = version


settings = Settings()
