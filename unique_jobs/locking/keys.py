"""
Key namespace for one digest. Pure derivation: the same digest always yields the same keys,
so locks stay inspectable after a crash. Key names are a wire contract with external tooling.
"""

from dataclasses import dataclass

DIGESTS_KEY = "uniquejobs:digests"
RUN_SUFFIX = "RUN"


@dataclass(frozen=True)
class LockKeys:
    """
    The Redis keys backing one digest. Suffixes contain no colon, so two distinct
    digests can never derive the same key.
    """

    digest: str
    exists: str
    holders: str
    queued: str
    primed: str
    permits: str
    obtained: str
    version: str
    changelog: str
    digests: str = DIGESTS_KEY

    @classmethod
    def for_digest(cls, digest: str) -> "LockKeys":
        return cls(
            digest=digest,
            exists=f"{digest}:EXISTS",
            holders=f"{digest}:HOLDERS",
            queued=f"{digest}:QUEUED",
            primed=f"{digest}:PRIMED",
            permits=f"{digest}:PERMITS",
            obtained=f"{digest}:OBTAINED",
            version=f"{digest}:VERSION",
            changelog=f"{digest}:CHANGELOG",
        )

    @staticmethod
    def run_digest(digest: str) -> str:
        """Digest of the runtime lock taken while a job executes."""
        return f"{digest}:{RUN_SUFFIX}"

    def to_list(self) -> list[str]:
        """Ordered KEYS vector shared by every lock script."""
        return [
            self.exists,
            self.holders,
            self.queued,
            self.primed,
            self.permits,
            self.obtained,
            self.version,
            self.changelog,
            self.digests,
        ]

    def state_keys(self) -> list[str]:
        """Every per-digest key except the append-only changelog."""
        return [
            self.exists,
            self.holders,
            self.queued,
            self.primed,
            self.permits,
            self.obtained,
            self.version,
        ]
