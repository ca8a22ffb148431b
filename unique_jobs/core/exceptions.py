"""Lock-layer exceptions. Lock contention is never an exception; only protocol and store failures are."""


class UniqueJobsError(Exception):
    """Base for all unique-jobs errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ScriptExecutionError(UniqueJobsError):
    """
    Raised when Redis reports a Lua compile or runtime error that a reload cannot fix.
    Carries the script name, its path and source so the failing line can be located.
    """

    def __init__(
        self,
        message: str,
        *,
        script_name: str,
        script_path: str,
        script_source: str,
        line: int | None = None,
    ) -> None:
        self.script_name = script_name
        self.script_path = script_path
        self.script_source = script_source
        self.line = line
        location = f"{script_path}:{line}" if line is not None else script_path
        super().__init__(f"{message} ({location})")

    @property
    def source_line(self) -> str | None:
        """The offending line of Lua, when Redis reported one."""
        if self.line is None:
            return None
        lines = self.script_source.splitlines()
        if 1 <= self.line <= len(lines):
            return lines[self.line - 1]
        return None


class LockConflictError(UniqueJobsError):
    """Raised by the raise conflict strategy when a duplicate could not get its lock."""

    def __init__(self, digest: str, jid: str, lock_type: str) -> None:
        self.digest = digest
        self.jid = jid
        self.lock_type = lock_type
        super().__init__(
            f"Job {jid} could not acquire {lock_type} lock for digest {digest}"
        )


class InvalidLockTypeError(UniqueJobsError):
    """Raised when a lock type tag has no registered strategy."""


class InvalidConflictStrategyError(UniqueJobsError):
    """Raised when an on_conflict tag has no registered strategy."""
