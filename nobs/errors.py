from __future__ import annotations

EXIT_METADATA_CORRUPTION = 1
EXIT_STARTUP_ERROR = 2
EXIT_LAUNCH_FAILURE = 71
EXIT_FILESYSTEM_ERROR = 73
EXIT_INTERRUPTED = 130


class BuildError(Exception):
    """Fatal build error. Carries the exit code the build terminates with."""

    kind = "build_error"
    exit_code = 1

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class FilesystemError(BuildError):
    kind = "filesystem"
    exit_code = EXIT_FILESYSTEM_ERROR


class MetadataCorruption(BuildError):
    kind = "metadata_corruption"
    exit_code = EXIT_METADATA_CORRUPTION


class LaunchFailure(BuildError):
    kind = "launch_failure"
    exit_code = EXIT_LAUNCH_FAILURE


class JobFailure(BuildError):
    """A job's process started but exited non-zero."""

    kind = "job_failure"

    def __init__(self, message: str, *, exit_code: int, job_index: int) -> None:
        super().__init__(message, exit_code=exit_code)
        self.job_index = job_index
