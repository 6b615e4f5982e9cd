from __future__ import annotations


class BootstrapError(RuntimeError):
    pass


class ConfigError(BootstrapError):
    pass


class FilesystemError(BootstrapError):
    pass


class ShellError(BootstrapError):
    def __init__(self, message: str, stdout: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class GitError(BootstrapError):
    pass
