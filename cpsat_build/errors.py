import click


class BuildError(click.ClickException):
    """Base class for every failure that aborts a cpsat-build run."""

    kind = "build error"

    def __init__(self, message, **context):
        super().__init__(message)
        self.context = context

    def format_message(self):
        details = ", ".join(f"{k}={v}" for k, v in self.context.items() if v is not None)
        if details:
            return f"{self.kind}: {self.message} ({details})"
        return f"{self.kind}: {self.message}"


class UnsupportedPlatform(BuildError):
    kind = "unsupported platform"

    def __init__(self, message, platform=None):
        super().__init__(message, platform=platform)
        self.platform = platform


class InvalidConfiguration(BuildError):
    kind = "invalid configuration"

    def __init__(self, message, path=None):
        super().__init__(message, path=path)
        self.path = path


class DownloadFailed(BuildError):
    kind = "download failed"

    def __init__(self, message, url, status=None):
        super().__init__(message, url=url, status=status)
        self.url = url
        self.status = status


class ExtractionFailed(BuildError):
    kind = "extraction failed"

    def __init__(self, message, path=None):
        super().__init__(message, path=path)
        self.path = path


class CompilationFailed(BuildError):
    kind = "compilation failed"

    def __init__(self, message, command=None, stderr=None):
        super().__init__(message, command=" ".join(command) if command else None)
        self.command = command
        self.stderr = stderr


class LinkEmissionFailed(BuildError):
    kind = "link emission failed"

    def __init__(self, message, path=None):
        super().__init__(message, path=path)
        self.path = path


class SchemaCompilationFailed(CompilationFailed):
    kind = "schema compilation failed"
