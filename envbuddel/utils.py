import click


class EnvbuddelException(click.ClickException):
    pass


class InvalidKeyLength(EnvbuddelException):
    pass


class EncodingError(EnvbuddelException):
    pass


class PackFormatError(EncodingError):
    pass


class KeyfileEmpty(EnvbuddelException):
    pass


class KeyfileUnreadable(EnvbuddelException):
    pass


class CryptoError(EnvbuddelException):
    pass


class TruncatedInput(EnvbuddelException):
    pass


class AuthenticationFailed(EnvbuddelException):
    pass


class PathNotFound(EnvbuddelException):
    pass


class UnsupportedPathType(EnvbuddelException):
    pass


class ExtractionError(EnvbuddelException):
    pass


class WriteError(EnvbuddelException):
    pass


class VaultUnreadable(EnvbuddelException):
    pass


class GitignoreError(EnvbuddelException):
    pass


class PathUnreadable(EnvbuddelException):
    pass
