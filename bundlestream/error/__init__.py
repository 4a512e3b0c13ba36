from .base import BaseError


class UserInputError(BaseError):
    """
    User input errors.
    """


class InputValueError(UserInputError, ValueError):
    """
    Invalid argument value provided to command.
    """


class InvalidKeyError(InputValueError):

    def __init__(self, length):
        self.length = length
        super().__init__(f"Key must be exactly 256 bits long, got {length} bits.")


class UnknownBundleTypeError(InputValueError):

    def __init__(self, type_name):
        self.type_name = type_name
        super().__init__(f"Unknown bundle type: '{type_name}'.")


class InvalidPropertyValueError(InputValueError):

    def __init__(self, key, value):
        self.key = key
        self.value = value
        super().__init__(
            f"Property '{key}' has unsupported value {value!r}, expected string, integer, float or boolean."
        )


class BundleError(BaseError):
    """
    Errors reading, resolving or writing a bundle.
    """


class NotFoundError(BundleError, FileNotFoundError):

    def __init__(self, path):
        self.path = path
        super().__init__(f"File does not exist: {path}")


class ParseError(BundleError, ValueError):

    def __init__(self, what, reason):
        self.what = what
        self.reason = reason
        super().__init__(f"Failed to parse {what}: {reason}")


class IndexResolutionError(BundleError):

    def __init__(self, path):
        self.path = path
        super().__init__(f"Can't resolve index file for bundle: {path}")


class UnsupportedContentError(BundleError):

    def __init__(self, main_file):
        self.main_file = main_file
        super().__init__(f"Type of content is not supported: {main_file}")


class UnsupportedOperationError(BundleError):

    def __init__(self, type_name, operation):
        self.type_name = type_name
        self.operation = operation
        super().__init__(f"Bundle type '{type_name}' does not support {operation}.")


class ContainerCodecUnavailableError(BundleError):
    """
    No binary container codec is registered under the configured name.
    """

    def __init__(self, codec_name):
        self.codec_name = codec_name
        super().__init__(f"Binary bundle container codec '{codec_name}' is not registered.")


class StreamError(BaseError):
    """
    Violations of the entry streaming protocol.
    """


class EntryOrderError(StreamError):

    def __init__(self, entry_type, expected):
        self.entry_type = entry_type
        self.expected = expected
        super().__init__(f"Unexpected '{entry_type}' entry, expected {expected}.")


class EntryStreamConsumedError(StreamError):

    def __init__(self, path):
        self.path = path
        super().__init__(f"Entries of {path} have already been consumed.")


class SourceNotReadyError(StreamError):
    """
    Metadata accessors were called before the source finished initializing.
    """

    def __init__(self, path):
        self.path = path
        super().__init__(f"Bundle source for {path} is not initialized yet.")


class CryptoError(BaseError):
    """
    Cryptography errors.
    """


class CipherError(CryptoError):

    def __init__(self, operation, reason):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Failed to {operation}: {reason}")
