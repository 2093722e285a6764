import logging
import re
import sys

# Signed and file URLs, and bare runs long enough to be access tokens or ciphertext.
_URL_RE = re.compile(r"(?:https?|file)://\S+")
_SECRET_RE = re.compile(r"(?<![A-Za-z0-9_-])[A-Za-z0-9_-]{40,}(?![A-Za-z0-9_-])")


class RedactingFilter(logging.Filter):
    """Rewrite each record's message with URLs and token-like strings masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _SECRET_RE.sub("[redacted]", _URL_RE.sub("[redacted-url]", message))
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class Log:
    """Centralized logging with structured format.

    Callers pass check ids, event ids and step names only. Access tokens,
    presigned URLs and extracted personal data never reach the log; the
    RedactingFilter on the logger masks URLs and token-like strings that slip
    into an exception message.
    """

    _logger: logging.Logger = logging.getLogger("idcheck")
    _logger.addFilter(RedactingFilter())

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Configure the logger with the specified level and stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Log an info message."""
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        """Log an error message."""
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        cls._logger.debug(message, extra=kwargs)
