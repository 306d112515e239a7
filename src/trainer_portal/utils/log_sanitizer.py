"""Log sanitization filter to keep credentials and client PII out of logs.

Redacts, before a record is written:
- JWTs (session and login-link tokens, login URLs that embed them)
- Bearer tokens and authorization headers
- Passwords, secrets and API keys in key=value / JSON form
- Presigned URL signatures
- Email addresses

Usage:
    from trainer_portal.utils.log_sanitizer import install_log_sanitizer

    install_log_sanitizer()
"""

import logging
import re
from typing import Any


class LogSanitizationFilter(logging.Filter):
    """Logging filter that redacts sensitive information from log messages."""

    # Order matters - more specific patterns come before general ones
    PATTERNS: list[tuple[re.Pattern, str]] = [
        # JWTs, including the ones inside /dashboard/<token> login links
        (re.compile(r'\beyJ[a-zA-Z0-9_-]+\.eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+'), '[REDACTED_JWT]'),

        # Bearer tokens in Authorization headers
        (re.compile(r'Bearer\s+[a-zA-Z0-9_\-\.]+', re.IGNORECASE), 'Bearer [REDACTED_TOKEN]'),

        # Authorization header values (generic)
        (re.compile(r'(Authorization["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),

        # S3/R2 presigned URL signatures and credentials
        (re.compile(r'(X-Amz-Signature=)[a-fA-F0-9]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(X-Amz-Credential=)[^&\s]+', re.IGNORECASE), r'\1[REDACTED]'),

        # Password fields in various formats
        (re.compile(r'(password(?:_hash)?["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),

        # Secret and key fields (jwt_secret_key, r2_secret_access_key, vercel_token...)
        (re.compile(r'(secret[a-z_]*["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(access_key[a-z_]*["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(api_?key["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'((?:login_?)?token["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),

        # Email addresses
        (re.compile(r'\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b'), '[REDACTED_EMAIL]'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Sanitize the record in place; always lets it through."""
        if record.msg:
            record.msg = self._sanitize(str(record.msg))

        if record.args:
            record.args = self._sanitize_args(record.args)

        return True

    def _sanitize(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def _sanitize_args(self, args: Any) -> Any:
        if isinstance(args, str):
            return self._sanitize(args)
        elif isinstance(args, tuple):
            return tuple(self._sanitize_args(arg) for arg in args)
        elif isinstance(args, list):
            return [self._sanitize_args(arg) for arg in args]
        elif isinstance(args, dict):
            return {k: self._sanitize_args(v) for k, v in args.items()}
        else:
            str_val = str(args)
            sanitized = self._sanitize(str_val)
            # Keep non-string args intact unless they actually leaked something
            return sanitized if sanitized != str_val else args


def install_log_sanitizer(logger_name: str | None = None) -> None:
    """Install the log sanitization filter.

    Args:
        logger_name: If provided, install only on the named logger.
                    If None, install on the root logger and its handlers.
    """
    sanitizer = LogSanitizationFilter()

    if logger_name:
        logging.getLogger(logger_name).addFilter(sanitizer)
    else:
        root_logger = logging.getLogger()
        root_logger.addFilter(sanitizer)
        for handler in root_logger.handlers:
            handler.addFilter(sanitizer)


def sanitize_string(text: str) -> str:
    """Sanitize a string without going through the logging system."""
    return LogSanitizationFilter()._sanitize(text)
