"""Base exception for complexity-lens."""

from typing import Dict, Mapping, Optional


class ComplexityLensError(Exception):
    """Base exception for all complexity-lens errors.

    ``details`` is rendered after the message as ``key=value`` pairs, so the
    one-line form stored in ``ScanResult.error`` keeps its context, e.g.
    ``Unsupported language: cobol (language=cobol, file_id=pay.cob)``.
    """

    def __init__(self, message: str, details: Optional[Mapping[str, object]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, str] = {k: str(v) for k, v in (details or {}).items()}

    @property
    def file_id(self) -> Optional[str]:
        return self.details.get("file_id")

    def for_file(self, file_id: str) -> "ComplexityLensError":
        """Record the file being analyzed when the error was raised.

        An existing file_id is kept, so re-raising through nested callers
        never rewrites it.
        """
        self.details.setdefault("file_id", file_id)
        return self

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message
