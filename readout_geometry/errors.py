"""
Error types and the per-build report used while constructing a readout.

Configuration problems are collected in a BuildReport while the whole
description is processed, and raised together as a ConfigurationError at
the end of the build, so the caller sees every problem at once.
"""

from typing import List


class ConfigurationError(ValueError):
    """Raised when a readout description cannot produce a usable readout."""

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        summary = "; ".join(self.messages)
        super().__init__(f"Invalid readout configuration: {summary}")


class BuildReport:
    """Accumulates errors and warnings produced during one readout build."""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.decoding_disabled: List[str] = []

    @property
    def ok(self) -> bool:
        return not self.errors

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def disable_decoding(self, module_name: str, message: str) -> None:
        """Records that a module fell back to identity decoding."""
        self.warn(message)
        if module_name not in self.decoding_disabled:
            self.decoding_disabled.append(module_name)

    def raise_if_errors(self) -> None:
        if self.errors:
            raise ConfigurationError(self.errors)

    def __repr__(self):
        return (f"BuildReport(errors={len(self.errors)}, warnings={len(self.warnings)}, "
                f"decoding_disabled={self.decoding_disabled})")
