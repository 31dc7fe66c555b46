"""
Success criteria for dia exports.

dia does not set a non-zero exit value on Linux. Instead it writes both
errors and normal output to stderr, so on those platforms a clean exit
is only trusted when the expected "<source> --> <export>" line appears.
"""

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .exceptions import ConversionError


@dataclass(frozen=True)
class ProcessResult:
    """
    Captured outcome of one converter process.

    Attributes:
        executable: Path of the converter binary
        exit_code: Process exit status
        stdout: Captured standard output
        stderr: Captured standard error
    """
    executable: str
    exit_code: int
    stdout: str = ''
    stderr: str = ''


class SuccessCriterion(ABC):
    """Decides whether a finished converter process produced its export."""

    name = 'abstract'

    @abstractmethod
    def check(self, result: ProcessResult, source_file: str, export_file: str) -> None:
        """Raise ConversionError unless the process succeeded."""

    @staticmethod
    def _check_exit_code(result: ProcessResult) -> None:
        if result.exit_code != 0:
            raise ConversionError(
                result.executable,
                f"non-zero exit value: {result.exit_code}\n{result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )


class TrustExitCode(SuccessCriterion):
    """Exit status alone decides success."""

    name = 'exit-code'

    def check(self, result: ProcessResult, source_file: str, export_file: str) -> None:
        self._check_exit_code(result)


class VerifyDiagnosticText(SuccessCriterion):
    """Exit status must be zero and stderr must report the export."""

    name = 'diagnostic-text'

    @staticmethod
    def expected_line(source_file: str, export_file: str) -> str:
        return f"{source_file} --> {export_file}"

    def check(self, result: ProcessResult, source_file: str, export_file: str) -> None:
        self._check_exit_code(result)
        expected = self.expected_line(source_file, export_file)
        # Other lines are noise like: Xlib:  extension "RANDR" missing on display ":0".
        if expected not in result.stderr.splitlines():
            raise ConversionError(
                result.executable,
                result.stderr or 'no export reported on stderr',
                exit_code=result.exit_code,
                stderr=result.stderr,
            )


def detect_success_criterion(platform: str = sys.platform) -> SuccessCriterion:
    """Pick the criterion for the running platform."""
    if platform.startswith('win'):
        return TrustExitCode()
    return VerifyDiagnosticText()
