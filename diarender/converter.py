"""
DiaConverter - Exports diagrams to PNG by running the dia binary.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from sh import Command, CommandNotFound, ErrorReturnCode, TimeoutException
from PIL import Image

from .exceptions import ConversionError
from .sources import SourceArtifact
from .success_criteria import ProcessResult, SuccessCriterion, detect_success_criterion

PNG_EXTENSION = '.png'

# mkstemp creates files readable only by their owner
EXPORT_MODE = 0o644


@dataclass(frozen=True)
class DiaExport:
    """
    A rendered diagram on disk.

    Attributes:
        file_path: Location of the cached PNG
        width: Actual pixel width of the PNG
        height: Actual pixel height of the PNG
    """
    file_path: Path
    width: int
    height: int


def read_export(file_path: Path) -> DiaExport:
    """Describe an existing PNG using the size stored in its header."""
    with Image.open(file_path) as img:
        width, height = img.size
    return DiaExport(file_path=Path(file_path), width=width, height=height)


def size_argument(width: Optional[int], height: Optional[int]) -> Optional[str]:
    """Build dia's --size value, None when neither dimension is requested."""
    if width is None:
        if height is None:
            return None
        return f"x{height}"
    if height is None:
        return f"{width}x"
    return f"{width}x{height}"


class DiaConverter:
    """
    Runs dia to export one diagram at one size.

    The export is written to a hidden temporary file beside the target and
    renamed into place only after the success criterion accepts the run.
    """

    def __init__(
        self,
        executable: str,
        success_criterion: Optional[SuccessCriterion] = None,
        timeout: Optional[float] = 60.0,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize converter.

        Args:
            executable: Path to the dia binary
            success_criterion: How to judge a finished process
                (default: detected from the platform)
            timeout: Seconds before the process is killed, None for no limit
            logger: Optional logger instance
        """
        self.executable = executable
        self.success_criterion = success_criterion or detect_success_criterion()
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def build_command(
        self,
        source_file: str,
        export_file: str,
        width: Optional[int] = None,
        height: Optional[int] = None
    ) -> List[str]:
        """Arguments passed to dia, excluding the executable itself."""
        args = [f"--export={export_file}", '--filter=png']
        size = size_argument(width, height)
        if size is not None:
            args.append(f"--size={size}")
        args.append('--log-to-stderr')
        args.append(source_file)
        return args

    def convert(
        self,
        source: SourceArtifact,
        output_path: Path,
        width: Optional[int] = None,
        height: Optional[int] = None
    ) -> DiaExport:
        """
        Export a diagram to output_path.

        Args:
            source: Diagram to export
            output_path: Final location of the PNG; its directory must exist
            width: Requested width, None for unspecified
            height: Requested height, None for unspecified

        Returns:
            DiaExport for the written PNG

        Raises:
            ConversionError: If dia fails, times out, or writes nothing
        """
        output_path = Path(output_path)
        source_file = str(Path(source.file_path).resolve())
        fd, tmp_name = tempfile.mkstemp(
            dir=output_path.parent,
            prefix=f".{output_path.stem}-",
            suffix=PNG_EXTENSION
        )
        os.close(fd)
        export_file = str(Path(tmp_name).resolve())

        try:
            args = self.build_command(source_file, export_file, width, height)
            self.logger.debug(f"Exporting: {self.executable} {' '.join(args)}")
            result = self._run(args)
            self.success_criterion.check(result, source_file, export_file)

            if os.path.getsize(export_file) == 0:
                raise ConversionError(
                    self.executable,
                    f"export was not written: {export_file}\n{result.stderr}",
                    exit_code=result.exit_code,
                    stderr=result.stderr,
                )

            if source.last_modified:
                mtime_ns = source.last_modified * 1_000_000
                os.utime(export_file, ns=(mtime_ns, mtime_ns))
            os.chmod(export_file, EXPORT_MODE)
            os.replace(export_file, output_path)
        finally:
            if os.path.exists(export_file):
                os.remove(export_file)

        export = read_export(output_path)
        self.logger.info(f"Exported {source_file} -> {output_path} ({export.width}x{export.height})")
        return export

    def _run(self, args: List[str]) -> ProcessResult:
        """Run dia and capture its outcome."""
        try:
            command = Command(self.executable)
            proc = command(*args, _return_cmd=True, _timeout=self.timeout)
        except CommandNotFound:
            raise ConversionError(self.executable, "executable not found")
        except TimeoutException as e:
            raise ConversionError(
                self.executable,
                f"timed out after {self.timeout}s",
                exit_code=e.exit_code,
            )
        except ErrorReturnCode as e:
            return ProcessResult(
                executable=self.executable,
                exit_code=e.exit_code,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr),
            )

        return ProcessResult(
            executable=self.executable,
            exit_code=proc.exit_code,
            stdout=_decode(proc.stdout),
            stderr=_decode(proc.stderr),
        )


def _decode(data) -> str:
    if isinstance(data, bytes):
        return data.decode('utf-8', errors='replace')
    return data or ''
