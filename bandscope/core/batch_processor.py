"""
Batch processor for analyzing multiple audio files.

Collects audio files from paths and directories and runs each through
the engine, recording failures without stopping the batch.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from bandscope.core.cancellation import CancellationToken
from bandscope.core.loader import SUPPORTED_FORMATS
from bandscope.core.models import AnalysisResult
from bandscope.utils.errors import AnalysisCancelledError


@dataclass
class BatchResult:
    """Result of a batch processing operation."""
    successful: Dict[Path, AnalysisResult] = field(default_factory=dict)
    failed: Dict[Path, str] = field(default_factory=dict)
    total_files: int = 0
    total_time: float = 0.0

    @property
    def success_count(self) -> int:
        """Number of successfully processed files."""
        return len(self.successful)

    @property
    def failure_count(self) -> int:
        """Number of failed files."""
        return len(self.failed)

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.total_files == 0:
            return 0.0
        return (self.success_count / self.total_files) * 100


class BatchProcessor:
    """
    Processes multiple audio files using an analysis engine.

    Files are analysed one after another; each file's envelope and STFT
    stages already run in parallel inside the engine.
    """

    def __init__(
        self,
        engine,
        progress_callback: Optional[Callable[[int, int, Path], None]] = None,
        audio_extensions: Iterable[str] = SUPPORTED_FORMATS,
    ):
        """
        Initialize batch processor.

        Args:
            engine: Analysis engine instance (dependency injection)
            progress_callback: Optional callback(current, total, file_path) for progress updates
            audio_extensions: File suffixes treated as audio
        """
        self.engine = engine
        self.progress_callback = progress_callback
        self.audio_extensions = {ext.lower() for ext in audio_extensions}
        self.logger = logging.getLogger("batch_processor")

    def process(
        self,
        inputs: Union[Path, List[Path]],
        recursive: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BatchResult:
        """
        Process one or more audio files or directories.

        Args:
            inputs: Single path or list of paths (files or directories)
            recursive: If True, search directories recursively
            cancel_token: Stops the batch before the next file when cancelled

        Returns:
            BatchResult containing all results and any errors
        """
        start_time = time.time()

        files = self.collect_files(inputs, recursive)

        if not files:
            self.logger.warning("No audio files found to process")
            return BatchResult(total_files=0, total_time=0.0)

        self.logger.info(f"Processing {len(files)} audio files")

        result = self._process_files(files, cancel_token)
        result.total_time = time.time() - start_time

        self.logger.info(
            f"Batch complete: {result.success_count}/{result.total_files} succeeded "
            f"in {result.total_time:.2f}s"
        )

        return result

    def collect_files(
        self,
        inputs: Union[Path, List[Path]],
        recursive: bool = False
    ) -> List[Path]:
        """Collect all audio files from inputs, sorted and de-duplicated."""
        if isinstance(inputs, (str, Path)):
            inputs = [Path(inputs)]

        files = []
        for path in inputs:
            path = Path(path)
            if path.is_file():
                if self._is_audio_file(path):
                    files.append(path)
                else:
                    self.logger.warning(f"Skipping non-audio file: {path}")
            elif path.is_dir():
                files.extend(self._scan_directory(path, recursive))
            else:
                self.logger.warning(f"Path not found: {path}")

        return sorted(set(files))

    def _scan_directory(self, directory: Path, recursive: bool) -> List[Path]:
        """Scan directory for audio files."""
        pattern = "**/*" if recursive else "*"
        return [
            path for path in directory.glob(pattern)
            if path.is_file() and self._is_audio_file(path)
        ]

    def _is_audio_file(self, path: Path) -> bool:
        """Check if path is a supported audio file."""
        return path.suffix.lower() in self.audio_extensions

    def _process_files(
        self,
        files: List[Path],
        cancel_token: Optional[CancellationToken],
    ) -> BatchResult:
        """Process list of files sequentially."""
        result = BatchResult(total_files=len(files))

        for processed, file_path in enumerate(files, start=1):
            if cancel_token is not None and cancel_token.is_cancelled:
                self.logger.warning(
                    f"Batch cancelled after {processed - 1} of {len(files)} files"
                )
                break

            if self.progress_callback:
                self.progress_callback(processed, len(files), file_path)

            try:
                analysis = self.engine.analyze(file_path, cancel_token)
                result.successful[file_path] = analysis
                self.logger.debug(f"Successfully processed: {file_path}")
            except AnalysisCancelledError:
                self.logger.warning(f"Analysis of {file_path} cancelled")
                break
            except Exception as e:
                error_msg = str(e)
                result.failed[file_path] = error_msg
                self.logger.error(f"Failed to process {file_path}: {error_msg}")

        return result
