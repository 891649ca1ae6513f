"""
Audio loader for BandScope.

Decodes audio files (or in-memory encoded audio) into SampleBuffers.
"""

import hashlib
import io
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Set, Tuple

import librosa
import numpy as np
import soundfile as sf

from bandscope.core.models import SampleBuffer
from bandscope.utils.errors import AudioLoadError, FileTooLargeError, UnsupportedFormatError


# Constants
SUPPORTED_FORMATS: Tuple[str, ...] = ('.wav', '.aiff', '.aif', '.mp3', '.flac', '.ogg')
MAX_FILE_SIZE: int = 524288000  # 500 MB

logger = logging.getLogger(__name__)


class AudioLoader:
    """
    Loads audio files and creates SampleBuffer instances.

    Thread-safe and stateless - can be used concurrently. The native
    sample rate is kept unless ``target_sr`` is given; all channels are
    kept and the engine analyses channel 0.
    """

    def __init__(
        self,
        target_sr: Optional[int] = None,
        max_file_size: int = MAX_FILE_SIZE,
        supported_formats: Sequence[str] = SUPPORTED_FORMATS,
    ):
        """
        Initialize loader with configuration.

        Args:
            target_sr: Resample to this rate (None keeps the file's rate)
            max_file_size: Maximum file size in bytes
            supported_formats: Accepted file suffixes, with leading dot
        """
        self.target_sr = target_sr
        self.max_file_size = max_file_size
        self.supported_suffixes: Set[str] = {s.lower() for s in supported_formats}

    def load(self, file_path: Path) -> SampleBuffer:
        """
        Load audio file and create a SampleBuffer.

        Raises:
            FileNotFoundError: File doesn't exist
            UnsupportedFormatError: File format not supported
            FileTooLargeError: File exceeds size limit
            AudioLoadError: Audio data cannot be decoded
        """
        file_path = Path(file_path)

        self._validate_file(file_path)
        metadata = self._load_metadata(file_path)
        audio_data, sample_rate = self._load_audio_data(file_path)
        self._check_audio_data(audio_data, str(file_path))

        return SampleBuffer.from_array(
            audio_data,
            sample_rate,
            file_path=file_path,
            file_hash=self._compute_file_hash(file_path),
            original_format=metadata['format'],
            original_bit_depth=metadata['bit_depth'],
            file_size=file_path.stat().st_size,
        )

    def load_bytes(self, data: bytes, name: Optional[str] = None) -> SampleBuffer:
        """
        Decode encoded audio held in memory (e.g. an upload).

        Args:
            data: Encoded file contents (any format libsndfile reads)
            name: Optional display name for reports

        Raises:
            FileTooLargeError: Data exceeds size limit
            AudioLoadError: Data cannot be decoded
        """
        if len(data) > self.max_file_size:
            raise FileTooLargeError(
                f"Audio data too large: {len(data) / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_file_size / 1024 / 1024:.1f} MB",
                file_size=len(data),
                max_size=self.max_file_size
            )

        try:
            with sf.SoundFile(io.BytesIO(data)) as f:
                audio_data = f.read(dtype='float32', always_2d=True).T
                sample_rate = f.samplerate
                bit_depth = f.subtype
                fmt = f.format
        except (RuntimeError, sf.LibsndfileError, TypeError) as e:
            raise AudioLoadError(
                f"Failed to decode audio data: {e}", file_path=name
            ) from e

        if self.target_sr and self.target_sr != sample_rate:
            audio_data = librosa.resample(
                audio_data, orig_sr=sample_rate, target_sr=self.target_sr
            )
            sample_rate = self.target_sr

        self._check_audio_data(audio_data, name or "<memory>")

        return SampleBuffer.from_array(
            audio_data,
            sample_rate,
            file_path=Path(name) if name else None,
            file_hash=hashlib.sha256(data).hexdigest(),
            original_format=fmt,
            original_bit_depth=bit_depth,
            file_size=len(data),
        )

    def is_supported(self, file_path: Path) -> bool:
        """True if the file suffix is an accepted audio format."""
        return Path(file_path).suffix.lower() in self.supported_suffixes

    def _validate_file(self, file_path: Path) -> None:
        """Validate file exists, has supported format, and is within size limit."""
        if not file_path.exists():
            raise FileNotFoundError(f"Audio file not found: {file_path}")

        suffix = file_path.suffix.lower()
        if suffix not in self.supported_suffixes:
            raise UnsupportedFormatError(
                f"Format {suffix} not supported. "
                f"Supported formats: {', '.join(sorted(self.supported_suffixes))}",
                format=suffix
            )

        file_size = file_path.stat().st_size
        if file_size > self.max_file_size:
            raise FileTooLargeError(
                f"File too large: {file_size / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_file_size / 1024 / 1024:.1f} MB",
                file_size=file_size,
                max_size=self.max_file_size
            )

    def _check_audio_data(self, audio_data: np.ndarray, source: str) -> None:
        """Log quality problems; the samples are passed on unchanged."""
        if audio_data.size == 0:
            logger.warning(f"Audio contains no samples: {source}")
            return

        rms = np.sqrt(np.mean(audio_data ** 2))
        if rms < 1e-6:
            logger.warning(f"Audio appears to be silent: {source}")

        max_abs = np.max(np.abs(audio_data))
        if max_abs > 1.0:
            logger.warning(f"Audio contains clipping (max: {max_abs:.2f}): {source}")

    def _load_metadata(self, file_path: Path) -> Dict[str, Any]:
        """Load original audio metadata before decoding."""
        try:
            with sf.SoundFile(str(file_path)) as f:
                metadata = {
                    'sample_rate': f.samplerate,
                    'bit_depth': f.subtype,
                    'format': file_path.suffix.lstrip('.').upper(),
                    'channels': f.channels
                }
        except (RuntimeError, sf.LibsndfileError) as e:
            # Compressed formats libsndfile can't open are still decoded by librosa
            logger.warning(f"Could not read metadata with soundfile: {e}")
            return {
                'sample_rate': None,
                'bit_depth': None,
                'format': file_path.suffix.lstrip('.').upper(),
                'channels': None
            }

        logger.info(
            f"Loading audio: {metadata['sample_rate']} Hz, "
            f"{metadata['channels']} ch, {metadata['bit_depth']}"
        )
        return metadata

    def _load_audio_data(self, file_path: Path) -> Tuple[np.ndarray, int]:
        """Decode all channels, resampling only when a target rate is set."""
        try:
            audio_data, sample_rate = librosa.load(
                str(file_path),
                sr=self.target_sr,
                mono=False,
                dtype=np.float32
            )
        except Exception as e:
            raise AudioLoadError(
                f"Failed to load audio data from {file_path}: {e}",
                file_path=str(file_path)
            ) from e

        return audio_data, int(sample_rate)

    def _compute_file_hash(self, file_path: Path) -> str:
        """Compute SHA-256 hash of file content."""
        sha256 = hashlib.sha256()

        with open(file_path, 'rb') as f:
            while True:
                chunk = f.read(8192)
                if not chunk:
                    break
                sha256.update(chunk)

        return sha256.hexdigest()


def create_audio_loader(config: Optional[Dict[str, Any]] = None) -> AudioLoader:
    """
    Factory function to create AudioLoader with configuration.

    Args:
        config: Optional ``audio`` configuration section

    Returns:
        AudioLoader: Configured loader instance
    """
    if config is None:
        config = {}

    return AudioLoader(
        target_sr=config.get('target_sample_rate'),
        max_file_size=config.get('max_file_size', MAX_FILE_SIZE),
        supported_formats=config.get('supported_formats', SUPPORTED_FORMATS),
    )
