"""
Result writer for outputting analysis results to files.

Writers handle both single-track results (one AnalysisResult per file)
and two-track comparison reports. New formats are added by subclassing
ResultWriter and registering the class in create_result_writer.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, TextIO

from bandscope.core.models import AnalysisResult, InterferenceReport


class ResultWriter(ABC):
    """Abstract base class for result writers (Strategy Pattern)."""

    @abstractmethod
    def write(self, results: Dict[Path, AnalysisResult], output_path: Path) -> None:
        """Write single-track results to the specified path."""

    @abstractmethod
    def write_comparison(
        self,
        report: InterferenceReport,
        track1: Path,
        track2: Path,
        output_path: Path,
    ) -> None:
        """Write a two-track interference report to the specified path."""


class TextResultWriter(ResultWriter):
    """Writes analysis results to a human-readable text file."""

    def __init__(self, include_timestamp: bool = True):
        """
        Initialize text writer.

        Args:
            include_timestamp: Whether to include timestamp in output
        """
        self.include_timestamp = include_timestamp
        self.logger = logging.getLogger("result_writer.text")

    def write(self, results: Dict[Path, AnalysisResult], output_path: Path) -> None:
        """
        Write results to a text file.

        Args:
            results: Dictionary mapping file paths to their analysis results
            output_path: Path to output text file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            self._write_header(f, "BANDSCOPE ANALYSIS RESULTS")
            f.write(f"Total Files Analyzed: {len(results)}\n")
            f.write("=" * 70 + "\n\n")

            for file_path, result in results.items():
                self._write_single_result(f, Path(file_path), result)

            self._write_footer(f)

        self.logger.info(f"Results written to: {output_path}")

    def write_comparison(
        self,
        report: InterferenceReport,
        track1: Path,
        track2: Path,
        output_path: Path,
    ) -> None:
        """Write an interference report to a text file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            self._write_header(f, "BANDSCOPE INTERFERENCE REPORT")
            f.write(f"Track 1: {track1}\n")
            f.write(f"Track 2: {track2}\n")
            f.write("=" * 70 + "\n\n")
            f.write(format_comparison(report))
            f.write("\n")
            self._write_footer(f)

        self.logger.info(f"Comparison written to: {output_path}")

    def _write_header(self, f: TextIO, title: str) -> None:
        f.write("=" * 70 + "\n")
        f.write(f"{title}\n")
        f.write("=" * 70 + "\n")
        if self.include_timestamp:
            f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")

    def _write_footer(self, f: TextIO) -> None:
        f.write("=" * 70 + "\n")
        f.write("END OF REPORT\n")
        f.write("=" * 70 + "\n")

    def _write_single_result(self, f: TextIO, file_path: Path, result: AnalysisResult) -> None:
        """Write a single analysis result to file."""
        f.write("-" * 70 + "\n")
        f.write(f"FILE: {file_path.name}\n")
        f.write(f"PATH: {file_path}\n")
        f.write("-" * 70 + "\n")

        meta = result.track_metadata
        f.write(f"Processing Time: {result.processing_time:.3f}s\n")
        f.write(
            f"Audio: {meta.get('duration', 0.0):.2f}s, "
            f"{meta.get('sample_rate')} Hz, {meta.get('channels')} ch\n"
        )
        f.write(f"\nSummary: {result.get_summary()}\n")

        features = result.features
        f.write("\nFeatures:\n")
        f.write(f"  Envelope Windows: {len(features.envelope)}\n")
        f.write(f"  Beats: {len(features.beats)}\n")
        f.write(f"  Frequency Peaks: {len(features.frequency_peaks)}\n")
        f.write(f"  Spectrogram Frames: {features.spectrogram.n_frames}\n")

        if features.time_markers:
            f.write("\nTime Markers:\n")
            for marker in features.time_markers:
                f.write(
                    f"  {marker.time:7.2f}s  {marker.label} "
                    f"({marker.confidence:.0%})\n"
                )

        f.write("\n")
        f.write(result.analysis.summary)
        f.write("\n")


class JSONResultWriter(ResultWriter):
    """Writes analysis results to a JSON file."""

    def __init__(self, indent: int = 2):
        """
        Initialize JSON writer.

        Args:
            indent: JSON indentation level
        """
        self.indent = indent
        self.logger = logging.getLogger("result_writer.json")

    def write(self, results: Dict[Path, AnalysisResult], output_path: Path) -> None:
        """
        Write results to a JSON file.

        Args:
            results: Dictionary mapping file paths to their analysis results
            output_path: Path to output JSON file
        """
        output_data = {
            "generated": datetime.now().isoformat(),
            "total_files": len(results),
            "results": {
                str(path): result.to_dict()
                for path, result in results.items()
            }
        }
        self._dump(output_data, Path(output_path))

    def write_comparison(
        self,
        report: InterferenceReport,
        track1: Path,
        track2: Path,
        output_path: Path,
    ) -> None:
        """Write an interference report to a JSON file."""
        output_data = {
            "generated": datetime.now().isoformat(),
            "track1": str(track1),
            "track2": str(track2),
            "report": report.to_dict(),
        }
        self._dump(output_data, Path(output_path))

    def _dump(self, data: Dict, output_path: Path) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=self.indent, default=str)

        self.logger.info(f"Results written to: {output_path}")


def format_comparison(report: InterferenceReport) -> str:
    """Plain-text rendering of an interference report."""
    lines = []

    if report.alignment is not None:
        alignment = report.alignment
        lines.append(f"Overlapping duration: {alignment.overlap_duration:.2f}s")
        if alignment.has_different_lengths:
            shorter = 1 if alignment.track1_is_shorter else 2
            lines.append(f"Tracks differ in length; track {shorter} is shorter.")
        lines.append("")

    lines.append(
        f"Band overlaps: {report.destructive_count} destructive, "
        f"{report.constructive_count} constructive"
    )
    for overlap in report.overlaps:
        kind = "constructive" if overlap.is_constructive else "destructive"
        flag = " (no strong overlap)" if overlap.is_fallback else ""
        lines.append(
            f"  {overlap.band:<15} {overlap.frequency:8.0f} Hz  "
            f"{overlap.overlap_intensity:.2f}  {kind}{flag}"
        )

    if report.notes:
        lines.append("")
        lines.append("Notes:")
        for note in report.notes:
            lines.append(f"  {note.label} ({note.low:g}-{note.high:g}Hz): {note.description}")

    lines.append("")
    if report.suggestions:
        lines.append("EQ suggestions:")
        for s in report.suggestions:
            low, high = s.frequency_range
            lines.append(
                f"  Track {s.track}: {s.gain_reduction:+.1f} dB at "
                f"{low:g}-{high:g}Hz, Q {s.q:g} - {s.reason}"
            )
    else:
        lines.append("No EQ changes suggested.")

    return "\n".join(lines) + "\n"


def create_result_writer(format: str = "text", **kwargs) -> ResultWriter:
    """
    Factory function to create appropriate result writer.

    Args:
        format: Output format ("text" or "json")
        **kwargs: Additional arguments for the writer

    Returns:
        Appropriate ResultWriter instance
    """
    writers = {
        "text": TextResultWriter,
        "txt": TextResultWriter,
        "json": JSONResultWriter,
    }

    writer_class = writers.get(format.lower())
    if writer_class is None:
        raise ValueError(f"Unknown format: {format}. Supported: {list(writers.keys())}")

    return writer_class(**kwargs)
