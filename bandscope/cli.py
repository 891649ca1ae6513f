"""
BandScope - Audio Analysis CLI

Command-line interface for single-track analysis and two-track
interference comparison. Installed as the 'bandscope' command.

Example usage:
    # Single file analysis
    bandscope path/to/audio.wav
    bandscope --output results.json path/to/audio.wav

    # Batch processing
    bandscope --batch path/to/directory/
    bandscope --batch --recursive path/to/directory/
    bandscope --batch --output-file results.txt file1.wav file2.wav

    # Two-track comparison
    bandscope compare vocals.wav guitar.wav
    bandscope compare --output report.json vocals.wav guitar.wav
"""

import argparse
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from bandscope import __version__
from bandscope.core.batch_processor import BatchProcessor
from bandscope.core.engine import create_analysis_engine
from bandscope.core.models import AnalysisResult
from bandscope.core.result_writer import JSONResultWriter, TextResultWriter, format_comparison
from bandscope.utils.config import load_config
from bandscope.utils.logging import setup_logging


def print_single_result(file_path: Path, result: AnalysisResult) -> None:
    """Print analysis results for a single file to console."""
    meta = result.track_metadata
    print("\n" + "=" * 60)
    print("BANDSCOPE ANALYSIS RESULTS")
    print("=" * 60)
    print(f"File: {file_path.name}")
    print(f"Processing Time: {result.processing_time:.3f}s")
    print(
        f"Audio: {meta.get('duration', 0.0):.2f}s, "
        f"{meta.get('sample_rate')} Hz, {meta.get('channels')} ch"
    )
    print("-" * 60)
    print(result.get_summary())
    print("-" * 60)
    print()
    print(result.analysis.summary)


def analyze_single_file(
    audio_file: Path,
    config: dict,
    output_json: Optional[Path] = None,
    output_txt: Optional[Path] = None,
    verbose: bool = False,
) -> int:
    """
    Analyze a single audio file.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if not audio_file.exists():
        print(f"Error: Audio file not found: {audio_file}")
        return 1

    print(f"Analyzing: {audio_file}")
    engine = create_analysis_engine(config)

    try:
        result = engine.analyze(audio_file)

        print_single_result(audio_file, result)

        if output_json:
            JSONResultWriter().write({audio_file: result}, output_json)
            print(f"\nJSON results saved to: {output_json}")

        if output_txt:
            TextResultWriter().write({audio_file: result}, output_txt)
            print(f"Text results saved to: {output_txt}")

        return 0

    except Exception as e:
        print(f"Error during analysis: {e}")
        if verbose:
            traceback.print_exc()
        return 1

    finally:
        engine.shutdown()


def analyze_batch(
    inputs: List[Path],
    config: dict,
    recursive: bool = False,
    output_txt: Optional[Path] = None,
    output_json: Optional[Path] = None,
    verbose: bool = False,
) -> int:
    """
    Analyze multiple audio files in batch mode.

    Returns:
        Exit code (0 if every file succeeded, 1 otherwise)
    """
    engine = create_analysis_engine(config)

    def progress_callback(current: int, total: int, file_path: Path) -> None:
        print(f"[{current}/{total}] Processing: {file_path.name}")

    try:
        processor = BatchProcessor(
            engine=engine,
            progress_callback=progress_callback,
            audio_extensions=engine.loader.supported_suffixes,
        )
        batch_result = processor.process(inputs, recursive=recursive)

        print("\n" + "=" * 60)
        print("BATCH PROCESSING COMPLETE")
        print("=" * 60)
        print(f"Total Files: {batch_result.total_files}")
        print(f"Successful: {batch_result.success_count}")
        print(f"Failed: {batch_result.failure_count}")
        print(f"Success Rate: {batch_result.success_rate:.1f}%")
        print(f"Total Time: {batch_result.total_time:.2f}s")

        if batch_result.failed:
            print("\nFailed Files:")
            for path, error in batch_result.failed.items():
                print(f"  {path.name}: {error}")

        # Text output is the default when nothing else was requested
        if output_txt or (not output_json and batch_result.successful):
            txt_path = output_txt or Path(
                f"bandscope_results_{datetime.now().strftime('%Y%m%d_%H%M%S')}.txt"
            )
            TextResultWriter().write(batch_result.successful, txt_path)
            print(f"\nText results saved to: {txt_path}")

        if output_json:
            JSONResultWriter().write(batch_result.successful, output_json)
            print(f"JSON results saved to: {output_json}")

        return 0 if batch_result.failure_count == 0 else 1

    except Exception as e:
        print(f"Error during batch processing: {e}")
        if verbose:
            traceback.print_exc()
        return 1

    finally:
        engine.shutdown()


def compare_tracks(
    track1: Path,
    track2: Path,
    config: dict,
    output_json: Optional[Path] = None,
    output_txt: Optional[Path] = None,
    verbose: bool = False,
) -> int:
    """
    Compare two tracks for frequency interference.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    for track in (track1, track2):
        if not track.exists():
            print(f"Error: Audio file not found: {track}")
            return 1

    print(f"Comparing: {track1} <-> {track2}")
    engine = create_analysis_engine(config)

    try:
        report = engine.compare_files(track1, track2)

        print("\n" + "=" * 60)
        print("BANDSCOPE INTERFERENCE REPORT")
        print("=" * 60)
        print(f"Track 1: {track1.name}")
        print(f"Track 2: {track2.name}")
        print("-" * 60)
        print(format_comparison(report))

        if output_json:
            JSONResultWriter().write_comparison(report, track1, track2, output_json)
            print(f"JSON report saved to: {output_json}")

        if output_txt:
            TextResultWriter().write_comparison(report, track1, track2, output_txt)
            print(f"Text report saved to: {output_txt}")

        return 0

    except Exception as e:
        print(f"Error during comparison: {e}")
        if verbose:
            traceback.print_exc()
        return 1

    finally:
        engine.shutdown()


def build_parser(compare: bool = False) -> argparse.ArgumentParser:
    """Argument parser for analysis mode, or for the compare subcommand."""
    parser = argparse.ArgumentParser(
        prog="bandscope compare" if compare else "bandscope",
        description=(
            "Compare two tracks for frequency interference and suggest EQ cuts"
            if compare else
            "Analyze audio files: envelope, beats, spectrum and content classification"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Single file:
    bandscope audio.wav
    bandscope --output results.json audio.wav
    bandscope --output-file results.txt audio.wav

  Batch processing:
    bandscope --batch samples/
    bandscope --batch --recursive samples/
    bandscope --batch file1.wav file2.wav file3.wav

  Two-track comparison:
    bandscope compare vocals.wav guitar.wav
    bandscope compare --output report.json vocals.wav guitar.wav
        """
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"BandScope {__version__}"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to save JSON output"
    )
    parser.add_argument(
        "--output-file",
        "-o",
        type=Path,
        default=None,
        help="Path to save text results file (.txt)"
    )

    if compare:
        parser.add_argument("track1", type=Path, help="First audio file")
        parser.add_argument("track2", type=Path, help="Second audio file")
        return parser

    parser.add_argument(
        "inputs",
        type=Path,
        nargs="+",
        help="Audio file(s) or directory to analyze"
    )
    parser.add_argument(
        "--batch",
        "-b",
        action="store_true",
        help="Enable batch processing mode for multiple files or directories"
    )
    parser.add_argument(
        "--recursive",
        "-r",
        action="store_true",
        help="Search directories recursively (only with --batch)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the bandscope command."""
    if argv is None:
        argv = sys.argv[1:]

    is_compare = len(argv) > 0 and argv[0] == "compare"
    parser = build_parser(compare=is_compare)
    args = parser.parse_args(argv[1:] if is_compare else argv)

    config_path = str(args.config) if args.config else None
    config = load_config(config_path)

    log_config = config.get("logging", {})
    log_level = "DEBUG" if args.verbose else log_config.get("level", "INFO")
    setup_logging(
        level=log_level,
        log_format=log_config.get("format", "text"),
        log_file=log_config.get("file"),
        colored=True,
        console_enabled=True
    )

    if is_compare:
        exit_code = compare_tracks(
            track1=args.track1,
            track2=args.track2,
            config=config,
            output_json=args.output,
            output_txt=args.output_file,
            verbose=args.verbose,
        )
    elif args.batch or len(args.inputs) > 1 or args.inputs[0].is_dir():
        exit_code = analyze_batch(
            inputs=args.inputs,
            config=config,
            recursive=args.recursive,
            output_txt=args.output_file,
            output_json=args.output,
            verbose=args.verbose,
        )
    else:
        exit_code = analyze_single_file(
            audio_file=args.inputs[0],
            config=config,
            output_json=args.output,
            output_txt=args.output_file,
            verbose=args.verbose,
        )

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
