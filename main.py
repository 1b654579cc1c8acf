"""
Waverider Audio Analysis - Command Line Entry Point

Analyzes a JSON request of decoded samples:
    {"samples": [0.0, 0.1, ...], "options": {"sampleRate": 44100, "profiles": [...]}}

Example usage:
    python main.py request.json
    python main.py --config config/config.yaml --default-profiles request.json
    python main.py request.json --output result.json
"""

import argparse
import json
import sys
from pathlib import Path

from waverider.core.engine import AnalysisOptions, create_analysis_engine
from waverider.core.models import AnalysisResult
from waverider.core.profiles import default_profiles
from waverider.utils.config import load_config
from waverider.utils.errors import AudioAnalysisError
from waverider.utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Analyze decoded audio samples: amplitude, spectrum, patterns and regions"
    )
    parser.add_argument(
        "request_file",
        type=Path,
        help="Path to JSON analysis request"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to save JSON output"
    )
    parser.add_argument(
        "--default-profiles",
        action="store_true",
        help="Append the built-in Quiet/Intensity/Transition profiles"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )
    return parser


def main(argv=None) -> int:
    """Main entry point for sample analysis."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(str(args.config) if args.config else None)
    except AudioAnalysisError as e:
        print(f"Error: Invalid configuration: {e}")
        return 1

    logging_config = config.get("logging", {})
    log_level = "DEBUG" if args.verbose else logging_config.get("level", "INFO")
    setup_logging(
        level=log_level,
        log_format="text",
        log_file=logging_config.get("file"),
        colored=True,
        console_enabled=True
    )

    if not args.request_file.exists():
        print(f"Error: Request file not found: {args.request_file}")
        return 1

    try:
        with open(args.request_file, "r") as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Request file is not valid JSON: {e}")
        return 1

    with create_analysis_engine(config) as engine:
        try:
            if args.default_profiles:
                payload = _with_default_profiles(payload, engine.defaults)
            result = engine.analyze_request(payload)
        except AudioAnalysisError as e:
            print(f"Error during analysis of {args.request_file.name}: {e}")
            return 1

    if args.output:
        output_file = args.output
        if output_file.is_dir() or output_file.suffix == "":
            output_file = output_file / f"{args.request_file.stem}_analysis.json"
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, "w") as f:
            f.write(result.to_json(indent=2))
        print(f"Results saved to: {output_file}")

    _print_results(result, args.request_file)
    return 0


def _with_default_profiles(payload, defaults: AnalysisOptions):
    """Return a copy of the request with the built-in profiles appended."""
    if not isinstance(payload, dict):
        return payload
    options = dict(payload.get("options") or {})
    profiles = list(options.get("profiles") or defaults.profiles)
    known = {p.id if hasattr(p, "id") else p.get("id") for p in profiles}
    profiles.extend(p for p in default_profiles() if p.id not in known)
    options["profiles"] = profiles
    return {**payload, "options": options}


def _print_results(result: AnalysisResult, request_file: Path) -> None:
    """Print analysis results."""
    print("\n" + "=" * 60)
    print("ANALYSIS RESULTS")
    print("=" * 60)
    print(f"Request: {request_file.name}")
    print(f"Result ID: {result.id}")
    print(f"Samples: {result.sample_count} @ {result.sample_rate:g} Hz")
    print(f"Processing Time: {result.processing_time:.3f}s")
    print("-" * 60)
    print(result.get_summary())
    print("-" * 60)

    amp = result.amplitude
    print("\nAmplitude:")
    print(f"  RMS: {amp.rms:.4f}  Peak: {amp.peak:.4f}  Average: {amp.average:.4f}")
    print(f"  Crest Factor: {amp.crest_factor:.2f}  Dynamic Range: {amp.dynamic_range_db:.1f} dB")
    print(f"  Zero Crossings: {amp.zero_crossings}")

    spectral = result.spectral
    print("\nSpectral:")
    print(f"  Centroid: {spectral.spectral_centroid_hz:.1f} Hz")
    bands = spectral.frequency_bands
    print(f"  Bands: bass={bands.bass:.3g} mid={bands.mid:.3g} treble={bands.treble:.3g}")
    for dominant in spectral.dominant_frequencies:
        print(f"  {dominant.frequency_hz:8.1f} Hz  magnitude {dominant.magnitude:.3g}")

    patterns = result.patterns
    print("\nPatterns:")
    print(f"  Quiet Sections: {len(patterns.quiet_sections)}")
    print(f"  Loud Sections: {len(patterns.loud_sections)}")
    for transition in patterns.transitions:
        print(f"  {transition.time:7.2f}s {transition.direction} by {transition.change:.3f}")

    if result.regions:
        print("\nRegions:")
        for region in result.regions:
            print(
                f"  [{region.start:7.2f}s - {region.end:7.2f}s] {region.profile_id} "
                f"({region.confidence:.0%})"
            )


if __name__ == "__main__":
    sys.exit(main())
