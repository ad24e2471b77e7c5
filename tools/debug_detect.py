#!/usr/bin/env python3
"""
Diagnostic script to analyze glyph detection on saved screenshots.
Prints the presence check and the per-cell signatures, raw and corrected labels.

Usage:
    python debug_detect.py IMAGE [IMAGE ...] [--strategy template] [--save]
"""

import sys
import argparse
from pathlib import Path

import numpy as np
from PIL import Image

sys.path.insert(0, str(Path(__file__).parent.parent))

from mhsolver.errors import OutOfBounds
from mhsolver.frame import DisplayGeometry, Frame
from mhsolver.geometry import check_bounds, locate_grid
from mhsolver.presence import validate_presence
from mhsolver.recognition import (
    DEBUG_DIR,
    available_classifiers,
    correction_for,
    create_classifier,
    detect_grid,
    save_annotated_grid,
    save_detection_artifacts,
)
from mhsolver.settings import GridConfig


def analyze_image(image_path: str, config: GridConfig, classifier, save: bool):
    """Run presence and detection on one image and print the results."""
    print(f"\n{'='*60}")
    print(f"Analyzing: {image_path}")
    print(f"{'='*60}")

    image = Image.open(image_path).convert("RGB")
    frame = Frame.from_array(np.array(image))
    display = DisplayGeometry(frame.width, frame.height)
    rect = locate_grid(display, config)
    print(f"Display {display.key}: grid at ({rect.x}, {rect.y}), "
          f"cell size {rect.cell_size}px, spacing {rect.cell_spacing}px")

    try:
        check_bounds(frame, rect)
    except OutOfBounds as e:
        print(f"ERROR: {e}")
        return

    presence = validate_presence(frame, rect)
    print(f"\nPresence: {'YES' if presence.present else 'NO'}")
    print(f"  foreground {presence.foreground_fraction * 100:.2f}% ({presence.foreground_pixels} px)")
    print(f"  background {presence.background_fraction * 100:.2f}%")
    print(f"  border     {presence.border_fraction * 100:.2f}%")
    for reason in presence.reasons:
        print(f"  - {reason}")

    report = detect_grid(frame, rect, classifier, correction_for(classifier.name), config.edge_padding)

    print(f"\n{'Cell':<7}{'Pixels':>7}{'Aspect':>8}{'Hole':>6}{'L/R':>12}{'T/B':>12}  Raw  Final  Conf")
    print("-" * 78)
    for diag in report.diagnostics:
        sig = diag.signature
        print(
            f"({diag.row},{diag.col})  {sig.cyan_pixel_count:>7}{sig.aspect_ratio:>8.2f}"
            f"{'yes' if sig.center_hole else 'no':>6}"
            f"{sig.left_heavy:>6.2f}/{sig.right_heavy:<5.2f}{sig.top_heavy:>6.2f}/{sig.bottom_heavy:<5.2f}"
            f"  {diag.raw.symbol.value:<4} {diag.corrected.symbol.value:<6} {diag.corrected.confidence:.2f}"
        )
        if diag.scores:
            scores = ", ".join(f"{k}={v:.2f}" for k, v in diag.scores.items())
            print(f"        scores: {scores}")

    print(f"\nGrid ({report.processing_time_ms:.1f}ms, {report.grid.unknown_count} unknown):")
    for row in report.grid.rows():
        print("  " + " ".join(s.value for s in row))

    if save:
        out_dir = DEBUG_DIR / Path(image_path).stem
        save_detection_artifacts(report, out_dir)
        save_annotated_grid(report, out_dir / "annotated_grid.png")
        print(f"\nArtifacts saved to: {out_dir}")


def main():
    parser = argparse.ArgumentParser(description="Analyze glyph detection on screenshots")
    parser.add_argument("images", nargs="+", help="Full-screen screenshots")
    parser.add_argument("--strategy", default="heuristic", choices=available_classifiers())
    parser.add_argument("--resolution", default="auto", help="Resolution profile (default: auto)")
    parser.add_argument("--templates", help="Template directory for the template strategy")
    parser.add_argument("--save", action="store_true", help="Save crops and annotated grid")
    args = parser.parse_args()

    config = GridConfig(resolution_profile=args.resolution, classifier_strategy=args.strategy)
    if args.strategy == "template":
        classifier = create_classifier("template", template_dir=args.templates or config.template_dir)
    else:
        classifier = create_classifier(args.strategy)

    for image_path in args.images:
        if Path(image_path).exists():
            analyze_image(image_path, config, classifier, args.save)
        else:
            print(f"File not found: {image_path}")


if __name__ == "__main__":
    main()
