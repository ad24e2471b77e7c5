#!/usr/bin/env python3
"""
Template builder for the template classifier.

Cuts the 9 cells out of screenshots whose glyphs are known, averages the
foreground masks of every sample per symbol and saves one mask per
symbol to assets/templates/.

Usage:
    python build_templates.py --sample IMAGE LETTERS [--sample IMAGE LETTERS ...]

LETTERS is the grid read row by row, e.g. "QWEASDRQW". Use '?' for cells
that should be skipped.

Examples:
    python build_templates.py --sample shots/grid1.png QWEASDRQW
    python build_templates.py --sample a.png QWERASDQW --sample b.png DSAREWQQE --resolution 2560x1440
"""

import sys
import argparse
from pathlib import Path
from collections import defaultdict

import cv2
import numpy as np
from PIL import Image

sys.path.insert(0, str(Path(__file__).parent.parent))

from mhsolver.frame import DisplayGeometry, Frame
from mhsolver.geometry import extract_cells, locate_grid
from mhsolver.recognition import ALPHABET, DEFAULT_TEMPLATE_DIR, Symbol, foreground_mask
from mhsolver.settings import GridConfig


# Fraction of samples that must agree for a template pixel
AGREEMENT = 0.5


def load_frame(image_path: str) -> Frame:
    """Load a full-screen screenshot as a Frame."""
    image = Image.open(image_path).convert("RGB")
    return Frame.from_array(np.array(image))


def collect_samples(image_path: str, letters: str, config: GridConfig) -> dict:
    """
    Extract labelled cell masks from one screenshot.

    Returns dict mapping Symbol -> list of boolean masks.
    """
    symbols = [Symbol.parse(ch) for ch in letters if not ch.isspace()]
    if len(symbols) != 9:
        raise ValueError(f"Expected 9 letters, got {len(symbols)}: {letters!r}")

    frame = load_frame(image_path)
    display = DisplayGeometry(frame.width, frame.height)
    rect = locate_grid(display, config)
    print(f"{image_path}: {display.key}, grid at ({rect.x}, {rect.y}), cell size {rect.cell_size}px")

    samples = defaultdict(list)
    for cell, symbol in zip(extract_cells(frame, rect, config.edge_padding), symbols):
        if symbol is Symbol.UNKNOWN:
            continue
        mask = foreground_mask(cell.pixels)
        print(f"  Cell ({cell.row},{cell.col}) = {symbol}: {int(mask.sum())} foreground pixels")
        samples[symbol].append(mask)
    return samples


def create_templates(samples: dict) -> dict:
    """
    Average the samples of each symbol into one mask.

    Returns dict mapping Symbol -> uint8 image (0 or 255).
    """
    templates = {}
    for symbol in ALPHABET:
        masks = samples.get(symbol)
        if not masks:
            print(f"Symbol {symbol}: no samples")
            continue

        height, width = masks[0].shape
        resized = [
            m if m.shape == (height, width) else
            cv2.resize(m.astype(np.uint8), (width, height), interpolation=cv2.INTER_NEAREST).astype(bool)
            for m in masks
        ]
        mean = np.mean(np.stack(resized).astype(np.float32), axis=0)
        templates[symbol] = np.where(mean >= AGREEMENT, 255, 0).astype(np.uint8)
        print(f"Symbol {symbol}: {len(masks)} samples averaged")
    return templates


def save_templates(templates: dict, output_dir: Path):
    """Save templates as grayscale <SYMBOL>.png masks."""
    output_dir.mkdir(parents=True, exist_ok=True)
    for symbol, template in templates.items():
        path = output_dir / f"{symbol.value}.png"
        cv2.imwrite(str(path), template)
        print(f"Saved: {path}")


def main():
    parser = argparse.ArgumentParser(description="Build glyph templates from labelled screenshots")
    parser.add_argument(
        "--sample",
        nargs=2,
        action="append",
        metavar=("IMAGE", "LETTERS"),
        required=True,
        help="Screenshot and its 9 glyphs in row-major order"
    )
    parser.add_argument("--resolution", default="auto", help="Resolution profile (default: auto)")
    parser.add_argument("--output", default=str(DEFAULT_TEMPLATE_DIR), help="Output directory")
    args = parser.parse_args()

    config = GridConfig(resolution_profile=args.resolution)

    samples = defaultdict(list)
    for image_path, letters in args.sample:
        if not Path(image_path).exists():
            print(f"ERROR: File not found: {image_path}")
            sys.exit(1)
        for symbol, masks in collect_samples(image_path, letters, config).items():
            samples[symbol].extend(masks)

    templates = create_templates(samples)
    if not templates:
        print("No templates created")
        sys.exit(1)

    save_templates(templates, Path(args.output))
    missing = [s.value for s in ALPHABET if s not in templates]
    if missing:
        print(f"\nStill missing: {', '.join(missing)}")
    print(f"\nDone! {len(templates)}/{len(ALPHABET)} templates saved")


if __name__ == "__main__":
    main()
