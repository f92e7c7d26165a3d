"""Scatter-plot visualization pipeline

Usage:
    python pipeline.py <input_dir> <output_dir> [--format html|png|svg] [--excel]

The input directory must contain:
    *sumstats.tsv       Summary statistics (chromosome, position, p-value,
                        optional variant ID), one dataset per file

Optional (figures generated only if detected):
    *{name}*deresults*  Differential expression results (DESeq2, edgeR or limma
                        columns; TSV, CSV or Excel)

Outputs (saved to output_dir):
    {name}_manhattan    Manhattan plot on a gap-free genome-wide axis
    {name}_volcano      Volcano plot (if a *{name}*deresults* file is present)
    {name}_data.xlsx    Multi-sheet Excel workbook (if --excel flag is set)

PNG and SVG output require vl-convert-python (pip install vl-convert-python).
Excel output requires openpyxl (pip install openpyxl).
"""

import argparse
import sys
from pathlib import Path

from scatterviz import io, process
from scatterviz.coordinates import AmbiguousOrderError, InvalidInputError, normalize_frame
from scatterviz.figures import base, manhattan, volcano


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate Manhattan and volcano plots from precomputed statistics."
    )
    parser.add_argument(
        "input_dir",
        type=Path,
        help="Directory containing input files",
    )
    parser.add_argument(
        "output_dir",
        type=Path,
        help="Directory to write output figures",
    )
    parser.add_argument(
        "--format",
        choices=["html", "png", "svg"],
        default="html",
        help="Output format for figures (default: html). "
             "PNG/SVG require vl-convert-python.",
    )
    parser.add_argument(
        "--excel",
        action="store_true",
        default=False,
        help="Also write a multi-sheet Excel workbook ({name}_data.xlsx) "
             "containing display coordinates, chromosome ticks and any DE results. "
             "Requires openpyxl.",
    )
    parser.add_argument(
        "--chrom-order",
        type=lambda s: [c.strip() for c in s.split(",") if c.strip()],
        default=None,
        metavar="LIST",
        help="Comma-separated chromosome order, e.g. 1,2,3,X,Y. Every chromosome "
             "in the data must be listed. Default: natural sort of chromosome names.",
    )
    parser.add_argument(
        "--tick-stat",
        choices=["median", "mean", "midpoint"],
        default="median",
        help="Where to place each chromosome label on the x-axis (default: median).",
    )
    parser.add_argument(
        "--genome-wide",
        type=float,
        default=base.GENOME_WIDE_P,
        metavar="P",
        help=f"Genome-wide significance threshold (default: {base.GENOME_WIDE_P}).",
    )
    parser.add_argument(
        "--suggestive",
        type=float,
        default=base.SUGGESTIVE_P,
        metavar="P",
        help=f"Suggestive significance threshold (default: {base.SUGGESTIVE_P}).",
    )
    parser.add_argument(
        "--lfc-threshold",
        type=float,
        default=base.LFC_THRESHOLD,
        metavar="F",
        help=f"Absolute log2 fold change cutoff for the volcano plot (default: {base.LFC_THRESHOLD}).",
    )
    parser.add_argument(
        "--p-threshold",
        type=float,
        default=base.P_THRESHOLD,
        metavar="P",
        help=f"Adjusted p-value cutoff for the volcano plot (default: {base.P_THRESHOLD}).",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if not args.input_dir.is_dir():
        sys.exit(f"Error: input directory not found: {args.input_dir}")

    args.output_dir.mkdir(parents=True, exist_ok=True)
    fmt = args.format

    # --- Discover datasets ---
    print(f"Scanning for datasets in: {args.input_dir}")
    try:
        datasets = io.find_datasets(args.input_dir)
    except (FileNotFoundError, ValueError) as exc:
        sys.exit(f"Error: {exc}")
    print(f"  Found {len(datasets)} dataset(s): {', '.join(datasets)}")

    # --- Process each dataset ---
    for name, files in datasets.items():
        print(f"\n[{name}] Loading data...")
        try:
            sumstats_df = process.load_sumstats(files["sumstats"])
        except ValueError as exc:
            sys.exit(f"Error: [{name}] {exc}")
        print(f"  {len(sumstats_df)} variants loaded")

        try:
            coords_df, ticks_df = normalize_frame(
                sumstats_df,
                group_col="chrom",
                pos_col="pos",
                group_order=args.chrom_order,
                tick_stat=args.tick_stat,
            )
        except (InvalidInputError, AmbiguousOrderError) as exc:
            sys.exit(f"Error: [{name}] {exc}")
        print(f"  {len(ticks_df)} chromosome(s): {', '.join(map(str, ticks_df['group']))}")

        print(f"[{name}] Generating figures (format: {fmt})")

        io.save_figure(
            manhattan.make_plot(
                coords_df, ticks_df,
                genome_wide=args.genome_wide,
                suggestive=args.suggestive,
                title=name,
            ),
            args.output_dir / f"{name}_manhattan.{fmt}",
        )

        de_df = None
        if files["de_results"] is not None:
            try:
                de_df = process.load_de_results(files["de_results"])
                de_df = process.classify_regulation(
                    de_df, lfc_threshold=args.lfc_threshold, p_threshold=args.p_threshold
                )
            except ValueError as exc:
                sys.exit(f"Error: [{name}] {exc}")
            io.save_figure(
                volcano.make_plot(
                    de_df,
                    lfc_threshold=args.lfc_threshold,
                    p_threshold=args.p_threshold,
                    title=name,
                ),
                args.output_dir / f"{name}_volcano.{fmt}",
            )
        else:
            print(f"[{name}] No DE results file found, skipping volcano plot.")

        if args.excel:
            print(f"[{name}] Writing Excel workbook...")
            sheets = {"coordinates": coords_df, "ticks": ticks_df}
            if de_df is not None:
                sheets["de_results"] = de_df
            io.save_excel(sheets, args.output_dir / f"{name}_data.xlsx")

    print(f"\nDone. Figures saved to: {args.output_dir}")


if __name__ == "__main__":
    main()
