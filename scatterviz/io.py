import fnmatch
from pathlib import Path

import altair as alt
import pandas as pd


def find_datasets(input_dir: Path) -> dict:
    """Discover all datasets in the input directory.

    Detects datasets by finding all *sumstats.tsv files and extracting the
    dataset name from each filename. Both dot-separated (e.g.
    height.sumstats.tsv) and run-together (e.g. 20260129_heightsumstats.tsv)
    naming conventions are supported. An optional differential expression
    table (*{name}*deresults*) is then located using the name as a search key.

    Returns a dict mapping dataset name -> files dict, e.g.:
        {"height": {"sumstats": Path(...), "de_results": Path(...) or None}}
    """
    sumstats_files = sorted(input_dir.glob("*sumstats.tsv"))
    if not sumstats_files:
        raise FileNotFoundError(f"No '*sumstats.tsv' files found in {input_dir}")

    def find_optional_icase(pattern):
        matches = [
            p for p in input_dir.iterdir()
            if not p.name.startswith("~$")
            and fnmatch.fnmatch(p.name.lower(), pattern.lower())
        ]
        if len(matches) > 1:
            raise ValueError(
                f"Multiple files match '{pattern}': "
                + ", ".join(str(m) for m in sorted(matches))
            )
        return matches[0] if matches else None

    datasets = {}
    for sumstats_path in sumstats_files:
        # Handles both NAME.sumstats.tsv and NAMEsumstats.tsv (with optional prefix)
        stem_part = sumstats_path.stem.split("_")[-1]
        name = stem_part.removesuffix(".sumstats").removesuffix("sumstats")
        if not name:
            name = sumstats_path.stem.removesuffix("sumstats").rstrip("._") or "dataset"
        if name in datasets:
            raise ValueError(
                f"Multiple sumstats files map to dataset '{name}': "
                f"{datasets[name]['sumstats']}, {sumstats_path}"
            )
        datasets[name] = {
            "sumstats": sumstats_path,
            # Optional DESeq2/edgeR/limma results table (TSV, CSV or Excel)
            "de_results": find_optional_icase(f"*{name}*deresults*"),
        }

    return datasets


def save_figure(chart: alt.Chart, path: Path):
    """Save an Altair chart. Format is inferred from the file extension.

    HTML is fully self-contained and interactive.
    PNG and SVG require vl-convert-python to be installed.
    """
    chart.save(str(path))
    print(f"  Saved: {path.name}")


def save_excel(sheets: dict, path: Path):
    """Write a multi-sheet Excel workbook. Requires openpyxl.

    Args:
        sheets: Dict mapping sheet name -> DataFrame (insertion order preserved).
        path: Output path (.xlsx).
    """
    with pd.ExcelWriter(str(path), engine="openpyxl") as writer:
        for sheet_name, df in sheets.items():
            df.to_excel(writer, sheet_name=sheet_name, index=False)
    print(f"  Saved: {path.name}")
