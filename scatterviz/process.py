from pathlib import Path

import numpy as np
import pandas as pd

from .coordinates import Record

# Accepted column names for each standard field, checked in order.
_SUMSTATS_ALIASES = {
    "chrom": ["chrom", "CHR", "CHROM", "#CHROM", "chr", "chromosome", "Chromosome"],
    "pos": ["pos", "BP", "POS", "bp", "position", "Position", "base_pair_location"],
    "p": ["p", "P", "pval", "PVAL", "p_value", "P_VALUE", "P-value", "pvalue"],
    "label": ["label", "SNP", "rsid", "RSID", "ID", "variant_id", "MarkerName"],
}

# DESeq2, edgeR and limma naming
_DE_ALIASES = {
    "gene": ["gene", "Gene", "gene_id", "gene_name", "symbol", "Symbol", "ID"],
    "log2_fold_change": ["log2_fold_change", "log2FoldChange", "logFC", "log2FC"],
    "padj": ["padj", "FDR", "adj.P.Val", "p_adj", "qvalue"],
}

# Smallest p-value kept before the -log10 transform (avoids log10(0) = inf)
P_FLOOR = 1e-300


def _read_table(path: Path) -> pd.DataFrame:
    """Read CSV, Excel or tab-delimited text based on extension."""
    if path.suffix == ".csv":
        return pd.read_csv(path)
    if path.suffix in (".xlsx", ".xls"):
        return pd.read_excel(path)
    return pd.read_csv(path, sep="\t")


def _resolve_column(df: pd.DataFrame, field: str, aliases: dict, override: str | None = None,
                    required: bool = True):
    """Return the column in df holding ``field``, or None for optional fields."""
    if override is not None:
        if override not in df.columns:
            raise ValueError(f"Missing column '{override}' in columns: {list(df.columns)}")
        return override
    for name in aliases[field]:
        if name in df.columns:
            return name
    if required:
        raise ValueError(
            f"Could not find a '{field}' column (tried {aliases[field]}) "
            f"in columns: {list(df.columns)}"
        )
    return None


def neg_log10(p) -> np.ndarray | float:
    """-log10 transform with p clipped into [P_FLOOR, 1]."""
    return -np.log10(np.clip(p, P_FLOOR, 1.0))


def load_sumstats(
    path: Path,
    chrom_col: str | None = None,
    pos_col: str | None = None,
    p_col: str | None = None,
    label_col: str | None = None,
) -> pd.DataFrame:
    """Load a GWAS-style summary statistics table for a Manhattan plot.

    Column names are detected from common aliases (CHR/BP/P/SNP, chrom/pos/pval,
    ...) unless given explicitly. Rows missing a chromosome, position or
    p-value are dropped.

    Returns a dataframe with columns chrom, pos, p, neg_log10_p and label.
    """
    raw = _read_table(path)

    cols = {
        "chrom": _resolve_column(raw, "chrom", _SUMSTATS_ALIASES, chrom_col),
        "pos": _resolve_column(raw, "pos", _SUMSTATS_ALIASES, pos_col),
        "p": _resolve_column(raw, "p", _SUMSTATS_ALIASES, p_col),
        "label": _resolve_column(raw, "label", _SUMSTATS_ALIASES, label_col, required=False),
    }

    df = raw[[c for c in cols.values() if c is not None]].rename(
        columns={v: k for k, v in cols.items() if v is not None}
    )
    if cols["label"] is None:
        df["label"] = pd.Series([None] * len(df), index=df.index, dtype=object)

    n_before = len(df)
    df = df.dropna(subset=["chrom", "pos", "p"]).copy()
    if len(df) < n_before:
        print(f"  Dropped {n_before - len(df)} rows with missing chrom/pos/p")

    # Keep chromosome names as text so '1' and 'X' sort together naturally
    df["chrom"] = df["chrom"].astype(str).str.replace(r"\.0$", "", regex=True)
    if not pd.api.types.is_numeric_dtype(df["pos"]) or not (df["pos"] % 1 == 0).all():
        raise ValueError(f"Positions in {path.name} must be whole base-pair coordinates")
    df["pos"] = df["pos"].astype("int64")
    df["p"] = df["p"].astype(float)
    df["neg_log10_p"] = neg_log10(df["p"])
    df["label"] = pd.Series(
        [lab if pd.notna(lab) else None for lab in df["label"]], index=df.index, dtype=object
    )

    return df.reset_index(drop=True)


def to_records(df: pd.DataFrame, value_col: str = "neg_log10_p",
               group_col: str = "chrom", pos_col: str = "pos") -> tuple:
    """Convert a loaded sumstats dataframe into a tuple of Record."""
    labels = df["label"] if "label" in df.columns else [None] * len(df)
    return tuple(
        Record(group_id=g, local_position=int(pos), value=float(v),
               label=lab if pd.notna(lab) else None)
        for g, pos, v, lab in zip(df[group_col], df[pos_col], df[value_col], labels)
    )


def load_de_results(path: Path) -> pd.DataFrame:
    """Load a differential expression results table for a volcano plot.

    DESeq2 (log2FoldChange, padj), edgeR (logFC, FDR) and limma
    (logFC, adj.P.Val) column names are recognised. If no gene column is
    found, the first column (often an unnamed row index) is used.

    Returns a dataframe with columns gene, log2_fold_change, padj and
    neg_log10_padj.
    """
    raw = _read_table(path)

    lfc_col = _resolve_column(raw, "log2_fold_change", _DE_ALIASES)
    padj_col = _resolve_column(raw, "padj", _DE_ALIASES)
    gene_col = _resolve_column(raw, "gene", _DE_ALIASES, required=False)
    if gene_col is None:
        if raw.columns[0] in (lfc_col, padj_col):
            raise ValueError(
                f"Could not find a gene column (tried {_DE_ALIASES['gene']}) "
                f"in columns: {list(raw.columns)}"
            )
        gene_col = raw.columns[0]

    df = pd.DataFrame({
        "gene": raw[gene_col].astype(str),
        "log2_fold_change": raw[lfc_col],
        "padj": raw[padj_col],
    })
    df = df.dropna(subset=["log2_fold_change", "padj"]).reset_index(drop=True)
    df["neg_log10_padj"] = neg_log10(df["padj"].astype(float))
    print(f"  DE results: {len(df)} genes with fold change and adjusted p-value")
    return df


def classify_regulation(df: pd.DataFrame, lfc_threshold: float = 1.0,
                        p_threshold: float = 0.05) -> pd.DataFrame:
    """Label each gene Up, Down or Not Significant.

    A gene is Up when padj < p_threshold and log2_fold_change >= lfc_threshold,
    Down when padj < p_threshold and log2_fold_change <= -lfc_threshold.
    """
    if lfc_threshold <= 0:
        raise ValueError(f"lfc_threshold must be positive, got {lfc_threshold}")
    if not 0 < p_threshold <= 1:
        raise ValueError(f"p_threshold must be in (0, 1], got {p_threshold}")

    df = df.copy()
    significant = df["padj"] < p_threshold
    df["regulation"] = "Not Significant"
    df.loc[significant & (df["log2_fold_change"] >= lfc_threshold), "regulation"] = "Up"
    df.loc[significant & (df["log2_fold_change"] <= -lfc_threshold), "regulation"] = "Down"
    return df
