"""Volcano plot of differential expression results.

Genes are colored by the Up / Down / Not Significant classes assigned in
process.classify_regulation; clicking a legend entry highlights that class.
"""

import altair as alt
import pandas as pd

from ..process import neg_log10
from .base import LFC_THRESHOLD, P_THRESHOLD, REGULATION_CLASSES, REGULATION_PALETTE


def make_plot(
    df: pd.DataFrame,
    lfc_threshold: float = LFC_THRESHOLD,
    p_threshold: float = P_THRESHOLD,
    top_n: int = 10,
    title: str = "",
) -> alt.Chart:
    """Generate a volcano plot of log2 fold change vs. -log10(adjusted p).

    Expects the output of process.classify_regulation (columns gene,
    log2_fold_change, padj, neg_log10_padj, regulation). Dashed lines mark
    the fold-change and p-value cutoffs; the top_n most significant
    regulated genes are labelled.
    """
    alt.data_transformers.disable_max_rows()

    counts = df["regulation"].value_counts()
    subtitle = ", ".join(f"{c}: {int(counts.get(c, 0))}" for c in REGULATION_CLASSES)
    selection = alt.selection_point(fields=["regulation"], bind="legend")

    points = alt.Chart(df).mark_circle(size=20).encode(
        x=alt.X(
            "log2_fold_change:Q",
            axis=alt.Axis(title="log2 Fold Change", titleFontSize=20, labelFontSize=16),
        ),
        y=alt.Y(
            "neg_log10_padj:Q",
            axis=alt.Axis(title="-log10(Adjusted p)", titleFontSize=20, labelFontSize=16),
        ),
        color=alt.Color(
            "regulation:N",
            scale=alt.Scale(domain=REGULATION_CLASSES, range=REGULATION_PALETTE),
            legend=alt.Legend(title="Regulation", titleFontSize=16, labelFontSize=14),
        ),
        opacity=alt.condition(selection, alt.value(0.8), alt.value(0.1)),
        tooltip=[
            alt.Tooltip("gene:N", title="Gene"),
            alt.Tooltip("log2_fold_change:Q", title="log2FC", format=".2f"),
            alt.Tooltip("padj:Q", title="Adjusted p", format=".2e"),
        ],
    ).add_params(selection).properties(
        width=500,
        height=400,
        title=alt.TitleParams(
            text=f"{title + ' ' if title else ''}Volcano Plot",
            subtitle=subtitle,
            fontSize=22,
        ),
    ).interactive()

    rule = alt.Chart(df).mark_rule(color="#888888", strokeDash=[8, 8], strokeWidth=1)
    layers = [
        points,
        rule.encode(x=alt.datum(lfc_threshold)),
        rule.encode(x=alt.datum(-lfc_threshold)),
        rule.encode(y=alt.datum(float(neg_log10(p_threshold)))),
    ]

    top = df.loc[df["regulation"] != "Not Significant"].nsmallest(top_n, "padj")
    if not top.empty:
        layers.append(
            alt.Chart(top).mark_text(align="left", dx=4, dy=-4, fontSize=11).encode(
                x="log2_fold_change:Q",
                y="neg_log10_padj:Q",
                text="gene:N",
            )
        )

    return (
        alt.layer(*layers)
        .configure_axis(grid=False)
        .configure_view(stroke=None)
    )
