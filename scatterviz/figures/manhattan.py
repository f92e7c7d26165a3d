"""Manhattan plot of -log10(p) across the genome.

Points are placed on the gap-free display axis produced by
coordinates.normalize_frame; chromosome names are drawn at each group's tick
position and point colors alternate between neighbouring chromosomes.
"""

import altair as alt
import pandas as pd

from ..process import neg_log10
from .base import CHROM_PALETTE, GENOME_WIDE_P, SUGGESTIVE_P


def _label_expr(ticks: pd.DataFrame) -> str:
    """Vega expression mapping each tick position to its group name."""
    expr = "''"
    for tick, group in reversed(list(zip(ticks["tick"], ticks["group"]))):
        name = str(group).replace("\\", "\\\\").replace("'", "\\'")
        expr = f"datum.value == {float(tick)!r} ? '{name}' : {expr}"
    return expr


def make_plot(
    df: pd.DataFrame,
    ticks: pd.DataFrame,
    group_col: str = "chrom",
    genome_wide: float = GENOME_WIDE_P,
    suggestive: float | None = SUGGESTIVE_P,
    max_labels: int = 10,
    title: str = "",
) -> alt.Chart:
    """Generate a Manhattan plot.

    Args:
        df: Output of coordinates.normalize_frame on a sumstats dataframe
            (columns display_coordinate, neg_log10_p, p, pos, label, group_col).
        ticks: Ticks dataframe returned alongside df.
        genome_wide: p-value for the solid significance line; labelled
            points must reach it.
        suggestive: p-value for the dashed line, or None to omit it.
        max_labels: Maximum number of labelled hits (lowest p first).
        title: Figure title.
    """
    alt.data_transformers.disable_max_rows()

    df = df.copy()
    group_index = dict(zip(ticks["group"], ticks["group_index"]))
    df["chrom_shade"] = (df[group_col].map(group_index) % 2).astype(str)
    df["group_name"] = df[group_col].astype(str)

    x_domain = [int(ticks["display_min"].min()), int(ticks["display_max"].max())]
    n = len(df)

    points = alt.Chart(df).mark_circle(size=12, opacity=0.8).encode(
        x=alt.X(
            "display_coordinate:Q",
            scale=alt.Scale(domain=x_domain, nice=False, zero=False),
            axis=alt.Axis(
                title="Chromosome",
                titleFontSize=20,
                labelFontSize=14,
                values=[float(t) for t in ticks["tick"]],
                labelExpr=_label_expr(ticks),
                labelOverlap=False,
                grid=False,
            ),
        ),
        y=alt.Y(
            "neg_log10_p:Q",
            axis=alt.Axis(title="-log10(p)", titleFontSize=20, labelFontSize=16),
            scale=alt.Scale(zero=True),
        ),
        color=alt.Color(
            "chrom_shade:N",
            scale=alt.Scale(domain=["0", "1"], range=CHROM_PALETTE),
            legend=None,
        ),
        tooltip=[
            alt.Tooltip("label:N", title="Variant"),
            alt.Tooltip("group_name:N", title="Chromosome"),
            alt.Tooltip("pos:Q", title="Position", format=","),
            alt.Tooltip("p:Q", title="p-value", format=".2e"),
        ],
    ).properties(
        width=900,
        height=300,
        title=alt.TitleParams(
            text=f"{title + ' ' if title else ''}Manhattan Plot (n = {n})",
            fontSize=22,
        ),
    )

    layers = [points]

    layers.append(
        alt.Chart(df).mark_rule(color="#d62728", strokeWidth=1.5).encode(
            y=alt.datum(float(neg_log10(genome_wide)))
        )
    )
    if suggestive is not None:
        layers.append(
            alt.Chart(df).mark_rule(
                color="#888888", strokeDash=[8, 8], strokeWidth=1
            ).encode(y=alt.datum(float(neg_log10(suggestive))))
        )

    hits = df.loc[(df["p"] <= genome_wide) & df["label"].notna()]
    hits = hits.nsmallest(max_labels, "p")
    if not hits.empty:
        layers.append(
            alt.Chart(hits).mark_text(
                align="left", dx=4, dy=-6, fontSize=11
            ).encode(
                x="display_coordinate:Q",
                y="neg_log10_p:Q",
                text="label:N",
            )
        )

    return (
        alt.layer(*layers)
        .configure_axis(grid=False)
        .configure_view(stroke=None)
    )
