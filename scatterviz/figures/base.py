# Shared constants used across all figure modules.
# Order here controls legend order and color assignment.

# Manhattan points alternate between these colors by chromosome index
CHROM_PALETTE = [
    "#1170AA",  # darker blue
    "#81B4C7",  # dusty blue
]

GENOME_WIDE_P = 5e-8
SUGGESTIVE_P = 1e-5

REGULATION_CLASSES = [
    "Up",
    "Down",
    "Not Significant",
]

REGULATION_PALETTE = [
    "#d62728",  # red          – Up
    "#1a7abf",  # blue         – Down
    "#CFCFCF",  # light gray   – Not Significant
]

LFC_THRESHOLD = 1.0
P_THRESHOLD = 0.05
