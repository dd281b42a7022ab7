"""sheetprep — Normalize multi-row-header spreadsheet exports into clean tables."""

__version__ = "0.3.0"

KEY_NAME_LABEL: str = "車名"
"""Marker label that anchors the header block and the protected column."""

CAR_NAME_LABEL: str = "Car Name"
COMMON_NAME_LABEL: str = "Common Name"
