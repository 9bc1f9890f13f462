"""
tabular-exchange: tabular data interchange toolkit.

This package converts row/column data sources into external representations
(CSV/TSV, report-designer text, legacy .xls and zip-based .xlsx workbooks,
grid-widget JSON and RSS feeds) and parses delimited text and spreadsheet
files back into row/column data.

Architecture:
    - Sources adapt query cursors, buffered record sets and mapping lists
      behind one pull-based cursor interface
    - A single cell normalizer decides how absent, numeric and text values
      are rendered in every output format
    - Adapters wrap xlrd/xlwt (legacy binary) and openpyxl/XlsxWriter
      (zip/XML), with msoffcrypto-tool for password-protected workbooks
    - The service layer is transport-agnostic; FastAPI is one transport
"""

__version__ = "0.1.0"
