"""
Codecs for workbook and delimited containers.

- XlsAdapter: legacy binary workbooks (xlrd read, xlwt write)
- XlsxAdapter: zip/XML workbooks (openpyxl read, XlsxWriter write)
- DelimitedAdapter: CSV/TSV text

Password-protected workbooks are decrypted with msoffcrypto-tool.
"""

from tabular_exchange.adapters.delimited_adapter import DelimitedAdapter
from tabular_exchange.adapters.xls_adapter import XlsAdapter
from tabular_exchange.adapters.xlsx_adapter import XlsxAdapter

__all__ = [
    "XlsAdapter",
    "XlsxAdapter",
    "DelimitedAdapter",
]
