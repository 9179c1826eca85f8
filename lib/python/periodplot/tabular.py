#!/usr/bin/env python3
#
# Reading columns of raw cells from spreadsheets and delimited text.
#

''' Read a pair of columns of raw string cells from a spreadsheet
    or a delimited text file, using `pandas`.
'''

from os.path import splitext
import sys
from typing import List, Optional, Tuple, Union

import pandas as pd

from cs.logutils import debug
from cs.pfx import Pfx, pfx_call

from . import InputError

# file extensions read with pandas.read_excel
SPREADSHEET_EXTS = '.ods', '.xls', '.xlsm', '.xlsx'

# default separators by file extension, otherwise a comma
SEPARATOR_BY_EXT = {
    '.tsv': '\t',
    '.tab': '\t',
}
SEPARATOR_DEFAULT = ','

def is_spreadsheet(path: str) -> bool:
  ''' Test whether `path` names a spreadsheet file,
      as opposed to a delimited text file.
  '''
  return splitext(path)[1].lower() in SPREADSHEET_EXTS

def read_table(
    path: str,
    *,
    sheet: Union[int, str] = 1,
    separator: Optional[str] = None,
) -> pd.DataFrame:
  ''' Read the table at `path` and return a `DataFrame` of strings
      with no header row and `''` for empty cells.

      Parameters:
      * `path`: the file to read; `'-'` reads delimited text
        from the standard input
      * `sheet`: for spreadsheets, the sheet number counting from `1`
        or the sheet name, default `1`
      * `separator`: for delimited text, the field separator;
        the default is a TAB for `.tsv` and `.tab` files
        and a comma otherwise

      Raises `InputError` for a missing or unreadable file.
  '''
  read_kw = dict(header=None, dtype=str, keep_default_na=False)
  try:
    if path != '-' and is_spreadsheet(path):
      sheet_name = sheet - 1 if isinstance(sheet, int) else sheet
      return pfx_call(pd.read_excel, path, sheet_name=sheet_name, **read_kw)
    if separator is None:
      separator = SEPARATOR_BY_EXT.get(
          splitext(path)[1].lower(), SEPARATOR_DEFAULT
      )
    return pfx_call(
        pd.read_csv,
        sys.stdin if path == '-' else path,
        sep=separator,
        skip_blank_lines=True,
        **read_kw,
    )
  except pd.errors.EmptyDataError:
    return pd.DataFrame()
  except ImportError as e:
    raise InputError(
        f'cannot read {path!r}, is the "spreadsheets" extra installed? {e}'
    ) from e
  except (
      IndexError,
      KeyError,
      OSError,
      ValueError,
      pd.errors.ParserError,
  ) as e:
    raise InputError(f'cannot read {path!r}: {e}') from e

def read_columns(
    path: str,
    columns: Tuple[int, int] = (1, 2),
    *,
    sheet: Union[int, str] = 1,
    separator: Optional[str] = None,
) -> Tuple[List[str], List[str]]:
  ''' Read the table at `path` and return a 2-tuple
      of lists of the raw string cells
      of the abscissa and ordinate columns.

      Parameters:
      * `path`: the file to read, as for `read_table`
      * `columns`: the abscissa and ordinate column numbers counting
        from `1`, default `(1,2)`
      * `sheet`: the spreadsheet sheet, as for `read_table`
      * `separator`: the text field separator, as for `read_table`

      An empty table produces 2 empty lists.
      Raises `InputError` for a missing or unreadable file
      or a column number out of range.
  '''
  with Pfx(path):
    # short rows leave NaN in the missing cells
    df = read_table(path, sheet=sheet, separator=separator).fillna('')
    debug("%d rows x %d columns", len(df.index), len(df.columns))
    ncols = len(df.columns)
    if ncols == 0:
      # an empty file, which is a lack of data rather than a bad column
      return [], []
    cells = []
    for column in columns:
      if not 1 <= column <= ncols:
        raise InputError(
            "column %d out of range, the table has %d columns" %
            (column, ncols)
        )
      cells.append(df.iloc[:, column - 1].tolist())
    xs, ys = cells
    return xs, ys
