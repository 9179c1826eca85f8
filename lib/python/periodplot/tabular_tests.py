#!/usr/bin/env python3
#
# Unit tests for periodplot.tabular.
#

''' Unit tests for periodplot.tabular.
'''

from importlib.util import find_spec
from os.path import join as joinpath
from shutil import rmtree
import sys
from tempfile import mkdtemp
import unittest

import pandas as pd

from periodplot import InputError
from periodplot.tabular import is_spreadsheet, read_columns

class TestReadColumns(unittest.TestCase):
  ''' Tests for `read_columns`.
  '''

  def setUp(self):
    self.tmpdir = mkdtemp()

  def tearDown(self):
    rmtree(self.tmpdir)

  def write(self, filename, text):
    ''' Write `text` to `filename` in the temporary directory,
        return the pathname.
    '''
    path = joinpath(self.tmpdir, filename)
    with open(path, 'w') as f:
      f.write(text)
    return path

  def test00csv(self):
    path = self.write(
        'data.csv',
        'when,value,other\n'
        '2024-01-01T00:00:00+0000,10,a\n'
        '2024-01-02T00:00:00+0000,,b\n'
        '2024-01-03T00:00:00+0000,NA,c\n',
    )
    xs, ys = read_columns(path)
    self.assertEqual(
        xs, [
            'when',
            '2024-01-01T00:00:00+0000',
            '2024-01-02T00:00:00+0000',
            '2024-01-03T00:00:00+0000',
        ]
    )
    # no header, no NA conversion, empty cells are empty strings
    self.assertEqual(ys, ['value', '10', '', 'NA'])
    xs, ys = read_columns(path, (3, 1))
    self.assertEqual(xs, ['other', 'a', 'b', 'c'])
    self.assertEqual(ys[0], 'when')

  def test01tsv(self):
    path = self.write('data.tsv', '2024-01-01 00:00\t1.5\n2024-01-01 01:00\t2\n')
    xs, ys = read_columns(path)
    self.assertEqual(xs, ['2024-01-01 00:00', '2024-01-01 01:00'])
    self.assertEqual(ys, ['1.5', '2'])

  def test02separator(self):
    path = self.write('data.txt', '2024-01-01;7\n2024-01-02;8\n')
    xs, ys = read_columns(path, separator=';')
    self.assertEqual(xs, ['2024-01-01', '2024-01-02'])
    self.assertEqual(ys, ['7', '8'])

  def test03bad_column(self):
    path = self.write('data.csv', 'a,1\nb,2\n')
    with self.assertRaises(InputError):
      read_columns(path, (1, 3))

  def test04missing_file(self):
    with self.assertRaises(InputError):
      read_columns(joinpath(self.tmpdir, 'no-such-file.csv'))

  def test05empty_file(self):
    path = self.write('empty.csv', '')
    self.assertEqual(read_columns(path), ([], []))

  def test06is_spreadsheet(self):
    self.assertTrue(is_spreadsheet('data.xlsx'))
    self.assertTrue(is_spreadsheet('DATA.ODS'))
    self.assertFalse(is_spreadsheet('data.csv'))
    self.assertFalse(is_spreadsheet('-'))

  @unittest.skipUnless(find_spec('openpyxl'), 'openpyxl not installed')
  def test07spreadsheet(self):
    path = joinpath(self.tmpdir, 'data.xlsx')
    with pd.ExcelWriter(path) as writer:
      pd.DataFrame(
          [['2024-01-01T00:00:00+0000', '10'],
           ['2024-01-02T00:00:00+0000', '20']]
      ).to_excel(
          writer, sheet_name='A', header=False, index=False
      )
      pd.DataFrame([['2024-02-01T00:00:00+0000', '5']]).to_excel(
          writer, sheet_name='B', header=False, index=False
      )
    self.assertEqual(
        read_columns(path, sheet=1),
        (
            ['2024-01-01T00:00:00+0000', '2024-01-02T00:00:00+0000'],
            ['10', '20'],
        ),
    )
    for sheet in 2, 'B':
      with self.subTest(sheet=sheet):
        self.assertEqual(
            read_columns(path, sheet=sheet),
            (['2024-02-01T00:00:00+0000'], ['5']),
        )
    for sheet in 3, 'C':
      with self.subTest(sheet=sheet):
        with self.assertRaises(InputError):
          read_columns(path, sheet=sheet)

def selftest(argv):
  unittest.main(__name__, None, argv)

if __name__ == '__main__':
  selftest(sys.argv)
