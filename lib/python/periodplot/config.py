#!/usr/bin/env python3
#
# The immutable configuration for a plot run.
#

''' The `PlotConfig` class, a frozen data class holding every option
    for a run, and parsers for option values supplied as strings.

    A `PlotConfig` is made once, validated on construction,
    and then passed by reference through the pipeline.
'''

from dataclasses import dataclass
import re
from typing import Optional, Tuple, Union

from . import ConfigError
from .periods import PeriodPolicy, tzfor
from .series import TIME_FORMAT_DEFAULT, RateUnit

# a number as accepted by gnuplot ranges, eg 3, -2.5, 1e6
NUMBER_re_s = r'[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?'
RANGE_re = re.compile(f'^\\s*({NUMBER_re_s})?\\s*:\\s*({NUMBER_re_s})?\\s*$')

STYLE_DEFAULT = 'lines'

def parse_columns(spec: str) -> Tuple[int, int]:
  ''' Parse a column pair such as `'1,3'` into a 2-tuple of `int`s.
      Column numbers count from `1`.

          >>> parse_columns('2,5')
          (2, 5)
  '''
  fields = spec.replace(':', ',').split(',')
  if len(fields) != 2:
    raise ConfigError(f'expected x,y column numbers, got {spec!r}')
  try:
    xcol, ycol = (int(field) for field in fields)
  except ValueError as e:
    raise ConfigError(f'invalid column numbers {spec!r}: {e}') from e
  if xcol < 1 or ycol < 1:
    raise ConfigError(f'column numbers count from 1, got {spec!r}')
  return xcol, ycol

def parse_sheet(spec: str) -> Union[int, str]:
  ''' Parse a sheet selector: a decimal sheet number counting from `1`
      or otherwise a sheet name.

          >>> parse_sheet('2')
          2
          >>> parse_sheet('Readings')
          'Readings'
  '''
  if spec.isdigit():
    sheet = int(spec)
    if sheet < 1:
      raise ConfigError(f'sheet numbers count from 1, got {spec!r}')
    return sheet
  if not spec:
    raise ConfigError('empty sheet name')
  return spec

def parse_range(spec: str) -> str:
  ''' Check that `spec` is a range of the form *low*`:`*high*
      where either number may be omitted. Return `spec` unchanged.

          >>> parse_range('0:100')
          '0:100'
          >>> parse_range('-1.5:')
          '-1.5:'
  '''
  if not RANGE_re.match(spec):
    raise ConfigError(f'invalid range {spec!r}, expected low:high')
  return spec

@dataclass(frozen=True)
class PlotConfig:
  ''' The configuration for a plot run.

      The `rate` may be supplied as anything accepted by `RateUnit.promote`
      and the `period` as anything accepted by `PeriodPolicy.promote`;
      they are promoted on construction,
      the period using the configured timezone `tz`.
      Invalid values raise `ConfigError`.
  '''

  # input selection
  columns: Tuple[int, int] = (1, 2)
  sheet: Union[int, str] = 1
  separator: Optional[str] = None
  # the samples
  time_format: str = TIME_FORMAT_DEFAULT
  scale: float = 1.0
  rate: Optional[RateUnit] = None
  period: Optional[PeriodPolicy] = None
  max_count: int = 0
  reset: bool = False
  tz: Optional[str] = None
  # passed through to the gnuplot script
  title: Optional[str] = None
  xlabel: Optional[str] = None
  ylabel: Optional[str] = None
  xformat: Optional[str] = None
  yformat: Optional[str] = None
  xrange: Optional[str] = None
  yrange: Optional[str] = None
  color: Optional[str] = None
  style: str = STYLE_DEFAULT
  terminal: Optional[str] = None
  # where the script and the image go
  output: Optional[str] = None
  image: Optional[str] = None
  run_gnuplot: bool = False
  gnuplot_exe: str = 'gnuplot'

  def __post_init__(self):
    if self.rate is not None and self.reset:
      raise ConfigError(
          "the rate and reset options may not be used together"
      )
    if self.max_count < 0:
      raise ConfigError(
          "max count should be >= 0, got %d" % (self.max_count,)
      )
    if len(self.columns) != 2 or min(self.columns) < 1:
      raise ConfigError(
          "expected 2 column numbers counting from 1, got %r" %
          (self.columns,)
      )
    if isinstance(self.sheet, int) and self.sheet < 1:
      raise ConfigError("sheet numbers count from 1, got %d" % (self.sheet,))
    for range_name in 'xrange', 'yrange':
      spec = getattr(self, range_name)
      if spec is not None:
        parse_range(spec)
    # validate the timezone even when there is no period
    tzfor(self.tz)
    if self.rate is not None:
      object.__setattr__(self, 'rate', RateUnit.promote(self.rate))
    if self.period is not None:
      object.__setattr__(
          self, 'period', PeriodPolicy.promote(self.period, tz=self.tz)
      )

  @property
  def output_is_stdout(self) -> bool:
    ''' Whether the script is written to the standard output.
    '''
    return self.output is None or self.output == '-'
