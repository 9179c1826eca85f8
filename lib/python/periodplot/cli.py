#!/usr/bin/env python3
#
# The periodplot command line.
#

''' periodplot: convert a time series table into a gnuplot script,
    optionally split into calendar periods which are overlaid on
    a common axis.
'''

from dataclasses import dataclass, fields
from getopt import GetoptError
import sys
from typing import Optional, Tuple, Union

from cs.cmdutils import BaseCommand, popopts
from cs.logutils import error, info

from . import ConfigError, PeriodPlotError
from .config import (
    STYLE_DEFAULT,
    PlotConfig,
    parse_columns,
    parse_range,
    parse_sheet,
)
from .gnuplot import render_script, run_gnuplot, write_script
from .periods import PeriodPolicy, tzfor
from .pipeline import plot_file
from .series import TIME_FORMAT_DEFAULT, RateUnit

def main(argv=None):
  ''' CLI for `periodplot`.
  '''
  return PeriodPlotCommand(argv).run()

class PeriodPlotCommand(BaseCommand):
  ''' Convert a time series table into a gnuplot script.
  '''

  @dataclass
  class Options(BaseCommand.Options):
    ''' Options for `PeriodPlotCommand`, mirroring `PlotConfig`.
    '''
    columns: Tuple[int, int] = (1, 2)
    sheet: Union[int, str] = 1
    separator: Optional[str] = None
    time_format: str = TIME_FORMAT_DEFAULT
    scale: float = 1.0
    rate: Optional[RateUnit] = None
    period: Optional[str] = None
    max_count: int = 0
    reset: bool = False
    tz: Optional[str] = None
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
    output: Optional[str] = None
    image: Optional[str] = None
    run_gnuplot: bool = False
    gnuplot_exe: str = 'gnuplot'

    def plot_config(self) -> PlotConfig:
      ''' Return a `PlotConfig` from these options.
          Raises `ConfigError` for an invalid combination.
      '''
      return PlotConfig(
          **{
              config_field.name: getattr(self, config_field.name)
              for config_field in fields(PlotConfig)
          }
      )

  @popopts(
      c_=(
          'columns',
          'The abscissa and ordinate column numbers, default 1,2.',
          parse_columns,
      ),
      sheet_=(
          'sheet',
          'The spreadsheet sheet number or name, default 1.',
          parse_sheet,
      ),
      s_=(
          'separator',
          'The field separator for delimited text, default TAB for .tsv/.tab, otherwise a comma.',
      ),
      F_=(
          'time_format',
          'The strptime(3) format of the timestamps, default %Y-%m-%dT%H:%M:%S%z.',
      ),
      scale_=('scale', 'A factor applied to every value.', float),
      r_=(
          'rate',
          'Plot the rate of change per unit, a count of seconds or one of year, month, week, day, hour, minute, second.',
          RateUnit.from_spec,
      ),
      p_=(
          'period',
          'Split the data into periods: year, month, week, day or hour.',
          PeriodPolicy.kind_for_name,
      ),
      m_=(
          'max_count',
          'Plot at most this many of the most recent periods, 0 for all.',
          int,
          lambda max_count: max_count >= 0,
          'max count should be >= 0',
      ),
      z=('reset', 'Reset each period to start at 0.'),
      tz_=(
          'tz',
          'The timezone for the period boundaries, default the local timezone.',
          str,
          lambda tz: tzfor(tz) is not None,
          'unknown timezone',
      ),
      t_=('title', 'The plot title.'),
      xlabel_=('xlabel', 'The x axis label.'),
      ylabel_=('ylabel', 'The y axis label.'),
      xformat_=('xformat', 'The x axis tick format.'),
      yformat_=('yformat', 'The y axis tick format.'),
      xrange_=('xrange', 'The x axis range, low:high.', parse_range),
      yrange_=('yrange', 'The y axis range, low:high.', parse_range),
      color_=('color', 'The gnuplot palette specification.'),
      style_=('style', 'The gnuplot plot style, default lines.'),
      T_=('terminal', 'The gnuplot terminal specification, eg "png size 1024,768".'),
      o_=('output', 'Write the script to this file, default the standard output.'),
      image_=('image', 'The gnuplot output file for the plot.'),
      g=('run_gnuplot', 'Run gnuplot on the script.'),
      gnuplot_exe_=('gnuplot_exe', 'The gnuplot executable, default gnuplot.'),
  )
  def main(self, argv):
    ''' Usage: {cmd} [options...] input-file
          Read timestamp and value columns from input-file,
          a spreadsheet or delimited text file or "-" for the standard input,
          and write a gnuplot script plotting the values.
          If gnuplot is run the script is only written if -o is specified.
    '''
    options = self.options
    path = self.poparg(argv, "input file")
    if argv:
      raise GetoptError(f'extra arguments: {argv!r}')
    try:
      config = options.plot_config()
    except ConfigError as e:
      raise GetoptError(str(e)) from e
    try:
      plot_data = plot_file(path, config)
      script = render_script(plot_data, config)
      if not config.output_is_stdout or not config.run_gnuplot:
        write_script(script, config.output)
      if config.run_gnuplot:
        if options.dry_run:
          info("dry run: not running %s", config.gnuplot_exe)
        else:
          run_gnuplot(script, config.gnuplot_exe)
    except PeriodPlotError as e:
      error("%s", e)
      return 1
    return 0

if __name__ == '__main__':
  sys.exit(main(sys.argv))
