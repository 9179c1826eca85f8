#!/usr/bin/env python3
#
# Rendering a PlotData as a gnuplot script.
#

''' Render a `PlotData` as a self contained gnuplot script
    with the data inline, and optionally run gnuplot on it.

    See also the [http://gnuplot.info/documentation.html](gnuplot documentation).
'''

from subprocess import PIPE, run
import sys
from typing import List, Optional

from cs.logutils import debug, info
from cs.pfx import Pfx, pfx_call

from . import NoDataError, PeriodPlotError, PlotToolError, __version__
from .config import PlotConfig
from .periods import WEEKDAY_NAMES

# blue for the oldest bucket through to red for the newest
PALETTE_DEFAULT = 'defined (0 "#0000ff", 1 "#ff0000")'

def gp_quote(s: str) -> str:
  ''' Quote a string for use in a gnuplot command.

          >>> print(gp_quote('Jan 24'))
          "Jan 24"
          >>> print(gp_quote('say "hi"'))
          "say \\"hi\\""
  '''
  return (
      '"' + s.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n') +
      '"'
  )

def gp_number(value: float) -> str:
  ''' Format a data value for gnuplot.

          >>> gp_number(2.5)
          '2.5'
          >>> gp_number(1e-20)
          '1e-20'
  '''
  return format(value, '.12g')

def render_script(plot_data, config: PlotConfig) -> str:
  ''' Render `plot_data`, a `PlotData`, as a gnuplot script
      according to `config`, return the script text.

      Each nonempty slot becomes an inline data block `$data`*N*
      where *N* is its slot index,
      plotted in the colour at its gradient position.
      Empty slots produce nothing but still occupy their colour.
      Raises `NoDataError` if every slot is empty.
  '''
  lines: List[str] = [
      f'# periodplot {__version__}',
      '# ' + (
          'all data' if plot_data.period is None else
          f'{plot_data.period.name} periods'
      ) + f', {len(plot_data.slots)} slots',
  ]
  if config.terminal:
    lines.append(f'set terminal {config.terminal}')
  if config.image:
    lines.append(f'set output {gp_quote(config.image)}')
  if config.title:
    lines.append(f'set title {gp_quote(config.title)}')
  if plot_data.xlabel:
    lines.append(f'set xlabel {gp_quote(plot_data.xlabel)}')
  if config.ylabel:
    lines.append(f'set ylabel {gp_quote(config.ylabel)}')
  if plot_data.uses_time_axis:
    lines.append('set xdata time')
    lines.append(f'set timefmt {gp_quote(plot_data.timefmt)}')
  if plot_data.xformat:
    lines.append(f'set format x {gp_quote(plot_data.xformat)}')
  if not plot_data.uses_time_axis and plot_data.period is not None:
    # the week axis: day of the week from Sunday
    lines.append(
        'set xtics (' + ', '.join(
            f'{gp_quote(day_name)} {day}'
            for day, day_name in enumerate(WEEKDAY_NAMES)
        ) + ')'
    )
    if not config.xrange:
      lines.append('set xrange [0:7]')
  if config.yformat:
    lines.append(f'set format y {gp_quote(config.yformat)}')
  if config.xrange:
    lines.append(f'set xrange [{config.xrange}]')
  if config.yrange:
    lines.append(f'set yrange [{config.yrange}]')
  lines.append(f'set palette {config.color or PALETTE_DEFAULT}')
  lines.append('unset colorbox')
  lines.append('set key outside right')
  plots = []
  for dataset in plot_data.datasets():
    if not dataset.rows:
      continue
    block = f'$data{dataset.index}'
    lines.append(f'{block} << EOD')
    lines.extend(f'{label} {gp_number(value)}' for label, value in dataset.rows)
    lines.append('EOD')
    plots.append(
        f'{block} using 1:2 with {config.style}'
        f' lc palette frac {dataset.fraction:.6g}'
        f' title {gp_quote(dataset.tag)}'
    )
  if not plots:
    raise NoDataError("no nonempty datasets to plot")
  debug("%d datasets plotted", len(plots))
  lines.append('plot ' + ', \\\n     '.join(plots))
  return '\n'.join(lines) + '\n'

def write_script(text: str, output: Optional[str] = None):
  ''' Write the script `text` to the file `output`,
      or to `sys.stdout` if `output` is `None` or `'-'`.
  '''
  if output is None or output == '-':
    sys.stdout.write(text)
    sys.stdout.flush()
    return
  with Pfx(output):
    try:
      with pfx_call(open, output, 'w') as f:
        f.write(text)
    except OSError as e:
      raise PeriodPlotError(f'cannot write script: {e}') from e
  info("wrote %s", output)

def run_gnuplot(text: str, gnuplot_exe: str = 'gnuplot'):
  ''' Run `gnuplot_exe` with the script `text` as its input.
      The output of gnuplot goes to our standard output.
      Return the `subprocess.CompletedProcess`.

      Raises `PlotToolError` with the gnuplot diagnostics
      if gnuplot cannot be run or exits with a nonzero status.
  '''
  argv = [gnuplot_exe, '-']
  with Pfx(gnuplot_exe):
    # make sure any preceeding output gets out first
    sys.stdout.flush()
    try:
      cp = pfx_call(run, argv, input=text, stderr=PIPE, text=True)
    except OSError as e:
      raise PlotToolError(f'cannot run {gnuplot_exe!r}: {e}') from e
    if cp.returncode != 0:
      raise PlotToolError(
          f'exit status {cp.returncode}: {cp.stderr.strip()}'
          if cp.stderr.strip() else f'exit status {cp.returncode}'
      )
    if cp.stderr:
      debug("gnuplot: %s", cp.stderr.rstrip())
  return cp
