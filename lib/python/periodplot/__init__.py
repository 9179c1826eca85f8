#!/usr/bin/env python3
#
# Time series to gnuplot script conversion.
#

''' Convert time stamped tabular samples into a gnuplot script.

    The input is a spreadsheet or delimited text file with a
    timestamp column and a value column.
    The samples are cleaned and normalised to a series of
    `(epoch,value)` pairs, optionally differentiated to a rate,
    and optionally split into calendar periods
    (year, month, week, day or hour).
    Each period's curve is extended to its calendar boundaries
    with values from a natural cubic spline over the whole series,
    never extrapolating beyond the observed data.
    The most recent periods are then emitted as inline data blocks
    in a gnuplot script.

    The main pieces are:
    - `periodplot.series`: parse raw rows into a `Series`,
      spline interpolation, rate of change
    - `periodplot.periods`: the period policies, bucketing,
      boundary injection and selection
    - `periodplot.pipeline`: the driver tying the stages together
    - `periodplot.gnuplot`: script rendering and running gnuplot
    - `periodplot.cli`: the `periodplot` command line
'''

__version__ = '20261019'

DISTINFO = {
    'description': "Convert time series tables into gnuplot scripts, optionally split into calendar periods.",
    'keywords': ["python3", "gnuplot", "timeseries"],
    'classifiers': [
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Visualization",
    ],
    'install_requires': [
        'arrow',
        'cs.cmdutils>=20250531',
        'cs.logutils',
        'cs.pfx',
        'icontract',
        'numpy',
        'pandas',
        'python-dateutil',
        'scipy',
        'typeguard',
    ],
    'extras_requires': {
        'spreadsheets': ['odfpy', 'openpyxl'],
    },
    'entry_points': {
        'console_scripts': [
            'periodplot = periodplot.cli:main',
        ],
    },
}

class PeriodPlotError(Exception):
  ''' Base class for `periodplot` failures.
  '''

class ConfigError(PeriodPlotError, ValueError):
  ''' An invalid option value or an invalid combination of options.
  '''

class InputError(PeriodPlotError):
  ''' Missing or unreadable input, or input of the wrong shape.
  '''

class ParseError(PeriodPlotError):
  ''' A timestamp could not be parsed for a reason other than
      not matching the timestamp format, for example a malformed
      format string.
  '''

class NoDataError(PeriodPlotError):
  ''' No samples survived the row filtering.
  '''

class PlotToolError(PeriodPlotError):
  ''' The external plotting programme failed.
  '''
