#!/usr/bin/env python3
#
# Canonical time series from raw table cells.
#

''' Parsing of raw `(timestamp,value)` cells into an immutable `Series`
    of `(epoch,value)` samples, natural cubic spline interpolation
    over a `Series`, and the rate of change transform.

    Example:

        >>> series = build_series(
        ...     ['2024-01-01T00:00:00+0000', 'junk', '2024-01-01T01:00:00+0000'],
        ...     ['10', '11', '20'],
        ... )
        >>> len(series), series.min_epoch, series.max_epoch
        (2, 1704067200, 1704070800)
        >>> series.spline(1704070800)
        20.0
'''

from collections import namedtuple
from datetime import datetime, timezone
from functools import cached_property
from math import floor, isfinite
import re
from typing import Mapping, Optional, Sequence, Union

from icontract import ensure, require
import numpy as np
from scipy.interpolate import CubicSpline
from typeguard import typechecked

from cs.logutils import debug, info
from cs.pfx import Pfx, pfx

from . import ConfigError, InputError, NoDataError, ParseError

numeric_types = int, float
Numeric = Union[numeric_types]

# ISO8601 with a numeric UTC offset, eg 2024-01-01T00:00:00+0000
TIME_FORMAT_DEFAULT = '%Y-%m-%dT%H:%M:%S%z'

# strptime complaints which indicate a broken format string
# rather than a timestamp which does not match the format
STRPTIME_FORMAT_ERROR_re = re.compile(r"bad directive|stray %")

Sample = namedtuple('Sample', 'when value')

@typechecked
def parse_timestamp(
    timestamp: str,
    time_format: str = TIME_FORMAT_DEFAULT,
) -> Optional[int]:
  ''' Parse `timestamp` according to the `strptime` format `time_format`
      and return the UNIX time in whole seconds,
      or `None` if `timestamp` does not match the format.

      A naive timestamp (no `%z` in the format) is taken to be UTC.
      A failure other than a mismatch, such as a bad directive
      in `time_format`, raises `ParseError`.

          >>> parse_timestamp('2024-01-02T00:00:00+0000')
          1704153600
          >>> parse_timestamp('2024-01-02T10:00:00+1000')
          1704153600
          >>> print(parse_timestamp('yesterday'))
          None
  '''
  try:
    dt = datetime.strptime(timestamp.strip(), time_format)
  except ValueError as e:
    if STRPTIME_FORMAT_ERROR_re.search(str(e)):
      raise ParseError(
          f'cannot parse {timestamp!r} with format {time_format!r}: {e}'
      ) from e
    return None
  except (TypeError, OverflowError) as e:
    raise ParseError(
        f'cannot parse {timestamp!r} with format {time_format!r}: {e}'
    ) from e
  if dt.tzinfo is None:
    dt = dt.replace(tzinfo=timezone.utc)
  return floor(dt.timestamp())

def parse_value(value: str) -> Optional[float]:
  ''' Parse the string `value` as a finite `float`,
      return `None` if that is not possible.
  '''
  try:
    v = float(value)
  except (TypeError, ValueError):
    return None
  return v if isfinite(v) else None

class Series:
  ''' An immutable series of samples ordered by epoch.

      Instances are constructed from a mapping of UNIX time
      to value; the epochs are therefore distinct.
      The `epochs` and `values` attributes are read only `numpy` arrays.
  '''

  def __init__(self, samples: Mapping[int, float]):
    if not samples:
      raise NoDataError("no samples")
    whens = sorted(samples)
    epochs = np.array(whens, dtype=np.int64)
    values = np.array([samples[when] for when in whens], dtype=float)
    epochs.flags.writeable = False
    values.flags.writeable = False
    self.epochs = epochs
    self.values = values

  def __str__(self):
    return "%s(%d samples:%d..%d)" % (
        type(self).__name__, len(self), self.min_epoch, self.max_epoch
    )

  def __len__(self):
    return len(self.epochs)

  def __iter__(self):
    for when, value in zip(self.epochs.tolist(), self.values.tolist()):
      yield Sample(when, value)

  @property
  def min_epoch(self) -> int:
    ''' The earliest UNIX time in the series.
    '''
    return int(self.epochs[0])

  @property
  def max_epoch(self) -> int:
    ''' The latest UNIX time in the series.
    '''
    return int(self.epochs[-1])

  def as_dict(self):
    ''' Return a new `dict` mapping epoch to value.
    '''
    return dict(zip(self.epochs.tolist(), self.values.tolist()))

  @require(lambda self, values: len(values) == len(self))
  def with_values(self, values: Sequence[float]) -> "Series":
    ''' Return a new `Series` with the same epochs as `self`
        and the supplied `values`.
    '''
    return type(self)(dict(zip(self.epochs.tolist(), map(float, values))))

  @cached_property
  def spline(self):
    ''' The `SeriesSpline` over this series.
    '''
    return SeriesSpline(self)

class SeriesSpline:
  ''' A natural cubic spline through the samples of a `Series`.

      Calling the spline with a UNIX time returns the interpolated value.
      At the sample epochs this is exactly the sample value.
      A single sample series is a constant.

      The spline happily evaluates outside `[min_epoch,max_epoch]`;
      it is up to the caller to avoid extrapolation.
  '''

  def __init__(self, series: Series):
    self.series = series
    self._knots = series.as_dict()
    if len(series) > 1:
      self._spline = CubicSpline(
          series.epochs.astype(float), series.values, bc_type='natural'
      )
    else:
      self._spline = None

  def __str__(self):
    return "%s(%s)" % (type(self).__name__, self.series)

  def __call__(self, when: Numeric) -> float:
    try:
      return self._knots[when]
    except KeyError:
      pass
    if self._spline is None:
      return float(self.series.values[0])
    return float(self._spline(float(when)))

@pfx
@typechecked
def build_series(
    timestamps: Sequence[str],
    values: Sequence[str],
    *,
    time_format: str = TIME_FORMAT_DEFAULT,
    scale: Numeric = 1.0,
) -> Series:
  ''' Construct a `Series` from the parallel sequences of raw
      `timestamps` and `values` strings.

      Parameters:
      * `timestamps`: the raw timestamp strings
      * `values`: the raw value strings
      * `time_format`: the `strptime` format for the timestamps,
        default `TIME_FORMAT_DEFAULT` (`'%Y-%m-%dT%H:%M:%S%z'`)
      * `scale`: a factor applied to every value, default `1.0`

      Rows whose value is not a finite number or whose timestamp
      does not match `time_format` are silently dropped.
      A later row with the same epoch as an earlier row replaces it.

      Raises `InputError` if the sequences differ in length,
      `ParseError` for a timestamp failure other than a mismatch,
      `NoDataError` if no rows survive.
  '''
  if len(timestamps) != len(values):
    raise InputError(
        "%d timestamps but %d values" % (len(timestamps), len(values))
    )
  samples = {}
  dropped = 0
  for rowno, (timestamp, value) in enumerate(zip(timestamps, values), 1):
    with Pfx("row %d", rowno):
      when = parse_timestamp(timestamp, time_format)
      v = parse_value(value)
      if when is None or v is None:
        debug("drop %r,%r", timestamp, value)
        dropped += 1
        continue
      samples[when] = v * scale
  if dropped:
    info("dropped %d of %d rows", dropped, len(timestamps))
  if not samples:
    raise NoDataError(
        "no valid rows from %d rows, timestamp format %r" %
        (len(timestamps), time_format)
    )
  return Series(samples)

class RateUnit(namedtuple('RateUnit', 'name seconds')):
  ''' A time unit for the rate transform: a name and its length in seconds.
  '''

  # Julian year, and 1/12 of it for the month
  UNIT_SECONDS = {
      'year': 31557600,
      'month': 2629800,
      'week': 604800,
      'day': 86400,
      'hour': 3600,
      'minute': 60,
      'second': 1,
  }
  ALIASES = {
      'min': 'minute',
      'sec': 'second',
  }

  @classmethod
  @typechecked
  def from_spec(cls, spec: str) -> "RateUnit":
    ''' Return a `RateUnit` from `spec`, either a positive count
        of seconds or a unit name such as `day` or `Hours`.
        Raises `ConfigError` for an unrecognised `spec`.

            >>> RateUnit.from_spec('Days')
            RateUnit(name='day', seconds=86400)
            >>> RateUnit.from_spec('mins')
            RateUnit(name='minute', seconds=60)
            >>> RateUnit.from_spec('90')
            RateUnit(name='90s', seconds=90)
    '''
    token = spec.strip().lower()
    if token.isdigit():
      seconds = int(token)
      if seconds < 1:
        raise ConfigError(f'invalid rate unit {spec!r}: seconds must be > 0')
      return cls(f'{seconds}s', seconds)
    for name in token, token[:-1] if token.endswith('s') else None:
      if not name:
        continue
      name = cls.ALIASES.get(name, name)
      try:
        return cls(name, cls.UNIT_SECONDS[name])
      except KeyError:
        pass
    raise ConfigError(
        f'invalid rate unit {spec!r}, expected a number of seconds or one of: '
        + ', '.join(sorted(set(cls.UNIT_SECONDS) | set(cls.ALIASES)))
    )

  @classmethod
  def promote(cls, unit):
    ''' Promote `unit` to a `RateUnit`:
        a `RateUnit` is returned unchanged,
        an `int` is a count of seconds,
        a `str` is parsed by `RateUnit.from_spec`.
    '''
    if isinstance(unit, cls):
      return unit
    if isinstance(unit, int):
      return cls.from_spec(str(unit))
    if isinstance(unit, str):
      return cls.from_spec(unit)
    raise TypeError("%s.promote: cannot promote %r" % (cls.__name__, unit))

@ensure(lambda series, result: len(result) == len(series))
def rate_series(series: Series, unit: RateUnit) -> Series:
  ''' Return a new `Series` with the same epochs as `series`
      whose values are the rate of change of `series`
      per `unit`.

      The derivative is the `numpy.gradient` of the values with
      respect to the epochs: central differences in the interior
      and one sided differences at the ends.
      A single sample series has a rate of `0`.
  '''
  if len(series) < 2:
    rates = np.zeros(len(series))
  else:
    rates = np.gradient(series.values, series.epochs.astype(float))
  info("rate of change per %s over %d samples", unit.name, len(series))
  return series.with_values(rates * unit.seconds)
