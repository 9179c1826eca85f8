#!/usr/bin/env python3
#
# Unit tests for periodplot.series.
#

''' Unit tests for periodplot.series.
'''

from datetime import datetime, timezone
import sys
import unittest

import icontract

from periodplot import ConfigError, InputError, NoDataError, ParseError
from periodplot.series import (
    TIME_FORMAT_DEFAULT,
    RateUnit,
    Series,
    build_series,
    parse_timestamp,
    parse_value,
    rate_series,
)

DAY = 86400

def iso(when):
  ''' Format the UNIX time `when` in the default timestamp format.
  '''
  return datetime.fromtimestamp(when, timezone.utc).strftime(TIME_FORMAT_DEFAULT)

class TestParsing(unittest.TestCase):
  ''' Tests for the cell parsers.
  '''

  def test00timestamp(self):
    self.assertEqual(parse_timestamp('2024-01-01T00:00:00+0000'), 1704067200)
    # the offset is honoured
    self.assertEqual(parse_timestamp('2024-01-01T01:00:00+0100'), 1704067200)
    # surrounding whitespace is ignored
    self.assertEqual(parse_timestamp(' 2024-01-01T00:00:00+0000 '), 1704067200)

  def test01naive_is_utc(self):
    self.assertEqual(
        parse_timestamp('2024-01-01 00:00', '%Y-%m-%d %H:%M'), 1704067200
    )

  def test02mismatch(self):
    self.assertIsNone(parse_timestamp('2024-01-01'))
    self.assertIsNone(parse_timestamp(''))
    self.assertIsNone(parse_timestamp('timestamp'))

  def test03bad_format(self):
    with self.assertRaises(ParseError):
      parse_timestamp('2024-01-01', '%Y-%Q')
    with self.assertRaises(ParseError):
      parse_timestamp('2024-01-01', '%Y-%m-%d%')

  def test04round_trip(self):
    for when in 0, 1704067200, 1717200000, 1717200000 + 12345:
      with self.subTest(when=when):
        self.assertEqual(parse_timestamp(iso(when)), when)

  def test05value(self):
    self.assertEqual(parse_value('3'), 3.0)
    self.assertEqual(parse_value(' -2.5e1 '), -25.0)
    for bad in '', 'abc', 'nan', 'inf', '-inf', None:
      with self.subTest(value=bad):
        self.assertIsNone(parse_value(bad))

class TestBuildSeries(unittest.TestCase):
  ''' Tests for `build_series` and `Series`.
  '''

  def test00drops_bad_rows(self):
    timestamps = [
        'When',
        '2024-01-01T00:00:00+0000',
        '2024-01-01T01:00:00+0000',
        '2024-01-01T02:00:00+0000',
        'not a time',
        '2024-01-01T03:00:00+0000',
    ]
    values = ['Value', '1', 'n/a', '3', '4', '']
    series = build_series(timestamps, values)
    # header, bad value, bad timestamp and empty value dropped
    self.assertEqual(len(series), len(timestamps) - 4)
    self.assertEqual(
        list(series), [(1704067200, 1.0), (1704067200 + 7200, 3.0)]
    )

  def test01sorted_and_distinct(self):
    series = build_series(
        [
            '2024-01-03T00:00:00+0000',
            '2024-01-01T00:00:00+0000',
            '2024-01-03T00:00:00+0000',
        ],
        ['3', '1', '5'],
    )
    # the later duplicate wins
    self.assertEqual(series.as_dict(), {1704067200: 1.0, 1704240000: 5.0})
    self.assertEqual(series.epochs.tolist(), sorted(series.epochs.tolist()))
    self.assertEqual(series.min_epoch, 1704067200)
    self.assertEqual(series.max_epoch, 1704240000)

  def test02scale(self):
    series = build_series(['2024-01-01T00:00:00+0000'], ['2.5'], scale=4)
    self.assertEqual(series.values.tolist(), [10.0])

  def test03errors(self):
    with self.assertRaises(InputError):
      build_series(['2024-01-01T00:00:00+0000'], [])
    with self.assertRaises(NoDataError):
      build_series(['x', 'y'], ['1', '2'])
    with self.assertRaises(NoDataError):
      build_series([], [])
    with self.assertRaises(NoDataError):
      Series({})

  def test04immutable(self):
    series = Series({0: 1.0, 60: 2.0})
    with self.assertRaises(ValueError):
      series.values[0] = 9.0
    with self.assertRaises(ValueError):
      series.epochs[0] = 9

  def test05with_values(self):
    series = Series({0: 1.0, 60: 2.0})
    series2 = series.with_values([5, 6])
    self.assertEqual(series2.as_dict(), {0: 5.0, 60: 6.0})
    self.assertEqual(series.as_dict(), {0: 1.0, 60: 2.0})
    with self.assertRaises(icontract.ViolationError):
      series.with_values([1.0])

class TestSpline(unittest.TestCase):
  ''' Tests for `SeriesSpline`.
  '''

  def test00knots(self):
    samples = {0: 1.0, 100: 7.5, 250: -3.25, 400: 2.0, 1000: 11.0}
    spline = Series(samples).spline
    for when, value in samples.items():
      with self.subTest(when=when):
        self.assertEqual(spline(when), value)

  def test01interpolates(self):
    spline = Series({0: 0.0, 100: 100.0, 200: 200.0}).spline
    # a natural spline through collinear points is the line
    self.assertAlmostEqual(spline(50), 50.0)
    self.assertAlmostEqual(spline(150.5), 150.5)
    self.assertIsInstance(spline(50), float)

  def test02single_sample(self):
    spline = Series({1000: 4.0}).spline
    self.assertEqual(spline(1000), 4.0)
    self.assertEqual(spline(5000), 4.0)

class TestRate(unittest.TestCase):
  ''' Tests for `RateUnit` and `rate_series`.
  '''

  def test00units(self):
    self.assertEqual(RateUnit.from_spec('day'), RateUnit('day', 86400))
    self.assertEqual(RateUnit.from_spec('Hours'), RateUnit('hour', 3600))
    self.assertEqual(RateUnit.from_spec('min'), RateUnit('minute', 60))
    self.assertEqual(RateUnit.from_spec('secs'), RateUnit('second', 1))
    self.assertEqual(RateUnit.from_spec('year').seconds, 31557600)
    self.assertEqual(RateUnit.from_spec('month').seconds, 2629800)
    self.assertEqual(RateUnit.from_spec('900'), RateUnit('900s', 900))
    self.assertEqual(RateUnit.promote(60), RateUnit('60s', 60))
    unit = RateUnit('week', 604800)
    self.assertIs(RateUnit.promote(unit), unit)

  def test01bad_units(self):
    for bad in '', '0', 'fortnight', 'd', '-5':
      with self.subTest(spec=bad):
        with self.assertRaises(ConfigError):
          RateUnit.from_spec(bad)
    with self.assertRaises(TypeError):
      RateUnit.promote(1.5)

  def test02linear(self):
    series = Series({0: 0.0, DAY: 10.0, 3 * DAY: 30.0})
    rates = rate_series(series, RateUnit.from_spec('day'))
    self.assertEqual(rates.epochs.tolist(), series.epochs.tolist())
    for rate in rates.values.tolist():
      self.assertAlmostEqual(rate, 10.0)
    hourly = rate_series(series, RateUnit.from_spec('hour'))
    for rate in hourly.values.tolist():
      self.assertAlmostEqual(rate, 10.0 / 24)

  def test03ends(self):
    series = Series({0: 0.0, DAY: 10.0, 2 * DAY: 40.0})
    rates = rate_series(series, RateUnit.from_spec('day')).values.tolist()
    # one sided at the ends, central in the middle
    self.assertAlmostEqual(rates[0], 10.0)
    self.assertAlmostEqual(rates[1], 20.0)
    self.assertAlmostEqual(rates[2], 30.0)

  def test04single_sample(self):
    rates = rate_series(Series({0: 5.0}), RateUnit.from_spec('day'))
    self.assertEqual(rates.values.tolist(), [0.0])

def selftest(argv):
  unittest.main(__name__, None, argv)

if __name__ == '__main__':
  selftest(sys.argv)
