#!/usr/bin/env python3
#
# Calendar period policies and bucketing of a Series.
#

''' Splitting a `Series` into calendar periods.

    A `PeriodPolicy` allocates UNIX times to named calendar periods,
    such as a month or a week, in a particular timezone.
    `bucket_series` groups the samples of a `Series` into a `Bucket`
    per period and extends each bucket to its calendar boundaries
    with values from the series spline,
    provided that the boundary lies within the observed data.
    `select_buckets` orders the buckets and keeps the most recent.
    When no period is requested, `auto_format` chooses a time axis
    format from the overall span of the data.
'''

from collections import namedtuple
from datetime import tzinfo
from typing import Callable, List, Mapping, Optional, Tuple, Union

import arrow
from arrow import Arrow
import dateutil.tz
from icontract import DBC, ensure
from typeguard import typechecked

from cs.logutils import debug, info
from cs.pfx import Pfx

from . import ConfigError
from .series import Numeric, Series

# the tag of the single bucket used when there is no period
ALL_TAG = 'all'

# time axis data label format for the unsplit series
ALL_LABEL_FORMAT = '%Y-%m-%dT%H:%M:%S'

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
MONTH = 30 * DAY
YEAR = 365 * DAY

WEEKDAY_NAMES = 'Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat'

PeriodSpan = namedtuple('PeriodSpan', 'start end')

AxisFormat = namedtuple('AxisFormat', 'tick_format label uses_time_axis')

def tzfor(tzspec: Optional[Union[str, tzinfo]] = None) -> tzinfo:
  ''' Promote the timezone specification `tzspec` to a `tzinfo` instance.
      If `tzspec` is an instance of `tzinfo` it is returned unchanged.
      If `tzspec` is omitted or the string `'local'` this returns
      `dateutil.tz.gettz()`, the local system timezone.
      Otherwise it returns `dateutil.tz.gettz(tzspec)`.
      Raises `ConfigError` for an unknown timezone.
  '''
  if isinstance(tzspec, tzinfo):
    return tzspec
  if tzspec is None or tzspec == 'local':
    return dateutil.tz.gettz()
  tz = dateutil.tz.gettz(tzspec)
  if tz is None:
    raise ConfigError("unknown timezone %r" % (tzspec,))
  return tz

class PeriodPolicy(DBC):
  ''' A policy allocating UNIX times to named calendar periods.

      Each policy defines:
      * `TAG_FORMAT`: a `strftime` format for the bucket tags
      * `ARROW_FRAME`: the `arrow` time frame of a period
      * `END_SHIFT`: `Arrow.shift()` parameters taking the start
        of the next period to the last instant plotted in this period
      * `LABEL_FORMAT`: a `strftime` format for the data labels,
        relative to the period so that periods overlay each other
      * `AXIS_FORMAT`: the tick format for the axis
      * `AXIS_LABEL`: the default axis label
      * `USES_TIME_AXIS`: whether the labels are times or plain numbers

      The policy subclasses are registered by name
      and obtained with `PeriodPolicy.from_name`.
  '''

  # subclasses get this when they are registered
  name = None

  TAG_FORMAT = None
  ARROW_FRAME = None
  END_SHIFT = dict(minutes=-1)
  LABEL_FORMAT = None
  AXIS_FORMAT = None
  AXIS_LABEL = None
  USES_TIME_AXIS = True

  # the canonical kind names, eg 'month'
  KINDS = {}
  # all registered names and aliases, eg 'monthly'
  FACTORIES = {}

  def __init__(self, *, tz: Optional[Union[str, tzinfo]] = None):
    self.tz = tzfor(tz)

  def __str__(self):
    return "%s:%s" % (type(self).__name__, self.tz)

  def __eq__(self, other):
    return type(self) is type(other) and self.tz == other.tz

  def __hash__(self):
    return hash((type(self), self.tz))

  @classmethod
  def register_factory(cls, factory: Callable, name: str, *, kind=False):
    ''' Register a new policy `factory` under the supplied `name`.
        If `kind` is true, this is the canonical name of the policy.
    '''
    if name in cls.FACTORIES:
      raise KeyError(
          "%s.FACTORIES: name %r already taken" % (cls.__name__, name)
      )
    cls.FACTORIES[name] = factory
    if kind:
      cls.KINDS[name] = factory
      factory.name = name

  @classmethod
  @typechecked
  def kind_for_name(cls, period_name: str) -> str:
    ''' Return the canonical kind name for `period_name`,
        which is case insensitive and may be pluralised.
        It may be a registered name such as `'monthly'`
        or a prefix of a kind name such as `'mo'`.
        Raises `ConfigError` for an empty, ambiguous or unknown name.

            >>> PeriodPolicy.kind_for_name('Years')
            'year'
            >>> PeriodPolicy.kind_for_name('wk')
            'week'
            >>> PeriodPolicy.kind_for_name('h')
            'hour'
    '''
    key = period_name.strip().lower()
    if not key:
      raise ConfigError("empty period name")
    stems = [key]
    if len(key) > 1 and key.endswith('s'):
      stems.append(key[:-1])
    for stem in stems:
      factory = cls.FACTORIES.get(stem)
      if factory is not None:
        return factory.name
    kinds = sorted(
        {
            kind
            for kind in cls.KINDS
            for stem in stems
            if kind.startswith(stem)
        }
    )
    if not kinds:
      raise ConfigError(
          "unknown period %r, expected one of: %s" %
          (period_name, ', '.join(cls.KINDS))
      )
    if len(kinds) > 1:
      raise ConfigError(
          "ambiguous period %r, matches: %s" % (period_name, ', '.join(kinds))
      )
    return kinds[0]

  @classmethod
  def from_name(cls, period_name: str, **policy_kw) -> "PeriodPolicy":
    ''' Factory method to return a new `PeriodPolicy` instance
        from the policy name, as for `kind_for_name`.
    '''
    if cls is not PeriodPolicy:
      raise TypeError(
          "PeriodPolicy.from_name is not meaningful from a subclass (%s)" %
          (cls.__name__,)
      )
    return cls.KINDS[cls.kind_for_name(period_name)](**policy_kw)

  @classmethod
  def promote(cls, policy, **policy_kw):
    ''' Factory to promote `policy` to a `PeriodPolicy` instance.

        The supplied `policy` may be:
        * `str`: return an instance of the named policy
        * `PeriodPolicy` subclass: return an instance of the subclass
        * `PeriodPolicy` instance: return the instance
    '''
    if isinstance(policy, PeriodPolicy):
      return policy
    if isinstance(policy, str):
      return PeriodPolicy.from_name(policy, **policy_kw)
    if isinstance(policy, type) and issubclass(policy, PeriodPolicy):
      return policy(**policy_kw)
    raise TypeError(
        "%s.promote: do not know how to promote %r" % (cls.__name__, policy)
    )

  def Arrow(self, when: Numeric) -> Arrow:
    ''' Return an `arrow.Arrow` instance for the UNIX time `when`
        in the policy timezone.
    '''
    return arrow.Arrow.fromtimestamp(when, tzinfo=self.tz)

  def tag_for_time(self, when: Numeric) -> str:
    ''' Return the bucket tag for the UNIX time `when`.
        This is the start of its period formatted with `TAG_FORMAT`,
        so every time in a period has the same tag.
    '''
    return self.Arrow(self.span_for_time(when).start).strftime(self.TAG_FORMAT)

  def label_for_time(self, when: Numeric) -> str:
    ''' Return the data label for the UNIX time `when`.
    '''
    return self.Arrow(when).strftime(self.LABEL_FORMAT)

  def period_start(self, a: Arrow) -> Arrow:
    ''' Return the start of the calendar period containing `a`.
    '''
    return a.floor(self.ARROW_FRAME)

  @ensure(lambda when, result: result.start <= when)
  def span_for_time(self, when: Numeric) -> PeriodSpan:
    ''' Return a `PeriodSpan` for the calendar period containing
        the UNIX time `when`.
        The `start` is the first second of the period
        and the `end` is the start of the following period
        shifted by `END_SHIFT`, by default back one minute.
    '''
    start = self.period_start(self.Arrow(when))
    end = start.shift(**{self.ARROW_FRAME + 's': 1}).shift(**self.END_SHIFT)
    return PeriodSpan(int(start.timestamp()), int(end.timestamp()))

  @property
  def axis_format(self) -> AxisFormat:
    ''' The default `AxisFormat` for this policy.
    '''
    return AxisFormat(self.AXIS_FORMAT, self.AXIS_LABEL, self.USES_TIME_AXIS)

  @classmethod
  def make(
      cls,
      name,
      tag_format: str,
      frame: str,
      label_format: str,
      axis_format: str,
      axis_label: str,
  ):
    ''' Create and register a simple `PeriodPolicy`.
        Return the new policy class.

        Parameters:
        * `name`: the name for the policy; this can also be a sequence
          of names, the first of which is the canonical kind name
        * `tag_format`: the `strftime` format for bucket tags
        * `frame`: the `arrow` frame for a period, eg `'month'`
        * `label_format`: the `strftime` format for data labels
        * `axis_format`: the axis tick format
        * `axis_label`: the default axis label
    '''
    if isinstance(name, str):
      names = (name,)
    else:
      names = name

    class _Policy(cls):

      TAG_FORMAT = tag_format
      ARROW_FRAME = frame
      LABEL_FORMAT = label_format
      AXIS_FORMAT = axis_format
      AXIS_LABEL = axis_label

    _Policy.__name__ = f'{names[0].title()}{cls.__name__}'
    _Policy.__doc__ = (
        f'A {names[0]} period policy.\n'
        f'TAG_FORMAT = {tag_format!r}\n'
        f'LABEL_FORMAT = {label_format!r}'
    )
    for i, policy_name in enumerate(names):
      PeriodPolicy.register_factory(_Policy, policy_name, kind=i == 0)
    return _Policy

class WeekPeriodPolicy(PeriodPolicy):
  ''' A weekly period policy.

      Weeks commence on Sunday.
      The data labels are not times: they are the day of the week
      with Sunday as `0`, plus the fraction of the day,
      so the axis runs from `0` to `7`.
  '''

  TAG_FORMAT = '%Y/%U'
  ARROW_FRAME = 'week'
  AXIS_FORMAT = None
  AXIS_LABEL = 'Day of the Week'
  USES_TIME_AXIS = False

  def period_start(self, a: Arrow) -> Arrow:
    ''' The most recent Sunday at midnight.
    '''
    return a.span('week', week_start=7)[0]

  def label_for_time(self, when: Numeric) -> str:
    ''' The day of the week plus the fraction of the day,
        eg `'1.500000'` for Monday noon.
    '''
    a = self.Arrow(when)
    weekday = a.isoweekday() % 7
    seconds = (a.hour * 60 + a.minute) * 60 + a.second
    return '%.6f' % (weekday + seconds / DAY)

YearPeriodPolicy = PeriodPolicy.make(
    ('year', 'annual', 'yearly', 'yr'),
    '%Y',
    'year',
    '%m-%dT%H:%M',
    '%b',
    'Month of the Year',
)
YearPeriodPolicy.__doc__ += (
    '\n'
    'The labels carry no year, so gnuplot reads them in its default\n'
    'year 1970; 29 February is therefore drawn on 1 March.'
)
MonthPeriodPolicy = PeriodPolicy.make(
    ('month', 'monthly', 'mon', 'mth'),
    '%b %y',
    'month',
    '%dT%H:%M',
    '%d',
    'Day of the Month',
)
for _name in 'week', 'weekly', 'wk':
  PeriodPolicy.register_factory(WeekPeriodPolicy, _name, kind=_name == 'week')
DayPeriodPolicy = PeriodPolicy.make(
    ('day', 'daily'),
    '%Y-%m-%d',
    'day',
    '%H:%M',
    '%H',
    'Hour of the Day',
)

class HourPeriodPolicy(PeriodPolicy):
  ''' An hourly period policy.

      Hours are computed on the UNIX time, so that the local hour
      repeated when daylight saving ends is a separate period.
      The tag of the repeated hour has a trailing `REPEAT_MARK`,
      eg `'2024-11-03 01*'`, which sorts after the first occurrence.
  '''

  TAG_FORMAT = '%Y-%m-%d %H'
  ARROW_FRAME = 'hour'
  LABEL_FORMAT = '%M:%S'
  AXIS_FORMAT = '%M'
  AXIS_LABEL = 'Minute of the Hour'
  REPEAT_MARK = '*'

  def span_for_time(self, when: Numeric) -> PeriodSpan:
    ''' The local hour containing `when`, ending at its last second.
    '''
    a = self.Arrow(when)
    start = int(when) - (a.minute * MINUTE + a.second)
    return PeriodSpan(start, start + HOUR - 1)

  def tag_for_time(self, when: Numeric) -> str:
    start = self.span_for_time(when).start
    tag = self.Arrow(start).strftime(self.TAG_FORMAT)
    if self.Arrow(start - HOUR).strftime(self.TAG_FORMAT) == tag:
      tag += self.REPEAT_MARK
    return tag

for _name in 'hour', 'hourly', 'hr':
  PeriodPolicy.register_factory(HourPeriodPolicy, _name, kind=_name == 'hour')

class Bucket:
  ''' A named group of samples, usually those of one calendar period.

      The samples are held in `self.samples`, a mapping of UNIX time
      to value. Epochs added by boundary injection are also recorded
      in `self.injected`.
  '''

  def __init__(self, tag: str, span: Optional[PeriodSpan] = None):
    self.tag = tag
    self.span = span
    self.samples = {}
    self.injected = set()

  def __str__(self):
    return "%s(%r:%d samples)" % (type(self).__name__, self.tag, len(self))

  def __len__(self):
    return len(self.samples)

  def __contains__(self, when):
    return when in self.samples

  def __setitem__(self, when: int, value: float):
    self.samples[when] = value

  def __getitem__(self, when: int) -> float:
    return self.samples[when]

  def inject(self, when: int, value: float):
    ''' Add an interpolated sample at `when`.
    '''
    self.samples[when] = value
    self.injected.add(when)

  @property
  def first_epoch(self) -> int:
    ''' The earliest UNIX time in the bucket.
    '''
    return min(self.samples)

  @property
  def last_epoch(self) -> int:
    ''' The latest UNIX time in the bucket.
    '''
    return max(self.samples)

  def items(self) -> List[Tuple[int, float]]:
    ''' Return a list of `(when,value)` in time order.
    '''
    return sorted(self.samples.items())

  def reset(self):
    ''' Subtract the value of the earliest sample from every sample
        so that the bucket starts at `0`.
    '''
    base = self.samples[self.first_epoch]
    for when, value in self.samples.items():
      self.samples[when] = value - base

def inject_boundaries(
    bucket: Bucket,
    span: PeriodSpan,
    series: Series,
    spline: Callable[[Numeric], float] = None,
) -> int:
  ''' Extend `bucket` to the boundaries of `span` with values from `spline`,
      never beyond the range of `series`.
      Return the number of samples injected.

      The start is injected if it precedes the bucket's earliest sample
      and follows the series start.
      The end is injected if it follows the bucket's latest sample
      and precedes the series end.
  '''
  if spline is None:
    spline = series.spline
  injected = 0
  if bucket.first_epoch > span.start > series.min_epoch:
    bucket.inject(span.start, spline(span.start))
    injected += 1
  if bucket.last_epoch < span.end < series.max_epoch:
    bucket.inject(span.end, spline(span.end))
    injected += 1
  return injected

def bucket_series(
    series: Series,
    policy: Optional[PeriodPolicy] = None,
    *,
    reset: bool = False,
) -> Mapping[str, Bucket]:
  ''' Group the samples of `series` into `Bucket`s.
      Return a mapping of tag to `Bucket` in order of first appearance.

      Parameters:
      * `series`: the `Series` to split
      * `policy`: optional `PeriodPolicy`; if omitted the result is
        a single bucket tagged `ALL_TAG` holding the whole series
      * `reset`: optional flag, default `False`: if true each bucket
        is reset to start at `0`

      When `policy` is supplied each bucket is extended to its
      calendar boundaries using `inject_boundaries`.
  '''
  buckets = {}
  if policy is None:
    bucket = buckets[ALL_TAG] = Bucket(ALL_TAG)
    for when, value in series:
      bucket[when] = value
  else:
    for when, value in series:
      tag = policy.tag_for_time(when)
      bucket = buckets.get(tag)
      if bucket is None:
        bucket = buckets[tag] = Bucket(tag, policy.span_for_time(when))
      bucket[when] = value
    spline = series.spline
    injected = 0
    for tag, bucket in buckets.items():
      with Pfx(tag):
        injected += inject_boundaries(bucket, bucket.span, series, spline)
    info(
        "%d %s buckets, %d boundary samples injected", len(buckets),
        policy.name, injected
    )
  if reset:
    for bucket in buckets.values():
      bucket.reset()
  return buckets

def select_buckets(
    buckets: Mapping[str, Bucket],
    max_count: int = 0,
) -> List[Tuple[Optional[str], Optional[Bucket]]]:
  ''' Return a list of `(tag,Bucket)` from `buckets` ordered by tag.

      If `max_count` is `0`, all the buckets are returned.
      Otherwise the list is exactly `max_count` long:
      if there are more buckets only the last `max_count` are kept,
      and if there are fewer the list is padded with `(None,None)`.
      Raises `ConfigError` if `max_count` is negative.

      Note that the ordering is plain string ordering of the tags.
  '''
  if max_count < 0:
    raise ConfigError("max count should be >= 0, got %d" % (max_count,))
  selected = [(tag, buckets[tag]) for tag in sorted(buckets)]
  if max_count:
    if len(selected) > max_count:
      debug(
          "keep the last %d of %d buckets: %r", max_count, len(selected),
          [tag for tag, _ in selected[-max_count:]]
      )
      selected = selected[-max_count:]
    selected.extend((None, None) for _ in range(max_count - len(selected)))
  return selected

def gradient_fraction(index: int, count: int) -> float:
  ''' Return the colour gradient position of slot `index` of `count`
      slots, from `0.0` for the first slot to `1.0` for the last.

          >>> [gradient_fraction(i, 3) for i in range(3)]
          [0.0, 0.5, 1.0]
          >>> gradient_fraction(0, 1)
          0.0
  '''
  if count < 2:
    return 0.0
  return index / (count - 1)

def auto_format(min_epoch: Numeric, max_epoch: Numeric) -> AxisFormat:
  ''' Choose an `AxisFormat` for data spanning `min_epoch` to `max_epoch`
      when no period has been specified.

          >>> auto_format(0, 2 * DAY).label
          'Day'
          >>> auto_format(0, 90 * MINUTE).label
          'Hour of the Day'
  '''
  diff = max_epoch - min_epoch
  if diff > YEAR:
    return AxisFormat('%b %y', 'Month', True)
  if diff > MONTH:
    return AxisFormat('%b', 'Month', True)
  if diff > DAY:
    return AxisFormat('%d %b', 'Day', True)
  if diff > HOUR:
    return AxisFormat('%H', 'Hour of the Day', True)
  return AxisFormat('%M', 'Minute of the Hour', True)
