#!/usr/bin/env python3
#
# The plot pipeline: clean, differentiate, bucket, select.
#

''' The pipeline driver which turns raw table cells into a `PlotData`,
    the payload for the gnuplot renderer.

    The stages run in a fixed order:
    - build the `Series` from the raw cells
    - optionally replace it with its rate of change
    - bucket it by period, or as a single `'all'` bucket,
      injecting period boundaries from the spline of the current series
    - select the buckets to plot
'''

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import arrow

from cs.logutils import info
from cs.pfx import Pfx, pfx

from .config import PlotConfig
from .periods import (
    ALL_LABEL_FORMAT,
    Bucket,
    PeriodPolicy,
    auto_format,
    bucket_series,
    gradient_fraction,
    select_buckets,
    tzfor,
)
from .series import Series, build_series, rate_series
from .tabular import read_columns

Row = Tuple[str, float]

@dataclass
class Dataset:
  ''' A slot in the plot: its position, its bucket tag,
      its rows of `(label,value)` and its colour gradient position.
      An empty slot has a `tag` of `None` and no rows.
  '''
  index: int
  tag: Optional[str]
  rows: List[Row]
  fraction: float

@dataclass
class PlotData:
  ''' The result of the pipeline.

      Attributes:
      * `series`: the final `Series`, after any rate transform
      * `slots`: the selected `(tag,Bucket)` slots
      * `period`: the `PeriodPolicy` or `None`
      * `label_for_time`: a function of a UNIX time returning a data label
      * `timefmt`: the `strftime` format of the data labels,
        `None` if they are not times
      * `xformat`: the x axis tick format, `None` for the default
      * `xlabel`: the x axis label
      * `uses_time_axis`: whether the x axis is a time axis
  '''
  series: Series
  slots: List[Tuple[Optional[str], Optional[Bucket]]]
  period: Optional[PeriodPolicy]
  label_for_time: Callable[[int], str]
  timefmt: Optional[str]
  xformat: Optional[str]
  xlabel: Optional[str]
  uses_time_axis: bool

  def datasets(self) -> Iterable[Dataset]:
    ''' Generator yielding a `Dataset` for each slot in order.
    '''
    nslots = len(self.slots)
    label_for_time = self.label_for_time
    for index, (tag, bucket) in enumerate(self.slots):
      rows = (
          [] if bucket is None else
          [(label_for_time(when), value) for when, value in bucket.items()]
      )
      yield Dataset(
          index=index,
          tag=tag,
          rows=rows,
          fraction=gradient_fraction(index, nslots),
      )

def build_plot(
    timestamps: Sequence[str],
    values: Sequence[str],
    config: PlotConfig,
) -> PlotData:
  ''' Run the pipeline over the raw `timestamps` and `values` cells
      according to `config`, return a `PlotData`.
  '''
  with Pfx("series"):
    series = build_series(
        timestamps,
        values,
        time_format=config.time_format,
        scale=config.scale,
    )
  info("%d samples", len(series))
  if config.rate is not None:
    with Pfx("rate %s", config.rate.name):
      series = rate_series(series, config.rate)
  policy = config.period
  with Pfx("buckets"):
    buckets = bucket_series(series, policy, reset=config.reset)
    slots = select_buckets(buckets, config.max_count)
  if policy is None:
    axis = auto_format(series.min_epoch, series.max_epoch)
    tz = tzfor(config.tz)
    label_for_time = lambda when: arrow.Arrow.fromtimestamp(
        when, tzinfo=tz
    ).strftime(ALL_LABEL_FORMAT)
    timefmt = ALL_LABEL_FORMAT
  else:
    axis = policy.axis_format
    label_for_time = policy.label_for_time
    timefmt = policy.LABEL_FORMAT if policy.USES_TIME_AXIS else None
  return PlotData(
      series=series,
      slots=slots,
      period=policy,
      label_for_time=label_for_time,
      timefmt=timefmt,
      xformat=config.xformat or axis.tick_format,
      xlabel=config.xlabel or axis.label,
      uses_time_axis=axis.uses_time_axis,
  )

@pfx
def plot_file(path: str, config: PlotConfig) -> PlotData:
  ''' Read the input table at `path` and run the pipeline,
      return a `PlotData`.
  '''
  timestamps, values = read_columns(
      path,
      config.columns,
      sheet=config.sheet,
      separator=config.separator,
  )
  return build_plot(timestamps, values, config)
