"""
Chart projection for the position/setpoint plot.

Maps a sample snapshot onto a fixed-size canvas. The projection is a pure
function of the snapshot and canvas size, so any front end can redraw from
it at whatever cadence it likes.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from motor_client.config import MIN_CANVAS_SIZE, X_TICKS, Y_TICKS
from motor_client.data_models import Sample

Point = Tuple[float, float]


@dataclass(frozen=True)
class GridLine:
    offset: float       # y for value gridlines, x for time gridlines
    label: str


@dataclass(frozen=True)
class ChartGeometry:
    """Everything needed to draw one frame of the chart."""
    width: float
    height: float
    t0: int
    t_end: int
    ymin: int
    ymax: int
    position_points: Tuple[Point, ...]
    setpoint_points: Tuple[Point, ...]
    value_grid: Tuple[GridLine, ...]
    time_grid: Tuple[GridLine, ...]
    readout: str

    @property
    def span_ms(self) -> int:
        return max(1, self.t_end - self.t0)


def decimate(samples: Sequence[Sample], max_points: int) -> List[Sample]:
    """
    Reduce a snapshot to at most max_points samples with a uniform stride.

    The last sample is always kept so the chart ends at the newest reading.
    """
    if max_points < 2:
        raise ValueError("max_points must be at least 2")
    total = len(samples)
    if total <= max_points:
        return list(samples)
    step = -(-(total - 1) // (max_points - 1))
    subset = list(samples[::step])
    if (total - 1) % step:
        subset.append(samples[-1])
    return subset


def project_chart(samples: Sequence[Sample], width: float, height: float,
                  max_points: Optional[int] = None) -> ChartGeometry:
    """
    Project samples onto a width x height canvas.

    Args:
        samples: Non-empty, time-ordered snapshot
        width: Canvas width (clamped to MIN_CANVAS_SIZE)
        height: Canvas height (clamped to MIN_CANVAS_SIZE)
        max_points: Decimate the drawn points to this many, if given

    Returns:
        ChartGeometry with one point per drawn sample for each series.
        Y grows downwards, so larger values plot higher.
    """
    if not samples:
        raise ValueError("Cannot project an empty snapshot")

    w = max(float(MIN_CANVAS_SIZE), float(width))
    h = max(float(MIN_CANVAS_SIZE), float(height))

    t0 = samples[0].timestamp_ms
    t_end = samples[-1].timestamp_ms
    span = float(max(1, t_end - t0))

    ymin = min(min(s.position, s.setpoint) for s in samples)
    ymax = max(max(s.position, s.setpoint) for s in samples)
    if ymax == ymin:
        ymax = ymin + 1
    yrange = float(ymax - ymin)

    def map_x(t: float) -> float:
        return (t - t0) / span * w

    def map_y(v: float) -> float:
        return h - (v - ymin) / yrange * h

    drawn = decimate(samples, max_points) if max_points else samples
    pos_points = []
    sp_points = []
    for s in drawn:
        x = map_x(s.timestamp_ms)
        pos_points.append((x, map_y(s.position)))
        sp_points.append((x, map_y(s.setpoint)))

    value_grid = []
    for i in range(Y_TICKS + 1):
        v = ymin + i * yrange / Y_TICKS
        value_grid.append(GridLine(map_y(v), f"{v:.0f}"))

    time_grid = []
    for i in range(X_TICKS + 1):
        t = t0 + int(i * span / X_TICKS)
        time_grid.append(GridLine(map_x(t), f"{(t - t0) / 1000.0:.1f}s"))

    last = samples[-1]
    return ChartGeometry(
        width=w,
        height=h,
        t0=t0,
        t_end=t_end,
        ymin=ymin,
        ymax=ymax,
        position_points=tuple(pos_points),
        setpoint_points=tuple(sp_points),
        value_grid=tuple(value_grid),
        time_grid=tuple(time_grid),
        readout=f"Pos={last.position} | SP={last.setpoint}",
    )


def render_geometry(ax, geometry: ChartGeometry):
    """
    Draw a ChartGeometry onto a matplotlib Axes in canvas coordinates.

    Args:
        ax: Axes to draw into; it is cleared first
        geometry: Result of project_chart
    """
    ax.cla()
    ax.set_facecolor("white")
    ax.set_xlim(0, geometry.width)
    ax.set_ylim(geometry.height, 0)     # canvas y grows downwards
    ax.set_xticks([])
    ax.set_yticks([])

    grid_style = dict(color="gray", linewidth=0.6, linestyle=(0, (2, 3)), alpha=0.5)
    label_style = dict(fontsize=9, fontfamily="monospace", fontweight="bold")
    for g in geometry.value_grid:
        ax.axhline(g.offset, **grid_style)
        ax.text(4, g.offset - 2, g.label, va="bottom", **label_style)
    for g in geometry.time_grid:
        ax.axvline(g.offset, **grid_style)
        ax.text(g.offset + 2, geometry.height - 4, g.label, va="bottom", **label_style)

    if geometry.position_points:
        xs, ys = zip(*geometry.position_points)
        ax.plot(xs, ys, color="blue", linewidth=2.5, label="Position")
    if geometry.setpoint_points:
        xs, ys = zip(*geometry.setpoint_points)
        ax.plot(xs, ys, color="red", linewidth=2, linestyle=(0, (5, 4)), label="Setpoint")

    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Position (tick)")
    ax.text(geometry.width - 4, 4, geometry.readout, ha="right", va="top",
            fontsize=10, fontfamily="monospace", fontweight="bold")
