"""Piecewise linear functions."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, TextIO

DEFAULT_EPS = 1e-6


@dataclass
class Interval:
    """A closed interval [start, end]."""

    start: float
    end: float

    def contains(self, value: float) -> bool:
        return self.start <= value <= self.end

    def clip(self, value: float) -> float:
        if value < self.start:
            return self.start
        if value > self.end:
            return self.end
        return value

    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class Point:
    """A 2D point, also used as a vector."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor)

    def __truediv__(self, factor: float) -> Point:
        return Point(self.x / factor, self.y / factor)

    def dot(self, other: Point) -> float:
        return self.x * other.x + self.y * other.y

    def len2(self) -> float:
        return self.x * self.x + self.y * self.y

    def length(self) -> float:
        return math.sqrt(self.len2())


class PerpType(Enum):
    """Kind of closest point found by :meth:`Pwl.invert`."""

    NOT_FOUND = "not_found"
    START = "start"
    END = "end"
    VERTEX = "vertex"
    PERPENDICULAR = "perpendicular"


def _as_point(p) -> Point:
    return p if isinstance(p, Point) else Point(*p)


class Pwl:
    """A piecewise linear function given by control points with increasing x."""

    def __init__(self, points: Iterable | None = None):
        self._points: list[Point] = [_as_point(p) for p in points or ()]

    @property
    def points(self) -> tuple[Point, ...]:
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pwl):
            return NotImplemented
        return self._points == other._points

    def __repr__(self) -> str:
        return f"Pwl({self._points!r})"

    def read(self, params: Iterable[float]) -> None:
        """Append points from a flat sequence x0, y0, x1, y1, ..."""
        values = [float(v) for v in params]
        if len(values) % 2:
            raise ValueError("Pwl: odd number of values")
        for i in range(0, len(values), 2):
            x, y = values[i], values[i + 1]
            if i and x <= self._points[-1].x:
                raise ValueError("Pwl: x values must be strictly increasing")
            self._points.append(Point(x, y))
        if len(self._points) < 2:
            raise ValueError("Pwl: at least two points are required")

    def append(self, x: float, y: float, eps: float = DEFAULT_EPS) -> None:
        if not self._points or self._points[-1].x + eps < x:
            self._points.append(Point(x, y))

    def prepend(self, x: float, y: float, eps: float = DEFAULT_EPS) -> None:
        if not self._points or self._points[0].x - eps > x:
            self._points.insert(0, Point(x, y))

    def domain(self) -> Interval:
        return Interval(self._points[0].x, self._points[-1].x)

    def range(self) -> Interval:
        ys = [p.y for p in self._points]
        return Interval(min(ys), max(ys))

    def empty(self) -> bool:
        return not self._points

    def _find_span(self, x: float, span: int) -> int:
        pts = self._points
        last_span = len(pts) - 2
        span = max(0, min(last_span, span))
        while span < last_span and x >= pts[span + 1].x:
            span += 1
        while span and x < pts[span].x:
            span -= 1
        return span

    def eval_with_span(self, x: float, span: int = -1) -> tuple[float, int]:
        """Evaluate at x from a span guess (-1 for none); return value and span used."""
        if span == -1:
            span = len(self._points) // 2 - 1
        span = self._find_span(x, span)
        p0, p1 = self._points[span], self._points[span + 1]
        return p0.y + (x - p0.x) * (p1.y - p0.y) / (p1.x - p0.x), span

    def eval(self, x: float, span: int | None = None) -> float:
        """Evaluate at x, optionally starting the search from a span guess."""
        return self.eval_with_span(x, -1 if span is None else span)[0]

    def invert(
        self, xy: Point, span: int = -1, eps: float = DEFAULT_EPS
    ) -> tuple[PerpType, Point | None, int]:
        """Find the closest point to xy searching from span + 1.

        Returns the kind of point found, the point itself (None if not found)
        and the span reached, so the search can be resumed.
        """
        if span < -1:
            raise ValueError("Pwl.invert: span must be at least -1")
        pts = self._points
        last = len(pts) - 1
        start = span + 1
        prev_off_end = False
        for span in range(start, last):
            span_vec = pts[span + 1] - pts[span]
            t = (xy - pts[span]).dot(span_vec) / span_vec.len2()
            if t < -eps:
                if span == 0:
                    return PerpType.START, pts[span], span
                if prev_off_end:
                    return PerpType.VERTEX, pts[span], span
            elif t > 1 + eps:
                if span == last - 1:
                    return PerpType.END, pts[span + 1], span
                prev_off_end = True
            else:
                return PerpType.PERPENDICULAR, pts[span] + span_vec * t, span
        return PerpType.NOT_FOUND, None, max(start, last)

    def compose(self, other: Pwl, eps: float = DEFAULT_EPS) -> Pwl:
        """Return the function applying self first and other after."""
        pts, ops = self._points, other._points
        this_x, this_y = pts[0].x, pts[0].y
        this_span = 0
        other_span = other._find_span(this_y, 0)
        result = Pwl([Point(this_x, other.eval(this_y, other_span))])
        while this_span != len(pts) - 1:
            dx = pts[this_span + 1].x - pts[this_span].x
            dy = pts[this_span + 1].y - pts[this_span].y
            if (
                abs(dy) > eps
                and other_span + 1 < len(ops)
                and pts[this_span + 1].y >= ops[other_span + 1].x + eps
            ):
                this_x = pts[this_span].x + (ops[other_span + 1].x - pts[this_span].y) * dx / dy
                other_span += 1
                this_y = ops[other_span].x
            elif (
                abs(dy) > eps
                and other_span > 0
                and pts[this_span + 1].y <= ops[other_span - 1].x - eps
            ):
                this_x = pts[this_span].x + (ops[other_span + 1].x - pts[this_span].y) * dx / dy
                other_span -= 1
                this_y = ops[other_span].x
            else:
                this_span += 1
                this_x, this_y = pts[this_span].x, pts[this_span].y
            result.append(this_x, other.eval(this_y, other_span), eps)
        return result

    def map(self, f: Callable[[float, float], None]) -> None:
        """Call f(x, y) at every control point."""
        for p in self._points:
            f(p.x, p.y)

    @staticmethod
    def map2(pwl0: Pwl, pwl1: Pwl, f: Callable[[float, float, float], None]) -> None:
        """Call f(x, y0, y1) wherever either function has a control point."""
        p0, p1 = pwl0._points, pwl1._points
        last0, last1 = len(p0) - 1, len(p1) - 1
        span0 = span1 = 0
        x = min(p0[0].x, p1[0].x)
        f(x, pwl0.eval(x, span0), pwl1.eval(x, span1))
        while span0 < last0 or span1 < last1:
            if span0 == last0:
                span1 += 1
                x = p1[span1].x
            elif span1 == last1:
                span0 += 1
                x = p0[span0].x
            elif p0[span0 + 1].x > p1[span1 + 1].x:
                span1 += 1
                x = p1[span1].x
            else:
                span0 += 1
                x = p0[span0].x
            f(x, pwl0.eval(x, span0), pwl1.eval(x, span1))

    @staticmethod
    def combine(
        pwl0: Pwl,
        pwl1: Pwl,
        f: Callable[[float, float, float], float],
        eps: float = DEFAULT_EPS,
    ) -> Pwl:
        """Build a function whose values are f(x, y0, y1) at the knots of both."""
        result = Pwl()
        Pwl.map2(pwl0, pwl1, lambda x, y0, y1: result.append(x, f(x, y0, y1), eps))
        return result

    def match_domain(self, domain: Interval, clip: bool = True, eps: float = DEFAULT_EPS) -> None:
        """Extend the function to cover domain, flat if clip else linearly."""
        x0 = self._points[0].x if clip else domain.start
        y0, _ = self.eval_with_span(x0, 0)
        self.prepend(domain.start, y0, eps)
        span = len(self._points) - 2
        x1 = self._points[-1].x if clip else domain.end
        y1, _ = self.eval_with_span(x1, span)
        self.append(domain.end, y1, eps)

    def generate_lut(self) -> list[float]:
        """Tabulate the function at the integers 0 .. domain end."""
        end = int(self.domain().end + 1)
        lut = []
        span = 0
        for x in range(end):
            value, span = self.eval_with_span(x, span)
            lut.append(value)
        return lut

    def __imul__(self, d: float) -> Pwl:
        self._points = [Point(p.x, p.y * d) for p in self._points]
        return self

    def debug(self, fp: TextIO | None = None) -> None:
        """Write the control points in a readable form."""
        fp = sys.stderr if fp is None else fp
        fp.write("Pwl {\n")
        for p in self._points:
            fp.write("\t(%g, %g)\n" % (p.x, p.y))
        fp.write("}\n")