"""
Unit tests for the 3D layout and camera projection.
"""

import math

import pytest

from nexus_core.config import ViewConfig
from nexus_view.models.camera import Camera, ProjectionMode
from nexus_view.models.items import ScreenPoint
from nexus_view.projection import ProjectionEngine

TWO_SINGLE = [(1, 1), (1, 1)]


def ortho(**kw):
    return Camera(yaw=0.0, pitch=0.0, mode=ProjectionMode.ORTHOGRAPHIC, **kw)


class TestLayout:
    def test_layers_centred_on_x(self):
        eng = ProjectionEngine([(1, 1), (1, 1), (1, 1)], Camera())
        assert eng.layout(0, 0, 0) == (-250.0, 0.0, 0.0)
        assert eng.layout(1, 0, 0) == (0.0, 0.0, 0.0)
        assert eng.layout(2, 0, 0) == (250.0, 0.0, 0.0)

    def test_rows_and_cols_centred(self):
        eng = ProjectionEngine([(3, 2), (1, 1)], Camera())
        assert eng.layout(0, 0, 0) == (-125.0, -80.0, -40.0)
        assert eng.layout(0, 2, 1) == (-125.0, 80.0, 40.0)


class TestOrthographic:
    def test_front_view_positions(self):
        eng = ProjectionEngine(TWO_SINGLE, ortho())
        a = eng.project(0, 0, 0)
        b = eng.project(1, 0, 0)
        assert (a.x, a.y) == pytest.approx((275.0, 300.0))
        assert (b.x, b.y) == pytest.approx((525.0, 300.0))
        assert a.scale == 1.0
        assert b.scale == 1.0

    def test_zoom_scales_about_view_center(self):
        eng = ProjectionEngine(TWO_SINGLE, ortho(zoom=2.0))
        a = eng.project(0, 0, 0)
        assert a.x == pytest.approx(150.0)
        assert a.scale == 2.0

    def test_pan_offsets_screen(self):
        eng = ProjectionEngine(TWO_SINGLE, ortho(pan_x=10.0, pan_y=-20.0))
        a = eng.project(0, 0, 0)
        assert (a.x, a.y) == pytest.approx((285.0, 280.0))

    def test_top_view_uses_pitch(self):
        cam = Camera(yaw=0.0, pitch=90.0, mode=ProjectionMode.ORTHOGRAPHIC)
        eng = ProjectionEngine([(1, 2), (1, 1)], cam)
        # columns (z) map onto screen y when looking down
        p = eng.project(0, 0, 1)
        assert p.y == pytest.approx(300.0 - 40.0)


class TestPerspective:
    def test_nearer_points_are_larger(self):
        eng = ProjectionEngine(TWO_SINGLE, Camera(yaw=90.0, pitch=0.0))
        a = eng.project(0, 0, 0)
        b = eng.project(1, 0, 0)
        assert b.depth > a.depth
        assert b.scale > a.scale
        assert b.scale == pytest.approx(1000.0 / (1000.0 - 125.0))

    def test_depth_zero_has_unit_scale(self):
        eng = ProjectionEngine(TWO_SINGLE, Camera(yaw=0.0, pitch=0.0))
        assert eng.project(0, 0, 0).scale == pytest.approx(1.0)

    def test_scale_never_negative(self):
        view = ViewConfig(layer_spacing=3000.0)
        eng = ProjectionEngine(TWO_SINGLE, Camera(yaw=90.0, pitch=0.0), view)
        p = eng.project(1, 0, 0)
        assert p.depth > view.fov
        assert p.scale > 0.0
        assert math.isfinite(p.scale)
        assert not eng.in_front(p)

    def test_nearer_visible_point_is_larger(self):
        eng = ProjectionEngine(TWO_SINGLE, Camera(yaw=0.0, pitch=0.0))
        far, near = eng.scale_for_depth(900.0), eng.scale_for_depth(950.0)
        assert near > far
        assert near == pytest.approx(1000.0 / 50.0)

    def test_in_front_stops_at_near_plane(self):
        view = ViewConfig()
        eng = ProjectionEngine(TWO_SINGLE, Camera(yaw=0.0, pitch=0.0), view)
        assert eng.in_front(ScreenPoint(0.0, 0.0, 1.0, view.fov - 2.0))
        assert not eng.in_front(ScreenPoint(0.0, 0.0, 1.0, view.fov - view.near_plane))
        ortho_eng = ProjectionEngine(TWO_SINGLE, ortho(), view)
        assert ortho_eng.in_front(ScreenPoint(0.0, 0.0, 1.0, 5000.0))

    def test_rotation_preserves_length(self):
        eng = ProjectionEngine(TWO_SINGLE, Camera(yaw=37.0, pitch=-21.0))
        point = (120.0, -40.0, 80.0)
        rotated = eng.rotate(point)
        assert math.dist(rotated, (0, 0, 0)) == pytest.approx(math.dist(point, (0, 0, 0)))

    def test_camera_is_read_each_time(self):
        cam = Camera(yaw=0.0, pitch=0.0)
        eng = ProjectionEngine(TWO_SINGLE, cam)
        before = eng.project(1, 0, 0)
        cam.yaw = 45.0
        after = eng.project(1, 0, 0)
        assert before != after
