"""
Tests for scene composition: item counts, painter ordering, phase highlights,
per-unit edit controls and the JSON-friendly item export.
"""

from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from nexus_core.config import SimulatorConfig, ViewConfig
from nexus_core.enums import Activation, Phase
from nexus_core.scheduler import SchedulerState
from nexus_core.simulation import Simulation
from nexus_view.models.camera import Camera, ProjectionMode
from nexus_view.models.items import (
    ActivationControlItem,
    EditKind,
    Highlight,
    LayerControlItem,
    LinkItem,
    NodeItem,
    RenderKind,
    item_to_dict,
)
from nexus_view.scene_builder import build_scene, build_simulation_scene


def make_sim():
    return Simulation(config=SimulatorConfig(seed=0))


def of_type(items, cls):
    return [i for i in items if isinstance(i, cls)]


class TestComposition:
    def test_item_counts_for_default_network(self):
        items = build_simulation_scene(make_sim(), Camera())
        assert len(of_type(items, NodeItem)) == 10
        assert len(of_type(items, LinkItem)) == 2 * 4 + 4 * 3 + 3 * 1
        assert len(of_type(items, LayerControlItem)) == 4
        assert len(of_type(items, ActivationControlItem)) == 2

    def test_sorted_by_depth(self):
        items = build_simulation_scene(make_sim(), Camera(yaw=63.0, pitch=-30.0))
        depths = [i.depth for i in items]
        assert depths == sorted(depths)

    def test_link_depth_is_endpoint_average(self):
        items = build_simulation_scene(make_sim(), Camera(yaw=40.0))
        for link in of_type(items, LinkItem):
            assert link.depth == pytest.approx((link.pos.depth + link.to_pos.depth) / 2.0)

    def test_link_weights_match_network(self):
        sim = make_sim()
        items = build_simulation_scene(sim, Camera())
        for link in of_type(items, LinkItem):
            w = sim.network.weights[link.layer][link.from_index, link.to_index]
            assert link.weight == pytest.approx(w)
            assert link.sign == int(np.sign(w))
            assert link.magnitude == pytest.approx(abs(w))

    def test_zero_weight_has_zero_sign(self):
        sim = make_sim()
        sim.network.weights[0][0, 0] = 0.0
        items = build_simulation_scene(sim, Camera())
        link = next(i for i in items if i.key == "link-0-0-0")
        assert link.sign == 0
        assert link.magnitude == 0.0

    def test_items_are_immutable(self):
        items = build_simulation_scene(make_sim(), Camera())
        with pytest.raises(FrozenInstanceError):
            items[0].depth = 0.0

    def test_keys_unique(self):
        items = build_simulation_scene(make_sim(), Camera())
        keys = [i.key for i in items]
        assert len(keys) == len(set(keys))


class TestNodes:
    def test_edit_kinds(self):
        sim = make_sim()
        nodes = of_type(build_simulation_scene(sim, Camera()), NodeItem)
        inputs = [n for n in nodes if n.is_input]
        outputs = [n for n in nodes if n.is_output]
        hidden = [n for n in nodes if not n.is_input and not n.is_output]
        assert {n.edit for n in inputs} == {EditKind.INPUT}
        assert sorted(n.edit_value for n in inputs) == [0.0, 1.0]
        assert [n.edit for n in outputs] == [EditKind.TARGET]
        assert outputs[0].edit_value == 1.0
        assert {n.edit for n in hidden} == {EditKind.BIAS}
        assert all(n.bias is not None for n in hidden)
        assert all(n.bias is None for n in inputs + outputs)

    def test_values_match_cached_outputs(self):
        sim = make_sim()
        nodes = of_type(build_simulation_scene(sim, Camera()), NodeItem)
        out = next(n for n in nodes if n.is_output)
        assert out.value == pytest.approx(float(sim.network.output[0]))

    def test_flat_index_is_row_major(self):
        sim = make_sim()
        nodes = of_type(build_simulation_scene(sim, Camera()), NodeItem)
        for n in nodes:
            cols = sim.layer_dims[n.layer][1]
            assert n.index == n.row * cols + n.col


class TestHighlights:
    def test_forward_highlights_layer_and_outgoing_links(self):
        sim = make_sim()
        state = SchedulerState(Phase.FORWARD, 1)
        items = build_scene(sim.render_snapshot(), sim.layer_dims, Camera(), state=state)
        for n in of_type(items, NodeItem):
            assert (n.highlight == Highlight.FORWARD) == (n.layer == 1)
        for link in of_type(items, LinkItem):
            assert (link.highlight == Highlight.FORWARD) == (link.layer == 1)

    def test_backward_highlights_incoming_links(self):
        sim = make_sim()
        state = SchedulerState(Phase.BACKWARD, 2)
        items = build_scene(sim.render_snapshot(), sim.layer_dims, Camera(), state=state)
        for link in of_type(items, LinkItem):
            assert (link.highlight == Highlight.BACKWARD) == (link.layer == 1)

    def test_updating_marks_changed_links(self):
        sim = Simulation(config=SimulatorConfig(seed=0, learning_rate=0.5))
        for _ in range(2 * sim.num_layers + 1):
            sim.tick()
        assert sim.state.phase == Phase.UPDATING
        links = of_type(build_simulation_scene(sim, Camera()), LinkItem)
        updated = [link for link in links if link.highlight == Highlight.UPDATE]
        assert updated
        assert all(abs(link.delta) > 1e-3 for link in updated)

    def test_idle_has_no_highlights(self):
        items = build_simulation_scene(make_sim(), Camera())
        for item in of_type(items, NodeItem) + of_type(items, LinkItem):
            assert item.highlight == Highlight.NONE


class TestControls:
    def test_layer_control_flags(self):
        sim = make_sim()
        sim.set_architecture([(1, 8), (2, 2), (1, 1)])
        ctrls = {c.layer: c for c in of_type(build_simulation_scene(sim, Camera()), LayerControlItem)}
        assert not ctrls[0].can_shrink_rows
        assert not ctrls[0].can_grow_cols
        assert ctrls[0].can_grow_rows
        assert ctrls[1].can_shrink_cols

    def test_activation_control_content(self):
        sim = make_sim()
        ctrls = of_type(build_simulation_scene(sim, Camera()), ActivationControlItem)
        assert sorted(c.layer for c in ctrls) == [1, 2]
        c = ctrls[0]
        assert c.activation == Activation.LEAKY_RELU
        assert c.name == "L-ReLU"
        assert len(c.curve) == 33

    def test_controls_sit_in_front_of_anchor(self):
        sim = make_sim()
        items = build_simulation_scene(sim, Camera(yaw=0.0))
        ctrl = next(c for c in of_type(items, LayerControlItem) if c.layer == 0)
        anchor = next(n for n in of_type(items, NodeItem) if n.layer == 0 and n.row == 1)
        assert ctrl.depth == pytest.approx(anchor.depth + 10.0)
        assert ctrl.pos.y > anchor.pos.y



class TestNearPlane:
    DEEP = [(2, 1)] + [(2, 2)] * 8 + [(4, 1)]

    def deep_scene(self):
        sim = Simulation(layer_dims=self.DEEP, config=SimulatorConfig(seed=0))
        return build_simulation_scene(sim, Camera(yaw=90.0, pitch=20.0), ViewConfig())

    def test_points_at_or_behind_near_plane_are_dropped(self):
        view = ViewConfig()
        items = self.deep_scene()
        nodes = of_type(items, NodeItem)
        assert 0 < len(nodes) < sum(r * c for r, c in self.DEEP)
        for item in items:
            assert view.fov - item.pos.depth > view.near_plane
        for link in of_type(items, LinkItem):
            assert view.fov - link.to_pos.depth > view.near_plane

    def test_nearer_nodes_drawn_larger(self):
        nodes = sorted(of_type(self.deep_scene(), NodeItem), key=lambda n: n.depth)
        for far, near in zip(nodes, nodes[1:]):
            if near.depth - far.depth > 1e-9:
                assert near.pos.scale > far.pos.scale

    def test_orthographic_keeps_every_node(self):
        sim = Simulation(layer_dims=self.DEEP, config=SimulatorConfig(seed=0))
        cam = Camera(yaw=90.0, pitch=20.0, mode=ProjectionMode.ORTHOGRAPHIC)
        nodes = of_type(build_simulation_scene(sim, cam), NodeItem)
        assert len(nodes) == sum(r * c for r, c in self.DEEP)

def test_item_to_dict_plain_values():
    items = build_simulation_scene(make_sim(), Camera())
    node = item_to_dict(of_type(items, NodeItem)[0])
    assert node["kind"] == RenderKind.NODE.name
    assert node["highlight"] == "NONE"
    assert set(node["pos"]) == {"x", "y", "scale", "depth"}
    act = item_to_dict(of_type(items, ActivationControlItem)[0])
    assert act["activation"] == "LEAKY_RELU"
    assert isinstance(act["curve"][0], list)
