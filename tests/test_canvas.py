"""Tests for MapArea gesture dispatch and the shape storage behind it."""

import os

import pytest

from canvas_widget import MapArea
from errors import MapFormatError, UnsupportedToolError
from settings import ToolState, Tools
from shapes import ControlPoint, Path, PolyShape, ShapeState


@pytest.fixture
def canvas(qapp):
    return MapArea(ToolState())


def gesture(canvas, start, *moves):
    canvas.press(*start)
    for pos in moves:
        canvas.drag(*pos)
    canvas.release(*(moves[-1] if moves else start))


def draw_room(canvas, sides, start, end):
    canvas.tool_state.select_room(sides)
    gesture(canvas, start, end)
    return canvas.storage.get_all()[-1]


class TestRoom:
    def test_square_scenario(self, canvas):
        canvas.tool_state.select_room(4)
        canvas.press(0, 0)
        assert canvas.is_drawing
        canvas.drag(5, 0)
        canvas.drag(10, 0)
        canvas.release(10, 0)

        shapes = canvas.storage.get_all()
        assert len(shapes) == 1
        room = shapes[0]
        assert room.state is ShapeState.FINALIZED
        assert not canvas.is_drawing
        xs = [cp.x for cp in room.control_points]
        ys = [cp.y for cp in room.control_points]
        assert len(xs) == 4
        assert ((min(xs) + max(xs)) / 2, (min(ys) + max(ys)) / 2) == pytest.approx((5, 0))
        assert (max(xs) - min(xs)) / 2 == pytest.approx(5)

    def test_drag_uses_press_point(self, canvas):
        room = draw_room(canvas, 3, (10, 10), (30, 10))
        assert room.points[0] == pytest.approx(30)
        assert room.points[1] == pytest.approx(10)

    def test_click_without_drag_is_discarded(self, canvas):
        canvas.tool_state.select_room(5)
        gesture(canvas, (10, 10))
        assert canvas.storage.get_all() == []

    def test_nodes_in_drawing_order(self, canvas):
        a = draw_room(canvas, 3, (0, 0), (10, 0))
        b = draw_room(canvas, 3, (50, 0), (60, 0))
        nodes = canvas.storage.nodes()
        assert nodes == [a, *a.control_points, b, *b.control_points]


class TestSelectAndMove:
    def test_select_control_points(self, canvas):
        room = draw_room(canvas, 4, (0, 0), (10, 0))
        canvas.tool_state.tool = Tools.SELECT
        canvas.press(-20, -20)
        assert canvas.selection_area is not None
        canvas.drag(30, 30)
        canvas.release(30, 30)
        selected = canvas.storage.get_selected()
        assert selected == list(room.control_points)
        assert all(cp.selected for cp in selected)
        assert canvas.selection_area is None

    def test_partial_selection(self, canvas):
        room = draw_room(canvas, 4, (0, 0), (100, 0))
        canvas.tool_state.tool = Tools.SELECT
        # только вершина (100, 0)
        gesture(canvas, (120, 20), (90, -20))
        assert canvas.storage.get_selected() == [room.control_points[0]]

    def test_new_select_press_clears_selection(self, canvas):
        room = draw_room(canvas, 3, (0, 0), (10, 0))
        canvas.tool_state.tool = Tools.SELECT
        gesture(canvas, (-20, -20), (30, 30))
        assert canvas.storage.has_selection()
        canvas.press(500, 500)
        assert not canvas.storage.has_selection()
        assert not any(cp.selected for cp in room.control_points)

    def test_move_selected_points(self, canvas):
        room = draw_room(canvas, 4, (0, 0), (100, 0))
        canvas.tool_state.tool = Tools.SELECT
        gesture(canvas, (120, 20), (90, -20))
        moved = room.control_points[0]
        others = [(cp.x, cp.y) for cp in room.control_points[1:]]

        canvas.tool_state.tool = Tools.MOVE
        canvas.press(300, 300)
        canvas.drag(303, 304)
        canvas.drag(305, 304)
        canvas.release(305, 304)
        assert (moved.x, moved.y) == pytest.approx((105, 4))
        assert room.points[:2] == pytest.approx((105, 4))
        assert [(cp.x, cp.y) for cp in room.control_points[1:]] == others

    def test_move_shape_under_cursor(self, canvas):
        room = draw_room(canvas, 4, (0, 0), (100, 0))
        before = room.points
        canvas.tool_state.tool = Tools.MOVE
        gesture(canvas, (50, 0), (53, 4))
        assert list(room.points) == pytest.approx([v + d for v, d in zip(before, (3, 4) * 4)])

    def test_move_single_control_point(self, canvas):
        room = draw_room(canvas, 4, (0, 0), (100, 0))
        canvas.tool_state.tool = Tools.MOVE
        gesture(canvas, (100, 0), (110, 0))
        assert room.points[:2] == pytest.approx((110, 0))
        assert room.points[2:4] == pytest.approx((50, 50))

    def test_move_on_empty_canvas(self, canvas):
        room = draw_room(canvas, 3, (0, 0), (10, 0))
        before = room.points
        canvas.tool_state.tool = Tools.MOVE
        gesture(canvas, (500, 500), (510, 510))
        assert room.points == before


class TestErase:
    def test_erase_shape(self, canvas):
        room = draw_room(canvas, 4, (0, 0), (100, 0))
        canvas.tool_state.tool = Tools.ERASE
        gesture(canvas, (50, 0))
        assert canvas.storage.get_all() == []
        assert room.state is ShapeState.ERASED
        assert canvas.storage.nodes() == []

    def test_press_on_control_point_does_not_erase(self, canvas):
        room = draw_room(canvas, 4, (0, 0), (100, 0))
        canvas.tool_state.tool = Tools.ERASE
        gesture(canvas, (100, 0))
        assert canvas.storage.get_all() == [room]

    def test_erase_drops_selected_points(self, canvas):
        draw_room(canvas, 3, (0, 0), (100, 0))
        canvas.tool_state.tool = Tools.SELECT
        gesture(canvas, (-200, -200), (200, 200))
        canvas.tool_state.tool = Tools.ERASE
        gesture(canvas, (50, 0))
        assert not canvas.storage.has_selection()


class TestPath:
    @pytest.fixture
    def rooms(self, canvas):
        a = draw_room(canvas, 4, (0, 0), (100, 0))
        b = draw_room(canvas, 4, (200, 0), (300, 0))
        return a, b

    def draw_path(self, canvas, start, end):
        canvas.tool_state.tool = Tools.PATH
        gesture(canvas, start, end)
        return canvas.storage.get_all()[-1]

    def test_path_connects_rooms(self, canvas, rooms):
        a, b = rooms
        path = self.draw_path(canvas, (50, 0), (250, 0))
        assert isinstance(path, Path)
        assert path.is_finalized
        release_end, press_end = path.control_points
        assert (release_end.x, release_end.y) == pytest.approx((250, 0))
        assert (press_end.x, press_end.y) == pytest.approx((50, 0))
        assert set(path.get_locks()) == {a, b}
        assert a.get_locks() == (press_end,)
        assert b.get_locks() == (release_end,)

    def test_moving_room_drags_its_path_end(self, canvas, rooms):
        a, b = rooms
        path = self.draw_path(canvas, (50, 0), (250, 0))
        release_end, press_end = path.control_points
        b_before = b.points

        canvas.tool_state.tool = Tools.MOVE
        gesture(canvas, (30, 20), (33, 24))
        assert (press_end.x, press_end.y) == pytest.approx((53, 4))
        assert (release_end.x, release_end.y) == pytest.approx((250, 0))
        assert b.points == b_before

    def test_moving_path_moves_both_rooms(self, canvas, rooms):
        a, b = rooms
        path = self.draw_path(canvas, (50, 0), (250, 0))
        a_before, b_before = a.points, b.points
        canvas.tool_state.tool = Tools.MOVE
        gesture(canvas, (150, 0), (150, 10))
        assert list(a.points) == pytest.approx([v + d for v, d in zip(a_before, (0, 10) * 4)])
        assert list(b.points) == pytest.approx([v + d for v, d in zip(b_before, (0, 10) * 4)])
        assert path.points[1] == pytest.approx(10)
        assert path.points[3] == pytest.approx(10)

    def test_path_from_empty_canvas_has_no_locks(self, canvas, rooms):
        path = self.draw_path(canvas, (150, 150), (250, 0))
        assert path.get_locks() == ()
        assert rooms[1].get_locks() == ()

    def test_path_to_nowhere(self, canvas, rooms):
        a, _ = rooms
        path = self.draw_path(canvas, (50, 0), (150, 300))
        assert path.get_locks() == (a,)
        assert a.get_locks() == (path.control_points[1],)

    def test_erasing_path_unlocks_rooms(self, canvas, rooms):
        a, b = rooms
        path = self.draw_path(canvas, (50, 0), (250, 0))
        canvas.storage.erase(path)
        assert a.get_locks() == ()
        assert b.get_locks() == ()

    def test_erasing_room_unlocks_path(self, canvas, rooms):
        a, b = rooms
        path = self.draw_path(canvas, (50, 0), (250, 0))
        canvas.storage.erase(b)
        assert path.get_locks() == (a,)
        path.translate(1, 1)


class TestDispatch:
    def test_door_is_noop(self, canvas):
        canvas.tool_state.tool = Tools.DOOR
        gesture(canvas, (0, 0), (10, 10))
        assert canvas.storage.get_all() == []

    def test_unknown_tool_is_loud(self, qapp):
        class BrokenState(ToolState):
            @property
            def tool(self):
                return "lasso"

        canvas = MapArea(BrokenState())
        with pytest.raises(UnsupportedToolError):
            canvas.press(0, 0)
        with pytest.raises(UnsupportedToolError):
            canvas.drag(0, 0)
        with pytest.raises(UnsupportedToolError):
            canvas.release(0, 0)

    def test_tool_is_read_at_each_phase(self, canvas):
        draw_room(canvas, 3, (0, 0), (10, 0))
        canvas.tool_state.tool = Tools.SELECT
        canvas.press(-20, -20)
        canvas.tool_state.tool = Tools.DOOR
        canvas.drag(30, 30)
        canvas.release(30, 30)
        assert not canvas.storage.has_selection()


class TestSerialization:
    def test_convert_round_trip(self, canvas):
        draw_room(canvas, 3, (0, 0), (10, 0))
        draw_room(canvas, 6, (20, 20), (40, 20))
        text = canvas.convert_to_string()
        assert text.count(os.linesep) == 9

        other = MapArea(ToolState())
        other.convert_from_lines(text.split(os.linesep))
        assert [s.sides for s in other.storage.get_all()] == [3, 6]
        assert [s.points for s in other.storage.get_all()] == pytest.approx(
            [s.points for s in canvas.storage.get_all()])
        assert all(isinstance(n, (PolyShape, ControlPoint)) for n in other.storage.nodes())

    def test_load_replaces_map(self, canvas):
        draw_room(canvas, 3, (0, 0), (10, 0))
        canvas.convert_from_lines([
            "sides 3",
            "fill #00FF00 1.000000",
            "stroke #808080 1.000000",
            "strokeWidth 3.0",
            "points 0.0 0.0 10.0 0.0 5.0 10.0",
        ])
        shapes = canvas.storage.get_all()
        assert len(shapes) == 1
        assert shapes[0].vertices() == [(0.0, 0.0), (10.0, 0.0), (5.0, 10.0)]

    def test_bad_load_keeps_map(self, canvas):
        room = draw_room(canvas, 3, (0, 0), (10, 0))
        with pytest.raises(MapFormatError):
            canvas.convert_from_lines(["sides 3", "oops"])
        assert canvas.storage.get_all() == [room]
        assert room.is_finalized

    def test_clear_map(self, canvas):
        draw_room(canvas, 3, (0, 0), (10, 0))
        canvas.clear_map()
        assert canvas.storage.get_all() == []
        assert canvas.convert_to_string() == ""
