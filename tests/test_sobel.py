# -*- coding: utf-8 -*-
"""Tests for the sobel gradient engine."""

import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Allow imports from src/
_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(_ROOT / "src"))

import numpy as np
import pytest
from scipy.ndimage import correlate

import sobel.coordinator as coordinator_mod
from sobel.coordinator import ThreadCoordinator, compute_gradients, reference_gradients
from sobel.errors import InsufficientFramesError, PartitionError, WorkerFailure
from sobel.fields import GradientField, Task
from sobel.kernels import AXES_2D, AXES_3D, SOBEL, GradientKernel
from sobel.normalize import normalize_to_u8, visualize
from sobel.partition import (Region, check_partition, grid_for_workers, interior_bounds,
                             partition_interior, split_axis, strips)
from sobel.synthetic import (STILLS, disc, horizontal_step, moving_square, smooth_noise,
                             static_sequence, uniform, vertical_step)
from sobel.worker import run_task


SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]])
SOBEL_Y = np.array([[-1, -2, -1],
                    [0, 0, 0],
                    [1, 2, 1]])


def _covered(regions):
    seen = []
    for r in regions:
        seen.extend((x, y) for y in range(r.y0, r.y1) for x in range(r.x0, r.x1))
    return seen


# ============================================================
# kernels.py
# ============================================================

class TestGradientKernel:
    def test_2d_outer_products_match_textbook_masks(self):
        np.testing.assert_array_equal(SOBEL.dense("x", AXES_2D), SOBEL_X)
        np.testing.assert_array_equal(SOBEL.dense("y", AXES_2D), SOBEL_Y)

    def test_3d_dense_is_product_of_three_axes(self):
        gt = SOBEL.dense("t", AXES_3D)
        assert gt.shape == (3, 3, 3)
        np.testing.assert_array_equal(gt[0], -np.outer([1, 2, 1], [1, 2, 1]))
        np.testing.assert_array_equal(gt[1], np.zeros((3, 3)))
        np.testing.assert_array_equal(gt[2], np.outer([1, 2, 1], [1, 2, 1]))
        gx = SOBEL.dense("x", AXES_3D)
        np.testing.assert_array_equal(gx[1], 2 * SOBEL_X)

    def test_weight_is_product_of_1d_weights(self):
        # dx=+1, dy=-1, dt=0: deriv_x(+1) * smooth_y(-1) * smooth_t(0) = 1 * 1 * 2
        assert SOBEL.weight("x", AXES_3D, (1, -1, 0)) == 2
        assert SOBEL.weight("t", AXES_3D, (0, 0, -1)) == -4
        assert SOBEL.weight("y", AXES_2D, (0, 0)) == 0

    def test_taps_cover_neighborhood(self):
        taps_2d = list(SOBEL.taps(AXES_2D))
        taps_3d = list(SOBEL.taps(AXES_3D))
        # only the center offset has zero weight for every component
        assert len(taps_2d) == 8
        assert len(taps_3d) == 26
        assert all(len(off) == 3 for off, _ in taps_3d)

    def test_axis_weights_rejects_unknown_component(self):
        with pytest.raises(ValueError):
            SOBEL.axis_weights("t", AXES_2D)

    def test_bad_tap_count(self):
        with pytest.raises(ValueError):
            GradientKernel(smooth=(1, 2, 2, 1))


# ============================================================
# partition.py
# ============================================================

class TestPartition:
    @pytest.mark.parametrize("width,height", [(3, 3), (4, 3), (5, 9), (17, 11), (64, 48)])
    @pytest.mark.parametrize("grid", [(1, 1), (2, 2), (3, 2), (1, 5), (4, 4), (7, 3)])
    def test_exact_cover(self, width, height, grid):
        regions = partition_interior(width, height, grid)
        check_partition(regions, width, height)
        seen = _covered(regions)
        interior = {(x, y) for y in range(1, height - 1) for x in range(1, width - 1)}
        assert len(seen) == len(set(seen)), "regions overlap"
        assert set(seen) == interior
        assert all(not r.empty for r in regions)

    def test_default_is_quadrants_at_midpoints(self):
        regions = partition_interior(64, 48)
        assert len(regions) == 4
        assert regions[0] == Region(1, 32, 1, 24)
        assert regions[1] == Region(32, 63, 1, 24)
        assert regions[2] == Region(1, 32, 24, 47)
        assert regions[3] == Region(32, 63, 24, 47)

    def test_odd_size_midpoints(self):
        regions = partition_interior(65, 49)
        assert regions[0].x1 == 65 // 2
        assert regions[0].y1 == 49 // 2

    def test_degenerate_axis_collapses(self):
        # interior width is 1 sample: no column split
        regions = partition_interior(3, 10, (2, 2))
        assert len(regions) == 2
        assert all(r.x0 == 1 and r.x1 == 2 for r in regions)

    def test_no_interior(self):
        assert partition_interior(2, 10) == []
        check_partition([], 2, 10)

    def test_split_axis(self):
        assert split_axis(1, 9, 2) == [(1, 5), (5, 9)]
        assert split_axis(1, 4, 8) == [(1, 2), (2, 3), (3, 4)]
        assert split_axis(5, 5, 3) == []
        with pytest.raises(ValueError):
            split_axis(0, 10, 0)

    def test_strips(self):
        regions = strips(20, 12, 5)
        assert len(regions) == 5
        assert all(r.x0 == 1 and r.x1 == 19 for r in regions)

    @pytest.mark.parametrize("n,grid", [(1, (1, 1)), (4, (2, 2)), (6, (3, 2)),
                                        (7, (7, 1)), (8, (4, 2)), (16, (4, 4))])
    def test_grid_for_workers(self, n, grid):
        assert grid_for_workers(n) == grid

    def test_overlap_detected(self):
        regions = partition_interior(20, 20)
        bad = regions + [Region(5, 6, 5, 6)]
        with pytest.raises(PartitionError):
            check_partition(bad, 20, 20)

    def test_gap_detected(self):
        regions = partition_interior(20, 20)[:-1]
        with pytest.raises(PartitionError):
            check_partition(regions, 20, 20)

    def test_border_region_rejected(self):
        with pytest.raises(PartitionError):
            check_partition([Region(0, 19, 1, 19)], 20, 20)


# ============================================================
# worker.py / coordinator.py
# ============================================================

class TestGradients2D:
    def test_uniform_is_zero(self):
        f = compute_gradients((uniform(40, 30, 77),))
        for plane in (f.gx, f.gy, f.magnitude):
            assert not plane.any()
        assert f.gt is None

    def test_vertical_step(self):
        img = vertical_step(64, 32)
        f = compute_gradients((img,))
        rows = slice(1, 31)
        np.testing.assert_array_equal(f.gx[rows, 31], 4 * 255)
        np.testing.assert_array_equal(f.gx[rows, 32], 4 * 255)
        assert not f.gx[rows, 1:30].any()
        assert not f.gx[rows, 34:63].any()
        assert not f.gy.any()
        np.testing.assert_array_equal(f.magnitude[rows, 31], 4 * 255)
        np.testing.assert_allclose(f.direction[rows, 31], 0.0)

    def test_horizontal_step_direction(self):
        f = compute_gradients((horizontal_step(32, 64),))
        cols = slice(1, 31)
        np.testing.assert_array_equal(f.gy[31, cols], 4 * 255)
        assert not f.gx.any()
        np.testing.assert_allclose(f.direction[31, cols], np.pi / 2, rtol=1e-6)

    def test_direction_range(self):
        f = compute_gradients((smooth_noise(48, 40, seed=3),))
        inner = f.direction[1:-1, 1:-1]
        assert inner.min() > -np.pi
        assert inner.max() <= np.float32(np.pi)

    def test_negative_x_gradient_direction_is_pi(self):
        img = vertical_step(16, 16, low=255, high=0)
        f = compute_gradients((img,))
        np.testing.assert_allclose(f.direction[1:-1, 7], np.pi, rtol=1e-6)

    def test_border_untouched(self):
        f = compute_gradients((disc(33, 27, radius=20),))
        for plane in f.planes().values():
            assert not plane[0, :].any() and not plane[-1, :].any()
            assert not plane[:, 0].any() and not plane[:, -1].any()

    @pytest.mark.parametrize("name", list(STILLS.keys()))
    def test_matches_dense_correlation(self, name):
        img = STILLS[name](37, 29)
        f = reference_gradients((img,))
        ref_x = correlate(img.astype(np.float64), SOBEL_X.astype(np.float64), mode="nearest")
        ref_y = correlate(img.astype(np.float64), SOBEL_Y.astype(np.float64), mode="nearest")
        np.testing.assert_array_equal(f.gx[1:-1, 1:-1], ref_x[1:-1, 1:-1])
        np.testing.assert_array_equal(f.gy[1:-1, 1:-1], ref_y[1:-1, 1:-1])


class TestGradients3D:
    def test_identical_frames_have_zero_gt(self):
        frames = tuple(static_sequence(disc(40, 40), 3))
        f = compute_gradients(frames)
        assert f.temporal
        assert not f.gt.any()
        assert f.direction is None
        # spatial parts are the 2D response scaled by the temporal smoothing sum
        f2 = reference_gradients(frames[1:2])
        np.testing.assert_array_equal(f.gx, 4 * f2.gx)

    def test_linear_ramp_in_time(self):
        frames = (uniform(20, 20, 40), uniform(20, 20, 120), uniform(20, 20, 200))
        f = compute_gradients(frames)
        np.testing.assert_array_equal(f.gt[1:-1, 1:-1], 16 * 160)
        assert not f.gx.any() and not f.gy.any()
        np.testing.assert_array_equal(f.magnitude[1:-1, 1:-1], 16 * 160)

    def test_matches_dense_correlation(self):
        frames = moving_square(30, 24, n_frames=3, size=8, step=3)
        vol = np.stack(frames).astype(np.float64)
        f = reference_gradients(tuple(frames))
        for comp, plane in (("x", f.gx), ("y", f.gy), ("t", f.gt)):
            dense = SOBEL.dense(comp, AXES_3D).astype(np.float64)
            ref = correlate(vol, dense, mode="nearest")[1]
            np.testing.assert_array_equal(plane[1:-1, 1:-1], ref[1:-1, 1:-1])


class TestParallelInvariance:
    @pytest.mark.parametrize("grid", [(1, 1), (2, 2), (3, 5), (7, 1), (1, 6), (4, 4)])
    def test_2d_bit_identical(self, grid):
        img = smooth_noise(53, 41, seed=7)
        ref = reference_gradients((img,))
        out = compute_gradients((img,), grid=grid)
        for k in ("gx", "gy", "magnitude"):
            np.testing.assert_array_equal(getattr(out, k), getattr(ref, k))
        np.testing.assert_allclose(out.direction, ref.direction, atol=1e-6)

    @pytest.mark.parametrize("grid", [(1, 1), (2, 2), (5, 3), (8, 1)])
    def test_3d_bit_identical(self, grid):
        frames = tuple(moving_square(47, 35, n_frames=3, size=10, step=4))
        ref = reference_gradients(frames)
        out = compute_gradients(frames, grid=grid)
        for k in ("gx", "gy", "gt", "magnitude"):
            np.testing.assert_array_equal(getattr(out, k), getattr(ref, k))

    def test_coordinator_reused_across_frames(self):
        frames = moving_square(32, 32, n_frames=5)
        with ThreadCoordinator() as coord:
            for img in frames:
                out = compute_gradients((img,), grid=(2, 3), coordinator=coord)
                np.testing.assert_array_equal(out.gx, reference_gradients((img,)).gx)


class TestWorker:
    def test_writes_only_its_region(self):
        img = smooth_noise(30, 30, seed=1)
        field = GradientField.allocate(img.shape)
        for plane in field.planes().values():
            plane.fill(-7.0)
        region = Region(5, 12, 8, 20)
        run_task(Task(region, SOBEL, (img,), field))
        mask = np.zeros(img.shape, dtype=bool)
        mask[region.slices()] = True
        for plane in field.planes().values():
            assert np.all(plane[~mask] == -7.0)
        assert np.any(field.magnitude[mask] != -7.0)

    def test_empty_region_is_noop(self):
        img = uniform(10, 10)
        field = GradientField.allocate(img.shape)
        run_task(Task(Region(3, 3, 1, 9), SOBEL, (img,), field))
        assert not field.magnitude.any()


class TestCoordinatorFailures:
    def test_pool_cannot_start_worker(self):
        img = uniform(20, 20)
        coord = ThreadCoordinator()
        dead = ThreadPoolExecutor(max_workers=1)
        dead.shutdown()
        coord._pool, coord._pool_size = dead, 64
        field = GradientField.allocate(img.shape)
        with pytest.raises(WorkerFailure):
            coord.dispatch((img,), partition_interior(20, 20), field)

    def test_worker_exception_is_fatal(self, monkeypatch):
        def broken(task):
            if task.region.x0 > 1:
                raise MemoryError("boom")
            return task.region

        monkeypatch.setattr(coordinator_mod, "run_task", broken)
        img = uniform(20, 20)
        with ThreadCoordinator() as coord:
            with pytest.raises(WorkerFailure):
                coord.dispatch((img,), partition_interior(20, 20),
                               GradientField.allocate(img.shape))

    def test_frames_are_read_only_to_workers(self, monkeypatch):
        def scribble(task):
            task.frames[0][task.region.slices()] = 0
            return task.region

        monkeypatch.setattr(coordinator_mod, "run_task", scribble)
        img = uniform(12, 12, 9)
        with ThreadCoordinator() as coord:
            with pytest.raises(WorkerFailure):
                coord.dispatch((img,), partition_interior(12, 12),
                               GradientField.allocate(img.shape))
        assert np.all(img == 9)

    def test_rejects_mismatched_frames(self):
        with pytest.raises(ValueError):
            compute_gradients((uniform(10, 10), uniform(10, 12), uniform(10, 10)))
        with pytest.raises(ValueError):
            compute_gradients((uniform(10, 10), uniform(10, 10)))


class TestErrors:
    def test_insufficient_frames_message(self):
        err = InsufficientFramesError(3, 2)
        assert err.required == 3 and err.available == 2
        assert "3" in str(err)


# ============================================================
# normalize.py
# ============================================================

class TestNormalize:
    def test_constant_maps_to_zero(self):
        out = normalize_to_u8(np.full((8, 8), 3.5, dtype=np.float32))
        assert out.dtype == np.uint8
        assert not out.any()

    def test_all_zero(self):
        out = normalize_to_u8(np.zeros((4, 5), dtype=np.float32), absolute=True)
        assert not out.any()

    def test_linear_range(self):
        out = normalize_to_u8(np.array([0.0, 0.5, 1.0]))
        np.testing.assert_array_equal(out, [0, 128, 255])

    def test_absolute(self):
        out = normalize_to_u8(np.array([-10.0, 0.0, 5.0]), absolute=True)
        np.testing.assert_array_equal(out, [255, 0, 128])

    def test_uniform_pipeline_is_all_zero(self):
        vis = visualize(compute_gradients((uniform(16, 16, 200),)))
        assert set(vis) == {"gx", "gy", "magnitude", "direction"}
        for img in vis.values():
            assert img.dtype == np.uint8
            assert not img.any()

    def test_visualize_3d_channels(self):
        frames = tuple(moving_square(24, 24, n_frames=3))
        vis = visualize(compute_gradients(frames))
        assert list(vis) == ["gx", "gy", "gt", "magnitude"]
        assert vis["gt"].max() == 255

    def test_interior_bounds(self):
        assert interior_bounds(10, 6) == Region(1, 9, 1, 5)
        assert interior_bounds(2, 2).empty
