# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania
#
# REGION-PARALLEL SOBEL SCALING
# =============================
# Reference (1 region, no threads) vs N-region fan-out on 2D frames and
# 3-frame (x, y, t) windows.
# Checks: every partition bit-identical to the reference; wall time per
#         frame for each grid.

import sys
from pathlib import Path

# --------------- path bootstrap ---------------
_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(_ROOT / "src"))
FIGURES_DIR = _ROOT / "experiments" / "figures"
FIGURES_DIR.mkdir(parents=True, exist_ok=True)

# --------------- imports ----------------------
import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import time

from sobel.coordinator import ThreadCoordinator, compute_gradients, reference_gradients
from sobel.partition import grid_for_workers
from sobel.synthetic import moving_square, smooth_noise

# ============================================================
# GLOBAL SETTINGS
# ============================================================
SIZES = [(320, 240), (640, 480), (1280, 720)]
WORKERS = [1, 2, 4, 6, 8, 12]
N_REPEATS = 5


def time_call(fn, repeats: int = N_REPEATS) -> float:
    """Median wall time of fn() in milliseconds."""
    samples = []
    for _ in range(repeats):
        t0 = time.perf_counter()
        fn()
        samples.append((time.perf_counter() - t0) * 1000.0)
    return float(np.median(samples))


def identical(a, b) -> bool:
    planes_a, planes_b = a.planes(), b.planes()
    return all(np.array_equal(planes_a[k], planes_b[k])
               for k in ("gx", "gy", "gt", "magnitude") if k in planes_a)


if __name__ == "__main__":
    t0 = time.time()
    results = {"2D": {}, "3D": {}}

    print("=" * 70, flush=True)
    print("REGION-PARALLEL SOBEL: REFERENCE VS FAN-OUT", flush=True)
    print(f"  Sizes: {SIZES}", flush=True)
    print(f"  Workers: {WORKERS}", flush=True)
    print(f"  Repeats: {N_REPEATS}", flush=True)
    print("=" * 70, flush=True)

    with ThreadCoordinator() as coord:
        for w, h in SIZES:
            still = (smooth_noise(w, h, sigma=3.0, seed=1),)
            window = tuple(moving_square(w, h, n_frames=3, size=h // 4, step=5))

            for label, frames in (("2D", still), ("3D", window)):
                ref = reference_gradients(frames)
                t_ref = time_call(lambda: reference_gradients(frames))
                row = {"ref": t_ref}
                print(f"\n  {label} {w}x{h}: reference {t_ref:8.2f} ms", flush=True)
                for n in WORKERS:
                    grid = grid_for_workers(n)
                    out = compute_gradients(frames, grid=grid, coordinator=coord)
                    same = identical(ref, out)
                    t = time_call(lambda: compute_gradients(frames, grid=grid, coordinator=coord))
                    row[n] = t
                    print(f"    {n:2d} workers grid={grid[0]}x{grid[1]:<2d} "
                          f"{t:8.2f} ms  speedup={t_ref / t:5.2f}x  "
                          f"identical={'YES' if same else 'NO'}", flush=True)
                    if not same:
                        print("    !! parallel output differs from reference", flush=True)
                results[label][(w, h)] = row

    # =====================================================
    # FIGURE
    # =====================================================
    fig, axes = plt.subplots(1, 2, figsize=(12, 4.5))
    for ax, label in zip(axes, ("2D", "3D")):
        for (w, h), row in results[label].items():
            speedup = [row["ref"] / row[n] for n in WORKERS]
            ax.plot(WORKERS, speedup, "o-", label=f"{w}x{h}", markersize=4)
        ax.plot(WORKERS, WORKERS, "k--", alpha=0.3, label="linear")
        ax.set_xlabel("Workers (regions)"); ax.set_ylabel("Speedup vs reference")
        ax.set_title(f"{label} Sobel")
        ax.legend(fontsize=7); ax.grid(True, alpha=0.3)
    fig.suptitle("Region fan-out scaling", fontsize=11, fontweight="bold")
    plt.tight_layout()
    out_path = FIGURES_DIR / "parallel_scaling.png"
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"\n  ✓ {out_path.name}", flush=True)

    print(f"\n✓ Total runtime: {time.time()-t0:.1f}s", flush=True)
