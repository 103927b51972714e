"""Benchmark: permission check latency, cold and cached.

Measures the per-call latency of AccessControlService.check_permission()
for a user holding several roles, once with caching disabled (every call
resolves roles and permissions) and once with caching enabled (every call
after the first is a cache hit).
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aumos_rbac import AccessControlService, Permission, PermissionAction, Role

_WARMUP: int = 100
_ITERATIONS: int = 5_000
_ROLE_COUNT: int = 8  # Roles held by the benchmarked user.


def _build_service(cache_enabled: bool) -> AccessControlService:
    """Build a service where ``bench-user`` holds ``_ROLE_COUNT`` roles."""
    service = AccessControlService({"cache_enabled": cache_enabled}, load_defaults=False)
    for i in range(_ROLE_COUNT):
        service.add_permission(
            Permission(
                id=f"update-{i}",
                name=f"Update {i}",
                action=PermissionAction.UPDATE,
                resource_type=f"resource-{i}",
            )
        )
        service.add_role(Role(id=f"role-{i}", name=f"Role {i}", permissions=(f"update-{i}",)))
        service.assign_role("bench-user", f"role-{i}")
    return service


def _measure(service: AccessControlService, operation: str) -> dict[str, object]:
    # Matches only the last role's permission, so every rule scans the full list.
    target = f"resource-{_ROLE_COUNT - 1}"

    for _ in range(_WARMUP):
        service.check_permission("bench-user", "update", target)

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        service.check_permission("bench-user", "update", target)
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    return {
        "operation": operation,
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }


def bench_check_latency_uncached() -> dict[str, object]:
    """Benchmark check_permission() with caching disabled."""
    return _measure(_build_service(cache_enabled=False), "check_permission_uncached")


def bench_check_latency_cached() -> dict[str, object]:
    """Benchmark check_permission() served from the result cache."""
    return _measure(_build_service(cache_enabled=True), "check_permission_cached")


def run_benchmark() -> dict[str, object]:
    """Entry point returning the uncached result with the cached p99 attached."""
    result = bench_check_latency_uncached()
    cached = bench_check_latency_cached()
    result["cached_avg_latency_ms"] = cached["avg_latency_ms"]
    result["cached_p99_latency_ms"] = cached["p99_latency_ms"]
    print(
        f"[bench_check_latency] {result['operation']}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms  "
        f"cached mean={result['cached_avg_latency_ms']:.4f}ms"
    )
    return result


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "check_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
