import argparse
import statistics
import time

from acltree import Acl


def build(depth: int, fanout: int) -> Acl:
    """Resource chain of *depth* levels and a role with *fanout* parents."""
    acl = Acl()
    parents = []
    for i in range(fanout):
        acl.add_role(f"base_{i}")
        parents.append(f"base_{i}")
    acl.add_role("user", parents)

    prev = None
    for i in range(depth):
        acl.add_resource(f"node_{i}", prev)
        prev = f"node_{i}"

    # the only applicable rule sits at the root, on the first-declared parent
    acl.allow("base_0", "node_0", "read")
    return acl


def run(depth: int, fanout: int, iters: int):
    acl = build(depth, fanout)
    leaf = f"node_{depth - 1}"
    lat = []
    for _ in range(iters):
        t0 = time.perf_counter()
        allowed = acl.is_allowed("user", leaf, "read")
        lat.append((time.perf_counter() - t0) * 1000.0)
    return {
        "p50": statistics.median(lat),
        "avg": sum(lat) / len(lat),
        "p90": percentile(lat, 90),
        "allowed": allowed,
    }


def percentile(arr, p):
    arr2 = sorted(arr)
    k = int(round((p / 100.0) * (len(arr2) - 1)))
    return arr2[k]


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--depths", type=int, nargs="+", default=[1, 10, 50, 100])
    ap.add_argument("--fanout", type=int, default=4)
    ap.add_argument("--iters", type=int, default=200)
    args = ap.parse_args()
    print("depth,fanout,avg_ms,p50_ms,p90_ms,allowed")
    for d in args.depths:
        r = run(d, args.fanout, args.iters)
        print(f"{d},{args.fanout},{r['avg']:.3f},{r['p50']:.3f},{r['p90']:.3f},{r['allowed']}")


if __name__ == "__main__":
    main()
