from io import StringIO

from heapref import ObjectGraph
from heapref.reporters.top import UNREACHABLE
from heapref.reporters.top import Bucket
from heapref.reporters.top import TopReporter
from heapref.reporters.top import find_root_owners
from tests.utils import MockHeapGraph


def _session_graph():
    provider = MockHeapGraph()
    cache = provider.add_global("main.cache", 0x100)
    pool = provider.add_global("main.pool", 0x200)
    worker = provider.add_goroutine(0xC000)

    table = provider.add_object(0x1000, 64, "main.table")
    provider.add_root_pointer(cache, table, "entries")
    for i in range(3):
        session = provider.add_object(0x2000 + i * 0x100, 100, "main.Session")
        provider.add_pointer(table, session, f"[{i}]")

    free = provider.add_object(0x3000, 300, "main.Session")
    provider.add_root_pointer(pool, free, "free")

    local = provider.add_object(0x4000, 50, "main.Session")
    provider.add_root_pointer(worker, local, "main.serve.s")

    provider.add_object(0x5000, 7, "main.Session")
    provider.add_object(0x6000, 1000, "main.Other")
    return provider


def _reporter(provider, object_type="main.Session", **kwargs):
    graph = ObjectGraph.from_provider(provider)
    return TopReporter.from_graph(provider, graph, object_type, **kwargs)


class TestFindRootOwners:
    def test_first_link_out_of_the_root_is_kept(self):
        provider = _session_graph()
        graph = ObjectGraph.from_provider(provider)

        owners = find_root_owners(graph)

        root, link = owners[0x2100]
        assert (root.name, link) == ("main.cache", "entries")
        root, link = owners[0x100]
        assert (root.name, link) == ("main.cache", None)
        assert 0x5000 not in owners

    def test_globals_are_searched_before_goroutines(self):
        # GIVEN
        provider = MockHeapGraph()
        shared = provider.add_object(0x1000, 8)
        goroutine = provider.add_goroutine(0xC000)
        provider.add_root_pointer(goroutine, shared, "local")
        root = provider.add_global("main.g", 0x100)
        provider.add_root_pointer(root, shared, "field")
        graph = ObjectGraph.from_provider(provider)

        # WHEN
        owners = find_root_owners(graph)

        # THEN
        root, link = owners[0x1000]
        assert (root.name, link) == ("main.g", "field")

    def test_deep_global_path_beats_shallow_goroutine_path(self):
        # GIVEN
        provider = MockHeapGraph()
        a = provider.add_object(0x1000, 1, "main.A")
        b = provider.add_object(0x2000, 1, "main.B")
        shared = provider.add_object(0x3000, 50, "main.Shared")
        provider.add_pointer(a, b)
        provider.add_pointer(b, shared)
        goroutine = provider.add_goroutine(0xC000)
        provider.add_root_pointer(goroutine, shared, "local")
        root = provider.add_global("main.g", 0x100)
        provider.add_root_pointer(root, a, "head")
        graph = ObjectGraph.from_provider(provider)

        # WHEN
        owners = find_root_owners(graph)
        reporter = TopReporter.from_graph(provider, graph, "main.Shared")
        graph.build_forest()
        graph.compute_retained_sizes()

        # THEN
        root, link = owners[0x3000]
        assert (root.name, link) == ("main.g", "head")
        assert reporter.buckets == [Bucket(count=1, total=50, info="main.g\nhead")]
        assert graph.global_roots[0].retained_size == 52
        assert graph.goroutine_roots[0].retained_size == 0


class TestTopReporter:
    def test_groups_objects_by_root_path(self):
        reporter = _reporter(_session_graph())

        assert reporter.buckets == [
            Bucket(count=3, total=300, info="main.cache\nentries"),
            Bucket(count=1, total=300, info="main.pool\nfree"),
            Bucket(count=1, total=50, info="goc000\nmain.serve.s"),
            Bucket(count=1, total=7, info=UNREACHABLE),
        ]

    def test_top_limits_the_groups(self):
        reporter = _reporter(_session_graph(), top=2)

        assert [bucket.info for bucket in reporter.buckets] == [
            "main.cache\nentries",
            "main.pool\nfree",
        ]

    def test_non_positive_top_shows_everything(self):
        assert len(_reporter(_session_graph(), top=0).buckets) == 4
        assert len(_reporter(_session_graph(), top=-1).buckets) == 4

    def test_min_total_hides_small_groups(self):
        reporter = _reporter(_session_graph(), min_total=100)

        assert [bucket.total for bucket in reporter.buckets] == [300, 300]

    def test_unknown_type_yields_no_groups(self):
        assert _reporter(_session_graph(), "main.Missing").buckets == []

    def test_render(self):
        # GIVEN
        reporter = TopReporter(
            "main.Session",
            [
                Bucket(count=3, total=3072, info="main.cache\nentries"),
                Bucket(count=1, total=50, info="goc000"),
            ],
        )
        output = StringIO()

        # WHEN
        reporter.render(file=output)

        # THEN
        lines = [line.rstrip() for line in output.getvalue().splitlines()]
        assert lines[0] == "Object type : [main.Session], reference path info"
        assert lines[1].split() == ["Count", "Total", "Info"]
        assert lines[2].split() == ["3", "3.00KB", "main.cache"]
        assert lines[3].split() == ["entries"]
        assert lines[3].index("entries") == lines[2].index("main.cache")
        assert lines[4].split() == ["1", "50.00B", "goc000"]
