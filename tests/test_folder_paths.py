"""Tests for folder path resolution."""

from sfmc_graph.crawler.context import CrawlContext
from sfmc_graph.crawler.folder_paths import FolderPathResolver
from sfmc_graph.types.entities import Automation, DataExtension, Folder, Journey


def folders(*entries: tuple[str, str, str]) -> dict[str, Folder]:
    return {folder_id: Folder(id=folder_id, name=name, parent_id=parent) for folder_id, name, parent in entries}


class TestBuildPath:
    """Walking parent references."""

    def test_two_levels(self):
        resolver = FolderPathResolver(folders(("1", "A", "0"), ("2", "B", "1")))

        assert resolver.build_path("2") == "A/B"
        assert resolver.build_path("1") == "A"

    def test_deep_path(self):
        resolver = FolderPathResolver(
            folders(
                ("1", "Data Extensions", "0"),
                ("2", "Marketing", "1"),
                ("3", "2025", "2"),
            )
        )

        assert resolver.build_path("3") == "Data Extensions/Marketing/2025"

    def test_root_and_empty_ids(self):
        resolver = FolderPathResolver(folders(("1", "A", "0")))

        assert resolver.build_path("0") == ""
        assert resolver.build_path("") == ""
        assert resolver.build_path(None) == ""

    def test_unknown_folder(self):
        resolver = FolderPathResolver(folders(("1", "A", "0")))

        assert resolver.build_path("99") == ""
        assert resolver.get_missing_folders() == {"99"}

    def test_missing_parent_ends_walk(self):
        resolver = FolderPathResolver(folders(("2", "B", "1")))

        assert resolver.build_path("2") == "B"
        assert resolver.get_missing_folders() == {"1"}

    def test_cycle_terminates(self):
        resolver = FolderPathResolver(folders(("A", "A", "B"), ("B", "B", "A")))

        assert resolver.build_path("A") == "B/A"
        assert resolver.get_cyclic_folders() == {"A"}

    def test_self_parent(self):
        resolver = FolderPathResolver(folders(("1", "Loop", "1")))

        assert resolver.build_path("1") == "Loop"
        assert resolver.get_cyclic_folders() == {"1"}

    def test_names_trimmed(self):
        resolver = FolderPathResolver(folders(("1", " A ", "0"), ("2", "B ", "1")))

        assert resolver.build_path("2") == "A/B"

    def test_blank_names_skipped(self):
        resolver = FolderPathResolver(folders(("1", "A", "0"), ("2", "  ", "1"), ("3", "C", "2"), ("4", "", "3")))

        assert resolver.build_path("3") == "A/C"
        assert resolver.build_path("4") == "A/C"
        assert resolver.build_path("2") == "A"

    def test_blank_names_count_toward_depth(self):
        resolver = FolderPathResolver(folders(("1", "A", "0"), ("2", "", "1"), ("3", "C", "2")), max_depth=2)

        assert resolver.build_path("3") == "C"

    def test_custom_separator(self):
        resolver = FolderPathResolver(folders(("1", "A", "0"), ("2", "B", "1")), separator=" > ")

        assert resolver.build_path("2") == "A > B"

    def test_depth_limit(self):
        chain = folders(*[(str(i), f"F{i}", str(i - 1)) for i in range(1, 11)])
        resolver = FolderPathResolver(chain, max_depth=3)

        assert resolver.build_path("10") == "F8/F9/F10"

    def test_memoized(self):
        data = folders(("1", "A", "0"), ("2", "B", "1"))
        resolver = FolderPathResolver(data)
        assert resolver.build_path("2") == "A/B"

        data["1"].name = "Renamed"

        assert resolver.build_path("2") == "A/B"


class TestApply:
    def test_sets_folder_path_on_entities(self):
        ctx = CrawlContext(folders=folders(("1", "Shared", "0"), ("2", "Audiences", "1")))
        ctx.data_extensions["D1"] = DataExtension(id="D1", name="Orders", folder_id="2")
        ctx.automations["A1"] = Automation(id="A1", name="Nightly", folder_id="1")
        ctx.journeys["J1"] = Journey(id="J1", name="Welcome", folder_id="404")

        FolderPathResolver(ctx.folders).apply(ctx)

        assert ctx.data_extensions["D1"].folder_path == "Shared/Audiences"
        assert ctx.automations["A1"].folder_path == "Shared"
        assert ctx.journeys["J1"].folder_path == ""
