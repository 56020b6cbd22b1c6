from checksum_archiver.system import check_resources, optimal_threads, tree_size


def test_tree_size_counts_regular_files(source_tree):
    assert tree_size(source_tree) == len("alpha\n") * 2 + 256 * 64 + len("spaced\n")


def test_optimal_threads_is_bounded():
    n = optimal_threads(cap=3)
    assert 1 <= n <= 3


def test_check_resources_warns_on_small_scratch(tmp_path, capsys):
    warnings = check_resources(tmp_path / "not-yet-created", needed_bytes=1 << 60)
    assert any("scratch space" in w for w in warnings)
    assert "Low scratch space" in capsys.readouterr().out


def test_check_resources_quiet_when_nothing_needed(tmp_path):
    warnings = check_resources(tmp_path, needed_bytes=0, min_ram_gb=0)
    assert warnings == []
