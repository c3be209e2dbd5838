from evalq.utils.paths import ensure_dir, output_filename, safe_name, staged_filename


def test_staged_name_is_unique_per_job():
    a = staged_filename("Ana Pérez", "j1")
    b = staged_filename("Ana Pérez", "j2")
    assert a != b
    assert a == "Ana_Pérez_j1.ipynb"


def test_safe_name_strips_path_tricks():
    assert "/" not in safe_name("../../etc/passwd")
    assert staged_filename("", "abc", ".py") == "submission_abc.py"


def test_output_name_replaces_extension():
    assert output_filename("ana_j1.ipynb") == "ana_j1_output.txt"


def test_ensure_dir(tmp_path):
    p = ensure_dir(tmp_path / "a" / "b")
    assert p.is_dir()
