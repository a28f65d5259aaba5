import csv
import io

import pytest
import yaml

from leapsql.scaffold import (
    ScaffoldError,
    init_example,
    init_project,
    write_file_if_not_exists,
)


@pytest.mark.parametrize(
    "name",
    ["leapsql.yaml", "models", "seeds", "macros", "models/staging", "models/marts"],
)
def test_init_empty_directory_creates_layout(tmp_path, name):
    init_project(tmp_path, out=io.StringIO())
    assert (tmp_path / name).exists()


def test_init_existing_config_without_force_fails(tmp_path):
    (tmp_path / "leapsql.yaml").write_text("existing")
    with pytest.raises(ScaffoldError, match="already exists"):
        init_project(tmp_path, out=io.StringIO())
    assert (tmp_path / "leapsql.yaml").read_text() == "existing"


def test_init_existing_config_with_force_overwrites(tmp_path):
    (tmp_path / "leapsql.yaml").write_text("existing")
    init_project(tmp_path, force=True, out=io.StringIO())
    assert (tmp_path / "models").is_dir()
    assert (tmp_path / "leapsql.yaml").read_text() != "existing"


def test_init_in_current_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    init_project(out=out)
    assert (tmp_path / "leapsql.yaml").is_file()
    assert "models/" in out.getvalue()


def test_init_creates_valid_config(tmp_path):
    init_project(tmp_path, out=io.StringIO())
    content = (tmp_path / "leapsql.yaml").read_text()
    for expected in ("models_dir: models", "seeds_dir: seeds", "macros_dir: macros", "state_path:"):
        assert expected in content
    data = yaml.safe_load(content)
    assert data["state_path"] == ".leapsql/state.db"
    assert data["database"] == ""


def test_init_creates_new_subdirectory(tmp_path):
    target = tmp_path / "my-project"
    written = init_project(target, out=io.StringIO())
    assert target / "leapsql.yaml" in written
    assert (target / "models" / "staging" / "stg_example.sql").is_file()
    assert ".leapsql/" in (target / ".gitignore").read_text()


def test_init_keeps_existing_model_without_force(tmp_path):
    model = tmp_path / "models" / "staging" / "stg_example.sql"
    model.parent.mkdir(parents=True)
    model.write_text("SELECT 42")
    written = init_project(tmp_path, out=io.StringIO())
    assert model.read_text() == "SELECT 42"
    assert model not in written


def test_init_reports_success(tmp_path):
    out = io.StringIO()
    init_project(tmp_path, out=out)
    text = out.getvalue()
    assert "LeapSQL project initialized!" in text
    assert "Next steps:" in text


def test_init_example_creates_all_files(tmp_path):
    written = init_example(tmp_path, out=io.StringIO())
    expected = [
        "leapsql.yaml",
        ".gitignore",
        "README.md",
        "seeds/raw_customers.csv",
        "seeds/raw_orders.csv",
        "seeds/raw_products.csv",
        "models/staging/stg_customers.sql",
        "models/staging/stg_orders.sql",
        "models/staging/stg_products.sql",
        "models/marts/dim_customers.sql",
        "models/marts/fct_orders.sql",
        "macros/utils.star",
    ]
    assert sorted(p.relative_to(tmp_path).as_posix() for p in written) == sorted(expected)
    for rel in expected:
        assert (tmp_path / rel).is_file()


@pytest.mark.parametrize(
    "name,rows", [("raw_customers.csv", 5), ("raw_orders.csv", 10), ("raw_products.csv", 5)]
)
def test_init_example_seed_row_counts(tmp_path, name, rows):
    init_example(tmp_path, out=io.StringIO())
    with open(tmp_path / "seeds" / name, newline="") as handle:
        records = list(csv.DictReader(handle))
    assert len(records) == rows
    assert records[0]["id"] == "1"


def test_init_example_config_uses_file_database(tmp_path):
    init_example(tmp_path, out=io.StringIO())
    data = yaml.safe_load((tmp_path / "leapsql.yaml").read_text())
    assert data["database"] == "warehouse.duckdb"
    assert data["models_dir"] == "models"


def test_init_example_output_lists_sections(tmp_path):
    out = io.StringIO()
    init_example(tmp_path, out=out)
    text = out.getvalue()
    for header in ("## Configuration", "## Seeds", "## Models", "## Macros"):
        assert header in text
    assert "(10 rows)" in text
    assert "LeapSQL project initialized with example data!" in text


def test_init_example_refuses_existing_config(tmp_path):
    (tmp_path / "leapsql.yaml").write_text("existing")
    with pytest.raises(ScaffoldError):
        init_example(tmp_path, out=io.StringIO())
    assert not (tmp_path / "README.md").exists()


def test_init_example_keeps_existing_files_without_force(tmp_path):
    readme = tmp_path / "README.md"
    readme.write_text("mine")
    written = init_example(tmp_path, out=io.StringIO())
    assert readme.read_text() == "mine"
    assert readme not in written


def test_init_example_force_overwrites(tmp_path):
    (tmp_path / "leapsql.yaml").write_text("existing")
    (tmp_path / "README.md").write_text("mine")
    init_example(tmp_path, force=True, out=io.StringIO())
    assert (tmp_path / "README.md").read_text().startswith("# LeapSQL Example Project")


def test_write_file_if_not_exists_writes_new_file(tmp_path):
    target = tmp_path / "a.txt"
    assert write_file_if_not_exists(target, "hello") is True
    assert target.read_text() == "hello"


def test_write_file_if_not_exists_skips_existing(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("old")
    assert write_file_if_not_exists(target, "new") is False
    assert target.read_text() == "old"


def test_write_file_if_not_exists_force(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("old")
    assert write_file_if_not_exists(target, "new", force=True) is True
    assert target.read_text() == "new"


def test_write_file_if_not_exists_missing_parent_raises(tmp_path):
    with pytest.raises(ScaffoldError, match="failed to create"):
        write_file_if_not_exists(tmp_path / "missing" / "a.txt", "x")