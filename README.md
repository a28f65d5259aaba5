# leapsql

Building blocks for a SQL transformation project. SQL models depend on
one another. leapsql stores those dependencies in a graph and works out
the order the models run in and which of them can run side by side. It
also traces lineage upstream and downstream, reads project configuration
and creates new project skeletons.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Command line

The `leapsql` command has three subcommands.

Print the version:

```
leapsql version
leapsql --version
```

Create a minimal project in the current directory, or in a directory you
name:

```
leapsql init
leapsql init my-project
```

This creates `models/` (with `staging/` and `marts/`), `seeds/`,
`macros/`, a `leapsql.yaml` configuration file, a sample model at
`models/staging/stg_example.sql` and a `.gitignore`.

`--example` creates a complete example project instead. It holds three
seed CSV files, three staging models, two mart models, a `macros/utils.star`
file and a README:

```
leapsql init --example
```

If `leapsql.yaml` already exists, `init` stops with an error unless you
pass `--force`. With `--force` the existing files are overwritten:

```
leapsql init --force
```

Print a shell completion script for `bash`, `zsh`, `fish` or
`powershell`:

```
leapsql completion bash
```

Global options, accepted before or after the subcommand: `--config`,
`--models-dir`, `--seeds-dir`, `--macros-dir`, `--database`, `--state`,
`--env`, `-v/--verbose` and `-o/--output` (`auto`, `text`, `markdown` or
`json`). `version` and `init` load the configuration first. If it cannot
be read, the command prints `Error: ...` and exits with status 1. With
`--verbose`, the command reports the configuration file it used on
standard error.

To see every option:

```
leapsql --help
```

## Configuration

`leapsql.config.load_config(cfg_file, overrides, environ)` returns a
`Config`.

If `cfg_file` is not given, it reads the first of these files that it
finds: `leapsql.yaml`, `leapsql.yml`, `.leapsql.yaml` or `.leapsql.yml`
in the current directory, then `~/.leapsql/leapsql.yaml` and
`~/.leapsql/leapsql.yml`.

Values are resolved in this order, highest first:

1. explicit overrides
2. non-empty `LEAPSQL_*` environment variables
3. the file
4. the defaults

| key          | default             |
|--------------|---------------------|
| models_dir   | `models`            |
| seeds_dir    | `seeds`             |
| macros_dir   | `macros`            |
| database     | empty               |
| state_path   | `.leapsql/state.db` |
| environment  | `dev`               |
| verbose      | `false`             |
| output       | `auto`              |

The file may have an `environments` mapping. The entry for the selected
environment can override `database`, `models_dir`, `seeds_dir` and
`macros_dir`.

```python
from leapsql.config import load_config

config = load_config(None, {"models_dir": "models"}, {})
config.validate()              # ConfigError if models_dir is empty
config.validate_directories()  # ConfigError if the models directory is missing
print(config.models_dir, config.state_path)
```

## Dependency graphs

In `leapsql.dag.Graph`, an edge from a parent to a child means the child
depends on the parent.

```python
from leapsql.dag import Graph

graph = Graph()
for name in ("raw_orders", "stg_orders", "fct_orders"):
    graph.add_node(name, None)
graph.add_edge("raw_orders", "stg_orders")
graph.add_edge("stg_orders", "fct_orders")

print(graph.execution_levels())
# [['raw_orders'], ['stg_orders'], ['fct_orders']]

print(graph.affected_nodes(["stg_orders"]))
# ['fct_orders', 'stg_orders']

print(graph.upstream_nodes("fct_orders"))
# ['raw_orders', 'stg_orders']
```

`Graph` also has these methods:

- `topological_sort()`
- `find_cycle()`
- `roots()` and `leaves()`
- `parents()` and `children()`
- `subgraph()`
- `node_count()` and `edge_count()`

Errors:

- `topological_sort()` and `execution_levels()` raise `CycleError` on a cyclic graph.
- `add_edge()` raises `GraphError` for a missing node or a self-loop.

## Lineage

`leapsql.lineage` walks a graph upstream or downstream, optionally to a
limited depth. A depth of `0` means no limit.

```python
from leapsql.lineage import upstream_with_depth, downstream_with_depth, node_type

upstream_with_depth(graph, "fct_orders", 1)    # ['stg_orders']
downstream_with_depth(graph, "raw_orders", 0)  # ['fct_orders', 'stg_orders']
node_type({"stg_orders": "table"}, "raw_orders")  # 'seed'
```

`node_type` returns:

- the node's materialization, if the node is a model in the mapping you pass;
- `seed`, for names that start with `raw_` or `seed_`;
- `source`, for anything else.

## Database adapter

`leapsql.adapter.Adapter` runs SQL on SQLite through Python's built-in
`sqlite3` module. An empty path or `:memory:` opens an in-memory database.

```python
from leapsql.adapter import Adapter, ConnectionConfig

with Adapter() as db:
    db.connect(ConnectionConfig(path=":memory:"))
    db.load_csv("raw_orders", "seeds/raw_orders.csv")
    meta = db.table_metadata("raw_orders")
    print([c.name for c in meta.columns], meta.row_count)
    print(db.query("SELECT COUNT(*) FROM raw_orders"))
```

`load_csv` replaces the table. It infers each column's type as INTEGER,
REAL or TEXT from the data. Failures raise `AdapterError`. Using an
adapter before `connect` also raises `AdapterError`.

## Documentation records

`leapsql.docs` holds the catalog records:

- `ModelDoc`, `ColumnDoc` and `SourceRef`
- `SourceDoc`
- `LineageDoc` and `LineageEdge`
- `ColumnLineageDoc`, `ColumnLineageNode` and `ColumnLineageEdge`

Each record has a `to_dict()` method.

The module also has these functions:

- `extract_description(content)` joins a model's leading `-- ` comment lines and skips pragma lines.
- `build_lineage(model_docs, sources)` builds the model graph. External sources appear as `source:<name>` nodes.
- `write_json(path, data)` writes indented JSON and understands these records.
- `copy_file(src, dst)` copies a file.

## What it does not do

The package has no command for seeding, running, listing, rendering or
drawing models. The `leapsql seed`, `leapsql run`, `leapsql list` and
`leapsql dag` lines printed by `init` refer to commands that this package
does not provide.

It also lacks these parts:

- SQL model file parsing and template or macro expansion
- run-state storage
- a documentation site builder and web server
- a language server