"""Creation of new project skeletons and a complete example project."""

from __future__ import annotations

import csv
import io
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence, TextIO

CONFIG_FILE = "leapsql.yaml"
_PROJECT_DIRS = (
    ("models",),
    ("models", "staging"),
    ("models", "marts"),
    ("seeds",),
    ("macros",),
)


class ScaffoldError(RuntimeError):
    """Raised when a project cannot be created."""


# --- configuration files ---------------------------------------------------

_Setting = tuple[str, str, str]  # key, rendered value, trailing comment


def _settings_block(settings: Iterable[_Setting]) -> list[str]:
    lines = []
    for key, value, note in settings:
        line = f"{key}: {value}"
        lines.append(f"{line}  # {note}" if note else line)
    return lines


def _config_text(groups: Sequence[tuple[str, Sequence[_Setting]]], intro: Sequence[str]) -> str:
    """Render YAML settings grouped under optional comment headings."""
    lines = [f"# {text}" for text in intro]
    for heading, settings in groups:
        if heading:
            lines.extend(["", f"# {heading}"])
        lines.extend(_settings_block(settings))
    return "\n".join(lines) + "\n"


_DIR_SETTINGS: tuple[_Setting, ...] = (
    ("models_dir", "models", ""),
    ("seeds_dir", "seeds", ""),
    ("macros_dir", "macros", ""),
)
_STATE_SETTING: _Setting = ("state_path", ".leapsql/state.db", "")
_RUNTIME_SETTINGS: tuple[_Setting, ...] = (
    ("environment", "dev", ""),
    ("verbose", "false", ""),
    ("output", "auto", ""),
)

MINIMAL_CONFIG = _config_text(
    [
        (
            "",
            (
                *_DIR_SETTINGS,
                ("database", '""', "Empty for in-memory DuckDB"),
                _STATE_SETTING,
                *_RUNTIME_SETTINGS,
            ),
        )
    ],
    intro=["LeapSQL Configuration"],
)

EXAMPLE_CONFIG = _config_text(
    [
        ("Directory paths", _DIR_SETTINGS),
        ("Database file, kept on disk between runs", (("database", "warehouse.duckdb", ""),)),
        ("State tracking for incremental runs", (_STATE_SETTING,)),
        ("Environment", _RUNTIME_SETTINGS),
    ],
    intro=["LeapSQL Configuration", "Created by: leapsql init --example"],
)

_IGNORED: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("LeapSQL", (".leapsql/", "*.duckdb", "*.duckdb.wal")),
    ("IDE", (".idea/", ".vscode/", "*.swp", "*.swo")),
    ("OS", (".DS_Store", "Thumbs.db")),
)

GITIGNORE_CONTENT = "\n".join(
    "\n".join([f"# {section}", *patterns]) for section, patterns in _IGNORED
) + "\n"


# --- seed data -------------------------------------------------------------


def _csv_text(header: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


SEED_CUSTOMERS = _csv_text(
    ("id", "name", "email", "created_at"),
    [
        (1, "Alice Johnson", "alice@example.com", "2024-01-15"),
        (2, "Bob Smith", "bob@example.com", "2024-02-20"),
        (3, "Carol Williams", "carol@example.com", "2024-03-10"),
        (4, "David Brown", "david@example.com", "2024-04-05"),
        (5, "Eve Davis", "eve@example.com", "2024-05-12"),
    ],
)

SEED_ORDERS = _csv_text(
    ("id", "customer_id", "product_id", "quantity", "order_date", "status"),
    [
        (1, 1, 1, 2, "2024-06-01", "completed"),
        (2, 1, 3, 1, "2024-06-05", "completed"),
        (3, 2, 2, 3, "2024-06-10", "completed"),
        (4, 3, 1, 1, "2024-06-15", "pending"),
        (5, 2, 4, 2, "2024-06-20", "completed"),
        (6, 4, 5, 1, "2024-06-25", "shipped"),
        (7, 1, 2, 1, "2024-07-01", "completed"),
        (8, 5, 3, 2, "2024-07-05", "pending"),
        (9, 3, 4, 1, "2024-07-10", "completed"),
        (10, 2, 1, 2, "2024-07-15", "completed"),
    ],
)

SEED_PRODUCTS = _csv_text(
    ("id", "name", "price", "category"),
    [
        (1, "Laptop", "999.99", "Electronics"),
        (2, "Headphones", "149.99", "Electronics"),
        (3, "Coffee Maker", "79.99", "Home"),
        (4, "Notebook", "12.99", "Office"),
        (5, "Desk Lamp", "45.99", "Home"),
    ],
)


# --- SQL models ------------------------------------------------------------


def _front_matter(**meta: str) -> list[str]:
    return ["/*---", *(f"{key}: {value}" for key, value in meta.items()), "---*/"]


def _model(
    description: str,
    owner: str,
    tags: Sequence[str],
    columns: Sequence[str],
    source: str,
    *clauses: str,
) -> str:
    """Render a model file with front matter and a single SELECT statement."""
    lines = _front_matter(
        materialized="table",
        description=description,
        owner=owner,
        tags=f"[{', '.join(tags)}]",
    )
    lines.append("SELECT")
    lines.append(",\n".join(f"    {column}" for column in columns))
    lines.append(f"FROM {source}")
    lines.extend(clauses)
    return "\n".join(lines) + "\n"


MINIMAL_MODEL = "\n".join(
    [
        *_front_matter(materialized="table"),
        "-- Example staging model",
        "SELECT",
        "    1 as id,",
        "    'example' as name,",
        "    CURRENT_TIMESTAMP as created_at",
    ]
) + "\n"

MODEL_STG_CUSTOMERS = _model(
    "Cleaned customer data from raw source",
    "data-team",
    ("staging", "customers"),
    (
        "id AS customer_id",
        "name AS customer_name",
        "LOWER(email) AS email",
        "CAST(created_at AS DATE) AS signup_date",
    ),
    "raw_customers",
)

MODEL_STG_ORDERS = _model(
    "Cleaned order data with standardized columns",
    "data-team",
    ("staging", "orders"),
    (
        "id AS order_id",
        "customer_id",
        "product_id",
        "quantity",
        "CAST(order_date AS DATE) AS order_date",
        "UPPER(status) AS order_status",
    ),
    "raw_orders",
)

MODEL_STG_PRODUCTS = _model(
    "Product catalog with cleaned data",
    "data-team",
    ("staging", "products"),
    (
        "id AS product_id",
        "name AS product_name",
        "price AS unit_price",
        "UPPER(category) AS category",
    ),
    "raw_products",
)

_CUSTOMER_KEYS = ("c.customer_id", "c.customer_name", "c.email", "c.signup_date")

MODEL_DIM_CUSTOMERS = _model(
    "Customer dimension with order statistics",
    "analytics-team",
    ("marts", "customers", "dimension"),
    (
        *_CUSTOMER_KEYS,
        "COUNT(DISTINCT o.order_id) AS total_orders",
        "COALESCE(SUM(o.quantity), 0) AS total_items_ordered",
        "MIN(o.order_date) AS first_order_date",
        "MAX(o.order_date) AS last_order_date",
    ),
    "staging.stg_customers c",
    "LEFT JOIN staging.stg_orders o ON c.customer_id = o.customer_id",
    f"GROUP BY {', '.join(_CUSTOMER_KEYS)}",
)

_ORDER_KEY_MACRO = (
    "{{ utils.generate_surrogate_key('o.order_id', 'o.customer_id', 'o.product_id') }}"
)

MODEL_FCT_ORDERS = _model(
    "Order fact table with customer and product details",
    "analytics-team",
    ("marts", "orders", "fact"),
    (
        "o.order_id",
        "o.order_date",
        "o.order_status",
        "o.quantity",
        "c.customer_id",
        "c.customer_name",
        "p.product_id",
        "p.product_name",
        "p.unit_price",
        "p.category",
        "(o.quantity * p.unit_price) AS line_total",
        f"{_ORDER_KEY_MACRO} AS order_key",
    ),
    "staging.stg_orders o",
    "JOIN staging.stg_customers c ON o.customer_id = c.customer_id",
    "JOIN staging.stg_products p ON o.product_id = p.product_id",
)


# --- macros ----------------------------------------------------------------

_MACRO_FUNCTIONS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    (
        "generate_surrogate_key(*columns)",
        "Join the columns, cast to text, into one MD5 hash.\n\n"
        "Example: {{ utils.generate_surrogate_key('a', 'b') }}",
        (
            'casts = ["CAST({} AS VARCHAR)".format(c) for c in columns]',
            "return \"MD5({})\".format(\" || '-' || \".join(casts))",
        ),
    ),
    (
        'safe_divide(numerator, denominator, default="0")',
        "Divide numerator by denominator, or give default when the divisor is zero.\n\n"
        "Example: {{ utils.safe_divide('revenue', 'quantity') }}",
        (
            'template = "CASE WHEN {d} = 0 THEN {z} ELSE {n} / {d} END"',
            "return template.format(d=denominator, z=default, n=numerator)",
        ),
    ),
    (
        "current_timestamp()",
        "The SQL expression for the current timestamp.\n\n"
        "Example: {{ utils.current_timestamp() }}",
        ('return "CURRENT_TIMESTAMP"',),
    ),
)


def _macro_source() -> str:
    blocks = [
        "# Shared helpers for SQL models.\n"
        "# Call them from a model as {{ utils.<function>(...) }}."
    ]
    for signature, doc, body in _MACRO_FUNCTIONS:
        doc_lines = "\n".join(f"    {line}".rstrip() for line in doc.splitlines())
        code = "\n".join(f"    {line}" for line in body)
        blocks.append(f'def {signature}:\n    """\n{doc_lines}\n    """\n{code}')
    return "\n\n\n".join(blocks) + "\n"


MACRO_UTILS = _macro_source()


# --- README ----------------------------------------------------------------

_TreeNode = tuple[str, str, tuple]

_LAYOUT: tuple[_TreeNode, ...] = (
    (
        "seeds/",
        "CSV files loaded as tables",
        (
            ("raw_customers.csv", "", ()),
            ("raw_orders.csv", "", ()),
            ("raw_products.csv", "", ()),
        ),
    ),
    (
        "models/",
        "",
        (
            (
                "staging/",
                "light cleanup of the raw tables",
                (
                    ("stg_customers.sql", "", ()),
                    ("stg_orders.sql", "", ()),
                    ("stg_products.sql", "", ()),
                ),
            ),
            (
                "marts/",
                "joined and aggregated tables",
                (("dim_customers.sql", "", ()), ("fct_orders.sql", "", ())),
            ),
        ),
    ),
    ("macros/", "Starlark helper functions", (("utils.star", "", ()),)),
    (CONFIG_FILE, "project settings", ()),
)


def _render_tree(nodes: Sequence[_TreeNode], prefix: str = "") -> list[str]:
    lines: list[str] = []
    for position, (name, note, children) in enumerate(nodes, start=1):
        last = position == len(nodes)
        label = f"{prefix}{'└── ' if last else '├── '}{name}"
        lines.append(f"{label:<24}# {note}" if note else label)
        lines.extend(_render_tree(children, prefix + ("    " if last else "│   ")))
    return lines


def _code(body: str, language: str = "") -> str:
    fence = "`" * 3
    return f"{fence}{language}\n{body}\n{fence}"


def _commands(pairs: Sequence[tuple[str, str]]) -> str:
    return "\n\n".join(f"# {note}\n{command}" for note, command in pairs)


README_CONTENT = "\n\n".join(
    [
        "# LeapSQL Example Project",
        "A small shop data set, modelled in two layers, to try out LeapSQL.",
        "## Layout",
        _code("\n".join(_render_tree(_LAYOUT))),
        "## Getting Started",
        _code(
            _commands(
                [
                    ("Load the CSV seeds into the database", "leapsql seed"),
                    ("Build every model, dependencies first", "leapsql run"),
                    ("Show models with their dependencies", "leapsql list"),
                    ("Show the dependency graph", "leapsql dag"),
                    ("Print the compiled SQL of one model", "leapsql render marts.fct_orders"),
                ]
            ),
            "bash",
        ),
        "## How Data Moves",
        "\n".join(
            [
                "- raw_customers.csv → stg_customers → dim_customers, fct_orders",
                "- raw_orders.csv → stg_orders → dim_customers, fct_orders",
                "- raw_products.csv → stg_products → fct_orders",
            ]
        ),
        "## Models",
        "### Staging\n"
        "- **stg_customers**: customers with tidy column names\n"
        "- **stg_orders**: orders with an upper-case status\n"
        "- **stg_products**: products with an upper-case category",
        "### Marts\n"
        "- **dim_customers**: one row per customer with order totals\n"
        "- **fct_orders**: one row per order with customer and product details",
        "## Looking at the Results",
        "Once the models have run, query the tables directly:",
        _code(
            _commands(
                [
                    ("Open the database", "duckdb warehouse.duckdb"),
                    ("Sample the fact table", "SELECT * FROM marts.fct_orders LIMIT 10;"),
                    (
                        "Customers by number of orders",
                        "SELECT * FROM marts.dim_customers ORDER BY total_orders DESC;",
                    ),
                ]
            ),
            "bash",
        ),
    ]
) + "\n"


# --- project creation ------------------------------------------------------


@dataclass(frozen=True)
class _Template:
    parts: tuple[str, ...]
    content: str
    info: str = ""


_EXAMPLE_SECTIONS: tuple[tuple[str, tuple[_Template, ...]], ...] = (
    (
        "Configuration",
        (
            _Template((CONFIG_FILE,), EXAMPLE_CONFIG),
            _Template((".gitignore",), GITIGNORE_CONTENT),
            _Template(("README.md",), README_CONTENT),
        ),
    ),
    (
        "Seeds",
        (
            _Template(("seeds", "raw_customers.csv"), SEED_CUSTOMERS, "5 rows"),
            _Template(("seeds", "raw_orders.csv"), SEED_ORDERS, "10 rows"),
            _Template(("seeds", "raw_products.csv"), SEED_PRODUCTS, "5 rows"),
        ),
    ),
    (
        "Models",
        (
            _Template(("models", "staging", "stg_customers.sql"), MODEL_STG_CUSTOMERS),
            _Template(("models", "staging", "stg_orders.sql"), MODEL_STG_ORDERS),
            _Template(("models", "staging", "stg_products.sql"), MODEL_STG_PRODUCTS),
            _Template(("models", "marts", "dim_customers.sql"), MODEL_DIM_CUSTOMERS),
            _Template(("models", "marts", "fct_orders.sql"), MODEL_FCT_ORDERS),
        ),
    ),
    ("Macros", (_Template(("macros", "utils.star"), MACRO_UTILS),)),
)

_MINIMAL_NEXT_STEPS = (
    "  1. Add your seed data to seeds/",
    "  2. Create SQL models in models/",
    "  3. Run 'leapsql run' to execute models",
    "  4. Run 'leapsql list' to see all models",
)

_EXAMPLE_NEXT_STEPS = (
    ("seed", "Load CSV data into DuckDB"),
    ("run", "Execute all models in dependency order"),
    ("list", "View models and dependencies"),
    ("dag", "Visualize the dependency graph"),
)


class _Report:
    """Plain progress output for project creation."""

    def __init__(self, out: TextIO | None) -> None:
        self._out = out if out is not None else sys.stdout

    def line(self, text: str = "") -> None:
        print(text, file=self._out)

    def status(self, name: str, info: str = "") -> None:
        self.line(f"  ✓ {name}" + (f" ({info})" if info else ""))

    def header(self, title: str) -> None:
        self.line(f"## {title}")

    def success(self, message: str) -> None:
        self.line(f"✓ {message}")

    def warning(self, message: str) -> None:
        self.line(f"! {message}")

    def closing(self, message: str, steps: Iterable[str]) -> None:
        self.line()
        self.success(message)
        self.line()
        self.line("Next steps:")
        for step in steps:
            self.line(step)


def write_file_if_not_exists(path: str | os.PathLike[str], content: str, force: bool = False) -> bool:
    """Write content to path unless it exists and force is off; return whether it was written."""
    target = Path(path)
    if target.exists() and not force:
        return False
    try:
        target.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ScaffoldError(f"failed to create {target}: {exc}") from exc
    return True


def _prepare(directory: Path, force: bool) -> Path:
    if str(directory) != ".":
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ScaffoldError(f"failed to create directory {directory}: {exc}") from exc
    config_path = directory / CONFIG_FILE
    if config_path.exists() and not force:
        raise ScaffoldError(f"{CONFIG_FILE} already exists. Use --force to overwrite")
    return config_path


def _make_dirs(directory: Path) -> list[Path]:
    created = []
    for parts in _PROJECT_DIRS:
        path = directory.joinpath(*parts)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ScaffoldError(f"failed to create {path} directory: {exc}") from exc
        created.append(path)
    return created


def init_project(
    directory: str | os.PathLike[str] = ".", force: bool = False, out: TextIO | None = None
) -> list[Path]:
    """Create a minimal project; return the files that were written."""
    root = Path(directory)
    report = _Report(out)
    config_path = _prepare(root, force)

    for path in _make_dirs(root):
        report.status(f"{path}/")

    written: list[Path] = []
    try:
        config_path.write_text(MINIMAL_CONFIG, encoding="utf-8")
    except OSError as exc:
        raise ScaffoldError(f"failed to create {CONFIG_FILE}: {exc}") from exc
    written.append(config_path)
    report.status(CONFIG_FILE)

    model_path = root / "models" / "staging" / "stg_example.sql"
    if not model_path.exists() or force:
        try:
            model_path.write_text(MINIMAL_MODEL, encoding="utf-8")
        except OSError as exc:
            raise ScaffoldError(f"failed to create example model: {exc}") from exc
        written.append(model_path)
        report.status("models/staging/stg_example.sql")

    gitignore_path = root / ".gitignore"
    if not gitignore_path.exists() or force:
        try:
            gitignore_path.write_text(GITIGNORE_CONTENT, encoding="utf-8")
        except OSError as exc:
            report.warning(f"failed to create .gitignore: {exc}")
        else:
            written.append(gitignore_path)
            report.status(".gitignore")

    report.closing("LeapSQL project initialized!", _MINIMAL_NEXT_STEPS)
    return written


def init_example(
    directory: str | os.PathLike[str] = ".", force: bool = False, out: TextIO | None = None
) -> list[Path]:
    """Create a complete example project; return the files that were written."""
    root = Path(directory)
    report = _Report(out)
    _prepare(root, force)
    _make_dirs(root)

    written: list[Path] = []
    for index, (title, templates) in enumerate(_EXAMPLE_SECTIONS):
        if index:
            report.line()
        report.header(title)
        for template in templates:
            path = root.joinpath(*template.parts)
            if write_file_if_not_exists(path, template.content, force):
                written.append(path)
            report.status(str(Path(*template.parts)), template.info)

    report.closing(
        "LeapSQL project initialized with example data!",
        (f"  leapsql {command:<8} {text}" for command, text in _EXAMPLE_NEXT_STEPS),
    )
    return written