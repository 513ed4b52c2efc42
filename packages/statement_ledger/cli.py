# ruff: noqa: I001
"""CLI for the ``statement_ledger`` package.

This module exposes callable command handlers (``cmd_*``, returning a process
exit code) and a Typer console interface around them. Environment variables
(notably ``DATABASE_URL`` and ``STATEMENT_LEDGER_GAZETTEER``) are loaded from a
local ``.env`` using ``python-dotenv`` before any command runs. Business logic
lives in ``statement_ledger.api`` and related modules.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .config import LedgerSettings
from .logging_setup import configure_logging


# ---- Small module-level helpers used by CLI commands -------------------------


def _load_resolver(settings: LedgerSettings, gazetteer_path: Path | None):
    """Load the gazetteer (fatal on failure) and wrap it in a resolver."""

    from .gazetteer import load_gazetteer
    from .location import GeographicResolver

    gazetteer = load_gazetteer(gazetteer_path or settings.gazetteer_path)
    return GeographicResolver(gazetteer, fuzzy=settings.fuzzy_cities)


def _read_text(path: Path) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


def _parse_file(path: Path):
    from .api import parse_statement

    return parse_statement(_read_text(path))


def _parse_files(paths: Sequence[Path], *, max_workers: int) -> list:
    """Parse statement text files concurrently, keeping input order."""

    from concurrent.futures import ThreadPoolExecutor, as_completed

    results: list = [None] * len(paths)
    workers = max(1, min(max_workers, len(paths)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(_parse_file, p): i for i, p in enumerate(paths)}
        for fut in as_completed(futures):
            results[futures[fut]] = fut.result()
    return results


def _print_progress(processed: int, total: int) -> None:
    print(f"Progress: {processed}/{total}", file=sys.stderr)


# ---- Command handlers -----------------------------------------------------------


def cmd_init_db(*, database_url: str | None) -> int:
    """Create all ledger tables and seed the default categories."""

    from db import Base
    from db.client import get_engine, session_scope

    from .categories import seed_default_categories

    try:
        Base.metadata.create_all(bind=get_engine(database_url=database_url))
        with session_scope(database_url=database_url) as session:
            added = seed_default_categories(session)
    except Exception as e:
        print(f"Error: database initialization failed: {e}", file=sys.stderr)
        return 1

    print(f"Database ready ({added} categories added)")
    return 0


def cmd_parse_statement(text_path: Path) -> int:
    """Parse one statement text file and print its header and purchases."""

    from .api import parse_statement

    try:
        parsed = parse_statement(_read_text(text_path))
    except FileNotFoundError:
        print(f"Error: File not found: {text_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {text_path}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"Error: '{text_path}' is not UTF-8 text: {e}", file=sys.stderr)
        return 1

    st = parsed.statement
    print(f"Holder: {st.holder}")
    print(f"Account: {st.account_number} ({st.currency})")
    print(f"Period: {st.period.start.isoformat()} - {st.period.end.isoformat()}")
    print(f"Closing balance: {st.closing_balance:.2f}")
    print(f"Purchases: {len(parsed.transactions)} (skipped blocks: {parsed.skipped_blocks})")
    for tx in parsed.transactions:
        d = tx.details
        print(
            "\t".join(
                [
                    tx.date.isoformat(),
                    f"{tx.amount:.2f}",
                    tx.account_currency,
                    d.merchant_name or "",
                    d.mcc_code or "",
                    d.bank_name or "",
                    d.payment_label or "",
                ]
            )
        )
    return 0


def cmd_import_statement(
    text_paths: Sequence[Path],
    *,
    database_url: str | None,
    gazetteer_path: Path | None,
    show_progress: bool = False,
) -> int:
    """Parse statement files and ingest each one in its own transaction."""

    from db.client import session_scope

    from .api import import_statement
    from .errors import GazetteerLoadError, MissingNaturalKeyError

    settings = LedgerSettings.from_env()
    try:
        resolver = _load_resolver(settings, gazetteer_path)
    except GazetteerLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        parsed_all = _parse_files(list(text_paths), max_workers=settings.max_parse_workers)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except (PermissionError, UnicodeDecodeError) as e:
        print(f"Error: Failed to read statement: {e}", file=sys.stderr)
        return 1

    url = database_url or settings.database_url
    for path, parsed in zip(text_paths, parsed_all, strict=True):
        try:
            with session_scope(database_url=url) as session:
                result = import_statement(
                    session,
                    parsed,
                    resolver=resolver,
                    on_progress=_print_progress if show_progress else None,
                )
        except MissingNaturalKeyError as e:
            print(f"Error: {path}: cannot import statement ({e})", file=sys.stderr)
            return 1
        except Exception as e:
            print(f"Error: {path}: import failed: {e}", file=sys.stderr)
            return 1
        print(
            f"{path}: total={result.total_count} imported={result.imported_count} "
            f"duplicates={result.duplicate_count}"
        )
    return 0


def cmd_autocategorize(*, database_url: str | None) -> int:
    """Re-run the categorization rules over merchants that still need a category."""

    from db.client import session_scope

    from .categories import category_id_resolver
    from .categorizer import MerchantCategorizer
    from .persistence import auto_categorize_pending_merchants

    try:
        with session_scope(database_url=database_url) as session:
            categorizer = MerchantCategorizer(category_id_resolver(session))
            summary = auto_categorize_pending_merchants(session, categorizer)
    except Exception as e:
        print(f"Error: auto-categorization failed: {e}", file=sys.stderr)
        return 1

    print(
        f"processed={summary.processed} categorized={summary.categorized} "
        f"remaining={summary.remaining}"
    )
    return 0


def cmd_resolve_location(text: str, *, gazetteer_path: Path | None) -> int:
    from .errors import GazetteerLoadError

    try:
        resolver = _load_resolver(LedgerSettings.from_env(), gazetteer_path)
    except GazetteerLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    loc = resolver.resolve(text)
    print(f"country={loc.country_code or '-'}\tcity={loc.city or '-'}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Parse bank-statement text into a deduplicated purchase ledger. "
        "Loads DATABASE_URL and other settings from a local .env before running."
    ),
)

# Module-level option object to satisfy ruff B008 (no calls in parameter
# defaults). Typer inspects it when used in ``Annotated`` below.
TEXT_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--text-path",
    help="Path to a statement's extracted text (UTF-8).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("init-db")
def init_db_cmd(
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Create tables and seed default categories."""

    _exit(cmd_init_db(database_url=database_url))


@app.command("parse-statement")
def parse_statement_cmd(text_path: Annotated[Path, TEXT_PATH_OPTION]) -> None:
    """Parse a statement and print what would be imported (no database)."""

    _exit(cmd_parse_statement(text_path))


@app.command("import-statement")
def import_statement_cmd(
    text_paths: Annotated[list[Path], TEXT_PATH_OPTION],
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
    gazetteer: Path | None = typer.Option(
        None,
        "--gazetteer",
        help="GeoNames cities file (falls back to STATEMENT_LEDGER_GAZETTEER).",
        dir_okay=False,
    ),
    progress: bool = typer.Option(False, help="Report ingestion progress on stderr."),
) -> None:
    """Import one or more statements; each file is committed separately."""

    _exit(
        cmd_import_statement(
            text_paths,
            database_url=database_url,
            gazetteer_path=gazetteer,
            show_progress=progress,
        )
    )


@app.command("autocategorize")
def autocategorize_cmd(
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Categorize merchants flagged as needing categorization."""

    _exit(cmd_autocategorize(database_url=database_url))


@app.command("resolve-location")
def resolve_location_cmd(
    text: str,
    gazetteer: Path | None = typer.Option(
        None,
        "--gazetteer",
        help="GeoNames cities file (falls back to STATEMENT_LEDGER_GAZETTEER).",
        dir_okay=False,
    ),
) -> None:
    """Resolve country and city at the end of a merchant string."""

    _exit(cmd_resolve_location(text, gazetteer_path=gazetteer))


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # override=False keeps already-set environment variables
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
