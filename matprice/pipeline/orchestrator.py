"""Import orchestrator - drives a price list through resolution and the ledger.

States: IDLE -> VALIDATING -> IMPORTING -> COMPLETED, or
        IDLE -> VALIDATING -> REJECTED (precondition failure, nothing persisted).

Key features:
- Single active run: a second run submitted meanwhile is rejected
- Sequential: each row is parsed, resolved and persisted (awaited) before
  the next one starts, so errors come out in file order
- Partial-failure tolerant: row errors are recorded, never abort the run
- Non-transactional: rows persisted before an interruption stay persisted
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from datetime import date, datetime
from pathlib import Path
from uuid import UUID

from matprice.config import ImportConfig
from matprice.core.exceptions import (
    EmptyImportError,
    FatalInputError,
    ImportInProgressError,
    NoPriceSourceError,
    PreconditionError,
    RowPersistError,
)
from matprice.core.logging import import_context
from matprice.ingestion.columns import detect_columns
from matprice.ingestion.pasted import parse_pasted_text, split_lines
from matprice.ingestion.rows import ImportRow, parse_rows
from matprice.ingestion.spreadsheet import read_table
from matprice.ledger.prices import PriceLedger
from matprice.models import Material, PriceRecord, PriceSource
from matprice.pipeline.reconcile import reconcile_row
from matprice.pipeline.types import ImportPolicy, ImportReport, ImportResult, RunState
from matprice.store.base import MaterialCatalog, PriceStore

logger = logging.getLogger(__name__)


def rows_from_table(table: Sequence[Sequence]) -> list[ImportRow]:
    """Validate a raw table (header row first) and parse its data rows.

    Raises:
        EmptyImportError: If there is no data row beyond the header
        MissingColumnError: If price or identifying columns are undetected
    """
    if len(table) < 2:
        raise EmptyImportError("Price list must contain at least one data row after the header")

    columns = detect_columns(table[0]).require()
    logger.info(f"Detected columns: {columns}")
    return list(parse_rows(table, columns))


def rows_from_text(text: str) -> list[ImportRow]:
    """Validate pasted text and parse its lines.

    Raises:
        EmptyImportError: If the text has no non-blank line
    """
    if not split_lines(text):
        raise EmptyImportError("Pasted data contains no price line")
    return parse_pasted_text(text)


class ImportOrchestrator:
    """Runs bulk price imports against a store and a material catalog.

    Responsibilities:
    1. Reject concurrent runs
    2. Check preconditions (rows, columns, price source) before touching the store
    3. Resolve and persist rows one at a time
    4. Aggregate an immutable ImportReport
    """

    def __init__(
        self,
        store: PriceStore,
        catalog: MaterialCatalog | Sequence[Material],
        config: ImportConfig | None = None,
    ):
        """Initialize orchestrator.

        Args:
            store: Price store (persistence is delegated to it)
            catalog: Material catalog, or a ready list of materials
            config: Import defaults (currency, default source, error display cap)
        """
        self.store = store
        self.ledger = PriceLedger(store)
        self.catalog = catalog
        self.config = config or ImportConfig()
        self.state = RunState.IDLE
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        """True while a run is in progress."""
        return self._lock.locked()

    async def import_file(
        self,
        file_path: Path,
        price_source_id: UUID | None = None,
        valid_from: date | None = None,
        currency: str | None = None,
        created_by: str | None = None,
    ) -> ImportResult:
        """Import a CSV/XLSX price list.

        Raises:
            ImportInProgressError: If another run is active
            FatalInputError: If the file cannot be read
            PreconditionError: If the run is rejected before any row
        """
        return await self._run(
            lambda: rows_from_table(read_table(file_path)),
            price_source_id=price_source_id,
            valid_from=valid_from,
            currency=currency,
            origin_file=file_path.name,
            created_by=created_by,
        )

    async def import_table(
        self,
        table: Sequence[Sequence],
        price_source_id: UUID | None = None,
        valid_from: date | None = None,
        currency: str | None = None,
        origin_file: str | None = None,
        created_by: str | None = None,
    ) -> ImportResult:
        """Import an in-memory table (header row first)."""
        return await self._run(
            lambda: rows_from_table(table),
            price_source_id=price_source_id,
            valid_from=valid_from,
            currency=currency,
            origin_file=origin_file,
            created_by=created_by,
        )

    async def import_text(
        self,
        text: str,
        price_source_id: UUID | None = None,
        valid_from: date | None = None,
        currency: str | None = None,
        filename: str | None = None,
        created_by: str | None = None,
    ) -> ImportResult:
        """Import tab-separated lines pasted from a supplier document."""
        return await self._run(
            lambda: rows_from_text(text),
            price_source_id=price_source_id,
            valid_from=valid_from,
            currency=currency,
            origin_file=filename,
            created_by=created_by,
        )

    async def resolve_price_source(self, price_source_id: UUID | None = None) -> PriceSource:
        """Pick the price source for a run.

        Order: the requested id (must exist), then the configured default
        source name, then the first registered source.

        Raises:
            NoPriceSourceError: If no usable source exists
        """
        sources = await self.store.list_price_sources()

        if price_source_id is not None:
            for source in sources:
                if source.id == price_source_id:
                    return source
            raise NoPriceSourceError(f"Unknown price source: {price_source_id}")

        wanted = self.config.default_source_name.lower()
        for source in sources:
            if source.name.lower() == wanted:
                return source

        if sources:
            return sources[0]
        raise NoPriceSourceError("No price source available")

    async def _load_catalog(self) -> list[Material]:
        if isinstance(self.catalog, MaterialCatalog):
            return await self.catalog.list_materials()
        return list(self.catalog)

    async def _run(
        self,
        prepare: Callable[[], list[ImportRow]],
        price_source_id: UUID | None,
        valid_from: date | None,
        currency: str | None,
        origin_file: str | None,
        created_by: str | None,
    ) -> ImportResult:
        if self._lock.locked():
            raise ImportInProgressError("An import is already in progress")

        async with self._lock:
            with import_context(origin_file=origin_file or "pasted data"):
                try:
                    return await self._execute(
                        prepare, price_source_id, valid_from, currency, origin_file, created_by
                    )
                except Exception as e:
                    if self.state in (RunState.VALIDATING, RunState.IMPORTING):
                        logger.error(f"Import aborted in {self.state.value}: {e}")
                        self.state = RunState.IDLE
                    raise

    async def _execute(
        self,
        prepare: Callable[[], list[ImportRow]],
        price_source_id: UUID | None,
        valid_from: date | None,
        currency: str | None,
        origin_file: str | None,
        created_by: str | None,
    ) -> ImportResult:
        start_time = time.time()
        logger.info(f"Starting price import at {datetime.utcnow()} ({origin_file or 'pasted data'})")
        self.state = RunState.VALIDATING

        try:
            rows = prepare()
            if not rows:
                # Every row was dropped: nothing to attribute to a source
                self.state = RunState.COMPLETED
                report = ImportReport(max_reported_errors=self.config.max_reported_errors)
                logger.info(f"Import completed: {report.summary}")
                return ImportResult(report=report, duration_seconds=time.time() - start_time)
            source = await self.resolve_price_source(price_source_id)
            catalog = await self._load_catalog()
        except (PreconditionError, FatalInputError) as e:
            self.state = RunState.REJECTED
            logger.warning(f"Import rejected: {e}")
            raise

        policy = ImportPolicy(
            price_source_id=source.id,
            valid_from=valid_from or date.today(),
            currency=(currency or self.config.default_currency).upper(),
            origin_file=origin_file,
            created_by=created_by or self.config.created_by,
            max_reported_errors=self.config.max_reported_errors,
        )

        self.state = RunState.IMPORTING
        report, created = await self._import_rows(rows, catalog, policy)
        self.state = RunState.COMPLETED

        result = ImportResult(
            report=report,
            price_source=source,
            created=created,
            rows_parsed=len(rows),
            duration_seconds=time.time() - start_time,
        )

        if report.failed:
            logger.error(f"Import failed: {report.summary}")
        else:
            logger.info(f"Import completed ({source.name}): {report.summary}")
        return result

    async def _import_rows(
        self,
        rows: Sequence[ImportRow],
        catalog: Sequence[Material],
        policy: ImportPolicy,
    ) -> tuple[ImportReport, list[PriceRecord]]:
        """Resolve and persist rows strictly one after another."""
        report = policy.empty_report()
        created: list[PriceRecord] = []

        for row in rows:
            report, draft = reconcile_row(report, row, catalog, policy)
            if draft is None:
                logger.warning(f"Row {row.raw_index}: material not found for '{row.label}'")
                continue

            try:
                record = await self.ledger.create(draft)
            except Exception as e:
                error = RowPersistError(row.label, str(e) or type(e).__name__)
                logger.warning(f"Row {row.raw_index} rejected: {error}")
                report = report.with_error(error.row_ref, error.reason)
                continue

            report = report.with_success()
            created.append(record)

        return report, created
