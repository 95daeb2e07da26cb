"""
solrclient Builder — Streaming and Bulk Document Ingestion
==========================================================

Sends large numbers of documents to Solr's update handler without
building one huge request.

Design principles:
    - Stream processing: Never load the entire dataset into memory
    - Batching: Documents go out as JSON arrays of ``batch_size``
    - Progress reporting: Visibility into long-running builds
    - One commit at the end instead of per batch

Typical usage:
    builder = IndexBuilder(client, batch_size=5000)
    builder.add_jsonl_files("data/*.jsonl")
"""

import json
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional

from .utils import convert_dates_to_iso

if TYPE_CHECKING:
    from .core import SolrClient


logger = logging.getLogger(__name__)

# Turns one raw JSON record into a Solr document, or None to skip it
DocumentExtractor = Callable[[dict], Optional[Dict[str, Any]]]


def default_extractor(rec: dict) -> Optional[Dict[str, Any]]:
    """
    Default extractor: every JSON object line is already a document.

    Records without an ``id`` are skipped.
    """
    if isinstance(rec, dict) and rec.get("id") is not None:
        return rec
    return None


class DocumentStream:
    """
    Writable stream of documents for the update handler.

    Documents are buffered and POSTed in batches; ``close()`` sends the
    remainder. The update parameters (e.g. ``commit``) apply to every
    batch.

    Example:
        with client.create_document_stream({"commit": True}) as stream:
            stream.write({"id": "1", "name": "Megumin"})
        print(stream.response)
    """

    def __init__(
        self,
        client: "SolrClient",
        options: Optional[Mapping[str, Any]] = None,
        batch_size: int = 1000,
    ):
        self._client = client
        self._options = dict(options or {})
        self.batch_size = max(1, batch_size)
        self._buffer: List[Dict[str, Any]] = []
        self.written = 0
        self.batches = 0
        self.response: Optional[Dict[str, Any]] = None
        self.closed = False

    def write(self, document: Dict[str, Any]) -> None:
        """Queue one document, flushing when the batch is full."""
        if self.closed:
            raise ValueError("write to closed DocumentStream")
        self._buffer.append(convert_dates_to_iso(document))
        self.written += 1
        if len(self._buffer) >= self.batch_size:
            self.flush()

    def write_many(self, documents: Iterable[Dict[str, Any]]) -> None:
        for document in documents:
            self.write(document)

    def flush(self) -> Optional[Dict[str, Any]]:
        """Send buffered documents now."""
        if not self._buffer:
            return self.response
        batch, self._buffer = self._buffer, []
        self.response = self._client._update(batch, self._options)
        self.batches += 1
        logger.debug("Sent batch %d (%d documents)", self.batches, len(batch))
        return self.response

    def close(self) -> Optional[Dict[str, Any]]:
        """
        Flush and close the stream.

        Returns:
            The last update response, or None if nothing was written
        """
        if not self.closed:
            self.flush()
            self.closed = True
        return self.response

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Don't send a partial batch after a failure
        if exc_type is None:
            self.close()
        else:
            self.closed = True


class IndexBuilder:
    """
    Bulk loader for Solr cores.

    Features:
        - Batched JSON updates through DocumentStream
        - JSONL file ingestion with glob patterns
        - Pluggable record extractors
        - Progress logging and build statistics
    """

    def __init__(
        self,
        client: "SolrClient",
        batch_size: int = 5000,
        progress_interval: int = 100_000,
        commit: bool = True,
    ):
        """
        Initialize the builder.

        Args:
            client: Client for the target core
            batch_size: Documents per update request
            progress_interval: Documents between progress reports
            commit: Commit once after all documents are sent
        """
        self.client = client
        self.batch_size = batch_size
        self.progress_interval = progress_interval
        self.commit = commit

    def _report(self, total: int, start_time: float, detail: str = "") -> None:
        elapsed = time.time() - start_time
        rate = total / elapsed if elapsed > 0 else 0
        logger.info("%s documents | %s docs/sec%s", f"{total:,}", f"{rate:,.0f}", detail)

    def add_jsonl_files(
        self,
        pattern: str,
        extractor: DocumentExtractor = default_extractor,
        test_limit: Optional[int] = None,
    ) -> dict:
        """
        Add documents from JSONL files matching a pattern.

        Args:
            pattern: Glob pattern for files (e.g., "data/**/*.jsonl")
            extractor: Function turning a JSON record into a document
            test_limit: Stop after N documents (for testing)

        Returns:
            Build statistics dict
        """
        if "**" in pattern:
            base = pattern.split("**")[0] or "."
            files = sorted(Path(base).rglob(pattern.split("**/")[-1]))
        else:
            files = sorted(Path(pattern).parent.glob(Path(pattern).name))

        logger.info("Found %d files matching %s", len(files), pattern)

        total_documents = 0
        total_errors = 0
        files_processed = 0
        start_time = time.time()

        stream = self.client.create_document_stream(batch_size=self.batch_size)
        for file_idx, filepath in enumerate(files):
            with open(filepath, "r", encoding="utf-8") as f:
                for line in f:
                    if not line.strip():
                        continue
                    try:
                        document = extractor(json.loads(line))
                    except json.JSONDecodeError:
                        total_errors += 1
                        continue

                    if document is None:
                        total_errors += 1
                        continue

                    stream.write(document)
                    total_documents += 1

                    if total_documents % self.progress_interval == 0:
                        self._report(
                            total_documents, start_time, f" | File {file_idx + 1}/{len(files)}"
                        )

                    if test_limit and total_documents >= test_limit:
                        break

            files_processed += 1
            if test_limit and total_documents >= test_limit:
                break

        stream.close()
        if self.commit:
            self.client.commit()

        elapsed = time.time() - start_time
        stats = {
            "total_documents": total_documents,
            "total_errors": total_errors,
            "batches": stream.batches,
            "files_processed": files_processed,
            "elapsed_seconds": elapsed,
            "rate_per_second": total_documents / elapsed if elapsed > 0 else 0,
        }
        logger.info(
            "Build complete: %d documents, %d errors, %d files",
            total_documents, total_errors, files_processed,
        )
        return stats

    def add_documents(
        self,
        documents: Iterable[Dict[str, Any]],
        total_hint: Optional[int] = None,
    ) -> dict:
        """
        Add documents from any iterable.

        Args:
            documents: Iterable of document dicts
            total_hint: Expected total count (for progress)

        Returns:
            Build statistics
        """
        total_documents = 0
        start_time = time.time()

        with self.client.create_document_stream(batch_size=self.batch_size) as stream:
            for document in documents:
                stream.write(document)
                total_documents += 1

                if total_documents % self.progress_interval == 0:
                    pct = f" ({100 * total_documents / total_hint:.1f}%)" if total_hint else ""
                    self._report(total_documents, start_time, pct)

        if self.commit:
            self.client.commit()

        elapsed = time.time() - start_time
        return {
            "total_documents": total_documents,
            "batches": stream.batches,
            "elapsed_seconds": elapsed,
            "rate_per_second": total_documents / elapsed if elapsed > 0 else 0,
        }
