"""Application layer for the database viewer.

The application layer orchestrates domain logic against the engine and the
storage owner.

Exports:
    DocumentSession:
        - DocumentSession: Controller for one open document
        - export_file_name: File name used when saving an export
    Reads and writes:
        - TableReader: Table list, counts, column metadata and row pages
        - MutationExecutor: Schema and row edits
    Sync:
        - SaveCoordinator: Correlates save requests with acknowledgments
        - SaveRequest / SaveReport: One request and its reported outcome
"""

from db_viewer.application.document_session import DocumentSession, export_file_name
from db_viewer.application.mutation_executor import MutationExecutor
from db_viewer.application.save_coordinator import SaveCoordinator, SaveReport, SaveRequest
from db_viewer.application.table_reader import TableReader, coerce_row_id

__all__ = [
    "DocumentSession",
    "export_file_name",
    "TableReader",
    "coerce_row_id",
    "MutationExecutor",
    "SaveCoordinator",
    "SaveRequest",
    "SaveReport",
]
