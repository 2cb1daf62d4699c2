"""
DB Viewer - In-memory SQLite view/edit/sync engine

Loads a whole SQLite file into an in-process engine, serves filtered and
paginated views over it, applies edits and flushes the bytes back to the
document owner over an asynchronous, correlated message protocol.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
