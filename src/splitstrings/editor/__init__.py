"""Editor package containing document snapshots, edit batches, and host bindings."""

from . import document_model, edits, host

__all__ = ["document_model", "edits", "host"]
